"""Exceptions raised (or yielded) by the dockyard client."""

from __future__ import annotations

from typing import Optional

import httpx


class DockyardError(Exception):
    """Base class for every error this package produces."""


class TransportError(DockyardError):
    """The connection to the daemon failed, timed out, or dropped."""


class DaemonError(DockyardError):
    """The daemon answered with a non-success status."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"HTTP {status_code}: {message}")

    @classmethod
    def from_response(cls, response: httpx.Response) -> "DaemonError":
        """Build the matching error from an already-read response."""
        message = response.text
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and "message" in body:
            message = str(body["message"])
        if response.status_code == 404:
            return NotFoundError(response.status_code, message)
        return cls(response.status_code, message)


class NotFoundError(DaemonError):
    """The requested object does not exist on the daemon."""


class InvalidResponse(DaemonError):
    """A success response whose body is not JSON of the expected shape."""

    def __init__(self, status_code: int, body: str, reason: str) -> None:
        self.body = body
        super().__init__(status_code, f"unexpected response body: {reason}")


class MalformedFrame(DockyardError):
    """A single event frame could not be decoded.

    Instances are yielded in place of the event, not raised, so the
    stream keeps going after a bad frame.
    """

    def __init__(self, line: str, reason: Optional[str] = None) -> None:
        self.line = line
        self.reason = reason
        super().__init__(f"malformed event frame: {reason or line!r}")
