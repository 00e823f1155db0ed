"""Public client API for the container daemon."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import AsyncIterator, Iterator, Optional, Tuple, Union
from urllib.parse import urlsplit

import httpx
from pydantic import TypeAdapter, ValidationError

from .errors import DaemonError, InvalidResponse, MalformedFrame, TransportError
from .models import Event
from .opts import EventsOpts
from .secret import AsyncSecret, AsyncSecrets, Secret, Secrets
from .url import construct_path

LOGGER = logging.getLogger(__name__)

DEFAULT_HOST = "unix:///var/run/docker.sock"
# Placeholder authority for requests sent over a Unix socket.
UNIX_BASE_URL = "http://docker"

EventItem = Union[Event, MalformedFrame]


@dataclass
class ClientConfig:
    host: str = DEFAULT_HOST
    timeout: float = 30.0
    api_version: Optional[str] = None

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Read ``DOCKER_HOST`` and ``DOCKER_API_VERSION`` from the environment."""
        return cls(
            host=os.environ.get("DOCKER_HOST") or DEFAULT_HOST,
            api_version=os.environ.get("DOCKER_API_VERSION") or None,
        )

    def endpoint(self) -> Tuple[str, Optional[str]]:
        """Return ``(base_url, unix_socket_path)`` for :attr:`host`."""
        parts = urlsplit(self.host)
        if parts.scheme == "unix":
            return UNIX_BASE_URL, parts.path
        if parts.scheme == "tcp":
            return f"http://{parts.netloc}", None
        if parts.scheme in ("http", "https"):
            return self.host.rstrip("/"), None
        raise ValueError(f"Unsupported daemon host: {self.host!r}")

    def versioned(self, path: str) -> str:
        if self.api_version:
            return f"/v{self.api_version}{path}"
        return path


def decode_frame(line: str) -> Optional[EventItem]:
    """Decode one stream line. Blank keep-alive lines yield ``None``."""
    if not line.strip():
        return None
    try:
        return Event.model_validate_json(line)
    except ValidationError as exc:
        LOGGER.warning("Skipping malformed event frame: %s", line)
        return MalformedFrame(line, str(exc))


def decode_body(response: httpx.Response, model=None):
    """Parse a success body as JSON, raising :class:`InvalidResponse` if it is not usable."""
    try:
        data = response.json()
        if model is None:
            return data
        return TypeAdapter(model).validate_python(data)
    except ValueError as exc:
        raise InvalidResponse(response.status_code, response.text, str(exc)) from exc


def _stream_timeout(config: ClientConfig) -> httpx.Timeout:
    # Events arrive whenever the daemon has one; never time out a read.
    return httpx.Timeout(config.timeout, read=None)


class Docker:
    """Blocking client for the daemon's HTTP API.

    ``transport`` replaces the socket/TCP transport derived from the
    config, which is mainly useful for tests.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._config = config or ClientConfig()
        base_url, socket_path = self._config.endpoint()
        if transport is None and socket_path is not None:
            transport = httpx.HTTPTransport(uds=socket_path)
        self._client = httpx.Client(
            base_url=base_url,
            transport=transport,
            timeout=self._config.timeout,
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    def __enter__(self) -> "Docker":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str) -> httpx.Response:
        url = self._config.versioned(path)
        LOGGER.debug("%s %s", method, url)
        try:
            response = self._client.request(method, url)
        except httpx.RequestError as exc:
            raise TransportError(str(exc)) from exc
        if not response.is_success:
            raise DaemonError.from_response(response)
        return response

    def get_json(self, path: str, model=None):
        """GET ``path`` and decode the body, validated as ``model`` if given."""
        return decode_body(self._request("GET", path), model)

    def delete(self, path: str) -> httpx.Response:
        return self._request("DELETE", path)

    def secrets(self) -> Secrets:
        return Secrets(self)

    def secret(self, name: str) -> Secret:
        return Secret(self, name)

    def events(self, opts: Optional[EventsOpts] = None) -> Iterator[EventItem]:
        """Stream events from ``GET /events`` as they happen.

        Yields :class:`Event` for every decoded frame. A frame that does
        not decode is yielded as a :class:`MalformedFrame` and the stream
        carries on. A dropped connection raises :class:`TransportError`.
        The response is released however iteration ends.

        Raises:
            DaemonError: If the daemon refuses to open the stream.
            TransportError: If the connection fails or drops.
        """
        query = opts.serialize() if opts is not None else None
        url = self._config.versioned(construct_path("/events", query))
        LOGGER.debug("Opening event stream %s", url)
        try:
            with self._client.stream("GET", url, timeout=_stream_timeout(self._config)) as response:
                if not response.is_success:
                    response.read()
                    raise DaemonError.from_response(response)
                for line in response.iter_lines():
                    item = decode_frame(line)
                    if item is not None:
                        yield item
        except httpx.RequestError as exc:
            raise TransportError(str(exc)) from exc
        finally:
            LOGGER.debug("Event stream %s closed", url)


class AsyncDocker:
    """Asyncio counterpart of :class:`Docker`."""

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config or ClientConfig()
        base_url, socket_path = self._config.endpoint()
        if transport is None and socket_path is not None:
            transport = httpx.AsyncHTTPTransport(uds=socket_path)
        self._client = httpx.AsyncClient(
            base_url=base_url,
            transport=transport,
            timeout=self._config.timeout,
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    async def __aenter__(self) -> "AsyncDocker":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str) -> httpx.Response:
        url = self._config.versioned(path)
        LOGGER.debug("%s %s", method, url)
        try:
            response = await self._client.request(method, url)
        except httpx.RequestError as exc:
            raise TransportError(str(exc)) from exc
        if not response.is_success:
            raise DaemonError.from_response(response)
        return response

    async def get_json(self, path: str, model=None):
        response = await self._request("GET", path)
        return decode_body(response, model)

    async def delete(self, path: str) -> httpx.Response:
        return await self._request("DELETE", path)

    def secrets(self) -> AsyncSecrets:
        return AsyncSecrets(self)

    def secret(self, name: str) -> AsyncSecret:
        return AsyncSecret(self, name)

    async def events(self, opts: Optional[EventsOpts] = None) -> AsyncIterator[EventItem]:
        """Async version of :meth:`Docker.events`.

        Wrap the iterator in :func:`contextlib.aclosing` to release the
        connection as soon as you stop consuming early.
        """
        query = opts.serialize() if opts is not None else None
        url = self._config.versioned(construct_path("/events", query))
        LOGGER.debug("Opening event stream %s", url)
        try:
            async with self._client.stream("GET", url, timeout=_stream_timeout(self._config)) as response:
                if not response.is_success:
                    await response.aread()
                    raise DaemonError.from_response(response)
                async for line in response.aiter_lines():
                    item = decode_frame(line)
                    if item is not None:
                        yield item
        except httpx.RequestError as exc:
            raise TransportError(str(exc)) from exc
        finally:
            LOGGER.debug("Event stream %s closed", url)
