"""Query option builders for list and event requests.

A builder collects scalar parameters plus repeated filter terms and
``build()`` hands back an immutable snapshot that knows how to render
itself as a query string::

    opts = (
        EventsOptsBuilder()
        .since(1700000000)
        .filter([EventFilter.Type(EventFilterType.CONTAINER)])
        .build()
    )
    opts.serialize()  # 'since=1700000000&filters=...'
"""

from __future__ import annotations

import json
import logging
import math
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Union

from .filters import Filter
from .url import encoded_pairs

LOGGER = logging.getLogger(__name__)

Timestamp = Union[int, datetime]


def epoch_seconds(timestamp: Timestamp) -> int:
    """Convert ``timestamp`` to whole UNIX seconds. Naive datetimes are UTC."""
    if isinstance(timestamp, datetime):
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        return math.floor(timestamp.timestamp())
    return int(timestamp)


class Opts:
    """Immutable set of query parameters for one request."""

    def __init__(self, params: Optional[Mapping[str, str]] = None) -> None:
        self._params = MappingProxyType(dict(params or {}))

    @property
    def params(self) -> Mapping[str, str]:
        return self._params

    def serialize(self) -> Optional[str]:
        """Return the encoded query, or ``None`` if no parameter is set."""
        if not self._params:
            return None
        return encoded_pairs(self._params)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Opts):
            return NotImplemented
        return type(self) is type(other) and dict(self._params) == dict(other._params)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({dict(self._params)!r})"


class EventsOpts(Opts):
    """Options for ``GET /events``."""

    @staticmethod
    def builder() -> "EventsOptsBuilder":
        return EventsOptsBuilder()


class SecretListOpts(Opts):
    """Options for ``GET /secrets``."""

    @staticmethod
    def builder() -> "SecretListOptsBuilder":
        return SecretListOptsBuilder()


class OptsBuilder:
    """Mutable accumulator behind every ``*OptsBuilder``.

    Not safe for concurrent mutation; a builder belongs to one caller.
    """

    opts_class = Opts

    def __init__(self) -> None:
        self._params: Dict[str, str] = {}
        self._filters: Dict[str, List[str]] = {}

    def filter(self, terms: Iterable[Filter]) -> "OptsBuilder":
        """Append ``terms`` and refresh the encoded ``filters`` parameter.

        Values accumulate across calls per filter key, in insertion
        order and without deduplication.

        If the accumulated values cannot be JSON-encoded, ``filters`` is
        left out of the parameters instead of raising. A value that
        failed once stays accumulated, so every later ``filter()`` call
        on this builder leaves ``filters`` out as well.
        """
        for term in terms:
            key, value = term.query_key_val()
            self._filters.setdefault(key, []).append(value)

        populated = {key: list(values) for key, values in self._filters.items() if values}
        try:
            self._params["filters"] = json.dumps(populated, separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            LOGGER.warning("Dropping filters parameter, could not encode %r: %s", populated, exc)
            self._params.pop("filters", None)
        return self

    def build(self) -> Opts:
        """Snapshot the current parameters. Later calls do not affect it."""
        return self.opts_class(self._params)


class EventsOptsBuilder(OptsBuilder):
    opts_class = EventsOpts

    def since(self, timestamp: Timestamp) -> "EventsOptsBuilder":
        """Only return events since this time."""
        self._params["since"] = str(epoch_seconds(timestamp))
        return self

    def until(self, timestamp: Timestamp) -> "EventsOptsBuilder":
        """Only return events before this time."""
        self._params["until"] = str(epoch_seconds(timestamp))
        return self


class SecretListOptsBuilder(OptsBuilder):
    opts_class = SecretListOpts
