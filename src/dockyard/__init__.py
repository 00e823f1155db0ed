"""Python client for the container daemon's HTTP API."""

from .client import AsyncDocker, ClientConfig, Docker
from .errors import DaemonError, DockyardError, InvalidResponse, MalformedFrame, NotFoundError, TransportError
from .filters import EventFilter, Filter, SecretFilter
from .models import Event, EventFilterType, SecretInfo, SecretSpec
from .opts import EventsOpts, EventsOptsBuilder, SecretListOpts, SecretListOptsBuilder

__all__ = [
    "AsyncDocker",
    "ClientConfig",
    "DaemonError",
    "Docker",
    "DockyardError",
    "Event",
    "EventFilter",
    "EventFilterType",
    "EventsOpts",
    "EventsOptsBuilder",
    "Filter",
    "InvalidResponse",
    "MalformedFrame",
    "NotFoundError",
    "SecretFilter",
    "SecretInfo",
    "SecretListOpts",
    "SecretListOptsBuilder",
    "SecretSpec",
    "TransportError",
]
