"""Typed filter terms and their daemon query encoding."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import ClassVar, Tuple, Union

from .models import EventFilterType


class Filter(ABC):
    """A single filtering criterion for a list or event query."""

    @abstractmethod
    def query_key_val(self) -> Tuple[str, str]:
        """Return the daemon filter name and the encoded value."""


@dataclass(frozen=True)
class _Value(Filter):
    value: str

    key: ClassVar[str] = ""

    def query_key_val(self) -> Tuple[str, str]:
        return self.key, self.value


@dataclass(frozen=True)
class _LabelKeyVal(Filter):
    label: str
    value: str

    def query_key_val(self) -> Tuple[str, str]:
        return "label", f"{self.label}={self.value}"


@dataclass(frozen=True)
class _Type(Filter):
    kind: Union[EventFilterType, str]

    def query_key_val(self) -> Tuple[str, str]:
        return "type", EventFilterType(self.kind).value


class SecretFilter:
    """Filters accepted by ``GET /secrets``."""

    class Id(_Value):
        key = "id"

    class LabelKey(_Value):
        key = "label"

    class LabelKeyVal(_LabelKeyVal):
        pass

    class Name(_Value):
        key = "name"

    class Names(_Value):
        key = "names"


class EventFilter:
    """Filters accepted by ``GET /events``."""

    class Container(_Value):
        key = "container"

    class Event(_Value):
        key = "event"

    class Image(_Value):
        key = "image"

    class Label(_Value):
        key = "label"

    class Type(_Type):
        pass

    class Volume(_Value):
        key = "volume"

    class Network(_Value):
        key = "network"

    class Daemon(_Value):
        key = "daemon"
