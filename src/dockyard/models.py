"""Shared models that mirror the daemon's JSON schema."""

from __future__ import annotations

import re
from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

_NANOS = re.compile(r"(\.\d{6})\d+")


class EventFilterType(str, Enum):
    """Object types the daemon reports events for."""

    CONTAINER = "container"
    IMAGE = "image"
    VOLUME = "volume"
    NETWORK = "network"
    DAEMON = "daemon"


class Actor(BaseModel):
    id: str = Field(default="", alias="ID")
    attributes: Dict[str, str] = Field(default_factory=dict, alias="Attributes")

    model_config = ConfigDict(populate_by_name=True)


class Event(BaseModel):
    """One frame pushed by ``GET /events``.

    Older daemons also send ``status``/``id``/``from``; those and any
    other unknown fields are kept as extras.
    """

    type: str = Field(default="", alias="Type")
    action: str = Field(default="", alias="Action")
    actor: Actor = Field(default_factory=Actor, alias="Actor")
    scope: Optional[str] = None
    time: int = 0
    time_nano: int = Field(default=0, alias="timeNano")

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class ObjectVersion(BaseModel):
    index: int = Field(..., alias="Index")

    model_config = ConfigDict(populate_by_name=True)


class Driver(BaseModel):
    name: str = Field(..., alias="Name")
    options: Optional[Dict[str, str]] = Field(default=None, alias="Options")

    model_config = ConfigDict(populate_by_name=True)


class SecretSpec(BaseModel):
    name: str = Field(..., alias="Name")
    labels: Dict[str, str] = Field(default_factory=dict, alias="Labels")
    data: Optional[str] = Field(default=None, alias="Data")
    driver: Optional[Driver] = Field(default=None, alias="Driver")
    templating: Optional[Driver] = Field(default=None, alias="Templating")

    model_config = ConfigDict(populate_by_name=True)


class SecretInfo(BaseModel):
    id: str = Field(..., alias="ID")
    version: ObjectVersion = Field(..., alias="Version")
    created_at: datetime = Field(..., alias="CreatedAt")
    updated_at: datetime = Field(..., alias="UpdatedAt")
    spec: SecretSpec = Field(..., alias="Spec")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def trim_nanoseconds(cls, value):
        # The daemon reports nanoseconds; datetime holds microseconds.
        if isinstance(value, str):
            return _NANOS.sub(r"\1", value)
        return value
