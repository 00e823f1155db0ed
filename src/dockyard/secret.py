"""Secrets are sensitive data used by services.

Swarm mode must be enabled on the daemon for these endpoints to work.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional
from urllib.parse import quote

from .models import SecretInfo
from .opts import SecretListOpts
from .url import construct_path

if TYPE_CHECKING:
    from .client import AsyncDocker, Docker


def _secret_path(name: str) -> str:
    return f"/secrets/{quote(name, safe='')}"


def _list_path(opts: Optional[SecretListOpts]) -> str:
    return construct_path("/secrets", opts.serialize() if opts is not None else None)


class Secret:
    def __init__(self, docker: "Docker", name: str) -> None:
        self.docker = docker
        self.name = name

    def inspect(self) -> SecretInfo:
        return self.docker.get_json(_secret_path(self.name), SecretInfo)

    def delete(self) -> None:
        self.docker.delete(_secret_path(self.name))


class Secrets:
    def __init__(self, docker: "Docker") -> None:
        self.docker = docker

    def get(self, name: str) -> Secret:
        return Secret(self.docker, name)

    def list(self, opts: Optional[SecretListOpts] = None) -> List[SecretInfo]:
        return self.docker.get_json(_list_path(opts), List[SecretInfo])


class AsyncSecret:
    def __init__(self, docker: "AsyncDocker", name: str) -> None:
        self.docker = docker
        self.name = name

    async def inspect(self) -> SecretInfo:
        return await self.docker.get_json(_secret_path(self.name), SecretInfo)

    async def delete(self) -> None:
        await self.docker.delete(_secret_path(self.name))


class AsyncSecrets:
    def __init__(self, docker: "AsyncDocker") -> None:
        self.docker = docker

    def get(self, name: str) -> AsyncSecret:
        return AsyncSecret(self.docker, name)

    async def list(self, opts: Optional[SecretListOpts] = None) -> List[SecretInfo]:
        return await self.docker.get_json(_list_path(opts), List[SecretInfo])
