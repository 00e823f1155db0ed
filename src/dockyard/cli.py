"""CLI entry points for dockyard."""

from __future__ import annotations

import json
import logging
from typing import List, Optional

import typer

from .client import ClientConfig, Docker
from .errors import DockyardError, MalformedFrame
from .filters import EventFilter, SecretFilter
from .models import EventFilterType
from .opts import EventsOptsBuilder, SecretListOptsBuilder

app = typer.Typer(help="Talk to the container daemon from Python.")
secrets_app = typer.Typer(help="Manage swarm secrets.")
app.add_typer(secrets_app, name="secrets")


def open_client(config: ClientConfig) -> Docker:
    return Docker(config)


@app.callback()
def main(
    ctx: typer.Context,
    host: Optional[str] = typer.Option(None, help="Daemon address, e.g. unix:///var/run/docker.sock."),
    log_level: str = typer.Option("WARNING", help="Logging level."),
) -> None:
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(message)s",
    )
    config = ClientConfig.from_env()
    if host:
        config.host = host
    ctx.obj = config


@app.command()
def events(
    ctx: typer.Context,
    since: Optional[int] = typer.Option(None, help="Only events after this UNIX time."),
    until: Optional[int] = typer.Option(None, help="Only events before this UNIX time."),
    type_: Optional[List[EventFilterType]] = typer.Option(None, "--type", help="Object type to watch."),
    label: Optional[List[str]] = typer.Option(None, help="Label key or key=value."),
    container: Optional[List[str]] = typer.Option(None, help="Container name or id."),
    image: Optional[List[str]] = typer.Option(None, help="Image name or id."),
    event: Optional[List[str]] = typer.Option(None, help="Event action, e.g. start."),
) -> None:
    """Tail events from the daemon, one JSON object per line."""

    builder = EventsOptsBuilder()
    if since is not None:
        builder.since(since)
    if until is not None:
        builder.until(until)
    terms = (
        [EventFilter.Type(kind) for kind in type_ or []]
        + [EventFilter.Label(value) for value in label or []]
        + [EventFilter.Container(value) for value in container or []]
        + [EventFilter.Image(value) for value in image or []]
        + [EventFilter.Event(value) for value in event or []]
    )
    if terms:
        builder.filter(terms)

    with open_client(ctx.obj) as client:
        try:
            for item in client.events(builder.build()):
                if isinstance(item, MalformedFrame):
                    typer.echo(str(item), err=True)
                    continue
                typer.echo(json.dumps(item.model_dump(mode="json", by_alias=True)))
        except KeyboardInterrupt:
            raise typer.Exit()
        except DockyardError as exc:
            typer.echo(f"error: {exc}", err=True)
            raise typer.Exit(1)


@secrets_app.command("ls")
def list_secrets(
    ctx: typer.Context,
    label: Optional[List[str]] = typer.Option(None, help="Label key or key=value."),
    name: Optional[List[str]] = typer.Option(None, help="Secret name."),
) -> None:
    """List secrets as JSON."""

    builder = SecretListOptsBuilder()
    terms = [_label_filter(value) for value in label or []] + [SecretFilter.Name(value) for value in name or []]
    if terms:
        builder.filter(terms)

    with open_client(ctx.obj) as client:
        try:
            secrets = client.secrets().list(builder.build())
        except DockyardError as exc:
            typer.echo(f"error: {exc}", err=True)
            raise typer.Exit(1)
    typer.echo(json.dumps([secret.model_dump(mode="json", by_alias=True) for secret in secrets]))


def _label_filter(value: str):
    key, sep, val = value.partition("=")
    if sep:
        return SecretFilter.LabelKeyVal(key, val)
    return SecretFilter.LabelKey(key)
