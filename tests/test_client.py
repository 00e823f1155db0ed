import json
from datetime import datetime, timezone

import httpx
import pytest

from dockyard.client import AsyncDocker, ClientConfig, Docker
from dockyard.errors import DaemonError, InvalidResponse, MalformedFrame, NotFoundError, TransportError
from dockyard.filters import EventFilter, SecretFilter
from dockyard.models import Event, EventFilterType
from dockyard.opts import EventsOptsBuilder, SecretListOptsBuilder

SECRET = {
    "ID": "ktnbjxoalbkvbvedmg1urrz8h",
    "Version": {"Index": 11},
    "CreatedAt": "2016-11-05T01:20:17.327670065Z",
    "UpdatedAt": "2016-11-05T01:20:17.327670065Z",
    "Spec": {"Name": "app-dev.crt", "Labels": {"foo": "bar"}},
}


def frame(action, container_id="c1"):
    return json.dumps(
        {
            "Type": "container",
            "Action": action,
            "Actor": {"ID": container_id, "Attributes": {"name": "web"}},
            "scope": "local",
            "time": 1700000000,
            "timeNano": 1700000000000000000,
        }
    ).encode() + b"\n"


class DroppingStream(httpx.SyncByteStream):
    """Sends ``chunks`` and then fails like a reset connection."""

    def __init__(self, chunks, fail=True):
        self.chunks = chunks
        self.fail = fail
        self.closed = False

    def __iter__(self):
        yield from self.chunks
        if self.fail:
            raise httpx.ReadError("connection reset by peer")

    def close(self):
        self.closed = True


class DroppingAsyncStream(httpx.AsyncByteStream):
    def __init__(self, chunks, fail=True):
        self.chunks = chunks
        self.fail = fail
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk
        if self.fail:
            raise httpx.ReadError("connection reset by peer")

    async def aclose(self):
        self.closed = True


def make_client(handler):
    return Docker(ClientConfig(), transport=httpx.MockTransport(handler))


def test_config_endpoints():
    assert ClientConfig().endpoint() == ("http://docker", "/var/run/docker.sock")
    assert ClientConfig(host="tcp://10.0.0.2:2375").endpoint() == ("http://10.0.0.2:2375", None)
    assert ClientConfig(host="https://daemon:2376/").endpoint() == ("https://daemon:2376", None)
    with pytest.raises(ValueError):
        ClientConfig(host="ssh://daemon").endpoint()


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("DOCKER_HOST", "tcp://127.0.0.1:2375")
    monkeypatch.setenv("DOCKER_API_VERSION", "1.41")

    config = ClientConfig.from_env()

    assert config.host == "tcp://127.0.0.1:2375"
    assert config.versioned("/events") == "/v1.41/events"


def test_events_path_without_query():
    seen = []

    def handler(request):
        seen.append(request.url.raw_path)
        return httpx.Response(200, content=frame("start"))

    with make_client(handler) as client:
        items = list(client.events())

    assert seen == [b"/events"]
    assert [item.action for item in items] == ["start"]


def test_events_path_carries_serialized_opts():
    seen = []

    def handler(request):
        seen.append(request.url)
        return httpx.Response(200, content=b"")

    opts = (
        EventsOptsBuilder()
        .since(100)
        .filter([EventFilter.Label("env"), EventFilter.Type(EventFilterType.CONTAINER)])
        .build()
    )
    with make_client(handler) as client:
        assert list(client.events(opts)) == []

    url = seen[0]
    assert url.path == "/events"
    assert url.params["since"] == "100"
    assert json.loads(url.params["filters"]) == {"label": ["env"], "type": ["container"]}


def test_events_then_connection_drop():
    stream = DroppingStream([frame("create"), frame("start"), frame("die")])

    def handler(request):
        return httpx.Response(200, stream=stream)

    items = []
    with make_client(handler) as client:
        with pytest.raises(TransportError):
            for item in client.events():
                items.append(item)

    assert [item.action for item in items] == ["create", "start", "die"]
    assert all(isinstance(item, Event) for item in items)
    assert stream.closed


def test_abandoned_stream_releases_response():
    stream = DroppingStream([frame("create"), frame("start"), frame("die")])

    def handler(request):
        return httpx.Response(200, stream=stream)

    with make_client(handler) as client:
        events = client.events()
        first = next(events)
        events.close()

    assert first.action == "create"
    assert stream.closed


def test_malformed_frame_is_yielded_and_stream_continues():
    body = frame("create") + b"{not json\n" + b"\n" + b'["a list"]\n' + frame("start")

    def handler(request):
        return httpx.Response(200, content=body)

    with make_client(handler) as client:
        items = list(client.events())

    assert len(items) == 4
    assert items[0].action == "create"
    assert isinstance(items[1], MalformedFrame)
    assert items[1].line == "{not json"
    assert isinstance(items[2], MalformedFrame)
    assert items[3].action == "start"


def test_event_keeps_unknown_fields():
    body = b'{"status":"start","id":"c1","Type":"container","Action":"start"}\n'

    def handler(request):
        return httpx.Response(200, content=body)

    with make_client(handler) as client:
        (event,) = list(client.events())

    assert event.type == "container"
    assert event.model_extra == {"status": "start", "id": "c1"}


def test_events_rejected_by_daemon():
    def handler(request):
        return httpx.Response(400, json={"message": "invalid filter 'bogus'"})

    with make_client(handler) as client:
        with pytest.raises(DaemonError) as excinfo:
            list(client.events())

    assert excinfo.value.status_code == 400
    assert excinfo.value.message == "invalid filter 'bogus'"


def test_connect_failure_is_transport_error():
    def handler(request):
        raise httpx.ConnectError("no such socket")

    with make_client(handler) as client:
        with pytest.raises(TransportError):
            list(client.events())
        with pytest.raises(TransportError):
            client.secret("x").inspect()


def test_list_secrets_with_filters():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=[SECRET])

    opts = SecretListOptsBuilder().filter([SecretFilter.LabelKeyVal("foo", "bar")]).build()
    with make_client(handler) as client:
        secrets = client.secrets().list(opts)

    assert seen[0].method == "GET"
    assert seen[0].url.path == "/secrets"
    assert json.loads(seen[0].url.params["filters"]) == {"label": ["foo=bar"]}
    assert secrets[0].spec.name == "app-dev.crt"
    assert secrets[0].version.index == 11


def test_list_secrets_without_opts_has_no_query():
    seen = []

    def handler(request):
        seen.append(request.url.raw_path)
        return httpx.Response(200, json=[])

    with make_client(handler) as client:
        assert client.secrets().list(SecretListOptsBuilder().build()) == []

    assert seen == [b"/secrets"]


def test_inspect_and_delete_secret():
    seen = []

    def handler(request):
        seen.append((request.method, request.url.path))
        if request.method == "DELETE":
            return httpx.Response(204)
        return httpx.Response(200, json=SECRET)

    with make_client(handler) as client:
        info = client.secret("app-dev.crt").inspect()
        client.secret("app-dev.crt").delete()

    assert info.id == "ktnbjxoalbkvbvedmg1urrz8h"
    assert seen == [("GET", "/secrets/app-dev.crt"), ("DELETE", "/secrets/app-dev.crt")]


def test_missing_secret_raises_not_found():
    def handler(request):
        return httpx.Response(404, json={"message": "secret missing not found"})

    with make_client(handler) as client:
        with pytest.raises(NotFoundError) as excinfo:
            client.secret("missing").inspect()

    assert excinfo.value.status_code == 404
    assert excinfo.value.message == "secret missing not found"


def test_daemon_error_falls_back_to_body_text():
    def handler(request):
        return httpx.Response(500, text="boom")

    with make_client(handler) as client:
        with pytest.raises(DaemonError) as excinfo:
            client.secret("x").delete()

    assert not isinstance(excinfo.value, NotFoundError)
    assert excinfo.value.message == "boom"


@pytest.mark.anyio
async def test_async_events_stream():
    body = frame("create") + b"garbage\n" + frame("start")

    def handler(request):
        assert request.url.params["until"] == "200"
        return httpx.Response(200, content=body)

    opts = EventsOptsBuilder().until(200).build()
    async with AsyncDocker(transport=httpx.MockTransport(handler)) as client:
        items = [item async for item in client.events(opts)]

    assert items[0].action == "create"
    assert isinstance(items[1], MalformedFrame)
    assert items[2].action == "start"


@pytest.mark.anyio
async def test_async_secrets():
    def handler(request):
        if request.url.path == "/secrets":
            return httpx.Response(200, json=[SECRET])
        return httpx.Response(404, json={"message": "no such secret"})

    async with AsyncDocker(transport=httpx.MockTransport(handler)) as client:
        secrets = await client.secrets().list()
        with pytest.raises(NotFoundError):
            await client.secret("nope").inspect()

    assert [secret.spec.labels for secret in secrets] == [{"foo": "bar"}]


def test_undecodable_stream_body_is_transport_error():
    stream = DroppingStream([b"notgzip\n"], fail=False)

    def handler(request):
        return httpx.Response(200, headers={"Content-Encoding": "gzip"}, stream=stream)

    with make_client(handler) as client:
        with pytest.raises(TransportError):
            list(client.events())

    assert stream.closed


def test_undecodable_response_body_is_transport_error():
    def handler(request):
        return httpx.Response(200, headers={"Content-Encoding": "gzip"}, stream=DroppingStream([b"notgzip"], fail=False))

    with make_client(handler) as client:
        with pytest.raises(TransportError):
            client.secret("x").inspect()


def test_non_json_success_body_is_invalid_response():
    def handler(request):
        return httpx.Response(200, text="<html>proxy</html>")

    with make_client(handler) as client:
        with pytest.raises(InvalidResponse) as excinfo:
            client.secrets().list()

    assert excinfo.value.status_code == 200
    assert excinfo.value.body == "<html>proxy</html>"


def test_wrongly_shaped_success_body_is_invalid_response():
    def handler(request):
        if request.url.path == "/secrets":
            return httpx.Response(200, json={"not": "a list"})
        return httpx.Response(200, json={"ID": "x"})

    with make_client(handler) as client:
        with pytest.raises(InvalidResponse):
            client.secrets().list()
        with pytest.raises(InvalidResponse):
            client.secret("x").inspect()


def test_secret_timestamps_are_datetimes():
    def handler(request):
        return httpx.Response(200, json=SECRET)

    with make_client(handler) as client:
        info = client.secret("app-dev.crt").inspect()

    assert info.created_at == datetime(2016, 11, 5, 1, 20, 17, 327670, tzinfo=timezone.utc)
    assert info.updated_at.tzinfo is not None


@pytest.mark.anyio
async def test_async_events_then_connection_drop():
    stream = DroppingAsyncStream([frame("create"), frame("start"), frame("die")])

    def handler(request):
        return httpx.Response(200, stream=stream)

    items = []
    async with AsyncDocker(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(TransportError):
            async for item in client.events():
                items.append(item)

    assert [item.action for item in items] == ["create", "start", "die"]
    assert stream.closed


@pytest.mark.anyio
async def test_async_abandoned_stream_releases_response():
    stream = DroppingAsyncStream([frame("create"), frame("start"), frame("die")])

    def handler(request):
        return httpx.Response(200, stream=stream)

    async with AsyncDocker(transport=httpx.MockTransport(handler)) as client:
        events = client.events()
        first = await events.__anext__()
        await events.aclose()

    assert first.action == "create"
    assert stream.closed


@pytest.mark.anyio
async def test_async_invalid_body():
    def handler(request):
        return httpx.Response(200, text="nope")

    async with AsyncDocker(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(InvalidResponse):
            await client.secret("x").inspect()
