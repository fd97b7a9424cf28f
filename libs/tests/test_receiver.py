import httpx
import orjson
import pytest
from fastapi import FastAPI

from eventing_common.codec import serialize
from eventing_common.events import EncodingMode, new_event
from eventing_common.receiver import Receiver, receiver_router


class Recorder:
    def __init__(self, fail: bool = False) -> None:
        self.events = []
        self.fail = fail

    async def __call__(self, event) -> None:
        self.events.append(event)
        if self.fail:
            raise RuntimeError("application blew up")


def _event():
    return new_event(id="evt-1", source="src", type="com.example.ping", data={"message": "hi"})


async def test_wrong_method_is_405():
    rec = Recorder()
    headers, body = serialize(_event())
    resp = await Receiver(rec).handle("GET", headers, body)
    assert resp.status_code == 405
    assert resp.headers["allow"] == "POST"
    assert rec.events == []


async def test_malformed_is_400():
    rec = Recorder()
    resp = await Receiver(rec).handle("POST", {"content-type": "application/cloudevents+json"}, b"{oops")
    assert resp.status_code == 400
    assert "Malformed" in orjson.loads(resp.body)["detail"]
    assert rec.events == []


async def test_invalid_attributes_are_422():
    rec = Recorder()
    headers = {"ce-id": "1", "ce-source": "  ", "ce-type": "t"}
    resp = await Receiver(rec).handle("POST", headers, b"")
    assert resp.status_code == 422
    assert rec.events == []


@pytest.mark.parametrize("mode", list(EncodingMode))
async def test_valid_event_is_dispatched_and_acked(mode):
    rec = Recorder()
    headers, body = serialize(_event(), mode)
    resp = await Receiver(rec).handle("post", headers, body)
    assert resp.status_code == 200
    assert rec.events == [_event()]


async def test_handler_failure_is_500():
    rec = Recorder(fail=True)
    resp = await Receiver(rec).handle("POST", *serialize(_event()))
    assert resp.status_code == 500
    assert "application blew up" in orjson.loads(resp.body)["detail"]
    assert len(rec.events) == 1


async def test_sync_handler_runs():
    seen = []
    resp = await Receiver(seen.append).handle("POST", *serialize(_event()))
    assert resp.status_code == 200
    assert seen == [_event()]


async def test_router_status_mapping():
    rec = Recorder()
    app = FastAPI()
    app.include_router(receiver_router(Receiver(rec), path="/"))

    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        headers, body = serialize(_event())
        ok = await ac.post("/", headers=headers, content=body)
        wrong_method = await ac.get("/")
        malformed = await ac.post("/", headers={"content-type": "application/cloudevents+json"}, content=b"nope")
        invalid = await ac.post("/", headers={"ce-id": "1", "ce-source": "s", "ce-type": ""})

    assert ok.status_code == 200
    assert wrong_method.status_code == 405
    assert malformed.status_code == 400
    assert invalid.status_code == 422
    assert malformed.status_code != invalid.status_code
    assert rec.events == [_event()]
