import httpx
import pytest

from eventing_common.codec import deserialize
from eventing_common.errors import DeliveryFailed
from eventing_common.events import new_event
from eventing_common.relay import RelayHandler
from eventing_common.sender import Sender


def _event():
    return new_event(id="evt-9", source="upstream", type="com.example.ping", data={"message": "relay me"})


async def test_relay_forwards_event_unchanged():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(deserialize(request.headers, request.content))
        return httpx.Response(200)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    await RelayHandler(Sender("http://next.test/", client=client))(_event())
    assert seen == [_event()]


async def test_relay_raises_on_nack():
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(503)))
    relay = RelayHandler(Sender("http://next.test/", client=client))
    with pytest.raises(DeliveryFailed) as exc:
        await relay(_event())
    assert exc.value.status_code == 503


async def test_relay_raises_when_event_cannot_be_sent_as_headers():
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    relay = RelayHandler(Sender("http://next.test/", client=client))
    event = new_event(source="upstream", type="t", data_content_type="text/plain; charset=é", data=b"x")
    with pytest.raises(DeliveryFailed) as exc:
        await relay(event)
    assert exc.value.status_code is None
