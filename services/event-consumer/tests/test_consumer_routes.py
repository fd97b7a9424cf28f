import logging

import httpx

from eventing_common.codec import serialize
from eventing_common.events import EncodingMode, new_event

from consumer.main import create_app
from consumer.settings import Settings


def _client(app) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")


def _ping(data=None, content_type="application/json"):
    return new_event(
        source="knative-demo-publisher",
        type="com.example.ping",
        data_content_type=content_type,
        data={"message": "hi"} if data is None else data,
    )


async def test_health():
    async with _client(create_app(Settings())) as ac:
        res = await ac.get("/readyz")
        assert res.status_code == 200
        assert res.json() == {"ready": True, "service": "event-consumer"}


async def test_well_formed_event_is_processed(caplog):
    caplog.set_level(logging.INFO, logger="consumer.handler")
    for mode in EncodingMode:
        headers, body = serialize(_ping(), mode)
        async with _client(create_app(Settings())) as ac:
            res = await ac.post("/", headers=headers, content=body)
        assert res.status_code == 200

    assert "message=hi" in caplog.text
    assert "processed successfully" in caplog.text


async def test_unparseable_body_is_rejected_without_dispatch(caplog):
    caplog.set_level(logging.INFO, logger="consumer.handler")
    async with _client(create_app(Settings())) as ac:
        res = await ac.post(
            "/",
            headers={"content-type": "application/cloudevents+json"},
            content=b"this is not an event",
        )

    assert 400 <= res.status_code < 500
    assert "cloudevent received" not in caplog.text


async def test_undecodable_data_is_acked_by_default(caplog):
    caplog.set_level(logging.INFO, logger="consumer.handler")
    headers, body = serialize(_ping(data=b"<xml/>", content_type="application/xml"))
    async with _client(create_app(Settings())) as ac:
        res = await ac.post("/", headers=headers, content=body)

    assert res.status_code == 200
    assert "error while decoding data" in caplog.text


async def test_undecodable_data_can_be_nacked():
    headers, body = serialize(_ping(data={"unexpected": True}))
    async with _client(create_app(Settings(REJECT_UNDECODABLE=True))) as ac:
        res = await ac.post("/", headers=headers, content=body)

    assert res.status_code == 500


async def test_custom_receive_path():
    headers, body = serialize(_ping())
    async with _client(create_app(Settings(RECEIVE_PATH="/events"))) as ac:
        ok = await ac.post("/events", headers=headers, content=body)
        wrong_method = await ac.put("/events", headers=headers, content=body)

    assert ok.status_code == 200
    assert wrong_method.status_code == 405
