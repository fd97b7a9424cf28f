# libs/eventing_common/receiver.py
from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Mapping, Union

import orjson
from fastapi import APIRouter, Request
from starlette.concurrency import run_in_threadpool
from starlette.responses import Response

from .codec import deserialize
from .errors import InvalidAttribute, MalformedEnvelope
from .events import Event, validate_event

log = logging.getLogger("eventing.receiver")

# Anything that consumes one validated event; raising means NACK
EventHandler = Callable[[Event], Union[None, Awaitable[None]]]

HTTP_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@dataclass(frozen=True)
class ReceiverResponse:
    status_code: int
    body: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)


def _error(status_code: int, detail: str, **headers: str) -> ReceiverResponse:
    return ReceiverResponse(
        status_code=status_code,
        body=orjson.dumps({"detail": detail}),
        headers={"content-type": "application/json", **headers},
    )


def _is_async(handler: Any) -> bool:
    return inspect.iscoroutinefunction(handler) or inspect.iscoroutinefunction(
        getattr(handler, "__call__", None)
    )


class Receiver:
    """
    Turns one inbound HTTP request into one handler call.

    parse (405 / 400) -> validate (422) -> dispatch (500 on handler error, 200 otherwise).
    Holds no per-request state, so one instance serves concurrent requests.
    """

    def __init__(self, handler: EventHandler, *, method: str = "POST") -> None:
        self._handler = handler
        self._method = method.upper()

    @property
    def method(self) -> str:
        return self._method

    async def handle(self, method: str, headers: Mapping[str, str], body: bytes) -> ReceiverResponse:
        if method.upper() != self._method:
            return _error(405, f"Only {self._method} method is accepted", allow=self._method)

        try:
            event = deserialize(headers, body)
        except MalformedEnvelope as e:
            log.warning("rejecting malformed event: %s", e)
            return _error(400, f"Malformed event: {e}")

        try:
            validate_event(event)
        except InvalidAttribute as e:
            log.warning("rejecting invalid event id=%r: %s", event.id, e)
            return _error(422, f"Invalid event: {e}")

        log.info("event received id=%s type=%s source=%s", event.id, event.type, event.source)
        try:
            await self._dispatch(event)
        except Exception as e:
            log.exception("handler failed id=%s type=%s", event.id, event.type)
            return _error(500, f"Event handler failed: {e}")

        return ReceiverResponse(status_code=200)

    async def _dispatch(self, event: Event) -> None:
        if _is_async(self._handler):
            await self._handler(event)
        else:
            result = await run_in_threadpool(self._handler, event)
            if inspect.isawaitable(result):
                await result


def receiver_router(receiver: Receiver, path: str = "/") -> APIRouter:
    """Mount a Receiver on a FastAPI router; every method is routed so the receiver decides on 405."""
    router = APIRouter(tags=["events"])

    @router.api_route(path, methods=HTTP_METHODS, include_in_schema=False)
    async def receive(request: Request) -> Response:
        body = await request.body()
        result = await receiver.handle(request.method, request.headers, body)
        return Response(content=result.body, status_code=result.status_code, headers=result.headers)

    return router


__all__ = ["EventHandler", "ReceiverResponse", "Receiver", "receiver_router"]
