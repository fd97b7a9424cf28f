# services/event-publisher/publisher/routes.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse

from eventing_common.events import new_event, now_utc
from eventing_common.sender import Rejected, Sender

from .settings import Settings

log = logging.getLogger("publisher.routes")

router = APIRouter(tags=["publish"])


def get_sender(request: Request) -> Sender:
    return request.app.state.sender


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


@router.post("/", response_class=PlainTextResponse)
async def publish(
    request: Request,
    sender: Sender = Depends(get_sender),
    settings: Settings = Depends(get_settings),
):
    """
    Wrap the raw request body as {"message": <body>} in a fresh event and send
    it to the sink. Every call is a new logical event, so the id is always generated.
    """
    body = await request.body()
    message = body.decode("utf-8", errors="replace")
    log.info("Received message to publish: %s", message)

    event = new_event(
        source=settings.EVENT_SOURCE,
        type=settings.EVENT_TYPE,
        time=now_utc(),
        data={"message": message},
    )

    outcome = await sender.send(event)
    if isinstance(outcome, Rejected):
        log.error("failed to send event id=%s, received NACK: %s", event.id, outcome.reason)
        raise HTTPException(500, detail="Failed to send event")

    log.info("Successfully sent event id=%s with message: %s", event.id, message)
    return f"Event published with message: {message}\n"
