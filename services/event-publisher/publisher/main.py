# services/event-publisher/publisher/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from pydantic import ValidationError

from eventing_common.health import router as health_router
from eventing_common.logger import setup_logging
from eventing_common.middleware import add_request_logging
from eventing_common.receiver import Receiver, receiver_router
from eventing_common.relay import RelayHandler
from eventing_common.sender import Sender

from .routes import router as publish_router
from .settings import Settings

log = logging.getLogger("publisher")


def create_app(settings: Settings, sender: Optional[Sender] = None) -> FastAPI:
    """Build the publisher; the sender is created once here and shared by every request."""
    if sender is None:
        sender = Sender(
            str(settings.K_SINK),
            mode=settings.ENCODING,
            timeout=settings.SEND_TIMEOUT_SECONDS,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info(
            "startup sink=%s encoding=%s type=%s source=%s",
            sender.target,
            sender.mode.value,
            settings.EVENT_TYPE,
            settings.EVENT_SOURCE,
        )
        yield
        await sender.aclose()
        log.info("shutdown complete")

    app = FastAPI(title="Event Publisher", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.sender = sender

    add_request_logging(app, log)

    app.include_router(health_router)
    app.include_router(publish_router)
    # Envelopes posted here are forwarded untouched to the same sink
    app.include_router(receiver_router(Receiver(RelayHandler(sender)), path="/relay"))
    return app


def main() -> int:
    try:
        settings = Settings()
    except ValidationError as e:
        setup_logging()
        log.critical("invalid configuration (K_SINK must point at the event sink): %s", e)
        return 1

    setup_logging(settings.LOG_LEVEL)
    app = create_app(settings)
    log.info("Publisher listening on port %s", settings.PORT)
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_config=None)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
