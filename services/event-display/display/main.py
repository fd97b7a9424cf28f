# services/event-display/display/main.py
from __future__ import annotations

import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI
from pydantic import ValidationError

from eventing_common.health import router as health_router
from eventing_common.logger import setup_logging
from eventing_common.middleware import add_request_logging
from eventing_common.receiver import Receiver, receiver_router

from .handlers import display_event
from .settings import Settings

log = logging.getLogger("display")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()

    app = FastAPI(title="Event Display", version="0.1.0")
    app.state.settings = settings

    add_request_logging(app, log)

    app.include_router(health_router)
    app.include_router(receiver_router(Receiver(display_event)))
    return app


def main() -> int:
    try:
        settings = Settings()
    except ValidationError as e:
        setup_logging()
        log.critical("invalid configuration: %s", e)
        return 1

    setup_logging(settings.LOG_LEVEL)
    log.info("event-display: starting server...")
    log.info("event-display: listening on port %s", settings.PORT)
    uvicorn.run(create_app(settings), host=settings.HOST, port=settings.PORT, log_config=None)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
