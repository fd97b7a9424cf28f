# services/event-consumer/consumer/main.py
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

from .handlers import MessageConsumer
from .settings import Settings

log = logging.getLogger("consumer")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()

    app = FastAPI(title="Event Consumer", version="0.1.0")
    app.state.settings = settings

    add_request_logging(app, log)

    receiver = Receiver(MessageConsumer(reject_undecodable=settings.REJECT_UNDECODABLE))
    app.include_router(health_router)
    app.include_router(receiver_router(receiver, path=settings.RECEIVE_PATH))
    return app


def main() -> int:
    try:
        settings = Settings()
    except ValidationError as e:
        setup_logging()
        log.critical("invalid configuration: %s", e)
        return 1

    setup_logging(settings.LOG_LEVEL)
    app = create_app(settings)
    log.info("consumer is ready to receive events on port %s", settings.PORT)
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_config=None)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
