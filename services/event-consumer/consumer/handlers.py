# services/event-consumer/consumer/handlers.py
from __future__ import annotations

import logging

from eventing_common.codec import decode_data_as
from eventing_common.errors import DataDecodeError
from eventing_common.events import Event

from .schemas import PingMessage

log = logging.getLogger("consumer.handler")


class MessageConsumer:
    """Decodes {"message": ...} payloads and logs them."""

    def __init__(self, reject_undecodable: bool = False) -> None:
        self.reject_undecodable = reject_undecodable

    async def __call__(self, event: Event) -> None:
        log.info("cloudevent received id=%s type=%s source=%s", event.id, event.type, event.source)

        try:
            data = decode_data_as(event, PingMessage)
        except DataDecodeError as e:
            log.error("got error while decoding data id=%s: %s", event.id, e)
            if self.reject_undecodable:
                raise
            # The envelope itself was fine; acknowledge it anyway
            return

        log.info("data id=%s message=%s", event.id, data.message)
        log.info("cloudevent processed successfully id=%s", event.id)
