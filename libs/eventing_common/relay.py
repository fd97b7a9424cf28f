# libs/eventing_common/relay.py
from __future__ import annotations

import logging

from .errors import DeliveryFailed
from .events import Event
from .sender import Rejected, Sender

log = logging.getLogger("eventing.relay")


class RelayHandler:
    """
    Event handler that forwards every event unchanged to the next hop.

    A rejection downstream is raised as DeliveryFailed so the Receiver answers
    with a NACK and the upstream sender sees the failure.
    """

    def __init__(self, sender: Sender) -> None:
        self._sender = sender

    async def __call__(self, event: Event) -> None:
        outcome = await self._sender.send(event)
        if isinstance(outcome, Rejected):
            raise DeliveryFailed(outcome.reason, outcome.status_code)
        log.info("relayed id=%s to %s", event.id, self._sender.target)


__all__ = ["RelayHandler"]
