# services/event-display/display/handlers.py
import logging

from eventing_common.events import Event

log = logging.getLogger("display.handler")


def display_event(event: Event) -> None:
    log.info("Received a CloudEvent!")
    log.info("  - Type: %s", event.type)
    log.info("  - Source: %s", event.source)
    log.info("  - Subject: %s", event.subject)
    log.info("  - Data: %s", (event.data or b"").decode("utf-8", errors="replace"))
