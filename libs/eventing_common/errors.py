# libs/eventing_common/errors.py
from __future__ import annotations


class EventError(Exception):
    """Base class for every error raised by the transport binding."""


class InvalidAttribute(EventError):
    """A required envelope attribute is missing or blank, or an attribute name is illegal."""

    def __init__(self, attribute: str, message: str | None = None) -> None:
        self.attribute = attribute
        super().__init__(message or f"attribute '{attribute}' must be a non-empty string")


class MalformedEnvelope(EventError):
    """The wire representation could not be parsed into an envelope."""


class DataDecodeError(EventError):
    """The envelope is fine but its data does not match the expected shape or content type."""


class DeliveryFailed(EventError):
    """Raised by handlers that forward events when the next hop rejects the delivery."""

    def __init__(self, reason: str, status_code: int | None = None) -> None:
        self.reason = reason
        self.status_code = status_code
        super().__init__(reason)


__all__ = [
    "EventError",
    "InvalidAttribute",
    "MalformedEnvelope",
    "DataDecodeError",
    "DeliveryFailed",
]
