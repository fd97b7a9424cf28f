from .errors import DataDecodeError, DeliveryFailed, EventError, InvalidAttribute, MalformedEnvelope
from .events import EncodingMode, Event, new_event, validate_event
from .codec import decode_data_as, deserialize, serialize
from .sender import Accepted, DeliveryOutcome, Rejected, Sender
from .receiver import EventHandler, Receiver, ReceiverResponse, receiver_router
from .relay import RelayHandler

__all__ = [
    "EventError",
    "InvalidAttribute",
    "MalformedEnvelope",
    "DataDecodeError",
    "DeliveryFailed",
    "EncodingMode",
    "Event",
    "new_event",
    "validate_event",
    "serialize",
    "deserialize",
    "decode_data_as",
    "Accepted",
    "Rejected",
    "DeliveryOutcome",
    "Sender",
    "EventHandler",
    "Receiver",
    "ReceiverResponse",
    "receiver_router",
    "RelayHandler",
]
