# libs/eventing_common/events.py
from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional

import orjson
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import InvalidAttribute

# Only CloudEvents 1.0 is spoken on the wire
SPEC_VERSION = "1.0"

JSON_CONTENT_TYPE = "application/json"
STRUCTURED_CONTENT_TYPE = "application/cloudevents+json"
BATCH_CONTENT_TYPE = "application/cloudevents-batch+json"

# Wire names of the context attributes this binding understands
CORE_ATTRIBUTES = (
    "specversion",
    "id",
    "source",
    "type",
    "subject",
    "datacontenttype",
    "dataschema",
    "time",
)
REQUIRED_ATTRIBUTES = ("id", "source", "type")

_EXTENSION_NAME = re.compile(r"^[a-z0-9]{1,20}$")


class EncodingMode(str, Enum):
    HEADERS = "headers"          # attributes in ce-* headers, data is the body
    STRUCTURED = "structured"    # whole envelope in one application/cloudevents+json body


class Event(BaseModel):
    """
    One CloudEvents 1.0 envelope. Immutable: build a new one per logical event.

    `data` is opaque; it is only ever interpreted through `data_content_type`
    (see `codec.decode_data_as`).
    """
    model_config = ConfigDict(frozen=True)

    specversion: str = SPEC_VERSION
    id: str
    source: str
    type: str
    subject: Optional[str] = None
    data_content_type: Optional[str] = None
    data_schema: Optional[str] = None
    time: Optional[datetime] = None
    extensions: Dict[str, str] = Field(default_factory=dict)
    data: Optional[bytes] = None

    @field_validator("time")
    @classmethod
    def _assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @field_validator("data")
    @classmethod
    def _empty_is_absent(cls, v: Optional[bytes]) -> Optional[bytes]:
        return v or None


def new_id() -> str:
    return str(uuid.uuid4())


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def format_time(dt: datetime) -> str:
    """RFC 3339 rendering used on the wire, with `Z` for UTC."""
    return dt.isoformat().replace("+00:00", "Z")


def check_extension_name(name: str) -> None:
    if name in CORE_ATTRIBUTES or name in ("data", "data_base64"):
        raise InvalidAttribute(name, f"'{name}' is a reserved attribute name")
    if not _EXTENSION_NAME.match(name):
        raise InvalidAttribute(
            name, f"extension attribute '{name}' must be 1-20 lowercase letters or digits"
        )


def validate_event(event: Event) -> Event:
    """Raise InvalidAttribute unless id, source and type are non-blank."""
    for name in REQUIRED_ATTRIBUTES:
        value = getattr(event, name)
        if not isinstance(value, str) or not value.strip():
            raise InvalidAttribute(name)
    return event


def _encode_data(data: Any, content_type: Optional[str]) -> tuple[Optional[bytes], Optional[str]]:
    if data is None or isinstance(data, bytes):
        return data, content_type
    if isinstance(data, str):
        return data.encode("utf-8"), content_type
    # Anything else is a JSON value
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json")
    return orjson.dumps(data), content_type or JSON_CONTENT_TYPE


def new_event(
    *,
    source: str,
    type: str,
    id: Optional[str] = None,
    subject: Optional[str] = None,
    data_content_type: Optional[str] = None,
    data: Any = None,
    data_schema: Optional[str] = None,
    time: Optional[datetime] = None,
    extensions: Optional[Mapping[str, str]] = None,
) -> Event:
    """
    Build a valid event.

    A missing or blank `id` gets a random uuid4. `source` and `type` must be
    non-blank or InvalidAttribute is raised.

    `data` as bytes is stored untouched; a str is stored as UTF-8; any other
    value is serialized to JSON (content type defaults to application/json).
    """
    for name, value in (("source", source), ("type", type)):
        if not isinstance(value, str) or not value.strip():
            raise InvalidAttribute(name)
    if id is None or not id.strip():
        id = new_id()

    ext: Dict[str, str] = {}
    for name, value in (extensions or {}).items():
        check_extension_name(name)
        ext[name] = str(value)

    body, content_type = _encode_data(data, data_content_type)

    return Event(
        id=id,
        source=source,
        type=type,
        subject=subject,
        data_content_type=content_type,
        data_schema=data_schema,
        time=time,
        extensions=ext,
        data=body,
    )


__all__ = [
    "SPEC_VERSION",
    "JSON_CONTENT_TYPE",
    "STRUCTURED_CONTENT_TYPE",
    "BATCH_CONTENT_TYPE",
    "CORE_ATTRIBUTES",
    "REQUIRED_ATTRIBUTES",
    "EncodingMode",
    "Event",
    "new_id",
    "now_utc",
    "format_time",
    "check_extension_name",
    "validate_event",
    "new_event",
]
