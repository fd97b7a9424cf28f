# libs/eventing_common/codec.py
from __future__ import annotations

import base64
import binascii
import logging
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import quote, unquote

import orjson
from pydantic import TypeAdapter, ValidationError

from .errors import DataDecodeError, InvalidAttribute, MalformedEnvelope
from .events import (
    BATCH_CONTENT_TYPE,
    CORE_ATTRIBUTES,
    REQUIRED_ATTRIBUTES,
    SPEC_VERSION,
    STRUCTURED_CONTENT_TYPE,
    EncodingMode,
    Event,
    check_extension_name,
    format_time,
)

log = logging.getLogger("eventing.codec")

Headers = Dict[str, str]

HEADER_PREFIX = "ce-"

# Header values: space, '"', '%' and anything outside printable ASCII get percent-encoded
_HEADER_SAFE = "".join(chr(c) for c in range(0x21, 0x7F) if chr(c) not in '"%')


# ----------------- Helpers -----------------

def media_type(content_type: Optional[str]) -> str:
    """`application/json; charset=utf-8` -> `application/json`"""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def is_json_content_type(content_type: Optional[str]) -> bool:
    mt = media_type(content_type)
    return mt in ("application/json", "text/json") or mt.endswith("+json")


def _attributes(event: Event) -> Dict[str, str]:
    """Context attributes by wire name, absent optionals left out."""
    attrs: Dict[str, str] = {
        "specversion": event.specversion,
        "id": event.id,
        "source": event.source,
        "type": event.type,
    }
    if event.subject is not None:
        attrs["subject"] = event.subject
    if event.data_content_type is not None:
        attrs["datacontenttype"] = event.data_content_type
    if event.data_schema is not None:
        attrs["dataschema"] = event.data_schema
    if event.time is not None:
        attrs["time"] = format_time(event.time)
    attrs.update(event.extensions)
    return attrs


def _build(attrs: Dict[str, Any], extensions: Dict[str, str], data: Optional[bytes]) -> Event:
    missing = [name for name in REQUIRED_ATTRIBUTES if attrs.get(name) is None]
    if missing:
        raise MalformedEnvelope(f"missing required attribute(s): {', '.join(missing)}")

    specversion = attrs.get("specversion") or SPEC_VERSION
    if specversion != SPEC_VERSION:
        raise MalformedEnvelope(f"unsupported specversion '{specversion}'")

    try:
        return Event(
            specversion=specversion,
            id=attrs["id"],
            source=attrs["source"],
            type=attrs["type"],
            subject=attrs.get("subject"),
            data_content_type=attrs.get("datacontenttype"),
            data_schema=attrs.get("dataschema"),
            time=attrs.get("time"),
            extensions=extensions,
            data=data,
        )
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise MalformedEnvelope(f"invalid attribute value(s): {fields}") from e


def _extension(name: str) -> str:
    try:
        check_extension_name(name)
    except InvalidAttribute as e:
        raise MalformedEnvelope(str(e)) from e
    return name


# ----------------- Headers mode -----------------

def to_headers(event: Event) -> Tuple[Headers, bytes]:
    headers: Headers = {}
    for name, value in _attributes(event).items():
        if name == "datacontenttype":
            headers["content-type"] = value
        else:
            headers[HEADER_PREFIX + name] = quote(value, safe=_HEADER_SAFE)
    return headers, event.data or b""


def _from_headers(headers: Mapping[str, str], body: bytes) -> Event:
    attrs: Dict[str, Any] = {}
    extensions: Dict[str, str] = {}
    for key, value in headers.items():
        if not key.startswith(HEADER_PREFIX):
            continue
        name = key[len(HEADER_PREFIX):]
        if name in CORE_ATTRIBUTES:
            attrs[name] = unquote(value)
        else:
            extensions[_extension(name)] = unquote(value)

    if "content-type" in headers:
        attrs["datacontenttype"] = headers["content-type"]

    return _build(attrs, extensions, body or None)


# ----------------- Structured mode -----------------

def _structured_data(event: Event) -> Tuple[str, Any]:
    data = event.data or b""
    ct = event.data_content_type
    if is_json_content_type(ct):
        try:
            value = orjson.loads(data)
        except orjson.JSONDecodeError:
            pass
        else:
            # Only inline JSON that re-serializes to the same bytes
            if orjson.dumps(value) == data:
                return "data", value
    elif media_type(ct).startswith("text/"):
        try:
            return "data", data.decode("utf-8")
        except UnicodeDecodeError:
            pass
    return "data_base64", base64.b64encode(data).decode("ascii")


def to_structured(event: Event) -> Tuple[Headers, bytes]:
    doc: Dict[str, Any] = dict(_attributes(event))
    if event.data is not None:
        key, value = _structured_data(event)
        doc[key] = value
    return {"content-type": STRUCTURED_CONTENT_TYPE}, orjson.dumps(doc)


def _structured_payload(doc: Dict[str, Any], content_type: Any) -> Optional[bytes]:
    if "data_base64" in doc:
        raw = doc["data_base64"]
        if raw is None:
            return None
        if not isinstance(raw, str):
            raise MalformedEnvelope("data_base64 must be a string")
        try:
            return base64.b64decode(raw, validate=True)
        except binascii.Error as e:
            raise MalformedEnvelope(f"data_base64 is not valid base64: {e}") from e

    if "data" not in doc or doc["data"] is None:
        return None
    value = doc["data"]
    if isinstance(value, str) and isinstance(content_type, str) and not is_json_content_type(content_type):
        return value.encode("utf-8")
    return orjson.dumps(value)


def _from_structured(body: bytes) -> Event:
    try:
        doc = orjson.loads(body)
    except orjson.JSONDecodeError as e:
        raise MalformedEnvelope(f"structured body is not valid JSON: {e}") from e
    if not isinstance(doc, dict):
        raise MalformedEnvelope("structured body must be a JSON object")
    if "data" in doc and "data_base64" in doc:
        raise MalformedEnvelope("'data' and 'data_base64' are mutually exclusive")

    attrs: Dict[str, Any] = {}
    extensions: Dict[str, str] = {}
    for name, value in doc.items():
        if name in ("data", "data_base64"):
            continue
        if name in CORE_ATTRIBUTES:
            attrs[name] = value
            continue
        if value is None:
            continue
        if isinstance(value, (dict, list)):
            raise MalformedEnvelope(f"extension attribute '{name}' must be a scalar")
        if isinstance(value, bool):
            value = "true" if value else "false"
        extensions[_extension(name)] = str(value)

    data = _structured_payload(doc, attrs.get("datacontenttype"))
    return _build(attrs, extensions, data)


# ----------------- Public API -----------------

_ENCODERS = {
    EncodingMode.HEADERS: to_headers,
    EncodingMode.STRUCTURED: to_structured,
}


def serialize(event: Event, mode: EncodingMode = EncodingMode.HEADERS) -> Tuple[Headers, bytes]:
    """Split an event into HTTP headers and body using the given wire mode."""
    return _ENCODERS[EncodingMode(mode)](event)


def detect_mode(headers: Mapping[str, str]) -> EncodingMode:
    """Headers must already be lower-cased."""
    mt = media_type(headers.get("content-type"))
    if mt == STRUCTURED_CONTENT_TYPE:
        return EncodingMode.STRUCTURED
    if mt == BATCH_CONTENT_TYPE:
        raise MalformedEnvelope("batched events are not supported")
    return EncodingMode.HEADERS


def deserialize(headers: Mapping[str, str], body: bytes) -> Event:
    """
    Parse an inbound request into an event, whichever wire mode was used.

    Raises MalformedEnvelope when id/source/type cannot be recovered or the
    body does not parse. Blank attributes are *not* rejected here; that is
    `validate_event`'s job.
    """
    lowered = {k.lower(): v for k, v in headers.items()}
    mode = detect_mode(lowered)
    log.debug("deserializing event mode=%s bytes=%d", mode.value, len(body))
    if mode is EncodingMode.STRUCTURED:
        return _from_structured(body)
    return _from_headers(lowered, body)


def decode_data_as(event: Event, target: Any) -> Any:
    """
    Interpret the event's data as `target` (a pydantic model or any type
    pydantic can validate).

    JSON content types, or no content type at all, are validated as JSON;
    `text/*` data can be decoded into `str`. Anything else raises
    DataDecodeError. The event itself is left untouched.
    """
    if event.data is None:
        raise DataDecodeError("event has no data")

    ct = event.data_content_type
    if ct is None or is_json_content_type(ct):
        try:
            return TypeAdapter(target).validate_json(event.data)
        except ValidationError as e:
            raise DataDecodeError(f"data does not match {getattr(target, '__name__', target)}: {e}") from e

    if media_type(ct).startswith("text/") and target is str:
        try:
            return event.data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DataDecodeError(f"text data is not valid UTF-8: {e}") from e

    raise DataDecodeError(f"unsupported data content type '{ct}'")


__all__ = [
    "HEADER_PREFIX",
    "media_type",
    "is_json_content_type",
    "to_headers",
    "to_structured",
    "serialize",
    "detect_mode",
    "deserialize",
    "decode_data_as",
]
