# libs/eventing_common/sender.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

import httpx

from .codec import serialize
from .events import EncodingMode, Event

log = logging.getLogger("eventing.sender")

# How much of a rejecting response body ends up in the reason
_REASON_BODY_LIMIT = 200


@dataclass(frozen=True)
class Accepted:
    status_code: int

    @property
    def accepted(self) -> bool:
        return True


@dataclass(frozen=True)
class Rejected:
    reason: str
    status_code: Optional[int] = None  # None => the request never got a response

    @property
    def accepted(self) -> bool:
        return False


DeliveryOutcome = Union[Accepted, Rejected]


class Sender:
    """
    Delivers events to one fixed destination, one attempt per call.

    The target is resolved once here; point somewhere else by building a new
    Sender. Delivery failures come back as `Rejected`, never as exceptions.
    """

    def __init__(
        self,
        target: str | httpx.URL,
        *,
        mode: EncodingMode = EncodingMode.HEADERS,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        url = httpx.URL(str(target))
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError(f"sender target must be an absolute http(s) URL, got '{target}'")
        self._target = url
        self._mode = EncodingMode(mode)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def target(self) -> httpx.URL:
        return self._target

    @property
    def mode(self) -> EncodingMode:
        return self._mode

    async def send(self, event: Event) -> DeliveryOutcome:
        headers, body = serialize(event, self._mode)
        try:
            resp = await self._client.post(self._target, headers=headers, content=body)
        except (httpx.HTTPError, UnicodeEncodeError) as e:
            # UnicodeEncodeError: an attribute value httpx cannot put in a header
            reason = f"{type(e).__name__}: {e}" if str(e) else type(e).__name__
            log.warning("send failed id=%s target=%s err=%s", event.id, self._target, reason)
            return Rejected(reason=reason)

        if resp.is_success:
            log.info(
                "send ok id=%s type=%s target=%s status=%s",
                event.id,
                event.type,
                self._target,
                resp.status_code,
            )
            return Accepted(status_code=resp.status_code)

        excerpt = resp.text[:_REASON_BODY_LIMIT].strip()
        reason = f"{resp.status_code} {resp.reason_phrase}"
        if excerpt:
            reason = f"{reason}: {excerpt}"
        log.warning("send rejected id=%s target=%s reason=%s", event.id, self._target, reason)
        return Rejected(reason=reason, status_code=resp.status_code)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "Sender":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


__all__ = ["Accepted", "Rejected", "DeliveryOutcome", "Sender"]
