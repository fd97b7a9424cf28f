# libs/eventing_common/middleware.py
from __future__ import annotations

import logging
import time
import uuid

from fastapi import FastAPI, Request
from starlette.responses import Response


def add_request_logging(app: FastAPI, log: logging.Logger) -> None:
    """REQ/RES/ERR log lines per request, keyed by x-request-id (generated if absent)."""

    @app.middleware("http")
    async def request_logging_middleware(request: Request, call_next):
        rid = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = rid
        start = time.time()

        log.info(
            "REQ rid=%s method=%s path=%s client=%s",
            rid,
            request.method,
            request.url.path,
            request.client.host if request.client else None,
        )

        try:
            resp: Response = await call_next(request)
        except Exception:
            dur_ms = int((time.time() - start) * 1000)
            log.exception("ERR rid=%s dur_ms=%s path=%s", rid, dur_ms, request.url.path)
            raise

        dur_ms = int((time.time() - start) * 1000)
        log.info("RES rid=%s status=%s dur_ms=%s path=%s", rid, resp.status_code, dur_ms, request.url.path)
        resp.headers["x-request-id"] = rid
        return resp


__all__ = ["add_request_logging"]
