# libs/eventing_common/health.py
from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthz(request: Request):
    return {"status": "ok", "service": request.app.state.settings.SERVICE_NAME}


@router.get("/readyz")
async def readyz(request: Request):
    """Ready once the app is wired; services that send also report where to."""
    body = {"ready": True, "service": request.app.state.settings.SERVICE_NAME}
    sender = getattr(request.app.state, "sender", None)
    if sender is not None:
        body["sink"] = str(sender.target)
        body["encoding"] = sender.mode.value
    return body
