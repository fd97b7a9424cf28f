# services/event-publisher/publisher/settings.py
from __future__ import annotations

from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from eventing_common.events import EncodingMode


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)

    # Service
    SERVICE_NAME: str = "event-publisher"
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    LOG_LEVEL: str = "INFO"

    # Sink address injected by Knative; no default, startup fails without it
    K_SINK: AnyHttpUrl = Field(...)

    # Outgoing events
    EVENT_TYPE: str = "com.example.ping"
    EVENT_SOURCE: str = "knative-demo-publisher"
    ENCODING: EncodingMode = EncodingMode.HEADERS
    SEND_TIMEOUT_SECONDS: float = 10.0
