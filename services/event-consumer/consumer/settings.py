# services/event-consumer/consumer/settings.py
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)

    SERVICE_NAME: str = "event-consumer"
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    LOG_LEVEL: str = "INFO"

    # Path the receiver listens on
    RECEIVE_PATH: str = "/"

    # When true, events whose data is not {"message": str} are NACKed instead of logged and dropped
    REJECT_UNDECODABLE: bool = False
