from pydantic import BaseModel


class PingMessage(BaseModel):
    message: str
