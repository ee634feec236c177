# tutor/schemas/session.py
from pydantic import BaseModel, Field


class StartSessionIn(BaseModel):
    subject: str | None = None


class MessageIn(BaseModel):
    sessionId: str = Field(min_length=1)
    message: str = Field(min_length=1)
    attachments: list[str] = Field(default_factory=list)  # Uploaded document paths
