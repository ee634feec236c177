# tutor/models/session.py
"""
Database models for tutoring sessions and their messages.

A Session is one tutoring conversation. It snapshots the user's name,
language and tutor persona at start time so later profile edits do not
rewrite history. Messages are append-only rows ordered by ``seq``.
"""
import uuid
from tortoise import fields, models

SESSION_STATUSES = ("active", "paused", "ended")
DEFAULT_SUBJECT = "General Tutoring"


class Session(models.Model):
    """
    Tutoring session model.

    Invariants:
    - ``active_slot`` holds the owner id while status is "active" and is NULL
      otherwise; the unique constraint allows one active session per user.
    - ``version`` is bumped on every persisted turn.
    - Once status is "ended" the row is never modified again.
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    user = fields.ForeignKeyField("models.User", related_name="sessions", on_delete=fields.CASCADE)

    # Snapshot of the owner at session start
    user_name = fields.CharField(max_length=128)
    user_language = fields.CharField(max_length=64)
    ai_tutor_name = fields.CharField(max_length=64)

    subject = fields.CharField(max_length=128, default=DEFAULT_SUBJECT)
    status = fields.CharField(max_length=16, default="active")  # active | paused | ended
    active_slot = fields.CharField(max_length=64, null=True, unique=True)
    version = fields.IntField(default=0)

    started_at = fields.DatetimeField(auto_now_add=True)
    ended_at = fields.DatetimeField(null=True)
    total_duration = fields.IntField(null=True)  # Minutes, rounded
    updated_at = fields.DatetimeField(auto_now=True)

    messages: fields.ReverseRelation["Message"]

    class Meta:
        table = "tutoring_sessions"


class Message(models.Model):
    id = fields.IntField(pk=True)
    session = fields.ForeignKeyField("models.Session", related_name="messages", on_delete=fields.CASCADE)
    seq = fields.IntField()               # 1-based position within the session
    sender = fields.CharField(max_length=8)  # "user" | "ai"
    content = fields.TextField()
    attachments = fields.JSONField(default=list)
    timestamp = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "session_messages"
        unique_together = (("session", "seq"),)
        ordering = ["seq"]

    def to_public(self) -> dict:
        return {
            "seq": self.seq,
            "sender": self.sender,
            "content": self.content,
            "attachments": list(self.attachments or []),
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }
