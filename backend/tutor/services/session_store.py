"""
Session persistence

All reads and writes of Session / Message rows go through here. Appends for
one turn run in a single transaction together with the version bump, so a
turn is either fully stored or not at all.
"""
import logging
import math
import uuid
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from tortoise import timezone
from tortoise.exceptions import IntegrityError
from tortoise.expressions import F
from tortoise.transactions import in_transaction

from ..core.errors import ActiveSessionExists, AppError, SessionNotFound
from ..models.session import DEFAULT_SUBJECT, Message, Session
from ..models.user import User

logger = logging.getLogger("uvicorn.error")


class StaleSession(AppError):
    def __init__(self):
        super().__init__("Session was modified concurrently, please retry", 409)


def _minutes_between(start: datetime, end: datetime) -> int:
    if (start.tzinfo is None) != (end.tzinfo is None):
        start, end = start.replace(tzinfo=None), end.replace(tzinfo=None)
    return round((end - start).total_seconds() / 60)


def _as_uuid(value) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def session_to_public(session: Session, messages: Optional[Sequence[Message]] = None) -> dict:
    data = {
        "id": str(session.id),
        "userId": str(session.user_id),
        "user": {
            "name": session.user_name,
            "language": session.user_language,
            "aiTutorName": session.ai_tutor_name,
        },
        "subject": session.subject,
        "status": session.status,
        "startTime": session.started_at.isoformat() if session.started_at else None,
        "endTime": session.ended_at.isoformat() if session.ended_at else None,
        "totalDuration": session.total_duration,
        "version": session.version,
    }
    if messages is not None:
        data["messages"] = [m.to_public() for m in messages]
    return data


class SessionStore:

    async def create_active(self, user: User, subject: Optional[str] = None) -> Session:
        """Insert a new active session; the unique active_slot rejects a second one"""
        try:
            return await Session.create(
                user=user,
                user_name=user.name,
                user_language=user.language,
                ai_tutor_name=user.ai_tutor_name,
                subject=subject or DEFAULT_SUBJECT,
                status="active",
                active_slot=str(user.id),
            )
        except IntegrityError as e:
            logger.info("[session] duplicate active session for user %s: %r", user.id, e)
            raise ActiveSessionExists() from e

    async def find_active(self, user: User) -> Optional[Session]:
        return await Session.get_or_none(user_id=user.id, status="active")

    async def find_active_by_id(self, user: User, session_id: str) -> Optional[Session]:
        sid = _as_uuid(session_id)
        if sid is None:
            return None
        return await Session.get_or_none(id=sid, user_id=user.id, status="active")

    async def find_owned(self, user: User, session_id: str) -> Optional[Session]:
        sid = _as_uuid(session_id)
        if sid is None:
            return None
        return await Session.get_or_none(id=sid, user_id=user.id)

    async def messages(self, session: Session) -> List[Message]:
        return await Message.filter(session_id=session.id).order_by("seq")

    async def recent_messages(self, session: Session, limit: int) -> List[Message]:
        """Last ``limit`` messages, oldest first"""
        rows = await Message.filter(session_id=session.id).order_by("-seq").limit(limit)
        return list(reversed(rows))

    async def append(self, session: Session, entries: Sequence[Tuple[str, str, list]]) -> List[Message]:
        """
        Append (sender, content, attachments) entries and bump the version

        The version must still match what the caller read, otherwise nothing
        is written and StaleSession is raised.
        """
        async with in_transaction() as conn:
            last = await Message.filter(session_id=session.id).using_db(conn).order_by("-seq").first()
            seq = last.seq if last else 0
            created = []
            for sender, content, attachments in entries:
                seq += 1
                created.append(
                    await Message.create(
                        session_id=session.id,
                        seq=seq,
                        sender=sender,
                        content=content,
                        attachments=list(attachments or []),
                        using_db=conn,
                    )
                )
            updated = await (
                Session.filter(id=session.id, version=session.version, status="active")
                .using_db(conn)
                .update(version=F("version") + 1)
            )
            if not updated:
                raise StaleSession()
        session.version += 1
        return created

    async def discard(self, session: Session) -> None:
        """Delete a session and its messages outright"""
        async with in_transaction() as conn:
            await Message.filter(session_id=session.id).using_db(conn).delete()
            await Session.filter(id=session.id).using_db(conn).delete()

    async def end(self, session: Session) -> Session:
        now = timezone.now()
        duration = _minutes_between(session.started_at, now)
        updated = await Session.filter(id=session.id, status="active").update(
            status="ended",
            ended_at=now,
            total_duration=duration,
            active_slot=None,
        )
        if not updated:
            raise SessionNotFound("No active session found")
        await session.refresh_from_db()
        return session

    async def list_ended(self, user: User, page: int, limit: int) -> Tuple[List[Session], dict]:
        query = Session.filter(user_id=user.id, status="ended")
        total = await query.count()
        rows = await query.order_by("-ended_at").offset((page - 1) * limit).limit(limit)
        pagination = {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit) if limit else 0,
        }
        return rows, pagination
