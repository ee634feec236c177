"""
Tutoring session lifecycle

start -> message* -> end, for one user at a time. Turns on the same session
are serialized with a per-session asyncio.Lock; each turn stores the user's
message and the tutor's reply together.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Dict, List, Optional, Tuple

from ..config import Settings, settings
from ..core.errors import ActiveSessionExists, SessionNotFound
from ..models.session import Message, Session
from ..models.user import User
from .orchestrator import Orchestrator
from .providers.base import ChatTurn, TextResult
from .session_store import SessionStore

logger = logging.getLogger("uvicorn.error")


class SessionService:

    def __init__(self, store: SessionStore, orchestrator: Orchestrator, cfg: Optional[Settings] = None):
        cfg = cfg or settings
        self.store = store
        self.orchestrator = orchestrator
        self.history_window = cfg.history_window
        # Only sessions with a turn in flight have an entry
        self._locks: Dict[str, asyncio.Lock] = {}
        self._waiters: Dict[str, int] = {}

    @asynccontextmanager
    async def _turn_lock(self, session_id: str):
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        self._waiters[session_id] = self._waiters.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[session_id] -= 1
            if not self._waiters[session_id]:
                del self._waiters[session_id]
                self._locks.pop(session_id, None)

    async def _reply(self, session: Session, history) -> TextResult:
        return await self.orchestrator.generate_reply(
            history,
            session.user_name,
            session.ai_tutor_name,
            session.user_language,
            session.subject,
        )

    async def start_session(self, user: User, subject: Optional[str] = None) -> Tuple[Session, List[Message]]:
        """
        Open a session and store the tutor's opening line as message 1

        If the opening line cannot be stored the new session is discarded, so
        a failed start never leaves an empty active session behind.
        """
        if await self.store.find_active(user) is not None:
            raise ActiveSessionExists()

        session = await self.store.create_active(user, subject)
        try:
            opening = await self._reply(session, [])
            messages = await self.store.append(session, [("ai", opening.text, [])])
        except Exception as e:
            logger.warning("[session] %s could not store the opening line, discarding: %r", session.id, e)
            await self.store.discard(session)
            raise
        logger.info("[session] %s started for user %s (opening from %s)", session.id, user.id, opening.source_provider)
        return session, messages

    async def post_message(
        self,
        user: User,
        session_id: str,
        text: str,
        attachments: Optional[list] = None,
    ) -> Tuple[Message, TextResult, Session, List[Message]]:
        """
        Run one turn: store the user's message, generate and store the reply

        Returns:
            (ai_message, reply_result, session, [user_message, ai_message])

        Raises:
            SessionNotFound: session missing, ended, or owned by someone else
        """
        found = await self.store.find_active_by_id(user, session_id)
        if found is None:
            raise SessionNotFound("Active session not found")

        async with self._turn_lock(str(found.id)):
            # re-read under the lock: an earlier turn may have bumped the version or ended it
            session = await self.store.find_active_by_id(user, session_id)
            if session is None:
                raise SessionNotFound("Active session not found")

            user_turn = ChatTurn(sender="user", content=text)
            earlier = []
            if self.history_window > 1:
                earlier = await self.store.recent_messages(session, self.history_window - 1)
            window = earlier + [user_turn]

            reply = await self._reply(session, window)
            stored = await self.store.append(
                session,
                [("user", text, attachments or []), ("ai", reply.text, [])],
            )
        if reply.degraded:
            logger.info("[session] %s reply served by %s (degraded)", session.id, reply.source_provider)
        return stored[-1], reply, session, stored

    async def end_session(self, user: User) -> Tuple[Session, int]:
        session = await self.store.find_active(user)
        if session is None:
            raise SessionNotFound("No active session found")
        async with self._turn_lock(str(session.id)):
            session = await self.store.end(session)
        count = await Message.filter(session_id=session.id).count()
        logger.info("[session] %s ended after %s min", session.id, session.total_duration)
        return session, count

    async def get_active_session(self, user: User) -> Tuple[Session, List[Message]]:
        session = await self.store.find_active(user)
        if session is None:
            raise SessionNotFound("No active session found")
        return session, await self.store.messages(session)

    async def require_owned(self, user: User, session_id: str) -> Session:
        session = await self.store.find_owned(user, session_id)
        if session is None:
            raise SessionNotFound("Session not found")
        return session

    async def history(self, user: User, page: int = 1, limit: int = 10) -> Tuple[List[Tuple[Session, List[Message]]], dict]:
        rows, pagination = await self.store.list_ended(user, page, limit)
        return [(s, await self.store.messages(s)) for s in rows], pagination
