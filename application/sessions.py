from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict

from domain.errors import NotFound, StateConflict
from domain.models import GameKind, GameSession, SessionState
from domain.repositories import SessionRepository

from .locks import KeyedLocks

logger = logging.getLogger(__name__)


class SessionStore:
    """
    Creates, looks up and retires game sessions.

    Ownership is not checked here; callers that act on behalf of a user
    must compare `owner_id` themselves.
    """

    def __init__(self, session_repo: SessionRepository) -> None:
        self._repo = session_repo
        self._locks = KeyedLocks()

    @asynccontextmanager
    async def lock(self, session_id: str) -> AsyncIterator[None]:
        """Serialize everything done to one session."""

        async with self._locks.hold(session_id):
            yield

    def create(self, owner_id: str, kind: GameKind) -> GameSession:
        session = GameSession(
            id=uuid.uuid4().hex,
            owner_id=owner_id,
            kind=kind,
            state=SessionState.CREATED,
            created_at=datetime.now(timezone.utc),
        )
        self._repo.add_session(session)
        logger.info("Created %s session %s for %s", kind.value, session.id, owner_id)
        return session

    def get(self, session_id: str) -> GameSession:
        session = self._repo.get_session(session_id)
        if session is None:
            raise NotFound(f"Game session {session_id} not found")
        return session

    def transition(
        self,
        session_id: str,
        expected: SessionState,
        new: SessionState,
    ) -> GameSession:
        if expected == SessionState.RESOLVED:
            raise StateConflict(f"Game session {session_id} is already resolved")

        if not self._repo.compare_and_set_state(session_id, expected, new):
            current = self.get(session_id)
            raise StateConflict(
                f"Game session {session_id} is {current.state.value}, expected {expected.value}"
            )
        return self.get(session_id)

    def retire(self, session_id: str) -> GameSession:
        session = self.get(session_id)
        if session.state != SessionState.RESOLVED:
            self.transition(session_id, session.state, SessionState.RESOLVED)
        return self.get(session_id)

    def save_data(self, session_id: str, data: Dict[str, Any]) -> None:
        self._repo.save_data(session_id, data)
