from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from typing import Any, Dict, Optional

from domain.models import GameKind, GameSession, SessionState
from domain.repositories import SessionRepository


class SqliteSessionRepository(SessionRepository):
    """
    SQLite-backed implementation of `SessionRepository`.

    Manages the `game_sessions` table. State changes are a conditional
    UPDATE, so two writers can never both move a session out of the same
    state.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._ensure_table()

    def _get_connection(self) -> sqlite3.Connection:
        return sqlite3.connect(self._db_path)

    def _ensure_table(self) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS game_sessions (
                    id TEXT PRIMARY KEY,
                    owner_id TEXT NOT NULL,
                    kind TEXT NOT NULL,
                    state TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    data TEXT NOT NULL DEFAULT '{}'
                )
                """
            )
            conn.commit()

    @staticmethod
    def _to_domain(row: tuple) -> GameSession:
        return GameSession(
            id=str(row[0]),
            owner_id=str(row[1]),
            kind=GameKind(row[2]),
            state=SessionState(row[3]),
            created_at=datetime.fromisoformat(row[4]),
            data=json.loads(row[5]),
        )

    def add_session(self, session: GameSession) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO game_sessions (id, owner_id, kind, state, created_at, data)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    session.id,
                    session.owner_id,
                    session.kind.value,
                    session.state.value,
                    session.created_at.isoformat(),
                    json.dumps(session.data),
                ),
            )
            conn.commit()

    def get_session(self, session_id: str) -> Optional[GameSession]:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT id, owner_id, kind, state, created_at, data
                FROM game_sessions WHERE id = ?
                """,
                (session_id,),
            )
            row = cur.fetchone()
            if not row:
                return None
            return self._to_domain(row)

    def compare_and_set_state(
        self,
        session_id: str,
        expected: SessionState,
        new: SessionState,
    ) -> bool:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                UPDATE game_sessions
                SET state = ?
                WHERE id = ? AND state = ?
                """,
                (new.value, session_id, expected.value),
            )
            conn.commit()
            return cur.rowcount == 1

    def save_data(self, session_id: str, data: Dict[str, Any]) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                "UPDATE game_sessions SET data = ? WHERE id = ?",
                (json.dumps(data), session_id),
            )
            conn.commit()
