from __future__ import annotations

import sqlite3
from decimal import Decimal
from typing import Optional

from domain.errors import NotFound
from domain.models import Player
from domain.repositories import PlayerRepository


class SqlitePlayerRepository(PlayerRepository):
    """
    SQLite-backed implementation of `PlayerRepository`.

    This repository owns the `players` table and maps rows to the `Player`
    domain model. It is self-initialising: the table is created if needed.

    Balances are stored as decimal strings so no precision is lost.
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
                CREATE TABLE IF NOT EXISTS players (
                    id TEXT PRIMARY KEY,
                    balance TEXT NOT NULL DEFAULT '0',
                    name TEXT
                )
                """
            )
            conn.commit()

    @staticmethod
    def _to_domain(row: tuple) -> Player:
        return Player(
            id=str(row[0]),
            balance=Decimal(row[1]),
            name=row[2],
        )

    def get_player(self, player_id: str) -> Optional[Player]:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute("SELECT id, balance, name FROM players WHERE id = ?", (player_id,))
            row = cur.fetchone()
            if not row:
                return None
            return self._to_domain(row)

    def add_player(self, player: Player) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT OR IGNORE INTO players (id, balance, name)
                VALUES (?, ?, ?)
                """,
                (player.id, str(player.balance), player.name),
            )
            conn.commit()

    def update_balance(self, player_id: str, delta: Decimal) -> Decimal:
        with self._get_connection() as conn:
            cur = conn.cursor()
            # Read and write under one write lock so other connections
            # cannot interleave.
            cur.execute("BEGIN IMMEDIATE")
            cur.execute("SELECT balance FROM players WHERE id = ?", (player_id,))
            row = cur.fetchone()
            if not row:
                conn.rollback()
                raise NotFound(f"Player {player_id} not found")

            balance = Decimal(row[0]) + delta
            cur.execute(
                "UPDATE players SET balance = ? WHERE id = ?",
                (str(balance), player_id),
            )
            conn.commit()
            return balance

    def set_name(self, player_id: str, name: str) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute("UPDATE players SET name = ? WHERE id = ?", (name, player_id))
            conn.commit()
