from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional, Protocol

from .models import GameSession, Player, SessionState


class PlayerRepository(Protocol):
    """
    Abstraction over player persistence.

    Implementations are responsible for:
    - Mapping between database rows and the `Player` domain model.
    - Hiding any SQL / driver details from the application layer.

    Validation (non-negative balance) lives in the ledger; repositories
    store what they are given.
    """

    def get_player(self, player_id: str) -> Optional[Player]:
        """Return the player with the given ID, or None if not found."""

        ...

    def add_player(self, player: Player) -> None:
        """Persist a new player. Adding an existing ID is a no-op."""

        ...

    def update_balance(self, player_id: str, delta: Decimal) -> Decimal:
        """Adjust a player's balance by `delta` and return the new balance."""

        ...

    def set_name(self, player_id: str, name: str) -> None:
        ...


class SessionRepository(Protocol):
    """
    Persistence abstraction for game sessions.

    The only hard requirements are a unique `id` per session and an
    atomic compare-and-set on `state`.
    """

    def add_session(self, session: GameSession) -> None:
        """Persist a new session. Raises if the ID is already taken."""

        ...

    def get_session(self, session_id: str) -> Optional[GameSession]:
        ...

    def compare_and_set_state(
        self,
        session_id: str,
        expected: SessionState,
        new: SessionState,
    ) -> bool:
        """
        Move `session_id` from `expected` to `new`.

        Returns False (and changes nothing) if the stored state is not
        `expected` or the session does not exist.
        """

        ...

    def save_data(self, session_id: str, data: Dict[str, Any]) -> None:
        ...
