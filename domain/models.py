from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional


class GameKind(str, enum.Enum):
    SLOT_MACHINE = "slotmachine"
    BLACKJACK = "blackjack"
    GENERIC = "game"


class SessionState(str, enum.Enum):
    CREATED = "created"
    AWAITING_BET = "awaiting_bet"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"


@dataclass
class Player:
    """
    Domain representation of a casino player.

    Only the ledger changes `balance`; it never drops below zero.
    """

    id: str
    balance: Decimal
    name: Optional[str] = None


@dataclass
class GameSession:
    """
    One game started by a slash command.

    `data` carries whatever the engine needs between interactions
    (for blackjack: the remaining deck, both hands and the held stake).
    """

    id: str
    owner_id: str
    kind: GameKind
    state: SessionState
    created_at: datetime
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Bet:
    amount: Decimal


@dataclass
class Outcome:
    """
    Result of an engine step.

    `payout_delta` is the change to apply to the player's balance right now.
    When `finished` is False the session stays in progress and `actions`
    lists the follow-up buttons to offer.
    """

    payout_delta: Decimal
    description: str
    finished: bool = True
    data: Dict[str, Any] = field(default_factory=dict)
    actions: List[str] = field(default_factory=list)
