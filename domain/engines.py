from __future__ import annotations

import random
from typing import Dict, Optional, Protocol

from .blackjack import BlackjackEngine
from .generic_game import GenericGameEngine
from .models import Bet, GameKind, GameSession, Outcome
from .slot_machine import SlotMachineEngine


class GameEngine(Protocol):
    """
    Pure game logic behind a common `play` capability.

    Engines never touch the ledger or the session store; they only read the
    session and return an `Outcome`. All randomness comes from the injected
    `random.Random`.
    """

    def play(self, session: GameSession, bet: Bet) -> Outcome:
        """Resolve (or open) a game once the bet has been validated."""

        ...

    def act(self, session: GameSession, action: str) -> Outcome:
        """Apply a follow-up button action to an in-progress game."""

        ...


def build_engines(rng: Optional[random.Random] = None) -> Dict[GameKind, GameEngine]:
    rng = rng or random.Random()
    return {
        GameKind.SLOT_MACHINE: SlotMachineEngine(rng),
        GameKind.BLACKJACK: BlackjackEngine(rng),
        GameKind.GENERIC: GenericGameEngine(),
    }
