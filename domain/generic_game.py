from __future__ import annotations

from decimal import Decimal

from .errors import InvalidField
from .models import Bet, GameSession, Outcome

FINISH = "finish"


class GenericGameEngine:
    """
    Minimal start/finish game with no payout rules.

    Used to exercise the shared token, session and dispatcher plumbing.
    """

    def play(self, session: GameSession, bet: Bet) -> Outcome:
        return Outcome(
            payout_delta=Decimal("0"),
            description=f"Game started with a bet of {bet.amount}.",
            finished=False,
            data={"bet": str(bet.amount)},
            actions=[FINISH],
        )

    def act(self, session: GameSession, action: str) -> Outcome:
        if action != FINISH:
            raise InvalidField(f"Unknown game action {action!r}")
        return Outcome(
            payout_delta=Decimal("0"),
            description="Game finished.",
            finished=True,
            data=dict(session.data),
        )
