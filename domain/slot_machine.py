from __future__ import annotations

import random
from decimal import Decimal
from typing import List, Tuple

from .errors import InvalidField
from .models import Bet, GameSession, Outcome
from .money import to_cents

# (name, emoji, weight)
SYMBOLS: List[Tuple[str, str, int]] = [
    ("CHERRY", "🍒", 22),
    ("LEMON", "🍋", 18),
    ("GRAPE", "🍇", 16),
    ("DIAMOND", "💎", 8),
    ("BAR", "🟥", 5),
    ("SEVEN", "7️⃣", 3),
]

# Total return (stake included) for three of a kind.
THREE_OF_A_KIND = {
    "SEVEN": Decimal("25"),
    "BAR": Decimal("15"),
    "DIAMOND": Decimal("10"),
    "GRAPE": Decimal("5"),
    "LEMON": Decimal("4"),
    "CHERRY": Decimal("3"),
}
ANY_PAIR = Decimal("1.5")

_EMOJI = {name: emoji for name, emoji, _ in SYMBOLS}


def spin_reel(rng: random.Random) -> str:
    total = sum(w for _, _, w in SYMBOLS)
    r = rng.randrange(total)
    upto = 0
    for name, _emoji, w in SYMBOLS:
        upto += w
        if r < upto:
            return name
    return SYMBOLS[0][0]


def payout_multiplier(reels: List[str]) -> Decimal:
    """Look up the payout table for three reels."""

    if reels[0] == reels[1] == reels[2]:
        return THREE_OF_A_KIND[reels[0]]
    if len(set(reels)) == 2:
        return ANY_PAIR
    return Decimal("0")


class SlotMachineEngine:
    """Three weighted reels, resolved in a single step."""

    def __init__(self, rng: random.Random) -> None:
        self._rng = rng

    def play(self, session: GameSession, bet: Bet) -> Outcome:
        reels = [spin_reel(self._rng) for _ in range(3)]
        multiplier = payout_multiplier(reels)
        delta = to_cents(bet.amount * multiplier) - bet.amount

        shown = " ".join(_EMOJI[r] for r in reels)
        if delta < 0:
            text = f"🎰 {shown}: no win. (-{bet.amount})"
        elif delta == 0:
            text = f"🎰 {shown}: push, your {bet.amount} comes back."
        else:
            text = f"🎰 {shown}: x{multiplier}! (+{delta})"

        return Outcome(
            payout_delta=delta,
            description=text,
            finished=True,
            data={"reels": reels},
        )

    def act(self, session: GameSession, action: str) -> Outcome:
        raise InvalidField(f"Slot machine has no action {action!r}")
