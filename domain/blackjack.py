from __future__ import annotations

import enum
import random
from decimal import Decimal
from typing import List

from .errors import InvalidField, StateConflict
from .models import Bet, GameSession, Outcome
from .money import to_cents

RANKS = "A23456789TJQK"
SUITS = "SHDC"
SUIT_SYMBOLS = {"S": "♠", "H": "♥", "D": "♦", "C": "♣"}

HIT = "hit"
STAND = "stand"

DEALER_STANDS_ON = 17


class BlackjackResult(str, enum.Enum):
    PLAYER_BUST = "player_bust"
    DEALER_BUST = "dealer_bust"
    PLAYER_WIN = "player_win"
    DEALER_WIN = "dealer_win"
    PUSH = "push"


# How many stakes go back to the player. The stake itself is held when
# the cards are dealt, so a win returns 2 (stake + winnings).
PAYOUT_MULTIPLIERS = {
    BlackjackResult.PLAYER_BUST: Decimal("0"),
    BlackjackResult.DEALER_BUST: Decimal("2"),
    BlackjackResult.PLAYER_WIN: Decimal("2"),
    BlackjackResult.DEALER_WIN: Decimal("0"),
    BlackjackResult.PUSH: Decimal("1"),
}

_RESULT_TEXT = {
    BlackjackResult.PLAYER_BUST: "Bust! You lose.",
    BlackjackResult.DEALER_BUST: "Dealer busts. You win!",
    BlackjackResult.PLAYER_WIN: "You win!",
    BlackjackResult.DEALER_WIN: "Dealer wins.",
    BlackjackResult.PUSH: "Push.",
}


def new_deck() -> List[str]:
    """Standard 52-card deck as two-character codes, e.g. 'AS' or 'TD'."""

    return [rank + suit for suit in SUITS for rank in RANKS]


def hand_value(hand: List[str]) -> int:
    """
    Best blackjack total for a hand.

    Aces count 11 until that would bust the hand, then 1.
    """

    value = 0
    aces = 0
    for card in hand:
        rank = card[0]
        if rank == "A":
            aces += 1
            value += 11
        elif rank in "TJQK":
            value += 10
        else:
            value += int(rank)
    while value > 21 and aces:
        value -= 10
        aces -= 1
    return value


def is_natural(hand: List[str]) -> bool:
    return len(hand) == 2 and hand_value(hand) == 21


def format_hand(hand: List[str], hide_hole: bool = False) -> str:
    cards = [card[0].replace("T", "10") + SUIT_SYMBOLS[card[1]] for card in hand]
    if hide_hole and len(cards) > 1:
        return f"{cards[0]} ??"
    return f"{' '.join(cards)} ({hand_value(hand)})"


def compare_hands(player: List[str], dealer: List[str]) -> BlackjackResult:
    player_total = hand_value(player)
    dealer_total = hand_value(dealer)
    if player_total > 21:
        return BlackjackResult.PLAYER_BUST
    if dealer_total > 21:
        return BlackjackResult.DEALER_BUST
    if player_total > dealer_total:
        return BlackjackResult.PLAYER_WIN
    if player_total < dealer_total:
        return BlackjackResult.DEALER_WIN
    return BlackjackResult.PUSH


class BlackjackEngine:
    """
    Single-deck blackjack against a dealer who stands on 17.

    The stake is held (negative delta) when the cards are dealt; the
    return is credited when the hand resolves.
    """

    def __init__(self, rng: random.Random) -> None:
        self._rng = rng

    def play(self, session: GameSession, bet: Bet) -> Outcome:
        deck = new_deck()
        self._rng.shuffle(deck)

        player: List[str] = []
        dealer: List[str] = []
        for _ in range(2):
            player.append(deck.pop())
            dealer.append(deck.pop())

        data = {
            "deck": deck,
            "player": player,
            "dealer": dealer,
            "stake": str(bet.amount),
        }

        if is_natural(player) or is_natural(dealer):
            if is_natural(player) and is_natural(dealer):
                result = BlackjackResult.PUSH
            elif is_natural(player):
                result = BlackjackResult.PLAYER_WIN
            else:
                result = BlackjackResult.DEALER_WIN
            return self._settle(data, result, held=False)

        return Outcome(
            payout_delta=-bet.amount,
            description=self._table(data, hide_hole=True),
            finished=False,
            data=data,
            actions=[HIT, STAND],
        )

    def act(self, session: GameSession, action: str) -> Outcome:
        if "deck" not in session.data:
            raise StateConflict(f"Blackjack session {session.id} has not been dealt")

        data = {
            "deck": list(session.data["deck"]),
            "player": list(session.data["player"]),
            "dealer": list(session.data["dealer"]),
            "stake": session.data["stake"],
        }

        if action == HIT:
            data["player"].append(data["deck"].pop())
            total = hand_value(data["player"])
            if total > 21:
                return self._settle(data, BlackjackResult.PLAYER_BUST)
            if total < 21:
                return Outcome(
                    payout_delta=Decimal("0"),
                    description=self._table(data, hide_hole=True),
                    finished=False,
                    data=data,
                    actions=[HIT, STAND],
                )
            # 21: nothing left to decide, fall through to the dealer.
        elif action != STAND:
            raise InvalidField(f"Unknown blackjack action {action!r}")

        while hand_value(data["dealer"]) < DEALER_STANDS_ON:
            data["dealer"].append(data["deck"].pop())
        return self._settle(data, compare_hands(data["player"], data["dealer"]))

    def _settle(self, data: dict, result: BlackjackResult, held: bool = True) -> Outcome:
        stake = Decimal(data["stake"])
        returned = to_cents(stake * PAYOUT_MULTIPLIERS[result])
        # A hand that resolves on the deal never had its stake held.
        delta = returned if held else returned - stake
        data = dict(data, result=result.value)
        return Outcome(
            payout_delta=delta,
            description=f"{self._table(data)}\n{_RESULT_TEXT[result]}",
            finished=True,
            data=data,
        )

    @staticmethod
    def _table(data: dict, hide_hole: bool = False) -> str:
        return (
            f"Your hand: {format_hand(data['player'])}\n"
            f"Dealer: {format_hand(data['dealer'], hide_hole=hide_hole)}"
        )
