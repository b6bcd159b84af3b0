from __future__ import annotations

import logging
from decimal import Decimal

from domain.errors import InsufficientFunds, InvalidAmount, NotFound
from domain.models import Bet, Player
from domain.repositories import PlayerRepository

from .locks import KeyedLocks

logger = logging.getLogger(__name__)


class Ledger:
    """
    Owns every player's balance.

    All balance changes for one user go through that user's lock, and a
    debit that would take the balance below zero is rejected before
    anything is written.
    """

    def __init__(self, player_repo: PlayerRepository, starting_balance: Decimal) -> None:
        if starting_balance < 0:
            raise InvalidAmount("Starting balance cannot be negative.")
        self._repo = player_repo
        self._starting_balance = starting_balance
        self._locks = KeyedLocks()

    def get_or_create(self, user_id: str) -> Player:
        player = self._repo.get_player(user_id)
        if player is not None:
            return player

        self._repo.add_player(Player(id=user_id, balance=self._starting_balance))
        player = self._repo.get_player(user_id)
        if player is None:
            raise NotFound(f"Player {user_id} could not be created")
        logger.info("Created player %s with balance %s", user_id, player.balance)
        return player

    def balance(self, user_id: str) -> Decimal:
        return self.get_or_create(user_id).balance

    async def debit(self, user_id: str, amount: Decimal) -> Decimal:
        async with self._locks.hold(user_id):
            player = self.get_or_create(user_id)
            if amount <= 0 or amount > player.balance:
                raise InsufficientFunds(
                    f"Cannot take {amount} from a balance of {player.balance}."
                )
            return self._repo.update_balance(user_id, -amount)

    async def credit(self, user_id: str, amount: Decimal) -> Decimal:
        if amount < 0:
            raise InvalidAmount(f"Cannot credit a negative amount ({amount}).")
        async with self._locks.hold(user_id):
            self.get_or_create(user_id)
            return self._repo.update_balance(user_id, amount)

    async def wager(self, user_id: str, bet: Bet, payout_delta: Decimal) -> Decimal:
        """
        Check `bet` against the balance and apply an engine's delta in one step.

        A game can never take more than the stake, so `payout_delta` must be
        at least `-bet.amount`.
        """

        if payout_delta < -bet.amount:
            raise InvalidAmount(f"Payout {payout_delta} exceeds the stake {bet.amount}.")
        async with self._locks.hold(user_id):
            player = self.get_or_create(user_id)
            check_bet(bet, player)
            if payout_delta == 0:
                return player.balance
            return self._repo.update_balance(user_id, payout_delta)

    async def rename(self, user_id: str, name: str) -> Player:
        async with self._locks.hold(user_id):
            self.get_or_create(user_id)
            self._repo.set_name(user_id, name)
            return self.get_or_create(user_id)


def check_bet(bet: Bet, player: Player) -> None:
    """Raise `InsufficientFunds` unless 0 < bet <= balance."""

    if bet.amount <= 0 or bet.amount > player.balance:
        raise InsufficientFunds(
            f"Bet {bet.amount} is not allowed with a balance of {player.balance}."
        )
