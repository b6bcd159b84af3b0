from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, List

from domain.engines import GameEngine
from domain.errors import InvalidField, OwnershipMismatch, ParseError, StateConflict
from domain.models import Bet, GameKind, GameSession, Outcome, SessionState

from .dispatcher import (
    ButtonClick,
    HandlerRegistry,
    InteractionReply,
    IssuedButton,
    ModalPrompt,
    ModalSubmit,
    SlashCommand,
    rejection,
)
from .ledger import Ledger, check_bet
from .sessions import SessionStore
from .tokens import InteractionToken, encode_token

logger = logging.getLogger(__name__)

START = "start"
BET = "bet"

NOT_DEALT = "Place your bet first."

MAX_NAME_LENGTH = 32

_TITLES = {
    GameKind.SLOT_MACHINE: "Slot Machine",
    GameKind.BLACKJACK: "Blackjack",
    GameKind.GENERIC: "Game",
}

_DESCRIPTIONS = {
    GameKind.SLOT_MACHINE: "start a slot machine game!",
    GameKind.BLACKJACK: "start a blackjack game!",
    GameKind.GENERIC: "start a game!",
}


def parse_bet(text: str) -> Bet:
    """
    Read a bet typed into the bet modal.

    Accepts thousands separators ("1,000") and at most two decimal places.
    """

    cleaned = (text or "").strip().replace(",", "")
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        raise ParseError(f"{text!r} is not a number.") from None
    if not amount.is_finite():
        raise ParseError(f"{text!r} is not a number.")
    if amount.as_tuple().exponent < -2:
        raise ParseError("Bets can have at most two decimal places.")
    return Bet(amount=amount)


class GameCommand:
    """
    Slash command, START button, bet modal and follow-up buttons for one game kind.

    Flow:
      /<kind>          -> new session, START button
      START            -> created -> awaiting_bet, bet modal
      bet modal        -> engine.play, ledger updated, resolved or in progress
      hit/stand/finish -> engine.act on an in-progress session
    """

    def __init__(
        self,
        kind: GameKind,
        engine: GameEngine,
        ledger: Ledger,
        sessions: SessionStore,
    ) -> None:
        self.kind = kind
        self.name = kind.value
        self.description = _DESCRIPTIONS[kind]
        self._engine = engine
        self._ledger = ledger
        self._sessions = sessions

    async def on_slash_command(self, event: SlashCommand) -> InteractionReply:
        self._ledger.get_or_create(event.acting_user)
        session = self._sessions.create(event.acting_user, self.kind)
        token = InteractionToken(
            command_name=self.name,
            owner_id=event.acting_user,
            session_id=session.id,
            kind=self.kind,
            action=START,
        )
        return InteractionReply(
            success=True,
            title=_TITLES[self.kind],
            text=f"<@{event.acting_user}> started a new game",
            buttons=[IssuedButton(token=encode_token(token), label="START")],
        )

    async def on_button(self, event: ButtonClick, token: InteractionToken) -> InteractionReply:
        async with self._sessions.lock(token.session_id):
            session = self._load(token, event.acting_user)

            if token.action == START:
                if session.state == SessionState.CREATED:
                    self._sessions.transition(
                        session.id, SessionState.CREATED, SessionState.AWAITING_BET
                    )
                elif session.state != SessionState.AWAITING_BET:
                    raise StateConflict(f"Game session {session.id} was already played")
                return InteractionReply(
                    success=True,
                    modal=ModalPrompt(
                        token=encode_token(token.with_action(BET)),
                        title="Bet",
                        input_label="Your Bet",
                    ),
                )

            if session.state != SessionState.IN_PROGRESS:
                if session.state in (SessionState.CREATED, SessionState.AWAITING_BET):
                    return rejection(
                        StateConflict(f"Game session {session.id} has no bet yet"),
                        NOT_DEALT,
                    )
                raise StateConflict(
                    f"Game session {session.id} is {session.state.value}, not in progress"
                )

            outcome = self._engine.act(session, token.action)
            self._sessions.save_data(session.id, outcome.data)
            if outcome.finished:
                self._sessions.retire(session.id)
            try:
                await self._apply_delta(session.owner_id, outcome.payout_delta)
            except Exception:
                logger.error(
                    "Ledger update of %s for %s failed after %r on session %s",
                    outcome.payout_delta,
                    session.owner_id,
                    token.action,
                    session.id,
                )
                if not outcome.finished:
                    self._sessions.save_data(session.id, session.data)
                raise
            return self._reply(token, session.owner_id, outcome)

    async def on_modal(self, event: ModalSubmit, token: InteractionToken) -> InteractionReply:
        if token.action != BET:
            raise InvalidField(f"Unexpected modal action {token.action!r}")

        async with self._sessions.lock(token.session_id):
            session = self._load(token, event.acting_user)
            if session.state != SessionState.AWAITING_BET:
                raise StateConflict(
                    f"Game session {session.id} is {session.state.value}, not awaiting a bet"
                )
            bet = parse_bet(event.value)

            # Reject before the engine draws anything.
            check_bet(bet, self._ledger.get_or_create(session.owner_id))
            outcome = self._engine.play(session, bet)

            # Session first, coins last: a failure below leaves the bet unplaced.
            self._sessions.transition(
                session.id, SessionState.AWAITING_BET, SessionState.IN_PROGRESS
            )
            try:
                self._sessions.save_data(session.id, outcome.data)
                await self._ledger.wager(session.owner_id, bet, outcome.payout_delta)
            except Exception:
                self._reopen(session)
                raise

            if outcome.finished:
                self._sessions.retire(session.id)
            logger.info(
                "%s bet %s on %s session %s (delta %s)",
                session.owner_id,
                bet.amount,
                self.kind.value,
                session.id,
                outcome.payout_delta,
            )
            return self._reply(token, session.owner_id, outcome)

    def _load(self, token: InteractionToken, acting_user: str) -> GameSession:
        session = self._sessions.get(token.session_id)
        if session.owner_id != acting_user:
            raise OwnershipMismatch(
                f"Session {session.id} belongs to {session.owner_id}, not {acting_user}"
            )
        if session.kind != token.kind:
            raise InvalidField(
                f"Session {session.id} is {session.kind.value}, token says {token.kind.value}"
            )
        return session

    def _reopen(self, session: GameSession) -> None:
        """Put a session whose bet could not be placed back to awaiting_bet."""

        try:
            self._sessions.save_data(session.id, session.data)
            self._sessions.transition(
                session.id, SessionState.IN_PROGRESS, SessionState.AWAITING_BET
            )
        except Exception:
            logger.exception("Could not reopen game session %s", session.id)

    async def _apply_delta(self, user_id: str, delta: Decimal) -> None:
        if delta > 0:
            await self._ledger.credit(user_id, delta)
        elif delta < 0:
            await self._ledger.debit(user_id, -delta)

    def _reply(self, token: InteractionToken, owner_id: str, outcome: Outcome) -> InteractionReply:
        buttons: List[IssuedButton] = []
        if not outcome.finished:
            buttons = [
                IssuedButton(token=encode_token(token.with_action(action)), label=action.upper())
                for action in outcome.actions
            ]

        balance = self._ledger.balance(owner_id)
        return InteractionReply(
            success=True,
            title=_TITLES[self.kind],
            text=f"{outcome.description}\nBalance: {balance}",
            buttons=buttons,
        )


class PlayerInfoCommand:
    name = "playerinfo"
    description = "show your balance"

    def __init__(self, ledger: Ledger) -> None:
        self._ledger = ledger

    async def on_slash_command(self, event: SlashCommand) -> InteractionReply:
        player = self._ledger.get_or_create(event.acting_user)
        shown = player.name or f"<@{player.id}>"
        return InteractionReply(
            success=True,
            title="Player info",
            text=f"{shown}\nBalance: {player.balance}",
        )


class SetNameCommand:
    name = "setname"
    description = "set the name shown for you at the table"

    def __init__(self, ledger: Ledger) -> None:
        self._ledger = ledger

    async def on_slash_command(self, event: SlashCommand) -> InteractionReply:
        name = (event.options.get("name") or "").strip()
        if not name or len(name) > MAX_NAME_LENGTH:
            raise ParseError(f"Name must be 1 to {MAX_NAME_LENGTH} characters.")

        player = await self._ledger.rename(event.acting_user, name)
        return InteractionReply(success=True, text=f"Your name is now {player.name}.")


def build_registry(
    ledger: Ledger,
    sessions: SessionStore,
    engines: Dict[GameKind, GameEngine],
) -> HandlerRegistry:
    """Assemble every command handler the bot knows about."""

    registry = HandlerRegistry()
    registry.register(PlayerInfoCommand(ledger))
    registry.register(SetNameCommand(ledger))
    for kind in GameKind:
        registry.register(GameCommand(kind, engines[kind], ledger, sessions))
    return registry
