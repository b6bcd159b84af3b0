from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Union, runtime_checkable

from domain.errors import (
    GameError,
    InsufficientFunds,
    InvalidAmount,
    InvalidField,
    MalformedToken,
    NotFound,
    OwnershipMismatch,
    ParseError,
    StateConflict,
)

from .tokens import InteractionToken, decode_token

logger = logging.getLogger(__name__)

NO_LONGER_ACTIVE = "This game is no longer active."


@dataclass
class SlashCommand:
    name: str
    acting_user: str
    options: Dict[str, str] = field(default_factory=dict)


@dataclass
class ButtonClick:
    acting_user: str
    token: str


@dataclass
class ModalSubmit:
    acting_user: str
    token: str
    value: str


InteractionEvent = Union[SlashCommand, ButtonClick, ModalSubmit]


@dataclass
class IssuedButton:
    """A follow-up button: the encoded token plus a human-readable label."""

    token: str
    label: str


@dataclass
class ModalPrompt:
    token: str
    title: str
    input_label: str


@dataclass
class InteractionReply:
    """
    What the platform adapter should send back.

    The core never builds platform objects; the adapter turns this into
    a message, buttons or a modal.
    """

    success: bool
    text: str = ""
    title: Optional[str] = None
    error: Optional[GameError] = None
    buttons: List[IssuedButton] = field(default_factory=list)
    modal: Optional[ModalPrompt] = None
    ephemeral: bool = True


@runtime_checkable
class SlashCommandHandler(Protocol):
    name: str
    description: str

    async def on_slash_command(self, event: SlashCommand) -> InteractionReply:
        ...


@runtime_checkable
class ButtonHandler(Protocol):
    name: str

    async def on_button(self, event: ButtonClick, token: InteractionToken) -> InteractionReply:
        ...


@runtime_checkable
class ModalHandler(Protocol):
    name: str

    async def on_modal(self, event: ModalSubmit, token: InteractionToken) -> InteractionReply:
        ...


class HandlerRegistry:
    """
    Handlers grouped by the event kinds they can take, keyed by command name.

    Built once at start-up. A handler implementing several capabilities
    (slash + button + modal) is registered under each of them.
    """

    def __init__(self) -> None:
        self.slash_commands: Dict[str, SlashCommandHandler] = {}
        self.buttons: Dict[str, ButtonHandler] = {}
        self.modals: Dict[str, ModalHandler] = {}

    def register(self, handler: object) -> None:
        registered = False
        for capability, table in (
            (SlashCommandHandler, self.slash_commands),
            (ButtonHandler, self.buttons),
            (ModalHandler, self.modals),
        ):
            if isinstance(handler, capability):
                if handler.name in table:
                    raise ValueError(f"Duplicate handler for {handler.name!r}")
                table[handler.name] = handler
                registered = True
        if not registered:
            raise TypeError(f"{handler!r} does not handle any interaction kind")


def rejection(error: GameError, text: Optional[str] = None) -> InteractionReply:
    return InteractionReply(success=False, text=text or str(error), error=error)


class Dispatcher:
    """
    Routes inbound interaction events to their handlers.

    Tokens are decoded and their owner checked here, before any handler
    runs. Errors are mapped to replies:

    - malformed tokens and ownership mismatches: no reply (logged only)
    - bad bets and unreadable input: a rejection message
    - stale or unknown sessions: "this game is no longer active"
    """

    def __init__(self, registry: HandlerRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> HandlerRegistry:
        return self._registry

    async def dispatch(self, event: InteractionEvent) -> Optional[InteractionReply]:
        try:
            if isinstance(event, SlashCommand):
                handler = self._registry.slash_commands.get(event.name)
                if handler is None:
                    logger.warning("No handler for slash command %r", event.name)
                    return None
                return await handler.on_slash_command(event)

            if isinstance(event, ButtonClick):
                token = self._authorize(event.token, event.acting_user)
                button_handler = self._registry.buttons.get(token.command_name)
                if button_handler is None:
                    raise InvalidField(f"No button handler for {token.command_name!r}")
                return await button_handler.on_button(event, token)

            if isinstance(event, ModalSubmit):
                token = self._authorize(event.token, event.acting_user)
                modal_handler = self._registry.modals.get(token.command_name)
                if modal_handler is None:
                    raise InvalidField(f"No modal handler for {token.command_name!r}")
                return await modal_handler.on_modal(event, token)

            raise TypeError(f"Unsupported interaction event: {event!r}")

        except (MalformedToken, InvalidField, OwnershipMismatch) as exc:
            logger.warning(
                "Ignoring interaction from %s: %s", event.acting_user, exc
            )
            return None
        except (StateConflict, NotFound) as exc:
            logger.info("Stale interaction from %s: %s", event.acting_user, exc)
            return rejection(exc, NO_LONGER_ACTIVE)
        except (InsufficientFunds, InvalidAmount, ParseError) as exc:
            logger.info("Rejected interaction from %s: %s", event.acting_user, exc)
            return rejection(exc)

    @staticmethod
    def _authorize(raw_token: str, acting_user: str) -> InteractionToken:
        token = decode_token(raw_token)
        if token.owner_id != acting_user:
            raise OwnershipMismatch(
                f"Token for {token.owner_id} used by {acting_user} "
                f"(session {token.session_id})"
            )
        return token
