from __future__ import annotations

import re
from dataclasses import dataclass

from domain.errors import InvalidField, MalformedToken
from domain.models import GameKind

DELIMITER = ":"
FIELD_COUNT = 5

_COMMAND_RE = re.compile(r"[a-z0-9]{1,32}")
_OWNER_RE = re.compile(r"[A-Za-z0-9]{1,32}")
_SESSION_RE = re.compile(r"[0-9a-f]{32}")
_ACTION_RE = re.compile(r"[a-z0-9]{1,16}")


def _check(name: str, value: str, pattern: re.Pattern) -> None:
    if not isinstance(value, str) or not pattern.fullmatch(value):
        raise InvalidField(f"Invalid token field {name}: {value!r}")


@dataclass(frozen=True)
class InteractionToken:
    """
    Composite identifier carried by every button and modal.

    Format: {command_name}:{owner_id}:{session_id}:{kind}:{action}

    Every field is checked on construction, so no field can ever contain
    the delimiter.
    """

    command_name: str
    owner_id: str
    session_id: str
    kind: GameKind
    action: str

    def __post_init__(self) -> None:
        _check("command_name", self.command_name, _COMMAND_RE)
        _check("owner_id", self.owner_id, _OWNER_RE)
        _check("session_id", self.session_id, _SESSION_RE)
        if not isinstance(self.kind, GameKind):
            raise InvalidField(f"Invalid token field kind: {self.kind!r}")
        _check("action", self.action, _ACTION_RE)

    def with_action(self, action: str) -> "InteractionToken":
        return InteractionToken(
            command_name=self.command_name,
            owner_id=self.owner_id,
            session_id=self.session_id,
            kind=self.kind,
            action=action,
        )


def encode_token(token: InteractionToken) -> str:
    return DELIMITER.join(
        [token.command_name, token.owner_id, token.session_id, token.kind.value, token.action]
    )


def decode_token(data: str) -> InteractionToken:
    parts = data.split(DELIMITER)
    if len(parts) != FIELD_COUNT:
        raise MalformedToken(f"Invalid interaction token: {data!r}")

    command_name, owner_id, session_id, kind, action = parts
    try:
        game_kind = GameKind(kind)
    except ValueError:
        raise InvalidField(f"Invalid token field kind: {kind!r}") from None

    return InteractionToken(
        command_name=command_name,
        owner_id=owner_id,
        session_id=session_id,
        kind=game_kind,
        action=action,
    )
