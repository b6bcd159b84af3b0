from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    discord_token: Optional[str]
    db_path: str
    starting_balance: Decimal
    log_level: str
    rng_seed: Optional[int]


def load_settings() -> Settings:
    """Read settings from the environment, after loading any `.env` file."""

    load_dotenv()

    raw_balance = os.environ.get("STARTING_BALANCE", "1000")
    try:
        starting_balance = Decimal(raw_balance)
    except InvalidOperation:
        raise RuntimeError(f"STARTING_BALANCE must be a number, got {raw_balance!r}.") from None
    if not starting_balance.is_finite() or starting_balance < 0:
        raise RuntimeError("STARTING_BALANCE must be a non-negative number.")

    raw_seed = os.environ.get("RNG_SEED")
    try:
        rng_seed = int(raw_seed) if raw_seed else None
    except ValueError:
        raise RuntimeError(f"RNG_SEED must be an integer, got {raw_seed!r}.") from None

    return Settings(
        discord_token=os.environ.get("DISCORD_TOKEN"),
        db_path=os.environ.get("DB_PATH", "casino.db"),
        starting_balance=starting_balance,
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        rng_seed=rng_seed,
    )
