import logging
import random

from application.commands import build_registry
from application.dispatcher import Dispatcher
from application.ledger import Ledger
from application.sessions import SessionStore
from config import load_settings
from domain.engines import build_engines
from infrastructure.db.player_repository_sqlite import SqlitePlayerRepository
from infrastructure.db.session_repository_sqlite import SqliteSessionRepository
from interfaces.discord.handlers import create_discord_bot


def main() -> None:
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if not settings.discord_token:
        raise RuntimeError("DISCORD_TOKEN environment variable is not set.")

    ledger = Ledger(SqlitePlayerRepository(settings.db_path), settings.starting_balance)
    sessions = SessionStore(SqliteSessionRepository(settings.db_path))
    engines = build_engines(random.Random(settings.rng_seed))
    dispatcher = Dispatcher(build_registry(ledger, sessions, engines))

    bot = create_discord_bot(dispatcher)
    bot.run(settings.discord_token, log_handler=None)


if __name__ == "__main__":
    main()
