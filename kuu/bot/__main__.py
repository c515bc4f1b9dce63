"""
kuu.bot.__main__ — Entry point for ``python -m kuu.bot``
========================================================

Wiring:
1. Load .env (secrets).
2. Load config.yaml (server IDs, schedule, game tuning).
3. Create the SQLAlchemy engine and ensure tables exist.
4. Create the KuuBot and hand it config + engine.
5. Start the bot (blocking — runs the asyncio event loop).

Run with::

    python -m kuu.bot
"""

from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv

from kuu.bot.core import KuuBot
from kuu.config import load_config
from kuu.database.engine import create_db_engine, init_db

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("kuu")


def main() -> None:
    """Bootstrap and run the Kuu bot."""

    # 1. Environment variables (secrets).
    load_dotenv()

    token = os.getenv("DISCORD_TOKEN")
    if not token or token == "your-discord-bot-token-here":
        logger.critical(
            "DISCORD_TOKEN is not set.  "
            "Copy .env.example → .env and paste your bot token."
        )
        sys.exit(1)

    # 2. Soft configuration.
    cfg = load_config(os.getenv("KUU_CONFIG", "config.yaml"))
    logger.info("Config loaded — guild %d, timezone %s", cfg.guild_id, cfg.timezone)

    # 3. Database.
    engine = create_db_engine()
    init_db(engine)

    # 4. Bot.
    bot = KuuBot(cfg=cfg, engine=engine)

    # 5. Run (blocks until Ctrl+C or SIGTERM).
    logger.info("Starting Kuu bot…")
    try:
        bot.run(token, log_handler=None)
    except KeyboardInterrupt:
        logger.info("Shutting down gracefully…")


if __name__ == "__main__":
    main()
