"""
mattbot.bot.__main__ — Entry point for ``python -m mattbot.bot``
================================================================

Wiring:
1. Load .env (secrets).
2. Load config.yaml (settings).
3. Open the MattBucks ledger file.
4. Create the MattBot and hand it config + ledger.
5. Start the bot (blocking — runs the asyncio event loop).
"""

from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv

from mattbot.bot.core import MattBot
from mattbot.config import load_config
from mattbot.engine.ledger import Ledger

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("mattbot")


def main() -> None:
    """Bootstrap and run MattBot."""

    # 1. Environment variables (secrets).
    load_dotenv()

    token = os.getenv("DISCORD_TOKEN")
    if not token or token == "your-discord-bot-token-here":
        logger.critical(
            "DISCORD_TOKEN is not set.  "
            "Copy .env.example → .env and paste your bot token."
        )
        sys.exit(1)

    # 2. Settings.
    cfg = load_config(os.getenv("MATTBOT_CONFIG", "config.yaml"))
    logger.info(
        "Config loaded — %d booster guild(s), ledger at %s",
        len(cfg.booster_reward_guilds), cfg.ledger_path,
    )

    # 3. Ledger.
    ledger = Ledger.open(cfg.ledger_path)

    # 4. Bot.
    bot = MattBot(cfg=cfg, ledger=ledger)

    # 5. Run (blocks until Ctrl+C or SIGTERM).
    logger.info("Starting MattBot…")
    try:
        bot.run(token, log_handler=None)
    except KeyboardInterrupt:
        logger.info("Shutting down gracefully…")


if __name__ == "__main__":
    main()
