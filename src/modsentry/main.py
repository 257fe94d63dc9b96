"""
ModSentry Discord Bot
=====================

A Discord bot that screens guild messages with an obfuscation-resistant
banned-word filter (leetspeak, spacing tricks, look-alike characters and
Georgian typed on a Latin keyboard) and applies each server's configured
action to offending messages.
"""

import os
import sys
from pathlib import Path


def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. MODSENTRY_HOME environment variable, if set.
    2. If running in a frozen/compiled context (e.g., PyInstaller, Nuitka), use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("MODSENTRY_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]


BASE_DIR = resolve_base_dir()

import asyncio
from dataclasses import dataclass
from typing import Optional

import discord
from dotenv import load_dotenv

from modsentry.configuration.app_configuration import AppConfig
from modsentry.database.db_connection import ConnectionManager
from modsentry.moderation.action_executor import ActionPolicy
from modsentry.moderation.moderation_engine import ContentModerationEngine
from modsentry.repositories.bad_word_repo import BadWordRepository
from modsentry.repositories.violation_log_repo import ViolationLogRepository
from modsentry.settings.moderation_settings_manager import ModerationSettingsManager
from modsentry.settings.repositories.moderation_settings_repo import ModerationSettingsRepository
from modsentry.util.logger import get_logger, handle_exception


logger = get_logger("main")


@dataclass
class Runtime:
    """Everything the bot needs at runtime, built once at startup."""

    config: AppConfig
    db: ConnectionManager
    engine: ContentModerationEngine
    violation_log: ViolationLogRepository
    policy: ActionPolicy


def load_environment(base_dir: Path = BASE_DIR) -> str:
    """Load environment variables and return the Discord bot token.

    Raises
    ------
    SystemExit
        If the required ``DISCORD_BOT_TOKEN`` variable is missing.
    """
    load_dotenv(dotenv_path=base_dir / ".env")
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.critical("'DISCORD_BOT_TOKEN' environment variable not set. Bot cannot start.")
        sys.exit(1)
    return token


def build_intents() -> discord.Intents:
    """Intents for reading guild message content and member roles."""
    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True
    intents.messages = True
    intents.members = True
    return intents


async def build_runtime(base_dir: Path = BASE_DIR, config: Optional[AppConfig] = None) -> Runtime:
    """Open the database and build the engine with its stores and settings.

    Parameters
    ----------
    base_dir:
        Project directory holding ``config/app_config.yml``.
    config:
        Preloaded configuration; read from ``base_dir`` when omitted.
    """
    config = config or AppConfig(base_dir / "config" / "app_config.yml")

    db = ConnectionManager()
    await db.open(config.database_path)

    settings_manager = ModerationSettingsManager(
        ModerationSettingsRepository(db),
        default_sensitivity=config.default_sensitivity,
    )
    engine = ContentModerationEngine(
        BadWordRepository(db),
        settings_manager=settings_manager,
        cache_ttl_seconds=config.word_cache_ttl_seconds,
    )
    await engine.init()

    return Runtime(
        config=config,
        db=db,
        engine=engine,
        violation_log=ViolationLogRepository(db),
        policy=ActionPolicy.from_config(config),
    )


def load_cogs(discord_bot_instance: discord.Bot, runtime: Runtime) -> None:
    """Register all operational cogs with the provided Discord bot instance."""
    from modsentry.bot.cogs import content_filter_cmds, message_listener

    message_listener.setup(discord_bot_instance, runtime.engine, runtime.violation_log, runtime.policy)
    content_filter_cmds.setup(discord_bot_instance, runtime.engine)

    logger.info("All cogs loaded successfully.")


def create_bot(runtime: Runtime) -> discord.Bot:
    """Instantiate the Discord bot and register all cogs."""
    bot = discord.Bot(intents=build_intents())
    load_cogs(bot, runtime)
    return bot


async def start_bot(bot: discord.Bot, token: str) -> None:
    """Start the Discord bot and handle lifecycle logging around the connection."""
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    finally:
        logger.info("Discord bot start routine finished.")


async def shutdown_runtime(bot: Optional[discord.Bot], runtime: Optional[Runtime]) -> None:
    """Stop the bot, flush pending settings writes and close the database, in that order."""
    if bot is not None and not bot.is_closed():
        try:
            await bot.close()
        except Exception as exc:
            logger.exception("Error while closing the Discord client: %s", exc)

    if runtime is not None:
        try:
            await runtime.engine.shutdown()
        except Exception as exc:
            logger.exception("Error during moderation engine shutdown: %s", exc)

        try:
            await runtime.db.close()
        except Exception as exc:
            logger.exception("Error while closing the database: %s", exc)

    logger.info("Shutdown complete.")


async def async_main() -> int:
    """Bootstrap the database, engine and bot, returning an exit code."""
    token = load_environment()

    try:
        logger.info("Initializing database and loading moderation settings...")
        runtime = await build_runtime()
    except Exception as exc:
        logger.critical("Failed to initialize database: %s", exc)
        return 1

    try:
        bot = create_bot(runtime)
    except Exception as exc:
        logger.critical("Failed to initialize Discord bot: %s", exc)
        await shutdown_runtime(None, runtime)
        return 1

    exit_code = 0
    try:
        await start_bot(bot, token)
    except Exception as exc:
        logger.critical("Discord bot runtime error: %s", exc)
        exit_code = 1
    finally:
        await shutdown_runtime(bot, runtime)

    return exit_code


def main() -> int:
    """Entrypoint that orchestrates the async runtime and returns the process code."""
    sys.excepthook = handle_exception
    os.chdir(BASE_DIR)
    logger.info("Starting ModSentry…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except SystemExit as exit_exc:
        code = exit_exc.code
        if isinstance(code, int):
            return code
        return 1
    except Exception as exc:
        logger.critical("An unexpected error occurred while running the bot: %s", exc)
        return 1


if __name__ == "__main__":
    print(f"Exited with code: {main()}")
