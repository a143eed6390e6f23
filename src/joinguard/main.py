"""
IRC Join Guard
==============

An IRC bot that checks the address of every user joining its channels against
a VPN/proxy/Tor/relay reputation service, quiets flagged users, and notifies
operators by private message.
"""

import os
import sys
from pathlib import Path

def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. JOINGUARD_HOME environment variable, if set.
    2. If running in a frozen/compiled context, use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("JOINGUARD_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]

BASE_DIR = resolve_base_dir()

import asyncio
import signal
from dotenv import load_dotenv

from joinguard.configuration.app_configuration import AppConfig
from joinguard.configuration.bot_settings import BotSettings
from joinguard.listener.irc_client import JoinguardClient
from joinguard.moderation.join_dispatcher import JoinDispatcher
from joinguard.moderation.join_handler import JoinHandler
from joinguard.reputation.address_resolver import AddressResolver
from joinguard.reputation.reputation_cache import ReputationCache
from joinguard.reputation.reputation_client import ReputationClient
from joinguard.scheduler.config_reload_scheduler import ConfigReloadScheduler
from joinguard.util.logger import get_logger, handle_exception


logger = get_logger("main")

SHUTDOWN_TIMEOUT = 10.0


def load_environment() -> None:
    """Load ``.env`` from the base directory so secrets reach the configuration."""
    load_dotenv(dotenv_path=BASE_DIR / ".env")


def load_configuration() -> AppConfig:
    """Load the YAML configuration and validate the settings required to run.

    Raises
    ------
    SystemExit
        If no IRC server or reputation API key is configured.
    """
    config = AppConfig(BASE_DIR / "config" / "app_config.yml")
    settings = config.settings
    if not settings.server:
        logger.critical("No IRC server configured (irc.server). Bot cannot start.")
        sys.exit(1)
    if not settings.api_key:
        logger.critical("No reputation API key configured (reputation.api_key or JOINGUARD_API_KEY). Bot cannot start.")
        sys.exit(1)
    return config


def resolve_cache_path(settings: BotSettings) -> Path:
    path = settings.cache_path
    return path if path.is_absolute() else BASE_DIR / path


def install_signal_handlers(stop_event: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            # Not supported on this platform; KeyboardInterrupt still applies.
            pass


async def shutdown_runtime(
    client: JoinguardClient,
    dispatcher: JoinDispatcher,
    scheduler: ConfigReloadScheduler,
) -> None:
    """Drain in-flight joins, stop background tasks, and disconnect."""
    try:
        await dispatcher.shutdown(timeout=SHUTDOWN_TIMEOUT)
    except Exception as exc:
        logger.exception("Error during join dispatcher shutdown: %s", exc)

    try:
        await scheduler.shutdown()
    except Exception as exc:
        logger.exception("Error during config reload shutdown: %s", exc)

    if client.connected:
        try:
            await client.quit("Shutting down")
        except Exception as exc:
            logger.exception("Error while disconnecting from IRC: %s", exc)

    logger.info("Shutdown complete.")


async def async_main() -> int:
    """Wire the pipeline together, connect to IRC and run until stopped.

    Returns
    -------
    int
        Process exit code reflecting success or failure of initialization.
    """
    load_environment()
    config = load_configuration()
    settings = config.settings

    cache = ReputationCache(resolve_cache_path(settings))
    await cache.load()

    resolver = AddressResolver(timeout=settings.resolver_timeout)
    reputation_client = ReputationClient(
        api_key=settings.api_key,
        url_template=settings.url_template,
        timeout=settings.reputation_timeout,
    )

    client = JoinguardClient(config)
    handler = JoinHandler(config, resolver, cache, reputation_client, transport=client)
    dispatcher = JoinDispatcher(handler)
    client.attach(dispatcher)

    scheduler = ConfigReloadScheduler(config, lambda: config.settings.reload_interval)

    stop_event = asyncio.Event()
    install_signal_handlers(stop_event)

    exit_code = 0
    try:
        logger.info("Connecting to %s:%d (tls=%s)…", settings.server, settings.port, settings.tls)
        await client.connect(
            hostname=settings.server,
            port=settings.port,
            tls=settings.tls,
            password=settings.password,
        )
        scheduler.start()
        await stop_event.wait()
    except asyncio.CancelledError:
        logger.info("Bot run cancelled; proceeding to shutdown")
    except Exception as exc:
        logger.critical("IRC runtime error: %s", exc)
        exit_code = 1
    finally:
        await shutdown_runtime(client, dispatcher, scheduler)

    return exit_code


def main() -> int:
    """Entrypoint that runs the async runtime and returns the process exit code."""
    sys.excepthook = handle_exception
    logger.info("Starting IRC Join Guard…")
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
    sys.exit(main())
