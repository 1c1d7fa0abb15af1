"""Process entry point: config, logging, services, server, signals."""

import argparse
import asyncio
import signal

from .config import load_config, validate_config
from .config.loaders import DEFAULT_CONFIG_PATH
from .core.conversation_store import ConversationStore
from .errors import ConfigError
from .intents import build_router
from .logging_config import configure_logging, get_logger
from .metrics import start_metrics_server
from .server import RelayServer
from .services import build_services

logger = get_logger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="ESP32 voice assistant relay")
    parser.add_argument(
        "-c",
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help="Path to the YAML configuration file (default: %(default)s)",
    )
    return parser.parse_args(argv)


async def main(config_path: str = DEFAULT_CONFIG_PATH):
    config = load_config(config_path)
    configure_logging(log_level=config.logging.level.upper())

    errors, warnings = validate_config(config)
    if errors:
        logger.error("Configuration validation failed", errors=errors, warnings=warnings)
        raise ConfigError(f"Configuration errors: {errors}")
    if warnings:
        logger.warning("Configuration warnings", warnings=warnings)
    logger.info("Configuration validation passed", stt_provider=config.stt_provider)

    store = ConversationStore(path=config.memory.path, max_history=config.memory.max_history)
    if config.memory.scope == "process":
        store.load()

    services = build_services(config)
    await services.start()
    router = build_router(config, services)
    server = RelayServer(config, services, router, store)

    if config.server.metrics_port:
        start_metrics_server(config.server.metrics_port)

    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, shutdown_event.set)

    await server.start()
    try:
        await shutdown_event.wait()
    finally:
        await server.stop()
        await services.stop()


def run(argv=None) -> None:
    args = parse_args(argv)
    try:
        asyncio.run(main(args.config))
    except KeyboardInterrupt:
        pass
    finally:
        logger.info("Voice relay has shut down.")


if __name__ == "__main__":
    run()
