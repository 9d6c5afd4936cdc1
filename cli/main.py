"""CLI entry point."""

import asyncio
import os
import sys
from pathlib import Path

from common.logging_config import setup_logging
from cli.config import Config
from cli.repl import repl_loop
from drive import config as drive_config
from drive.session import DriveSession


async def run(config: Config) -> None:
    session = DriveSession(config.to_drive_config())
    try:
        await repl_loop(session)
    finally:
        await session.aclose()


def main() -> None:
    """Entry point for CLI."""
    log_level = 'DEBUG' if '--debug' in sys.argv else os.getenv('LOG_LEVEL', 'WARNING')
    log_file = os.getenv('LOG_FILE')

    logger = setup_logging('cli', log_level=log_level, log_file=log_file)
    setup_logging('drive', log_level=log_level, log_file=log_file)
    setup_logging('ledger', log_level=log_level, log_file=log_file)

    if '--debug' in sys.argv:
        logger.info("Debug logging enabled")
        sys.argv.remove('--debug')

    config = Config(Path(drive_config.DATA_DIR) / 'config.json')

    logger.info("CLI starting...")
    try:
        asyncio.run(run(config))
    except Exception as e:
        logger.error(f"CLI error: {e}", exc_info=True)
        raise
    finally:
        logger.info("CLI exiting")


if __name__ == "__main__":
    main()
