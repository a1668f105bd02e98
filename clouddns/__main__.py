"""
clouddns/__main__.py

Responsibility: Process entry point. Sets up logging, loads settings and the
record configuration, runs one sync pass and returns the exit code.
Does NOT: schedule repeated runs; an external cron-like invoker does that.
"""

from __future__ import annotations

import asyncio
import sys

import structlog

from clouddns.config import load_dns_configuration, load_settings
from clouddns.exceptions import ConfigLoadError
from clouddns.logger import configure_logging
from clouddns.runner import run

logger = structlog.get_logger("clouddns")


def main() -> int:
    """
    Runs the DDNS client once.

    Returns:
        0 when the run completed, 1 when settings or configuration could not
        be loaded. Per-record and per-family failures are only logged.
    """
    configure_logging()

    try:
        settings = load_settings()
        configure_logging(settings.log_level, settings.log_format)
        logger.info("Starting DDNS client")
        configuration = load_dns_configuration(settings.config_path)
    except ConfigLoadError as exc:
        logger.error("Application failed", error=f"failed to load configuration: {exc}")
        return 1

    logger.info("Loaded configuration")
    asyncio.run(run(settings, configuration))
    logger.info("DDNS client finished")
    return 0


if __name__ == "__main__":
    sys.exit(main())
