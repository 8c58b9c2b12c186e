"""
config.py
- Defines global configuration values derived from environment variables.
- Holds the immutable RunConfig shared by the orchestrator and rebalancer.
- Configures loguru and optional Sentry reporting for the CLI.
"""

import os
import sys
from dataclasses import dataclass

import sentry_sdk
from loguru import logger

from inplace_rebalance.core.constants import DEFAULT_CHECKSUM, DEFAULT_LEDGER_FILE, DEFAULT_PASSES

# --- Runtime Behavior Flags ---
DEBUG = os.getenv("DEBUG", "false").lower() == "true"

# --- Config Paths ---
LEDGER_PATH = os.getenv("REBALANCE_DB_FILE", os.path.join(".", DEFAULT_LEDGER_FILE))
CONFIG_PATH = os.getenv("REBALANCE_CONFIG", "")

# --- Error Reporting ---
SENTRY_DSN = os.getenv("SENTRY_DSN")

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


@dataclass(frozen=True)
class RunConfig:
    """Settings for one rebalance run. Never mutated once the run starts."""

    root_path: str
    checksum_enabled: bool = DEFAULT_CHECKSUM
    max_passes: int = DEFAULT_PASSES
    ledger_path: str = LEDGER_PATH
    cleanup_temp: bool = False
    debug: bool = DEBUG

    @property
    def tracks_passes(self):
        # 0 means unbounded: the ledger is neither read nor written
        return self.max_passes >= 1


def configure_logging(debug=DEBUG):
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if debug else "INFO",
        colorize=True,
        format=LOG_FORMAT,
    )


def init_error_reporting(dsn=SENTRY_DSN):
    """
    Initialise Sentry when a DSN is configured.

    Returns:
        bool: True if Sentry was initialised.
    """
    if not dsn:
        return False

    sentry_sdk.init(dsn=dsn, traces_sample_rate=0.0)
    logger.debug("[config] Sentry error reporting enabled")
    return True


def report_error(error):
    # No-op unless init_error_reporting() enabled Sentry
    sentry_sdk.capture_exception(error)
