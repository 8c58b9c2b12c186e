#!/usr/bin/env python3
"""
main.py
- Process entrypoint for the zfs-inplace-rebalance console script.
- Installs signal handlers, then hands off to the CLI.
"""

import signal
import sys

from loguru import logger

from inplace_rebalance.cli import entrypoint


def handle_exit(signum, frame):
    # A copy interrupted before its replace stays on disk as <file>.balance
    logger.warning(f"[main] Received signal {signum}. Exiting; rerun to resume.")
    sys.exit(128 + signum)


def main():
    signal.signal(signal.SIGINT, handle_exit)
    signal.signal(signal.SIGTERM, handle_exit)
    sys.exit(entrypoint.main())


if __name__ == "__main__":
    main()
