"""
entrypoint.py
- Command-line surface of the rebalancer.
- Usage:
    zfs-inplace-rebalance --checksum true --passes 1 /my/pool

- With no arguments, prints usage and exits 0.
- Exit codes: 0 completed run, 1 fatal abort, 2 bad arguments.
"""

import argparse
import sys

from loguru import logger

from inplace_rebalance.core.config import CONFIG_PATH, DEBUG, configure_logging, init_error_reporting, report_error
from inplace_rebalance.core.config_loader import load_yaml, resolve_run_config
from inplace_rebalance.runner.rebalance import run

USAGE = "zfs-inplace-rebalance --checksum true --passes 1 /my/pool"


def build_parser():
    parser = argparse.ArgumentParser(
        prog="zfs-inplace-rebalance",
        usage=USAGE,
        description="Rewrite every file under a pool root so its data is spread across all devices.",
        epilog=(
            "Names ending in .balance are reserved for temporary copies and are never rebalanced. "
            "Do not run more than one instance against the same pool or ledger at a time."
        ),
    )
    parser.add_argument("-c", "--checksum", default=None,
                        help="Verify each copy before replacing (1/on/true/yes, default: true)")
    parser.add_argument("-p", "--passes", type=int, default=None,
                        help="Rebalance each file at most N times; 0 disables pass tracking (default: 1)")
    parser.add_argument("--ledger", default=None,
                        help="Pass-count file (default: ./rebalance_db.txt or $REBALANCE_DB_FILE)")
    parser.add_argument("--config", default=CONFIG_PATH,
                        help="YAML file with default settings (default: $REBALANCE_CONFIG)")
    parser.add_argument("--cleanup-temp", action="store_true",
                        help="Delete every *.balance file whose original is intact (treats them as leftover copies)")
    parser.add_argument("--debug", action="store_true", help="Enable debug output")
    parser.add_argument("root_path", help="Directory whose files are rebalanced")
    return parser


def print_usage():
    print(f"Usage: {USAGE}")


def main(argv=None):
    """
    Parse arguments and run the rebalance.

    Returns:
        int: Process exit code.
    """
    if argv is None:
        argv = sys.argv[1:]
    if not argv:
        print_usage()
        return 0

    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.debug or DEBUG)

    try:
        file_config = load_yaml(args.config)
        config = resolve_run_config(args, file_config)
    except ValueError as e:
        parser.error(str(e))

    configure_logging(config.debug)
    init_error_reporting()

    report = run(config)
    if not report.ok:
        report_error(report.error)
        logger.error("[cli] Rebalance aborted; fix the cause and rerun to resume")
        return 1
    return 0
