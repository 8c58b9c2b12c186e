"""
rebalance.py
- Orchestrates one rebalance run over a pool root.
- Enumerates files, reports progress, and drives the file rebalancer for
  each file strictly one after another.
- Halts on the first fatal result; nothing after it is touched.
"""

import os

from loguru import logger

from inplace_rebalance.core.errors import RebalanceError
from inplace_rebalance.core.ledger import Ledger
from inplace_rebalance.core.state import RunContext, RunReport
from inplace_rebalance.lib.capabilities import select_capabilities
from inplace_rebalance.lib.filesystem import enumerate_files, reconcile_orphaned_copies
from inplace_rebalance.lib.rebalance.file_rebalancer import SKIP_MISSING, SKIP_PASS_LIMIT, FileRebalancer, State


def _log_parameters(config, file_count):
    logger.info("[rebalance] Start rebalancing:")
    logger.info(f"[rebalance]   Path: {config.root_path}")
    logger.info(f"[rebalance]   Rebalancing Passes: {config.max_passes}")
    logger.info(f"[rebalance]   Use Checksum: {config.checksum_enabled}")
    logger.info(f"[rebalance]   File count: {file_count}")


def _tally(ctx, result):
    if result.state is State.DONE:
        ctx.rebalanced += 1
    elif result.reason == SKIP_MISSING:
        ctx.skipped_missing += 1
    elif result.reason == SKIP_PASS_LIMIT:
        ctx.skipped_pass_limit += 1


def process_files(ctx, files, progress_callback=None):
    """
    Rebalance files in order until done or a fatal result.

    Args:
        ctx (RunContext): Per-run state; current_index and counters are updated.
        files (list[str]): Work list from the enumerator.
        progress_callback: Optional callable(current_index, file_count, percent).

    Returns:
        RunReport
    """
    ctx.file_count = len(files)
    report = RunReport(file_count=ctx.file_count)
    rebalancer = FileRebalancer(ctx)

    for path in files:
        percent = ctx.advance()
        report.progress.append(percent)
        logger.info(f"[progress] Files: {ctx.current_index}/{ctx.file_count} ({percent:.2f}%)")
        if progress_callback:
            progress_callback(ctx.current_index, ctx.file_count, percent)

        result = rebalancer.rebalance(path)
        report.processed += 1
        _tally(ctx, result)

        if result.fatal:
            report.error = result.error
            break

    report.rebalanced = ctx.rebalanced
    report.skipped_missing = ctx.skipped_missing
    report.skipped_pass_limit = ctx.skipped_pass_limit
    return report


def run(config, capabilities=None, ledger=None, progress_callback=None):
    """
    Execute a full rebalance run.

    Args:
        config (RunConfig): Immutable run settings.
        capabilities: Platform copy/fingerprint implementation; selected
            for the running OS when omitted.
        ledger (Ledger): Pass-count store; opened at config.ledger_path when omitted.
        progress_callback: Forwarded to process_files().

    Returns:
        RunReport: report.error is set if the run aborted.
    """
    try:
        if capabilities is None:
            capabilities = select_capabilities()
        if not os.path.isdir(config.root_path):
            raise RebalanceError(f"Root path is not a directory: {config.root_path}", path=config.root_path)

        reconcile_orphaned_copies(config.root_path, cleanup=config.cleanup_temp)
        files = enumerate_files(config.root_path)
    except RebalanceError as e:
        logger.error(f"[rebalance] {e.message}")
        return RunReport(error=e)

    if ledger is None:
        ledger = Ledger(config.ledger_path)

    ctx = RunContext(config=config, ledger=ledger, capabilities=capabilities)
    _log_parameters(config, len(files))

    report = process_files(ctx, files, progress_callback=progress_callback)

    if report.ok:
        logger.success(
            f"[rebalance] Done! rebalanced={report.rebalanced} "
            f"skipped(pass limit)={report.skipped_pass_limit} skipped(missing)={report.skipped_missing}"
        )
    else:
        logger.error(
            f"[rebalance] Aborted after {report.processed}/{report.file_count} file(s): {report.error.message}"
        )
    return report
