"""
file_rebalancer.py
- Rewrites a single file in place so the allocator lays its blocks out anew.
- Runs an explicit state machine:
    START -> CHECK_EXISTS -> CHECK_PASS_LIMIT -> COPY -> VERIFY -> REPLACE -> RECORD -> DONE
  with early exits to SKIPPED (file gone, pass limit reached) and FAILED
  (any RebalanceError).
- A FAILED result carries the error instead of raising it; the orchestrator
  decides to halt.
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from loguru import logger

from inplace_rebalance.core.constants import TMP_EXTENSION
from inplace_rebalance.core.errors import CopyError, RebalanceError, ReplaceError, VerificationError


class State(Enum):
    START = "start"
    CHECK_EXISTS = "check_exists"
    CHECK_PASS_LIMIT = "check_pass_limit"
    COPY = "copy"
    VERIFY = "verify"
    REPLACE = "replace"
    RECORD = "record"
    DONE = "done"
    SKIPPED = "skipped"
    FAILED = "failed"


TERMINAL_STATES = {State.DONE, State.SKIPPED, State.FAILED}

SKIP_MISSING = "missing"
SKIP_PASS_LIMIT = "pass_limit"


@dataclass
class FileRecord:
    """Transient state of one rebalance attempt."""

    path: str
    skip_reason: Optional[str] = None

    @property
    def temp_path(self):
        return self.path + TMP_EXTENSION


@dataclass(frozen=True)
class RebalanceResult:
    path: str
    state: State
    reason: Optional[str] = None
    error: Optional[RebalanceError] = None

    @property
    def fatal(self):
        return self.state is State.FAILED

    @property
    def skipped(self):
        return self.state is State.SKIPPED


class FileRebalancer:
    """
    Applies the copy/verify/replace/record protocol to one file at a time.

    Args:
        ctx (RunContext): Supplies config, ledger and platform capabilities.
    """

    def __init__(self, ctx):
        self.ctx = ctx
        self._handlers = {
            State.START: self._start,
            State.CHECK_EXISTS: self._check_exists,
            State.CHECK_PASS_LIMIT: self._check_pass_limit,
            State.COPY: self._copy,
            State.VERIFY: self._verify,
            State.REPLACE: self._replace,
            State.RECORD: self._record,
        }

    def rebalance(self, path):
        """
        Drive one file to a terminal state.

        Returns:
            RebalanceResult: DONE, SKIPPED (with reason) or FAILED (with error).
        """
        record = FileRecord(path)
        state = State.START

        while state not in TERMINAL_STATES:
            try:
                state = self._handlers[state](record)
            except RebalanceError as e:
                logger.error(f"[rebalance] {state.value} failed for {path}: {e.message}")
                return RebalanceResult(path, State.FAILED, error=e)

        return RebalanceResult(path, state, reason=record.skip_reason)

    # --- State handlers ---

    def _start(self, record):
        return State.CHECK_EXISTS

    def _check_exists(self, record):
        # Files may vanish between enumeration and processing
        if not os.path.isfile(record.path):
            logger.warning(f"[rebalance] File is missing, skipping: {record.path}")
            record.skip_reason = SKIP_MISSING
            return State.SKIPPED
        return State.CHECK_PASS_LIMIT

    def _check_pass_limit(self, record):
        config = self.ctx.config
        if not config.tracks_passes:
            return State.COPY

        count = self.ctx.ledger.get_count(record.path)
        if count >= config.max_passes:
            logger.warning(f"[rebalance] Rebalance count ({config.max_passes}) reached, skipping: {record.path}")
            record.skip_reason = SKIP_PASS_LIMIT
            return State.SKIPPED
        return State.COPY

    def _copy(self, record):
        # Never overwrite an existing .balance file: it may be a leftover copy or user data
        if os.path.lexists(record.temp_path):
            raise CopyError(
                f"Temporary path {record.temp_path} already exists; move it aside or rerun with --cleanup-temp",
                path=record.path,
            )
        logger.info(f"[copy] Copying '{record.path}' to '{record.temp_path}'...")
        self.ctx.capabilities.copy_preserving_metadata(record.path, record.temp_path)
        return State.VERIFY

    def _verify(self, record):
        if not self.ctx.config.checksum_enabled:
            return State.REPLACE

        logger.info("[verify] Comparing original and copy...")
        capabilities = self.ctx.capabilities
        original = capabilities.fingerprint(record.path)
        copy = capabilities.fingerprint(record.temp_path)

        if original != copy:
            raise VerificationError(record.path, original, copy)

        logger.success(f"[verify] Fingerprint OK: {record.path}")
        return State.REPLACE

    def _replace(self, record):
        logger.info(f"[replace] Removing original '{record.path}'...")
        try:
            os.remove(record.path)
        except OSError as e:
            raise ReplaceError(f"Could not remove original {record.path}: {e}", path=record.path) from e

        logger.info(f"[replace] Renaming temporary copy to original '{record.path}'...")
        try:
            os.rename(record.temp_path, record.path)
        except OSError as e:
            raise ReplaceError(
                f"Original {record.path} was removed but renaming {record.temp_path} failed: {e}. "
                f"The data now only exists at {record.temp_path}",
                path=record.path,
            ) from e
        return State.RECORD

    def _record(self, record):
        if self.ctx.config.tracks_passes:
            count = self.ctx.ledger.increment(record.path)
            logger.debug(f"[ledger] {record.path} now at {count} pass(es)")
        return State.DONE
