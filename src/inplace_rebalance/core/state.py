"""
state.py
- Per-run state handed to the orchestrator and the file rebalancer.
- Replaces ambient globals: progress counters, outcome tallies and the
  ledger all live on one RunContext for the lifetime of a run.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class RunContext:
    config: object
    ledger: object
    capabilities: object
    current_index: int = 0
    file_count: int = 0
    rebalanced: int = 0
    skipped_missing: int = 0
    skipped_pass_limit: int = 0

    def advance(self):
        """
        Move to the next file and return its progress percentage.

        Returns:
            float: current_index * 100 / file_count, rounded to two decimals.
        """
        self.current_index += 1
        return progress_percent(self.current_index, self.file_count)


@dataclass
class RunReport:
    file_count: int = 0
    processed: int = 0
    rebalanced: int = 0
    skipped_missing: int = 0
    skipped_pass_limit: int = 0
    progress: List[float] = field(default_factory=list)
    error: Optional[Exception] = None

    @property
    def ok(self):
        return self.error is None


def progress_percent(current_index, file_count):
    if file_count <= 0:
        return 100.0
    return round(current_index * 100 / file_count, 2)
