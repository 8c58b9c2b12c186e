"""
ledger.py
- Persists how many rebalance passes each file has completed.
- Store format is the flat text "database" of the original shell tool:
    <path>
    <count>
  repeated once per file. New paths are appended, existing counts rewritten.
- Lookups resolve to the first record for a path; records are never removed.

Not safe for concurrent runs against the same store: the file is read once
and rewritten without any locking.
"""

import os
from dataclasses import dataclass, replace
from pathlib import Path

from loguru import logger

from inplace_rebalance.core.errors import LedgerError

# Paths on POSIX are bytes; surrogateescape lets undecodable names round-trip.
ENCODING = "utf-8"
ENCODING_ERRORS = "surrogateescape"


@dataclass(frozen=True)
class LedgerEntry:
    path: str
    count: int


class Ledger:
    """
    Pass-count store keyed by file path.

    The file is created on the first increment(), never before, and loaded
    lazily on first use.
    """

    def __init__(self, path):
        self.path = Path(path)
        self._entries = None
        self._index = {}
        self._unterminated = False

    # --- Loading ---

    def _open(self, mode):
        return open(self.path, mode, encoding=ENCODING, errors=ENCODING_ERRORS, newline="\n")

    def _load(self):
        entries = []
        if self.path.exists():
            try:
                with self._open("r") as f:
                    lines = f.read().split("\n")
            except OSError as e:
                raise LedgerError(f"Failed to read ledger {self.path}: {e}") from e

            if lines and lines[-1] == "":
                lines.pop()
            elif lines:
                # Last count line has no newline; the next append must add one
                self._unterminated = True
            if len(lines) % 2:
                raise LedgerError(
                    f"Ledger {self.path} is truncated: record for {lines[-1]!r} has no count line"
                )

            for line_nr in range(0, len(lines), 2):
                file_path, raw_count = lines[line_nr], lines[line_nr + 1]
                try:
                    count = int(raw_count)
                except ValueError:
                    raise LedgerError(
                        f"Ledger {self.path} line {line_nr + 2}: invalid count {raw_count!r} for {file_path}"
                    ) from None
                if count < 0:
                    raise LedgerError(f"Ledger {self.path} line {line_nr + 2}: negative count for {file_path}")
                entries.append(LedgerEntry(file_path, count))

        self._entries = entries
        self._index = {}
        for position, entry in enumerate(entries):
            self._index.setdefault(entry.path, position)

        logger.debug(f"[ledger] Loaded {len(entries)} record(s) from {self.path}")

    def _ensure_loaded(self):
        if self._entries is None:
            self._load()

    # --- Queries ---

    def get_count(self, path):
        """
        Return the completed pass count for a file.

        Args:
            path (str): File path as produced by the enumerator.

        Returns:
            int: Count of the first matching record, or 0 if there is none.
        """
        self._ensure_loaded()
        position = self._index.get(path)
        if position is None:
            return 0
        return self._entries[position].count

    def entries(self):
        self._ensure_loaded()
        return list(self._entries)

    def __len__(self):
        self._ensure_loaded()
        return len(self._entries)

    def __contains__(self, path):
        self._ensure_loaded()
        return path in self._index

    # --- Mutation ---

    def increment(self, path):
        """
        Record one more completed pass for a file.

        Must only be called after the file has been replaced successfully.

        Returns:
            int: The new count.
        """
        if "\n" in path:
            raise LedgerError(f"Cannot record path containing a newline: {path!r}", path=path)

        self._ensure_loaded()
        position = self._index.get(path)

        if position is None:
            self._append(LedgerEntry(path, 1))
            return 1

        updated = replace(self._entries[position], count=self._entries[position].count + 1)
        entries = list(self._entries)
        entries[position] = updated
        self._rewrite(entries)
        self._entries = entries
        return updated.count

    def _append(self, entry):
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self._open("a") as f:
                if self._unterminated:
                    f.write("\n")
                f.write(f"{entry.path}\n{entry.count}\n")
        except OSError as e:
            raise LedgerError(f"Failed to append to ledger {self.path}: {e}", path=entry.path) from e

        self._unterminated = False
        self._index[entry.path] = len(self._entries)
        self._entries.append(entry)
        logger.debug(f"[ledger] Added {entry.path} with count {entry.count}")

    def _rewrite(self, entries):
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            with open(tmp_path, "w", encoding=ENCODING, errors=ENCODING_ERRORS, newline="\n") as f:
                for entry in entries:
                    f.write(f"{entry.path}\n{entry.count}\n")
            os.replace(tmp_path, self.path)
            self._unterminated = False
        except OSError as e:
            raise LedgerError(f"Failed to rewrite ledger {self.path}: {e}") from e
        logger.debug(f"[ledger] Rewrote {len(entries)} record(s) in {self.path}")
