"""
filesystem.py
- Lists the regular files under a pool root (the rebalance work list).
- Detects temporary copies left behind by an interrupted run.
- Names ending in ".balance" are reserved for those copies: they are never
  rebalanced, and only deleted when the operator passes --cleanup-temp.
"""

import os
from dataclasses import dataclass

from loguru import logger

from inplace_rebalance.core.constants import TMP_EXTENSION
from inplace_rebalance.core.errors import RebalanceError


def is_temp_copy(path):
    return path.endswith(TMP_EXTENSION)


def _log_walk_error(error):
    logger.warning(f"[enumerate] Skipping unreadable directory {error.filename}: {error.strerror}")


def _walk_regular_files(root):
    for dirpath, dirnames, filenames in os.walk(root, onerror=_log_walk_error, followlinks=False):
        dirnames.sort()
        for name in sorted(filenames):
            path = os.path.join(dirpath, name)
            if os.path.isfile(path) and not os.path.islink(path):
                yield path


def enumerate_files(root):
    """
    Return every regular file below root, in walk order.

    Symlinks and temporary rebalance copies are excluded.

    Args:
        root (str): Directory to scan.

    Returns:
        list[str]: File paths joined onto root.
    """
    files = [path for path in _walk_regular_files(root) if not is_temp_copy(path)]
    logger.debug(f"[enumerate] Found {len(files)} file(s) under {root}")
    return files


@dataclass(frozen=True)
class OrphanedCopy:
    temp_path: str
    original_path: str
    original_exists: bool


def find_orphaned_copies(root):
    orphans = []
    for path in _walk_regular_files(root):
        if is_temp_copy(path):
            original = path[: -len(TMP_EXTENSION)]
            orphans.append(OrphanedCopy(path, original, os.path.isfile(original)))
    return orphans


def reconcile_orphaned_copies(root, cleanup=False):
    """
    Report, and optionally remove, leftovers of an interrupted run.

    A copy whose original still exists was never swapped in and is safe to
    delete. A copy without its original may be the only surviving data and
    is never touched.

    Args:
        root (str): Directory to scan.
        cleanup (bool): Delete copies whose original is intact.

    Returns:
        list[OrphanedCopy]: Every orphan found.
    """
    orphans = find_orphaned_copies(root)

    for orphan in orphans:
        if not orphan.original_exists:
            logger.error(
                f"[orphans] {orphan.temp_path} has no original; it may be the only copy. "
                f"Restore it manually with: mv '{orphan.temp_path}' '{orphan.original_path}'"
            )
        elif cleanup:
            try:
                os.remove(orphan.temp_path)
            except OSError as e:
                raise RebalanceError(f"Failed to remove leftover copy {orphan.temp_path}: {e}", path=orphan.temp_path) from e
            logger.info(f"[orphans] Removed leftover copy {orphan.temp_path}")
        else:
            logger.warning(
                f"[orphans] Leftover copy {orphan.temp_path} from an interrupted run "
                f"(original intact); {orphan.original_path} cannot be rebalanced until it is gone. "
                f"Rerun with --cleanup-temp to remove it"
            )

    return orphans
