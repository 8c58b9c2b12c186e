"""
errors.py
- Exception hierarchy for fatal rebalance conditions.
- Every RebalanceError aborts the run; skips are not exceptions.
"""


class RebalanceError(Exception):
    """Base class for all conditions that abort a rebalance run."""

    def __init__(self, message, path=None):
        self.message = message
        self.path = path
        super().__init__(message)


class CopyError(RebalanceError):
    """Raised when the temporary copy could not be created."""


class VerificationError(RebalanceError):
    """Raised when the original and its copy fingerprint differently."""

    def __init__(self, path, original, copy):
        self.original = original
        self.copy = copy
        super().__init__(f"Fingerprint mismatch for {path}: {original} != {copy}", path=path)


class ReplaceError(RebalanceError):
    """Raised when deleting the original or renaming the copy into place fails."""


class LedgerError(RebalanceError):
    """Raised when the ledger store cannot be read or written."""


class UnsupportedPlatformError(RebalanceError):
    """Raised when no copy/fingerprint implementation exists for this OS."""

    def __init__(self, platform):
        self.platform = platform
        super().__init__(f"Unsupported OS type: {platform}")
