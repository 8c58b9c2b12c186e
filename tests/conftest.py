"""
Shared fixtures: a small pool directory, a ledger location, and fake
platform capabilities that copy with shutil and can be told to fail.
"""
import hashlib
import os
import shutil
import stat
import sys

import pytest

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
SRC = os.path.join(ROOT, "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from inplace_rebalance.core.config import RunConfig  # noqa: E402
from inplace_rebalance.core.constants import TMP_EXTENSION  # noqa: E402
from inplace_rebalance.core.errors import CopyError  # noqa: E402
from inplace_rebalance.core.ledger import Ledger  # noqa: E402
from inplace_rebalance.core.state import RunContext  # noqa: E402
from inplace_rebalance.lib.capabilities import Fingerprint  # noqa: E402

POOL_FILES = {
    "a.txt": b"alpha\n",
    os.path.join("sub", "b.txt"): b"bravo" * 100,
    os.path.join("sub", "c.bin"): bytes(range(256)),
}


class FakeCapabilities:
    """Records every call; mismatch_on holds originals whose copy fingerprints wrong."""

    def __init__(self, fail_copy=False, mismatch_on=()):
        self.fail_copy = fail_copy
        self.mismatch_on = set(mismatch_on)
        self.copies = []
        self.fingerprinted = []

    def copy_preserving_metadata(self, src, dest):
        self.copies.append((src, dest))
        if self.fail_copy:
            raise CopyError(f"simulated copy failure for {src}", path=src)
        shutil.copy2(src, dest)

    def fingerprint(self, path):
        self.fingerprinted.append(path)
        with open(path, "rb") as f:
            data = f.read()
        digest = hashlib.md5(data).hexdigest()
        if path.endswith(TMP_EXTENSION) and path[: -len(TMP_EXTENSION)] in self.mismatch_on:
            digest = "0" * 32
        return Fingerprint("", stat.filemode(os.stat(path).st_mode), "owner", "group", len(data), digest)


@pytest.fixture
def pool(tmp_path):
    """Pool root holding three files in two directories."""
    root = tmp_path / "pool"
    for rel, data in POOL_FILES.items():
        target = root / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
    return root


@pytest.fixture
def pool_files(pool):
    return sorted(str(pool / rel) for rel in POOL_FILES)


@pytest.fixture
def ledger_path(tmp_path):
    return tmp_path / "rebalance_db.txt"


@pytest.fixture
def make_config(pool, ledger_path):
    def _make(**overrides):
        settings = {"root_path": str(pool), "ledger_path": str(ledger_path)}
        settings.update(overrides)
        return RunConfig(**settings)
    return _make


@pytest.fixture
def fake_caps():
    return FakeCapabilities()


@pytest.fixture
def make_context(make_config, ledger_path):
    def _make(capabilities, ledger=None, **overrides):
        return RunContext(
            config=make_config(**overrides),
            ledger=ledger if ledger is not None else Ledger(ledger_path),
            capabilities=capabilities,
        )
    return _make
