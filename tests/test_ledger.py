"""
Tests for the flat-file pass-count ledger.
"""
import pytest

from inplace_rebalance.core.errors import LedgerError
from inplace_rebalance.core.ledger import Ledger, LedgerEntry


def test_missing_store_reads_as_zero(ledger_path):
    ledger = Ledger(ledger_path)

    assert ledger.get_count("/pool/never-seen") == 0
    assert len(ledger) == 0
    # Created lazily, only on the first write
    assert not ledger_path.exists()


def test_first_increment_appends_record(ledger_path):
    ledger = Ledger(ledger_path)

    assert ledger.increment("/pool/a.txt") == 1

    assert ledger_path.read_text() == "/pool/a.txt\n1\n"
    assert ledger.get_count("/pool/a.txt") == 1
    assert "/pool/a.txt" in ledger


def test_count_matches_number_of_increments(ledger_path):
    ledger = Ledger(ledger_path)

    for _ in range(4):
        ledger.increment("/pool/a.txt")
    ledger.increment("/pool/b.txt")

    assert ledger.get_count("/pool/a.txt") == 4
    assert ledger.get_count("/pool/b.txt") == 1
    assert ledger_path.read_text() == "/pool/a.txt\n4\n/pool/b.txt\n1\n"


def test_counts_survive_restart(ledger_path):
    Ledger(ledger_path).increment("/pool/a.txt")
    Ledger(ledger_path).increment("/pool/a.txt")

    reopened = Ledger(ledger_path)
    assert reopened.get_count("/pool/a.txt") == 2
    assert reopened.entries() == [LedgerEntry("/pool/a.txt", 2)]


def test_lookup_uses_first_record(ledger_path):
    ledger_path.write_text("/pool/a.txt\n2\n/pool/b.txt\n1\n/pool/a.txt\n7\n")
    ledger = Ledger(ledger_path)

    assert ledger.get_count("/pool/a.txt") == 2

    assert ledger.increment("/pool/a.txt") == 3
    assert ledger_path.read_text() == "/pool/a.txt\n3\n/pool/b.txt\n1\n/pool/a.txt\n7\n"


def test_paths_with_spaces_round_trip(ledger_path):
    path = "/pool/My Movies/ trailing space "
    Ledger(ledger_path).increment(path)

    assert Ledger(ledger_path).get_count(path) == 1


def test_newline_in_path_is_rejected(ledger_path):
    ledger = Ledger(ledger_path)

    with pytest.raises(LedgerError):
        ledger.increment("/pool/evil\nname")
    assert not ledger_path.exists()


def test_invalid_count_is_fatal(ledger_path):
    ledger_path.write_text("/pool/a.txt\nnot-a-number\n")

    with pytest.raises(LedgerError, match="invalid count"):
        Ledger(ledger_path).get_count("/pool/a.txt")


def test_truncated_record_is_fatal(ledger_path):
    ledger_path.write_text("/pool/a.txt\n1\n/pool/b.txt\n")

    with pytest.raises(LedgerError, match="truncated"):
        Ledger(ledger_path).get_count("/pool/b.txt")


def test_unwritable_store_is_fatal(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    ledger = Ledger(blocker / "rebalance_db.txt")

    with pytest.raises(LedgerError):
        ledger.increment("/pool/a.txt")


def test_append_to_store_without_final_newline(ledger_path):
    ledger_path.write_text("/pool/a\n1")
    ledger = Ledger(ledger_path)

    assert ledger.increment("/pool/b") == 1

    assert ledger_path.read_text() == "/pool/a\n1\n/pool/b\n1\n"
    reopened = Ledger(ledger_path)
    assert reopened.entries() == [LedgerEntry("/pool/a", 1), LedgerEntry("/pool/b", 1)]


def test_rewrite_terminates_store_without_final_newline(ledger_path):
    ledger_path.write_text("/pool/a\n1")
    ledger = Ledger(ledger_path)

    ledger.increment("/pool/a")
    ledger.increment("/pool/b")

    assert ledger_path.read_text() == "/pool/a\n2\n/pool/b\n1\n"
