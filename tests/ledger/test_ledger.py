import pytest

from cloudstep.ledger.file import FileLedger
from cloudstep.ledger.memory import MemoryLedger


def test_missing_file_is_empty_ledger(tmp_path):
    ledger = FileLedger(tmp_path / "state")
    assert ledger.completed() == set()
    assert not ledger.is_complete("anything")


def test_mark_complete_appends_one_line_per_id(tmp_path):
    path = tmp_path / "nested" / "state"
    ledger = FileLedger(path)
    ledger.mark_complete("system_updated")
    ledger.mark_complete("utilities_installed")
    ledger.mark_complete("system_updated")

    assert path.read_text() == "system_updated\nutilities_installed\n"
    assert ledger.order() == ["system_updated", "utilities_installed"]
    # a fresh instance sees the same records
    assert FileLedger(path).is_complete("utilities_installed")


def test_torn_last_line_is_not_glued_to_next_id(tmp_path):
    path = tmp_path / "state"
    path.write_text("system_updated\nutilities_installed")
    ledger = FileLedger(path)

    ledger.mark_complete("networking_configured")

    assert path.read_text() == "system_updated\nutilities_installed\nnetworking_configured\n"
    assert ledger.completed() == {"system_updated", "utilities_installed", "networking_configured"}


def test_blank_lines_and_padding_are_ignored(tmp_path):
    path = tmp_path / "state"
    path.write_text("\n  a  \n\nb\n")
    assert FileLedger(path).order() == ["a", "b"]


@pytest.mark.parametrize("bad", ["", "two words", "tab\tid", "line\nbreak"])
def test_ids_with_whitespace_are_rejected(tmp_path, bad):
    ledger = FileLedger(tmp_path / "state")
    with pytest.raises(ValueError):
        ledger.mark_complete(bad)
    assert not (tmp_path / "state").exists()


def test_reset_removes_file(tmp_path):
    path = tmp_path / "state"
    ledger = FileLedger(path)
    ledger.mark_complete("a")
    ledger.reset()
    assert not path.exists()
    assert ledger.completed() == set()
    ledger.reset()


def test_memory_ledger_matches_file_semantics():
    ledger = MemoryLedger(["a"])
    ledger.mark_complete("b")
    ledger.mark_complete("a")
    assert ledger.order() == ["a", "b"]
    with pytest.raises(ValueError):
        ledger.mark_complete("has space")
    ledger.reset()
    assert ledger.completed() == set()
