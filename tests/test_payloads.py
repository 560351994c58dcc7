"""Tests for payload file discovery and line streaming."""

from pathlib import Path

import pytest

from waftester.core.models import ConfigError, FALSE_NEGATIVE, FALSE_POSITIVE
from waftester.parsers.payloads import category_for, collect_payload_files, logical_name, read_payloads


def test_collect_walks_tree_sorted_and_skips_dotfiles(tmp_path: Path) -> None:
    """Verify discovery recurses, sorts by path and ignores hidden files."""
    root = tmp_path / "payloads"
    for rel in ("false_positives/b.txt", "false_positives/a.txt",
                "false_negatives/sqli/union.txt", "false_negatives/.DS_Store"):
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("x\n", encoding="utf-8")

    files = collect_payload_files(root)

    assert [f.name for f in files] == ["sqli/union.txt", "false_positives/a.txt", "false_positives/b.txt"]
    assert [f.test_type for f in files] == [FALSE_NEGATIVE, FALSE_POSITIVE, FALSE_POSITIVE]


def test_file_outside_category_dir_is_rejected(tmp_path: Path) -> None:
    """Verify a payload file with no false_positive/false_negative parent is an error."""
    root = tmp_path / "payloads"
    (root / "misc").mkdir(parents=True)
    (root / "misc" / "stray.txt").write_text("x\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="unknown test directory type"):
        collect_payload_files(root)


def test_category_for() -> None:
    assert category_for("payloads/false_positives/a.txt") == FALSE_POSITIVE
    assert category_for("false_negative_extra/b.txt") == FALSE_NEGATIVE


def test_logical_name() -> None:
    """Verify the aggregation key is the parent directory plus base name."""
    assert logical_name("/a/b/false_positives/x.txt") == "false_positives/x.txt"


def test_read_payloads_numbers_lines_and_keeps_content(tmp_path: Path) -> None:
    """Verify lines are 1-based, line endings dropped and blank lines kept."""
    path = tmp_path / "p.txt"
    path.write_bytes(b"  spaced  \r\n\nlast\tline")

    assert list(read_payloads(path)) == [(1, "  spaced  "), (2, ""), (3, "last\tline")]


def test_read_payloads_keeps_undecodable_bytes(tmp_path: Path) -> None:
    """Verify invalid UTF-8 survives as surrogate escapes and round-trips to bytes."""
    path = tmp_path / "p.txt"
    path.write_bytes(b"caf\xe9\n")

    [(line, payload)] = list(read_payloads(path))
    assert line == 1
    assert payload.encode("utf-8", "surrogateescape") == b"caf\xe9"
