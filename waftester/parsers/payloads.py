"""Payload files: discovery, categorisation and line streaming."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

from waftester.core.models import ConfigError, PayloadFile, FALSE_POSITIVE, FALSE_NEGATIVE


def logical_name(path: str | Path) -> str:
    """Aggregation key for a payload file: ``<parent dir>/<base name>``."""
    p = Path(path)
    return f"{p.parent.name}/{p.name}"


def category_for(path: str | Path) -> str:
    s = Path(path).as_posix()
    if "false_positive" in s:
        return FALSE_POSITIVE
    if "false_negative" in s:
        return FALSE_NEGATIVE
    raise ConfigError(f"unknown test directory type: {s}")


def collect_payload_files(root: str | Path) -> list[PayloadFile]:
    """Walk *root* and return every payload file, sorted by path.

    Dot-files are skipped. A file outside a ``false_positive*`` or
    ``false_negative*`` directory is a configuration error.
    """
    root = Path(root)
    if not root.is_dir():
        raise ConfigError(f"payload directory does not exist: {root}")

    files: list[PayloadFile] = []
    for entry in sorted(root.rglob("*")):
        if not entry.is_file() or entry.name.startswith("."):
            continue
        files.append(PayloadFile(
            path=str(entry),
            test_type=category_for(Path(root.name) / entry.relative_to(root)),
            name=logical_name(entry),
        ))
    return files


def read_payloads(path: str | Path) -> Iterator[tuple[int, str]]:
    """Yield ``(line_number, payload)`` one line at a time, 1-based.

    Raises OSError if the file cannot be opened.
    """
    with open(path, "r", encoding="utf-8", errors="surrogateescape", newline="") as fh:
        for line_no, raw in enumerate(fh, start=1):
            yield line_no, raw.rstrip("\r\n")
