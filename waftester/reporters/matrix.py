"""Comparison matrix: file -> failed line -> test set -> one cell per location."""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List

from waftester.core.models import FALSE_POSITIVE, FALSE_NEGATIVE, INVALID, ERROR
from waftester.core.results import Results


class Cell(IntEnum):
    NOT_RUN = -1
    PASS = 0
    FAILED = 1    # falsePositive / falseNegative
    INVALID = 2
    ERROR = 3

    @property
    def legacy(self) -> int:
        """Rendered value: "not run" and "pass" are both shown as 0."""
        return max(int(self), 0)


_OUTCOME_CELLS = {
    FALSE_POSITIVE: Cell.FAILED,
    FALSE_NEGATIVE: Cell.FAILED,
    INVALID: Cell.INVALID,
    ERROR: Cell.ERROR,
}


@dataclass
class RowReport:
    line: int
    payload: str
    cells: Dict[str, List[Cell]] = field(default_factory=dict)  # set name -> per location

    def legacy(self) -> Dict[str, List[int]]:
        return {name: [c.legacy for c in cells] for name, cells in self.cells.items()}


@dataclass
class FileReport:
    file_name: str
    rows: List[RowReport] = field(default_factory=list)


@dataclass
class ReportMatrix:
    test_sets: List[str]
    locations: List[str]
    files: List[FileReport]

    def to_dict(self) -> dict:
        return {
            "test_sets": self.test_sets,
            "locations": self.locations,
            "matrix": [
                {
                    "file": f.file_name,
                    "rows": [
                        {"line": r.line, "payload": r.payload, "sets": r.legacy()}
                        for r in f.rows
                    ],
                }
                for f in self.files
            ],
        }


def build_matrix(results: Results) -> ReportMatrix:
    """Order-stable matrix of every line with at least one non-pass result.

    Test sets, locations and files are sorted lexicographically, lines
    ascending. Cells with no stored failure are PASS when the slot ran and
    NOT_RUN otherwise.
    """
    run = results.run
    locations = sorted({l.location for l in run.locations})
    test_sets = sorted({s.name for s in run.test_sets})

    files = []
    for file_name in sorted(results.files):
        file_result = results.files[file_name]
        rows = []
        for line in sorted(file_result.failed_lines):
            payload_result = file_result.payload_results.get(line)
            if payload_result is None:
                continue
            cells = {}
            for set_name in test_sets:
                set_result = payload_result.set_results.get(set_name)
                stored = set_result.locations if set_result else {}
                row = []
                for loc in locations:
                    if loc in stored:
                        row.append(_OUTCOME_CELLS.get(stored[loc].outcome, Cell.PASS))
                    elif (line, set_name, loc) in file_result.exercised:
                        row.append(Cell.PASS)
                    else:
                        row.append(Cell.NOT_RUN)
                cells[set_name] = row
            rows.append(RowReport(line=line, payload=payload_result.payload, cells=cells))
        files.append(FileReport(file_name=file_name, rows=rows))

    return ReportMatrix(test_sets=test_sets, locations=locations, files=files)
