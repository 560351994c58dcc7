"""JSON report output."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from waftester.core.results import Results
from waftester.reporters.matrix import ReportMatrix, build_matrix


def grade(fail_percent: float) -> str:
    """Letter grade for an overall failure percentage."""
    if fail_percent <= 1.0:
        return "A"
    if fail_percent <= 2.0:
        return "B"
    if fail_percent <= 3.0:
        return "C"
    if fail_percent <= 4.0:
        return "D"
    return "F"


@dataclass
class Report:
    """Finalized aggregate plus the matrix derived from it."""

    results: Results
    matrix: ReportMatrix

    @classmethod
    def from_results(cls, results: Results) -> "Report":
        return cls(results=results, matrix=build_matrix(results))

    def to_dict(self) -> dict:
        data = self.results.to_dict()
        for name, counts in data["set_counts"].items():
            counts["grade"] = grade(counts["fail_percent"])
        data["report"] = self.matrix.to_dict()
        return data


def write_json_report(report: Report, output_dir: str | Path) -> Path:
    """Write ``results.json`` under *output_dir*, creating it if needed."""
    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    out = out_dir / "results.json"
    out.write_text(json.dumps(report.to_dict(), indent=2) + "\n", encoding="utf-8")
    return out
