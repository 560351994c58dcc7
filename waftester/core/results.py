"""Aggregate of test outcomes, shared by every result worker."""

import math
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Set, Tuple

from waftester.core.models import (
    RunDescriptor, TestResult,
    PASS, FALSE_POSITIVE, FALSE_NEGATIVE, INVALID, ERROR,
)

_TIME_FMT = "%d %b %Y, %H:%M %Z"


@dataclass
class SetCounts:
    """Per test-set counters. Monotonic during the run, frozen by finalize()."""
    fp_count: int = 0
    fp_percent: float = 0.0
    fn_count: int = 0
    fn_percent: float = 0.0
    inv_count: int = 0
    err_count: int = 0
    passed_count: int = 0
    fail_percent: float = 0.0
    total_fp_tests: int = 0
    total_fn_tests: int = 0
    total_count: int = 0


@dataclass
class SetResult:
    locations: Dict[str, TestResult] = field(default_factory=dict)


@dataclass
class PayloadResult:
    line: int
    payload: str
    set_results: Dict[str, SetResult] = field(default_factory=dict)


@dataclass
class FileResult:
    failed_lines: List[int] = field(default_factory=list)
    payload_results: Dict[int, PayloadResult] = field(default_factory=dict)
    # (line, set, location) slots that produced a result of any kind
    exercised: Set[Tuple[int, str, str]] = field(default_factory=set)


def percent(count: int, total: int) -> float:
    """count/total as a percentage, two decimals, half away from zero."""
    if count == 0 or total == 0:
        return 0.0
    return math.floor(count / total * 10000 + 0.5) / 100


def _now() -> str:
    return datetime.now().astimezone().strftime(_TIME_FMT)


class Results:
    """Nested file -> line -> test set -> location store of non-pass results.

    One lock guards every mutation. finalize() runs after all workers joined
    and takes no lock.
    """

    def __init__(self, run: RunDescriptor):
        self.run = run
        self.start_time = _now()
        self.end_time = ""
        self._lock = threading.Lock()
        self.files: Dict[str, FileResult] = {f.name: FileResult() for f in run.files}
        self.set_counts: Dict[str, SetCounts] = {s.name: SetCounts() for s in run.test_sets}

    def add(self, result: TestResult) -> None:
        """Fold one result in. Pass results only move the counters."""
        with self._lock:
            counts = self.set_counts.setdefault(result.set_name, SetCounts())
            if result.test_type == FALSE_POSITIVE:
                counts.total_fp_tests += 1
            elif result.test_type == FALSE_NEGATIVE:
                counts.total_fn_tests += 1

            file_result = self.files.setdefault(result.file_name, FileResult())
            file_result.exercised.add((result.line, result.set_name, result.location))

            if result.outcome == PASS:
                counts.passed_count += 1
                return

            payload_result = file_result.payload_results.get(result.line)
            if payload_result is None:
                payload_result = PayloadResult(line=result.line, payload=result.payload)
                file_result.payload_results[result.line] = payload_result
            set_result = payload_result.set_results.setdefault(result.set_name, SetResult())

            if result.line not in file_result.failed_lines:
                file_result.failed_lines.append(result.line)
            set_result.locations[result.location] = result

            if result.outcome == FALSE_NEGATIVE:
                counts.fn_count += 1
            elif result.outcome == FALSE_POSITIVE:
                counts.fp_count += 1
            elif result.outcome == INVALID:
                counts.inv_count += 1
            elif result.outcome == ERROR:
                counts.err_count += 1

    def finalize(self) -> None:
        """Compute totals and percentages. Call once, after every worker exited."""
        for c in self.set_counts.values():
            c.total_count = c.total_fp_tests + c.total_fn_tests
            c.fp_percent = percent(c.fp_count, c.total_fp_tests)
            c.fn_percent = percent(c.fn_count, c.total_fn_tests)
            c.fail_percent = percent(c.fp_count + c.fn_count, c.total_count)
        self.end_time = _now()

    def to_dict(self) -> dict:
        files = {}
        for name, fr in self.files.items():
            files[name] = {
                str(line): {
                    "line": pr.line,
                    "payload": pr.payload,
                    "sets": {
                        set_name: {loc: r.to_dict() for loc, r in sr.locations.items()}
                        for set_name, sr in pr.set_results.items()
                    },
                }
                for line, pr in sorted(fr.payload_results.items())
            }
        return {
            "start_time": self.start_time,
            "end_time": self.end_time,
            "config": self.run.to_dict(),
            "set_counts": {name: vars(c).copy() for name, c in self.set_counts.items()},
            "files": files,
        }
