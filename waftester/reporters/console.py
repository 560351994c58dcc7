import threading
from datetime import datetime

from colorama import init as colorama_init, Fore, Style

from waftester.reporters.report import grade

colorama_init(autoreset=True)


def _printable(msg: str) -> str:
    # payloads may carry undecodable bytes
    return msg.encode("utf-8", "backslashreplace").decode("utf-8")


class Log:
    """Console logger. verbose: -1 silent, 0 warnings/errors, 1 info, 2 debug."""

    def __init__(self, verbose: int = 1):
        self.verbose = verbose
        self._lock = threading.Lock()

    def _time(self):
        return datetime.now().strftime("[%H:%M:%S]")

    def _fmt(self, level: str, color: str):
        return f"{self._time()} {color}[{level}]{Style.RESET_ALL}"

    def _emit(self, line: str):
        with self._lock:
            print(_printable(line))

    def info(self, msg: str):
        if self.verbose >= 1:
            self._emit(f"{self._fmt('INFO', Fore.CYAN)} {msg}")

    def warn(self, msg: str):
        if self.verbose >= 0:
            self._emit(f"{self._fmt('WARNING', Fore.YELLOW)} {msg}")

    def error(self, msg: str, **fields):
        if self.verbose >= 0:
            ctx = " ".join(f"{k}={v!r}" for k, v in fields.items())
            tail = f" {Style.DIM}{ctx}{Style.RESET_ALL}" if ctx else ""
            self._emit(f"{self._fmt('ERROR', Fore.RED)} {msg}{tail}")

    def ok(self, msg: str):
        if self.verbose >= 0:
            self._emit(f"{self._fmt('SUCCESS', Fore.GREEN)} {msg}")

    def debug(self, msg: str):
        if self.verbose >= 2:
            self._emit(f"{self._fmt('DEBUG', Fore.MAGENTA)} {msg}")

    def summary(self, report):
        """Per test-set table of counters from a finalized report."""
        if self.verbose < 0:
            return
        rows = [["TEST SET", "GRADE", "FAIL %", "FP", "FP %", "FN", "FN %", "INVALID", "ERROR", "TOTAL"]]
        for name in report.matrix.test_sets:
            c = report.results.set_counts[name]
            rows.append([
                name, grade(c.fail_percent), f"{c.fail_percent:.2f}",
                str(c.fp_count), f"{c.fp_percent:.2f}",
                str(c.fn_count), f"{c.fn_percent:.2f}",
                str(c.inv_count), str(c.err_count), str(c.total_count),
            ])
        widths = [max(len(r[i]) for r in rows) for i in range(len(rows[0]))]
        for i, row in enumerate(rows):
            line = " | ".join(v.ljust(widths[j]) for j, v in enumerate(row))
            self._emit(f"{Style.BRIGHT}{line}{Style.RESET_ALL}" if i == 0 else line)
