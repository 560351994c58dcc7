"""Shared fixtures: run descriptors, payload files and stub transports."""

from pathlib import Path
from typing import Callable

import httpx
import pytest

from waftester.core.models import (
    Condition, Location, PayloadFile, RunDescriptor, TestSet,
    FALSE_POSITIVE, FALSE_NEGATIVE,
)
from waftester.parsers.payloads import logical_name
from waftester.reporters.console import Log


def write_payloads(tmp_path: Path, category_dir: str, name: str, lines: list[str]) -> PayloadFile:
    """Create a payload file under ``tmp_path/payloads/<category_dir>/``."""
    path = tmp_path / "payloads" / category_dir / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    test_type = FALSE_POSITIVE if "false_positive" in category_dir else FALSE_NEGATIVE
    return PayloadFile(path=str(path), test_type=test_type, name=logical_name(path))


def make_run(files: list[PayloadFile], locations: list[Location], **options) -> RunDescriptor:
    """Run descriptor with one test set named ``waf`` blocking with 403."""
    test_set = TestSet(
        name=options.pop("set_name", "waf"),
        uri=options.pop("uri", "http://waf.test:80/"),
        default_headers={"User-Agent": ["waftester-tests"]},
        allow_condition=options.pop("allow", Condition(code=200)),
        block_condition=options.pop("block", Condition(code=403)),
    )
    return RunDescriptor(locations=locations, files=files, test_sets=[test_set], **options)


class RecordingTransport(httpx.MockTransport):
    """MockTransport that remembers every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)

    @property
    def calls(self) -> int:
        return len(self.requests)


@pytest.fixture
def quiet_log() -> Log:
    return Log(verbose=-1)


@pytest.fixture
def status_transport() -> Callable[[int], RecordingTransport]:
    """Factory for a transport answering every request with one status code."""

    def _factory(status: int, headers: dict | None = None) -> RecordingTransport:
        return RecordingTransport(lambda request: httpx.Response(status, headers=headers or {}))

    return _factory
