"""Shared data models for the WAF tester."""

from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional

import httpx

# outcomes
PASS = "pass"
FALSE_POSITIVE = "falsePositive"
FALSE_NEGATIVE = "falseNegative"
INVALID = "invalid"
ERROR = "error"

LOCATIONS = ("header", "path", "queryarg", "body", "cookie")
POST_BODY_TYPES = ("urlencoded", "json", "raw")


class ConfigError(ValueError):
    """Bad run configuration. Fatal for the whole run."""


@dataclass
class Header:
    header: str
    value: str


@dataclass
class Condition:
    """Expected status code plus required response headers."""
    code: int = 0
    headers: List[Header] = field(default_factory=list)


@dataclass
class Location:
    """Where a payload gets injected: header, path, queryarg, body, cookie."""
    location: str
    key: str = ""


@dataclass
class PayloadFile:
    path: str
    test_type: str   # falsePositive / falseNegative
    name: str = ""   # "<parent>/<base>", aggregation key


@dataclass
class TestSet:
    __test__ = False

    name: str
    uri: str
    default_headers: Dict[str, List[str]] = field(default_factory=dict)
    allow_condition: Condition = field(default_factory=Condition)
    block_condition: Condition = field(default_factory=lambda: Condition(code=406))


@dataclass
class RunDescriptor:
    """Normalized configuration for a whole run. Read-only once built."""
    payload_dir: str = "payloads"
    urlencode_path: bool = False
    urlencode_query: bool = False
    urlencode_header: bool = False
    b64encode_cookie: bool = False
    postbody_type: str = "raw"
    locations: List[Location] = field(default_factory=list)
    files: List[PayloadFile] = field(default_factory=list)
    test_sets: List[TestSet] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = asdict(self)
        data.pop("files")
        return data


@dataclass
class TestInstance:
    """One (file, line, test set, location) combination ready to send."""
    __test__ = False

    file_name: str
    line: int
    payload: str
    set_name: str
    location: str
    test_type: str
    check_payload: str
    request: httpx.Request
    allow_condition: Condition
    block_condition: Condition


@dataclass
class TestResult:
    """Outcome of one test instance. Request/response dumps are empty on pass."""
    __test__ = False

    file_name: str
    line: int
    payload: str
    set_name: str
    location: str
    test_type: str
    outcome: str = ""
    request: str = ""
    response: str = ""

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "outcome": self.outcome,
            "request": self.request,
            "response": self.response,
        }
