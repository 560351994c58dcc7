"""Tests for outcome classification and response header matching."""

import httpx
import pytest

from waftester.checkers.outcome import classify, header_check
from waftester.core.models import (
    Condition, Header,
    PASS, FALSE_POSITIVE, FALSE_NEGATIVE, INVALID,
)

REQUIRED = [Header("Foo", "Bar"), Header("Lorem", "Ipsum")]


def _response(status: int, headers: list[tuple[str, str]] | None = None) -> httpx.Response:
    base = [
        ("Content-Type", "text/html"),
        ("Cache-Control", "no-store"),
        ("Cache-Control", "no-cache"),
        ("Server", "Apache/2.4.7 (Ubuntu)"),
    ]
    return httpx.Response(status, headers=base + (headers or []))


def test_missing_response_is_invalid() -> None:
    """Verify a request that was never sent classifies as invalid."""
    assert classify(None, FALSE_NEGATIVE, Condition(), Condition(code=403)) == INVALID


@pytest.mark.parametrize(
    ("status", "headers", "block", "expected"),
    [
        (200, None, Condition(code=403), FALSE_NEGATIVE),
        (406, None, Condition(code=406, headers=REQUIRED), FALSE_NEGATIVE),
        (406, None, Condition(code=406), PASS),
        (406, [("Foo", "Bar"), ("Lorem", "Ipsum")], Condition(code=406, headers=REQUIRED), PASS),
    ],
)
def test_false_negative_tests(status, headers, block, expected) -> None:
    """Verify malicious payloads must come back with the block code and headers."""
    assert classify(_response(status, headers), FALSE_NEGATIVE, Condition(), block) == expected


@pytest.mark.parametrize(
    ("status", "headers", "allow", "expected"),
    [
        (406, None, Condition(code=200), FALSE_POSITIVE),
        (200, None, Condition(code=200, headers=REQUIRED), FALSE_POSITIVE),
        (200, [("Foo", "Bar"), ("Lorem", "Ipsum")], Condition(code=200, headers=REQUIRED), PASS),
        (302, None, Condition(code=200), PASS),
    ],
)
def test_false_positive_tests(status, headers, allow, expected) -> None:
    """Verify benign payloads fail only on the block code or missing allow headers."""
    assert classify(_response(status, headers), FALSE_POSITIVE, allow, Condition(code=406)) == expected


def test_unknown_test_type_raises() -> None:
    """Verify an unknown category is an error for the caller, not an outcome."""
    with pytest.raises(ValueError):
        classify(_response(200), "sideways", Condition(), Condition(code=406))


def test_header_check_requires_every_header() -> None:
    """Verify removing any one required header flips the check to false."""
    full = [("Foo", "Bar"), ("Lorem", "Ipsum"), ("Extra", "x")]
    assert header_check(REQUIRED, _response(200, full)) is True

    for missing in ("Foo", "Lorem"):
        partial = [h for h in full if h[0] != missing]
        assert header_check(REQUIRED, _response(200, partial)) is False


def test_header_check_matches_any_value_exactly() -> None:
    """Verify one exact value among several is enough and comparison is case-sensitive."""
    multi = [("Foo", "World"), ("Foo", "Bar"), ("Lorem", "Ipsum")]
    assert header_check(REQUIRED, _response(200, multi)) is True

    wrong_case = [("Foo", "bar"), ("Lorem", "Ipsum")]
    assert header_check(REQUIRED, _response(200, wrong_case)) is False


def test_header_check_with_no_requirements_is_true() -> None:
    """Verify an empty requirement list always matches."""
    assert header_check([], _response(500)) is True
