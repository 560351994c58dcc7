"""Outcome classification: did the WAF do what the test expected?"""

from typing import List, Optional

import httpx

from waftester.core.models import (
    Condition, Header,
    PASS, FALSE_POSITIVE, FALSE_NEGATIVE, INVALID,
)


def header_check(headers: List[Header], response: httpx.Response) -> bool:
    """True if every required header is present with at least one exact value."""
    for h in headers:
        values = response.headers.get_list(h.header)
        if not values:
            return False
        if h.value not in values:
            return False
    return True


def classify(
    response: Optional[httpx.Response],
    test_type: str,
    allow: Condition,
    block: Condition,
) -> str:
    """Return pass / falsePositive / falseNegative / invalid.

    Raises ValueError for an unknown test type; the caller turns that into an
    ``error`` result for this test only.
    """
    # never sent
    if response is None:
        return INVALID

    # actual == allow, expected == block
    if test_type == FALSE_NEGATIVE:
        if response.status_code != block.code:
            return FALSE_NEGATIVE
        if block.headers and not header_check(block.headers, response):
            return FALSE_NEGATIVE
        return PASS

    # actual == block, expected == allow
    if test_type == FALSE_POSITIVE:
        if response.status_code == block.code:
            return FALSE_POSITIVE
        if allow.headers and not header_check(allow.headers, response):
            return FALSE_POSITIVE
        return PASS

    raise ValueError(f"unknown test type {test_type!r}")
