"""Tests for the per-location illegal character checks."""

import pytest

from waftester.checkers.validity import check_invalid_chars


@pytest.mark.parametrize(
    ("payload", "location", "message"),
    [
        ("' or user ¶ like'%", "header",
         "Invalid characters in payload based on RFC 7230: '¶'"),
        ("-2%20Union%20Select%201,2,3--", "cookie",
         "Invalid characters in payload based on RFC 2109: ','"),
        ("0^(locate#(0x61,(select id from users where num=1),1)=1)", "path",
         "Invalid characters in payload based on RFC 3986 and 1738: '#', ' '"),
        ("0^(locate(0x61,(select id from users where num=1),1)=1)", "queryarg",
         "Invalid characters in payload based on RFC 3986 and 1738: ' '"),
    ],
)
def test_invalid_payloads_report_rfc_and_distinct_chars(payload: str, location: str, message: str) -> None:
    """Verify each location rejects its illegal characters with an RFC diagnostic."""
    report = check_invalid_chars(payload, location)

    assert report.invalid is True
    assert report.message == message
    assert report.positions


def test_bell_character_in_header_is_invalid() -> None:
    """Verify a 0x07 byte in a header payload is flagged under RFC 7230."""
    report = check_invalid_chars("abc\x07def", "header")

    assert report.invalid
    assert "RFC 7230" in report.message
    assert report.positions == [3]


def test_multi_char_run_position_is_mean_of_bounds() -> None:
    """Verify a run of illegal characters reports the midpoint of its span."""
    report = check_invalid_chars("ab\x01\x02\x03cd", "header")

    assert report.message == "Invalid characters in payload based on RFC 7230: '\x01\x02\x03'"
    assert report.positions == [(2 + 5) // 2]


def test_duplicates_listed_once_in_first_seen_order() -> None:
    """Verify repeated illegal characters are deduplicated and keep order."""
    report = check_invalid_chars("a b;c d;e", "cookie")

    assert report.message == "Invalid characters in payload based on RFC 2109: ' ', ';'"
    assert len(report.positions) == 4


@pytest.mark.parametrize("location", ["body", "", "unknown"])
def test_locations_without_rules_are_always_valid(location: str) -> None:
    """Verify body and unknown locations skip the check."""
    report = check_invalid_chars("\x00\x07 <script>", location)

    assert report.invalid is False
    assert report.message == ""
    assert report.positions == []


def test_clean_payload_is_valid() -> None:
    """Verify a payload made of allowed characters passes every location."""
    for location in ("header", "path", "queryarg", "cookie"):
        assert check_invalid_chars("admin'/*", location).invalid is False
