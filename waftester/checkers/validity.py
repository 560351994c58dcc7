"""Pre-flight check for characters that cannot legally appear at an injection point.

A payload that fails here is never sent; the worker records it as ``invalid``
with the diagnostic below as the would-be response.
"""

import re
from typing import List, NamedTuple


class ValidityReport(NamedTuple):
    invalid: bool
    message: str
    positions: List[int]


# location category -> (illegal character class, governing RFC)
_RULES = {
    # printable ASCII only
    "header": (re.compile(r"[^\x20-\x7E]+"), "RFC 7230"),
    # a-z A-Z 0-9 . - _ ~ ! $ & ' ( ) * + , ; = : @ % plus the rest of 0x24-0x7E
    "path": (re.compile(r"[^!\x24-\x7E]+"), "RFC 3986 and 1738"),
    "queryarg": (re.compile(r"[^!\x24-\x7E]+"), "RFC 3986 and 1738"),
    # alphanum + !#$%&'()*+-./:<=>?@[]^_`{|}~
    "cookie": (re.compile(r"[^!\x23-\x2B\x2D-\x3A\x3C-\x5B\x5D-\x7E]"), "RFC 2109"),
}

_VALID = ValidityReport(False, "", [])


def _positions(matches) -> List[int]:
    """One position per match: the mean of its boundaries."""
    out = []
    for m in matches:
        bounds = m.span()
        out.append(sum(bounds) // len(bounds))
    return out


def check_invalid_chars(payload: str, location: str) -> ValidityReport:
    """Return whether *payload* holds characters illegal for *location*.

    The message lists each distinct illegal substring once, in order of first
    appearance, e.g. ``Invalid characters in payload based on RFC 7230: '\\x07'``.
    Locations without a rule (body) are always valid.
    """
    rule = _RULES.get(location.lower())
    if rule is None:
        return _VALID
    regex, rfc = rule

    matches = list(regex.finditer(payload))
    if not matches:
        return _VALID

    seen: List[str] = []
    for m in matches:
        if m.group(0) not in seen:
            seen.append(m.group(0))

    chars = ", ".join(f"'{s}'" for s in seen)
    message = f"Invalid characters in payload based on {rfc}: {chars}"
    return ValidityReport(True, message, _positions(matches))
