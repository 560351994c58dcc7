"""WAF Lab: a tiny signature WAF in front of a dummy application.

Gives the tester something to aim at: requests whose path, query string,
headers, cookies or body match an attack signature are answered with 406 and
``X-Waf-Status: blocked``; everything else gets 200 and ``X-Waf-Status: allowed``.
The rules are naive, so both false positives and false negatives
are easy to produce.
"""

import re
from urllib.parse import unquote_plus

from flask import Flask, request, make_response

app = Flask(__name__)

BLOCK_CODE = 406

# ── Signatures ──────────────────────────────────────────────────

SIGNATURES = {
    "sqli": re.compile(r"('|\")\s*(or|and)\s+('|\"|\d)|union\s+select|--\s*$|;\s*drop\s+table", re.I),
    "xss": re.compile(r"<\s*script|on(error|load)\s*=|javascript:", re.I),
    "traversal": re.compile(r"\.\./|\.\.\\"),
    "cmdi": re.compile(r";\s*(cat|ls|id|whoami)\b|\$\(|`", re.I),
}

# headers every client sends; never inspected
_SKIP_HEADERS = {"host", "user-agent", "accept", "accept-encoding",
                 "connection", "content-length", "content-type", "cache-control"}


def match_signature(value: str):
    """Return the name of the first signature matching *value*, else None."""
    for name, rx in SIGNATURES.items():
        if rx.search(value) or rx.search(unquote_plus(value)):
            return name
    return None


def _inspected_values():
    yield request.path
    yield request.query_string.decode("latin-1")
    for name, value in request.headers.items():
        if name.lower() not in _SKIP_HEADERS:
            yield value
    yield request.get_data(as_text=True)


def _verdict(status: int, label: str, rule: str = ""):
    resp = make_response(f"{label}\n", status)
    resp.headers["X-Waf-Status"] = label
    if rule:
        resp.headers["X-Waf-Rule"] = rule
    return resp


@app.route("/health")
def health():
    return _verdict(200, "allowed")


@app.route("/", defaults={"path": ""}, methods=["GET", "POST"])
@app.route("/<path:path>", methods=["GET", "POST"])
def inspect(path):
    for value in _inspected_values():
        rule = match_signature(value)
        if rule:
            return _verdict(BLOCK_CODE, "blocked", rule)
    return _verdict(200, "allowed")


if __name__ == "__main__":
    print("\n  WAF Lab starting on http://127.0.0.1:5000\n")
    app.run(host="127.0.0.1", port=5000)
