"""Request builder: places a payload at one injection location of a test set's request."""

import base64
from typing import NamedTuple, Optional
from urllib.parse import quote, quote_plus

import httpx

from waftester.core.models import ConfigError, Location, RunDescriptor, TestSet

# keep undecodable payload bytes intact on the wire
_ERRORS = "surrogateescape"

_FORM = "application/x-www-form-urlencoded"
_JSON = "application/json"


class BuiltRequest(NamedTuple):
    request: httpx.Request
    check_payload: str   # the payload as it will appear on the wire


def _raw(s: str) -> bytes:
    return s.encode("utf-8", _ERRORS)


def _base_headers(test_set: TestSet) -> httpx.Headers:
    items = []
    for name, values in test_set.default_headers.items():
        for v in values:
            items.append((name, v))
    headers = httpx.Headers(items)
    # one request per connection, no state shared between tests
    headers["Connection"] = "close"
    return headers


def _request(
    method: str,
    url,
    headers: httpx.Headers,
    content: Optional[bytes] = None,
    target: Optional[bytes] = None,
) -> httpx.Request:
    # "target" overrides the request-target sent on the wire and skips
    # URL normalization, so illegal characters survive
    extensions = {"target": target} if target is not None else None
    return httpx.Request(method, url, headers=headers, content=content, extensions=extensions)


def _set_header(headers: httpx.Headers, name: str, value: bytes, replace: bool = True) -> httpx.Headers:
    items = [
        (k, v) for k, v in headers.multi_items()
        if not (replace and k.lower() == name.lower())
    ]
    items.append((name, value))
    return httpx.Headers(items)


def _base_path(url: httpx.URL) -> bytes:
    return url.raw_path.split(b"?", 1)[0] or b"/"


def build_request(
    run: RunDescriptor,
    test_set: TestSet,
    location: Location,
    payload: str,
) -> BuiltRequest:
    """Build the request variant for *payload* at *location*.

    Raises ConfigError for a location name the tester does not know; that is a
    configuration problem, not a test outcome.
    """
    url = httpx.URL(test_set.uri)
    headers = _base_headers(test_set)
    key = location.key
    where = location.location.lower()

    if where == "header":
        value = quote_plus(payload, errors=_ERRORS) if run.urlencode_header else payload
        # replaces every existing value of the header
        headers = _set_header(headers, key, _raw(value))
        return BuiltRequest(_request("GET", url, headers), value)

    if where == "path":
        if run.urlencode_path:
            escaped = quote(payload, safe="/$&+,:;=@", errors=_ERRORS)
            req = _request("GET", url.copy_with(path="/" + escaped), headers)
            return BuiltRequest(req, quote(payload, safe="$&+:=@", errors=_ERRORS))
        req = _request("GET", url, headers, target=_raw("/" + payload))
        return BuiltRequest(req, payload)

    if where == "queryarg":
        if run.urlencode_query:
            query = f"{quote_plus(key)}={quote_plus(payload, errors=_ERRORS)}"
            req = _request("GET", url.copy_with(query=query.encode("ascii")), headers)
            return BuiltRequest(req, query)
        target = _base_path(url) + b"?" + _raw(f"{key}={payload}")
        req = _request("GET", url, headers, target=target)
        return BuiltRequest(req, payload)

    if where == "body":
        if run.postbody_type == "urlencoded":
            body = f"{quote_plus(key)}={quote_plus(payload, errors=_ERRORS)}"
            headers["Content-Type"] = _FORM
            check = quote_plus(payload, errors=_ERRORS)
        elif run.postbody_type == "json":
            # embedded verbatim, the payload is not JSON-escaped
            body = '{"' + key + '":"' + payload + '"}'
            headers["Content-Type"] = _JSON
            check = payload
        else:
            body = f"{key}={payload}"
            headers["Content-Type"] = _FORM
            check = payload
        return BuiltRequest(_request("POST", url, headers, content=_raw(body)), check)

    if where == "cookie":
        if run.b64encode_cookie:
            # RFC 6265 section 4.1.1 recommends base64; unpadded
            value = base64.b64encode(_raw(payload)).decode("ascii").rstrip("=")
        else:
            value = payload
        # appended as-is, no cookie jar in the way to strip invalid characters
        headers = _set_header(headers, "Cookie", _raw(f"{key}={value}"), replace=False)
        return BuiltRequest(_request("GET", url, headers), value)

    raise ConfigError(f"unknown location: {location.location}")
