"""Text transcripts of requests and responses for the report."""

import httpx


def _header_lines(headers: httpx.Headers) -> str:
    return "".join(
        f"{k.decode('latin-1')}: {v.decode('latin-1')}\r\n" for k, v in headers.raw
    )


def dump_request(request: httpx.Request) -> str:
    """Full request as sent: request line, headers, body.

    Body bytes that are not UTF-8 are shown as \\x escapes.
    """
    target = request.extensions.get("target") or request.url.raw_path
    line = f"{request.method} {target.decode('latin-1')} HTTP/1.1\r\n"
    body = request.read().decode("utf-8", "backslashreplace")
    return line + _header_lines(request.headers) + "\r\n" + body


def dump_response(response: httpx.Response) -> str:
    """Status line and headers only; the body is not included."""
    version = response.http_version or "HTTP/1.1"
    line = f"{version} {response.status_code} {response.reason_phrase}\r\n"
    return line + _header_lines(response.headers) + "\r\n"
