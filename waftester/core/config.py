"""YAML configuration -> RunDescriptor, with defaults applied."""

from __future__ import annotations

import posixpath
from pathlib import Path
from typing import Any

import yaml

from waftester.core.models import (
    ConfigError, Condition, Header, Location, RunDescriptor, TestSet,
    LOCATIONS, POST_BODY_TYPES,
)
from waftester.parsers.payloads import collect_payload_files

DEFAULT_HEADERS = {
    "Accept": ["text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"],
    "Accept-Encoding": ["gzip, deflate"],
    "Connection": ["close"],
    "Content-Type": ["application/x-www-form-urlencoded"],
    "User-Agent": [
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_10_4) AppleWebKit/600.7.12 "
        "(KHTML, like Gecko) Version/8.0.7 Safari/600.7.12"
    ],
    "Cache-Control": ["max-age=0"],
}

DEFAULT_LOCATIONS = [
    Location("header", "foo"),
    Location("path"),
    Location("queryarg", "foo"),
    Location("cookie", "foo"),
    Location("body", "foo"),
]

DEFAULT_BLOCK_CODE = 406


def canonical_header(name: str) -> str:
    """``x-waf-status`` -> ``X-Waf-Status``."""
    return "-".join(part.capitalize() for part in name.split("-"))


def _headers(raw: Any, where: str) -> list[Header]:
    out = []
    for h in raw or []:
        if not isinstance(h, dict) or "header" not in h:
            raise ConfigError(f"{where}: header entries need a 'header' key")
        out.append(Header(header=str(h["header"]), value=str(h.get("value", ""))))
    return out


def _mapping(raw: Any, where: str) -> dict:
    if not isinstance(raw, dict):
        raise ConfigError(f"{where}: expected a mapping, got {type(raw).__name__}")
    return raw


def _test_set(block: Any) -> TestSet:
    block = _mapping(block, "wafs entry")
    name = block.get("name")
    if not name:
        raise ConfigError("every entry in 'wafs' needs a name")

    protocol = str(block.get("protocol") or "http").lower()
    host = block.get("host") or "localhost"
    port = int(block.get("port") or 80)
    path = str(block.get("path") or "")
    if path:
        path = posixpath.normpath(path)
    path = path.lstrip("/")

    headers = {k: list(v) for k, v in DEFAULT_HEADERS.items()}
    for h in _headers(block.get("default_headers"), f"{name}.default_headers"):
        headers[canonical_header(h.header)] = [h.value]

    block_raw = _mapping(block.get("block_condition") or {"code": DEFAULT_BLOCK_CODE},
                         f"{name}.block_condition")
    block_con = Condition(
        code=int(block_raw.get("code") or 0),
        headers=_headers(block_raw.get("headers"), f"{name}.block_condition"),
    )
    allow_raw = _mapping(block.get("allow_condition") or {}, f"{name}.allow_condition")
    allow_con = Condition(headers=_headers(allow_raw.get("headers"), f"{name}.allow_condition"))

    return TestSet(
        name=str(name),
        uri=f"{protocol}://{host}:{port}/{path}",
        default_headers=headers,
        allow_condition=allow_con,
        block_condition=block_con,
    )


def parse_config(data: dict, base_dir: str | Path = ".") -> RunDescriptor:
    """Normalize a parsed YAML document into a RunDescriptor.

    ``payload_dir`` is resolved against *base_dir* when relative.
    """
    if not isinstance(data, dict):
        raise ConfigError("configuration must be a mapping")

    locations = []
    for entry in data.get("payload_locations") or []:
        entry = _mapping(entry, "payload_locations entry")
        loc = str(entry.get("location", "")).lower()
        if loc not in LOCATIONS:
            raise ConfigError(f"unknown location: {entry.get('location')}")
        locations.append(Location(loc, str(entry.get("key") or "")))
    if not locations:
        locations = [Location(l.location, l.key) for l in DEFAULT_LOCATIONS]

    postbody = str(data.get("postbody_type") or "raw").lower()
    if postbody not in POST_BODY_TYPES:
        raise ConfigError(f"unknown postbody_type: {postbody}")

    payload_dir = Path(data.get("payload_dir") or "payloads")
    if not payload_dir.is_absolute():
        payload_dir = Path(base_dir) / payload_dir

    return RunDescriptor(
        payload_dir=str(payload_dir),
        urlencode_path=bool(data.get("urlencode_path", False)),
        urlencode_query=bool(data.get("urlencode_query", False)),
        urlencode_header=bool(data.get("urlencode_header", False)),
        b64encode_cookie=bool(data.get("b64encode_cookie", False)),
        postbody_type=postbody,
        locations=locations,
        files=collect_payload_files(payload_dir),
        test_sets=[_test_set(b) for b in data.get("wafs") or []],
    )


def load_config(path: str | Path) -> RunDescriptor:
    """Read and normalize the YAML file at *path*."""
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except OSError as exc:
        raise ConfigError(f"unable to read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"unable to parse config file {path}: {exc}") from exc
    return parse_config(data, base_dir=path.parent)
