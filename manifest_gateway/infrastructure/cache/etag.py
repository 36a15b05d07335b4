"""
ETag Validator

Fingerprints manifest payloads and evaluates If-None-Match headers.

Weak comparison is used throughout (RFC 9110 section 8.8.3.2): the ``W/``
prefix is ignored when comparing, which is what lets an upstream strong
validator and a client-echoed weak one match.

Author: System Architect
Date: 2025-12-13
"""

import hashlib
from typing import Any

import orjson


def compute_etag(manifest_type: str, payload: Any) -> str:
    """
    Weak validator derived from the payload content.

    The payload is serialized with sorted keys so that two documents with
    the same content always produce the same fingerprint.

    Returns:
        ``W/"<type>-<sha1 hex>"``
    """
    canonical = orjson.dumps(payload, option=orjson.OPT_SORT_KEYS)
    digest = hashlib.sha1(canonical).hexdigest()
    return f'W/"{manifest_type}-{digest}"'


def choose_etag(manifest_type: str, payload: Any, upstream_etag: str | None) -> str:
    """Prefer the upstream validator when it sent one."""
    if upstream_etag and upstream_etag.strip():
        return upstream_etag.strip()
    return compute_etag(manifest_type, payload)


def _opaque(tag: str) -> str:
    tag = tag.strip()
    if tag[:2] in ("W/", "w/"):
        tag = tag[2:]
    return tag


def if_none_match_matches(header: str | None, etag: str) -> bool:
    """
    Does an If-None-Match header match the current validator?

    Handles ``*``, comma-separated lists and weak/strong prefixes.
    """
    if not header or not etag:
        return False
    header = header.strip()
    if header == "*":
        return True
    current = _opaque(etag)
    return any(_opaque(candidate) == current for candidate in header.split(",") if candidate.strip())


def cache_control(ttl_seconds: int, stale_seconds: int) -> str:
    """Cache-Control directive for manifest responses."""
    return f"public, max-age={ttl_seconds}, stale-while-revalidate={stale_seconds}"
