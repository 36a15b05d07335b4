"""
Origin Allow-List

Parsed, immutable form of the ALLOWED_ORIGINS configuration. Built once
when the application is created and shared by every request; matching is a
pure function of the list and the request's Origin header.

Supported rule forms:
- ``https://app.example.com``   exact origin match
- ``*.example.com``             example.com or any subdomain, any scheme
- ``https://*.example.com``     same, but the scheme must match
- ``.example.com``              hostname suffix match, any scheme

Author: System Architect
Date: 2025-12-08
"""

from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlsplit


class RuleKind(str, Enum):
    EXACT = "exact"
    WILDCARD = "wildcard"
    SUFFIX = "suffix"


@dataclass(frozen=True)
class OriginRule:
    """One parsed allow-list entry."""

    kind: RuleKind
    host: str
    scheme: str | None = None
    raw: str = ""

    @classmethod
    def parse(cls, rule: str) -> "OriginRule":
        rule = rule.strip()

        if rule.startswith("."):
            return cls(RuleKind.SUFFIX, host=rule[1:].lower(), raw=rule)

        scheme = None
        rest = rule
        if "://" in rule:
            scheme, rest = rule.split("://", 1)
            scheme = scheme.lower()

        if rest.startswith("*."):
            return cls(RuleKind.WILDCARD, host=rest[2:].rstrip("/").lower(), scheme=scheme, raw=rule)

        return cls(RuleKind.EXACT, host=rule.rstrip("/").lower(), raw=rule)

    def matches(self, origin: str, scheme: str, hostname: str) -> bool:
        if self.kind is RuleKind.EXACT:
            return origin.lower() == self.host

        if self.kind is RuleKind.WILDCARD:
            if self.scheme and self.scheme != scheme:
                return False
            return hostname == self.host or hostname.endswith("." + self.host)

        return hostname == self.host or hostname.endswith("." + self.host)


@dataclass(frozen=True)
class OriginAllowList:
    """
    Immutable collection of origin rules.

    Usage:
        allow_list = OriginAllowList.parse(["https://*.example.com"])
        allow_list.is_allowed("https://app.example.com")  # True
        allow_list.is_allowed("https://evil.com")         # False
    """

    rules: tuple[OriginRule, ...] = ()

    @classmethod
    def parse(cls, rules: list[str] | tuple[str, ...]) -> "OriginAllowList":
        return cls(tuple(OriginRule.parse(rule) for rule in rules if rule and rule.strip()))

    def is_allowed(self, origin: str | None) -> bool:
        """
        Decide whether a browser origin may read responses.

        Missing, empty and unparseable origins are never allowed. ``null``
        (sandboxed frames, file://) is only allowed by an exact ``null`` rule.
        """
        if not origin:
            return False

        try:
            parts = urlsplit(origin)
        except ValueError:
            return False

        scheme = (parts.scheme or "").lower()
        hostname = (parts.hostname or "").lower()

        for rule in self.rules:
            if rule.kind is not RuleKind.EXACT and not hostname:
                continue
            if rule.matches(origin, scheme, hostname):
                return True
        return False

    def __len__(self) -> int:
        return len(self.rules)
