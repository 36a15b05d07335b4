"""
Unit Tests for the Origin Allow-List

Tests rule parsing and origin matching for exact, wildcard and suffix rules.
"""

import pytest

from manifest_gateway.core.config.origins import OriginAllowList, OriginRule, RuleKind
from manifest_gateway.core.config.settings import DEFAULT_ALLOWED_ORIGINS


@pytest.mark.unit
class TestOriginRuleParsing:
    """Test how allow-list entries are classified."""

    def test_exact_rule(self):
        """Test that a plain origin is an exact rule with its trailing slash removed."""
        rule = OriginRule.parse("https://App.example.com/")

        assert rule.kind is RuleKind.EXACT
        assert rule.host == "https://app.example.com"

    def test_wildcard_rule_with_scheme(self):
        """Test that a scheme-qualified wildcard keeps its scheme."""
        rule = OriginRule.parse("https://*.example.com")

        assert rule.kind is RuleKind.WILDCARD
        assert rule.host == "example.com"
        assert rule.scheme == "https"

    def test_wildcard_rule_without_scheme(self):
        """Test that a bare wildcard matches any scheme."""
        rule = OriginRule.parse("*.example.com")

        assert rule.kind is RuleKind.WILDCARD
        assert rule.scheme is None

    def test_suffix_rule(self):
        """Test that a leading dot makes a hostname suffix rule."""
        rule = OriginRule.parse(".example.com")

        assert rule.kind is RuleKind.SUFFIX
        assert rule.host == "example.com"


@pytest.mark.unit
class TestOriginAllowList:
    """Test OriginAllowList.is_allowed."""

    @pytest.fixture
    def allow_list(self):
        return OriginAllowList.parse(
            [
                "https://mcc-cal.com",
                "https://*.squarespace.com",
                "http://localhost:3000",
                ".partner.io",
            ]
        )

    @pytest.mark.parametrize(
        "origin",
        [
            "https://mcc-cal.com",
            "HTTPS://MCC-CAL.COM",
            "https://shop.squarespace.com",
            "https://a.b.squarespace.com",
            "https://squarespace.com",
            "http://localhost:3000",
            "https://www.partner.io",
            "http://partner.io",
        ],
    )
    def test_allowed_origins(self, allow_list, origin):
        """Test origins that one of the rules admits."""
        assert allow_list.is_allowed(origin) is True

    @pytest.mark.parametrize(
        "origin",
        [
            "https://evil.com",
            "https://evilsquarespace.com",
            "http://shop.squarespace.com",
            "https://squarespace.com.evil.com",
            "http://localhost:3001",
            "https://mcc-cal.com.evil.com",
            "https://notpartner.io",
        ],
    )
    def test_rejected_origins(self, allow_list, origin):
        """Test lookalike and off-list origins are refused."""
        assert allow_list.is_allowed(origin) is False

    @pytest.mark.parametrize("origin", [None, "", "null"])
    def test_missing_or_opaque_origin_rejected(self, allow_list, origin):
        """Test that absent, empty and opaque origins are never admitted by default."""
        assert allow_list.is_allowed(origin) is False

    def test_null_origin_requires_exact_rule(self):
        """Test that the opaque origin is only allowed by an explicit null rule."""
        assert OriginAllowList.parse(["null"]).is_allowed("null") is True

    def test_empty_list_allows_nothing(self):
        """Test that an empty allow-list refuses every origin."""
        allow_list = OriginAllowList.parse([])

        assert len(allow_list) == 0
        assert allow_list.is_allowed("https://mcc-cal.com") is False

    def test_blank_entries_ignored(self):
        """Test that blank entries do not become rules."""
        assert len(OriginAllowList.parse(["", "  ", "https://a.com"])) == 1

    def test_default_list_admits_site_subdomains(self):
        """Test the shipped default allow-list."""
        allow_list = OriginAllowList.parse(DEFAULT_ALLOWED_ORIGINS)

        assert allow_list.is_allowed("https://mysite.squarespace.com")
        assert allow_list.is_allowed("http://localhost:3000")
        assert not allow_list.is_allowed("https://example.org")
