"""Tests for trusted-range assembly and the trust filter hook."""

from __future__ import annotations

import logging

from realip.configs.system import ResolverSettings
from realip.core.trust import dedupe, parse_range_lines, trusted_ranges


def _literals(trust_set) -> list[str]:
    return [str(cidr) for cidr in trust_set]


class TestParseRangeLines:
    def test_mixed_line_endings(self):
        text = "10.0.0.0/8\r\n192.168.0.0/16\r172.16.0.0/12\n2001:db8::/32"
        assert parse_range_lines(text) == [
            "10.0.0.0/8",
            "192.168.0.0/16",
            "172.16.0.0/12",
            "2001:db8::/32",
        ]

    def test_blank_lines_and_whitespace(self):
        text = "\n   \n  203.0.113.10  \n\n\t198.51.100.0/24\t\n"
        assert parse_range_lines(text) == ["203.0.113.10", "198.51.100.0/24"]

    def test_empty(self):
        assert parse_range_lines("") == []


class TestDedupe:
    def test_keeps_first_seen_order(self):
        assert dedupe(["b", " a", "b ", "c", "a"]) == ["b", "a", "c"]


class TestTrustedRanges:
    def test_custom_ranges_only(self):
        settings = ResolverSettings(custom_trusted_ranges="10.0.0.0/8\n203.0.113.10")
        assert _literals(trusted_ranges(settings)) == [
            "10.0.0.0/8",
            "203.0.113.10/32",
        ]

    def test_cdn_ranges_ignored_when_disabled(self):
        settings = ResolverSettings(
            custom_trusted_ranges="10.0.0.0/8", include_cdn_ranges=False
        )
        result = trusted_ranges(settings, ["173.245.48.0/20"])
        assert _literals(result) == ["10.0.0.0/8"]

    def test_cdn_ranges_appended_when_enabled(self):
        settings = ResolverSettings(
            custom_trusted_ranges="10.0.0.0/8", include_cdn_ranges=True
        )
        result = trusted_ranges(settings, ["173.245.48.0/20", "2400:cb00::/32"])
        assert _literals(result) == [
            "10.0.0.0/8",
            "173.245.48.0/20",
            "2400:cb00::/32",
        ]

    def test_deduplicates_literal_and_equivalent_ranges(self):
        settings = ResolverSettings(
            custom_trusted_ranges="203.0.113.10\n203.0.113.10/32\n10.0.0.0/8",
            include_cdn_ranges=True,
        )
        result = trusted_ranges(settings, ["10.0.0.0/8"])
        assert _literals(result) == ["203.0.113.10/32", "10.0.0.0/8"]

    def test_malformed_entries_dropped(self, caplog):
        settings = ResolverSettings(custom_trusted_ranges="garbage\n10.0.0.0/8")
        with caplog.at_level(logging.WARNING):
            result = trusted_ranges(settings)
        assert _literals(result) == ["10.0.0.0/8"]
        assert "garbage" in caplog.text

    def test_empty_settings(self):
        assert trusted_ranges(ResolverSettings()) == ()


class TestTrustFilterHook:
    def test_hook_can_add_and_remove(self):
        settings = ResolverSettings(custom_trusted_ranges="10.0.0.0/8\n192.0.2.0/24")

        def hook(values: list[str]) -> list[str]:
            return [v for v in values if v != "192.0.2.0/24"] + ["198.51.100.0/24"]

        result = trusted_ranges(settings, trust_filter=hook)
        assert _literals(result) == ["10.0.0.0/8", "198.51.100.0/24"]

    def test_hook_output_is_deduplicated(self):
        settings = ResolverSettings(custom_trusted_ranges="10.0.0.0/8")
        result = trusted_ranges(settings, trust_filter=lambda v: v + [" 10.0.0.0/8 "])
        assert _literals(result) == ["10.0.0.0/8"]

    def test_hook_failure_keeps_unmodified_list(self):
        settings = ResolverSettings(custom_trusted_ranges="10.0.0.0/8")

        def broken(values: list[str]) -> list[str]:
            raise RuntimeError("boom")

        assert _literals(trusted_ranges(settings, trust_filter=broken)) == [
            "10.0.0.0/8"
        ]

    def test_hook_returning_garbage_keeps_unmodified_list(self):
        settings = ResolverSettings(custom_trusted_ranges="10.0.0.0/8")
        result = trusted_ranges(settings, trust_filter=lambda v: None)  # type: ignore[arg-type,return-value]
        assert _literals(result) == ["10.0.0.0/8"]

    def test_hook_cannot_mutate_callers_list(self):
        settings = ResolverSettings(custom_trusted_ranges="10.0.0.0/8")

        def mutating(values: list[str]) -> list[str]:
            values.append("192.0.2.0/24")
            raise RuntimeError("after mutation")

        assert _literals(trusted_ranges(settings, trust_filter=mutating)) == [
            "10.0.0.0/8"
        ]
