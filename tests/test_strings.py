"""Tests for utils/strings.py — name normalization, slugs and id parsing."""
import pytest

from utils.strings import MAX_ID, is_slug, normalize_name, parse_positive_int, slugify


class TestNormalizeName:
    def test_strips_and_lowercases(self):
        assert normalize_name("  House ") == "house"

    def test_blank(self):
        assert normalize_name("   ") == ""


class TestSlugify:
    @pytest.mark.parametrize("name,slug", [
        ("whats up", "whats-up"),
        ("Gas / Fuel", "gas-fuel"),
        ("  initial deposit!", "initial-deposit"),
        ("paycheck", "paycheck"),
    ])
    def test_slugify(self, name, slug):
        assert slugify(name) == slug


class TestIsSlug:
    @pytest.mark.parametrize("value", ["whats-up", "a", "initial-deposit"])
    def test_valid(self, value):
        assert is_slug(value)

    @pytest.mark.parametrize("value", ["", "Whats-up", "whats_up", "42", "a1"])
    def test_invalid(self, value):
        assert not is_slug(value)


class TestParsePositiveInt:
    @pytest.mark.parametrize("value,expected", [
        ("1", 1), ("42", 42), ("007", 7), (str(MAX_ID), MAX_ID),
    ])
    def test_valid(self, value, expected):
        assert parse_positive_int(value) == expected

    @pytest.mark.parametrize("value", ["0", "-1", "1.5", "abc", "", " 1", "١٢", str(MAX_ID + 1), "9" * 25])
    def test_invalid(self, value):
        assert parse_positive_int(value) is None
