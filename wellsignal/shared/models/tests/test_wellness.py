"""Tests for wellness domain models."""
import pytest

from wellsignal.shared.models import Mood, Severity


class TestSeverity:
    """Tests for Severity parsing across storage vocabularies."""

    @pytest.mark.parametrize("stored,expected", [
        ("low", Severity.LOW),
        ("MEDIUM", Severity.MEDIUM),
        ("high", Severity.HIGH),
        ("info", Severity.LOW),
        ("Warning", Severity.MEDIUM),
        ("critical", Severity.HIGH),
    ])
    def test_parse_both_vocabularies(self, stored, expected):
        assert Severity.parse(stored) is expected

    @pytest.mark.parametrize("stored", [None, "", "urgent"])
    def test_unknown_reads_as_low(self, stored):
        assert Severity.parse(stored) is Severity.LOW

    def test_storage_value(self):
        assert Severity.MEDIUM.storage_value() == "medium"
        assert Severity.MEDIUM.storage_value("legacy") == "warning"
        assert Severity.HIGH.storage_value("legacy") == "critical"


class TestMood:

    def test_parse_is_tolerant(self):
        assert Mood.parse(" Sad ") is Mood.SAD
        assert Mood.parse("meh") is None
        assert Mood.parse(None) is None
