"""Tests for spoken time parsing."""

import pytest

from app.nlu.time_parser import find_time, parse_time


class TestExplicitMeridiem:
    @pytest.mark.parametrize("text, expected", [
        ("3pm", "3:00 PM"),
        ("3 pm", "3:00 PM"),
        ("3 p.m.", "3:00 PM"),
        ("11AM", "11:00 AM"),
        ("10:30 a.m.", "10:30 AM"),
        ("how about 4:15pm tomorrow", "4:15 PM"),
    ])
    def test_parses_am_pm(self, text, expected):
        assert parse_time(text) == expected

    def test_minutes_form_wins_over_bare_hour(self):
        # Forms are tried in priority order, not by position.
        assert parse_time("2pm or 10:30 am") == "10:30 AM"

    def test_leftmost_match_within_a_form(self):
        assert parse_time("11am or 2pm") == "11:00 AM"


class TestRelativeForms:
    @pytest.mark.parametrize("text, expected", [
        ("4 o'clock", "4:00 PM"),
        ("10 o'clock", "10:00 AM"),
        ("9 in the morning", "9:00 AM"),
        ("2 in the afternoon", "2:00 PM"),
        ("6 in the evening", "6:00 PM"),
        ("8 at night", "8:00 PM"),
    ])
    def test_parses_relative_phrases(self, text, expected):
        assert parse_time(text) == expected


class TestRejectedInput:
    @pytest.mark.parametrize("text", ["", "tomorrow", "whenever suits you", "13pm", "0 am"])
    def test_returns_none(self, text):
        assert parse_time(text) is None


class TestFindTime:
    def test_reports_position(self):
        found = find_time("how about 3pm")
        assert found.label == "3:00 PM"
        assert "how about 3pm"[found.start:found.end] == "3pm"

    def test_none_without_time(self):
        assert find_time("sometime later") is None
