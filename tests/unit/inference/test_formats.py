"""
tests/unit/inference/test_formats.py
Verify semantic string format detection and its ordering.
"""
from datetime import timedelta

import pytest

from shadowspec.inference.formats import (
    FormatDetector,
    get_detector,
    is_numeric_string,
    parse_date,
    parse_rfc3339,
)


@pytest.fixture
def detector():
    return FormatDetector()


@pytest.mark.parametrize("value,expected", [
    ("550e8400-e29b-41d4-a716-446655440000", "uuid"),
    ("bob@example.com", "email"),
    ("https://api.example.com/users?page=2", "uri"),
    ("ftp://files.example.com/a.txt", "uri"),
    ("2024-01-15", "date"),
    ("10:30", "time"),
    ("10:30:00.123Z", "time"),
    ("2024-01-15T10:30:00Z", "date-time"),
    ("2024-01-15T10:30:00.5+02:00", "date-time"),
    ("192.168.1.1", "ipv4"),
    ("2001:db8::1", "ipv6"),
    ("::1", "ipv6"),
    ("42", "numeric"),
    ("-3.14", "numeric"),
    ("1e10", "numeric"),
])
def test_detects_known_formats(detector, value, expected):
    assert detector.detect(value) == expected


@pytest.mark.parametrize("value", ["hello", "", "red", "John Smith", " 42", "1_000", "999.1.1.1"])
def test_plain_strings_have_no_format(detector, value):
    assert detector.detect(value) == ""


def test_uppercase_uuid_is_not_a_uuid(detector):
    # The uuid pattern is lower-case hex only.
    assert detector.detect("550E8400-E29B-41D4-A716-446655440000") != "uuid"


def test_trailing_newline_does_not_match(detector):
    assert detector.detect("bob@example.com\n") == ""


def test_pattern_order_is_fixed(detector):
    assert detector.formats == ("uuid", "email", "uri", "date", "time", "date-time", "ipv4", "ipv6")


def test_detector_is_shared():
    assert get_detector() is get_detector()


def test_parse_rfc3339_requires_offset():
    assert parse_rfc3339("2024-01-15T10:30:00Z") is not None
    assert parse_rfc3339("2024-01-15T10:30:00+05:30") is not None
    assert parse_rfc3339("2024-01-15T10:30:00") is None
    assert parse_rfc3339("2024-01-15") is None


def test_parse_rfc3339_needs_seconds_and_takes_any_fraction():
    assert parse_rfc3339("2024-01-01T10:00+00:00") is None
    assert parse_rfc3339("2024-01-15 10:30:00Z") is None
    assert parse_rfc3339("2024-02-30T10:30:00Z") is None

    short = parse_rfc3339("2024-01-15T10:30:00.1Z")
    assert short.microsecond == 100000
    assert short.utcoffset() == timedelta(0)

    long = parse_rfc3339("2024-01-15T10:30:00.123456789+02:00")
    assert long.microsecond == 123456
    assert long.utcoffset() == timedelta(hours=2)


def test_parse_date_validates_calendar():
    assert parse_date("2024-02-29") is True
    assert parse_date("2023-02-29") is False
    assert parse_date("2024-1-5") is False


def test_numeric_strings():
    assert is_numeric_string("0")
    assert is_numeric_string("12.50")
    assert not is_numeric_string("")
    assert not is_numeric_string("abc")
    assert not is_numeric_string("12 ")
