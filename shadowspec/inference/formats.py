"""
Format Detector - Semantic String Classification

PURPOSE:
Decide whether a string value carries a well-known semantic format
(uuid, email, uri, date, time, date-time, ipv4, ipv6, numeric).

LOGIC:
1. Precompiled patterns are tried in a fixed order; the first match wins.
2. Structural parse fallbacks catch RFC3339 timestamps and plain dates the
   patterns missed.
3. Anything that parses as a float is reported as "numeric".

The pattern table is built once per detector and never mutated, so one
instance can be shared freely between threads.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Optional, Pattern, Tuple

FORMAT_UUID = "uuid"
FORMAT_EMAIL = "email"
FORMAT_URI = "uri"
FORMAT_DATE = "date"
FORMAT_TIME = "time"
FORMAT_DATE_TIME = "date-time"
FORMAT_IPV4 = "ipv4"
FORMAT_IPV6 = "ipv6"
FORMAT_NUMERIC = "numeric"
FORMAT_ANY = "any"

_OCTET = r"(25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)"
_IPV6_OCTET = r"(25[0-5]|(2[0-4]|1{0,1}[0-9]){0,1}[0-9])"

_IPV6 = (
    r"^(([0-9a-fA-F]{1,4}:){7,7}[0-9a-fA-F]{1,4}"
    r"|([0-9a-fA-F]{1,4}:){1,7}:"
    r"|([0-9a-fA-F]{1,4}:){1,6}:[0-9a-fA-F]{1,4}"
    r"|([0-9a-fA-F]{1,4}:){1,5}(:[0-9a-fA-F]{1,4}){1,2}"
    r"|([0-9a-fA-F]{1,4}:){1,4}(:[0-9a-fA-F]{1,4}){1,3}"
    r"|([0-9a-fA-F]{1,4}:){1,3}(:[0-9a-fA-F]{1,4}){1,4}"
    r"|([0-9a-fA-F]{1,4}:){1,2}(:[0-9a-fA-F]{1,4}){1,5}"
    r"|[0-9a-fA-F]{1,4}:((:[0-9a-fA-F]{1,4}){1,6})"
    r"|:((:[0-9a-fA-F]{1,4}){1,7}|:)"
    r"|fe80:(:[0-9a-fA-F]{0,4}){0,4}%[0-9a-zA-Z]{1,}"
    r"|::(ffff(:0{1,4}){0,1}:){0,1}(" + _IPV6_OCTET + r"\.){3,3}" + _IPV6_OCTET +
    r"|([0-9a-fA-F]{1,4}:){1,4}:(" + _IPV6_OCTET + r"\.){3,3}" + _IPV6_OCTET +
    r")$"
)

# Order matters: the first matching pattern decides the format.
_PATTERNS: Tuple[Tuple[str, str], ...] = (
    (FORMAT_UUID, r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$"),
    (FORMAT_EMAIL, r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"),
    (FORMAT_URI, r"^(https?|ftp)://[^\s/$.?#].[^\s]*$"),
    (FORMAT_DATE, r"^\d{4}-\d{2}-\d{2}$"),
    (FORMAT_TIME, r"^\d{2}:\d{2}(:\d{2})?(\.\d+)?(Z|[+-]\d{2}:\d{2})?$"),
    (FORMAT_DATE_TIME, r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(:\d{2})?(\.\d+)?(Z|[+-]\d{2}:\d{2})?$"),
    (FORMAT_IPV4, r"^" + _OCTET + r"\." + _OCTET + r"\." + _OCTET + r"\." + _OCTET + r"$"),
    (FORMAT_IPV6, _IPV6),
)


_RFC3339 = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})(\.\d+)?([Zz]|[+-]\d{2}:\d{2})",
    re.ASCII,
)


def parse_rfc3339(value: str) -> Optional[datetime]:
    """Parse an RFC3339 timestamp (date, 'T', time with seconds, mandatory offset)."""
    match = _RFC3339.fullmatch(value)
    if match is None:
        return None
    year, month, day, hour, minute, second, fraction, offset = match.groups()
    # Digits past microseconds are truncated.
    micros = int((fraction or "")[1:7].ljust(6, "0"))
    try:
        if offset in ("Z", "z"):
            tz = timezone.utc
        else:
            sign = -1 if offset[0] == "-" else 1
            tz = timezone(sign * timedelta(hours=int(offset[1:3]), minutes=int(offset[4:6])))
        return datetime(
            int(year), int(month), int(day), int(hour), int(minute), int(second), micros, tzinfo=tz
        )
    except ValueError:
        return None


def parse_date(value: str) -> bool:
    if len(value) != 10:
        return False
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return False
    return True


def is_numeric_string(value: str) -> bool:
    # float() tolerates whitespace and digit separators; a numeric field does not.
    if not value or value != value.strip() or "_" in value:
        return False
    try:
        float(value)
    except ValueError:
        return False
    return True


class FormatDetector:
    """
    Classifies strings against an immutable, ordered pattern table.
    """

    def __init__(self):
        self._patterns: Tuple[Tuple[str, Pattern[str]], ...] = tuple(
            (name, re.compile(pattern, re.ASCII)) for name, pattern in _PATTERNS
        )

    @property
    def formats(self) -> Tuple[str, ...]:
        return tuple(name for name, _ in self._patterns)

    def detect(self, value: str) -> str:
        """
        Return the semantic format of `value`, or "" when nothing matches.
        """
        for name, pattern in self._patterns:
            if pattern.fullmatch(value):
                return name

        if parse_rfc3339(value) is not None:
            return FORMAT_DATE_TIME
        if parse_date(value):
            return FORMAT_DATE
        if is_numeric_string(value):
            return FORMAT_NUMERIC

        return ""


_default_detector: Optional[FormatDetector] = None


def get_detector() -> FormatDetector:
    """Shared read-only detector instance."""
    global _default_detector
    if _default_detector is None:
        _default_detector = FormatDetector()
    return _default_detector
