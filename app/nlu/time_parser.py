"""
Time phrase parser.
Turns spoken time expressions ("3pm", "nine in the morning") into slot labels.
"""

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple


@dataclass(frozen=True)
class TimeMatch:
    """A parsed time label and where it was found in the utterance."""
    label: str
    start: int
    end: int


def _meridiem(raw: str) -> str:
    return "AM" if raw.lower().startswith("a") else "PM"


def _business_hours(hour: int) -> str:
    # Bare hours are read against the bookable day: 9-11 morning, 12-8 afternoon/evening.
    return "AM" if 9 <= hour <= 11 else "PM"


_AMPM = r"([ap])\.?\s?m\.?(?![a-z])"

# (pattern, builder) in priority order. Builders return None to reject a match.
_PATTERNS: List[Tuple[re.Pattern, Callable[[re.Match], Optional[str]]]] = [
    (
        re.compile(r"\b(\d{1,2}):(\d{2})\s?" + _AMPM, re.IGNORECASE),
        lambda m: f"{int(m.group(1))}:{m.group(2)} {_meridiem(m.group(3))}"
        if int(m.group(2)) < 60 else None,
    ),
    (
        re.compile(r"\b(\d{1,2})\s?" + _AMPM, re.IGNORECASE),
        lambda m: f"{int(m.group(1))}:00 {_meridiem(m.group(2))}",
    ),
    (
        re.compile(r"\b(\d{1,2})\s?o['’]?\s?clock\b", re.IGNORECASE),
        lambda m: f"{int(m.group(1))}:00 {_business_hours(int(m.group(1)))}",
    ),
    (
        re.compile(r"\b(\d{1,2})\s+in\s+the\s+morning\b", re.IGNORECASE),
        lambda m: f"{int(m.group(1))}:00 AM",
    ),
    (
        re.compile(r"\b(\d{1,2})\s+in\s+the\s+afternoon\b", re.IGNORECASE),
        lambda m: f"{int(m.group(1))}:00 PM",
    ),
    (
        re.compile(r"\b(\d{1,2})\s+in\s+the\s+evening\b", re.IGNORECASE),
        lambda m: f"{int(m.group(1))}:00 PM",
    ),
    (
        re.compile(r"\b(\d{1,2})\s+at\s+night\b", re.IGNORECASE),
        lambda m: f"{int(m.group(1))}:00 PM",
    ),
]


def find_time(text: str) -> Optional[TimeMatch]:
    """
    Find the first time expression in text.

    Forms are tried in priority order; within a form the leftmost match with
    an hour in 1..12 wins, otherwise the next form is tried.
    """
    if not text:
        return None

    for pattern, build in _PATTERNS:
        for match in pattern.finditer(text):
            hour = int(match.group(1))
            if not 1 <= hour <= 12:
                continue
            label = build(match)
            if label is not None:
                return TimeMatch(label=label, start=match.start(), end=match.end())
    return None


def parse_time(text: str) -> Optional[str]:
    """Return the `H:MM AM/PM` label of the first time expression, if any."""
    found = find_time(text)
    return found.label if found else None
