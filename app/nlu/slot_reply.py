"""
Slot reply classifier.
Decides whether an answer to a suggested time slot accepts it, rejects it,
or names a time of its own.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from app.nlu.time_parser import find_time, parse_time
from app.nlu.vocabulary import ExtractionVocabulary


class SlotDecision(str, Enum):
    """Outcome of classifying a reply to a slot suggestion."""
    REJECTED = "rejected"
    ACCEPTED = "accepted"
    TIME = "time"
    NO_MATCH = "no_match"


@dataclass(frozen=True)
class SlotReply:
    """
    Classified reply.

    `time` carries the alternative offered alongside a rejection, or the
    bare time for TIME decisions.
    """
    decision: SlotDecision
    time: Optional[str] = None


# Loose time expression used to locate alternatives after a marker.
_TIME_EXPRESSION = (
    r"\d{1,2}(?::\d{2})?\s?(?:[ap]\.?\s?m\b\.?|o'?\s?clock|in the morning"
    r"|in the afternoon|in the evening|at night)"
)

_NEGATIVE_WINDOW = 20


def normalize_utterance(text: str) -> str:
    """Lower-case, unify apostrophes and collapse whitespace."""
    text = text.replace("’", "'").replace("‘", "'")
    return " ".join(text.lower().split())


def _phrase_body(phrase: str) -> str:
    """Pattern for a phrase with optional apostrophes and flexible spacing."""
    words = []
    for word in phrase.lower().split():
        words.append("'?".join(re.escape(part) for part in word.split("'")))
    return r"\s+".join(words)


def _phrase_pattern(phrase: str) -> str:
    """Word-bounded pattern for a phrase."""
    return r"(?<![a-z'])" + _phrase_body(phrase) + r"(?![a-z])"


def _alternation(phrases: List[str]) -> re.Pattern:
    # Longest first so "not good" is preferred over "good" inside alternations.
    ordered = sorted(phrases, key=len, reverse=True)
    return re.compile("|".join(_phrase_pattern(p) for p in ordered))


class SlotReplyClassifier:
    """Regex classifier built from an extraction vocabulary."""

    def __init__(self, vocabulary: Optional[ExtractionVocabulary] = None):
        vocabulary = vocabulary or ExtractionVocabulary()
        self._rejection = _alternation(vocabulary.rejection_phrases)
        self._acceptance = _alternation(vocabulary.acceptance_phrases)
        self._negative = _alternation(vocabulary.time_negative_words)
        self._opener = re.compile(
            r"^(?:" + "|".join(re.escape(w) for w in vocabulary.rejection_openers) + r")(?![a-z'])"
        )
        self._idioms = _alternation(vocabulary.rejection_opener_idioms)
        self._busy = re.compile(r"(?<![a-z])busy(?![a-z])")
        negators = sorted(vocabulary.busy_negators, key=len, reverse=True)
        self._negated_busy = re.compile(
            r"(?<![a-z'])(?:" + "|".join(_phrase_body(n) for n in negators)
            + r")\s+(?:be\s+)?busy(?![a-z])"
        )
        self._alternatives = [
            re.compile(_phrase_pattern(marker) + r"\s+.*?(" + _TIME_EXPRESSION + r")")
            for marker in vocabulary.alternative_markers
        ]

    # =========================
    # Individual signals
    # =========================

    def is_rejection(self, text: str) -> bool:
        normalized = normalize_utterance(text)
        if self._rejection.search(normalized):
            return True
        if self._opener.search(normalized) and not self._idioms.match(normalized):
            return True
        return self.is_busy_rejection(normalized)

    def is_busy_rejection(self, text: str) -> bool:
        """`busy` rejects unless a negator sits right before it ("won't be busy")."""
        normalized = normalize_utterance(text)
        if not self._busy.search(normalized):
            return False
        return not self._negated_busy.search(normalized)

    def is_acceptance(self, text: str) -> bool:
        return bool(self._acceptance.search(normalize_utterance(text)))

    def find_alternative(self, text: str) -> Optional[str]:
        normalized = normalize_utterance(text)
        for pattern in self._alternatives:
            match = pattern.search(normalized)
            if match:
                parsed = parse_time(match.group(1))
                if parsed:
                    return parsed
        return None

    def find_unqualified_time(self, text: str) -> Optional[str]:
        """A time expression with no negative word within the surrounding window."""
        normalized = normalize_utterance(text)
        found = find_time(normalized)
        if found is None:
            return None
        window = normalized[max(0, found.start - _NEGATIVE_WINDOW):found.end + _NEGATIVE_WINDOW]
        if self._negative.search(window):
            return None
        return found.label

    # =========================
    # Classification
    # =========================

    def classify(self, text: str, suggested_slot: Optional[str]) -> SlotReply:
        """Rejection wins over acceptance, which wins over a bare time."""
        if not text or not text.strip():
            return SlotReply(SlotDecision.NO_MATCH)

        if self.is_rejection(text):
            return SlotReply(SlotDecision.REJECTED, self.find_alternative(text))

        if suggested_slot and self.is_acceptance(text):
            return SlotReply(SlotDecision.ACCEPTED, suggested_slot)

        bare_time = self.find_unqualified_time(text)
        if bare_time:
            return SlotReply(SlotDecision.TIME, bare_time)

        return SlotReply(SlotDecision.NO_MATCH)


_default_classifier: Optional[SlotReplyClassifier] = None


def classify_slot_reply(text: str, suggested_slot: Optional[str]) -> SlotReply:
    """Classify with the built-in vocabulary."""
    global _default_classifier
    if _default_classifier is None:
        _default_classifier = SlotReplyClassifier()
    return _default_classifier.classify(text, suggested_slot)
