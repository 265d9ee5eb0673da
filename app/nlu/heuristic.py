"""
Heuristic field extractor.
Regex and word-list implementation of the FieldExtractor interface.
"""

import re
from pathlib import Path
from typing import Optional

from app.nlu.base import FieldExtractor
from app.nlu.email_parser import SpokenEmailParser
from app.nlu.slot_reply import SlotReply, SlotReplyClassifier
from app.nlu.time_parser import parse_time
from app.nlu.vocabulary import ExtractionVocabulary


class HeuristicExtractor(FieldExtractor):
    """Best-effort extraction tuned for speech transcripts."""

    def __init__(self, vocabulary: Optional[ExtractionVocabulary] = None):
        self.vocabulary = vocabulary or ExtractionVocabulary()
        self._classifier = SlotReplyClassifier(self.vocabulary)
        self._email_parser = SpokenEmailParser(self.vocabulary)
        preambles = sorted(self.vocabulary.name_preambles, key=len, reverse=True)
        self._name_preamble = re.compile(
            r"^(?:" + "|".join(re.escape(p).replace(r"\ ", r"\s+") for p in preambles) + r")\s+",
            re.IGNORECASE,
        )

    @classmethod
    def from_path(cls, path: Optional[Path]) -> "HeuristicExtractor":
        return cls(ExtractionVocabulary.load(path))

    def extract_name(self, text: str) -> Optional[str]:
        cleaned = (text or "").replace("’", "'").strip()
        if not cleaned:
            return None
        cleaned = re.sub(r"^(?:hi|hello|hey)[,!.]?\s+", "", cleaned, flags=re.IGNORECASE)
        cleaned = self._name_preamble.sub("", cleaned)
        cleaned = cleaned.strip().rstrip(".!?,")
        return cleaned or None

    def parse_time(self, text: str) -> Optional[str]:
        return parse_time(text)

    def classify_slot_reply(self, text: str, suggested_slot: Optional[str]) -> SlotReply:
        return self._classifier.classify(text, suggested_slot)

    def parse_email(self, text: str) -> Optional[str]:
        return self._email_parser.parse(text)
