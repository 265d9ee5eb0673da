"""
Field extractor interface.
The dialogue orchestrator only talks to extractors through this contract.
"""

from abc import ABC, abstractmethod
from typing import Optional

from app.nlu.slot_reply import SlotReply


class FieldExtractor(ABC):
    """Pulls booking fields out of a single user utterance."""

    @abstractmethod
    def extract_name(self, text: str) -> Optional[str]:
        """Return the visitor's name, or None when the utterance is empty."""

    @abstractmethod
    def parse_time(self, text: str) -> Optional[str]:
        """Return an `H:MM AM/PM` label, or None."""

    @abstractmethod
    def classify_slot_reply(self, text: str, suggested_slot: Optional[str]) -> SlotReply:
        """Classify a reply to a suggested slot."""

    @abstractmethod
    def parse_email(self, text: str) -> Optional[str]:
        """Return a valid email address, or None."""
