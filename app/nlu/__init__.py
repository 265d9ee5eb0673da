"""
Voice field extraction.
"""

from app.nlu.base import FieldExtractor
from app.nlu.heuristic import HeuristicExtractor
from app.nlu.slot_reply import SlotDecision, SlotReply, classify_slot_reply
from app.nlu.email_parser import is_valid_email, parse_spoken_email
from app.nlu.time_parser import find_time, parse_time
from app.nlu.vocabulary import ExtractionVocabulary

__all__ = [
    "FieldExtractor",
    "HeuristicExtractor",
    "SlotDecision",
    "SlotReply",
    "classify_slot_reply",
    "is_valid_email",
    "parse_spoken_email",
    "find_time",
    "parse_time",
    "ExtractionVocabulary",
]
