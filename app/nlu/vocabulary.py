"""
Extraction vocabulary.
Word lists and aliases used by the heuristic extractors, overridable from JSON.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class ExtractionVocabulary(BaseModel):
    """Closed sets of phrases the heuristic extractors match against."""

    rejection_phrases: List[str] = Field(default_factory=lambda: [
        "doesn't work", "won't work", "can't work",
        "not available", "not possible", "not happening",
        "unavailable", "isn't possible", "isn't available", "isn't good",
        "aren't available", "inconvenient", "doesn't suit", "not suitable",
        "not free", "not open", "conflict", "bad time",
        "too early", "too late", "not good",
        "terrible", "awful", "impossible", "out of the question",
    ])
    rejection_openers: List[str] = Field(default_factory=lambda: ["no", "nope", "nah"])
    rejection_opener_idioms: List[str] = Field(default_factory=lambda: [
        "no problem", "no worries", "no doubt", "no rush", "no issue",
    ])
    busy_negators: List[str] = Field(default_factory=lambda: [
        "won't", "will not", "shouldn't", "should not",
        "can't", "cannot", "couldn't", "could not",
        "wouldn't", "would not", "might not",
        "isn't going to", "not going to",
        "am not", "are not", "is not", "not",
    ])
    alternative_markers: List[str] = Field(default_factory=lambda: [
        "but", "maybe", "how about", "instead", "prefer", "rather",
    ])
    acceptance_phrases: List[str] = Field(default_factory=lambda: [
        "yes", "yeah", "yep", "that works", "sounds good", "perfect",
        "great", "sure", "works for me", "let's do it", "good", "fine",
        "okay", "ok", "that time is fine", "excellent", "wonderful", "absolutely",
    ])
    time_negative_words: List[str] = Field(default_factory=lambda: [
        "not", "doesn't", "won't", "can't", "bad", "terrible", "awful",
    ])
    email_preambles: List[str] = Field(default_factory=lambda: [
        "my email address is", "my email is", "email is", "the email is", "it's", "its",
    ])
    email_filler_words: List[str] = Field(default_factory=lambda: [
        "the", "a", "an", "and", "or", "to", "of", "in", "on", "for",
    ])
    domain_aliases: Dict[str, str] = Field(default_factory=lambda: {
        "gmail": "gmail.com",
        "geemail": "gmail.com",
        "yahoo": "yahoo.com",
        "outlook": "outlook.com",
        "hotmail": "hotmail.com",
        "icloud": "icloud.com",
        "protonmail": "protonmail.com",
    })
    name_preambles: List[str] = Field(default_factory=lambda: [
        "my name is", "my name's", "the name is", "name is",
        "i'm", "i am", "im", "call me", "this is", "it's", "its",
    ])

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "ExtractionVocabulary":
        """Load from a JSON file, falling back to the built-in lists."""
        if path is None:
            return cls()
        vocabulary = cls.model_validate_json(Path(path).read_text(encoding="utf-8"))
        logger.info(f"Loaded extraction vocabulary from {path}")
        return vocabulary
