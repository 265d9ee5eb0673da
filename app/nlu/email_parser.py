"""
Spoken email reconstruction.
Rebuilds addresses dictated as "john dot doe at gmail dot com".
"""

import logging
import re
from typing import Optional

from app.nlu.vocabulary import ExtractionVocabulary

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
_EMBEDDED_EMAIL = re.compile(r"([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})")

# Spoken tokens and their written form, applied in order.
_SPOKEN_SYMBOLS = [
    (re.compile(r"\s+at\s+the\s+rate\s+"), " @ "),
    (re.compile(r"\s+at\s+"), " @ "),
    (re.compile(r"\s+(?:dot|period)\s+"), "."),
    (re.compile(r"\s+underscore\s+"), "_"),
    (re.compile(r"\s+(?:dash|hyphen)\s+"), "-"),
]


def is_valid_email(email: Optional[str]) -> bool:
    """Shape check: local part, a dotted domain and an alphabetic TLD of 2+ chars."""
    if not email or not EMAIL_PATTERN.match(email):
        return False
    local, domain = email.rsplit("@", 1)
    if not local:
        return False
    tld = domain.rsplit(".", 1)[-1]
    return "." in domain and len(tld) >= 2


class SpokenEmailParser:
    """Reconstructs an email address from a transcribed utterance."""

    def __init__(self, vocabulary: Optional[ExtractionVocabulary] = None):
        vocabulary = vocabulary or ExtractionVocabulary()
        preambles = sorted(vocabulary.email_preambles, key=len, reverse=True)
        self._preamble = re.compile(
            r"^(?:" + "|".join(re.escape(p).replace(r"\ ", r"\s+") for p in preambles) + r")\s+"
        )
        self._filler = re.compile(
            r"\s+(?:" + "|".join(re.escape(w) for w in vocabulary.email_filler_words) + r")\s+"
        )
        self._aliases = dict(vocabulary.domain_aliases)
        self._providers = sorted({alias.split(".")[0] for alias in self._aliases.values()})

    def parse(self, text: str) -> Optional[str]:
        if not text or not text.strip():
            return None

        normalized = text.lower().replace("’", "'").strip()

        direct = _EMBEDDED_EMAIL.search(normalized)
        if direct:
            return direct.group(1).lower()

        normalized = self._preamble.sub("", normalized)

        # Pad so spoken tokens at either edge still see surrounding whitespace.
        spoken = f" {normalized} "
        for pattern, replacement in _SPOKEN_SYMBOLS:
            spoken = pattern.sub(replacement, spoken)

        parts = spoken.split("@")
        if len(parts) != 2:
            logger.debug(f"Spoken email rejected: found {len(parts) - 1} '@' separators")
            return None

        local = self._clean_local(parts[0])
        domain = self._clean_domain(parts[1])

        if not local or "." not in domain:
            return None

        email = f"{local}@{domain}"
        return email if is_valid_email(email) else None

    def _clean_local(self, part: str) -> str:
        local = f" {part.strip()} "
        # Overlapping fillers ("the a") need more than one pass.
        previous = None
        while previous != local:
            previous = local
            local = self._filler.sub(" ", local)
        local = re.sub(r"\s+", "", local)
        return re.sub(r"[^a-z0-9._-]", "", local)

    def _clean_domain(self, part: str) -> str:
        domain = re.sub(r"\s+", "", part)
        domain = self._aliases.get(domain, domain)
        if "." not in domain and any(domain.startswith(p) for p in self._providers):
            domain = f"{domain}.com"
        domain = re.sub(r"[^a-z0-9.-]", "", domain)
        return domain.strip(".")


_default_parser: Optional[SpokenEmailParser] = None


def parse_spoken_email(text: str) -> Optional[str]:
    """Parse with the built-in vocabulary."""
    global _default_parser
    if _default_parser is None:
        _default_parser = SpokenEmailParser()
    return _default_parser.parse(text)
