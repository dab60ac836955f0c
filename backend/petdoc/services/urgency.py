"""
Urgency extraction from the assistant's final answer.

The controller only depends on the UrgencyExtractor protocol, so the regex
strategy here can be replaced by a structured-output one later.
"""
import logging
import re
from typing import Protocol

from petdoc.schemas.enums import UrgencyLevel
from petdoc.services.triage_config import UrgencyConfig, get_triage_config

logger = logging.getLogger(__name__)

# Anything that is not a word character: spaces, markdown emphasis, emoji, bullets
_NON_WORD = r"[^\w\n]*?"


class UrgencyExtractor(Protocol):
    def extract(self, text: str) -> str | None:
        ...


class RegexUrgencyExtractor:
    """
    Match "<heading><separator><phrase>" against a closed phrase vocabulary.

    Patterns are tried in order (bilingual zh heading first, then en); the
    first match wins. No match returns None.
    """

    def __init__(self, config: UrgencyConfig | None = None):
        self.config = config or get_triage_config().urgency
        self.patterns = self._build_patterns(self.config)

    @staticmethod
    def _build_patterns(config: UrgencyConfig) -> list[re.Pattern]:
        phrases = "|".join(re.escape(phrase) for phrase in config.phrases)
        zh = re.escape(config.heading_zh)
        en = re.escape(config.heading_en)
        # The phrase may follow on the same line or on the next one
        separator = rf"{_NON_WORD}[:：][^\w\n]*\n?[^\w\n]*"

        headings = [
            rf"{zh}\s*/\s*{en}",
            rf"{en}\s*/\s*{zh}",
            zh,
            en,
        ]
        return [re.compile(rf"{heading}{separator}({phrases})") for heading in headings]

    def extract(self, text: str) -> str | None:
        if not text:
            return None

        for pattern in self.patterns:
            match = pattern.search(text)
            if match:
                return match.group(1)

        logger.debug("No urgency label found", extra={"text_length": len(text)})
        return None


def normalize_urgency(label: str | None, config: UrgencyConfig | None = None) -> UrgencyLevel | None:
    """Map an extracted phrase onto emergency / within_24h / monitor."""
    if not label:
        return None

    config = config or get_triage_config().urgency
    wanted = label.strip().casefold()
    for phrase, level in config.phrases.items():
        if phrase.casefold() == wanted:
            return UrgencyLevel(level)

    # Stored labels are free text; accept a level value as well
    try:
        return UrgencyLevel(wanted)
    except ValueError:
        return None
