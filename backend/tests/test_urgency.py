"""Tests for urgency label extraction and normalization."""
import pytest

from petdoc.schemas.enums import UrgencyLevel
from petdoc.services.triage_config import UrgencyConfig
from petdoc.services.urgency import RegexUrgencyExtractor, normalize_urgency


class TestRegexUrgencyExtractor:
    """Tests for the heading + phrase patterns."""

    @pytest.mark.parametrize(
        "phrase",
        ["24小时内就医", "24小时内", "Within 24 hours", "紧急", "Emergency", "可观察", "观察", "Monitor"],
    )
    def test_every_phrase_after_bilingual_heading(self, phrase):
        extractor = RegexUrgencyExtractor()
        text = f"**紧急程度 / Urgency Level:** {phrase}\n\nMore text"
        assert extractor.extract(text) == phrase

    def test_chinese_heading_with_full_width_colon(self):
        extractor = RegexUrgencyExtractor()
        assert extractor.extract("紧急程度：24小时内就医") == "24小时内就医"

    def test_english_heading(self):
        extractor = RegexUrgencyExtractor()
        text = "### Urgency Level: Monitor\nKeep an eye on appetite."
        assert extractor.extract(text) == "Monitor"

    def test_english_then_chinese_heading(self):
        extractor = RegexUrgencyExtractor()
        assert extractor.extract("Urgency Level / 紧急程度: 紧急") == "紧急"

    def test_markdown_and_emoji_between_heading_and_phrase(self):
        extractor = RegexUrgencyExtractor()
        text = "**紧急程度 / Urgency Level**: 🟡 **24小时内 / Within 24 hours**"
        assert extractor.extract(text) == "24小时内"

    def test_phrase_on_line_after_heading(self):
        extractor = RegexUrgencyExtractor()
        text = "**紧急程度 / Urgency Level:**\n24小时内就医 / Within 24 hours\n\n**建议就诊时间 / Suggested Timing:**"
        assert extractor.extract(text) == "24小时内就医"

    def test_phrase_on_next_line_with_markers(self):
        extractor = RegexUrgencyExtractor()
        text = "**Urgency Level:**\r\n- 🔴 **Emergency**"
        assert extractor.extract(text) == "Emergency"

    def test_phrase_after_blank_line_not_taken(self):
        extractor = RegexUrgencyExtractor()
        assert extractor.extract("Urgency Level:\n\nMonitor") is None

    def test_longest_phrase_wins(self):
        extractor = RegexUrgencyExtractor()
        assert extractor.extract("紧急程度: 可观察") == "可观察"

    def test_first_matching_heading_wins(self):
        extractor = RegexUrgencyExtractor()
        text = "Urgency Level: Monitor\n紧急程度 / Urgency Level: 紧急"
        assert extractor.extract(text) == "紧急"

    def test_no_heading_returns_none(self):
        extractor = RegexUrgencyExtractor()
        assert extractor.extract("This looks like an emergency, go now.") is None

    def test_unknown_phrase_returns_none(self):
        extractor = RegexUrgencyExtractor()
        assert extractor.extract("Urgency Level: Whenever convenient") is None

    def test_empty_text(self):
        extractor = RegexUrgencyExtractor()
        assert extractor.extract("") is None

    def test_custom_vocabulary(self):
        config = UrgencyConfig(
            heading_zh="紧急度",
            heading_en="Priority",
            phrases={"Now": "emergency", "Later": "monitor"},
        )
        extractor = RegexUrgencyExtractor(config)
        assert extractor.extract("Priority: Later") == "Later"
        assert extractor.extract("Urgency Level: Monitor") is None


class TestNormalizeUrgency:
    """Tests for mapping labels onto levels."""

    @pytest.mark.parametrize(
        "label,expected",
        [
            ("24小时内就医", UrgencyLevel.WITHIN_24H),
            ("24小时内", UrgencyLevel.WITHIN_24H),
            ("Within 24 hours", UrgencyLevel.WITHIN_24H),
            ("紧急", UrgencyLevel.EMERGENCY),
            ("Emergency", UrgencyLevel.EMERGENCY),
            ("可观察", UrgencyLevel.MONITOR),
            ("观察", UrgencyLevel.MONITOR),
            ("Monitor", UrgencyLevel.MONITOR),
        ],
    )
    def test_known_phrases(self, label, expected):
        assert normalize_urgency(label) == expected

    def test_case_insensitive(self):
        assert normalize_urgency("within 24 HOURS") == UrgencyLevel.WITHIN_24H

    def test_level_value_accepted(self):
        assert normalize_urgency("emergency") == UrgencyLevel.EMERGENCY
        assert normalize_urgency("within_24h") == UrgencyLevel.WITHIN_24H

    def test_unknown_returns_none(self):
        assert normalize_urgency("soon-ish") is None

    def test_none_returns_none(self):
        assert normalize_urgency(None) is None
        assert normalize_urgency("") is None
