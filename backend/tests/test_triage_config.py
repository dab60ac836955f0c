"""Tests for TriageConfig and its YAML overrides."""
import tempfile
from pathlib import Path

import pytest
import yaml

from petdoc.schemas.enums import Language
from petdoc.services.treatment_codes import DEFAULT_TREATMENT_CODES, TreatmentCode, search_treatment_codes
from petdoc.services.triage_config import (
    RecoveryConfig,
    TriageConfig,
    UrgencyConfig,
    get_triage_config,
    load_triage_config_from_yaml,
    set_triage_config,
)


def write_yaml(data: dict) -> Path:
    with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False, encoding="utf-8") as f:
        yaml.safe_dump(data, f, allow_unicode=True)
        return Path(f.name)


class TestTriageConfigDefaults:
    """Tests for default configuration values."""

    def test_default_recovery(self):
        config = TriageConfig()
        assert config.recovery.default_duration_days == 3
        assert config.recovery.eligible_severities == ["mild", "moderate"]
        assert config.recovery.ineligible_urgency_levels == ["emergency"]
        assert config.recovery.fallback_trend == "stable"

    def test_fallback_text_per_language(self):
        recovery = RecoveryConfig()
        assert recovery.fallback_summary(Language.ZH) == "观察记录已收集完成。建议继续关注宠物状态。"
        assert recovery.fallback_suggestion(Language.EN) == "If anything seems abnormal, please see a vet promptly"

    def test_default_urgency_vocabulary(self):
        config = TriageConfig()
        assert config.urgency.heading_zh == "紧急程度"
        assert config.urgency.heading_en == "Urgency Level"
        assert set(config.urgency.phrases.values()) == {"emergency", "within_24h", "monitor"}
        assert len(config.urgency.labels_zh) == 3
        assert len(config.urgency.labels_en) == 3

    def test_longer_phrases_listed_first(self):
        phrases = list(UrgencyConfig().phrases)
        assert phrases.index("24小时内就医") < phrases.index("24小时内")
        assert phrases.index("可观察") < phrases.index("观察")

    def test_default_gateway(self):
        config = TriageConfig()
        assert config.gateway.summary_tool_name == "provide_recovery_summary"
        assert config.gateway.temperature is None

    def test_default_treatment_codes(self):
        config = TriageConfig()
        assert len(config.treatment_codes) == 20
        codes = [item.code for item in config.treatment_codes]
        assert len(set(codes)) == len(codes)

    def test_every_code_is_bilingual_with_three_bands(self):
        for item in DEFAULT_TREATMENT_CODES:
            for language in Language:
                assert item.name[language]
                assert item.category[language]
                assert item.cost_low[language]
                assert item.cost_mid[language]
                assert item.cost_high[language]


class TestTriageConfigFromYaml:
    """Tests for YAML overrides."""

    def test_partial_override(self):
        path = write_yaml({"recovery": {"default_duration_days": 5}})
        config = TriageConfig.from_yaml(path)
        assert config.recovery.default_duration_days == 5
        # Untouched sections keep defaults
        assert config.urgency.heading_en == "Urgency Level"
        assert len(config.treatment_codes) == 20

    def test_empty_file(self):
        path = write_yaml({})
        config = TriageConfig.from_yaml(path)
        assert config.recovery.default_duration_days == 3

    def test_treatment_codes_override(self):
        path = write_yaml({
            "treatment_codes": [
                {
                    "code": "EXAM-001",
                    "name_zh": "基础体检",
                    "name_en": "Basic Examination",
                    "category_zh": "检查",
                    "category_en": "Examination",
                    "cost_low_zh": "¥60-100",
                    "cost_low_en": "$25-40",
                    "cost_mid_zh": "¥100-200",
                    "cost_mid_en": "$40-80",
                    "cost_high_zh": "¥200-300",
                    "cost_high_en": "$80-120",
                }
            ]
        })
        config = TriageConfig.from_yaml(path)
        assert len(config.treatment_codes) == 1
        assert config.treatment_codes[0].cost_low[Language.ZH] == "¥60-100"

    def test_non_positive_duration_rejected(self):
        path = write_yaml({"recovery": {"default_duration_days": 0}})
        with pytest.raises(ValueError):
            TriageConfig.from_yaml(path)

    def test_unknown_key_rejected(self):
        path = write_yaml({"recovery": {"default_days": 4}})
        with pytest.raises(TypeError):
            TriageConfig.from_yaml(path)

    def test_to_dict_round_trip_through_yaml(self):
        config = TriageConfig()
        config.recovery.default_duration_days = 7
        path = write_yaml(config.to_dict())
        loaded = TriageConfig.from_yaml(path)
        assert loaded.recovery.default_duration_days == 7
        assert loaded.treatment_codes == config.treatment_codes


class TestTriageConfigSingleton:
    """Tests for the process-wide configuration."""

    def test_get_returns_same_instance(self):
        assert get_triage_config() is get_triage_config()

    def test_set_replaces_instance(self):
        custom = TriageConfig(recovery=RecoveryConfig(default_duration_days=4))
        set_triage_config(custom)
        assert get_triage_config().recovery.default_duration_days == 4

    def test_load_from_yaml_sets_instance(self):
        path = write_yaml({"gateway": {"temperature": 0.3}})
        load_triage_config_from_yaml(path)
        assert get_triage_config().gateway.temperature == 0.3


class TestTreatmentCodes:
    """Tests for the treatment code vocabulary."""

    def test_display_in_language(self):
        item = DEFAULT_TREATMENT_CODES[0]
        display = item.to_display(Language.EN)
        assert display["code"] == "EXAM-001"
        assert display["name"] == "Basic Examination"
        assert display["cost_low"] == "$20-40"

    def test_bilingual_name(self):
        assert DEFAULT_TREATMENT_CODES[0].bilingual_name == "基础体检 (Basic Examination)"

    def test_dict_round_trip(self):
        item = DEFAULT_TREATMENT_CODES[3]
        assert TreatmentCode.from_dict(item.to_dict()) == item

    def test_search_by_code(self):
        results = search_treatment_codes(DEFAULT_TREATMENT_CODES, "dental")
        assert [item.code for item in results] == ["DENTAL-001", "DENTAL-002"]

    def test_search_by_chinese_name(self):
        results = search_treatment_codes(DEFAULT_TREATMENT_CODES, "血常规")
        assert [item.code for item in results] == ["BLOOD-001"]

    def test_empty_query_returns_all(self):
        assert len(search_treatment_codes(DEFAULT_TREATMENT_CODES, None)) == 20
        assert len(search_treatment_codes(DEFAULT_TREATMENT_CODES, "  ")) == 20
