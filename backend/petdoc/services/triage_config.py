"""
Triage Configuration - Tunable vocabulary and defaults for the triage and recovery core.

Urgency phrases, treatment codes, recovery defaults and gateway knobs live
here so they can be changed from YAML without code changes.
"""
from dataclasses import dataclass, field
from typing import Optional

import yaml
from pathlib import Path

from petdoc.schemas.enums import Language
from petdoc.services.treatment_codes import DEFAULT_TREATMENT_CODES, TreatmentCode


@dataclass
class UrgencyConfig:
    """Closed urgency vocabulary and the headings it follows."""
    # Heading markers, tried as "<zh> / <en>", "<zh>" or "<en>"
    heading_zh: str = "紧急程度"
    heading_en: str = "Urgency Level"

    # Phrase -> normalized level. Longer phrases must come before their prefixes.
    phrases: dict[str, str] = field(default_factory=lambda: {
        "24小时内就医": "within_24h",
        "24小时内": "within_24h",
        "Within 24 hours": "within_24h",
        "紧急": "emergency",
        "Emergency": "emergency",
        "可观察": "monitor",
        "观察": "monitor",
        "Monitor": "monitor",
    })

    # Labels the assistant is told to choose from, per language
    labels_zh: list[str] = field(default_factory=lambda: ["紧急", "24小时内", "观察"])
    labels_en: list[str] = field(default_factory=lambda: ["Emergency", "Within 24 hours", "Monitor"])


@dataclass
class RecoveryConfig:
    """Recovery plan defaults and the neutral summary fallback."""
    default_duration_days: int = 3

    # Consultation severities a suggested plan may follow
    eligible_severities: list[str] = field(default_factory=lambda: ["mild", "moderate"])
    # Normalized urgency levels that rule out home observation
    ineligible_urgency_levels: list[str] = field(default_factory=lambda: ["emergency"])

    fallback_trend: str = "stable"
    fallback_summary_zh: str = "观察记录已收集完成。建议继续关注宠物状态。"
    fallback_summary_en: str = "Observation records have been collected. Keep monitoring your pet's condition."
    fallback_suggestion_zh: str = "如有异常，请及时就医"
    fallback_suggestion_en: str = "If anything seems abnormal, please see a vet promptly"

    def fallback_summary(self, language: Language) -> str:
        return self.fallback_summary_en if language == Language.EN else self.fallback_summary_zh

    def fallback_suggestion(self, language: Language) -> str:
        return self.fallback_suggestion_en if language == Language.EN else self.fallback_suggestion_zh


@dataclass
class GatewayConfig:
    """Knobs for the upstream chat completion calls."""
    summary_tool_name: str = "provide_recovery_summary"
    temperature: Optional[float] = None
    # Upstream error bodies are truncated to this many characters in logs
    log_body_chars: int = 500


@dataclass
class TriageConfig:
    """Master configuration for the triage and recovery core."""
    urgency: UrgencyConfig = field(default_factory=UrgencyConfig)
    recovery: RecoveryConfig = field(default_factory=RecoveryConfig)
    gateway: GatewayConfig = field(default_factory=GatewayConfig)
    treatment_codes: list[TreatmentCode] = field(default_factory=lambda: list(DEFAULT_TREATMENT_CODES))

    @classmethod
    def from_yaml(cls, path: str | Path) -> "TriageConfig":
        """Load configuration from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        config = cls()

        if "urgency" in data:
            config.urgency = UrgencyConfig(**data["urgency"])
        if "recovery" in data:
            config.recovery = RecoveryConfig(**data["recovery"])
        if "gateway" in data:
            config.gateway = GatewayConfig(**data["gateway"])
        if "treatment_codes" in data:
            config.treatment_codes = [TreatmentCode.from_dict(item) for item in data["treatment_codes"]]

        if config.recovery.default_duration_days < 1:
            raise ValueError("recovery.default_duration_days must be a positive integer")

        return config

    def to_dict(self) -> dict:
        """Convert configuration to dictionary."""
        return {
            "urgency": self.urgency.__dict__,
            "recovery": self.recovery.__dict__,
            "gateway": self.gateway.__dict__,
            "treatment_codes": [item.to_dict() for item in self.treatment_codes],
        }


# Global default configuration instance
_default_config: Optional[TriageConfig] = None


def get_triage_config() -> TriageConfig:
    """Get the current triage configuration (singleton pattern)."""
    global _default_config
    if _default_config is None:
        _default_config = TriageConfig()
    return _default_config


def set_triage_config(config: TriageConfig) -> None:
    """Set a custom triage configuration."""
    global _default_config
    _default_config = config


def load_triage_config_from_yaml(path: str | Path) -> TriageConfig:
    """Load and set triage configuration from YAML file."""
    config = TriageConfig.from_yaml(path)
    set_triage_config(config)
    return config
