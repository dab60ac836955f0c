"""
Localized display labels.

Every code the core deals with (intake choices, checkin answers, trends,
species) has a fixed zh/en label. Rendering never guesses: an unknown value
falls back to the raw code.
"""
from enum import Enum

from petdoc.schemas.enums import (
    AppetiteLevel,
    DurationCode,
    EnergyLevel,
    IntakeSeverity,
    Language,
    RecoveryTrend,
    Species,
    SymptomCode,
    SymptomStatus,
)

SYMPTOM_LABELS: dict[SymptomCode, dict[Language, str]] = {
    SymptomCode.VOMITING: {Language.EN: "Vomiting", Language.ZH: "呕吐"},
    SymptomCode.DIARRHEA: {Language.EN: "Diarrhea", Language.ZH: "腹泻"},
    SymptomCode.NOT_EATING: {Language.EN: "Not eating / Loss of appetite", Language.ZH: "不吃东西 / 食欲下降"},
    SymptomCode.LETHARGY: {Language.EN: "Lethargy / Low energy", Language.ZH: "精神不振 / 嗜睡"},
    SymptomCode.COUGHING: {Language.EN: "Coughing", Language.ZH: "咳嗽"},
    SymptomCode.SNEEZING: {Language.EN: "Sneezing / Runny nose", Language.ZH: "打喷嚏 / 流鼻涕"},
    SymptomCode.SCRATCHING: {Language.EN: "Scratching / Skin issues", Language.ZH: "抓挠 / 皮肤问题"},
    SymptomCode.LIMPING: {Language.EN: "Limping / Difficulty walking", Language.ZH: "跛行 / 行走困难"},
    SymptomCode.EYE_ISSUES: {Language.EN: "Eye discharge / Redness", Language.ZH: "眼睛分泌物 / 发红"},
    SymptomCode.EAR_ISSUES: {Language.EN: "Ear scratching / Head shaking", Language.ZH: "抓耳朵 / 摇头"},
    SymptomCode.URINATION: {Language.EN: "Urination problems", Language.ZH: "排尿问题"},
    SymptomCode.BREATHING: {Language.EN: "Breathing difficulties", Language.ZH: "呼吸困难"},
    SymptomCode.WEIGHT_CHANGE: {Language.EN: "Weight loss / gain", Language.ZH: "体重变化"},
    SymptomCode.BEHAVIORAL: {Language.EN: "Behavioral changes", Language.ZH: "行为变化"},
    SymptomCode.OTHER: {Language.EN: "Other", Language.ZH: "其他"},
}

DURATION_LABELS: dict[DurationCode, dict[Language, str]] = {
    DurationCode.TODAY: {Language.EN: "Just today", Language.ZH: "今天开始"},
    DurationCode.ONE_TO_THREE_DAYS: {Language.EN: "1-3 days", Language.ZH: "1-3天"},
    DurationCode.FOUR_TO_SEVEN_DAYS: {Language.EN: "4-7 days", Language.ZH: "4-7天"},
    DurationCode.ONE_TO_TWO_WEEKS: {Language.EN: "1-2 weeks", Language.ZH: "1-2周"},
    DurationCode.OVER_TWO_WEEKS: {Language.EN: "Over 2 weeks", Language.ZH: "超过2周"},
    DurationCode.RECURRING: {Language.EN: "Recurring issue", Language.ZH: "反复发作"},
}

SEVERITY_LABELS: dict[IntakeSeverity, dict[Language, str]] = {
    IntakeSeverity.MILD: {Language.EN: "Mild", Language.ZH: "轻微"},
    IntakeSeverity.MODERATE: {Language.EN: "Moderate", Language.ZH: "中等"},
    IntakeSeverity.SEVERE: {Language.EN: "Severe", Language.ZH: "严重"},
    IntakeSeverity.EMERGENCY: {Language.EN: "Emergency", Language.ZH: "紧急"},
}

APPETITE_LABELS: dict[AppetiteLevel, dict[Language, str]] = {
    AppetiteLevel.NORMAL: {Language.EN: "normal", Language.ZH: "正常"},
    AppetiteLevel.REDUCED: {Language.EN: "reduced", Language.ZH: "减少"},
    AppetiteLevel.POOR: {Language.EN: "poor", Language.ZH: "很差"},
}

ENERGY_LABELS: dict[EnergyLevel, dict[Language, str]] = {
    EnergyLevel.NORMAL: {Language.EN: "normal", Language.ZH: "正常"},
    EnergyLevel.LOW: {Language.EN: "low", Language.ZH: "较低"},
    EnergyLevel.VERY_LOW: {Language.EN: "very low", Language.ZH: "很低"},
}

SYMPTOM_STATUS_LABELS: dict[SymptomStatus, dict[Language, str]] = {
    SymptomStatus.IMPROVED: {Language.EN: "improved", Language.ZH: "好转"},
    SymptomStatus.SAME: {Language.EN: "same", Language.ZH: "持平"},
    SymptomStatus.WORSE: {Language.EN: "worse", Language.ZH: "加重"},
}

TREND_LABELS: dict[RecoveryTrend, dict[Language, str]] = {
    RecoveryTrend.IMPROVING: {Language.EN: "Improving", Language.ZH: "趋势向好"},
    RecoveryTrend.STABLE: {Language.EN: "Stable", Language.ZH: "保持稳定"},
    RecoveryTrend.WORSENING: {Language.EN: "Needs attention", Language.ZH: "需要关注"},
}

SPECIES_LABELS: dict[Species, dict[Language, str]] = {
    Species.DOG: {Language.EN: "Dog", Language.ZH: "狗"},
    Species.CAT: {Language.EN: "Cat", Language.ZH: "猫"},
}

# Field captions used when rendering the intake seed message
INTAKE_CAPTIONS: dict[Language, dict[str, str]] = {
    Language.EN: {
        "intro": "I'd like help assessing my pet's condition.",
        "main_symptom": "Main symptom",
        "duration": "Duration",
        "severity": "Severity",
        "additional_symptoms": "Other symptoms",
        "additional_notes": "Additional notes",
        "separator": ", ",
        "colon": ": ",
    },
    Language.ZH: {
        "intro": "请帮我评估一下我的宠物的情况。",
        "main_symptom": "主要症状",
        "duration": "持续时间",
        "severity": "严重程度",
        "additional_symptoms": "其他症状",
        "additional_notes": "补充信息",
        "separator": "、",
        "colon": "：",
    },
}


def resolve_language(value: str | None, default: Language = Language.ZH) -> Language:
    """Map a language tag ("en", "en-US", "zh-CN", ...) onto a supported language."""
    if not value:
        return default
    tag = value.split(",")[0].strip().lower()
    if tag.startswith("en"):
        return Language.EN
    if tag.startswith("zh"):
        return Language.ZH
    return default


def label_for(table: dict, value: Enum | str | None, language: Language) -> str:
    """Look up a localized label, falling back to the raw code."""
    if value is None:
        return ""
    key = value
    if not isinstance(value, Enum):
        for member in table:
            if member.value == value:
                key = member
                break
    labels = table.get(key)
    if labels is None:
        return value.value if isinstance(value, Enum) else str(value)
    return labels[language]


def symptom_label(code: SymptomCode | str, language: Language) -> str:
    return label_for(SYMPTOM_LABELS, code, language)


def trend_label(trend: RecoveryTrend | str | None, language: Language) -> str:
    # Anything that is not improving/worsening reads as stable
    try:
        trend = RecoveryTrend(trend)
    except ValueError:
        trend = RecoveryTrend.STABLE
    return TREND_LABELS[trend][language]
