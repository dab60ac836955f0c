from enum import Enum


class Language(str, Enum):
    ZH = "zh"
    EN = "en"


class Species(str, Enum):
    DOG = "dog"
    CAT = "cat"


class SymptomCode(str, Enum):
    VOMITING = "vomiting"
    DIARRHEA = "diarrhea"
    NOT_EATING = "not_eating"
    LETHARGY = "lethargy"
    COUGHING = "coughing"
    SNEEZING = "sneezing"
    SCRATCHING = "scratching"
    LIMPING = "limping"
    EYE_ISSUES = "eye_issues"
    EAR_ISSUES = "ear_issues"
    URINATION = "urination"
    BREATHING = "breathing"
    WEIGHT_CHANGE = "weight_change"
    BEHAVIORAL = "behavioral"
    OTHER = "other"


class DurationCode(str, Enum):
    TODAY = "today"
    ONE_TO_THREE_DAYS = "1-3days"
    FOUR_TO_SEVEN_DAYS = "4-7days"
    ONE_TO_TWO_WEEKS = "1-2weeks"
    OVER_TWO_WEEKS = "over2weeks"
    RECURRING = "recurring"


class IntakeSeverity(str, Enum):
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"
    EMERGENCY = "emergency"


class UrgencyLevel(str, Enum):
    EMERGENCY = "emergency"
    WITHIN_24H = "within_24h"
    MONITOR = "monitor"


class ChatRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class TriageState(str, Enum):
    NO_PET_SELECTED = "no_pet_selected"
    INTAKE_FORM = "intake_form"
    STREAMING = "streaming"
    IDLE = "idle"


class RecoverySourceType(str, Enum):
    AI_CONSULT = "ai_consult"
    VET_VISIT = "vet_visit"


class RecoverySeverity(str, Enum):
    MILD = "mild"
    MODERATE = "moderate"


class RecoveryStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class AppetiteLevel(str, Enum):
    NORMAL = "normal"
    REDUCED = "reduced"
    POOR = "poor"


class EnergyLevel(str, Enum):
    NORMAL = "normal"
    LOW = "low"
    VERY_LOW = "very_low"


class SymptomStatus(str, Enum):
    IMPROVED = "improved"
    SAME = "same"
    WORSE = "worse"


class RecoveryTrend(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    WORSENING = "worsening"


class DayState(str, Enum):
    COMPLETED = "completed"
    TODAY = "today"
    FUTURE = "future"
    MISSED = "missed"


class CheckinNext(str, Enum):
    """Where the client goes after a checkin is recorded."""
    PLAN_DETAIL = "plan_detail"
    SUMMARY = "summary"


# Intake severities a suggested recovery plan can follow, mapped to plan severity
INTAKE_TO_RECOVERY_SEVERITY: dict[IntakeSeverity, RecoverySeverity] = {
    IntakeSeverity.MILD: RecoverySeverity.MILD,
    IntakeSeverity.MODERATE: RecoverySeverity.MODERATE,
}
