from datetime import datetime

from pydantic import BaseModel, Field

from petdoc.schemas.enums import (
    AppetiteLevel,
    CheckinNext,
    DayState,
    EnergyLevel,
    RecoverySeverity,
    RecoverySourceType,
    RecoveryStatus,
    RecoveryTrend,
    SymptomStatus,
)


class RecoveryPlanCreate(BaseModel):
    pet_id: int
    source_type: RecoverySourceType = RecoverySourceType.VET_VISIT
    source_id: int | None = None
    main_symptom: str = Field(..., min_length=1, max_length=255)
    severity_level: RecoverySeverity = RecoverySeverity.MILD
    duration_days: int | None = Field(None, ge=1, description="Defaults to the configured plan length")


class PlanFromConsultationCreate(BaseModel):
    duration_days: int | None = Field(None, ge=1)


class RecoveryPlanResponse(BaseModel):
    id: int
    user_id: int
    pet_id: int
    source_type: RecoverySourceType
    source_id: int | None = None
    main_symptom: str
    severity_level: RecoverySeverity
    duration_days: int
    status: RecoveryStatus
    ai_summary: str | None = None
    recovery_trend: RecoveryTrend | None = None
    suggestion: str | None = None
    created_at: datetime
    completed_at: datetime | None = None

    class Config:
        from_attributes = True


class RecoveryPlanListResponse(BaseModel):
    plans: list[RecoveryPlanResponse]
    total: int


class CheckinCreate(BaseModel):
    """All three observations are required; missing ones are reported together."""
    appetite: AppetiteLevel | None = None
    energy: EnergyLevel | None = None
    symptom_status: SymptomStatus | None = None
    notes: str | None = None
    day_index: int | None = Field(None, ge=1, description="Must be today's index when given")


class CheckinResponse(BaseModel):
    id: int
    plan_id: int
    day_index: int
    appetite: AppetiteLevel
    energy: EnergyLevel
    symptom_status: SymptomStatus
    notes: str | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class TimelineDayResponse(BaseModel):
    day_index: int
    state: DayState
    checkin_id: int | None = None


class ProgressResponse(BaseModel):
    days_since_start: int
    current_day_index: int
    completed_days: int
    needs_checkin_today: bool
    timeline: list[TimelineDayResponse]


class PlanDetailResponse(BaseModel):
    plan: RecoveryPlanResponse
    checkins: list[CheckinResponse]
    progress: ProgressResponse
    trend_label: str | None = None


class CheckinOutcomeResponse(BaseModel):
    checkin: CheckinResponse
    plan: RecoveryPlanResponse
    next: CheckinNext
    trend_label: str | None = None
