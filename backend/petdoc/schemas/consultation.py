from datetime import datetime

from pydantic import BaseModel, Field

from petdoc.schemas.enums import DurationCode, IntakeSeverity, SymptomCode, UrgencyLevel


class ConsultationBase(BaseModel):
    pet_id: int
    main_symptom: SymptomCode
    duration: DurationCode
    severity: IntakeSeverity
    additional_symptoms: list[SymptomCode] = Field(default_factory=list)
    additional_notes: str | None = None
    urgency_level: str | None = Field(None, description="Label extracted from the final answer, as written")
    summary: str | None = None
    full_response: str | None = None


class ConsultationCreate(ConsultationBase):
    pass


class ConsultationResponse(ConsultationBase):
    id: int
    user_id: int
    created_at: datetime
    urgency: UrgencyLevel | None = Field(None, description="urgency_level normalized, if recognized")

    class Config:
        from_attributes = True


class ConsultationListResponse(BaseModel):
    consultations: list[ConsultationResponse]
    total: int
