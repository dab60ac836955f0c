from pydantic import BaseModel, Field

from petdoc.schemas.chat import ChatMessage
from petdoc.schemas.enums import DurationCode, IntakeSeverity, SymptomCode, TriageState


class TriageSessionCreate(BaseModel):
    pet_id: int | None = None


class SelectPetRequest(BaseModel):
    pet_id: int


class IntakeSubmit(BaseModel):
    """Intake form as posted; required fields are checked by the collector."""
    main_symptom: SymptomCode | None = None
    duration: DurationCode | None = None
    severity: IntakeSeverity | None = None
    additional_symptoms: list[SymptomCode] = Field(default_factory=list)
    additional_notes: str | None = Field(None, max_length=2000)


class SendMessageRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=4000)


class TriageSessionResponse(BaseModel):
    session_id: str
    state: TriageState
    pet_id: int | None = None
    messages: list[ChatMessage]
    is_loading: bool
    saved: bool
    intake_submitted: bool


class TreatmentCodeResponse(BaseModel):
    code: str
    name: str
    category: str
    cost_low: str
    cost_mid: str
    cost_high: str


class TreatmentCodeListResponse(BaseModel):
    codes: list[TreatmentCodeResponse]
    total: int
