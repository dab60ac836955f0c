from pydantic import BaseModel, ConfigDict, Field

from petdoc.schemas.enums import ChatRole, Language, RecoveryTrend


class ChatMessage(BaseModel):
    role: ChatRole
    content: str


class PetInfo(BaseModel):
    """Pet context as the gateway sees it: already localized strings."""
    name: str | None = None
    species: str | None = None
    age: str | None = None
    weight: float | None = None


class AIVetRequest(BaseModel):
    """Body of POST /ai-vet."""
    model_config = ConfigDict(populate_by_name=True)

    messages: list[ChatMessage] = Field(..., min_length=1)
    pet_info: PetInfo | None = Field(None, alias="petInfo")
    language: Language = Language.ZH


class CheckinSnapshot(BaseModel):
    day_index: int
    appetite: str
    energy: str
    symptom_status: str

    class Config:
        from_attributes = True


class RecoverySummaryRequest(BaseModel):
    """Body of POST /recovery-summary."""
    model_config = ConfigDict(populate_by_name=True)

    pet_name: str = Field(..., alias="petName")
    main_symptom: str = Field(..., alias="mainSymptom")
    checkins: list[CheckinSnapshot]
    language: Language = Language.ZH


class RecoverySummary(BaseModel):
    trend: RecoveryTrend
    summary: str = Field(..., min_length=1)
    suggestion: str = Field(..., min_length=1)
