from datetime import date, datetime

from pydantic import BaseModel, Field

from petdoc.schemas.enums import Species


class PetBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    species: Species
    birthdate: date | None = None
    weight: float | None = Field(None, gt=0, description="Weight in kg")


class PetCreate(PetBase):
    pass


class PetResponse(PetBase):
    id: int
    user_id: int
    created_at: datetime

    class Config:
        from_attributes = True
