from datetime import datetime

from pydantic import BaseModel, EmailStr

from petdoc.schemas.enums import Language


class UserBase(BaseModel):
    email: EmailStr
    display_name: str | None = None
    language: Language = Language.ZH


class UserCreate(UserBase):
    pass


class UserResponse(UserBase):
    id: int
    created_at: datetime

    class Config:
        from_attributes = True
