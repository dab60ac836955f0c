from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from petdoc.database import Base
from petdoc.schemas.enums import UrgencyLevel
from petdoc.services.urgency import normalize_urgency


class Consultation(Base):
    """One completed, intake-seeded triage conversation. Never updated."""
    __tablename__ = "ai_vet_consultations"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    pet_id: Mapped[int] = mapped_column(ForeignKey("pets.id", ondelete="CASCADE"), index=True, nullable=False)

    # Intake, as submitted
    main_symptom: Mapped[str] = mapped_column(String(50), nullable=False)
    duration: Mapped[str] = mapped_column(String(20), nullable=False)
    severity: Mapped[str] = mapped_column(String(20), nullable=False)
    # ["diarrhea", "lethargy", ...]
    additional_symptoms: Mapped[list] = mapped_column(JSON().with_variant(JSONB(), "postgresql"), default=list)
    additional_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Assistant answer
    urgency_level: Mapped[str | None] = mapped_column(String(50), nullable=True)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    full_response: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, index=True, default=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="consultations")
    pet = relationship("Pet")

    @property
    def urgency(self) -> UrgencyLevel | None:
        return normalize_urgency(self.urgency_level)
