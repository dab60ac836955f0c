from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from petdoc.database import Base


class RecoveryPlan(Base):
    __tablename__ = "recovery_plans"
    __table_args__ = (
        CheckConstraint("duration_days >= 1", name="ck_recovery_plans_duration_positive"),
        # At most one active plan per pet
        Index(
            "uq_recovery_plans_active_pet",
            "pet_id",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    pet_id: Mapped[int] = mapped_column(ForeignKey("pets.id", ondelete="CASCADE"), index=True, nullable=False)

    # Origin
    source_type: Mapped[str] = mapped_column(String(20), nullable=False)  # ai_consult | vet_visit
    source_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    main_symptom: Mapped[str] = mapped_column(String(255), nullable=False)
    severity_level: Mapped[str] = mapped_column(String(20), nullable=False)  # mild | moderate
    duration_days: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")

    # Filled in on completion
    ai_summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    recovery_trend: Mapped[str | None] = mapped_column(String(20), nullable=True)
    suggestion: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, index=True, default=datetime.utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # Relationships
    user = relationship("User", back_populates="recovery_plans")
    pet = relationship("Pet")
    checkins = relationship(
        "RecoveryCheckin",
        back_populates="plan",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="RecoveryCheckin.day_index",
    )
