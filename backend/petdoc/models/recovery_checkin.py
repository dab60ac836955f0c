from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from petdoc.database import Base


class RecoveryCheckin(Base):
    __tablename__ = "recovery_checkins"
    __table_args__ = (
        UniqueConstraint("plan_id", "day_index", name="uq_recovery_checkins_plan_day"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    plan_id: Mapped[int] = mapped_column(
        ForeignKey("recovery_plans.id", ondelete="CASCADE"), index=True, nullable=False
    )
    day_index: Mapped[int] = mapped_column(Integer, nullable=False)  # 1-based

    appetite: Mapped[str] = mapped_column(String(20), nullable=False)  # normal | reduced | poor
    energy: Mapped[str] = mapped_column(String(20), nullable=False)  # normal | low | very_low
    symptom_status: Mapped[str] = mapped_column(String(20), nullable=False)  # improved | same | worse
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    plan = relationship("RecoveryPlan", back_populates="checkins")
