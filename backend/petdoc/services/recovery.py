"""
Recovery Plan Lifecycle - fixed-length observation plans with daily check-ins.

A plan is ACTIVE from creation and becomes COMPLETED (for good) when the
check-in for its last day is recorded. At that point the summary gateway is
called once with every check-in, ordered by day.

Day arithmetic:
    days_since_start  = floor((now - created_at) / 1 day) + 1   (at least 1)
    current_day_index = min(days_since_start, duration_days)
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from petdoc.errors import (
    ActivePlanExistsError,
    CheckinIncompleteError,
    DuplicateCheckinError,
    GatewayError,
    InvalidDayIndexError,
    NotFoundError,
    PlanCompletedError,
    PlanNotEligibleError,
)
from petdoc.models import RecoveryCheckin, RecoveryPlan
from petdoc.schemas.chat import CheckinSnapshot, RecoverySummary
from petdoc.schemas.enums import (
    CheckinNext,
    DayState,
    Language,
    RecoverySourceType,
    RecoveryStatus,
)
from petdoc.schemas.recovery import CheckinCreate, RecoveryPlanCreate
from petdoc.services.consultations import ConsultationStore, get_owned_pet
from petdoc.services.labels import symptom_label
from petdoc.services.summary_gateway import SummaryGateway, fallback_summary
from petdoc.services.triage_config import TriageConfig, get_triage_config
from petdoc.services.urgency import normalize_urgency

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400


@dataclass
class TimelineDay:
    day_index: int
    state: DayState
    checkin_id: int | None = None


@dataclass
class RecoveryProgress:
    days_since_start: int
    current_day_index: int
    completed_days: int
    needs_checkin_today: bool
    timeline: list[TimelineDay] = field(default_factory=list)


@dataclass
class CheckinOutcome:
    checkin: RecoveryCheckin
    plan: RecoveryPlan
    next: CheckinNext
    summary: RecoverySummary | None = None


def days_since_start(created_at: datetime, now: datetime) -> int:
    elapsed = (now - created_at).total_seconds()
    return max(int(elapsed // SECONDS_PER_DAY) + 1, 1)


def compute_progress(plan: RecoveryPlan, checkins: list[RecoveryCheckin], now: datetime) -> RecoveryProgress:
    """
    Where a plan stands at `now`.

    Days without a check-in before today are MISSED; they are shown, never
    filled in. Once a plan is completed every unchecked day reads as missed.
    """
    elapsed_days = days_since_start(plan.created_at, now)
    current = min(elapsed_days, plan.duration_days)
    by_day = {c.day_index: c for c in checkins}
    completed_days = len(by_day)
    is_active = plan.status == RecoveryStatus.ACTIVE.value

    timeline = []
    for day in range(1, plan.duration_days + 1):
        checkin = by_day.get(day)
        if checkin is not None:
            state = DayState.COMPLETED
        elif not is_active or day < current:
            state = DayState.MISSED
        elif day == current:
            state = DayState.TODAY
        else:
            state = DayState.FUTURE
        timeline.append(TimelineDay(day_index=day, state=state, checkin_id=checkin.id if checkin else None))

    return RecoveryProgress(
        days_since_start=elapsed_days,
        current_day_index=current,
        completed_days=completed_days,
        needs_checkin_today=is_active and completed_days < current,
        timeline=timeline,
    )


class RecoveryService:
    def __init__(
        self,
        db: AsyncSession,
        summary_gateway: SummaryGateway,
        config: TriageConfig | None = None,
    ):
        self.db = db
        self.summary_gateway = summary_gateway
        self.config = config or get_triage_config()

    # Plans

    async def create_plan(self, user_id: int, data: RecoveryPlanCreate) -> RecoveryPlan:
        await get_owned_pet(self.db, user_id, data.pet_id)

        duration_days = data.duration_days or self.config.recovery.default_duration_days
        if duration_days < 1:
            raise InvalidDayIndexError(f"duration_days={duration_days}")

        if await self.get_active_plan(user_id, data.pet_id) is not None:
            raise ActivePlanExistsError(f"pet {data.pet_id}")

        plan = RecoveryPlan(
            user_id=user_id,
            pet_id=data.pet_id,
            source_type=data.source_type.value,
            source_id=data.source_id,
            main_symptom=data.main_symptom,
            severity_level=data.severity_level.value,
            duration_days=duration_days,
            status=RecoveryStatus.ACTIVE.value,
        )
        self.db.add(plan)
        try:
            await self.db.commit()
        except IntegrityError as e:
            # Lost a race against another plan for the same pet
            await self.db.rollback()
            raise ActivePlanExistsError(f"pet {data.pet_id}") from e
        await self.db.refresh(plan)

        logger.info(
            "Recovery plan created",
            extra={"plan_id": plan.id, "pet_id": plan.pet_id, "duration_days": duration_days},
        )
        return plan

    async def create_plan_from_consultation(
        self,
        user_id: int,
        consultation_id: int,
        language: Language,
        duration_days: int | None = None,
    ) -> RecoveryPlan:
        """Suggested follow-up plan for a mild or moderate consultation."""
        consultation = await ConsultationStore(self.db).get(user_id, consultation_id)

        urgency = normalize_urgency(consultation.urgency_level, self.config.urgency)
        eligible = consultation.severity in self.config.recovery.eligible_severities
        if urgency is not None and urgency.value in self.config.recovery.ineligible_urgency_levels:
            eligible = False
        if not eligible:
            raise PlanNotEligibleError(
                f"consultation {consultation_id}: severity={consultation.severity} urgency={urgency}"
            )

        return await self.create_plan(
            user_id,
            RecoveryPlanCreate(
                pet_id=consultation.pet_id,
                source_type=RecoverySourceType.AI_CONSULT,
                source_id=consultation.id,
                main_symptom=symptom_label(consultation.main_symptom, language),
                severity_level=consultation.severity,
                duration_days=duration_days,
            ),
        )

    async def list_plans(
        self,
        user_id: int,
        pet_id: int | None = None,
        status: RecoveryStatus | None = None,
    ) -> list[RecoveryPlan]:
        query = select(RecoveryPlan).where(RecoveryPlan.user_id == user_id)
        if pet_id is not None:
            query = query.where(RecoveryPlan.pet_id == pet_id)
        if status is not None:
            query = query.where(RecoveryPlan.status == status.value)
        query = query.order_by(RecoveryPlan.created_at.desc(), RecoveryPlan.id.desc())

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_active_plan(self, user_id: int, pet_id: int) -> RecoveryPlan | None:
        result = await self.db.execute(
            select(RecoveryPlan).where(
                RecoveryPlan.user_id == user_id,
                RecoveryPlan.pet_id == pet_id,
                RecoveryPlan.status == RecoveryStatus.ACTIVE.value,
            )
        )
        return result.scalar_one_or_none()

    async def get_plan(self, user_id: int, plan_id: int) -> RecoveryPlan:
        result = await self.db.execute(
            select(RecoveryPlan).where(
                RecoveryPlan.id == plan_id,
                RecoveryPlan.user_id == user_id,
            )
        )
        plan = result.scalar_one_or_none()
        if plan is None:
            raise NotFoundError(f"recovery plan {plan_id}")
        return plan

    async def list_checkins(self, plan_id: int) -> list[RecoveryCheckin]:
        result = await self.db.execute(
            select(RecoveryCheckin)
            .where(RecoveryCheckin.plan_id == plan_id)
            .order_by(RecoveryCheckin.day_index)
        )
        return list(result.scalars().all())

    async def get_progress(self, user_id: int, plan_id: int, now: datetime | None = None):
        plan = await self.get_plan(user_id, plan_id)
        checkins = await self.list_checkins(plan.id)
        return plan, checkins, compute_progress(plan, checkins, now or datetime.utcnow())

    # Check-ins

    async def record_checkin(
        self,
        user_id: int,
        plan_id: int,
        data: CheckinCreate,
        language: Language,
        now: datetime | None = None,
    ) -> CheckinOutcome:
        """
        Record today's observation.

        Rejected without writing anything when the plan is completed, a
        field is missing, the day is not today, or today already has a
        check-in. Recording the last day completes the plan; if that
        completion was interrupted, the next call finishes it instead.
        """
        now = now or datetime.utcnow()
        if data.appetite is None or data.energy is None or data.symptom_status is None:
            raise CheckinIncompleteError()

        plan = await self.get_plan(user_id, plan_id)
        if plan.status == RecoveryStatus.COMPLETED.value:
            raise PlanCompletedError(f"plan {plan_id}")

        checkins = await self.list_checkins(plan.id)
        last_day = next((c for c in checkins if c.day_index >= plan.duration_days), None)
        if last_day is not None:
            # Last day was stored but the plan was never marked completed
            logger.warning("Resuming plan completion", extra={"plan_id": plan.id})
            summary = await self._complete_plan(plan, checkins, language, now)
            return CheckinOutcome(checkin=last_day, plan=plan, next=CheckinNext.SUMMARY, summary=summary)

        progress = compute_progress(plan, checkins, now)
        day_index = data.day_index or progress.current_day_index
        if day_index != progress.current_day_index:
            raise InvalidDayIndexError(f"day_index={day_index}, today={progress.current_day_index}")

        if any(c.day_index == day_index for c in checkins):
            raise DuplicateCheckinError(f"plan {plan_id} day {day_index}")

        checkin = RecoveryCheckin(
            plan_id=plan.id,
            day_index=day_index,
            appetite=data.appetite.value,
            energy=data.energy.value,
            symptom_status=data.symptom_status.value,
            notes=data.notes,
            created_at=now,
        )
        self.db.add(checkin)
        try:
            await self.db.commit()
        except IntegrityError as e:
            # Another request recorded the same day first
            await self.db.rollback()
            raise DuplicateCheckinError(f"plan {plan_id} day {day_index}") from e
        await self.db.refresh(checkin)

        logger.info("Check-in recorded", extra={"plan_id": plan.id, "day_index": day_index})

        if day_index < plan.duration_days:
            return CheckinOutcome(checkin=checkin, plan=plan, next=CheckinNext.PLAN_DETAIL)

        summary = await self._complete_plan(plan, checkins + [checkin], language, now)
        return CheckinOutcome(checkin=checkin, plan=plan, next=CheckinNext.SUMMARY, summary=summary)

    async def _complete_plan(
        self,
        plan: RecoveryPlan,
        checkins: list[RecoveryCheckin],
        language: Language,
        now: datetime,
    ) -> RecoverySummary:
        ordered = sorted(checkins, key=lambda c: c.day_index)
        pet = await get_owned_pet(self.db, plan.user_id, plan.pet_id)

        try:
            summary = await self.summary_gateway.summarize(
                pet_name=pet.name,
                main_symptom=plan.main_symptom,
                checkins=[CheckinSnapshot.model_validate(c) for c in ordered],
                language=language,
            )
        except GatewayError as e:
            logger.warning(
                "Summary gateway failed, completing plan with fallback",
                extra={"plan_id": plan.id, "error_code": e.code},
            )
            summary = fallback_summary(self.config, language)

        plan.status = RecoveryStatus.COMPLETED.value
        plan.completed_at = now
        plan.ai_summary = summary.summary
        plan.recovery_trend = summary.trend.value
        plan.suggestion = summary.suggestion
        await self.db.commit()
        await self.db.refresh(plan)

        logger.info(
            "Recovery plan completed",
            extra={"plan_id": plan.id, "trend": plan.recovery_trend, "checkins": len(ordered)},
        )
        return summary
