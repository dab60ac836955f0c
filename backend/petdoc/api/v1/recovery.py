from fastapi import APIRouter, Query, status

from petdoc.api.deps import CurrentUser, RecoveryServiceDep, RequestLanguage
from petdoc.models import RecoveryCheckin, RecoveryPlan
from petdoc.schemas.enums import Language, RecoveryStatus
from petdoc.schemas.recovery import (
    CheckinCreate,
    CheckinOutcomeResponse,
    CheckinResponse,
    PlanDetailResponse,
    PlanFromConsultationCreate,
    ProgressResponse,
    RecoveryPlanCreate,
    RecoveryPlanListResponse,
    RecoveryPlanResponse,
    TimelineDayResponse,
)
from petdoc.services.labels import trend_label
from petdoc.services.recovery import RecoveryProgress

router = APIRouter()


def _plan_detail(
    plan: RecoveryPlan,
    checkins: list[RecoveryCheckin],
    progress: RecoveryProgress,
    language: Language,
) -> PlanDetailResponse:
    return PlanDetailResponse(
        plan=RecoveryPlanResponse.model_validate(plan),
        checkins=[CheckinResponse.model_validate(c) for c in checkins],
        progress=ProgressResponse(
            days_since_start=progress.days_since_start,
            current_day_index=progress.current_day_index,
            completed_days=progress.completed_days,
            needs_checkin_today=progress.needs_checkin_today,
            timeline=[
                TimelineDayResponse(day_index=d.day_index, state=d.state, checkin_id=d.checkin_id)
                for d in progress.timeline
            ],
        ),
        trend_label=trend_label(plan.recovery_trend, language) if plan.recovery_trend else None,
    )


@router.post("/plans", response_model=RecoveryPlanResponse, status_code=status.HTTP_201_CREATED)
async def create_plan(
    plan_in: RecoveryPlanCreate,
    current_user: CurrentUser,
    service: RecoveryServiceDep,
) -> RecoveryPlan:
    """Start an observation plan. A pet can only have one active plan."""
    return await service.create_plan(current_user.id, plan_in)


@router.post(
    "/plans/from-consultation/{consultation_id}",
    response_model=RecoveryPlanResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_plan_from_consultation(
    consultation_id: int,
    current_user: CurrentUser,
    service: RecoveryServiceDep,
    language: RequestLanguage,
    body: PlanFromConsultationCreate | None = None,
) -> RecoveryPlan:
    """Suggested follow-up after a mild or moderate consultation."""
    duration_days = body.duration_days if body else None
    return await service.create_plan_from_consultation(
        current_user.id, consultation_id, language, duration_days
    )


@router.get("/plans", response_model=RecoveryPlanListResponse)
async def list_plans(
    current_user: CurrentUser,
    service: RecoveryServiceDep,
    pet_id: int | None = Query(None),
    plan_status: RecoveryStatus | None = Query(None, alias="status"),
) -> RecoveryPlanListResponse:
    plans = await service.list_plans(current_user.id, pet_id, plan_status)
    return RecoveryPlanListResponse(
        plans=[RecoveryPlanResponse.model_validate(p) for p in plans],
        total=len(plans),
    )


@router.get("/plans/active", response_model=PlanDetailResponse | None)
async def get_active_plan(
    current_user: CurrentUser,
    service: RecoveryServiceDep,
    language: RequestLanguage,
    pet_id: int = Query(...),
) -> PlanDetailResponse | None:
    """The pet's active plan with today's progress, or null."""
    plan = await service.get_active_plan(current_user.id, pet_id)
    if plan is None:
        return None
    plan, checkins, progress = await service.get_progress(current_user.id, plan.id)
    return _plan_detail(plan, checkins, progress, language)


@router.get("/plans/{plan_id}", response_model=PlanDetailResponse)
async def get_plan(
    plan_id: int,
    current_user: CurrentUser,
    service: RecoveryServiceDep,
    language: RequestLanguage,
) -> PlanDetailResponse:
    """Plan, check-ins and the per-day timeline."""
    plan, checkins, progress = await service.get_progress(current_user.id, plan_id)
    return _plan_detail(plan, checkins, progress, language)


@router.get("/plans/{plan_id}/checkins", response_model=list[CheckinResponse])
async def list_checkins(
    plan_id: int,
    current_user: CurrentUser,
    service: RecoveryServiceDep,
) -> list[RecoveryCheckin]:
    plan = await service.get_plan(current_user.id, plan_id)
    return await service.list_checkins(plan.id)


@router.post(
    "/plans/{plan_id}/checkins",
    response_model=CheckinOutcomeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def record_checkin(
    plan_id: int,
    checkin_in: CheckinCreate,
    current_user: CurrentUser,
    service: RecoveryServiceDep,
    language: RequestLanguage,
) -> CheckinOutcomeResponse:
    """
    Record today's check-in.

    `next` tells the client where to go: the plan timeline, or the summary
    when this check-in completed the plan.
    """
    outcome = await service.record_checkin(current_user.id, plan_id, checkin_in, language)
    plan = outcome.plan
    return CheckinOutcomeResponse(
        checkin=CheckinResponse.model_validate(outcome.checkin),
        plan=RecoveryPlanResponse.model_validate(plan),
        next=outcome.next,
        trend_label=trend_label(plan.recovery_trend, language) if plan.recovery_trend else None,
    )
