from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Header, Query, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from petdoc.database import async_session_maker
from petdoc.errors import NotAuthenticatedError
from petdoc.models import User
from petdoc.schemas.consultation import ConsultationCreate
from petdoc.schemas.enums import Language
from petdoc.services.consultations import ConsultationStore
from petdoc.services.labels import resolve_language
from petdoc.services.recovery import RecoveryService
from petdoc.services.summary_gateway import SummaryGateway
from petdoc.services.triage_gateway import TriageGateway
from petdoc.services.triage_session import ConsultationSink, TriageSessionRegistry


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return async_session_maker


SessionFactory = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]


async def get_db(session_factory: SessionFactory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


DbSession = Annotated[AsyncSession, Depends(get_db)]


def get_language(
    language: Annotated[str | None, Query(description="zh or en")] = None,
    accept_language: Annotated[str | None, Header()] = None,
) -> Language:
    """Explicit ?language= wins, then Accept-Language, then zh."""
    if language:
        return resolve_language(language)
    return resolve_language(accept_language)


RequestLanguage = Annotated[Language, Depends(get_language)]


async def get_current_user(
    db: DbSession,
    x_user_id: Annotated[int | None, Header()] = None,
) -> User:
    """
    Resolve the caller from the X-User-Id header.

    Sign-in happens upstream; by the time a request reaches this service the
    host has already authenticated it and forwards the user id.
    """
    if x_user_id is None:
        raise NotAuthenticatedError("missing X-User-Id")

    result = await db.execute(select(User).where(User.id == x_user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise NotAuthenticatedError(f"unknown user {x_user_id}")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def get_triage_gateway(request: Request) -> TriageGateway:
    return request.app.state.triage_gateway


def get_summary_gateway(request: Request) -> SummaryGateway:
    return request.app.state.summary_gateway


def get_session_registry(request: Request) -> TriageSessionRegistry:
    return request.app.state.triage_sessions


TriageGatewayDep = Annotated[TriageGateway, Depends(get_triage_gateway)]
SummaryGatewayDep = Annotated[SummaryGateway, Depends(get_summary_gateway)]
SessionRegistry = Annotated[TriageSessionRegistry, Depends(get_session_registry)]


def get_consultation_sink(session_factory: SessionFactory) -> ConsultationSink:
    """
    Persist consultations in their own session.

    Streaming answers outlive the request-scoped DbSession, so the sink opens
    a fresh session when the answer completes.
    """
    async def save(user_id: int, data: ConsultationCreate):
        async with session_factory() as session:
            return await ConsultationStore(session).create(user_id, data)

    return save


def get_consultation_store(db: DbSession) -> ConsultationStore:
    return ConsultationStore(db)


def get_recovery_service(db: DbSession, summary_gateway: SummaryGatewayDep) -> RecoveryService:
    return RecoveryService(db, summary_gateway)


ConsultationSinkDep = Annotated[ConsultationSink, Depends(get_consultation_sink)]
ConsultationStoreDep = Annotated[ConsultationStore, Depends(get_consultation_store)]
RecoveryServiceDep = Annotated[RecoveryService, Depends(get_recovery_service)]
