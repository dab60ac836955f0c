import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Response, status
from fastapi.responses import StreamingResponse

from petdoc.api.deps import (
    ConsultationSinkDep,
    CurrentUser,
    DbSession,
    RequestLanguage,
    SessionRegistry,
    TriageGatewayDep,
)
from petdoc.config import get_settings
from petdoc.errors import GatewayError
from petdoc.schemas.enums import Language
from petdoc.schemas.triage import (
    IntakeSubmit,
    SelectPetRequest,
    SendMessageRequest,
    TriageSessionCreate,
    TriageSessionResponse,
)
from petdoc.services.consultations import get_owned_pet
from petdoc.services.intake import IntakeCollector, IntakeData
from petdoc.services.pet_context import PetContext
from petdoc.services.sse import DONE_FRAME, encode_delta_frame, encode_error_frame
from petdoc.services.triage_session import TriageSession, TriageTurn

logger = logging.getLogger(__name__)

router = APIRouter()

SSE_HEADERS = {"Cache-Control": "no-cache", "X-Accel-Buffering": "no"}


def _session_response(session: TriageSession) -> TriageSessionResponse:
    return TriageSessionResponse(
        session_id=session.session_id,
        state=session.state,
        pet_id=session.pet.pet_id if session.pet else None,
        messages=[m.model_copy() for m in session.messages],
        is_loading=session.is_loading,
        saved=session.saved,
        intake_submitted=session.intake is not None,
    )


def _collect_intake(body: IntakeSubmit) -> IntakeData:
    collector = IntakeCollector()
    if body.main_symptom is not None:
        collector.select_main_symptom(body.main_symptom)
    if body.duration is not None:
        collector.select_duration(body.duration)
    if body.severity is not None:
        collector.select_severity(body.severity)
    for code in dict.fromkeys(body.additional_symptoms):
        collector.toggle_additional_symptom(code)
    collector.set_notes(body.additional_notes)
    return collector.submit()


async def _stream_turn(turn: TriageTurn, language: Language) -> AsyncIterator[bytes]:
    try:
        async for delta in turn.deltas():
            yield encode_delta_frame(delta)
    except GatewayError as e:
        yield encode_error_frame(e.code, e.localized(language))
        return
    yield DONE_FRAME


def _streaming(turn: TriageTurn, language: Language) -> StreamingResponse:
    return StreamingResponse(
        _stream_turn(turn, language),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.post("/sessions", response_model=TriageSessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(
    body: TriageSessionCreate,
    current_user: CurrentUser,
    db: DbSession,
    registry: SessionRegistry,
    gateway: TriageGatewayDep,
    sink: ConsultationSinkDep,
    language: RequestLanguage,
) -> TriageSessionResponse:
    """Open a conversation; with a pet_id it starts at the intake form."""
    session = TriageSession(
        user_id=current_user.id,
        gateway=gateway,
        consultation_sink=sink,
        language=language,
        timeout_seconds=get_settings().triage_timeout_seconds,
    )
    if body.pet_id is not None:
        pet = await get_owned_pet(db, current_user.id, body.pet_id)
        session.select_pet(PetContext.from_model(pet))

    registry.add(session)
    logger.info("Triage session created", extra={"session_id": session.session_id, "user_id": current_user.id})
    return _session_response(session)


@router.get("/sessions/{session_id}", response_model=TriageSessionResponse)
async def get_session(
    session_id: str,
    current_user: CurrentUser,
    registry: SessionRegistry,
) -> TriageSessionResponse:
    return _session_response(registry.get(current_user.id, session_id))


@router.post("/sessions/{session_id}/pet", response_model=TriageSessionResponse)
async def select_pet(
    session_id: str,
    body: SelectPetRequest,
    current_user: CurrentUser,
    db: DbSession,
    registry: SessionRegistry,
) -> TriageSessionResponse:
    session = registry.get(current_user.id, session_id)
    pet = await get_owned_pet(db, current_user.id, body.pet_id)
    session.select_pet(PetContext.from_model(pet))
    return _session_response(session)


@router.post("/sessions/{session_id}/intake")
async def submit_intake(
    session_id: str,
    body: IntakeSubmit,
    current_user: CurrentUser,
    registry: SessionRegistry,
    language: RequestLanguage,
) -> StreamingResponse:
    """Submit the intake form and stream the first answer."""
    session = registry.get(current_user.id, session_id)
    intake = _collect_intake(body)
    turn = await session.submit_intake(intake, language)
    return _streaming(turn, language)


@router.post("/sessions/{session_id}/skip", response_model=TriageSessionResponse)
async def skip_intake(
    session_id: str,
    current_user: CurrentUser,
    registry: SessionRegistry,
) -> TriageSessionResponse:
    """Go straight to free chat. Nothing from this conversation is saved."""
    session = registry.get(current_user.id, session_id)
    session.skip_intake()
    return _session_response(session)


@router.post("/sessions/{session_id}/messages")
async def send_message(
    session_id: str,
    body: SendMessageRequest,
    current_user: CurrentUser,
    registry: SessionRegistry,
    language: RequestLanguage,
) -> StreamingResponse:
    session = registry.get(current_user.id, session_id)
    turn = await session.send_message(body.content, language)
    return _streaming(turn, language)


@router.post("/sessions/{session_id}/restart", response_model=TriageSessionResponse)
async def restart_session(
    session_id: str,
    current_user: CurrentUser,
    registry: SessionRegistry,
) -> TriageSessionResponse:
    session = registry.get(current_user.id, session_id)
    await session.restart()
    return _session_response(session)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_session(
    session_id: str,
    current_user: CurrentUser,
    registry: SessionRegistry,
) -> Response:
    """Stops any in-flight answer; it will not be saved."""
    await registry.close(current_user.id, session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
