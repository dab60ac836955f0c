import asyncio
import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from petdoc.api.deps import CurrentUser, SummaryGatewayDep, TriageGatewayDep
from petdoc.config import get_settings
from petdoc.errors import GatewayError
from petdoc.schemas.chat import AIVetRequest, RecoverySummary, RecoverySummaryRequest
from petdoc.services.sse import DONE_FRAME, encode_delta_frame, encode_error_frame
from petdoc.services.triage_gateway import TriageStream

logger = logging.getLogger(__name__)

router = APIRouter()

SSE_HEADERS = {"Cache-Control": "no-cache", "X-Accel-Buffering": "no"}


async def _relay(stream: TriageStream, deadline: float, request: AIVetRequest) -> AsyncIterator[bytes]:
    try:
        async for delta in stream.deltas(deadline):
            yield encode_delta_frame(delta)
    except GatewayError as e:
        # Headers are already sent; report the failure in-band
        yield encode_error_frame(e.code, e.localized(request.language))
        return
    yield DONE_FRAME


@router.post("/ai-vet")
async def ai_vet(
    request: AIVetRequest,
    current_user: CurrentUser,
    gateway: TriageGatewayDep,
) -> StreamingResponse:
    """
    Constrained triage completion, streamed as OpenAI-style SSE frames.

    Rate limiting (429), exhausted quota (402) and other gateway failures
    are returned as errors before the stream starts.
    """
    deadline = asyncio.get_running_loop().time() + get_settings().triage_timeout_seconds
    stream = await gateway.open_stream(request.messages, request.pet_info, request.language)
    logger.info("AI vet stream started", extra={"user_id": current_user.id})
    return StreamingResponse(
        _relay(stream, deadline, request),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.post("/recovery-summary", response_model=RecoverySummary)
async def recovery_summary(
    request: RecoverySummaryRequest,
    current_user: CurrentUser,
    gateway: SummaryGatewayDep,
) -> RecoverySummary:
    """Structured trend / summary / suggestion for a list of check-ins."""
    return await gateway.summarize(
        pet_name=request.pet_name,
        main_symptom=request.main_symptom,
        checkins=request.checkins,
        language=request.language,
    )
