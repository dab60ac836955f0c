"""
Triage Session Controller - one conversation between a user and the triage gateway.

State machine:
    NO_PET_SELECTED -> INTAKE_FORM -> STREAMING -> IDLE -> STREAMING -> ... -> IDLE

A turn is split in two: `begin_turn` appends the user message and opens the
upstream stream (rate-limit and quota errors surface here, before any
placeholder exists); `TriageTurn.deltas()` then feeds the assistant
placeholder in arrival order. When the first intake-seeded answer completes,
the urgency label is extracted and a Consultation is persisted once.
"""
import asyncio
import logging
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from datetime import date

from petdoc.errors import (
    GatewayError,
    GatewayTimeoutError,
    InvalidSessionStateError,
    NoPetSelectedError,
    NotFoundError,
    SessionBusyError,
)
from petdoc.schemas.chat import ChatMessage
from petdoc.schemas.consultation import ConsultationCreate
from petdoc.schemas.enums import ChatRole, Language, TriageState
from petdoc.services.intake import IntakeData, render_seed_message
from petdoc.services.pet_context import PetContext
from petdoc.services.triage_gateway import TriageGateway, TriageStream
from petdoc.services.urgency import RegexUrgencyExtractor, UrgencyExtractor

logger = logging.getLogger(__name__)

# Persists a consultation for (user_id, data)
ConsultationSink = Callable[[int, ConsultationCreate], Awaitable[object]]


class TriageTurn:
    """One in-flight assistant answer."""

    def __init__(
        self,
        session: "TriageSession",
        stream: TriageStream,
        placeholder: ChatMessage,
        deadline: float,
    ):
        self.session = session
        self.stream = stream
        self.placeholder = placeholder
        self.deadline = deadline
        self.cancelled = False
        self.finished = False

    async def deltas(self) -> AsyncIterator[str]:
        upstream = self.stream.deltas(self.deadline)
        try:
            while not self.cancelled:
                try:
                    delta = await anext(upstream)
                except StopAsyncIteration:
                    break
                except GatewayError as e:
                    self._fail(e.code)
                    raise

                if self.cancelled:
                    return
                self.placeholder.content += delta
                yield delta

            if not self.cancelled:
                await self._complete()
        finally:
            if not self.finished:
                # Consumer went away mid-stream
                self.cancel()
            await upstream.aclose()

    def cancel(self) -> None:
        """Stop this turn; nothing it does afterwards touches the session."""
        if self.finished:
            return
        self.cancelled = True
        self.finished = True
        if not self.placeholder.content:
            self.session._remove_message(self.placeholder)
        self.session._end_turn(self)
        logger.info("Triage turn cancelled", extra={"session_id": self.session.session_id})

    async def aclose(self) -> None:
        self.cancel()
        await self.stream.aclose()

    def _fail(self, reason: str) -> None:
        self.finished = True
        if not self.placeholder.content:
            self.session._remove_message(self.placeholder)
        self.session._end_turn(self)
        logger.warning(
            "Triage turn failed",
            extra={"session_id": self.session.session_id, "reason": reason},
        )

    async def _complete(self) -> None:
        if not self.placeholder.content:
            self._fail("empty_response")
            raise GatewayError("empty response from gateway")

        try:
            await self.session._after_answer(self.placeholder.content)
        finally:
            self.finished = True
            self.session._end_turn(self)


class TriageSession:
    def __init__(
        self,
        user_id: int,
        gateway: TriageGateway,
        consultation_sink: ConsultationSink,
        language: Language = Language.ZH,
        extractor: UrgencyExtractor | None = None,
        timeout_seconds: float = 60.0,
        session_id: str | None = None,
    ):
        self.session_id = session_id or uuid.uuid4().hex
        self.user_id = user_id
        self.gateway = gateway
        self.consultation_sink = consultation_sink
        self.language = language
        self.extractor = extractor or RegexUrgencyExtractor()
        self.timeout_seconds = timeout_seconds

        self.pet: PetContext | None = None
        self.messages: list[ChatMessage] = []
        self.intake: IntakeData | None = None
        self.awaiting_intake = True
        self.saved = False
        self.closed = False
        self.current_turn: TriageTurn | None = None

    @property
    def is_loading(self) -> bool:
        return self.current_turn is not None

    @property
    def state(self) -> TriageState:
        if self.pet is None:
            return TriageState.NO_PET_SELECTED
        if self.is_loading:
            return TriageState.STREAMING
        if self.awaiting_intake:
            return TriageState.INTAKE_FORM
        return TriageState.IDLE

    def select_pet(self, pet: PetContext) -> None:
        self._check_open()
        if self.is_loading:
            raise SessionBusyError()
        self.pet = pet

    async def submit_intake(self, intake: IntakeData, language: Language | None = None) -> TriageTurn:
        self._require_state(TriageState.INTAKE_FORM)
        language = language or self.language

        self.intake = intake
        self.awaiting_intake = False
        logger.info(
            "Intake submitted",
            extra={
                "session_id": self.session_id,
                "main_symptom": intake.main_symptom.value,
                "severity": intake.severity.value,
            },
        )
        return await self.begin_turn(render_seed_message(intake, language), language)

    def skip_intake(self) -> None:
        """Free chat: no consultation will come out of this conversation."""
        self._require_state(TriageState.INTAKE_FORM)
        self.awaiting_intake = False
        self.intake = None

    async def send_message(self, text: str, language: Language | None = None) -> TriageTurn:
        self._require_state(TriageState.IDLE)
        return await self.begin_turn(text, language)

    async def begin_turn(self, text: str, language: Language | None = None) -> TriageTurn:
        self._check_open()
        if self.pet is None:
            raise NoPetSelectedError()
        if self.is_loading:
            raise SessionBusyError()
        if language is not None:
            self.language = language

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout_seconds

        self.messages.append(ChatMessage(role=ChatRole.USER, content=text.strip()))
        history = [m.model_copy() for m in self.messages]
        pet_info = self.pet.to_pet_info(self.language, date.today())

        # Reserve the session while the request is opening
        self.current_turn = _OPENING
        try:
            async with asyncio.timeout_at(deadline):
                stream = await self.gateway.open_stream(history, pet_info, self.language)
        except TimeoutError as e:
            raise GatewayTimeoutError("gateway did not answer in time") from e
        finally:
            self.current_turn = None

        if self.closed:
            await stream.aclose()
            raise InvalidSessionStateError("session closed while opening")

        placeholder = ChatMessage(role=ChatRole.ASSISTANT, content="")
        self.messages.append(placeholder)
        turn = TriageTurn(self, stream, placeholder, deadline)
        self.current_turn = turn
        return turn

    async def restart(self) -> None:
        """Explicit reset: clear the conversation and go back to the intake form."""
        self._check_open()
        if self.current_turn is _OPENING:
            raise SessionBusyError()
        if self.current_turn is not None:
            await self.current_turn.aclose()
        self.messages = []
        self.intake = None
        self.saved = False
        self.awaiting_intake = True
        logger.info("Triage session restarted", extra={"session_id": self.session_id})

    async def close(self) -> None:
        if self.current_turn is not None and self.current_turn is not _OPENING:
            await self.current_turn.aclose()
        self.closed = True

    async def _after_answer(self, text: str) -> None:
        if self.intake is None or self.saved or self.pet is None:
            return

        urgency_label = self.extractor.extract(text)
        data = ConsultationCreate(
            pet_id=self.pet.pet_id,
            main_symptom=self.intake.main_symptom,
            duration=self.intake.duration,
            severity=self.intake.severity,
            additional_symptoms=self.intake.additional_symptoms,
            additional_notes=self.intake.additional_notes,
            urgency_level=urgency_label,
            summary=text,
            full_response=text,
        )
        try:
            await self.consultation_sink(self.user_id, data)
        except Exception:
            # The answer was already delivered; the next completed turn retries
            logger.exception("Failed to persist consultation", extra={"session_id": self.session_id})
            return

        self.saved = True
        logger.info(
            "Consultation saved",
            extra={"session_id": self.session_id, "urgency_level": urgency_label},
        )

    def _end_turn(self, turn: TriageTurn) -> None:
        if self.current_turn is turn:
            self.current_turn = None

    def _remove_message(self, message: ChatMessage) -> None:
        for i, existing in enumerate(self.messages):
            if existing is message:
                del self.messages[i]
                return

    def _check_open(self) -> None:
        if self.closed:
            raise InvalidSessionStateError("session is closed")

    def _require_state(self, expected: TriageState) -> None:
        self._check_open()
        state = self.state
        if state == expected:
            return
        if state == TriageState.NO_PET_SELECTED:
            raise NoPetSelectedError()
        if state == TriageState.STREAMING:
            raise SessionBusyError()
        raise InvalidSessionStateError(f"expected {expected.value}, session is {state.value}")


# Marker for a turn whose upstream request is still opening
_OPENING = object()


class TriageSessionRegistry:
    """In-process sessions, keyed by id and owned by one user."""

    def __init__(self):
        self._sessions: dict[str, TriageSession] = {}

    def add(self, session: TriageSession) -> TriageSession:
        self._sessions[session.session_id] = session
        return session

    def get(self, user_id: int, session_id: str) -> TriageSession:
        session = self._sessions.get(session_id)
        if session is None or session.user_id != user_id:
            raise NotFoundError(f"triage session {session_id}")
        return session

    async def close(self, user_id: int, session_id: str) -> None:
        session = self.get(user_id, session_id)
        await session.close()
        del self._sessions[session_id]

    async def close_all(self) -> None:
        for session in list(self._sessions.values()):
            await session.close()
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)
