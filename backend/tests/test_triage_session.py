"""Tests for the triage session state machine."""
from datetime import date

import httpx
import pytest

from petdoc.errors import (
    GatewayError,
    GatewayTimeoutError,
    InvalidSessionStateError,
    NoPetSelectedError,
    NotFoundError,
    QuotaExceededError,
    RateLimitedError,
    SessionBusyError,
)
from petdoc.schemas.enums import (
    ChatRole,
    DurationCode,
    IntakeSeverity,
    Language,
    Species,
    SymptomCode,
    TriageState,
)
from petdoc.services.intake import IntakeData
from petdoc.services.pet_context import PetContext, age_bucket
from petdoc.services.triage_session import TriageSession, TriageSessionRegistry

from conftest import TRIAGE_ANSWER, sse_body, sse_frame

FULL_ANSWER = "".join(TRIAGE_ANSWER)

MOCHI = PetContext(pet_id=1, name="Mochi", species=Species.DOG, birthdate=date(2022, 1, 1), weight=12.5)

INTAKE = IntakeData(
    main_symptom=SymptomCode.VOMITING,
    duration=DurationCode.TODAY,
    severity=IntakeSeverity.MODERATE,
    additional_symptoms=[SymptomCode.LETHARGY],
)


class RecordingSink:
    """Consultation sink that remembers what it was given."""

    def __init__(self, failures: int = 0):
        self.calls = []
        self.failures = failures

    async def __call__(self, user_id, data):
        if self.failures:
            self.failures -= 1
            raise RuntimeError("database is down")
        self.calls.append((user_id, data))
        return data


async def drain(turn) -> str:
    return "".join([delta async for delta in turn.deltas()])


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def session(triage_gateway, sink) -> TriageSession:
    return TriageSession(user_id=7, gateway=triage_gateway, consultation_sink=sink, timeout_seconds=5.0)


@pytest.fixture
def session_with_pet(session) -> TriageSession:
    session.select_pet(MOCHI)
    return session


class TestSessionStates:
    """Tests for state transitions."""

    def test_starts_without_pet(self, session):
        assert session.state == TriageState.NO_PET_SELECTED
        assert session.messages == []
        assert session.is_loading is False

    def test_selecting_pet_opens_intake_form(self, session):
        session.select_pet(MOCHI)
        assert session.state == TriageState.INTAKE_FORM

    async def test_intake_requires_pet(self, session):
        with pytest.raises(NoPetSelectedError):
            await session.submit_intake(INTAKE)

    async def test_message_requires_pet(self, session):
        with pytest.raises(NoPetSelectedError):
            await session.send_message("hello")

    async def test_free_chat_not_available_before_intake_decision(self, session_with_pet):
        with pytest.raises(InvalidSessionStateError):
            await session_with_pet.send_message("hello")

    def test_skip_goes_to_idle(self, session_with_pet):
        session_with_pet.skip_intake()
        assert session_with_pet.state == TriageState.IDLE
        assert session_with_pet.intake is None

    async def test_intake_then_stream_then_idle(self, session_with_pet):
        turn = await session_with_pet.submit_intake(INTAKE, Language.EN)
        assert session_with_pet.state == TriageState.STREAMING
        assert session_with_pet.is_loading is True

        text = await drain(turn)
        assert text == FULL_ANSWER
        assert session_with_pet.state == TriageState.IDLE
        assert session_with_pet.is_loading is False

    async def test_intake_cannot_be_submitted_twice(self, session_with_pet):
        await drain(await session_with_pet.submit_intake(INTAKE))
        with pytest.raises(InvalidSessionStateError):
            await session_with_pet.submit_intake(INTAKE)


class TestConversation:
    """Tests for message ordering and what is sent upstream."""

    async def test_seed_message_and_answer_recorded(self, session_with_pet):
        await drain(await session_with_pet.submit_intake(INTAKE, Language.EN))

        messages = session_with_pet.messages
        assert [m.role for m in messages] == [ChatRole.USER, ChatRole.ASSISTANT]
        assert "Main symptom: Vomiting" in messages[0].content
        assert "Other symptoms: Lethargy / Low energy" in messages[0].content
        assert messages[1].content == FULL_ANSWER

    async def test_whole_history_sent_each_turn(self, session_with_pet, upstream):
        await drain(await session_with_pet.submit_intake(INTAKE))
        upstream.stream_chunks = [sse_body(["Keep her hydrated."])]
        await drain(await session_with_pet.send_message("Can she drink water?"))

        second = upstream.streamed_requests[1]["messages"]
        assert [m["role"] for m in second] == ["system", "user", "assistant", "user"]
        assert second[2]["content"] == FULL_ANSWER
        assert second[3]["content"] == "Can she drink water?"

    async def test_pet_context_in_system_prompt(self, session_with_pet, upstream):
        await drain(await session_with_pet.submit_intake(INTAKE, Language.ZH))
        system = upstream.streamed_requests[0]["messages"][0]["content"]
        assert "- Species: 狗" in system
        assert "- Weight: 12.5 kg" in system
        assert "- Name: Mochi" in system

    async def test_deltas_appended_in_arrival_order(self, session_with_pet, upstream):
        upstream.stream_chunks = [sse_body(["a", "b", "c"])]
        session_with_pet.skip_intake()
        turn = await session_with_pet.send_message("hi")

        seen = []
        async for delta in turn.deltas():
            seen.append(delta)
            assert turn.placeholder.content == "".join(seen)
        assert seen == ["a", "b", "c"]


class TestConsultationPersistence:
    """Tests for saving the intake-seeded answer."""

    async def test_first_answer_saved_once(self, session_with_pet, sink, upstream):
        await drain(await session_with_pet.submit_intake(INTAKE))
        assert session_with_pet.saved is True
        assert len(sink.calls) == 1

        user_id, data = sink.calls[0]
        assert user_id == 7
        assert data.pet_id == MOCHI.pet_id
        assert data.main_symptom == SymptomCode.VOMITING
        assert data.severity == IntakeSeverity.MODERATE
        assert data.additional_symptoms == [SymptomCode.LETHARGY]
        assert data.urgency_level == "24小时内"
        assert data.summary == FULL_ANSWER
        assert data.full_response == FULL_ANSWER

        upstream.stream_chunks = [sse_body(["Follow-up answer"])]
        await drain(await session_with_pet.send_message("And tomorrow?"))
        assert len(sink.calls) == 1

    async def test_answer_without_urgency_heading(self, session_with_pet, sink, upstream):
        upstream.stream_chunks = [sse_body(["Please see a vet if it continues."])]
        await drain(await session_with_pet.submit_intake(INTAKE))
        assert sink.calls[0][1].urgency_level is None

    async def test_urgency_on_line_after_heading(self, session_with_pet, sink, upstream):
        upstream.stream_chunks = [sse_body(["**紧急程度 / Urgency Level:**\n", "紧急 / Emergency\n\n", "请立即就医。"])]
        await drain(await session_with_pet.submit_intake(INTAKE))
        assert sink.calls[0][1].urgency_level == "紧急"

    async def test_skipped_intake_never_saved(self, session_with_pet, sink):
        session_with_pet.skip_intake()
        await drain(await session_with_pet.send_message("My dog is sneezing"))
        await drain(await session_with_pet.send_message("Since yesterday"))
        assert sink.calls == []
        assert session_with_pet.saved is False

    async def test_failed_save_retried_on_next_answer(self, triage_gateway):
        sink = RecordingSink(failures=1)
        session = TriageSession(user_id=7, gateway=triage_gateway, consultation_sink=sink)
        session.select_pet(MOCHI)

        await drain(await session.submit_intake(INTAKE))
        assert session.saved is False
        assert session.state == TriageState.IDLE

        await drain(await session.send_message("Anything else?"))
        assert session.saved is True
        assert len(sink.calls) == 1

    async def test_restart_allows_a_new_consultation(self, session_with_pet, sink):
        await drain(await session_with_pet.submit_intake(INTAKE))
        await session_with_pet.restart()

        assert session_with_pet.state == TriageState.INTAKE_FORM
        assert session_with_pet.messages == []
        assert session_with_pet.saved is False

        await drain(await session_with_pet.submit_intake(INTAKE))
        assert len(sink.calls) == 2


class TestTurnFailures:
    """Tests for gateway failures during a turn."""

    async def test_rate_limited_leaves_messages_intact(self, session_with_pet, upstream, sink):
        upstream.stream_status = 429
        with pytest.raises(RateLimitedError):
            await session_with_pet.submit_intake(INTAKE)

        assert [m.role for m in session_with_pet.messages] == [ChatRole.USER]
        assert session_with_pet.is_loading is False
        assert sink.calls == []

    async def test_quota_exceeded_no_placeholder(self, session_with_pet, upstream):
        session_with_pet.skip_intake()
        upstream.stream_status = 402
        with pytest.raises(QuotaExceededError):
            await session_with_pet.send_message("hello")
        assert all(m.role == ChatRole.USER for m in session_with_pet.messages)

    async def test_user_may_resend_after_rate_limit(self, session_with_pet, upstream, sink):
        upstream.stream_status = 429
        with pytest.raises(RateLimitedError):
            await session_with_pet.submit_intake(INTAKE)

        upstream.stream_status = 200
        await drain(await session_with_pet.send_message("Please assess again"))
        assert session_with_pet.saved is True
        assert len(sink.calls) == 1

    async def test_empty_answer_removes_placeholder(self, session_with_pet, upstream, sink):
        upstream.stream_chunks = [b"data: [DONE]\n\n"]
        turn = await session_with_pet.submit_intake(INTAKE)
        with pytest.raises(GatewayError):
            await drain(turn)

        assert [m.role for m in session_with_pet.messages] == [ChatRole.USER]
        assert session_with_pet.state == TriageState.IDLE
        assert sink.calls == []

    async def test_timeout_mid_stream(self, triage_gateway, upstream, sink):
        session = TriageSession(user_id=7, gateway=triage_gateway, consultation_sink=sink, timeout_seconds=0.2)
        session.select_pet(MOCHI)
        upstream.stream_chunks = [sse_frame("partial"), 2.0, sse_frame("never")]

        turn = await session.submit_intake(INTAKE)
        with pytest.raises(GatewayTimeoutError):
            await drain(turn)

        # Text already streamed to the user stays
        assert [m.role for m in session.messages] == [ChatRole.USER, ChatRole.ASSISTANT]
        assert session.messages[-1].content == "partial"
        assert session.is_loading is False
        assert sink.calls == []

    async def test_read_error_before_first_delta_removes_placeholder(self, session_with_pet, upstream, sink):
        upstream.stream_chunks = [httpx.ReadError("connection reset")]
        turn = await session_with_pet.submit_intake(INTAKE)
        with pytest.raises(GatewayError):
            await drain(turn)

        assert [m.role for m in session_with_pet.messages] == [ChatRole.USER]
        assert session_with_pet.state == TriageState.IDLE

    async def test_read_error_mid_stream_keeps_partial_text(self, session_with_pet, upstream, sink):
        upstream.stream_chunks = [sse_frame("Hello"), httpx.ReadError("connection reset")]
        turn = await session_with_pet.submit_intake(INTAKE)
        with pytest.raises(GatewayError):
            await drain(turn)

        assert session_with_pet.messages[-1].role == ChatRole.ASSISTANT
        assert session_with_pet.messages[-1].content == "Hello"
        assert session_with_pet.is_loading is False
        assert sink.calls == []


class TestBusyAndCancel:
    """Tests for the single in-flight turn rule."""

    async def test_second_message_while_streaming_rejected(self, session_with_pet):
        turn = await session_with_pet.submit_intake(INTAKE)
        with pytest.raises(SessionBusyError):
            await session_with_pet.send_message("hurry up")
        with pytest.raises(SessionBusyError):
            session_with_pet.select_pet(MOCHI)
        await drain(turn)

    async def test_cancel_keeps_partial_text(self, session_with_pet, upstream, sink):
        upstream.stream_chunks = [sse_frame("Hello"), 2.0, sse_frame(" never")]
        turn = await session_with_pet.submit_intake(INTAKE)

        deltas = turn.deltas()
        assert await anext(deltas) == "Hello"
        turn.cancel()
        await deltas.aclose()

        assert session_with_pet.messages[-1].content == "Hello"
        assert session_with_pet.state == TriageState.IDLE
        assert sink.calls == []

    async def test_cancel_before_first_delta_removes_placeholder(self, session_with_pet):
        turn = await session_with_pet.submit_intake(INTAKE)
        await turn.aclose()
        assert [m.role for m in session_with_pet.messages] == [ChatRole.USER]
        assert session_with_pet.is_loading is False

    async def test_restart_stops_streaming_turn(self, session_with_pet, sink):
        turn = await session_with_pet.submit_intake(INTAKE)
        await session_with_pet.restart()

        assert turn.cancelled is True
        assert session_with_pet.state == TriageState.INTAKE_FORM
        assert session_with_pet.messages == []
        assert sink.calls == []

    async def test_closed_session_rejects_everything(self, session_with_pet):
        await session_with_pet.close()
        with pytest.raises(InvalidSessionStateError):
            await session_with_pet.submit_intake(INTAKE)
        with pytest.raises(InvalidSessionStateError):
            session_with_pet.select_pet(MOCHI)
        with pytest.raises(InvalidSessionStateError):
            await session_with_pet.restart()


class TestTriageSessionRegistry:
    """Tests for in-process session lookup."""

    def test_get_own_session(self, session):
        registry = TriageSessionRegistry()
        registry.add(session)
        assert registry.get(7, session.session_id) is session
        assert len(registry) == 1

    def test_other_users_session_not_found(self, session):
        registry = TriageSessionRegistry()
        registry.add(session)
        with pytest.raises(NotFoundError):
            registry.get(8, session.session_id)

    def test_unknown_session_not_found(self):
        with pytest.raises(NotFoundError):
            TriageSessionRegistry().get(7, "nope")

    async def test_close_removes_session(self, session):
        registry = TriageSessionRegistry()
        registry.add(session)
        await registry.close(7, session.session_id)
        assert len(registry) == 0
        assert session.closed is True


class TestPetContext:
    """Tests for the pet context sent with each turn."""

    def test_age_in_years(self):
        assert age_bucket(date(2022, 1, 1), date(2025, 3, 1), Language.EN) == "3 years"
        assert age_bucket(date(2022, 1, 1), date(2025, 3, 1), Language.ZH) == "3岁"

    def test_age_in_months_under_a_year(self):
        assert age_bucket(date(2024, 11, 20), date(2025, 3, 1), Language.EN) == "3 months"
        assert age_bucket(date(2024, 11, 20), date(2025, 3, 1), Language.ZH) == "3个月"

    def test_birthday_not_yet_reached(self):
        assert age_bucket(date(2022, 3, 15), date(2025, 3, 1), Language.EN) == "2 years"

    def test_missing_birthdate(self):
        assert age_bucket(None, date(2025, 3, 1), Language.EN) is None

    def test_pet_info_is_localized(self):
        info = MOCHI.to_pet_info(Language.ZH, date(2025, 6, 1))
        assert info.species == "狗"
        assert info.age == "3岁"
        assert info.weight == 12.5
