"""Shared fixtures: in-memory database, fake AI gateway, API client."""
import asyncio
import json
from collections.abc import AsyncIterator
from datetime import date

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from petdoc.api.deps import get_session_factory
from petdoc.config import Settings
from petdoc.database import Base
from petdoc.main import app
from petdoc.models import Pet, User
from petdoc.services.ai_client import build_client
from petdoc.services.summary_gateway import SummaryGateway
from petdoc.services.triage_config import TriageConfig, set_triage_config
from petdoc.services.triage_gateway import TriageGateway
from petdoc.services.triage_session import TriageSessionRegistry

TRIAGE_ANSWER = [
    "**紧急程度 / Urgency Level:** ",
    "24小时内 / Within 24 hours\n\n",
    "**建议就诊时间 / Suggested Timing:** 明天上午就诊。",
]


def sse_frame(content: str) -> bytes:
    frame = {"choices": [{"delta": {"content": content}}]}
    return f"data: {json.dumps(frame, ensure_ascii=False)}\n\n".encode("utf-8")


def sse_body(deltas: list[str], done: bool = True) -> bytes:
    body = b"".join(sse_frame(d) for d in deltas)
    if done:
        body += b"data: [DONE]\n\n"
    return body


def tool_call_response(arguments) -> dict:
    if not isinstance(arguments, str):
        arguments = json.dumps(arguments, ensure_ascii=False)
    return {
        "choices": [
            {
                "message": {
                    "role": "assistant",
                    "tool_calls": [
                        {
                            "type": "function",
                            "function": {"name": "provide_recovery_summary", "arguments": arguments},
                        }
                    ],
                }
            }
        ]
    }


async def _chunks(parts: list) -> AsyncIterator[bytes]:
    # A float is a pause in seconds; an exception is raised mid-body
    for part in parts:
        if isinstance(part, float):
            await asyncio.sleep(part)
            continue
        if isinstance(part, Exception):
            raise part
        yield part


class FakeUpstream:
    """
    Stands in for the chat completions gateway.

    Streamed requests get `stream_chunks` (one byte string per read);
    non-streamed requests get `summary_payload`. Every request is recorded.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.stream_status = 200
        self.stream_chunks: list = [sse_body(TRIAGE_ANSWER)]
        self.summary_status = 200
        self.summary_payload = tool_call_response(
            {"trend": "improving", "summary": "恢复良好。", "suggestion": "继续观察"}
        )

    @property
    def streamed_requests(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests if json.loads(r.content).get("stream")]

    @property
    def summary_requests(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests if not json.loads(r.content).get("stream")]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        payload = json.loads(request.content)

        if payload.get("stream"):
            if self.stream_status != 200:
                return httpx.Response(self.stream_status, json={"error": "upstream says no"})
            return httpx.Response(
                200,
                headers={"content-type": "text/event-stream"},
                content=_chunks(list(self.stream_chunks)),
            )

        if self.summary_status != 200:
            return httpx.Response(self.summary_status, json={"error": "upstream says no"})
        return httpx.Response(200, json=self.summary_payload)


@pytest.fixture(autouse=True)
def default_triage_config():
    """Every test starts from the built-in configuration."""
    set_triage_config(TriageConfig())
    yield
    set_triage_config(TriageConfig())


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite+aiosqlite://",
        ai_gateway_url="https://gateway.test/v1/chat/completions",
        ai_gateway_api_key="test-key",
        ai_model="test-model",
        triage_timeout_seconds=5.0,
        summary_timeout_seconds=5.0,
    )


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest_asyncio.fixture
async def http_client(settings: Settings, upstream: FakeUpstream) -> AsyncIterator[httpx.AsyncClient]:
    client = build_client(settings, transport=httpx.MockTransport(upstream.handler))
    yield client
    await client.aclose()


@pytest.fixture
def triage_gateway(settings: Settings, http_client: httpx.AsyncClient) -> TriageGateway:
    return TriageGateway(settings, client=http_client)


@pytest.fixture
def summary_gateway(settings: Settings, http_client: httpx.AsyncClient) -> SummaryGateway:
    return SummaryGateway(settings, client=http_client)


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create a test user."""
    user = User(email="owner@example.com", display_name="Owner", language="zh")
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    user = User(email="someone-else@example.com", language="en")
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def test_pet(db_session: AsyncSession, test_user: User) -> Pet:
    """A three-year-old dog."""
    today = date.today()
    pet = Pet(
        user_id=test_user.id,
        name="Mochi",
        species="dog",
        birthdate=date(today.year - 3, 1, 1),
        weight=12.5,
    )
    db_session.add(pet)
    await db_session.commit()
    await db_session.refresh(pet)
    return pet


@pytest_asyncio.fixture
async def api_app(session_factory, triage_gateway, summary_gateway):
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.state.triage_gateway = triage_gateway
    app.state.summary_gateway = summary_gateway
    app.state.triage_sessions = TriageSessionRegistry()
    yield app
    await app.state.triage_sessions.close_all()
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def anon_client(api_app) -> AsyncIterator[AsyncClient]:
    """Client without an X-User-Id header."""
    async with AsyncClient(transport=ASGITransport(app=api_app), base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def client(api_app, test_user: User) -> AsyncIterator[AsyncClient]:
    """Client acting as test_user."""
    async with AsyncClient(
        transport=ASGITransport(app=api_app),
        base_url="http://test",
        headers={"X-User-Id": str(test_user.id)},
    ) as client:
        yield client
