import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from petdoc.config import get_settings
from petdoc.database import create_all, engine
from petdoc.errors import PetDocError
from petdoc.services.ai_client import build_client
from petdoc.services.labels import resolve_language
from petdoc.services.summary_gateway import SummaryGateway
from petdoc.services.triage_config import load_triage_config_from_yaml
from petdoc.services.triage_gateway import TriageGateway
from petdoc.services.triage_session import TriageSessionRegistry

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.triage_config_path:
        load_triage_config_from_yaml(settings.triage_config_path)
        logger.info("Loaded triage config", extra={"path": settings.triage_config_path})

    # Create tables on startup
    await create_all(engine)

    # One upstream client shared by both gateways
    client = build_client(settings)
    app.state.triage_gateway = TriageGateway(settings, client=client)
    app.state.summary_gateway = SummaryGateway(settings, client=client)
    app.state.triage_sessions = TriageSessionRegistry()
    yield
    # Cleanup on shutdown
    await app.state.triage_sessions.close_all()
    await client.aclose()
    await engine.dispose()


app = FastAPI(
    title="Pet Doctor API",
    description="AI vet triage, consultations and recovery observation plans",
    version="0.1.0",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PetDocError)
async def petdoc_error_handler(request: Request, exc: PetDocError) -> JSONResponse:
    """Localized message and a stable code; internal detail stays in the logs."""
    language = resolve_language(
        request.query_params.get("language") or request.headers.get("accept-language")
    )
    if exc.status_code >= 500:
        logger.error("Request failed", extra={"code": exc.code, "detail": exc.detail, "path": request.url.path})
    else:
        logger.info("Request rejected", extra={"code": exc.code, "detail": exc.detail, "path": request.url.path})
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.localized(language), "code": exc.code},
    )


@app.get("/health")
async def health_check():
    return {"status": "healthy", "environment": settings.environment}


# API routers
from petdoc.api.v1.router import api_router

app.include_router(api_router, prefix="/api/v1")
