"""
MisIntel FastAPI Application
Multi-source misinformation checking for text, URLs, images and voice notes.
"""

import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, File, Form, Request, Response, UploadFile
from fastapi.responses import JSONResponse

from config import get_settings
from models.schemas import AnalysisRequest, InputKind
from graph.workflow import AdvancedCheckOrchestrator, build_orchestrator, is_http_url
from services.rate_limiter import client_id_from_headers
from exceptions import (
    MisinfoCheckError,
    ConfigurationError,
    InputValidationError,
    RateLimitedError,
    TranscriptionError,
)

logger = logging.getLogger(__name__)

VERSION = "1.0.0"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def failure_body(summary: str, reasons: list[str], error: Optional[str] = None) -> dict:
    """Error payload shaped like an analysis result with the zero-confidence sentinel."""
    body = {"isFake": False, "confidence": 0, "summary": summary, "reasons": reasons}
    if error:
        body = {"error": error, **body}
    return body


def _json(status_code: int, content: dict, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=content, headers={**CORS_HEADERS, **(headers or {})})


# ============================================
# EXCEPTION HANDLERS
# ============================================

async def rate_limited_handler(request: Request, exc: RateLimitedError) -> JSONResponse:
    return _json(
        429,
        failure_body(
            "Analysis failed",
            ["Request failed with status 429", "Please check your input and try again"],
        ),
        headers={"Retry-After": str(exc.retry_after)},
    )


async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    return _json(
        500,
        failure_body(
            "API key not configured",
            ["Google API key missing from environment variables"],
            error="Server configuration error",
        ),
    )


async def input_error_handler(request: Request, exc: InputValidationError) -> JSONResponse:
    return _json(400, failure_body(exc.summary, [exc.reason], error=exc.label))


async def misinfo_error_handler(request: Request, exc: MisinfoCheckError) -> JSONResponse:
    status_code = exc.status_code or 500
    logger.error("Request failed: %s", exc.message)
    return _json(status_code, failure_body("Analysis failed", [exc.message], error=exc.__class__.__name__))


async def server_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Server error: %s", exc)
    return _json(
        500,
        failure_body(
            "Internal server error occurred",
            [str(exc) or "Unknown server error", "Please try again later"],
            error="Server error",
        ),
    )


# ============================================
# DEPENDENCIES
# ============================================

def get_orchestrator(request: Request) -> AdvancedCheckOrchestrator:
    orchestrator = request.app.state.orchestrator
    if orchestrator is None:
        orchestrator = build_orchestrator()
        request.app.state.orchestrator = orchestrator
    return orchestrator


def _parse_kind(value: Optional[str]) -> InputKind:
    try:
        return InputKind((value or "text").strip().lower())
    except ValueError:
        return InputKind.TEXT


# ============================================
# ENDPOINTS
# ============================================

router = APIRouter()


@router.get("/", tags=["Root"])
async def root():
    """Root endpoint."""
    return {
        "name": "MisIntel API",
        "version": VERSION,
        "docs": "/docs",
    }


@router.get("/api/health", tags=["Health"])
async def health_check(orchestrator: AdvancedCheckOrchestrator = Depends(get_orchestrator)):
    """Check API health and integration availability."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": VERSION,
        "llmAvailable": orchestrator.llm.is_available,
        "tools": orchestrator.tool_status(),
    }


@router.options("/advanced-check", tags=["Fact-Check"])
async def advanced_check_preflight():
    return Response(status_code=204, headers=CORS_HEADERS)


@router.post("/advanced-check", tags=["Fact-Check"])
async def advanced_check(
    request: Request,
    type: Optional[str] = Form(None),
    input: Optional[str] = Form(None),
    force_fresh: Optional[str] = Form(None, alias="forceFresh"),
    image: Optional[UploadFile] = File(None),
    file: Optional[UploadFile] = File(None),
    audio: Optional[UploadFile] = File(None),
    orchestrator: AdvancedCheckOrchestrator = Depends(get_orchestrator),
):
    """
    Analyze text, a URL, an image or a voice note.

    Form fields: ``type`` (text|url|image|audio), ``input`` for text and URLs,
    ``image`` (or legacy ``file``) and ``audio`` uploads, ``forceFresh=true``
    to bypass the URL cache.
    """
    kind = _parse_kind(type)
    upload = image or file
    analysis_request = AnalysisRequest(
        kind=kind,
        body=input if kind == InputKind.TEXT else None,
        url=input if kind == InputKind.URL else None,
        force_fresh=(force_fresh or "").strip().lower() == "true",
        image=await upload.read() if upload is not None else None,
        audio=await audio.read() if audio is not None else None,
        audio_mime_type=audio.content_type if audio is not None else None,
    )

    client_id = client_id_from_headers(request.headers)
    result = await orchestrator.run(analysis_request, client_id=client_id)
    return _json(200, result.to_wire())


@router.post("/speech-to-text", tags=["Speech"])
async def speech_to_text(
    audio: Optional[UploadFile] = File(None),
    orchestrator: AdvancedCheckOrchestrator = Depends(get_orchestrator),
):
    """Transcribe an uploaded voice note."""
    data = await audio.read() if audio is not None else b""
    if not data:
        return _json(400, {"success": False, "error": "No audio file provided", "transcript": ""})

    try:
        transcript = await orchestrator.speech.transcribe(data, audio.content_type)
    except TranscriptionError as e:
        return _json(500, {"success": False, "error": e.message, "transcript": ""})

    if not transcript.transcript:
        return _json(200, {"success": False, "error": "No speech detected in audio", "transcript": ""})
    return _json(200, {"success": True, **transcript.to_wire()})


@router.post("/author-info", tags=["Author"])
async def author_info(
    request: Request,
    orchestrator: AdvancedCheckOrchestrator = Depends(get_orchestrator),
):
    """Byline and credibility for an article URL. Accepts form or JSON ``url``."""
    if request.headers.get("content-type", "").startswith("application/json"):
        try:
            payload = await request.json()
        except json.JSONDecodeError:
            return _json(400, {"error": "Invalid JSON body"})
        url = payload.get("url") if isinstance(payload, dict) else None
    else:
        url = (await request.form()).get("url")

    url = (url or "").strip() if isinstance(url, str) else ""
    if not url:
        return _json(400, {"error": "URL is required"})
    if not is_http_url(url):
        return _json(400, {"error": "Invalid URL provided"})

    author = await orchestrator.author_info(url)
    return _json(200, {"success": True, "author": author.to_wire()})


# ============================================
# FASTAPI APP
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("MisIntel API starting up...")
    yield
    logger.info("MisIntel API shutting down...")


def create_app(orchestrator: Optional[AdvancedCheckOrchestrator] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        orchestrator: Pre-built orchestrator; built from settings on first use if omitted
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="MisIntel API",
        description="Multi-source misinformation checking for text, URLs, images and voice notes",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.orchestrator = orchestrator

    @app.middleware("http")
    async def add_cors_headers(request: Request, call_next):
        """
        Stamp CORS headers on every response, errors included.

        Used instead of CORSMiddleware, which only adds them when the request
        carries an Origin header. Preflight is the explicit 204 OPTIONS route.
        """
        response = await call_next(request)
        for header, value in CORS_HEADERS.items():
            response.headers.setdefault(header, value)
        return response

    app.add_exception_handler(RateLimitedError, rate_limited_handler)
    app.add_exception_handler(ConfigurationError, configuration_error_handler)
    app.add_exception_handler(InputValidationError, input_error_handler)
    app.add_exception_handler(MisinfoCheckError, misinfo_error_handler)
    app.add_exception_handler(Exception, server_error_handler)

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
