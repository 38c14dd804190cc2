import logging
from pathlib import Path

from fastapi import FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from healthscan import analyzer, llm
from healthscan.config import settings
from healthscan.errors import AnalysisError, MissingUpload
from healthscan.models import (
    AnalyzeResponse,
    ErrorResponse,
    HealthResponse,
    SettingsResponse,
)
from healthscan.presentation import PageState, render_page, transition

logging.basicConfig(
    level=settings.analysis.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger(__name__)

_STATIC_DIR = Path(__file__).resolve().parent / "static"

app = FastAPI(title="HealthScan AI", version="0.1.0")


def _error_response(err: AnalysisError) -> JSONResponse:
    return JSONResponse(
        status_code=err.status_code,
        content=ErrorResponse(error=err.message).model_dump(),
    )


@app.exception_handler(AnalysisError)
async def analysis_error_handler(request: Request, exc: AnalysisError):
    if exc.status_code >= 500:
        log.error("Analysis failed (%d): %s", exc.status_code, exc.message)
    else:
        log.warning("Analysis rejected (%d): %s", exc.status_code, exc.message)
    return _error_response(exc)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    # The only request bodies are the upload forms, so any validation
    # failure means the file field was missing or not a file.
    log.warning("Invalid upload request to %s: %s", request.url.path, exc.errors())
    err = MissingUpload()
    if request.url.path == "/report":
        return HTMLResponse(
            render_page(PageState.ERROR, error=err.message),
            status_code=err.status_code,
        )
    return _error_response(err)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    log.error("Unhandled error on %s", request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error=str(exc) or AnalysisError.default_message).model_dump(),
    )


async def _read_upload(file: UploadFile) -> bytes:
    try:
        return await file.read()
    finally:
        await file.close()


@app.get("/api/health", response_model=HealthResponse)
async def health():
    return HealthResponse(api_key_configured=settings.gemini.is_configured)


@app.get("/api/settings", response_model=SettingsResponse)
async def get_settings():
    return SettingsResponse(
        model=llm.get_model(),
        temperature=settings.gemini.temperature,
        max_text_chars=settings.analysis.max_text_chars,
    )


@app.post(
    "/api/analyze",
    response_model=AnalyzeResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def analyze(file: UploadFile = File(...)):
    data = await _read_upload(file)
    result = await analyzer.analyze(file.filename, file.content_type, data)
    return AnalyzeResponse(analysis=result)


# ── Browser pages ──


@app.get("/", response_class=HTMLResponse)
async def index():
    return HTMLResponse(
        render_page(PageState.IDLE),
        headers={"Cache-Control": "no-cache"},
    )


@app.post("/report", response_class=HTMLResponse)
async def report(file: UploadFile = File(...)):
    """Form-post flow for the upload page: renders the result or the error in place."""
    state = transition(PageState.IDLE, "submit")
    data = await _read_upload(file)
    try:
        result = await analyzer.analyze(file.filename, file.content_type, data)
    except AnalysisError as e:
        log.warning("Report page error (%d): %s", e.status_code, e.message)
        state = transition(state, "failure")
        return HTMLResponse(
            render_page(state, error=e.message, filename=file.filename, size=len(data)),
            status_code=e.status_code,
        )
    state = transition(state, "success")
    return HTMLResponse(render_page(state, result=result))


app.mount("/static", StaticFiles(directory=_STATIC_DIR), name="static")


@app.middleware("http")
async def add_no_cache_to_static(request, call_next):
    response = await call_next(request)
    if request.url.path.startswith("/static/"):
        response.headers["Cache-Control"] = "no-cache"
    return response


def run() -> None:
    import uvicorn

    uvicorn.run("healthscan.main:app", host="0.0.0.0", port=8000)
