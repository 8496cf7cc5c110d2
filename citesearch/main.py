from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse

from citesearch import __version__
from citesearch.api.routes import search
from citesearch.config import settings
from citesearch.exceptions import DeadlineExceededError, InvalidRequestError
from citesearch.models.schemas import HealthResponse
from citesearch.services import logger as log_service

INDEX_HTML = Path(__file__).resolve().parent / "static" / "index.html"


@asynccontextmanager
async def lifespan(app: FastAPI):
    log_service.log_event("startup", "CiteSearch API starting", provider=settings.llm_provider)
    yield
    log_service.log_event("shutdown", "CiteSearch API stopped")


app = FastAPI(
    title="CiteSearch",
    description="Finds web sources for a question and writes a cited answer",
    version=__version__,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if any(err.get("type") == "json_invalid" for err in errors):
        return "Request body must be valid JSON"
    locations = [tuple(err.get("loc", ())) for err in errors]
    if any("query" in loc for loc in locations):
        return search.QUERY_REQUIRED
    if any("sources" in loc for loc in locations):
        return search.SOURCES_REQUIRED
    return search.QUERY_REQUIRED


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    message = _validation_message(exc)
    log_service.log_event(
        "invalid_request", message, level="WARNING", path=request.url.path, errors=exc.errors()
    )
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(InvalidRequestError)
async def invalid_request_handler(request: Request, exc: InvalidRequestError):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(DeadlineExceededError)
async def deadline_handler(request: Request, exc: DeadlineExceededError):
    log_service.log_event("deadline_exceeded", str(exc), level="ERROR", path=request.url.path)
    return JSONResponse(status_code=504, content={"error": "The request took too long. Please try again."})


# Routes: /api/search is what the bundled UI calls; /search is kept as a bare alias.
app.include_router(search.router, prefix="/api")
app.include_router(search.router, include_in_schema=False)


@app.get("/api/health", response_model=HealthResponse)
async def health():
    return {"status": "ok", "service": "citesearch"}


@app.get("/", response_class=HTMLResponse, include_in_schema=False)
async def index():
    return HTMLResponse(INDEX_HTML.read_text(encoding="utf-8"))
