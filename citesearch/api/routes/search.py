from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from citesearch.agents.analysis import SourceAnalyzer
from citesearch.agents.sourcing import SourceFinder
from citesearch.api.deps import get_deadline, get_source_analyzer, get_source_finder
from citesearch.exceptions import DeadlineExceededError, InvalidRequestError
from citesearch.models.schemas import (
    AnalyzeRequest,
    AnalyzeResponse,
    ErrorResponse,
    SearchRequest,
    SearchResponse,
    SourceModel,
)
from citesearch.services import logger as log_service
from citesearch.services.deadline import Deadline

router = APIRouter(prefix="/search", tags=["search"])

QUERY_REQUIRED = "Query is required"
SOURCES_REQUIRED = "Sources array is required and must not be empty"
NO_SOURCES_MESSAGE = "No sources found for your query. Please try a different search."
SEARCH_FAILED = "Failed to find sources"
ANALYZE_FAILED = "Failed to analyze sources"

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    504: {"model": ErrorResponse},
}


def _require_query(query: str | None) -> str:
    if not query or not query.strip():
        log_service.log_event("invalid_request", "Invalid query received", level="WARNING")
        raise InvalidRequestError(QUERY_REQUIRED)
    return query


@router.post(
    "",
    response_model=SearchResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
)
async def search(
    request: SearchRequest,
    finder: SourceFinder = Depends(get_source_finder),
    deadline: Deadline | None = Depends(get_deadline),
):
    """Find candidate sources for a query."""
    query = _require_query(request.query)

    log_service.log_event("search_started", "Starting source search", query=query[:100])
    try:
        sourced = await finder.find_sources(query, deadline=deadline)
    except (InvalidRequestError, DeadlineExceededError):
        raise
    except Exception as e:
        log_service.log_event("search_error", "Search API error", level="ERROR", error=repr(e))
        return JSONResponse(status_code=500, content={"error": SEARCH_FAILED})

    sources = [SourceModel(**s.to_dict()) for s in sourced.sources]
    if not sources:
        log_service.log_event("search_empty", "No sources found for query", level="WARNING")
        return SearchResponse(title=sourced.title, sources=[], message=NO_SOURCES_MESSAGE)

    log_service.log_event("search_completed", f"Found {len(sources)} sources")
    return SearchResponse(title=sourced.title, sources=sources)


@router.post("/analyze", response_model=AnalyzeResponse, responses=ERROR_RESPONSES)
async def analyze(
    request: AnalyzeRequest,
    analyzer: SourceAnalyzer = Depends(get_source_analyzer),
    deadline: Deadline | None = Depends(get_deadline),
):
    """Scrape the given sources and return a cited answer."""
    query = _require_query(request.query)
    if not request.sources:
        log_service.log_event("invalid_request", "Invalid sources received", level="WARNING")
        raise InvalidRequestError(SOURCES_REQUIRED)

    sources = [s.to_source() for s in request.sources]
    log_service.log_event("analysis_started", f"Starting analysis with {len(sources)} sources")
    try:
        cited = await analyzer.analyze(query, sources, deadline=deadline)
    except (InvalidRequestError, DeadlineExceededError):
        raise
    except Exception as e:
        log_service.log_event("analyze_error", "Analyze API error", level="ERROR", error=repr(e))
        return JSONResponse(status_code=500, content={"error": ANALYZE_FAILED})

    log_service.log_event("analysis_completed", "Analysis complete, returning answer")
    return AnalyzeResponse(
        answer=cited.answer,
        sources=[SourceModel(**s.to_dict()) for s in cited.sources],
    )
