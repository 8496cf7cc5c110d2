from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from citesearch.exceptions import ProviderError
from citesearch.services.deadline import Deadline
from citesearch.tools import firecrawl
from citesearch.tools.base import Tool

MARKDOWN_EXCERPT_CHARS = 500


class SearchToolInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    query: str = Field(description="The search query")
    limit: int | None = Field(
        default=None,
        ge=1,
        le=100,
        description="Maximum number of results to return (default: 5, max: 100)",
    )
    sources: list[Literal["web", "images", "news"]] | None = Field(
        default=None, description='Search sources to use (default: ["web"])'
    )
    categories: list[Literal["github", "research", "pdf"]] | None = Field(
        default=None, description="Filter results by category"
    )
    tbs: str | None = Field(
        default=None,
        description='Time-based search filter (e.g., "qdr:h" for past hour, "qdr:d" for past day)',
    )
    location: str | None = Field(default=None, description="Geographic location for result filtering")
    country: str | None = Field(default=None, description='ISO country code (default: "US")')


def format_search_report(payload: dict[str, Any]) -> str:
    """Flatten a Firecrawl search payload into the markdown report the parser reads."""
    data = payload.get("data") or {}
    lines: list[str] = []

    web = data.get("web") or []
    if web:
        lines.append("# Web Results")
        for idx, item in enumerate(web, 1):
            lines.append(f"\n## {idx}. {item.get('title', '')}")
            lines.append(f"**URL:** {item.get('url', '')}")
            lines.append(f"**Description:** {item.get('description', '')}")
            markdown = item.get("markdown")
            if markdown:
                lines.append(f"\n{markdown[:MARKDOWN_EXCERPT_CHARS]}...")

    images = data.get("images") or []
    if images:
        lines.append("\n\n# Image Results")
        for idx, item in enumerate(images, 1):
            lines.append(f"\n{idx}. {item.get('title', '')} - {item.get('url', '')}")

    news = data.get("news") or []
    if news:
        lines.append("\n\n# News Results")
        for idx, item in enumerate(news, 1):
            lines.append(f"\n## {idx}. {item.get('title', '')}")
            lines.append(f"**URL:** {item.get('url', '')}")
            lines.append(f"**Description:** {item.get('description', '')}")

    warning = payload.get("warning")
    if warning:
        lines.append(f"\n\n**Warning:** {warning}")

    return "\n".join(lines)


async def run_search(params: SearchToolInput, deadline: Deadline | None = None) -> str:
    payload = await firecrawl.search(
        params.query,
        limit=params.limit,
        sources=list(params.sources) if params.sources else None,
        categories=list(params.categories) if params.categories else None,
        tbs=params.tbs,
        location=params.location,
        country=params.country,
        deadline=deadline,
    )
    if not payload.get("success"):
        raise ProviderError("Search failed", detail=str(payload.get("error") or ""))
    return format_search_report(payload)


search_tool = Tool(
    name="search",
    description=(
        "Search the web for information using Firecrawl. Returns up to the specified number "
        "of results with titles, descriptions, URLs, and optional content."
    ),
    input_model=SearchToolInput,
    handler=run_search,
)
