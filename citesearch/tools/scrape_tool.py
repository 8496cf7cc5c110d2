from __future__ import annotations

import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from citesearch.exceptions import ProviderError
from citesearch.services.deadline import Deadline
from citesearch.tools import firecrawl
from citesearch.tools.base import Tool

LIMITED_CONTENT_WORDS = 100
HTML_FALLBACK_CHARS = 10000


class ScrapeToolInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str = Field(description="The URL of the webpage to scrape")
    formats: list[Literal["markdown", "html", "screenshot", "links"]] | None = Field(
        default=None, description='Output formats (default: ["markdown"])'
    )
    only_main_content: bool | None = Field(
        default=None,
        alias="onlyMainContent",
        description="Extract only main content, excluding headers/footers (default: true)",
    )
    mobile: bool | None = Field(default=None, description="Emulate mobile device for scraping")
    max_age: int | None = Field(
        default=None,
        alias="maxAge",
        gt=0,
        description="Return cached page if younger than specified milliseconds",
    )


def format_scrape_report(url: str, data: dict[str, Any]) -> str:
    output: list[str] = [f"Source: {url}"]

    metadata = data.get("metadata") or {}
    if metadata.get("title"):
        output.append(f"Title: {metadata['title']}")

    markdown = data.get("markdown")
    html = data.get("html")
    if markdown:
        output.append("\n---\n")
        output.append(markdown)
        word_count = len(re.split(r"\s+", markdown.strip()))
        if word_count < LIMITED_CONTENT_WORDS:
            output.append("\n---")
            output.append(f"[Note: Limited content extracted - {word_count} words]")
    elif html:
        output.append("\n---\n")
        output.append("[Note: Markdown extraction failed, using HTML content]")
        output.append(html[:HTML_FALLBACK_CHARS])
    else:
        output.append("\n[Warning: No content could be extracted from this URL]")

    return "\n".join(output)


async def run_scrape(params: ScrapeToolInput, deadline: Deadline | None = None) -> str:
    payload = await firecrawl.scrape(
        params.url,
        formats=list(params.formats) if params.formats else None,
        only_main_content=params.only_main_content,
        mobile=params.mobile,
        max_age=params.max_age,
        deadline=deadline,
    )
    data = payload.get("data")
    if not payload.get("success") or not isinstance(data, dict):
        raise ProviderError(str(payload.get("error") or "Scraping failed"))
    return format_scrape_report(params.url, data)


scrape_tool = Tool(
    name="scrape",
    description=(
        "Scrape and extract content from a website URL. Returns the page content in various "
        "formats including markdown, HTML, screenshots, and links. Useful for extracting "
        "information from specific web pages."
    ),
    input_model=ScrapeToolInput,
    handler=run_scrape,
)
