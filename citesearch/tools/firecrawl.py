"""Thin async client for the Firecrawl search and scrape endpoints."""
from __future__ import annotations

from typing import Any

import httpx

from citesearch.config import settings
from citesearch.exceptions import MissingCredentialError, ProviderError
from citesearch.services.deadline import Deadline, clamp_timeout


def _api_key() -> str:
    api_key = settings.firecrawl_api_key.strip()
    if not api_key:
        raise MissingCredentialError("FIRECRAWL_API_KEY")
    return api_key


def _endpoint(path: str) -> str:
    base = settings.firecrawl_base_url.strip().rstrip("/") or "https://api.firecrawl.dev"
    return f"{base}{path}"


async def _post(path: str, body: dict[str, Any], *, deadline: Deadline | None = None) -> dict[str, Any]:
    api_key = _api_key()
    if deadline is not None:
        deadline.check(f"Firecrawl request {path}")
    timeout = clamp_timeout(deadline, settings.firecrawl_timeout_seconds)

    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(
                _endpoint(path),
                json=body,
                headers={
                    "Authorization": f"Bearer {api_key}",
                    "Content-Type": "application/json",
                },
            )
    except httpx.TimeoutException as exc:
        if deadline is not None and deadline.expired:
            deadline.check(f"Firecrawl request {path}")
        raise ProviderError(f"Firecrawl request timed out: {path}") from exc
    except httpx.HTTPError as exc:
        raise ProviderError(f"Firecrawl request failed: {exc}") from exc

    if not response.is_success:
        raise ProviderError(
            f"Firecrawl API error: {response.status_code} - {response.text}",
            status_code=response.status_code,
            detail=response.text,
        )

    try:
        payload = response.json()
    except ValueError as exc:
        raise ProviderError("Firecrawl returned a non-JSON response", status_code=response.status_code) from exc
    if not isinstance(payload, dict):
        raise ProviderError("Firecrawl returned an unexpected response shape", status_code=response.status_code)
    return payload


async def search(
    query: str,
    *,
    limit: int | None = None,
    sources: list[str] | None = None,
    categories: list[str] | None = None,
    tbs: str | None = None,
    location: str | None = None,
    country: str | None = None,
    timeout_ms: int | None = None,
    ignore_invalid_urls: bool | None = None,
    deadline: Deadline | None = None,
) -> dict[str, Any]:
    """POST /v2/search. Returns the raw payload (`success`, `data`, `warning`)."""
    body: dict[str, Any] = {
        "query": query,
        "limit": limit if limit is not None else 5,
        "sources": sources or ["web"],
    }
    if categories:
        body["categories"] = categories
    if tbs:
        body["tbs"] = tbs
    if location:
        body["location"] = location
    if country:
        body["country"] = country
    if timeout_ms:
        body["timeout"] = timeout_ms
    if ignore_invalid_urls is not None:
        body["ignoreInvalidURLs"] = ignore_invalid_urls

    return await _post("/v2/search", body, deadline=deadline)


async def scrape(
    url: str,
    *,
    formats: list[str] | None = None,
    only_main_content: bool | None = None,
    mobile: bool | None = None,
    max_age: int | None = None,
    deadline: Deadline | None = None,
) -> dict[str, Any]:
    """POST /v2/scrape. Returns the raw payload (`success`, `data`, `error`)."""
    body: dict[str, Any] = {
        "url": url,
        "formats": formats or ["markdown"],
        "onlyMainContent": True if only_main_content is None else only_main_content,
    }
    if mobile is not None:
        body["mobile"] = mobile
    if max_age:
        body["maxAge"] = max_age

    return await _post("/v2/scrape", body, deadline=deadline)
