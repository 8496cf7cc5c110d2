"""Turn the search tool's markdown report into Source records.

The report pairs a ``**URL:** ...`` line with a later ``**Description:** ...``
line. Pairing is done by a two-state machine:

    Pending(link, description)  -- awaiting a URL and/or description
    Ready(source)               -- both fields seen, record emitted

``advance`` performs one transition per line. A URL that arrives while a link
is already pending displaces it; the displaced link is returned so callers can
see exactly what was lost.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Union
from urllib.parse import urlparse

from loguru import logger

from citesearch.models.research import Source

URL_LINE = re.compile(r"\*\*URL:\*\* (.+)")
DESCRIPTION_LINE = re.compile(r"\*\*Description:\*\* (.+)")


@dataclass(frozen=True)
class Pending:
    link: str | None = None
    description: str | None = None
    # Set after an excluded URL; the next description belongs to it and is dropped.
    rejected: bool = False


@dataclass(frozen=True)
class Ready:
    source: Source


ParserState = Union[Pending, Ready]


def host_is_excluded(url: str, excluded_hosts: Iterable[str]) -> bool:
    """True when the URL's host is one of `excluded_hosts` or a subdomain of one."""
    hosts = [h.lower().lstrip(".") for h in excluded_hosts if h]
    if not hosts:
        return False
    try:
        host = (urlparse(url).hostname or "").lower()
    except ValueError:
        return False
    if not host:
        # Not an absolute URL; fall back to a substring check.
        lowered = url.lower()
        return any(h in lowered for h in hosts)
    return any(host == h or host.endswith("." + h) for h in hosts)


def advance(
    state: ParserState,
    line: str,
    *,
    excluded_hosts: Iterable[str] = (),
) -> tuple[ParserState, str | None]:
    """Apply one line to the state. Returns (next_state, displaced_link)."""
    pending = state if isinstance(state, Pending) else Pending()
    displaced: str | None = None

    url_match = URL_LINE.search(line)
    if url_match:
        url = url_match.group(1).strip()
        if url and host_is_excluded(url, excluded_hosts):
            return Pending(rejected=True), pending.link
        if url:
            displaced = pending.link
            pending = Pending(link=url, description=pending.description)

    desc_match = DESCRIPTION_LINE.search(line)
    if desc_match:
        description = desc_match.group(1).strip()
        if pending.rejected:
            return Pending(), displaced
        if description:
            pending = Pending(link=pending.link, description=description)

    if pending.link and pending.description:
        return Ready(Source(description=pending.description, link=pending.link)), displaced
    return pending, displaced


def parse_sources(report: str, *, excluded_hosts: Iterable[str] = ()) -> list[Source]:
    """Parse a search report into sources in first-seen order. Never raises."""
    if not isinstance(report, str) or not report.strip():
        return []

    excluded = tuple(excluded_hosts)
    sources: list[Source] = []
    state: ParserState = Pending()
    displaced_count = 0

    for line in report.splitlines():
        state, displaced = advance(state, line, excluded_hosts=excluded)
        if displaced:
            displaced_count += 1
            logger.debug(f"Dropped unpaired link from search report: {displaced}")
        if isinstance(state, Ready):
            sources.append(state.source)

    if displaced_count:
        logger.info(f"{displaced_count} link(s) in search report had no description")
    logger.info(f"Parsed {len(sources)} valid sources from search report")
    return sources
