from __future__ import annotations

from typing import Sequence

from loguru import logger

from citesearch.agents.session import ToolSession, ToolUseSession
from citesearch.config import settings
from citesearch.models.research import SessionResult, SourcedResponse
from citesearch.services.deadline import Deadline
from citesearch.services.prompt_store import render_prompt
from citesearch.tools.search_tool import search_tool
from citesearch.tools.source_parser import parse_sources


class SourceFinder:
    """Sourcing phase: one search-enabled session, parsed and capped."""

    name = "sourcing"

    def __init__(
        self,
        session: ToolSession | None = None,
        *,
        max_sources: int | None = None,
        max_steps: int | None = None,
        excluded_hosts: Sequence[str] | None = None,
        search_limit: int | None = None,
    ):
        self.max_sources = settings.sourcing_max_sources if max_sources is None else max_sources
        self.max_steps = settings.sourcing_max_steps if max_steps is None else max_steps
        self.excluded_hosts = (
            list(settings.excluded_host_list) if excluded_hosts is None else list(excluded_hosts)
        )
        self.search_limit = search_limit or settings.sourcing_search_limit
        self._session = session

    @property
    def session(self) -> ToolSession:
        if self._session is None:
            self._session = ToolUseSession(
                name=self.name,
                system_prompt=render_prompt("sourcing.system_prompt", limit=self.search_limit),
                tools=[search_tool],
                temperature=settings.sourcing_temperature,
            )
        return self._session

    def _search_output(self, result: SessionResult) -> str:
        successful = result.successful(search_tool.name)
        if not successful:
            failed = [i for i in result.invocations if i.name == search_tool.name]
            if failed:
                logger.error(f"Search tool failed: {failed[0].error}")
            else:
                logger.error("No tool results found - the model did not call the search tool")
                logger.debug(f"Model response text: {result.text[:500]}")
            return ""
        return successful[0].output

    async def find_sources(self, query: str, *, deadline: Deadline | None = None) -> SourcedResponse:
        logger.info(f"Starting source generation for query: {query}")

        prompt = render_prompt("sourcing.user_prompt", query=query, limit=self.search_limit)
        result = await self.session.run(prompt, max_steps=self.max_steps, deadline=deadline)
        logger.info(
            f"Sourcing session finished: {len(result.invocations)} tool call(s) in {result.steps} step(s)"
        )

        output = self._search_output(result)
        if not output.strip():
            if result.invocations:
                logger.error("Search output is empty")
            return SourcedResponse(title=query, sources=[])

        sources = parse_sources(output, excluded_hosts=self.excluded_hosts)
        if not sources:
            logger.error("No sources parsed from search output")
            logger.debug(f"Search output to parse: {output[:1000]}")

        capped = sources[: max(self.max_sources, 0)]
        logger.info(f"Extracted {len(sources)} sources, returning top {len(capped)}")
        return SourcedResponse(title=query, sources=capped)
