from __future__ import annotations

from loguru import logger

from citesearch.agents.session import ToolSession, ToolUseSession
from citesearch.config import settings
from citesearch.exceptions import InvalidRequestError
from citesearch.models.research import CitedResponse, Source
from citesearch.services.citations import out_of_range_citations
from citesearch.services.deadline import Deadline
from citesearch.services.prompt_store import render_prompt
from citesearch.tools.scrape_tool import scrape_tool


def render_sources_context(sources: list[Source]) -> str:
    """Number the sources 1..n the way the answer is expected to cite them."""
    return "\n\n".join(
        f"[{idx}] {source.description}\nURL: {source.link}"
        for idx, source in enumerate(sources, 1)
    )


class SourceAnalyzer:
    """Analysis phase: scrape every source and write a cited markdown answer.

    The answer is returned exactly as the model wrote it. Citation numbers are
    checked against the source count only for logging.
    """

    name = "analysis"

    def __init__(self, session: ToolSession | None = None, *, max_steps: int | None = None):
        self.max_steps = settings.analysis_max_steps if max_steps is None else max_steps
        self._session = session

    @property
    def session(self) -> ToolSession:
        if self._session is None:
            self._session = ToolUseSession(
                name=self.name,
                system_prompt=render_prompt("analysis.system_prompt"),
                tools=[scrape_tool],
            )
        return self._session

    async def analyze(
        self,
        query: str,
        sources: list[Source],
        *,
        deadline: Deadline | None = None,
    ) -> CitedResponse:
        if not sources:
            raise InvalidRequestError("Sources array is required and must not be empty")

        logger.info(f"Starting analysis for query: {query}")
        logger.info(f"Analyzing {len(sources)} sources")

        prompt = render_prompt(
            "analysis.user_prompt",
            query=query,
            sources_context=render_sources_context(sources),
        )
        result = await self.session.run(prompt, max_steps=self.max_steps, deadline=deadline)

        answer = result.text if isinstance(result.text, str) else ""
        scrapes = result.successful(scrape_tool.name)
        logger.info(
            f"Analysis complete: {len(answer)} characters, "
            f"{len(result.invocations)} tool call(s), {len(scrapes)} scrapes completed"
        )
        if result.budget_exhausted:
            logger.warning(f"Analysis stopped at the {self.max_steps}-step budget")

        stray = out_of_range_citations(answer, len(sources))
        if stray:
            logger.warning(f"Answer cites sources outside 1..{len(sources)}: {stray}")

        return CitedResponse(answer=answer, sources=sources)
