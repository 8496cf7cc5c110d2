from __future__ import annotations

import time
from typing import Any, Protocol, Sequence

from citesearch.config import settings
from citesearch.exceptions import DeadlineExceededError
from citesearch.llm_client import client as llm_client, get_model
from citesearch.models.research import SessionResult, ToolInvocation
from citesearch.services import logger as log_service
from citesearch.services.deadline import Deadline, run_with_deadline
from citesearch.tools.base import Tool


class ToolSession(Protocol):
    """An LLM conversation that may call tools for a bounded number of steps."""

    async def run(
        self,
        prompt: str,
        *,
        max_steps: int,
        deadline: Deadline | None = None,
    ) -> SessionResult: ...


class ToolUseSession:
    """Runs the model/tool loop against the configured LLM client.

    One step is a model call followed by execution of every tool call it
    requested. The loop ends when the model answers without tool calls or when
    `max_steps` steps have run.
    """

    def __init__(
        self,
        *,
        name: str,
        system_prompt: str,
        tools: Sequence[Tool[Any]] = (),
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        client: Any = None,
    ):
        self.name = name
        self.system_prompt = system_prompt
        self.tools = {t.name: t for t in tools}
        self.model = model or get_model()
        self.temperature = temperature
        self.max_tokens = max_tokens or settings.llm_max_tokens
        self.client = client

    async def _call_model(self, messages: list[dict[str, Any]], deadline: Deadline | None) -> Any:
        active_client = self.client or llm_client()
        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": self.system_prompt,
            "messages": messages,
        }
        if self.tools:
            kwargs["tools"] = [t.definition() for t in self.tools.values()]
        if self.temperature is not None:
            kwargs["temperature"] = self.temperature

        t0 = time.monotonic()
        try:
            response = await run_with_deadline(
                active_client.messages.create(**kwargs), deadline, f"{self.name} model call"
            )
        except Exception as e:
            log_service.log_llm_call(
                model=self.model,
                caller=self.name,
                duration_ms=int((time.monotonic() - t0) * 1000),
                status="error",
                error=str(e),
            )
            raise

        usage = getattr(response, "usage", None)
        log_service.log_llm_call(
            model=self.model,
            caller=self.name,
            input_tokens=getattr(usage, "input_tokens", 0) or 0,
            output_tokens=getattr(usage, "output_tokens", 0) or 0,
            duration_ms=int((time.monotonic() - t0) * 1000),
        )
        return response

    async def _invoke_tool(self, block: Any, deadline: Deadline | None) -> ToolInvocation:
        tool_input = block.input if isinstance(block.input, dict) else {}
        invocation = ToolInvocation(name=block.name, input=tool_input)
        tool = self.tools.get(block.name)

        t0 = time.monotonic()
        try:
            if tool is None:
                raise LookupError(f"Unknown tool: {block.name}")
            invocation.output = await tool.invoke(tool_input, deadline=deadline)
        except DeadlineExceededError:
            raise
        except Exception as e:
            invocation.error = str(e) or type(e).__name__

        log_service.log_tool_call(
            caller=self.name,
            tool_name=block.name,
            duration_ms=int((time.monotonic() - t0) * 1000),
            output_chars=len(invocation.output),
            status="success" if invocation.ok else "error",
            error=invocation.error,
        )
        return invocation

    async def run(
        self,
        prompt: str,
        *,
        max_steps: int,
        deadline: Deadline | None = None,
    ) -> SessionResult:
        messages: list[dict[str, Any]] = [{"role": "user", "content": prompt}]
        invocations: list[ToolInvocation] = []
        text = ""

        for step in range(1, max(max_steps, 1) + 1):
            response = await self._call_model(messages, deadline)

            tool_use_blocks = [b for b in response.content if b.type == "tool_use"]
            text = "\n".join(b.text for b in response.content if b.type == "text")

            if not tool_use_blocks:
                return SessionResult(text=text, invocations=invocations, steps=step)

            messages.append({"role": "assistant", "content": response.content})

            tool_results = []
            for tool_block in tool_use_blocks:
                invocation = await self._invoke_tool(tool_block, deadline)
                invocations.append(invocation)
                if invocation.ok:
                    tool_results.append({
                        "type": "tool_result",
                        "tool_use_id": tool_block.id,
                        "content": invocation.output,
                    })
                else:
                    tool_results.append({
                        "type": "tool_result",
                        "tool_use_id": tool_block.id,
                        "content": f"Error: {invocation.error}",
                        "is_error": True,
                    })

            messages.append({"role": "user", "content": tool_results})

        log_service.log_event(
            event_type="step_budget_exhausted",
            message=f"{self.name} session stopped after {max_steps} step(s)",
            level="DEBUG",
            caller=self.name,
            tool_calls=len(invocations),
        )
        return SessionResult(
            text=text,
            invocations=invocations,
            steps=max(max_steps, 1),
            budget_exhausted=True,
        )
