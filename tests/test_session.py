"""Tests for the model/tool loop behind ToolSession."""
from __future__ import annotations

import asyncio

import pytest
from pydantic import BaseModel, Field

from citesearch.agents.session import ToolUseSession
from citesearch.exceptions import DeadlineExceededError, ProviderError
from citesearch.services.deadline import Deadline
from citesearch.tools.base import Tool

from fakes import ScriptedClient, model_response, text_block, tool_block


class EchoInput(BaseModel):
    word: str = Field(description="Word to echo")
    times: int = Field(default=1, ge=1, le=3)


async def _echo(params: EchoInput, deadline: Deadline | None = None) -> str:
    return " ".join([params.word] * params.times)


async def _broken(params: EchoInput, deadline: Deadline | None = None) -> str:
    raise ProviderError("Firecrawl API error: 500 - upstream down")


echo_tool = Tool(name="echo", description="Echo a word", input_model=EchoInput, handler=_echo)
broken_tool = Tool(name="broken", description="Always fails", input_model=EchoInput, handler=_broken)


def _session(client: ScriptedClient, *tools: Tool, temperature: float | None = None) -> ToolUseSession:
    return ToolUseSession(
        name="test",
        system_prompt="system",
        tools=tools or (echo_tool,),
        model="test-model",
        temperature=temperature,
        client=client,
    )


@pytest.mark.asyncio
async def test_answer_without_tools_ends_after_one_step():
    client = ScriptedClient([model_response(text_block("Final answer."))])

    result = await _session(client).run("hello", max_steps=5)

    assert result.text == "Final answer."
    assert result.steps == 1
    assert result.invocations == []
    assert result.budget_exhausted is False
    assert client.calls[0]["messages"] == [{"role": "user", "content": "hello"}]
    assert client.calls[0]["system"] == "system"
    assert client.calls[0]["tools"][0]["name"] == "echo"
    assert "temperature" not in client.calls[0]


@pytest.mark.asyncio
async def test_tool_call_result_is_fed_back_to_model():
    client = ScriptedClient([
        model_response(text_block("Let me echo."), tool_block("t1", "echo", {"word": "hi", "times": 2})),
        model_response(text_block("Echoed: hi hi")),
    ])

    result = await _session(client).run("echo hi twice", max_steps=5)

    assert result.text == "Echoed: hi hi"
    assert result.steps == 2
    assert [(i.name, i.output, i.ok) for i in result.invocations] == [("echo", "hi hi", True)]
    second_call_messages = client.calls[1]["messages"]
    assert second_call_messages[-1] == {
        "role": "user",
        "content": [{"type": "tool_result", "tool_use_id": "t1", "content": "hi hi"}],
    }


@pytest.mark.asyncio
async def test_step_budget_stops_loop_after_tool_execution():
    client = ScriptedClient([
        model_response(text_block("Searching."), tool_block("t1", "echo", {"word": "x"})),
    ])

    result = await _session(client).run("go", max_steps=1)

    assert len(client.calls) == 1
    assert result.budget_exhausted is True
    assert result.steps == 1
    assert result.text == "Searching."
    assert result.invocations[0].output == "x"


@pytest.mark.asyncio
async def test_tool_failure_becomes_error_result_not_exception():
    client = ScriptedClient([
        model_response(tool_block("t1", "broken", {"word": "x"})),
        model_response(text_block("The tool failed.")),
    ])

    result = await _session(client, broken_tool).run("go", max_steps=3)

    invocation = result.invocations[0]
    assert invocation.ok is False
    assert "upstream down" in invocation.error
    tool_result = client.calls[1]["messages"][-1]["content"][0]
    assert tool_result["is_error"] is True
    assert tool_result["content"].startswith("Error: ")


@pytest.mark.asyncio
async def test_invalid_tool_input_is_reported_to_model():
    client = ScriptedClient([
        model_response(tool_block("t1", "echo", {"word": "x", "times": 99})),
        model_response(text_block("done")),
    ])

    result = await _session(client).run("go", max_steps=3)

    assert result.invocations[0].ok is False
    assert "Invalid input for tool 'echo'" in result.invocations[0].error


@pytest.mark.asyncio
async def test_unknown_tool_is_reported_to_model():
    client = ScriptedClient([
        model_response(tool_block("t1", "teleport", {})),
        model_response(text_block("done")),
    ])

    result = await _session(client).run("go", max_steps=3)

    assert result.invocations[0].error == "Unknown tool: teleport"
    assert result.text == "done"


@pytest.mark.asyncio
async def test_temperature_forwarded_when_set():
    client = ScriptedClient([model_response(text_block("ok"))])

    await _session(client, temperature=0.1).run("go", max_steps=1)

    assert client.calls[0]["temperature"] == 0.1


@pytest.mark.asyncio
async def test_expired_deadline_raises_before_calling_model():
    client = ScriptedClient([model_response(text_block("never"))])
    expired = Deadline(expires_at=0.0)

    with pytest.raises(DeadlineExceededError):
        await _session(client).run("go", max_steps=3, deadline=expired)

    assert client.calls == []


@pytest.mark.asyncio
async def test_slow_model_call_is_cancelled_at_deadline():
    class SlowClient:
        def __init__(self):
            self.messages = self

        async def create(self, **kwargs):
            await asyncio.sleep(5)

    session = ToolUseSession(name="slow", system_prompt="s", model="m", client=SlowClient())

    with pytest.raises(DeadlineExceededError):
        await session.run("go", max_steps=1, deadline=Deadline.after(0.05))
