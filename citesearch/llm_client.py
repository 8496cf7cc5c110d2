"""LLM client factory for OpenRouter (OpenAI-compatible SDK) and Anthropic.

Both clients expose `messages.create(...)` with Anthropic-shaped arguments and
responses, so the tool-use loop does not care which provider is configured.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from citesearch.config import settings
from citesearch.exceptions import MissingCredentialError


@dataclass
class Usage:
    input_tokens: int = 0
    output_tokens: int = 0


@dataclass
class TextBlock:
    type: str
    text: str


@dataclass
class ToolUseBlock:
    type: str
    id: str
    name: str
    input: dict[str, Any]


@dataclass
class MessageResponse:
    content: list[Any]
    usage: Usage


def _block_field(block: Any, name: str) -> Any:
    if isinstance(block, dict):
        return block.get(name)
    return getattr(block, name, None)


class OpenRouterMessagesAdapter:
    def __init__(self, openai_client: Any):
        self._client = openai_client

    @staticmethod
    def _temperature_for_model(model: str, requested: float | None) -> float:
        # Some OpenAI GPT-5-compatible gateways reject anything but temperature=1.
        if "gpt-5" in (model or "").lower():
            return 1
        return 0 if requested is None else requested

    def _to_openai_messages(self, system: str, messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
        openai_messages: list[dict[str, Any]] = [{"role": "system", "content": system}]

        for message in messages:
            role = message["role"]
            content = message["content"]

            if isinstance(content, str):
                openai_messages.append({"role": role, "content": content})
                continue

            if role == "assistant" and isinstance(content, list):
                text_parts: list[str] = []
                tool_calls: list[dict[str, Any]] = []
                for block in content:
                    btype = _block_field(block, "type")
                    if btype == "text":
                        text_value = _block_field(block, "text")
                        if text_value:
                            text_parts.append(text_value)
                    elif btype == "tool_use":
                        tool_calls.append(
                            {
                                "id": _block_field(block, "id"),
                                "type": "function",
                                "function": {
                                    "name": _block_field(block, "name"),
                                    "arguments": json.dumps(_block_field(block, "input") or {}),
                                },
                            }
                        )
                msg: dict[str, Any] = {"role": "assistant"}
                msg["content"] = "\n".join(text_parts) if text_parts else None
                if tool_calls:
                    msg["tool_calls"] = tool_calls
                openai_messages.append(msg)
                continue

            if role == "user" and isinstance(content, list):
                for tool_result in content:
                    if tool_result.get("type") != "tool_result":
                        continue
                    tool_content = str(tool_result.get("content", ""))
                    if tool_result.get("is_error"):
                        tool_content = f"ERROR: {tool_content}"
                    openai_messages.append(
                        {
                            "role": "tool",
                            "tool_call_id": tool_result.get("tool_use_id", ""),
                            "content": tool_content,
                        }
                    )
                continue

            openai_messages.append({"role": role, "content": str(content)})

        return openai_messages

    def _to_openai_tools(self, tools: list[dict[str, Any]]) -> list[dict[str, Any]]:
        return [
            {
                "type": "function",
                "function": {
                    "name": t["name"],
                    "description": t.get("description", ""),
                    "parameters": t.get("input_schema", {"type": "object", "properties": {}}),
                },
            }
            for t in tools
        ]

    def _from_openai_response(self, response: Any) -> MessageResponse:
        choice = response.choices[0].message
        content: list[Any] = []

        text = getattr(choice, "content", None)
        if text:
            content.append(TextBlock(type="text", text=text))

        for tc in getattr(choice, "tool_calls", []) or []:
            args = getattr(tc.function, "arguments", "{}") or "{}"
            try:
                parsed_args = json.loads(args)
            except json.JSONDecodeError:
                parsed_args = {}
            content.append(
                ToolUseBlock(
                    type="tool_use",
                    id=tc.id,
                    name=tc.function.name,
                    input=parsed_args if isinstance(parsed_args, dict) else {},
                )
            )

        usage = getattr(response, "usage", None)
        mapped_usage = Usage(
            input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            output_tokens=getattr(usage, "completion_tokens", 0) or 0,
        )

        return MessageResponse(content=content, usage=mapped_usage)

    async def create(
        self,
        *,
        model: str,
        max_tokens: int,
        system: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
    ) -> MessageResponse:
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": self._to_openai_messages(system, messages),
            "max_tokens": max_tokens,
            "temperature": self._temperature_for_model(model, temperature),
        }
        if tools:
            kwargs["tools"] = self._to_openai_tools(tools)
            kwargs["tool_choice"] = "auto"

        response = await self._client.chat.completions.create(**kwargs)
        return self._from_openai_response(response)


class OpenRouterClientAdapter:
    def __init__(self, openai_client: Any):
        self.messages = OpenRouterMessagesAdapter(openai_client)


def get_client() -> Any:
    """Build the client for the configured provider.

    Raises MissingCredentialError when that provider's key is unset, so the
    failure surfaces on the first call rather than at startup.
    """
    provider = settings.llm_provider.lower().strip()

    if provider == "anthropic":
        if not settings.anthropic_api_key:
            raise MissingCredentialError("ANTHROPIC_API_KEY")
        import anthropic

        return anthropic.AsyncAnthropic(api_key=settings.anthropic_api_key)

    if provider == "openrouter":
        if not settings.openrouter_api_key:
            raise MissingCredentialError("OPENROUTER_API_KEY")
        from openai import AsyncOpenAI

        base_url = settings.openrouter_base_url.strip() or "https://openrouter.ai/api/v1"
        openai_client = AsyncOpenAI(
            api_key=settings.openrouter_api_key,
            base_url=base_url,
        )
        return OpenRouterClientAdapter(openai_client)

    raise ValueError(f"Unsupported LLM_PROVIDER: {settings.llm_provider}")


def get_model() -> str:
    """Get the active model id for the configured provider."""
    if settings.llm_provider.lower().strip() == "anthropic":
        return settings.anthropic_model
    if settings.openrouter_model:
        return settings.openrouter_model
    return settings.default_model


_client: Any | None = None


def client() -> Any:
    """Get or create the LLM client."""
    global _client
    if _client is None:
        _client = get_client()
    return _client


def reset_client() -> None:
    global _client
    _client = None
