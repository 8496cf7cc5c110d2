from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Source:
    """One retrieved web reference."""

    description: str
    link: str

    def to_dict(self) -> dict[str, str]:
        return {"description": self.description, "link": self.link}


@dataclass
class SourcedResponse:
    title: str
    sources: list[Source] = field(default_factory=list)


@dataclass
class CitedResponse:
    answer: str
    sources: list[Source]


@dataclass
class ToolInvocation:
    """A single tool call made by the model during a session."""

    name: str
    input: dict[str, Any]
    output: str = ""
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class SessionResult:
    text: str
    invocations: list[ToolInvocation] = field(default_factory=list)
    steps: int = 0
    budget_exhausted: bool = False

    def successful(self, tool_name: str) -> list[ToolInvocation]:
        return [i for i in self.invocations if i.name == tool_name and i.ok]
