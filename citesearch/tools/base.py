from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from citesearch.exceptions import ToolInputError
from citesearch.services.deadline import Deadline

InputT = TypeVar("InputT", bound=BaseModel)


@dataclass
class Tool(Generic[InputT]):
    """A capability the model may call: a pydantic input schema plus an async handler.

    The handler receives validated input and returns the flat text report the
    model reads back as the tool result.
    """

    name: str
    description: str
    input_model: type[InputT]
    handler: Callable[[InputT, Deadline | None], Awaitable[str]]

    def definition(self) -> dict[str, Any]:
        """Tool definition in the Anthropic messages format."""
        schema = self.input_model.model_json_schema(by_alias=True)
        schema.pop("title", None)
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": schema,
        }

    def validate(self, raw_input: Any) -> InputT:
        try:
            return self.input_model.model_validate(raw_input or {})
        except ValidationError as exc:
            raise ToolInputError(self.name, str(exc)) from exc

    async def invoke(self, raw_input: Any, *, deadline: Deadline | None = None) -> str:
        params = self.validate(raw_input)
        return await self.handler(params, deadline)
