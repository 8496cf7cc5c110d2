"""Exception hierarchy shared by the tools, agents and API layer."""
from __future__ import annotations


class CiteSearchError(Exception):
    """Base exception for CiteSearch errors."""

    pass


class InvalidRequestError(CiteSearchError):
    """Raised when caller-supplied input is missing or malformed."""

    pass


class ProviderError(CiteSearchError):
    """Raised when a hosted provider rejects a request or returns garbage."""

    def __init__(self, message: str, *, status_code: int | None = None, detail: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class MissingCredentialError(ProviderError):
    """Raised at call time when a provider credential is not configured."""

    def __init__(self, env_var: str):
        super().__init__(f"{env_var} environment variable is not set")
        self.env_var = env_var


class ToolInputError(CiteSearchError):
    """Raised when tool-call arguments fail schema validation."""

    def __init__(self, tool_name: str, message: str):
        super().__init__(f"Invalid input for tool '{tool_name}': {message}")
        self.tool_name = tool_name


class DeadlineExceededError(CiteSearchError):
    """Raised when a request runs past its deadline."""

    pass
