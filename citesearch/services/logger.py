"""Centralized logging service using loguru."""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from citesearch.config import settings

# Remove default handler
logger.remove()

# Console handler with color
logger.add(
    sys.stderr,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    level=settings.app_log_level.upper(),
    colorize=True,
)

if settings.log_file_enabled:
    LOG_DIR = Path(settings.log_dir)
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    logger.add(
        LOG_DIR / "citesearch_{time:YYYY-MM-DD}.log",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        level="DEBUG",
        rotation="00:00",
        retention="7 days",
        compression="zip",
    )

# Reduce noise from framework/network libraries
for logger_name in (
    "uvicorn",
    "uvicorn.error",
    "uvicorn.access",
    "fastapi",
    "httpx",
    "httpcore",
    "openai._base_client",
    "anthropic._base_client",
    "asyncio",
):
    logging.getLogger(logger_name).setLevel(settings.noisy_log_level.upper())


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def log_llm_call(
    model: str,
    caller: str,
    input_tokens: int = 0,
    output_tokens: int = 0,
    duration_ms: int = 0,
    status: str = "success",
    error: Optional[str] = None,
) -> None:
    """Log an LLM API call."""
    call_data = {
        "timestamp": _now(),
        "model": model,
        "caller": caller,
        "input_tokens": input_tokens,
        "output_tokens": output_tokens,
        "total_tokens": input_tokens + output_tokens,
        "duration_ms": duration_ms,
        "status": status,
        "error": error,
    }
    logger.info(f"LLM_CALL: {json.dumps(call_data)}")


def log_tool_call(
    caller: str,
    tool_name: str,
    duration_ms: int = 0,
    output_chars: int = 0,
    status: str = "success",
    error: Optional[str] = None,
) -> None:
    """Log a tool invocation made on behalf of the model."""
    call_data = {
        "timestamp": _now(),
        "caller": caller,
        "tool": tool_name,
        "duration_ms": duration_ms,
        "output_chars": output_chars,
        "status": status,
        "error": error,
    }
    if status == "success":
        logger.info(f"TOOL_CALL: {json.dumps(call_data)}")
    else:
        logger.warning(f"TOOL_CALL: {json.dumps(call_data)}")


def log_event(
    event_type: str,
    message: str,
    level: str = "INFO",
    **kwargs: Any,
) -> None:
    """Log a generic event."""
    event_data = {
        "timestamp": _now(),
        "event_type": event_type,
        "message": message,
        **kwargs,
    }
    logger.log(level.upper(), f"EVENT: {json.dumps(event_data, default=str)}")
