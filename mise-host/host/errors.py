"""
Mise Host — Error Handling

Error taxonomy for the generation core and the single path that turns an
exception into a log entry, a host notification and a panel ``error``
message.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from host.interfaces import WebviewChannel, Window

logger = logging.getLogger("mise.errors")


class ErrorType(str, Enum):
    GENERATION = "GENERATION"
    FILE_OPERATION = "FILE_OPERATION"
    API_ERROR = "API_ERROR"
    VALIDATION = "VALIDATION"
    CONFIGURATION = "CONFIGURATION"


@dataclass
class ErrorContext:
    operation: str
    component: str
    file_path: str = ""
    additional_info: dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class MiseError(Exception):
    error_type = ErrorType.GENERATION


class PreconditionError(MiseError):
    """A required input is missing; nothing has been written yet."""

    error_type = ErrorType.VALIDATION


class AIServiceError(MiseError):
    error_type = ErrorType.API_ERROR

    def __init__(self, message: str, *, status: int | None = None):
        super().__init__(message)
        self.status = status


class AIResponseError(MiseError):
    """The AI call succeeded but its output could not be used."""


class AnalysisError(MiseError):
    error_type = ErrorType.FILE_OPERATION


class WorkflowBusyError(MiseError):
    def __init__(self, operation: str):
        super().__init__(f"{operation} is already running.")
        self.operation = operation


class GenerationCancelled(MiseError):
    def __init__(self, operation: str):
        super().__init__(f"{operation} was cancelled.")
        self.operation = operation


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

def classify(exc: BaseException) -> ErrorType:
    if isinstance(exc, MiseError):
        return exc.error_type
    if isinstance(exc, OSError):
        return ErrorType.FILE_OPERATION
    return ErrorType.GENERATION


def _hint(text: str) -> str:
    lower = text.lower()
    if "api key" in lower or "401" in lower or "unauthorized" in lower:
        return "Check that your OpenAI API key is set and valid."
    if "rate limit" in lower or "quota" in lower or "429" in lower:
        return "The AI provider is rate limiting requests. Wait a moment and retry."
    if "network" in lower or "fetch" in lower or "timeout" in lower or "timed out" in lower:
        return "Check your network connection and try again."
    if "permission" in lower or "access" in lower:
        return "Check file permissions for the output directory."
    return ""


def format_error_message(exc: BaseException, ctx: ErrorContext) -> str:
    """Detailed single-line message for logs."""
    parts = [f"[{classify(exc).value}] {ctx.component}.{ctx.operation}: {exc}"]
    if ctx.file_path:
        parts.append(f"file={ctx.file_path}")
    if ctx.additional_info:
        parts.append(f"info={ctx.additional_info}")
    return " | ".join(parts)


def format_user_message(exc: BaseException, ctx: ErrorContext) -> str:
    """Concise user-facing message with a hint for known error categories."""
    if isinstance(exc, PreconditionError):
        return str(exc)
    text = str(exc) or type(exc).__name__
    message = f"Failed to {ctx.operation}: {text}"
    if ctx.file_path:
        message += f" ({ctx.file_path})"
    hint = _hint(text)
    if hint:
        message += f" {hint}"
    return message


async def handle_error(
    exc: BaseException,
    ctx: ErrorContext,
    window: "Window",
    channel: "WebviewChannel | None" = None,
) -> str:
    """Log, notify the host and post an ``error`` message to the panel."""
    if isinstance(exc, PreconditionError):
        logger.warning(format_error_message(exc, ctx))
    else:
        logger.error(format_error_message(exc, ctx), exc_info=exc)

    text = format_user_message(exc, ctx)
    await window.show_error_message(text)
    if channel is not None:
        await channel.post_message({
            "command": "error",
            "text": text,
            "operation": ctx.operation,
        })
    return text
