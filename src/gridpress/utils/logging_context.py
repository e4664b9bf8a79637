"""Context-aware logging utilities for GridPress."""

import contextvars
import logging
from collections.abc import Mapping
from typing import Any

# Context variables for tracking current compression context
current_file = contextvars.ContextVar[str | None]("current_file", default=None)
current_sheet = contextvars.ContextVar[str | None]("current_sheet", default=None)
current_step = contextvars.ContextVar[str | None]("current_step", default=None)
current_operation = contextvars.ContextVar[str | None]("current_operation", default=None)


class ContextualLogger(logging.LoggerAdapter):
    """Logger adapter that automatically includes context information."""

    def process(self, msg: str, kwargs: Mapping[str, Any]) -> tuple[str, Mapping[str, Any]]:
        """Add context information to log records."""
        context = {
            "file": current_file.get(),
            "sheet": current_sheet.get(),
            "step": current_step.get(),
            "op": current_operation.get(),
        }
        present = {key: value for key, value in context.items() if value}

        extra = dict(kwargs.get("extra") or {})
        extra.update(present)
        kwargs["extra"] = extra

        if present:
            context_str = ", ".join(f"{key}={value}" for key, value in present.items())
            msg = f"[{context_str}] {msg}"

        return msg, kwargs


def get_contextual_logger(name: str) -> ContextualLogger:
    """Get a logger that automatically includes context information.

    Args:
        name: Logger name (usually __name__)

    Returns:
        ContextualLogger instance
    """
    return ContextualLogger(logging.getLogger(name), {})


class _VarContext:
    """Sets a context variable for the duration of a ``with`` block."""

    var: contextvars.ContextVar[str | None]

    def __init__(self, value: str):
        self.value = value
        self.token: contextvars.Token | None = None

    def __enter__(self):
        self.token = self.var.set(self.value)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.token is not None:
            self.var.reset(self.token)
            self.token = None


class FileContext(_VarContext):
    """Context manager for tracking the workbook file being compressed."""

    var = current_file


class SheetContext(_VarContext):
    """Context manager for tracking the worksheet being processed."""

    var = current_sheet


class StepContext(_VarContext):
    """Context manager for tracking the pipeline step being executed."""

    var = current_step


class OperationContext(_VarContext):
    """Context manager for tracking the current operation."""

    var = current_operation
