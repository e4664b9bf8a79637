"""Utility helpers for GridPress."""

from .cancellation import raise_if_cancelled
from .logging_context import (
    FileContext,
    OperationContext,
    SheetContext,
    StepContext,
    get_contextual_logger,
)
from .text import estimate_tokens, format_value

__all__ = [
    "FileContext",
    "OperationContext",
    "SheetContext",
    "StepContext",
    "estimate_tokens",
    "format_value",
    "get_contextual_logger",
    "raise_if_cancelled",
]
