"""Cooperative cancellation checks."""

import asyncio

from ..core.exceptions import CompressionCancelledError


def raise_if_cancelled(cancel_event: asyncio.Event | None, where: str) -> None:
    """Raise CompressionCancelledError if ``cancel_event`` has been set."""
    if cancel_event is not None and cancel_event.is_set():
        raise CompressionCancelledError(f"Compression cancelled before {where}")
