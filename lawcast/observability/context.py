"""Correlation ID context for poll cycle tracing.

The ID lives in a ContextVar, so it follows the cycle across awaits and
into every fan-out task spawned by ``asyncio.gather``. Every log line
emitted during a cycle then carries the same ``correlation_id``.

Usage:
    from lawcast.observability.context import correlation_id_context

    with correlation_id_context("notice_poll-20250203-090000"):
        await poller.tick()
    # Previous correlation ID is restored after the block
"""

import uuid
from contextvars import ContextVar
from contextlib import contextmanager
from typing import Optional, Generator

_correlation_id_var: ContextVar[Optional[str]] = ContextVar(
    "correlation_id", default=None
)


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID, or None if not set."""
    return _correlation_id_var.get()


@contextmanager
def correlation_id_context(
    corr_id: Optional[str] = None,
) -> Generator[str, None, None]:
    """Scope a correlation ID to a block.

    Args:
        corr_id: Correlation ID to use. If None, generates a UUID v4.

    Yields:
        The correlation ID used inside the block.
    """
    if corr_id is None:
        corr_id = str(uuid.uuid4())

    token = _correlation_id_var.set(corr_id)

    try:
        yield corr_id
    finally:
        _correlation_id_var.reset(token)
