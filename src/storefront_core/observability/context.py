"""Cart owner context propagation using contextvars."""

from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar

# Owner (session or customer id) of the cart being handled in this context
_current_owner: ContextVar[str | None] = ContextVar("current_owner", default=None)


def get_current_owner_id() -> str | None:
    """Get the current cart owner id from context, or None if not set."""
    return _current_owner.get()


@contextmanager
def owner_context(owner_id: str) -> Generator[str, None, None]:
    """
    Context manager scoping log records to a cart owner.

    Usage:
        with owner_context("sess-123"):
            logger.info("Adding item")  # Record carries owner_id
    """
    token = _current_owner.set(owner_id)
    try:
        yield owner_id
    finally:
        _current_owner.reset(token)
