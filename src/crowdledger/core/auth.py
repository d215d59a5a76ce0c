"""Caller authorization checks."""

from __future__ import annotations


def is_authorized(caller: str | None, required: str) -> bool:
    """Return True when ``caller`` is exactly the ``required`` principal."""
    if not caller or not required:
        return False
    return caller == required
