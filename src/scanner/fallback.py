"""Ordered fallback over equivalent sources."""

from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from loguru import logger

T = TypeVar("T")

Fetcher = Callable[[], Awaitable[T]]


async def try_in_order(
    fetchers: Sequence[Fetcher[T]],
    is_acceptable: Callable[[T], bool],
    *,
    label: str = "FALLBACK",
    names: Sequence[str] | None = None,
) -> T | None:
    """Run ``fetchers`` one at a time and return the first acceptable result.

    A fetcher that raises, or whose result fails ``is_acceptable``, moves the
    search to the next one. Later fetchers are never started once one result
    is accepted. Returns None when the list is exhausted.
    """
    for i, fetch in enumerate(fetchers):
        name = names[i] if names and i < len(names) else f"#{i}"
        try:
            result = await fetch()
        except Exception as e:
            logger.debug(f"[{label}] {name} failed: {type(e).__name__}: {e}")
            continue
        if is_acceptable(result):
            logger.debug(f"[{label}] {name} accepted")
            return result
        logger.debug(f"[{label}] {name} rejected")
    return None
