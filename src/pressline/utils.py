"""Small helpers shared across the pipeline."""

from __future__ import annotations

import inspect
import logging
from datetime import date, datetime, time, timezone
from typing import Any, Awaitable, TypeVar, Union

log = logging.getLogger(__name__)

T = TypeVar("T")


def coerce_datetime(value: Any) -> datetime | None:
    """Turn a date, datetime or ISO string into an aware datetime.

    Naive values are taken as UTC. Unparseable input yields None.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime.combine(value, time(), tzinfo=timezone.utc)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            log.debug(f"Unparseable date: {value!r}")
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


async def maybe_await(value: Union[T, Awaitable[T]]) -> T:
    """Await ``value`` if it is awaitable, otherwise return it unchanged.

    Plugin callables may be plain functions or coroutines.
    """
    if inspect.isawaitable(value):
        return await value
    return value


def resolve_path(context: Any, expr: str) -> Any:
    """Resolve a dotted expression like ``page.author.name`` against a mapping.

    Raises:
        KeyError: If any segment is missing.
    """
    value: Any = context
    for part in expr.split("."):
        if isinstance(value, dict) and part in value:
            value = value[part]
        elif hasattr(value, "get") and not isinstance(value, dict):
            found = value.get(part)
            if found is None:
                raise KeyError(part)
            value = found
        else:
            raise KeyError(part)
    return value
