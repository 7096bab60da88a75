"""Call policies shared by the catalog components.

Two concerns are handled here instead of at each call site:

- ``single_flight(flag)``: at most one call of an operation class runs at a
  time. A second call while the flag is up returns None without touching
  state (not queued, not rejected).
- ``passive(error_attr, what)``: background refreshes catch failures, log
  them and record the message on the component instead of raising.

Foreground operations simply use neither ``passive`` nor try/except and let
``CatalogError`` propagate.

``ChangeNotifier`` lets views subscribe to state changes without a framework.
"""

from __future__ import annotations

import functools
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

from ..logger import get_logger

log = get_logger(__name__)

T = TypeVar("T")
Listener = Callable[[str], None]


class ChangeNotifier:
    """Minimal observer list. Listeners receive the name of the changed field."""

    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener and return a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, field_name: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(field_name)
            except Exception:
                log.exception("listener_failed", field=field_name)


def single_flight(flag: str) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[Optional[T]]]]:
    """Guard an async method with a boolean attribute on its instance."""

    def decorator(fn: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[Optional[T]]]:
        @functools.wraps(fn)
        async def wrapper(self: Any, *args: Any, **kwargs: Any) -> Optional[T]:
            if getattr(self, flag):
                log.debug("skipped_in_flight", operation=fn.__name__, guard=flag)
                return None
            setattr(self, flag, True)
            _notify(self, flag)
            try:
                return await fn(self, *args, **kwargs)
            finally:
                setattr(self, flag, False)
                _notify(self, flag)

        return wrapper

    return decorator


def passive(error_attr: str, what: str) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[Optional[T]]]]:
    """Swallow and record failures of a background refresh.

    Args:
        error_attr: Attribute on the instance that holds the last error message
        what: Human-readable name of the operation, used in logs
    """

    def decorator(fn: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[Optional[T]]]:
        @functools.wraps(fn)
        async def wrapper(self: Any, *args: Any, **kwargs: Any) -> Optional[T]:
            setattr(self, error_attr, None)
            try:
                return await fn(self, *args, **kwargs)
            except Exception as e:
                log.warning("background_refresh_failed", operation=what, error=str(e))
                setattr(self, error_attr, str(e))
                _notify(self, error_attr)
                return None

        return wrapper

    return decorator


def _notify(obj: Any, field_name: str) -> None:
    notify = getattr(obj, "_notify", None)
    if notify is not None:
        notify(field_name)
