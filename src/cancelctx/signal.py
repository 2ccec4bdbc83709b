"""Cancellation signal: the single event a context emits.

Listeners are either strong callbacks (consumer subscriptions) or weak
bound methods (child contexts), so a long-lived parent does not keep its
derived contexts alive. A weak registration can be retained, turning it
strong, when the child has consumers of its own to notify.
"""

from __future__ import annotations

import logging
import weakref
from dataclasses import dataclass, field
from types import MethodType
from typing import Any, Callable

logger = logging.getLogger(__name__)

Listener = Callable[[], Any]


def invoke_listener(callback: Listener, owner: str = "") -> None:
    """Call one cancellation listener, logging instead of raising."""
    try:
        callback()
    except Exception:
        logger.warning("Cancellation listener failed (owner=%s)", owner, exc_info=True)


@dataclass(slots=True, eq=False)
class _Entry:
    callback: Listener | None = None
    ref: weakref.WeakMethod | None = None
    # Strong reference pinning a weak listener's target.
    anchor: Listener | None = None

    def resolve(self) -> Listener | None:
        if self.ref is not None:
            return self.ref()
        return self.callback


@dataclass(eq=False)
class Subscription:
    """Handle for one registration on a :class:`CancelSignal`."""

    _signal: CancelSignal | None = field(repr=False)
    _entry: _Entry | None = field(default=None, repr=False)

    @property
    def active(self) -> bool:
        return self._signal is not None and self._signal._contains(self._entry)

    @property
    def retained(self) -> bool:
        return self._entry is not None and self._entry.anchor is not None

    def retain(self) -> None:
        """Hold a weak registration's target strongly until unsubscribed."""
        if self._entry is not None and self._entry.anchor is None:
            self._entry.anchor = self._entry.resolve()

    def unsubscribe(self) -> None:
        """Remove the registration. Safe to call more than once."""
        if self._signal is not None:
            self._signal._remove(self._entry)
            self._signal = None
        if self._entry is not None:
            self._entry.anchor = None

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc: object) -> None:
        self.unsubscribe()


class CancelSignal:
    """Ordered listener registry with subscribe/emit.

    Emission is synchronous and visits listeners in registration order.
    A listener that raises is logged and does not stop the others.
    Membership checks and removals are constant time.
    """

    def __init__(self, *, max_listeners: int = 0, owner: str = "") -> None:
        # Insertion-ordered; values unused.
        self._entries: dict[_Entry, None] = {}
        self._max_listeners = max_listeners
        self._owner = owner
        self._warned = False

    def subscribe(self, callback: Listener, *, weak: bool = False) -> Subscription:
        """Register *callback*; with ``weak=True`` it must be a bound method."""
        if weak:
            if not isinstance(callback, MethodType):
                raise TypeError("weak subscriptions require a bound method")
            entry = _Entry()
            entry.ref = weakref.WeakMethod(callback, lambda _ref: self._remove(entry))
        else:
            entry = _Entry(callback=callback)
        self._entries[entry] = None
        self._check_leak()
        return Subscription(self, entry)

    def emit(self) -> int:
        """Invoke every live listener. Returns how many were called."""
        called = 0
        for entry in tuple(self._entries):
            if entry not in self._entries:
                continue
            callback = entry.resolve()
            if callback is None:
                continue
            called += 1
            invoke_listener(callback, self._owner)
        return called

    def clear(self) -> None:
        """Drop every listener."""
        for entry in self._entries:
            entry.anchor = None
        self._entries.clear()

    @property
    def listener_count(self) -> int:
        return sum(1 for entry in self._entries if entry.resolve() is not None)

    def _contains(self, entry: _Entry | None) -> bool:
        return entry in self._entries

    def _remove(self, entry: _Entry | None) -> None:
        self._entries.pop(entry, None)

    def _check_leak(self) -> None:
        if self._warned or self._max_listeners <= 0:
            return
        # Collected weak entries remove themselves, so len() is the live count.
        count = len(self._entries)
        if count > self._max_listeners:
            self._warned = True
            logger.warning(
                "Possible listener leak: context %s has %d cancellation listeners (max_listeners=%d)",
                self._owner,
                count,
                self._max_listeners,
            )
