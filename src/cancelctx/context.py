"""Cancellation and deadline propagation context.

A :class:`Context` bundles an id shared by its whole derivation tree, a
one-way cancelled flag, an optional deadline and a copy-isolated value
store. Deriving a context snapshots the parent's state and subscribes to
the parent's cancellation, so cancelling any ancestor cancels every
descendant synchronously before ``cancel()`` returns.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Mapping
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Any, Callable

from cancelctx.errors import ContextCancelledError, InvalidArgumentError
from cancelctx.logger import get_logger
from cancelctx.runtime import ContextRuntime, get_default_runtime
from cancelctx.signal import CancelSignal, Subscription, invoke_listener
from cancelctx.timers import TimerHandle, delay_until

log = get_logger(__name__)

FIELDS = ("id", "cancelled", "deadline", "values")


def _check_values(values: Any) -> None:
    if not isinstance(values, Mapping):
        raise InvalidArgumentError("values must be a mapping", argument="values")
    for key in values:
        if not isinstance(key, str):
            raise InvalidArgumentError(
                f"value keys must be strings, got {type(key).__name__}",
                argument="values",
            )


class Context:
    """Tree-structured cancellation handle.

    ``Context()`` creates a root with a fresh id. ``Context(parent)`` or one
    of the ``with_*`` methods derives a child that inherits the parent's
    id, cancelled state, deadline, values and runtime.
    """

    def __init__(self, parent: Context | None = None, *, runtime: ContextRuntime | None = None) -> None:
        if parent is not None and not isinstance(parent, Context):
            raise InvalidArgumentError("parent must be a Context", argument="parent")
        if parent is not None and runtime is not None:
            raise InvalidArgumentError(
                "a derived context inherits its parent's runtime",
                argument="runtime",
            )

        if parent is None:
            self._runtime = runtime or get_default_runtime()
            new_id = self._runtime.id_factory()
            if not isinstance(new_id, str) or not new_id:
                raise InvalidArgumentError("id factory must return a non-empty string", argument="id")
            self._id = new_id
            self._cancelled = False
            self._deadline: datetime | None = None
            self._values: dict[str, Any] = {}
        else:
            self._runtime = parent._runtime
            self._id = parent._id
            self._cancelled = parent._cancelled
            self._deadline = parent._deadline
            self._values = dict(parent._values)

        self._parent = parent
        self._timers: dict[object, TimerHandle] = {}
        self._signal = CancelSignal(
            max_listeners=self._runtime.config.max_listeners,
            owner=self._id,
        )
        self._link: Subscription | None = None
        if parent is not None and (not self._cancelled or self._runtime.config.renotify):
            self._link = parent._signal.subscribe(self.cancel, weak=True)
        if parent is not None and log.isEnabledFor(logging.DEBUG):
            log.debug("context_derived", context_id=self._id, cancelled=self._cancelled)

    # -- read-only state ----------------------------------------------------

    @property
    def id(self) -> str:
        return self._id

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def deadline(self) -> datetime | None:
        return self._deadline

    @property
    def values(self) -> Mapping[str, Any]:
        """Read-only view of this context's values."""
        return MappingProxyType(self._values)

    @property
    def parent(self) -> Context | None:
        return self._parent

    @property
    def runtime(self) -> ContextRuntime:
        return self._runtime

    def value(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def remaining(self) -> timedelta | None:
        """Time left before the deadline, or None without one."""
        if self._deadline is None:
            return None
        return timedelta(seconds=delay_until(self._deadline, self._runtime.clock.now()))

    # -- derivation ---------------------------------------------------------

    def with_deadline(self, deadline: datetime) -> Context:
        """Derive a context whose deadline is the earlier of *deadline* and ours.

        Adopting a new deadline arms a timer that cancels this context (the
        receiver) when it elapses; the derived context follows through
        normal propagation.
        """
        if not isinstance(deadline, datetime):
            raise InvalidArgumentError("deadline must be a datetime", argument="deadline")

        adopt = self._deadline is None or deadline.timestamp() < self._deadline.timestamp()
        if adopt and not self._cancelled:
            # Arm first: a scheduling failure must leave nothing half-derived.
            self._arm_deadline(deadline)

        ctx = Context(self)
        if adopt:
            ctx.set("deadline", deadline)
        return ctx

    def with_timeout(self, ms: int) -> Context:
        """Derive a context with a deadline *ms* milliseconds from now."""
        if isinstance(ms, bool) or not isinstance(ms, int):
            raise InvalidArgumentError("ms must be an integer", argument="ms")
        try:
            deadline = self._runtime.clock.now() + timedelta(milliseconds=ms)
        except OverflowError:
            raise InvalidArgumentError(f"ms is out of range: {ms}", argument="ms") from None
        return self.with_deadline(deadline)

    def with_values(self, values: Mapping[str, Any]) -> Context:
        """Derive a context with *values* merged over the inherited ones."""
        _check_values(values)
        ctx = Context(self)
        return ctx.set("values", {**ctx._values, **values})

    # -- internal field setter ----------------------------------------------

    def set(self, field: str, value: Any) -> Context:
        """Assign one of the context fields and return self.

        Only ``id``, ``cancelled``, ``deadline`` and ``values`` exist; each
        is type-checked. ``cancelled`` can only move from False to True.
        """
        if field == "id":
            if not isinstance(value, str) or not value:
                raise InvalidArgumentError("id must be a non-empty string", argument="id")
            self._id = value
        elif field == "cancelled":
            if not isinstance(value, bool):
                raise InvalidArgumentError("cancelled must be a bool", argument="cancelled")
            if value:
                self.cancel()
            elif self._cancelled:
                raise InvalidArgumentError("a cancelled context cannot be un-cancelled", argument="cancelled")
        elif field == "deadline":
            if value is not None and not isinstance(value, datetime):
                raise InvalidArgumentError("deadline must be a datetime", argument="deadline")
            self._deadline = value
        elif field == "values":
            _check_values(value)
            self._values = dict(value)
        else:
            raise InvalidArgumentError(
                f"unknown context field {field!r}; expected one of {', '.join(FIELDS)}",
                argument="field",
            )
        return self

    # -- cancellation -------------------------------------------------------

    def cancel(self) -> None:
        """Cancel this context and, synchronously, all of its descendants."""
        first = not self._cancelled
        self._cancelled = True
        renotify = self._runtime.config.renotify

        if first:
            self._release_timers()
            if not renotify:
                self._unlink()
        if not (first or renotify):
            return

        if log.isEnabledFor(logging.DEBUG):
            log.debug("context_cancelled", context_id=self._id, repeat=not first)
        self._signal.emit()
        if not renotify:
            # Nothing is emitted twice, so spent listeners can go.
            self._signal.clear()

    def on_cancel(self, callback: Callable[[], Any]) -> Subscription:
        """Call *callback* when this context is cancelled.

        On an already-cancelled context the callback runs immediately.
        Either way a raising callback is logged, not propagated. Subscribing makes
        the ancestors hold this context strongly until it is cancelled, so
        it is not collected out from under the callback.
        """
        if self._cancelled and not self._runtime.config.renotify:
            invoke_listener(callback, self._id)
            return Subscription(None)
        subscription = self._signal.subscribe(callback)
        self._retain()
        if self._cancelled:
            invoke_listener(callback, self._id)
        return subscription

    async def wait(self) -> None:
        """Block the calling coroutine until this context is cancelled."""
        if self._cancelled:
            return
        done = asyncio.get_running_loop().create_future()

        def _resolve() -> None:
            if not done.done():
                done.set_result(None)

        with self.on_cancel(_resolve):
            await done

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise ContextCancelledError(self._id)

    def __enter__(self) -> Context:
        return self

    def __exit__(self, *exc: object) -> None:
        self.cancel()

    def __repr__(self) -> str:
        return (
            f"Context(id={self._id!r}, cancelled={self._cancelled}, "
            f"deadline={self._deadline!r}, values={self._values!r})"
        )

    # -- timers and links ---------------------------------------------------

    def _arm_deadline(self, deadline: datetime) -> None:
        delay = delay_until(deadline, self._runtime.clock.now())
        key = object()
        handle = self._runtime.scheduler.call_later(delay, functools.partial(self._deadline_reached, key))
        self._timers[key] = handle
        log.debug("deadline_armed", context_id=self._id, deadline=deadline.isoformat(), delay=delay)

    def _deadline_reached(self, key: object) -> None:
        self._timers.pop(key, None)
        log.debug("deadline_reached", context_id=self._id)
        self.cancel()

    def _release_timers(self) -> None:
        if not self._timers:
            return
        timers = list(self._timers.values())
        self._timers.clear()
        for handle in timers:
            handle.cancel()
        log.debug("deadline_timers_released", context_id=self._id, count=len(timers))

    def _retain(self) -> None:
        # Pin the chain up to the first already-retained link.
        ctx: Context | None = self
        while ctx is not None and ctx._link is not None and not ctx._link.retained:
            ctx._link.retain()
            ctx = ctx._parent

    def _unlink(self) -> None:
        if self._link is not None:
            self._link.unsubscribe()
            self._link = None
