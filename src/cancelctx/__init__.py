"""Cancellation and deadline propagation contexts."""

from cancelctx.config import ContextConfig, load_config
from cancelctx.context import Context
from cancelctx.errors import (
    ConfigurationError,
    ContextCancelledError,
    ContextError,
    ErrorCategory,
    InvalidArgumentError,
    SchedulingError,
)
from cancelctx.ids import new_context_id
from cancelctx.logger import get_logger, setup_logging
from cancelctx.runtime import ContextRuntime, get_default_runtime, set_default_runtime
from cancelctx.signal import CancelSignal, Subscription
from cancelctx.timers import AsyncioScheduler, Clock, Scheduler, SystemClock, TimerHandle

__all__ = [
    # context
    "Context",
    # signal
    "CancelSignal",
    "Subscription",
    # runtime
    "ContextRuntime",
    "get_default_runtime",
    "set_default_runtime",
    # timers
    "AsyncioScheduler",
    "Clock",
    "Scheduler",
    "SystemClock",
    "TimerHandle",
    # ids
    "new_context_id",
    # config
    "ContextConfig",
    "load_config",
    # logging
    "get_logger",
    "setup_logging",
    # errors
    "ConfigurationError",
    "ContextCancelledError",
    "ContextError",
    "ErrorCategory",
    "InvalidArgumentError",
    "SchedulingError",
]
