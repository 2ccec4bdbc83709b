"""Runtime services shared by a context tree."""

from __future__ import annotations

from dataclasses import dataclass, field

from cancelctx.config import ContextConfig, load_config
from cancelctx.ids import IdFactory, new_context_id
from cancelctx.logger import setup_logging
from cancelctx.timers import AsyncioScheduler, Clock, Scheduler, SystemClock


@dataclass(slots=True)
class ContextRuntime:
    """Clock, scheduler, id generator and settings used by contexts.

    A root context picks a runtime once; every descendant inherits it.
    """

    config: ContextConfig = field(default_factory=ContextConfig)
    clock: Clock = field(default_factory=SystemClock)
    scheduler: Scheduler = field(default_factory=AsyncioScheduler)
    id_factory: IdFactory = new_context_id


_default_runtime: ContextRuntime | None = None


def get_default_runtime() -> ContextRuntime:
    """Return the process-wide runtime, building it from config on first use.

    A loaded config that asks for debug or JSON logs also configures logging.
    """
    global _default_runtime
    if _default_runtime is None:
        config = load_config()
        if config.debug or config.json_logs:
            setup_logging(debug=config.debug, json_output=config.json_logs)
        _default_runtime = ContextRuntime(config=config)
    return _default_runtime


def set_default_runtime(runtime: ContextRuntime | None) -> None:
    """Replace the process-wide runtime. ``None`` resets to lazy loading."""
    global _default_runtime
    _default_runtime = runtime
