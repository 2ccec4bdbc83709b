"""Global test fixtures for cancelctx."""

from __future__ import annotations

import itertools
from collections.abc import Iterator

import pytest

from cancelctx.config import ContextConfig
from cancelctx.runtime import ContextRuntime, set_default_runtime
from tests.helpers import FakeTimers


@pytest.fixture
def fake_timers() -> FakeTimers:
    """Simulated clock/scheduler starting at the Unix epoch."""
    return FakeTimers()


@pytest.fixture
def runtime(fake_timers: FakeTimers) -> ContextRuntime:
    """Runtime driven by fake timers with deterministic ids."""
    counter = itertools.count(1)
    return ContextRuntime(
        config=ContextConfig(),
        clock=fake_timers,
        scheduler=fake_timers,
        id_factory=lambda: f"ctx-{next(counter)}",
    )


@pytest.fixture(autouse=True)
def _reset_default_runtime() -> Iterator[None]:
    set_default_runtime(ContextRuntime(config=ContextConfig()))
    yield
    set_default_runtime(None)
