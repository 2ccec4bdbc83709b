"""Test helpers for cancelctx."""

from tests.helpers.fake_timers import FakeTimers

__all__ = ["FakeTimers"]
