"""Tests for structlog setup."""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest
import structlog

from cancelctx.context import Context
from cancelctx.logger import get_logger, setup_logging
from cancelctx.runtime import ContextRuntime


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    yield
    structlog.reset_defaults()
    logging.getLogger("cancelctx").setLevel(logging.NOTSET)


class TestLogger:
    def test_get_logger_binds(self) -> None:
        log = get_logger("cancelctx.test")
        assert log.bind(context_id="x") is not None

    def test_setup_logging_debug_level(self) -> None:
        setup_logging(debug=True)
        assert logging.getLogger("cancelctx").level == logging.DEBUG

    def test_setup_logging_info_level(self) -> None:
        setup_logging(debug=False, json_output=True)
        assert logging.getLogger("cancelctx").level == logging.INFO

    def test_cancellation_logged_at_debug(self, caplog: pytest.LogCaptureFixture) -> None:
        setup_logging(debug=True)
        ctx = Context(runtime=ContextRuntime())
        with caplog.at_level(logging.DEBUG, logger="cancelctx"):
            ctx.cancel()
        assert "context_cancelled" in caplog.text
        assert ctx.id in caplog.text

    def test_quiet_by_default(self, caplog: pytest.LogCaptureFixture) -> None:
        ctx = Context(runtime=ContextRuntime())
        with caplog.at_level(logging.INFO, logger="cancelctx"):
            ctx.cancel()
        assert "context_cancelled" not in caplog.text

    def test_derivation_logged_at_debug(self, caplog: pytest.LogCaptureFixture) -> None:
        setup_logging(debug=True)
        root = Context(runtime=ContextRuntime())
        with caplog.at_level(logging.DEBUG, logger="cancelctx"):
            root.with_values({"a": 1})
        assert "context_derived" in caplog.text
