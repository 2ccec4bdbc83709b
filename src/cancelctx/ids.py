"""Context identifier generation."""

from __future__ import annotations

import uuid
from typing import Callable

IdFactory = Callable[[], str]


def new_context_id() -> str:
    """Return a fresh, collision-resistant context id."""
    return uuid.uuid4().hex
