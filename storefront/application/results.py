"""Outcome of a UI-triggered action."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class ActionResult:
    ok: bool
    error: str | None = None
    value: Any | None = None

    def __bool__(self) -> bool:
        return self.ok
