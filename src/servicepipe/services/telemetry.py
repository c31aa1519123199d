"""Telemetry primitives — Span and the enable/disable switch.

Near-zero overhead when disabled (single ContextVar.get per execution).
When enabled, every command execution builds a span tree with one child
per phase and injects it into CommandResult.meta.
"""

from __future__ import annotations

import time
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any

import structlog

from servicepipe.services.result import CommandResult

TELEMETRY_LOGGER = "servicepipe.telemetry"

# ── Context variables ────────────────────────────────────────────────

_telemetry_enabled: ContextVar[bool] = ContextVar("_telemetry_enabled", default=False)


# ── Span ─────────────────────────────────────────────────────────────


@dataclass
class Span:
    """Hierarchical timing span."""

    name: str
    parent: Span | None = None
    children: list[Span] = field(default_factory=list)
    start_time: float = field(default_factory=time.perf_counter)
    end_time: float | None = None
    annotations: dict[str, Any] = field(default_factory=dict)

    @property
    def duration_ms(self) -> float:
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time) * 1000

    def child(self, name: str) -> Span:
        """Start a child span under this one."""
        span = Span(name=name, parent=self)
        self.children.append(span)
        return span

    def end(self) -> None:
        self.end_time = time.perf_counter()

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "duration_ms": round(self.duration_ms, 2),
        }
        if self.annotations:
            result["annotations"] = self.annotations
        if self.children:
            result["children"] = [c.to_dict() for c in self.children]
        return result


# ── Result helpers ───────────────────────────────────────────────────


def inject_meta(result: CommandResult, span: Span) -> CommandResult:
    """Create a new CommandResult with span data merged into meta.

    Uses model_copy(update=...) since CommandResult is frozen.
    """
    telemetry = {"telemetry": span.to_dict()}
    existing_meta = result.meta or {}
    merged_meta = {**existing_meta, **telemetry}
    return result.model_copy(update={"meta": merged_meta})


def log_span(span: Span, *, ok: bool) -> None:
    """Log a completed span via structlog."""
    log = structlog.get_logger(TELEMETRY_LOGGER)
    log.debug(
        "span.complete",
        span_name=span.name,
        duration_ms=round(span.duration_ms, 2),
        ok=ok,
        children=len(span.children),
    )


# ── Public helpers ───────────────────────────────────────────────────


def enable_telemetry() -> None:
    """Enable telemetry (called by AppContext at startup)."""
    _telemetry_enabled.set(True)


def disable_telemetry() -> None:
    """Disable telemetry."""
    _telemetry_enabled.set(False)


def telemetry_enabled() -> bool:
    return _telemetry_enabled.get()
