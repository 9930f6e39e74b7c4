"""Request tracing for service operations.

Tracing is off unless ``--verbose`` turns it on. While off, ``@traced`` and
``trace_span`` cost one ContextVar lookup. While on, each public service
call builds a span tree (operation -> stages) and the finished tree is
attached to ``ServiceResult.meta["telemetry"]``. Stages annotate row
counts, so a listing trace shows every storage round trip it made.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, ParamSpec, TypeVar

import structlog

from pvzctl.services.result import ServiceResult

log = structlog.get_logger("pvzctl.telemetry")

_tracing: ContextVar[bool] = ContextVar("_tracing", default=False)
_active_span: ContextVar[Span | None] = ContextVar("_active_span", default=None)


@dataclass
class Span:
    """One timed unit of work and the stages nested under it."""

    name: str
    annotations: dict[str, Any] = field(default_factory=dict)
    children: list[Span] = field(default_factory=list)
    started: float = field(default_factory=time.perf_counter)
    finished: float | None = None

    @property
    def duration_ms(self) -> float:
        if self.finished is None:
            return 0.0
        return (self.finished - self.started) * 1000

    def child(self, name: str, **annotations: Any) -> Span:
        span = Span(name=name, annotations=dict(annotations))
        self.children.append(span)
        return span

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def end(self) -> None:
        if self.finished is None:
            self.finished = time.perf_counter()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "duration_ms": round(self.duration_ms, 2)}
        if self.annotations:
            data["annotations"] = dict(self.annotations)
        if self.children:
            data["children"] = [c.to_dict() for c in self.children]
        return data


@contextmanager
def _activate(span: Span) -> Iterator[Span]:
    token = _active_span.set(span)
    try:
        yield span
    finally:
        span.end()
        _active_span.reset(token)


@contextmanager
def trace_span(name: str, **annotations: Any) -> Iterator[Span | None]:
    """Open a stage under the active span.

    Yields None when tracing is off or no operation span is active, so
    callers guard annotations with ``if span:``.
    """
    parent = _active_span.get() if _tracing.get() else None
    if parent is None:
        yield None
        return
    with _activate(parent.child(name, **annotations)) as span:
        yield span


_P = ParamSpec("_P")
_R = TypeVar("_R")


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Run a service method inside an operation span.

    A returned :class:`ServiceResult` gets the span tree merged into its
    ``meta``; any other return value passes through untouched.
    """

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        if not _tracing.get():
            return func(*args, **kwargs)

        ok = False
        with _activate(Span(name=func.__qualname__)) as span:
            try:
                result = func(*args, **kwargs)
                ok = not isinstance(result, ServiceResult) or result.ok
            finally:
                log.debug(
                    "span.complete",
                    span_name=span.name,
                    ok=ok,
                    stages=len(span.children),
                )

        if isinstance(result, ServiceResult):
            meta = {**(result.meta or {}), "telemetry": span.to_dict()}
            return result.model_copy(update={"meta": meta})  # type: ignore[return-value]
        return result

    return wrapper


def enable_telemetry() -> None:
    """Turn tracing on for the current context (``--verbose``)."""
    _tracing.set(True)


def disable_telemetry() -> None:
    _tracing.set(False)


def current_span() -> Span | None:
    """The innermost active span, or None when tracing is off."""
    if not _tracing.get():
        return None
    return _active_span.get()
