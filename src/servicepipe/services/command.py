"""Command — the three-phase task runner.

A Command is built with three phase functions and does nothing until
``execute()`` is called. Execution then runs, strictly in order:

1. ``on_initialization(context, done)``
2. ``get_rules(context, done)``: ``done`` receives the rules result
3. ``on_validation_success(context, done)``: ``done`` receives the value

One fresh ``dict`` context is threaded through all three phases. A phase
is complete only when its ``done`` continuation fires, so phases may
finish asynchronously. A phase that never calls ``done`` stalls the
command; there is no timeout and no cancellation.

When the rules result is non-empty the execution phase is skipped and
the callback receives ``ok=False`` with the violations.

The rules and execution continuations accept either ``done(value)`` or the
error-first ``done(error, value)``. A non-``None`` error fails the command:
an exception is re-raised as-is, anything else is raised as PipelineError.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

from servicepipe.domain.exceptions import PipelineError
from servicepipe.domain.rules import normalize_violations
from servicepipe.services.result import CommandResult
from servicepipe.services.telemetry import Span, inject_meta, log_span, telemetry_enabled

logger = logging.getLogger(__name__)

Context = dict[str, Any]
Done = Callable[..., None]
Phase = Callable[[Context, Done], Any]
Callback = Callable[[CommandResult], Any]


def _payload(op: str, phase: str, args: tuple[Any, ...]) -> Any:
    """Unpack the arguments of a rules or execution ``done`` call."""
    if len(args) <= 1:
        return args[0] if args else None
    if len(args) > 2:
        msg = f"{op}: {phase} phase signalled completion with {len(args)} arguments"
        raise PipelineError(msg)
    error, value = args
    if error is None:
        return value
    if isinstance(error, BaseException):
        raise error
    msg = f"{op}: {phase} phase reported an error: {error!r}"
    raise PipelineError(msg)


def _once(op: str, phase: str, continuation: Callable[..., None]) -> Done:
    """Wrap *continuation* so that firing it twice raises PipelineError."""
    fired = False

    def done(*args: Any) -> None:
        nonlocal fired
        if fired:
            msg = f"{op}: {phase} phase signalled completion more than once"
            raise PipelineError(msg)
        fired = True
        continuation(*args)

    return done


class Command:
    """One configured, not-yet-run occurrence of a three-phase operation.

    Parameters:
        on_initialization: First phase; prepares the shared context.
        get_rules: Second phase; reports a sequence of rule violations.
        on_validation_success: Third phase; runs only when no rules broke.
        op: Operation name reported on the result.
        args: Positional arguments the command was requested with.
        on_complete: Observer called with the final result before *callback*.
    """

    def __init__(
        self,
        on_initialization: Phase,
        get_rules: Phase,
        on_validation_success: Phase,
        *,
        op: str = "command",
        args: Sequence[Any] = (),
        on_complete: Callback | None = None,
    ) -> None:
        self._on_initialization = on_initialization
        self._get_rules = get_rules
        self._on_validation_success = on_validation_success
        self.op = op
        self.args = tuple(args)
        self._on_complete = on_complete

    def __repr__(self) -> str:
        return f"Command(op={self.op!r}, args={self.args!r})"

    def execute(self, callback: Callback | None = None) -> None:
        """Run the three phases and report a CommandResult to *callback*."""
        context: Context = {}
        root = Span(name=self.op) if telemetry_enabled() else None

        def start(name: str) -> Span | None:
            return root.child(name) if root is not None else None

        def finish(result: CommandResult) -> None:
            if root is not None:
                root.end()
                result = inject_meta(result, root)
                log_span(root, ok=result.ok)
            logger.debug("Command %s completed (ok=%s)", self.op, result.ok)
            if self._on_complete is not None:
                self._on_complete(result)
            if callback is not None:
                callback(result)

        def after_execution(span: Span | None) -> Done:
            def done(*args: Any) -> None:
                value = _payload(self.op, "execution", args)
                if span is not None:
                    span.end()
                finish(CommandResult(ok=True, op=self.op, value=value))

            return _once(self.op, "execution", done)

        def after_rules(span: Span | None) -> Done:
            def done(*args: Any) -> None:
                violations = normalize_violations(_payload(self.op, "rules", args))
                if span is not None:
                    span.annotate("violations", len(violations))
                    span.end()
                if violations:
                    logger.debug("Command %s broke %d rule(s)", self.op, len(violations))
                    finish(CommandResult(ok=False, op=self.op, violations=violations))
                    return
                self._on_validation_success(context, after_execution(start("execution")))

            return _once(self.op, "rules", done)

        def after_initialization(span: Span | None) -> Done:
            def done(*_: Any) -> None:
                if span is not None:
                    span.end()
                self._get_rules(context, after_rules(start("rules")))

            return _once(self.op, "initialization", done)

        self._on_initialization(context, after_initialization(start("initialization")))

    def run(self) -> CommandResult:
        """Execute and return the result of a synchronously completing pipeline.

        Raises:
            PipelineError: A phase deferred its ``done`` call, so no result
                was available when ``execute()`` returned.
        """
        results: list[CommandResult] = []
        self.execute(results.append)
        if not results:
            msg = f"{self.op} did not complete synchronously"
            raise PipelineError(msg)
        return results[0]
