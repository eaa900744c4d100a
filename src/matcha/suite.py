"""Execution engine: runs registered cases through their middleware.

Cases run one at a time, in registration order. Each case passes through
its middleware chain; the last stage runs ``setup``, hands the benchmark
function to the measurement engine, then runs ``teardown``.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from functools import partial

from matcha.adapter import AsyncFunction, run_maybe_async
from matcha.measure import run_benchmark
from matcha.options import Options

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BenchmarkCase:
    """A fully-qualified, ready-to-run benchmark."""

    name: str
    fn: AsyncFunction
    middleware: tuple[Middleware, ...] = ()
    options: Options = Options.EMPTY


Next = Callable[[BenchmarkCase], Awaitable[None]]
Middleware = Callable[[BenchmarkCase, Next], Awaitable[None]]
RunFunction = Callable[[str, Options], Awaitable[None]]


@dataclass(frozen=True)
class RunSummary:
    """Names of the cases that were measured and of those middleware skipped."""

    completed: tuple[str, ...] = ()
    skipped: tuple[str, ...] = ()


class _Chain:
    """Walks a middleware list by index, ending in a terminal stage."""

    def __init__(self, stack: Sequence[Middleware], terminal: Next) -> None:
        self._stack = stack
        self._terminal = terminal
        self.reached_terminal = False

    async def call(self, index: int, case: BenchmarkCase) -> None:
        if index < len(self._stack):
            await self._stack[index](case, partial(self.call, index + 1))
            return
        self.reached_terminal = True
        await self._terminal(case)


async def run_middleware(case: BenchmarkCase, stack: Sequence[Middleware], terminal: Next) -> bool:
    """Run *case* through *stack* and then *terminal*.

    Returns False when some middleware did not call its continuation, in
    which case *terminal* never ran.
    """
    chain = _Chain(stack, terminal)
    await chain.call(0, case)
    return chain.reached_terminal


def install_bench_fn(fn: AsyncFunction, options: Options) -> Options:
    """Put *fn* into engine-facing *options*.

    Callback-style and awaitable functions are run deferred: the engine
    passes them a handle that they settle when they complete.
    """
    if fn.is_deferred:
        return options.assign(defer=True, fn=fn.bind_deferred())
    return options.assign(fn=fn.fn)


class Suite:
    """An ordered collection of cases, with asynchronous setup and teardown."""

    def __init__(self, run_function: RunFunction | None = None) -> None:
        self._run_function = run_function or run_benchmark
        self._cases: list[BenchmarkCase] = []

    @property
    def cases(self) -> tuple[BenchmarkCase, ...]:
        return tuple(self._cases)

    def add_case(self, case: BenchmarkCase) -> None:
        """Append a case; cases run in the order they were added."""
        self._cases.append(case)

    async def run(self) -> RunSummary:
        """Run every case sequentially.

        A failing setup, teardown or run function aborts the remaining
        cases. Errors from the measured function itself are recorded by
        the engine and do not raise.
        """
        completed: list[str] = []
        skipped: list[str] = []
        for case in self._cases:
            logger.debug("Running case %s", case.name)
            if await run_middleware(case, case.middleware, self._execute):
                completed.append(case.name)
            else:
                logger.info("Skipped %s", case.name)
                skipped.append(case.name)
        return RunSummary(completed=tuple(completed), skipped=tuple(skipped))

    async def _execute(self, case: BenchmarkCase) -> None:
        options = case.options
        if options.setup is not None:
            await run_maybe_async(options.setup)

        try:
            engine_options = install_bench_fn(case.fn, options.assign(setup=None, teardown=None))
            await self._run_function(case.name, engine_options)
        finally:
            if options.teardown is not None:
                await run_maybe_async(options.teardown)
