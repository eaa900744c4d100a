"""Benchmark registration and the top-level :func:`benchmark` entry point."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from matcha.adapter import MaybeAsync, normalize
from matcha.config import NAME_SEPARATOR
from matcha.errors import ConfigurationError
from matcha.middleware.grep import Pattern, grep_matches
from matcha.middleware.reporter import reporter_middleware
from matcha.options import OPTION_KEYS, Options, canonical_key
from matcha.reporters import Reporter
from matcha.suite import BenchmarkCase, Middleware, RunFunction, RunSummary, Suite

logger = logging.getLogger(__name__)

OptionsLike = Options | Mapping[str, Any]


@dataclass
class _Scope:
    prefix: str
    options: Options
    middleware: tuple[Middleware, ...]


class BenchmarkApi:
    """API handed to the registration callback.

    Names and options accumulate as suites nest::

        def prepare(api):
            api.set("max_time", 1)
            api.suite("lists", lambda: api.bench("append", append_items))

    registers ``lists#append`` with ``max_time=1``.
    """

    def __init__(self, suite: Suite, root: _Scope, grep: Pattern | None = None) -> None:
        self._suite = suite
        self._scope = root
        self._grep = grep
        self._retained = object()

    def bench(self, name: str, fn: MaybeAsync, options: OptionsLike | None = None) -> None:
        """Register a benchmark.

        *fn* may be synchronous, return an awaitable, or take a callback.
        ``setup`` and ``teardown`` in *options* may be asynchronous too.
        """
        full_name = self._scope.prefix + name
        if self._grep is not None and not grep_matches(self._grep, full_name):
            logger.debug("Not registering %s, filtered out", full_name)
            return

        self._suite.add_case(
            BenchmarkCase(
                name=full_name,
                fn=normalize(fn),
                middleware=self._scope.middleware,
                options=self._scope.options.merge(options),
            )
        )

    def suite(
        self, name: str, fn: Callable[[], object], options: OptionsLike | None = None
    ) -> None:
        """Run *fn* inside a nested scope.

        Benchmarks registered by *fn* are prefixed with ``name#`` and
        inherit the current options merged with *options*.
        """
        parent = self._scope
        self._scope = _Scope(
            prefix=parent.prefix + name + NAME_SEPARATOR,
            options=parent.options.merge(options),
            middleware=parent.middleware,
        )
        try:
            fn()
        finally:
            self._scope = parent

    def set(self, key: str, value: Any) -> None:
        """Set an option for benchmarks declared later in this suite and below."""
        key = canonical_key(key)
        if key not in OPTION_KEYS:
            msg = f"Unknown option {key!r}"
            raise ConfigurationError(msg)
        self._scope.options = self._scope.options.merge({key: value})

    def retain(self, value: object) -> None:
        """'Use' *value* so that the computation producing it is not skipped."""
        if value is self._retained:
            msg = "unreachable"
            raise RuntimeError(msg)

    def namespace(self) -> dict[str, Any]:
        """Globals exposing this API to a benchmark file."""
        return {
            "bench": self.bench,
            "suite": self.suite,
            "set": self.set,
            "retain": self.retain,
        }


async def benchmark(
    prepare: Callable[[BenchmarkApi], Awaitable[None] | None],
    reporter: Reporter,
    *,
    middleware: Sequence[Middleware] = (),
    run_function: RunFunction | None = None,
    grep: Pattern | None = None,
    options: OptionsLike | None = None,
) -> RunSummary:
    """Register benchmarks with *prepare*, then run and report them.

    *middleware* wraps every case, outermost first; the reporter is
    notified from inside it. Cases whose name does not match *grep* are
    never registered. *options* apply to every case.
    """
    suite = Suite(run_function)
    root = _Scope(
        prefix="",
        options=Options.EMPTY.merge(options),
        middleware=(*middleware, reporter_middleware(reporter)),
    )

    result = prepare(BenchmarkApi(suite, root, grep))
    if inspect.isawaitable(result):
        await result

    logger.info("Registered %d benchmarks", len(suite.cases))
    summary = await suite.run()
    reporter.on_complete()
    return summary
