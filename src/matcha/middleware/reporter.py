"""Reporter instrumentation."""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING

from matcha.options import Options

if TYPE_CHECKING:
    from matcha.measure import Event
    from matcha.reporters import Reporter
    from matcha.suite import BenchmarkCase, Middleware, Next


def reporter_middleware(reporter: Reporter) -> Middleware:
    """Notify *reporter* when each case starts and finishes measuring.

    The hooks are merged into the case options, so user ``on_start`` and
    ``on_complete`` hooks still run.
    """

    def on_start(event: Event) -> None:
        reporter.on_start_cycle(event.target)

    def on_complete(event: Event) -> None:
        reporter.on_finish_cycle(event.target)

    hooks = Options(on_start=on_start, on_complete=on_complete)

    async def report(case: BenchmarkCase, next_: Next) -> None:
        await next_(dataclasses.replace(case, options=case.options.merge(hooks)))

    return report
