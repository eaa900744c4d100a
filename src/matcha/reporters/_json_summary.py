"""Summarized JSON output, written once at the end."""

from __future__ import annotations

import json
import traceback
from typing import TYPE_CHECKING, Any, TextIO

if TYPE_CHECKING:
    from matcha.measure import Benchmark


def _format_error(error: BaseException) -> str:
    return "".join(traceback.format_exception(error)).rstrip()


def summarize(results: list[Benchmark]) -> dict[str, Any]:
    """Build the summary document for *results*.

    ``factor`` is each case's rate relative to the slowest successful one.
    """
    succeeded = [b for b in results if b.error is None]
    errors = [{"name": b.name, "error": _format_error(b.error)} for b in results if b.error]
    elapsed = sum(b.times.elapsed for b in results)

    min_hz = min((b.hz for b in succeeded), default=0.0)
    max_hz = max((b.hz for b in succeeded), default=0.0)
    fastest = next((b for b in succeeded if b.hz == max_hz), None)

    return {
        "benches": len(results),
        "errors": errors,
        "fastest": fastest.name if fastest else None,
        "elapsed": round(elapsed, 2),
        "results": [
            {
                "name": b.name,
                "factor": round(b.hz / min_hz, 2) if min_hz else 0.0,
                "ops": int(b.hz),
                "fastest": b is fastest,
            }
            for b in succeeded
        ],
    }


class JsonSummaryReporter:
    """Collects results and writes a single JSON summary."""

    def __init__(self, out: TextIO) -> None:
        self._out = out
        self._results: list[Benchmark] = []

    def on_start_cycle(self, benchmark: Benchmark) -> None:
        pass

    def on_finish_cycle(self, benchmark: Benchmark) -> None:
        self._results.append(benchmark)

    def on_complete(self) -> None:
        self._out.write(json.dumps(summarize(self._results)))
        self._out.write("\n")
