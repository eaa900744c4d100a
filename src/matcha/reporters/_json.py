"""Streaming JSON array output."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from matcha.measure import Benchmark


class JsonReporter:
    """Writes a JSON array with one object per finished case.

    Raises on a failed case.
    """

    def __init__(self, out: TextIO) -> None:
        self._out = out
        self._printed = 0

    def on_start_cycle(self, benchmark: Benchmark) -> None:
        pass

    def on_finish_cycle(self, benchmark: Benchmark) -> None:
        if benchmark.error is not None:
            raise benchmark.error

        record = {
            "name": benchmark.name,
            "hz": benchmark.hz,
            "mean": benchmark.stats.mean,
            "deviation": benchmark.stats.deviation,
            "count": benchmark.count,
        }
        self._out.write(("," if self._printed else "[") + "\n  " + json.dumps(record))
        self._printed += 1

    def on_complete(self) -> None:
        if not self._printed:
            self._out.write("[")
        self._out.write("\n]\n")
