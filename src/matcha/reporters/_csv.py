"""CSV output."""

from __future__ import annotations

import csv
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from matcha.measure import Benchmark

HEADER = ["name", "hz", "mean", "deviation", "iterations"]


class CsvReporter:
    """Writes one CSV row per finished case. Raises on a failed case."""

    def __init__(self, out: TextIO) -> None:
        self._writer = csv.writer(out, lineterminator="\r\n")
        self._writer.writerow(HEADER)

    def on_start_cycle(self, benchmark: Benchmark) -> None:
        pass

    def on_finish_cycle(self, benchmark: Benchmark) -> None:
        if benchmark.error is not None:
            raise benchmark.error

        self._writer.writerow(
            [
                benchmark.name.replace(",", " "),
                f"{benchmark.hz:.8f}",
                f"{benchmark.stats.mean:.8f}",
                f"{benchmark.stats.deviation:.8f}",
                benchmark.count,
            ]
        )

    def on_complete(self) -> None:
        pass
