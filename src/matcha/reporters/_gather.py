"""In-memory reporter."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from matcha.measure import Benchmark


class GatherReporter:
    """Writes nothing; collects finished benchmarks for later inspection."""

    def __init__(self) -> None:
        self.results: list[Benchmark] = []
        self.completed = False

    def on_start_cycle(self, benchmark: Benchmark) -> None:
        pass

    def on_finish_cycle(self, benchmark: Benchmark) -> None:
        self.results.append(benchmark)

    def on_complete(self) -> None:
        self.completed = True

    @property
    def has_errors(self) -> bool:
        return any(b.error is not None for b in self.results)
