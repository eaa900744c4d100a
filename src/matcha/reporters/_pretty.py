"""Rich console output."""

from __future__ import annotations

import traceback
from typing import TYPE_CHECKING, TextIO

from rich import box
from rich.console import Console
from rich.table import Table
from rich.theme import Theme

if TYPE_CHECKING:
    from matcha.measure import Benchmark

_THEME = Theme(
    {
        "running": "yellow",
        "rate": "green",
        "error": "bold red",
        "fastest": "bold",
        "dim": "dim",
    }
)

_CENTER = 30


def format_number(value: float) -> str:
    """Format with three significant digits and thousands separators."""
    if value >= 1000:
        return f"{round(value, -(len(str(int(value))) - 3)):,.0f}"
    return f"{value:.3g}"


class PrettyReporter:
    """Prints progress as cases run and a ranked table at the end."""

    def __init__(self, out: TextIO | None = None, *, console: Console | None = None) -> None:
        self._con = console or Console(file=out, theme=_THEME, highlight=False)
        self._results: list[Benchmark] = []
        self._con.print()

    def on_start_cycle(self, benchmark: Benchmark) -> None:
        self._con.print(f"[running]{'running > '.rjust(_CENTER)}[/][dim]{benchmark.name}[/]")

    def on_finish_cycle(self, benchmark: Benchmark) -> None:
        self._results.append(benchmark)
        if benchmark.error is not None:
            self._con.print(f"[error]{'error > '.rjust(_CENTER)}[/][dim]{benchmark.name}[/]")
        else:
            rate = f"{format_number(benchmark.hz)} ops/sec > "
            self._con.print(f"[rate]{rate.rjust(_CENTER)}[/]{benchmark.name}")

    def on_complete(self) -> None:
        failed = next((b for b in self._results if b.error is not None), None)
        if failed is not None and failed.error is not None:
            self._con.print(
                "".join(traceback.format_exception(failed.error)), style="error", markup=False
            )
            return

        cases = sorted(self._results, key=lambda b: b.hz, reverse=True)
        if not cases:
            self._con.print("  [dim]No benchmarks ran[/]")
            return

        slowest = cases[-1].hz
        table = Table(box=box.SIMPLE, show_edge=False, pad_edge=True)
        table.add_column("Benchmark")
        table.add_column("ops/sec", justify="right")
        table.add_column("±", justify="right")
        table.add_column("Relative", justify="right")
        for index, bench in enumerate(cases):
            factor = bench.hz / slowest if slowest else 0.0
            table.add_row(
                bench.name,
                format_number(bench.hz),
                f"{bench.stats.rme:.2f}%",
                f"{format_number(factor)}x",
                style="fastest" if index == 0 else "dim",
            )
        self._con.print(table)

        elapsed = sum(b.times.elapsed for b in cases)
        self._con.print(f"  [dim]Benches[/]: {len(cases)}")
        self._con.print(f"  [dim]Fastest[/]: {cases[0].name}")
        self._con.print(f"  [dim]Elapsed[/]: {format_number(elapsed)}s")
        self._con.print()
