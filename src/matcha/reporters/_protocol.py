"""Reporter protocol definition."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from matcha.measure import Benchmark


class Reporter(Protocol):
    """Receives results as cases are measured.

    ``on_start_cycle`` and ``on_finish_cycle`` are called at most once per
    case, in registration order; ``on_complete`` exactly once after the
    last case. Skipped cases are never reported.
    """

    def on_start_cycle(self, benchmark: Benchmark) -> None:
        """A case started measuring."""
        ...

    def on_finish_cycle(self, benchmark: Benchmark) -> None:
        """A case finished measuring; ``benchmark.error`` is set on failure."""
        ...

    def on_complete(self) -> None:
        """All cases have run."""
        ...
