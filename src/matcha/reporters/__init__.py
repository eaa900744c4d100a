"""matcha.reporters -- result output formats.

Usage::

    from matcha.reporters import get_reporter_factory

    reporter = get_reporter_factory("csv").start()
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from dataclasses import dataclass
from typing import TextIO

from matcha.errors import ConfigurationError
from matcha.reporters._csv import CsvReporter
from matcha.reporters._gather import GatherReporter
from matcha.reporters._json import JsonReporter
from matcha.reporters._json_summary import JsonSummaryReporter
from matcha.reporters._pretty import PrettyReporter
from matcha.reporters._protocol import Reporter


@dataclass(frozen=True)
class ReporterFactory:
    """A named output format."""

    description: str
    create: Callable[[TextIO], Reporter]

    def start(self, out: TextIO | None = None) -> Reporter:
        """Create a reporter writing to *out* (stdout by default)."""
        return self.create(out if out is not None else sys.stdout)


REPORTERS: dict[str, ReporterFactory] = {
    "csv": ReporterFactory("Outputs stats as CSV", CsvReporter),
    "json": ReporterFactory("Outputs stats as raw JSON", JsonReporter),
    "json-summary": ReporterFactory("Outputs summarized stats as raw JSON", JsonSummaryReporter),
    "pretty": ReporterFactory("Pretty prints results to the console", PrettyReporter),
}


def get_reporter_factory(name: str) -> ReporterFactory:
    """Look up a reporter by name."""
    try:
        return REPORTERS[name]
    except KeyError:
        msg = f"Unknown reporter {name!r} (available: {', '.join(sorted(REPORTERS))})"
        raise ConfigurationError(msg) from None


__all__ = [
    "REPORTERS",
    "CsvReporter",
    "GatherReporter",
    "JsonReporter",
    "JsonSummaryReporter",
    "PrettyReporter",
    "Reporter",
    "ReporterFactory",
    "get_reporter_factory",
]
