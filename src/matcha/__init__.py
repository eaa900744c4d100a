"""matcha -- a benchmark runner with nested suites and async lifecycles."""

from matcha.adapter import AsyncFunction, FunctionKind, classify, run_maybe_async
from matcha.errors import CallbackError, ConfigurationError, MatchaError, TaskCancelledError
from matcha.measure import Benchmark, Deferred, Event, run_benchmark
from matcha.options import Options
from matcha.runner import BenchmarkApi, benchmark
from matcha.suite import BenchmarkCase, Middleware, RunSummary, Suite

__version__ = "0.1.0"

__all__ = [
    "AsyncFunction",
    "Benchmark",
    "BenchmarkApi",
    "BenchmarkCase",
    "CallbackError",
    "ConfigurationError",
    "Deferred",
    "Event",
    "FunctionKind",
    "MatchaError",
    "Middleware",
    "Options",
    "RunSummary",
    "Suite",
    "TaskCancelledError",
    "benchmark",
    "classify",
    "run_benchmark",
    "run_maybe_async",
]
