"""Tests for the output formats."""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Callable

import pytest

from matcha.errors import ConfigurationError
from matcha.measure import Benchmark
from matcha.reporters import (
    REPORTERS,
    CsvReporter,
    JsonReporter,
    JsonSummaryReporter,
    PrettyReporter,
    get_reporter_factory,
)
from matcha.reporters._json_summary import summarize
from matcha.reporters._pretty import format_number

MakeBenchmark = Callable[..., Benchmark]


class TestRegistry:
    def test_builtin_names(self) -> None:
        assert set(REPORTERS) == {"csv", "json", "json-summary", "pretty"}

    def test_unknown_reporter(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown reporter 'xml'"):
            get_reporter_factory("xml")

    def test_start_writes_to_given_stream(self, make_benchmark: MakeBenchmark) -> None:
        out = io.StringIO()
        reporter = get_reporter_factory("json").start(out)
        reporter.on_finish_cycle(make_benchmark("a"))
        reporter.on_complete()
        assert json.loads(out.getvalue())[0]["name"] == "a"


class TestCsv:
    def test_header_and_rows(self, make_benchmark: MakeBenchmark) -> None:
        out = io.StringIO()
        reporter = CsvReporter(out)
        reporter.on_start_cycle(make_benchmark("a,b"))
        reporter.on_finish_cycle(make_benchmark("a,b", hz=2000.0, count=7))
        reporter.on_complete()

        header, row = list(csv.reader(io.StringIO(out.getvalue())))
        assert header == ["name", "hz", "mean", "deviation", "iterations"]
        assert row[0] == "a b"
        assert float(row[1]) == 2000.0
        assert float(row[2]) == pytest.approx(0.0005)
        assert row[4] == "7"
        assert out.getvalue().endswith("\r\n")

    def test_failed_case_raises(self, make_benchmark: MakeBenchmark) -> None:
        reporter = CsvReporter(io.StringIO())
        with pytest.raises(ZeroDivisionError):
            reporter.on_finish_cycle(make_benchmark(error=ZeroDivisionError("div")))


class TestJson:
    def test_streams_valid_array(self, make_benchmark: MakeBenchmark) -> None:
        out = io.StringIO()
        reporter = JsonReporter(out)
        reporter.on_finish_cycle(make_benchmark("a", hz=10.0))
        reporter.on_finish_cycle(make_benchmark("b", hz=20.0, count=3))
        reporter.on_complete()

        records = json.loads(out.getvalue())
        assert [r["name"] for r in records] == ["a", "b"]
        assert records[1] == {
            "name": "b",
            "hz": 20.0,
            "mean": 0.05,
            "deviation": 0.0001,
            "count": 3,
        }

    def test_empty_run(self) -> None:
        out = io.StringIO()
        JsonReporter(out).on_complete()
        assert json.loads(out.getvalue()) == []

    def test_failed_case_raises(self, make_benchmark: MakeBenchmark) -> None:
        with pytest.raises(KeyError):
            JsonReporter(io.StringIO()).on_finish_cycle(make_benchmark(error=KeyError("k")))


class TestJsonSummary:
    def test_summary(self, make_benchmark: MakeBenchmark) -> None:
        results = [
            make_benchmark("slow", hz=100.0, elapsed=1.0),
            make_benchmark("fast", hz=250.0, elapsed=0.5),
            make_benchmark("broken", hz=0.0, error=RuntimeError("oops"), elapsed=0.25),
        ]

        summary = summarize(results)

        assert summary["benches"] == 3
        assert summary["fastest"] == "fast"
        assert summary["elapsed"] == 1.75
        assert summary["results"] == [
            {"name": "slow", "factor": 1.0, "ops": 100, "fastest": False},
            {"name": "fast", "factor": 2.5, "ops": 250, "fastest": True},
        ]
        (error,) = summary["errors"]
        assert error["name"] == "broken"
        assert "RuntimeError: oops" in error["error"]

    def test_no_results(self) -> None:
        summary = summarize([])
        assert summary["fastest"] is None
        assert summary["results"] == []

    def test_written_once_on_complete(self, make_benchmark: MakeBenchmark) -> None:
        out = io.StringIO()
        reporter = JsonSummaryReporter(out)
        reporter.on_finish_cycle(make_benchmark("only"))
        assert out.getvalue() == ""

        reporter.on_complete()
        assert json.loads(out.getvalue())["fastest"] == "only"


class TestPretty:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (0.5, "0.5"),
            (12.345, "12.3"),
            (999.0, "999"),
            (1234.5, "1,230"),
            (987654.0, "988,000"),
        ],
    )
    def test_format_number(self, value: float, expected: str) -> None:
        assert format_number(value) == expected

    def test_progress_and_table(self, make_benchmark: MakeBenchmark) -> None:
        out = io.StringIO()
        reporter = PrettyReporter(out)
        slow = make_benchmark("slow case", hz=100.0)
        fast = make_benchmark("fast case", hz=400.0)
        for bench in (slow, fast):
            reporter.on_start_cycle(bench)
            reporter.on_finish_cycle(bench)
        reporter.on_complete()

        text = out.getvalue()
        assert "running > slow case" in text
        assert "400 ops/sec > fast case" in text
        assert "4x" in text
        assert "Fastest: fast case" in text
        assert "Benches: 2" in text

    def test_failed_case_prints_traceback(self, make_benchmark: MakeBenchmark) -> None:
        out = io.StringIO()
        reporter = PrettyReporter(out)
        reporter.on_finish_cycle(make_benchmark("ok"))
        reporter.on_finish_cycle(make_benchmark("bad", error=ValueError("[bad] input")))
        reporter.on_complete()

        text = out.getvalue()
        assert "error > bad" in text
        assert "ValueError: [bad] input" in text
        assert "Fastest" not in text

    def test_nothing_ran(self) -> None:
        out = io.StringIO()
        PrettyReporter(out).on_complete()
        assert "No benchmarks ran" in out.getvalue()
