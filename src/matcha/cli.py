#!/usr/bin/env python3
"""
matcha CLI -- run benchmark files.

Usage:
  matcha [-g PATTERN] [-R REPORTER] [--cpu-profile DIR] FILE [FILE ...]
  matcha --reporters

Benchmark files are plain Python modules. ``bench``, ``suite``, ``set``
and ``retain`` are available to them as globals::

    set("max_time", 1)

    bench("sum", lambda: sum(range(100)))
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import runpy
import sys
from pathlib import Path

from rich.console import Console

from matcha import __version__
from matcha.config import DEFAULT_REPORTER, MatchaConfig, config_file, load_config
from matcha.errors import ConfigurationError
from matcha.middleware import (
    compile_pattern,
    cpu_profiler,
    grep_middleware,
    reporter_middleware,
    write_profile,
)
from matcha.reporters import REPORTERS, GatherReporter, get_reporter_factory
from matcha.runner import BenchmarkApi, benchmark
from matcha.suite import Middleware

logger = logging.getLogger("matcha")

_stderr = Console(stderr=True, highlight=False)


def cmd_reporters() -> None:
    """List available reporters."""
    for name, factory in REPORTERS.items():
        sys.stdout.write(f"{name.rjust(15)} - {factory.description}\n")


def cmd_run(args: argparse.Namespace, config: MatchaConfig) -> int:
    """Run benchmark files; returns the process exit status."""
    factory = get_reporter_factory(args.reporter or config.reporter or DEFAULT_REPORTER)
    pattern = args.grep if args.grep is not None else config.grep

    middleware: list[Middleware] = []
    if pattern:
        middleware.append(grep_middleware(compile_pattern(pattern)))
    if args.cpu_profile is not None:
        middleware.append(cpu_profiler(write_profile(args.cpu_profile)))

    gather = GatherReporter()
    middleware.append(reporter_middleware(gather))

    files = [Path(f).resolve() for f in args.files]
    missing = [str(f) for f in files if not f.is_file()]
    if missing:
        msg = f"Benchmark file not found: {', '.join(missing)}"
        raise ConfigurationError(msg)

    def prepare(api: BenchmarkApi) -> None:
        for path in files:
            logger.info("Loading %s", path)
            runpy.run_path(str(path), init_globals=api.namespace(), run_name="__matcha__")

    try:
        asyncio.run(
            benchmark(
                prepare,
                factory.start(),
                middleware=middleware,
                options=config.options,
            )
        )
    except ConfigurationError:
        raise
    except Exception as exc:
        logger.error("Benchmark run aborted: %s", exc)
        _stderr.print_exception()
        return 1

    failed = [b.name for b in gather.results if b.error is not None]
    if failed:
        logger.warning("Benchmarks failed: %s", ", ".join(failed))
        return 1
    return 0


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="matcha", description="Run a suite of benchmarks.")
    parser.add_argument("files", nargs="*", metavar="FILE", help="Benchmark files to run")
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-g", "--grep", metavar="PATTERN", help="Run a subset of benchmarks")
    parser.add_argument(
        "-R",
        "--reporter",
        metavar="REPORTER",
        help=f"Reporter to use (default: {DEFAULT_REPORTER})",
    )
    parser.add_argument("--reporters", action="store_true", help="Display available reporters")
    parser.add_argument(
        "--cpu-profile",
        type=Path,
        metavar="DIR",
        help="Write a .prof CPU profile per benchmark into DIR",
    )
    parser.add_argument("--config", type=Path, metavar="FILE", help="Config file to load")
    parser.add_argument("--log-file", type=Path, metavar="PATH", help="Write logs to PATH")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", action="store_true", help="Enable debug logging")
    verbosity.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    return parser


def _configure_logging(args: argparse.Namespace) -> None:
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    fmt = "%(asctime)s %(name)s %(levelname)s %(message)s"
    if args.log_file is not None:
        args.log_file.parent.mkdir(parents=True, exist_ok=True)
        logging.basicConfig(filename=str(args.log_file), format=fmt, level=level)
    else:
        logging.basicConfig(stream=sys.stderr, format=fmt, level=level)


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args)

    if args.reporters:
        cmd_reporters()
        return

    if not args.files:
        parser.print_help()
        sys.exit(1)

    try:
        if args.config is not None:
            config = load_config(args.config, required=True)
        else:
            config = load_config(config_file(Path.cwd()))
        code = cmd_run(args, config)
    except ConfigurationError as exc:
        _stderr.print(f"error: {exc}", style="bold red", markup=False)
        sys.exit(1)

    sys.exit(code)


if __name__ == "__main__":
    main()
