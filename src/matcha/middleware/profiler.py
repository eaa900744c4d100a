"""CPU profiling of benchmark cases.

A single profiling session is shared by the whole process. It is created
and enabled the first time a case needs it; each profiled case then gets
its own capture.
"""

from __future__ import annotations

import cProfile
import inspect
import logging
import pstats
import re
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

from matcha.middleware.grep import Pattern, grep_matches

if TYPE_CHECKING:
    from matcha.suite import BenchmarkCase, Middleware, Next

logger = logging.getLogger(__name__)

ProfileSink = Callable[["BenchmarkCase", Any], Awaitable[None] | None]


class ProfilerSession(Protocol):
    """A profiler that captures one case at a time."""

    @property
    def enabled(self) -> bool:
        """Whether :meth:`enable` has been called."""
        ...

    async def enable(self) -> None:
        """Prepare the profiler; called at most once."""
        ...

    async def start(self) -> None:
        """Begin a capture."""
        ...

    async def stop(self) -> Any:
        """End the capture and return its data."""
        ...


class CProfileSession:
    """ProfilerSession backed by :mod:`cProfile`; captures are ``pstats.Stats``."""

    def __init__(self) -> None:
        self._profile: cProfile.Profile | None = None

    @property
    def enabled(self) -> bool:
        return self._profile is not None

    async def enable(self) -> None:
        self._profile = cProfile.Profile()
        logger.debug("CPU profiler enabled")

    async def start(self) -> None:
        profile = self._require()
        profile.clear()
        profile.enable()

    async def stop(self) -> pstats.Stats:
        profile = self._require()
        profile.disable()
        return pstats.Stats(profile)

    def _require(self) -> cProfile.Profile:
        if self._profile is None:
            msg = "Profiler session is not enabled"
            raise RuntimeError(msg)
        return self._profile


_session: ProfilerSession | None = None


def get_session() -> ProfilerSession:
    """Return the process-wide session, creating it on first use."""
    global _session  # noqa: PLW0603
    if _session is None:
        _session = CProfileSession()
    return _session


def cpu_profiler(
    on_result: ProfileSink,
    include: Pattern | None = None,
    session: ProfilerSession | None = None,
) -> Middleware:
    """Profile cases whose name matches *include* (all cases by default).

    The capture covers setup, measurement and teardown. *on_result*
    receives the case and the captured profile.
    """

    async def profile(case: BenchmarkCase, next_: Next) -> None:
        if include is not None and not grep_matches(include, case.name):
            await next_(case)
            return

        active = session or get_session()
        if not active.enabled:
            await active.enable()

        await active.start()
        try:
            await next_(case)
        finally:
            data = await active.stop()

        logger.debug("Captured CPU profile for %s", case.name)
        result = on_result(case, data)
        if inspect.isawaitable(result):
            await result

    return profile


def profile_path(directory: Path, name: str) -> Path:
    """Return the ``.prof`` file path for case *name* under *directory*."""
    slug = re.sub(r"[^A-Za-z0-9._-]+", "_", name).strip("_") or "case"
    return directory / f"{slug}.prof"


def write_profile(directory: Path) -> ProfileSink:
    """Sink that dumps each ``pstats.Stats`` capture to a file in *directory*."""

    def write(case: BenchmarkCase, stats: pstats.Stats) -> None:
        directory.mkdir(parents=True, exist_ok=True)
        path = profile_path(directory, case.name)
        stats.dump_stats(path)
        logger.info("Wrote CPU profile for %s to %s", case.name, path)

    return write
