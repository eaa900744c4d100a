"""Built-in middleware.

Middleware wraps the execution of every case registered under a scope::

    async def timing(case, next):
        started = time.monotonic()
        await next(case)
        log.info("%s took %.1fs", case.name, time.monotonic() - started)

Not calling ``next`` skips the case.
"""

from matcha.middleware.grep import compile_pattern, grep_matches, grep_middleware
from matcha.middleware.profiler import CProfileSession, ProfilerSession, cpu_profiler, write_profile
from matcha.middleware.reporter import reporter_middleware

__all__ = [
    "CProfileSession",
    "ProfilerSession",
    "compile_pattern",
    "cpu_profiler",
    "grep_matches",
    "grep_middleware",
    "reporter_middleware",
    "write_profile",
]
