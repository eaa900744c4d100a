"""Name filtering."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from matcha.errors import ConfigurationError

if TYPE_CHECKING:
    from matcha.suite import BenchmarkCase, Middleware, Next

logger = logging.getLogger(__name__)

Pattern = str | re.Pattern[str]


def grep_matches(pattern: Pattern, name: str) -> bool:
    """Match *name* against *pattern*.

    Strings match as case-insensitive substrings; compiled patterns are
    searched as-is.
    """
    if isinstance(pattern, str):
        return pattern.lower() in name.lower()
    return pattern.search(name) is not None


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a user-supplied grep expression, case-insensitively."""
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as exc:
        msg = f"Invalid grep pattern {pattern!r}: {exc}"
        raise ConfigurationError(msg) from exc


def grep_middleware(pattern: Pattern) -> Middleware:
    """Only run cases whose name matches *pattern*."""

    async def grep(case: BenchmarkCase, next_: Next) -> None:
        if grep_matches(pattern, case.name):
            await next_(case)
        else:
            logger.debug("%s does not match %r", case.name, pattern)

    return grep
