"""Benchmark options.

A typed subset of the knobs the measurement engine understands, plus the
``setup``/``teardown`` lifecycle hooks that the execution engine runs
itself. Options are immutable; combining two records always produces a
new one.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

from matcha.adapter import DeferredHandle, MaybeAsync, run_maybe_async

if TYPE_CHECKING:
    from matcha.measure import Event

EventHook = Callable[["Event"], object]

EVENT_KEYS = frozenset({"on_complete", "on_cycle", "on_start", "on_error", "on_reset"})

# camelCase spellings accepted as aliases.
_ALIASES = {
    "initCount": "init_count",
    "maxTime": "max_time",
    "minSamples": "min_samples",
    "minTime": "min_time",
    "onComplete": "on_complete",
    "onCycle": "on_cycle",
    "onStart": "on_start",
    "onError": "on_error",
    "onReset": "on_reset",
}


@dataclass(frozen=True)
class Options:
    """Benchmark options. ``None`` means the key is not set."""

    defer: bool | None = None
    delay: float | None = None
    init_count: int | None = None
    max_time: float | None = None
    min_samples: int | None = None
    min_time: float | None = None
    name: str | None = None
    on_complete: EventHook | None = None
    on_cycle: EventHook | None = None
    on_start: EventHook | None = None
    on_error: EventHook | None = None
    on_reset: EventHook | None = None
    setup: MaybeAsync | None = None
    teardown: MaybeAsync | None = None
    fn: Callable[..., Any] | Callable[[DeferredHandle], None] | None = None

    EMPTY: ClassVar[Options]

    @classmethod
    def create(cls, mapping: Mapping[str, Any] | None = None, **kwargs: Any) -> Options:
        """Build options from a mapping and/or keywords, ignoring unknown keys."""
        values: dict[str, Any] = {}
        for key, value in {**(mapping or {}), **kwargs}.items():
            key = canonical_key(key)
            if key in OPTION_KEYS:
                values[key] = value
        return cls(**values)

    def items(self) -> Iterator[tuple[str, Any]]:
        """Yield ``(key, value)`` for every key that is set."""
        for key in _FIELD_ORDER:
            value = getattr(self, key)
            if value is not None:
                yield key, value

    def assign(self, **overrides: Any) -> Options:
        """Return a copy where every given key replaces this record's value.

        Passing ``None`` clears a key, which is how ``setup`` and
        ``teardown`` are stripped before options reach the engine.
        """
        known = {
            canonical_key(k): v for k, v in overrides.items() if canonical_key(k) in OPTION_KEYS
        }
        return dataclasses.replace(self, **known)

    def merge(self, other: Options | Mapping[str, Any] | None) -> Options:
        """Return these (outer) options combined with *other* (inner) ones.

        Plain values from *other* win. ``setup`` hooks run outer first,
        ``teardown`` hooks run inner first, and event hooks call both,
        inner first.
        """
        if other is None:
            return self
        if not isinstance(other, Options):
            other = Options.create(other)

        values = dict(self.items())
        for key, inner in other.items():
            outer = values.get(key)
            if key == "setup":
                values[key] = _sequence(outer, inner)
            elif key == "teardown":
                values[key] = _sequence(inner, outer)
            elif key in EVENT_KEYS:
                values[key] = _fan_out(inner, outer)
            else:
                values[key] = inner
        return Options(**values)


_FIELD_ORDER = tuple(f.name for f in dataclasses.fields(Options))
OPTION_KEYS = frozenset(_FIELD_ORDER)

Options.EMPTY = Options()


def canonical_key(key: str) -> str:
    """Map a camelCase alias such as ``maxTime`` to ``max_time``."""
    return _ALIASES.get(key, key)


def _sequence(first: MaybeAsync | None, second: MaybeAsync | None) -> MaybeAsync | None:
    if first is None:
        return second
    if second is None:
        return first

    async def run_both() -> None:
        await run_maybe_async(first)
        await run_maybe_async(second)

    return run_both


def _fan_out(inner: EventHook, outer: EventHook | None) -> EventHook:
    def call_both(event: Event) -> None:
        inner(event)
        if outer is not None:
            outer(event)

    return call_both
