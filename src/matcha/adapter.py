"""Normalization of benchmark and lifecycle functions.

Users write functions in one of three styles:

- synchronous, taking no arguments;
- returning an awaitable, which includes ``async def`` functions;
- taking one error-first callback, called as ``callback()`` on success
  or ``callback(err)`` on failure.

This module turns all three into a single awaitable "run to completion"
step, and bridges them onto the measurement engine's deferred handles.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from enum import Enum
from functools import cached_property, partial
from typing import Any, Protocol

from matcha.errors import CallbackError, TaskCancelledError

logger = logging.getLogger(__name__)

MaybeAsync = Callable[..., Any]

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


class FunctionKind(Enum):
    """Calling convention of a benchmark or lifecycle function."""

    SYNC = "sync"
    CALLBACK = "callback"
    AWAITABLE = "awaitable"


class DeferredHandle(Protocol):
    """Completion handle handed to deferred functions by the engine."""

    def resolve(self) -> None:
        """Signal successful completion."""
        ...

    def reject(self, error: BaseException) -> None:
        """Signal failed completion."""
        ...


def callback_arity(fn: MaybeAsync) -> int:
    """Return the number of required positional parameters of *fn*.

    Callables whose signature cannot be inspected count as zero.
    """
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return 0
    return sum(
        1
        for param in signature.parameters.values()
        if param.kind in _POSITIONAL and param.default is inspect.Parameter.empty
    )


def as_exception(value: object) -> BaseException:
    """Coerce a callback error value to an exception."""
    if isinstance(value, BaseException):
        return value
    return CallbackError(value)


def call_in_loop(loop: asyncio.AbstractEventLoop, fn: Callable[..., None], *args: Any) -> None:
    """Run *fn* on *loop*, directly when already on it, else thread-safely."""
    try:
        running = asyncio.get_running_loop()
    except RuntimeError:
        running = None
    if running is loop:
        fn(*args)
    else:
        loop.call_soon_threadsafe(fn, *args)


def classify(fn: MaybeAsync) -> FunctionKind:
    """Determine the calling convention of *fn*.

    Functions taking a parameter are callback-style and ``async def``
    functions are awaitable; neither is called. Any other function is
    ambiguous and gets probed: it is called once with no arguments and
    its return value inspected. The probe runs the function body, so
    side effects happen one extra time. A coroutine returned by the probe
    is closed without running, and a returned future or task is cancelled
    so its work never overlaps a measured run. Callers must cache the
    result, see :class:`AsyncFunction`.
    """
    if callback_arity(fn) > 0:
        return FunctionKind.CALLBACK
    if inspect.iscoroutinefunction(fn):
        return FunctionKind.AWAITABLE

    try:
        result = fn()
    except Exception:
        logger.debug("Probe of %r raised, treating it as synchronous", fn, exc_info=True)
        return FunctionKind.SYNC

    if inspect.isawaitable(result):
        _discard(result)
        return FunctionKind.AWAITABLE
    return FunctionKind.SYNC


def _discard(awaitable: Any) -> None:
    if inspect.iscoroutine(awaitable):
        awaitable.close()
    elif asyncio.isfuture(awaitable):
        awaitable.cancel()
        if awaitable.done() and not awaitable.cancelled():
            # Marks a stored exception as retrieved.
            awaitable.exception()


class AsyncFunction:
    """A user function paired with its cached calling convention."""

    def __init__(self, fn: MaybeAsync) -> None:
        self.fn = fn

    def __repr__(self) -> str:
        return f"AsyncFunction({self.fn!r})"

    @cached_property
    def kind(self) -> FunctionKind:
        """Calling convention, classified on first access only."""
        kind = classify(self.fn)
        logger.debug("Classified %r as %s", self.fn, kind.value)
        return kind

    @property
    def is_deferred(self) -> bool:
        """Whether the engine must wait on a completion signal."""
        return self.kind is not FunctionKind.SYNC

    async def run(self) -> None:
        """Run the function once to completion."""
        await run_maybe_async(self.fn)

    def bind_deferred(self) -> Callable[[DeferredHandle], None]:
        """Return ``fn(deferred)`` settling *deferred* when the function completes."""
        fn = self.fn
        if self.kind is FunctionKind.CALLBACK:

            def run_callback(deferred: DeferredHandle) -> None:
                def done(err: object = None) -> None:
                    if err:
                        deferred.reject(as_exception(err))
                    else:
                        deferred.resolve()

                _watch(fn(done), deferred.reject)

            return run_callback

        if self.kind is FunctionKind.AWAITABLE:

            def run_awaitable(deferred: DeferredHandle) -> None:
                future = asyncio.ensure_future(fn())
                future.add_done_callback(lambda f: _settle_from(deferred, f))

            return run_awaitable

        msg = f"{self.fn!r} is synchronous and cannot be deferred"
        raise TypeError(msg)


def normalize(fn: MaybeAsync | AsyncFunction) -> AsyncFunction:
    """Wrap *fn* unless it is already normalized."""
    if isinstance(fn, AsyncFunction):
        return fn
    return AsyncFunction(fn)


# Tasks started for callback-style coroutines; the loop only keeps weak references.
_pending: set[asyncio.Future[Any]] = set()


def _task_error(future: asyncio.Future[Any]) -> BaseException | None:
    if future.cancelled():
        return TaskCancelledError()
    return future.exception()


def _settle_from(deferred: DeferredHandle, future: asyncio.Future[Any]) -> None:
    error = _task_error(future)
    if error is not None:
        deferred.reject(error)
    else:
        deferred.resolve()


def _watch(result: object, on_error: Callable[[BaseException], None]) -> None:
    """Schedule an awaitable returned by a callback-style function.

    The callback still signals completion; a failure of the awaitable is
    passed to *on_error*, which ignores it once the callback has fired.
    """
    if not inspect.isawaitable(result):
        return
    task = asyncio.ensure_future(result)
    _pending.add(task)

    def finished(future: asyncio.Future[Any]) -> None:
        _pending.discard(future)
        error = _task_error(future)
        if error is not None:
            on_error(error)

    task.add_done_callback(finished)


def _settle_future(future: asyncio.Future[None], err: object) -> None:
    if future.done():
        return
    if err:
        future.set_exception(as_exception(err))
    else:
        future.set_result(None)


async def run_maybe_async(fn: MaybeAsync) -> None:
    """Run a possibly-asynchronous function and wait until it completes.

    Callback-style functions complete when their callback is called, which
    may happen from another thread. Other functions complete when they
    return, or when the awaitable they return finishes.
    """
    if callback_arity(fn) > 0:
        loop = asyncio.get_running_loop()
        future: asyncio.Future[None] = loop.create_future()

        def callback(err: object = None) -> None:
            call_in_loop(loop, _settle_future, future, err)

        _watch(fn(callback), partial(_settle_future, future))
        await future
        return

    result = fn()
    if inspect.isawaitable(result):
        await result
