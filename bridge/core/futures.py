from __future__ import annotations

"""
Small composition helpers over `concurrent.futures.Future`.

Every public client operation returns a Future. `then` chains a step onto a
Future; a step may return a plain value or another Future. Errors skip the
remaining steps and land on the final Future unchanged. `attach_callback`
adapts a Future to the error-first `callback(error, result)` convention and
guarantees a single invocation.
"""

import logging
from concurrent.futures import CancelledError, Future
from typing import Any, Callable, Optional, TypeVar, Union

T = TypeVar("T")
U = TypeVar("U")

Callback = Callable[[Optional[BaseException], Any], None]

_log = logging.getLogger("bridge.futures")


def resolved(value: T) -> "Future[T]":
    fut: "Future[T]" = Future()
    fut.set_result(value)
    return fut


def rejected(exc: BaseException) -> "Future[Any]":
    fut: "Future[Any]" = Future()
    fut.set_exception(exc)
    return fut


def forward(src: "Future[T]", dst: "Future[T]") -> None:
    """Settle `dst` with the outcome of `src` once it completes."""

    def _done(f: "Future[T]") -> None:
        if f.cancelled():
            dst.set_exception(CancelledError())
            return
        exc = f.exception()
        if exc is not None:
            dst.set_exception(exc)
        else:
            dst.set_result(f.result())

    src.add_done_callback(_done)


def then(fut: "Future[T]", step: Callable[[T], Union[U, "Future[U]"]]) -> "Future[U]":
    out: "Future[U]" = Future()

    def _done(f: "Future[T]") -> None:
        if f.cancelled():
            out.set_exception(CancelledError())
            return
        exc = f.exception()
        if exc is not None:
            out.set_exception(exc)
            return
        try:
            nxt = step(f.result())
        except Exception as e:  # noqa: BLE001
            out.set_exception(e)
            return
        if isinstance(nxt, Future):
            forward(nxt, out)
        else:
            out.set_result(nxt)

    fut.add_done_callback(_done)
    return out


def recover(fut: "Future[T]", handler: Callable[[BaseException], Union[T, "Future[T]"]]) -> "Future[T]":
    """
    On failure call `handler(exc)`; its return value (or Future) becomes the
    outcome. The handler re-raises to keep the failure.
    """
    out: "Future[T]" = Future()

    def _done(f: "Future[T]") -> None:
        if f.cancelled():
            out.set_exception(CancelledError())
            return
        exc = f.exception()
        if exc is None:
            out.set_result(f.result())
            return
        try:
            nxt = handler(exc)
        except Exception as e:  # noqa: BLE001
            out.set_exception(e)
            return
        if isinstance(nxt, Future):
            forward(nxt, out)
        else:
            out.set_result(nxt)

    fut.add_done_callback(_done)
    return out


def attach_callback(fut: "Future[T]", callback: Optional[Callback]) -> "Future[T]":
    if callback is None:
        return fut
    fired = {"done": False}

    def _done(f: "Future[T]") -> None:
        if fired["done"]:
            return
        fired["done"] = True
        if f.cancelled():
            err: Optional[BaseException] = CancelledError()
            result = None
        else:
            err = f.exception()
            result = f.result() if err is None else None
        try:
            callback(err, result)
        except Exception:  # noqa: BLE001
            _log.exception("callback raised")

    fut.add_done_callback(_done)
    return fut
