# SPDX-License-Identifier: EUPL-1.2
# SPDX-FileCopyrightText: © 2025-present Jürgen Mülbert

"""
Named worker threads with uniform failure reporting.

`trace_thread` wraps the body of a worker thread: it names the thread,
logs start and exit, and turns any exception escaping the body into a
`ThreadFailure` report that is logged and then handed to an error policy.

```python
threading.Thread(
    target=trace_thread,
    args=("net", thread_socket_handler),
    kwargs={"on_error": terminate},
).start()
```

Policies are plain callables taking the `ThreadFailure`. `reraise` (the
default) raises the original exception again, `terminate` ends the
whole process with status 1 and `log_and_continue` only keeps the log entry.
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

import structlog

from dynconfig.__about__ import __app_name__
from dynconfig.exceptions import DynConfigError

if TYPE_CHECKING:
    from collections.abc import Callable

log: structlog.stdlib.BoundLogger
log = structlog.get_logger(__name__)

T = TypeVar("T")

THREAD_NAME_PREFIX = f"{__app_name__.lower()}-"


class ThreadInterrupted(DynConfigError):  # noqa: N818
    """Raised inside a worker to ask it to stop; not treated as a failure."""


@dataclass(frozen=True)
class ThreadFailure:
    """Report for an exception that escaped a worker thread."""

    thread_name: str
    cause: BaseException

    def format(self) -> str:
        """Render the report in the classic ``EXCEPTION:`` layout."""
        return f"EXCEPTION: {type(self.cause).__name__}\n{self.cause}\n{__app_name__} in {self.thread_name}\n"


def reraise(failure: ThreadFailure) -> None:
    """Raise the original exception again."""
    raise failure.cause


def terminate(failure: ThreadFailure) -> None:  # noqa: ARG001
    """
    End the whole process with status 1.

    `SystemExit` would only end the calling worker thread, so the process is
    left through `os._exit` once the log handlers are flushed.
    """
    for handler in logging.getLogger().handlers:
        handler.flush()
    os._exit(1)


def log_and_continue(failure: ThreadFailure) -> None:  # noqa: ARG001
    """Keep the log entry and carry on."""


def rename_thread(name: str) -> None:
    """Rename the current thread."""
    threading.current_thread().name = name


def get_thread_name() -> str:
    """Return the current thread's name."""
    return threading.current_thread().name


def trace_thread(
    name: str,
    func: Callable[..., T],
    *args: Any,
    on_error: Callable[[ThreadFailure], None] | None = None,
    **kwargs: Any,
) -> T | None:
    """
    Run `func` as the body of the worker thread `name`.

    Args:
        name (str): Short thread name; the thread becomes ``dynamic-<name>``.
        func (Callable): The thread body.
        *args: Positional arguments for `func`.
        on_error (Callable[[ThreadFailure], None] | None): Error policy,
            `reraise` when omitted.
        **kwargs: Keyword arguments for `func`.

    Returns:
        The result of `func`, or None when the policy swallowed a failure.

    Raises:
        ThreadInterrupted: Re-raised unchanged after logging.
    """
    policy = on_error if on_error is not None else reraise
    rename_thread(f"{THREAD_NAME_PREFIX}{name}")
    try:
        log.info(f"{name} thread start", thread=name)
        result = func(*args, **kwargs)
        log.info(f"{name} thread exit", thread=name)
    except ThreadInterrupted:
        log.info(f"{name} thread interrupt", thread=name)
        raise
    except Exception as e:
        failure = ThreadFailure(thread_name=name, cause=e)
        log.exception(failure.format(), thread=name, exc_info=e)
        policy(failure)
        return None
    else:
        return result
