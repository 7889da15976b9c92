# SPDX-License-Identifier: EUPL-1.2
# SPDX-FileCopyrightText: © 2025-present Jürgen Mülbert

"""
Category-gated logging.

`log_print` is the call every subsystem uses for debug output. It checks
the category mask first and only formats the message when the category is
enabled, so a disabled ``log_print(..., LogFlags.NET, "%d peers", n)``
costs one AND.

```python
net_log = context.category_logger(__name__)
net_log.log_print(LogFlags.NET, "Added connection peer=%d", peer_id)
```
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from dynconfig.log_categories import LogFlags

if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger

    from dynconfig.log_categories import LogCategories


def category_name(flag: int) -> str:
    """Return the lowercase name of a single category, or the hex mask."""
    try:
        name = LogFlags(flag).name
    except ValueError:
        name = None
    if name is None or "|" in name:
        return hex(flag)
    return name.lower()


def format_message(fmt: str, *args: Any) -> str:
    """
    Apply ``%``-style arguments to `fmt`.

    A broken template or mismatched arguments never raise; the result
    describes the problem instead.
    """
    if not args:
        return fmt
    try:
        return fmt % args
    except (TypeError, ValueError, KeyError) as e:
        return f'Error "{e}" while formatting log message: {fmt}'


def log_print(
    categories: LogCategories,
    flag: int,
    fmt: str,
    *args: Any,
    logger: BoundLogger | None = None,
    **kwargs: Any,
) -> bool:
    """
    Log `fmt % args` if `flag` is enabled in `categories`.

    Args:
        categories (LogCategories): The mask to consult.
        flag (int): The category of the message.
        fmt (str): ``%``-style template.
        *args: Template arguments.
        logger (BoundLogger | None): Target logger; the module logger if omitted.
        **kwargs: Extra structured context for the log event.

    Returns:
        bool: Whether the message was emitted.
    """
    if not categories.accepts(flag):
        return False
    target = logger if logger is not None else structlog.get_logger(__name__)
    target.info(format_message(fmt, *args), category=category_name(flag), **kwargs)
    return True


class CategoryLogger:
    """A structlog logger bound to a category mask."""

    def __init__(self, categories: LogCategories, logger: BoundLogger) -> None:
        self.categories = categories
        self.logger = logger

    def enabled(self, flag: int) -> bool:
        """Return True if messages for `flag` would be emitted."""
        return self.categories.accepts(flag)

    def log_print(self, flag: int, fmt: str, *args: Any, **kwargs: Any) -> bool:
        """Category-gated log call, see `log_print`."""
        return log_print(self.categories, flag, fmt, *args, logger=self.logger, **kwargs)
