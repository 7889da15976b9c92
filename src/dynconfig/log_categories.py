# SPDX-License-Identifier: EUPL-1.2
# SPDX-FileCopyrightText: © 2025-present Jürgen Mülbert

"""
Debug category filter.

Each diagnostic subsystem (networking, mempool, RPC, ...) owns one bit of a
32-bit mask. Gated log calls test their bit with `LogCategories.accepts()`
before doing any formatting work, so the check has to stay a single
attribute read and an AND.

The mask is populated at startup from the repeatable ``-debug`` and
``-debugexclude`` options:

```python
categories = LogCategories()
unknown = categories.configure(args.get_args("debug"), args.get_args("debugexclude"))
if categories.accepts(LogFlags.NET):
    ...
```
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import IntFlag
from typing import TYPE_CHECKING, Final

import structlog

from dynconfig.exceptions import UnknownCategoryError

if TYPE_CHECKING:
    from collections.abc import Iterable

MASK_BITS: Final[int] = 0xFFFFFFFF


class LogFlags(IntFlag):
    """Bit assigned to every debug category."""

    NONE = 0
    NET = 1 << 0
    TOR = 1 << 1
    MEMPOOL = 1 << 2
    HTTP = 1 << 3
    BENCH = 1 << 4
    ZMQ = 1 << 5
    DB = 1 << 6
    RPC = 1 << 7
    ESTIMATEFEE = 1 << 8
    ADDRMAN = 1 << 9
    SELECTCOINS = 1 << 10
    REINDEX = 1 << 11
    CMPCTBLOCK = 1 << 12
    RAND = 1 << 13
    PRUNE = 1 << 14
    PROXY = 1 << 15
    MEMPOOLREJ = 1 << 16
    LIBEVENT = 1 << 17
    COINDB = 1 << 18
    QT = 1 << 19
    LEVELDB = 1 << 20
    ALERT = 1 << 21
    # Dynamic-specific categories
    PRIVATESEND = 1 << 22
    INSTANTSEND = 1 << 23
    DYNODE = 1 << 24
    SPORK = 1 << 25
    KEEPASS = 1 << 26
    DNPAYMENTS = 1 << 27
    GOBJECT = 1 << 28
    BLOCKGEN = 1 << 29
    VERIFY = 1 << 30

    ALL = MASK_BITS


# Order matters: list_categories() and list_active_categories() follow it.
LOG_CATEGORIES: Final[tuple[tuple[str, LogFlags], ...]] = (
    ("0", LogFlags.NONE),
    ("none", LogFlags.NONE),
    ("net", LogFlags.NET),
    ("tor", LogFlags.TOR),
    ("mempool", LogFlags.MEMPOOL),
    ("http", LogFlags.HTTP),
    ("bench", LogFlags.BENCH),
    ("zmq", LogFlags.ZMQ),
    ("db", LogFlags.DB),
    ("rpc", LogFlags.RPC),
    ("estimatefee", LogFlags.ESTIMATEFEE),
    ("addrman", LogFlags.ADDRMAN),
    ("selectcoins", LogFlags.SELECTCOINS),
    ("reindex", LogFlags.REINDEX),
    ("cmpctblock", LogFlags.CMPCTBLOCK),
    ("rand", LogFlags.RAND),
    ("prune", LogFlags.PRUNE),
    ("proxy", LogFlags.PROXY),
    ("mempoolrej", LogFlags.MEMPOOLREJ),
    ("libevent", LogFlags.LIBEVENT),
    ("coindb", LogFlags.COINDB),
    ("qt", LogFlags.QT),
    ("leveldb", LogFlags.LEVELDB),
    ("alert", LogFlags.ALERT),
    ("privatesend", LogFlags.PRIVATESEND),
    ("instantsend", LogFlags.INSTANTSEND),
    ("dynode", LogFlags.DYNODE),
    ("spork", LogFlags.SPORK),
    ("keepass", LogFlags.KEEPASS),
    ("dnpayments", LogFlags.DNPAYMENTS),
    ("gobject", LogFlags.GOBJECT),
    ("blockgen", LogFlags.BLOCKGEN),
    ("verify", LogFlags.VERIFY),
    ("1", LogFlags.ALL),
    ("all", LogFlags.ALL),
)

_CATEGORY_BY_NAME: Final[dict[str, LogFlags]] = dict(LOG_CATEGORIES)
_SENTINELS: Final[frozenset[int]] = frozenset({LogFlags.NONE, LogFlags.ALL})


@dataclass(frozen=True)
class CategoryActive:
    """One row of the active-category view."""

    category: str
    active: bool


def resolve(name: str) -> tuple[LogFlags, bool]:
    """
    Look up a category name.

    The lookup is case-sensitive. An empty name means every category, as a
    bare ``-debug`` does.

    Returns
    -------
    tuple[LogFlags, bool]
        The flag and ``True`` for known names, ``(LogFlags.NONE, False)``
        otherwise. Callers must check the second element before merging.
    """
    if name == "":
        return LogFlags.ALL, True
    flag = _CATEGORY_BY_NAME.get(name)
    if flag is None:
        return LogFlags.NONE, False
    return flag, True


def require(name: str) -> LogFlags:
    """Like `resolve`, but raise `UnknownCategoryError` for unknown names."""
    flag, ok = resolve(name)
    if not ok:
        raise UnknownCategoryError(name)
    return flag


def is_disable_sentinel(name: str) -> bool:
    """Return True for the names that switch debug logging off entirely."""
    return name in _CATEGORY_BY_NAME and _CATEGORY_BY_NAME[name] == LogFlags.NONE


def list_all_categories() -> list[str]:
    """Names of every real category, sentinels excluded."""
    return [name for name, flag in LOG_CATEGORIES if flag not in _SENTINELS]


def list_categories() -> str:
    """Comma-separated category names, as shown in ``-debug`` help."""
    return ", ".join(list_all_categories())


class LogCategories:
    """
    The runtime category mask.

    Writers (`merge`, `clear`) serialise the read-modify-write through a
    private lock. Readers never lock: `accepts` reads the mask attribute
    once. A reader racing a writer sees either the old or the new mask,
    which is acceptable because the mask only gates diagnostic output.
    """

    def __init__(self, mask: int = LogFlags.NONE) -> None:
        self._mask: int = int(mask) & MASK_BITS
        self._write_lock = threading.Lock()
        self.logger = structlog.get_logger(__name__)

    @property
    def mask(self) -> int:
        """Return the current mask as a plain integer."""
        return self._mask

    @property
    def debug_enabled(self) -> bool:
        """Return True when at least one category is active."""
        return self._mask != LogFlags.NONE

    def accepts(self, flag: int) -> bool:
        """Return True if any bit of `flag` is enabled."""
        return (self._mask & flag) != 0

    def merge(self, flags: int) -> None:
        """Enable the bits in `flags`."""
        with self._write_lock:
            self._mask = (self._mask | int(flags)) & MASK_BITS

    def clear(self, flags: int) -> None:
        """Disable the bits in `flags`."""
        with self._write_lock:
            self._mask &= ~int(flags) & MASK_BITS

    def reset(self) -> None:
        """Disable every category."""
        with self._write_lock:
            self._mask = int(LogFlags.NONE)

    def list_active_categories(self) -> list[CategoryActive]:
        """Pair every real category with its current state."""
        mask = self._mask
        return [
            CategoryActive(category=name, active=(mask & flag) != 0)
            for name, flag in LOG_CATEGORIES
            if flag not in _SENTINELS
        ]

    def configure(
        self,
        include: Iterable[str],
        exclude: Iterable[str] = (),
        *,
        strict: bool = False,
    ) -> list[str]:
        """
        Apply ``-debug`` and ``-debugexclude`` values to the mask.

        If any include name is ``0`` or ``none`` debug logging is switched
        off and nothing else is merged. Otherwise every resolvable include
        is merged, then every resolvable exclude is cleared.

        Parameters
        ----------
        include : Iterable[str]
            Values of the repeatable ``-debug`` option.
        exclude : Iterable[str]
            Values of the repeatable ``-debugexclude`` option.
        strict : bool
            Raise on the first unknown name instead of warning.

        Returns
        -------
        list[str]
            The names that were not recognised, in the order seen.

        Raises
        ------
        UnknownCategoryError
            In strict mode, for the first unknown name.
        """
        include = list(include)
        exclude = list(exclude)
        unknown: list[str] = []

        if any(is_disable_sentinel(name) for name in include):
            self.reset()
            self.logger.debug("Debug logging disabled by category list", categories=include)
            include = []

        for name in include:
            flag, ok = resolve(name)
            if not ok:
                self._unknown(name, option="debug", strict=strict)
                unknown.append(name)
                continue
            self.merge(flag)

        for name in exclude:
            flag, ok = resolve(name)
            if not ok:
                self._unknown(name, option="debugexclude", strict=strict)
                unknown.append(name)
                continue
            self.clear(flag)

        self.logger.debug("Debug categories applied", mask=hex(self._mask), unknown=unknown)
        return unknown

    def _unknown(self, name: str, *, option: str, strict: bool) -> None:
        if strict:
            raise UnknownCategoryError(name)
        self.logger.warning("Unsupported logging category", option=f"-{option}", category=name)
