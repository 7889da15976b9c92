# SPDX-License-Identifier: EUPL-1.2
# SPDX-FileCopyrightText: © 2025-present Jürgen Mülbert

"""
Dynamic Runtime Context Module.

`RuntimeContext` owns the process's argument store and debug category mask.
It is created once at process entry and passed to every subsystem that
needs configuration, instead of those subsystems reaching for globals.

The `RuntimeContext` serves as the central point of access for:
- **Arguments**: the `args` attribute (`ArgsManager`).
- **Debug Categories**: the `categories` attribute (`LogCategories`).
- **Logging**: `get_module_logger()`, `category_logger()` and
  `configure_logging()`.

Startup sequence (`RuntimeContext.startup`):
-------------------------------------------
1. Parse the command line.
2. Resolve and read the config file (``-conf``, ``-datadir``).
3. Apply ``-debug`` / ``-debugexclude`` to the category mask.

All three must finish before any other thread starts. Errors from steps 1
and 2 are fatal misconfiguration and propagate to the caller; unknown
category names in step 3 are only warned about.

Usage Example:
--------------
```python
def main(argv: list[str]) -> int:
    try:
        context = RuntimeContext.startup(argv)
    except DynConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    net = context.category_logger("net")
    net.log_print(LogFlags.NET, "Bound to %s", context.args.get_arg("bind", "0.0.0.0"))
```
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from dynconfig.args_manager import ArgsManager
from dynconfig.category_logger import CategoryLogger
from dynconfig.log_categories import LogCategories
from dynconfig.logging_manager import LoggingManager
from dynconfig.paths import get_config_file, get_data_dir

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from structlog.stdlib import BoundLogger


log: structlog.stdlib.BoundLogger
log = structlog.get_logger(__name__)


@dataclass
class RuntimeContext:
    """
    Process-wide configuration state, passed explicitly.

    Attributes
    ----------
    args : ArgsManager
        The merged command-line and config-file arguments.
    categories : LogCategories
        The debug category mask.
    positional : list[str]
        Command-line tokens that were not options.
    logging_manager : LoggingManager | None
        Set by `configure_logging()`.
    unknown_categories : list[str]
        Category names from ``-debug``/``-debugexclude`` that were ignored.
    """

    args: ArgsManager
    categories: LogCategories
    positional: list[str] = field(default_factory=list)
    logging_manager: LoggingManager | None = None
    unknown_categories: list[str] = field(default_factory=list)

    @classmethod
    def create(cls) -> RuntimeContext:
        """Return a context with an empty store and an empty mask."""
        return cls(args=ArgsManager(), categories=LogCategories())

    @classmethod
    def startup(cls, argv: Iterable[str], *, strict: bool = False) -> RuntimeContext:
        """
        Run the startup sequence and return the populated context.

        Parameters
        ----------
        argv : Iterable[str]
            Command-line arguments without the program name.
        strict : bool
            Fail on a missing config file and on unknown debug categories.

        Returns
        -------
        RuntimeContext
            The populated context.

        Raises
        ------
        ArgumentParseError
            For a malformed command-line token.
        ConfigFileError
            For a malformed or unreadable config file, or a missing one in
            strict mode.
        DataDirectoryError
            If ``-datadir`` does not name a directory.
        UnknownCategoryError
            In strict mode, for an unknown debug category.
        """
        context = cls.create()
        context.positional = context.args.parse_parameters(argv)
        context.args.read_config_file(context.config_file(), strict=strict)
        context.apply_debug_categories(strict=strict)
        log.info(
            "Startup configuration complete",
            config_file=str(context.config_file()),
            debug_mask=hex(context.categories.mask),
        )
        return context

    def apply_debug_categories(self, *, strict: bool = False) -> list[str]:
        """
        Translate ``-debug`` and ``-debugexclude`` into the category mask.

        ``-nodebug`` leaves the mask untouched.

        Returns
        -------
        list[str]
            The category names that were not recognised.
        """
        if not self.args.is_arg_set("debug") or self.args.is_negated("debug"):
            return []
        self.unknown_categories = self.categories.configure(
            self.args.get_args("debug"),
            self.args.get_args("debugexclude"),
            strict=strict,
        )
        return self.unknown_categories

    def data_dir(self) -> Path:
        """Return the data directory selected by the arguments."""
        return get_data_dir(self.args)

    def config_file(self) -> Path:
        """Return the config file selected by the arguments."""
        return get_config_file(self.args)

    def configure_logging(self, *, log_level: int = logging.INFO, to_file: bool = True) -> LoggingManager:
        """
        Build the full logging pipeline from the arguments.

        Returns
        -------
        LoggingManager
            The configured manager, also stored on `self.logging_manager`.
        """
        manager = LoggingManager()
        manager.apply_configuration(
            args=self.args,
            data_dir=self.data_dir() if to_file else None,
            log_level=log_level,
        )
        self.logging_manager = manager
        return manager

    def get_module_logger(self, name: str) -> BoundLogger:
        """
        Retrieve a `structlog` logger instance for a specific module.

        Parameters
        ----------
        name : str
            The name of the module for which to retrieve the logger (e.g., `__name__`).

        Returns
        -------
        structlog.stdlib.BoundLogger
            A bound logger instance for the specified module.
        """
        return structlog.get_logger(name)

    def category_logger(self, name: str) -> CategoryLogger:
        """Return a logger whose `log_print` is gated by this context's mask."""
        return CategoryLogger(self.categories, self.get_module_logger(name))
