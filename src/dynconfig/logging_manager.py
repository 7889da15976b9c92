# SPDX-License-Identifier: EUPL-1.2
# SPDX-FileCopyrightText: © 2025-present Jürgen Mülbert

"""
The LoggingManager.

Builds the node's full logging pipeline from the parsed arguments, on top of
`structlog` and the standard `logging` module.

Features:
---------
- **debug.log:** Every record goes to ``debug.log`` in the data directory.
  With ``-shrinkdebugfile`` (the default) the file is rotated once it grows
  past `DEFAULT_MAX_BYTES`; ``-noshrinkdebugfile`` appends forever.
- **Console Logging:** ``-printtoconsole`` adds a colourised stdout handler.
- **Record Layout:** ``-logtimestamps``, ``-logtimemicros`` and
  ``-logthreadnames`` decide which fields are rendered; ``-logjson`` writes
  JSON lines to the file instead of the key/value layout.
- **Context Manager:** `shutdown()` on exit closes every handler.

Example Usage:
--------------
```python
context = RuntimeContext.startup(sys.argv[1:])
with context.configure_logging() as logging_manager:
    log = logging_manager.get_logger(__name__)
    log.info("Dynamic version", version=__version__)
```

``-logips`` is not used here; it is exposed as `LoggingManager.log_ips` for
the networking code.
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from typing import TYPE_CHECKING, Any, Final, Self

import structlog
from rich.console import Console
from structlog.stdlib import ProcessorFormatter

from dynconfig.__about__ import __app_name__
from dynconfig.exceptions import LogHandlerError
from dynconfig.logging_bootstrap import build_pre_chain
from dynconfig.paths import get_debug_log_file

if TYPE_CHECKING:
    from pathlib import Path
    from types import TracebackType

    from structlog.typing import Processor

    from dynconfig.args_manager import ArgsManager


# Console for errors while handlers are being torn down
_error_console = Console(file=sys.stderr)

# --- Module-Level Constants ---
APP_NAME: Final[str] = __app_name__.lower()
DEFAULT_MAX_BYTES: Final[int] = 10 * 1024 * 1024
DEFAULT_BACKUP_COUNT: Final[int] = 1

DEFAULT_PRINTTOCONSOLE: Final[bool] = False
DEFAULT_LOGTIMESTAMPS: Final[bool] = True
DEFAULT_LOGTIMEMICROS: Final[bool] = False
DEFAULT_LOGTHREADNAMES: Final[bool] = False
DEFAULT_LOGIPS: Final[bool] = False
DEFAULT_SHRINKDEBUGFILE: Final[bool] = True
DEFAULT_LOGJSON: Final[bool] = False


class LoggingManager:
    """
    Manage the configuration and lifecycle of the node's logging system.

    Integrates Python's standard logging with `structlog`, writing to
    ``debug.log`` and optionally to the console.
    """

    _internal_errors: list[str]

    def __init__(self) -> None:
        """
        Initialize LoggingManager attributes in a lightweight manner.

        Handlers are only created by `apply_configuration()`.
        """
        self._internal_errors: list[str] = []

        self.print_to_console: bool = DEFAULT_PRINTTOCONSOLE
        self.log_timestamps: bool = DEFAULT_LOGTIMESTAMPS
        self.log_time_micros: bool = DEFAULT_LOGTIMEMICROS
        self.log_thread_names: bool = DEFAULT_LOGTHREADNAMES
        self.log_ips: bool = DEFAULT_LOGIPS
        self.shrink_debug_file: bool = DEFAULT_SHRINKDEBUGFILE
        self.log_json: bool = DEFAULT_LOGJSON
        self.log_file: Path | None = None
        self.effective_log_level: int = logging.INFO

        self._logger = structlog.get_logger("LoggingManagerInit")

    @property
    def internal_errors(self) -> list[str]:
        """Return the list of internal errors."""
        return self._internal_errors

    def read_options(self, args: ArgsManager) -> None:
        """Copy the ``-log*``, ``-printtoconsole`` and ``-shrinkdebugfile`` options."""
        self.print_to_console = args.get_bool_arg("printtoconsole", DEFAULT_PRINTTOCONSOLE)
        self.log_timestamps = args.get_bool_arg("logtimestamps", DEFAULT_LOGTIMESTAMPS)
        self.log_time_micros = args.get_bool_arg("logtimemicros", DEFAULT_LOGTIMEMICROS)
        self.log_thread_names = args.get_bool_arg("logthreadnames", DEFAULT_LOGTHREADNAMES)
        self.log_ips = args.get_bool_arg("logips", DEFAULT_LOGIPS)
        self.shrink_debug_file = args.get_bool_arg("shrinkdebugfile", DEFAULT_SHRINKDEBUGFILE)
        self.log_json = args.get_bool_arg("logjson", DEFAULT_LOGJSON)

    def apply_configuration(
        self,
        *,
        args: ArgsManager,
        data_dir: Path | None,
        log_level: int = logging.INFO,
    ) -> None:
        """
        Build the logging pipeline from the parsed arguments.

        Args:
            args (ArgsManager): The populated argument store.
            data_dir (Path | None): Where ``debug.log`` lives. ``None`` skips
                                    the file handler.
            log_level (int): Level for the root logger and every handler.

        Raises:
            LogHandlerError: If a handler fails to initialize.
        """
        self._internal_errors.clear()
        self.read_options(args)
        self.effective_log_level = log_level
        self.log_file = get_debug_log_file(data_dir) if data_dir is not None else None

        self._logger.debug("Applying full logging configuration...")

        try:
            self._setup_logging_pipeline()
            self._logger.info(
                "Full logging configuration applied successfully.",
                log_file=str(self.log_file) if self.log_file else None,
                print_to_console=self.print_to_console,
            )
        except LogHandlerError as e:
            error_msg = "Critical error during logging configuration:"
            self._internal_errors.append(f"{error_msg} {e}")
            self._logger.exception(error_msg, exc_info=e)
            raise

    def shutdown(self) -> None:
        """
        Shut down all active logging handlers.

        Flushes and closes every handler on the root logger.
        """
        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:  # Iterate over a copy to safely modify
            try:
                handler.close()
                root_logger.removeHandler(handler)
            except (OSError, ValueError) as e:
                _error_console.print(
                    f"[bold red]Error[/bold red]: Failed to close log handler {handler.__class__.__name__}: {e}"
                )

        self._logger.debug("All logging handlers shut down.")

    def get_logger(self, name: str | None = None) -> structlog.stdlib.BoundLogger:
        """Return a `structlog` logger, named after the app if `name` is omitted."""
        return structlog.get_logger(name if name else APP_NAME)

    def get_instance_errors(self) -> list[str]:
        """Return a copy of the errors collected by the last configuration attempt."""
        return list(self._internal_errors)

    # --- Private Helper Methods for Configuration ---

    def _clear_existing_handlers(self, root_logger: logging.Logger) -> None:
        """Remove all existing handlers from the root logger."""
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
        self._logger.debug("Cleared existing root logger handlers.")

    def _pre_chain(self) -> list[Processor]:
        return build_pre_chain(
            timestamps=self.log_timestamps,
            time_micros=self.log_time_micros,
            thread_names=self.log_thread_names,
        )

    def _setup_console_handler(self, root_logger: logging.Logger, pre_chain_processors: list[Processor]) -> None:
        """Add the stdout handler if ``-printtoconsole`` is set."""
        if not self.print_to_console:
            return
        try:
            console_handler = logging.StreamHandler(sys.stdout)
            console_formatter = ProcessorFormatter(
                processor=structlog.dev.ConsoleRenderer(colors=True),
                foreign_pre_chain=[
                    *pre_chain_processors,
                    structlog.stdlib.PositionalArgumentsFormatter(),  # For standard log messages with args
                ],
            )
            console_handler.setFormatter(console_formatter)
            console_handler.setLevel(self.effective_log_level)
            root_logger.addHandler(console_handler)
            self._logger.debug("Console handler added.", level=logging.getLevelName(self.effective_log_level))
        except Exception as e:
            msg = "Failed to set up console handler."
            self._internal_errors.append(f"{msg} {e}")
            self._logger.exception(msg, exc_info=e)
            raise LogHandlerError(msg) from e

    def _setup_file_handler(self, root_logger: logging.Logger, pre_chain_processors: list[Processor]) -> None:
        """Add the ``debug.log`` handler, rotating when ``-shrinkdebugfile`` is set."""
        if self.log_file is None:
            return
        try:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler: logging.Handler
            if self.shrink_debug_file:
                file_handler = logging.handlers.RotatingFileHandler(
                    self.log_file,
                    maxBytes=DEFAULT_MAX_BYTES,
                    backupCount=DEFAULT_BACKUP_COUNT,
                    encoding="utf-8",
                )
            else:
                file_handler = logging.FileHandler(self.log_file, mode="a", encoding="utf-8")

            renderer: Any = (
                structlog.processors.JSONRenderer()
                if self.log_json
                else structlog.dev.ConsoleRenderer(colors=False)
            )
            file_formatter = ProcessorFormatter(
                processor=renderer,
                foreign_pre_chain=[
                    *pre_chain_processors,
                    structlog.stdlib.PositionalArgumentsFormatter(),
                ],
            )
            file_handler.setFormatter(file_formatter)
            file_handler.setLevel(self.effective_log_level)
            root_logger.addHandler(file_handler)
            self._logger.debug(
                "Debug log file handler added.",
                path=str(self.log_file),
                rotating=self.shrink_debug_file,
                level=logging.getLevelName(self.effective_log_level),
            )
        except Exception as e:
            msg = "Failed to set up debug log file handler."
            self._internal_errors.append(f"{msg} {e}")
            self._logger.exception(msg, path=str(self.log_file), exc_info=e)
            raise LogHandlerError(msg) from e

    def _setup_logging_pipeline(self) -> None:
        """
        Configure the core `structlog` pipeline.

        Attaches the standard logging handlers selected by the options.
        """
        root_logger = logging.getLogger()
        self._clear_existing_handlers(root_logger)
        root_logger.setLevel(self.effective_log_level)

        pre_chain_processors = self._pre_chain()
        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,  # Filter by level early in the pipeline
                *pre_chain_processors,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,  # Hands off to standard logging
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        self._logger.debug("Structlog core configured.")

        self._setup_console_handler(root_logger, pre_chain_processors)
        self._setup_file_handler(root_logger, pre_chain_processors)

        if not root_logger.handlers:
            self._internal_errors.append("No log handler configured; output is discarded.")
            root_logger.addHandler(logging.NullHandler())

        # Re-fetch the manager's internal logger so it uses the new configuration
        self._logger = structlog.get_logger("LoggingManager")

    def __enter__(self) -> Self:
        """Return self; the pipeline is already configured."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit the runtime context, triggering a shutdown of logging resources."""
        self.shutdown()
