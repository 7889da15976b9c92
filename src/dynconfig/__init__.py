# SPDX-License-Identifier: EUPL-1.2
# SPDX-FileCopyrightText: © 2025-present Jürgen Mülbert

"""
Dynamic Runtime Configuration Package.

This package holds the process-wide configuration state of a Dynamic node:
the arguments merged from the command line and ``dynamic.conf``, and the
debug category mask that gates diagnostic output.

Components of this package:
--------------------------------
- `args_manager.py`: `ArgsManager`, the layered argument store with
  command-line-over-config-file precedence and terminal ``-noname``
  negation.
- `log_categories.py`: `LogFlags` and `LogCategories`, the 32-bit debug
  category mask and its name table.
- `category_logger.py`: `log_print`, which checks the mask before
  formatting a message.
- `context.py`: `RuntimeContext`, created once at process entry, which
  runs the startup sequence and is passed to every subsystem.
- `logging_bootstrap.py` / `logging_manager.py`: the `structlog` pipeline,
  first minimal, then built from the ``-log*`` options.
- `paths.py`: data directory and config file resolution.
- `threads.py`: `trace_thread`, the named worker wrapper with an injectable
  error policy.
- `help.py`: option help formatting.
- `feedback.py`: the feedback record value type.
- `cli.py`: the ``dynconfig`` diagnostic command.

Usage:
------
1. Call `bootstrap_logging()` as early as possible.
2. Build the context with `RuntimeContext.startup(sys.argv[1:])`.
3. Call `context.configure_logging()` and start the worker threads.
"""
