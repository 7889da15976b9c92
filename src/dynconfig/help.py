# SPDX-License-Identifier: EUPL-1.2
# SPDX-FileCopyrightText: © 2025-present Jürgen Mülbert

"""Help text for the options this package reads itself."""

from __future__ import annotations

import textwrap
from typing import Final

from dynconfig.log_categories import list_categories
from dynconfig.logging_manager import (
    DEFAULT_LOGIPS,
    DEFAULT_LOGTHREADNAMES,
    DEFAULT_LOGTIMEMICROS,
    DEFAULT_LOGTIMESTAMPS,
)
from dynconfig.paths import CONF_FILENAME

SCREEN_WIDTH: Final[int] = 79
OPT_INDENT: Final[int] = 2
MSG_INDENT: Final[int] = 7


def help_message_group(message: str) -> str:
    """Format a group heading such as ``"Debugging/Testing options:"``."""
    return f"{message}\n\n"


def help_message_opt(option: str, message: str) -> str:
    """Format one option and its description, wrapped to the screen width."""
    indent = " " * MSG_INDENT
    body = textwrap.fill(message, width=SCREEN_WIDTH, initial_indent=indent, subsequent_indent=indent)
    return f"{' ' * OPT_INDENT}{option}\n{body}\n\n"


def _flag(default: bool) -> int:  # noqa: FBT001
    return 1 if default else 0


def help_message() -> str:
    """Return the help text for the configuration and debugging options."""
    parts = [
        help_message_group("Configuration options:"),
        help_message_opt("-conf=<file>", f"Specify configuration file (default: {CONF_FILENAME})"),
        help_message_opt("-datadir=<dir>", "Specify data directory"),
        help_message_group("Debugging/Testing options:"),
        help_message_opt(
            "-debug=<category>",
            "Output debugging information (default: 0, supplying <category> is optional). "
            "If <category> is not supplied or if <category> = 1, output all debugging information. "
            f"<category> can be: {list_categories()}.",
        ),
        help_message_opt(
            "-debugexclude=<category>",
            "Exclude debugging information for a category. Can be used in conjunction with -debug=1 "
            "to output debug logs for all categories except one or more specified categories.",
        ),
        help_message_opt("-logips", f"Include IP addresses in debug output (default: {_flag(DEFAULT_LOGIPS)})"),
        help_message_opt(
            "-logtimestamps", f"Prepend debug output with timestamp (default: {_flag(DEFAULT_LOGTIMESTAMPS)})"
        ),
        help_message_opt(
            "-logtimemicros",
            f"Add microsecond precision to debug timestamps (default: {_flag(DEFAULT_LOGTIMEMICROS)})",
        ),
        help_message_opt(
            "-logthreadnames", f"Add thread names to debug messages (default: {_flag(DEFAULT_LOGTHREADNAMES)})"
        ),
        help_message_opt("-logjson", "Write debug.log as JSON lines (default: 0)"),
        help_message_opt("-printtoconsole", "Send trace/debug info to the console as well as debug.log (default: 0)"),
        help_message_opt("-shrinkdebugfile", "Rotate debug.log once it grows past 10 MiB (default: 1)"),
    ]
    return "".join(parts)
