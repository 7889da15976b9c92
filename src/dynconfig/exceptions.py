# SPDX-License-Identifier: EUPL-1.2
# SPDX-FileCopyrightText: © 2025-present Jürgen Mülbert

"""
Exception hierarchy for dynconfig.

Every error raised by the package derives from `DynConfigError`, so a
startup caller can report and abort on any misconfiguration with a single
``except`` clause.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path


class DynConfigError(Exception):
    """Base class for all dynconfig errors."""


class ArgumentParseError(DynConfigError):
    """A command-line token could not be interpreted."""

    def __init__(self, token: str, reason: str = "empty argument name") -> None:
        self.token = token
        self.reason = reason
        super().__init__(f"Invalid argument {token!r}: {reason}")


class ConfigFileErrorKind(Enum):
    """Why a config file could not be applied."""

    NOT_FOUND = "not found"
    IO_ERROR = "i/o error"
    MALFORMED_LINE = "malformed line"


class ConfigFileError(DynConfigError):
    """The config file is missing (strict mode), unreadable or malformed."""

    def __init__(
        self,
        kind: ConfigFileErrorKind,
        path: Path | str,
        line_number: int | None = None,
        detail: str | None = None,
    ) -> None:
        self.kind = kind
        self.path = Path(path)
        self.line_number = line_number
        self.detail = detail

        msg = f"Config file {self.path!s}: {kind.value}"
        if line_number is not None:
            msg += f" at line {line_number}"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)


class UnknownCategoryError(DynConfigError):
    """A debug category name is not in the category table."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unsupported logging category: {name!r}")


class DataDirectoryError(DynConfigError):
    """The configured data directory does not exist or is not a directory."""


class LogHandlerError(DynConfigError):
    """A logging handler could not be set up."""