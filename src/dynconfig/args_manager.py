# SPDX-License-Identifier: EUPL-1.2
# SPDX-FileCopyrightText: © 2025-present Jürgen Mülbert

"""
ArgsManager module.

The layered argument store of a Dynamic node process.

`ArgsManager` merges two sources into one view:

- command-line tokens (``-name``, ``-name=value``, ``-noname``), parsed by
  `ArgsManager.parse_parameters`;
- a flat ``name=value`` config file (``dynamic.conf``), read by
  `ArgsManager.read_config_file`.

Every name has a scalar value, returned by `get_arg` and friends, and an
occurrence list with every value ever seen, returned by `get_args`. The
command line always outranks the config file, and ``-noname`` on the
command line is final: config-file entries for a negated name are dropped.

Startup order matters. Parse the command line first, then read the config
file, and finish both before any other thread starts.

Usage Example:
--------------
```python
args = ArgsManager()
positional = args.parse_parameters(sys.argv[1:])
args.read_config_file(get_config_file(args))

if args.get_bool_arg("printtoconsole", False):
    ...
for peer in args.get_args("connect"):
    ...
```
"""

from __future__ import annotations

import re
import sys
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Final

import structlog

from dynconfig.exceptions import ArgumentParseError, ConfigFileError, ConfigFileErrorKind

if TYPE_CHECKING:
    from collections.abc import Iterable


TRUE_SENTINEL: Final[str] = "1"
FALSE_SENTINEL: Final[str] = "0"
COMMENT_MARKER: Final[str] = "#"

_TRUE_LITERALS: Final[frozenset[str]] = frozenset({"", "1", "true", "yes", "on"})
_FALSE_LITERALS: Final[frozenset[str]] = frozenset({"0", "false", "no", "off"})
_INT_PREFIX: Final[re.Pattern[str]] = re.compile(r"\s*([+-]?\d+)")


def is_switch_char(char: str) -> bool:
    """Return True if `char` introduces an option on this platform."""
    if sys.platform == "win32":
        return char in ("-", "/")
    return char == "-"


def parse_int_prefix(value: str) -> int:
    """
    Parse the leading decimal integer of `value`.

    Leading whitespace and a sign are accepted and trailing garbage is
    ignored (``"12abc"`` is 12). A value without any digits yields 0.
    """
    match = _INT_PREFIX.match(value)
    if match is None:
        return 0
    return int(match.group(1))


def interpret_bool(value: str) -> bool:
    """Interpret an argument value as a boolean."""
    lowered = value.strip().lower()
    if lowered in _TRUE_LITERALS:
        return True
    if lowered in _FALSE_LITERALS:
        return False
    return parse_int_prefix(value) != 0


def _interpret_negative_setting(name: str, value: str | None) -> tuple[str, str, bool]:
    """
    Turn ``noname[=value]`` into ``name`` with the inverted value.

    Returns the effective name, the value to store and whether the name is
    negated (``-nofoo`` and ``-nofoo=1`` are, ``-nofoo=0`` is not).
    """
    if len(name) > 2 and name.startswith("no"):  # noqa: PLR2004
        negated = interpret_bool(value if value is not None else "")
        return name[2:], FALSE_SENTINEL if negated else TRUE_SENTINEL, negated
    return name, TRUE_SENTINEL if value is None else value, False


def _normalize(name: str) -> str:
    """Accept ``-name`` as well as ``name`` in every accessor."""
    return name[1:] if name[:1] == "-" else name


def parse_config_text(text: str, path: Path | str) -> list[tuple[int, str, str]]:
    """
    Split config-file text into ``(line_number, name, value)`` entries.

    Only a line feed ends a line, so values may hold any other character.
    Blank lines and comment lines are skipped. Whitespace around names and
    values is stripped and a leading ``-`` on a name is tolerated.

    Raises
    ------
    ConfigFileError
        With kind ``MALFORMED_LINE`` for a line without ``=`` or with an
        empty name.
    """
    entries: list[tuple[int, str, str]] = []
    for line_number, raw_line in enumerate(text.split("\n"), start=1):
        line = raw_line.strip()
        if not line or line.startswith(COMMENT_MARKER):
            continue

        name, sep, value = line.partition("=")
        name = _normalize(name.strip())
        if not sep or not name:
            raise ConfigFileError(
                ConfigFileErrorKind.MALFORMED_LINE,
                path,
                line_number=line_number,
                detail="expected name=value",
            )
        entries.append((line_number, name, value.strip()))
    return entries


class ArgsManager:
    """
    Thread-safe store of command-line and config-file arguments.

    One re-entrant lock covers the whole store; every public method holds
    it for its full duration. Config-file I/O happens before the lock is
    taken.

    Attributes
    ----------
    _args : dict[str, str]
        Scalar value per name.
    _multi_args : dict[str, list[str]]
        Every occurrence per name, in arrival order. A name is set iff it
        has an entry here.
    _command_line : set[str]
        Names whose scalar came from the command line or an explicit
        soft/force set. Config-file entries never replace those scalars.
    _negated : set[str]
        Names negated on the command line.
    """

    def __init__(self) -> None:
        """Create an empty store."""
        self._lock = threading.RLock()
        self._args: dict[str, str] = {}
        self._multi_args: dict[str, list[str]] = {}
        self._command_line: set[str] = set()
        self._negated: set[str] = set()
        self.logger = structlog.get_logger(__name__)

    # --- Population ---

    def parse_parameters(self, tokens: Iterable[str]) -> list[str]:
        """
        Parse command-line tokens into the store.

        Every token is validated before anything is stored, and the whole
        batch is applied under the lock, so readers never see a partial
        parse.

        Args:
            tokens (Iterable[str]): Command-line arguments without the
                                    program name.

        Returns:
            list[str]: Tokens that are not options, in their original order.

        Raises:
            ArgumentParseError: If an option token has an empty name.
        """
        parsed: list[tuple[str, str, bool]] = []
        positional: list[str] = []

        for token in tokens:
            if not token or not is_switch_char(token[0]):
                positional.append(token)
                continue

            key, sep, value = token.partition("=")
            if sys.platform == "win32":
                key = "-" + key[1:].lower()
            if key.startswith("--"):
                key = key[1:]

            name = key[1:]
            if not name:
                raise ArgumentParseError(token)
            parsed.append(_interpret_negative_setting(name, value if sep else None))

        with self._lock:
            for name, stored, negated in parsed:
                self._args[name] = stored
                self._multi_args.setdefault(name, []).append(stored)
                self._command_line.add(name)
                if negated:
                    self._negated.add(name)
                else:
                    self._negated.discard(name)

        # values stay out of the log: rpcpassword and friends come through here
        self.logger.debug(
            "Parsed command line",
            options=[name for name, _, _ in parsed],
            positional=len(positional),
        )
        return positional

    def read_config_file(self, path: Path | str, *, strict: bool = False) -> int:
        """
        Merge a ``name=value`` config file into the store.

        Entries for negated names are dropped. Entries for names that were
        given on the command line are appended to the occurrence list but
        leave the scalar alone. All other entries become the scalar, so the
        last occurrence in the file wins.

        Args:
            path (Path | str): The config file.
            strict (bool): Treat a missing file as an error.

        Returns:
            int: The number of entries merged.

        Raises:
            ConfigFileError: ``NOT_FOUND`` (strict mode only), ``IO_ERROR``
                             or ``MALFORMED_LINE``.
        """
        path = Path(path)
        self.logger.debug("Reading config file", path=str(path), strict=strict)
        try:
            text = path.read_text(encoding="utf-8-sig")
        except FileNotFoundError as e:
            if strict:
                self.logger.exception("Config file not found", path=str(path), exc_info=e)
                raise ConfigFileError(ConfigFileErrorKind.NOT_FOUND, path) from e
            self.logger.info("No config file found; using command line only", path=str(path))
            return 0
        except (OSError, UnicodeDecodeError) as e:
            self.logger.exception("Could not read config file", path=str(path), exc_info=e)
            raise ConfigFileError(ConfigFileErrorKind.IO_ERROR, path, detail=str(e)) from e

        try:
            entries = parse_config_text(text, path)
        except ConfigFileError as e:
            self.logger.exception("Malformed config file", path=str(path), line=e.line_number, exc_info=e)
            raise

        merged = 0
        dropped: list[str] = []
        with self._lock:
            for _, raw_name, raw_value in entries:
                name, value, _ = _interpret_negative_setting(raw_name, raw_value)
                if name in self._negated:
                    dropped.append(name)
                    continue
                self._multi_args.setdefault(name, []).append(value)
                if name not in self._command_line:
                    self._args[name] = value
                merged += 1

        self.logger.info("Config file loaded", path=str(path), entries=merged, dropped_negated=dropped)
        return merged

    # --- Read surface ---

    def is_arg_set(self, name: str) -> bool:
        """Return True if `name` has at least one occurrence."""
        name = _normalize(name)
        with self._lock:
            return name in self._multi_args

    def is_negated(self, name: str) -> bool:
        """Return True if `name` was negated on the command line."""
        name = _normalize(name)
        with self._lock:
            return name in self._negated

    def get_arg(self, name: str, default: str | int | bool) -> str | int | bool:  # noqa: FBT001
        """
        Return the scalar value of `name`, or `default` if it is unset.

        The type of `default` selects the parsing: a bool goes through
        `get_bool_arg`, an integer through `get_int_arg`.
        """
        if isinstance(default, bool):
            return self.get_bool_arg(name, default)
        if isinstance(default, int):
            return self.get_int_arg(name, default)
        name = _normalize(name)
        with self._lock:
            return self._args.get(name, default)

    def get_int_arg(self, name: str, default: int) -> int:
        """
        Return the scalar value of `name` as an integer.

        An unset name returns `default`. A set name whose value has no
        leading integer returns 0, not `default`.
        """
        name = _normalize(name)
        with self._lock:
            value = self._args.get(name)
        if value is None:
            return default
        return parse_int_prefix(value)

    def get_bool_arg(self, name: str, default: bool) -> bool:  # noqa: FBT001
        """Return the scalar value of `name` as a boolean; negated names are False."""
        name = _normalize(name)
        with self._lock:
            if name in self._negated:
                return False
            value = self._args.get(name)
        if value is None:
            return default
        return interpret_bool(value)

    def get_args(self, name: str) -> list[str]:
        """Return every value seen for `name`, command line first."""
        name = _normalize(name)
        with self._lock:
            return list(self._multi_args.get(name, []))

    def snapshot(self) -> dict[str, str]:
        """Return a copy of all scalar values, sorted by name."""
        with self._lock:
            return dict(sorted(self._args.items()))

    # --- Overrides ---

    def soft_set_arg(self, name: str, value: str) -> bool:
        """
        Set `name` only if it is unset.

        Returns:
            bool: True if the value was stored, False if `name` already had one.
        """
        name = _normalize(name)
        with self._lock:
            if name in self._multi_args:
                return False
            self._store(name, value)
        self.logger.debug("Soft-set argument", name=name)
        return True

    def soft_set_bool_arg(self, name: str, value: bool) -> bool:  # noqa: FBT001
        """Boolean variant of `soft_set_arg`."""
        return self.soft_set_arg(name, TRUE_SENTINEL if value else FALSE_SENTINEL)

    def force_set_arg(self, name: str, value: str) -> None:
        """Overwrite `name` unconditionally and clear any negation. Meant for tests."""
        name = _normalize(name)
        with self._lock:
            self._store(name, value)
            self._negated.discard(name)
        self.logger.debug("Force-set argument", name=name)

    def delete_arg(self, name: str) -> None:
        """Remove every trace of `name` from the store."""
        name = _normalize(name)
        with self._lock:
            self._args.pop(name, None)
            self._multi_args.pop(name, None)
            self._command_line.discard(name)
            self._negated.discard(name)
        self.logger.debug("Deleted argument", name=name)

    def _store(self, name: str, value: str) -> None:
        # caller holds the lock
        self._args[name] = value
        self._multi_args.setdefault(name, []).append(value)
        self._command_line.add(name)
