# SPDX-License-Identifier: EUPL-1.2
# SPDX-FileCopyrightText: © 2025-present Jürgen Mülbert

"""
Data directory and config file resolution.

The data directory defaults to the per-user data directory reported by
`platformdirs` and can be moved with ``-datadir``. The config file is
``dynamic.conf`` inside it unless ``-conf`` names another one; relative
``-conf`` values are taken relative to the data directory.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Final

import platformdirs
import structlog

from dynconfig.__about__ import __app_config_name__, __app_name__
from dynconfig.exceptions import DataDirectoryError

if TYPE_CHECKING:
    from dynconfig.args_manager import ArgsManager

log: structlog.stdlib.BoundLogger
log = structlog.get_logger(__name__)

APP_NAME: Final[str] = __app_name__.lower()
CONF_FILENAME: Final[str] = __app_config_name__
DEBUG_LOG_FILENAME: Final[str] = "debug.log"


def get_default_data_dir() -> Path:
    """Return the platform's per-user data directory for the node."""
    return Path(platformdirs.user_data_dir(APP_NAME, appauthor=False))


def get_data_dir(args: ArgsManager) -> Path:
    """
    Return the data directory selected by ``-datadir``, or the default one.

    Raises
    ------
    DataDirectoryError
        If ``-datadir`` names something that is not an existing directory.
    """
    if not args.is_arg_set("datadir"):
        return get_default_data_dir()

    path = Path(args.get_arg("datadir", "")).expanduser()
    if not path.is_dir():
        msg = f"Specified data directory does not exist: {path!s}"
        log.error(msg, path=str(path))
        raise DataDirectoryError(msg)
    return path.resolve()


def get_config_file(args: ArgsManager) -> Path:
    """Return the config file path selected by ``-conf`` and ``-datadir``."""
    conf = Path(args.get_arg("conf", CONF_FILENAME)).expanduser()
    if conf.is_absolute():
        return conf
    return get_data_dir(args) / conf


def get_debug_log_file(data_dir: Path) -> Path:
    """Return the path of ``debug.log`` inside `data_dir`."""
    return data_dir / DEBUG_LOG_FILENAME
