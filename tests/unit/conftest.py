# conftest.py
# SPDX-License-Identifier: EUPL-1.2
# SPDX-FileCopyrightText: © 2025-present Jürgen Mülbert

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pytest
import structlog
from typer.testing import CliRunner

from dynconfig.args_manager import ArgsManager
from dynconfig.context import RuntimeContext
from dynconfig.log_categories import LogCategories

if TYPE_CHECKING:
    from collections.abc import Callable, Generator

    from pytest_mock import MockerFixture
    from structlog.typing import EventDict


# --- Core Logging Setup Fixture ---
# This MUST run before any of the package code gets its first logger.
@pytest.fixture(autouse=True)
def structlog_base_config() -> Generator[None, None, None]:
    """
    Set up and tear down a structlog configuration for each test function.

    `cache_logger_on_first_use=False` keeps module-level loggers re-reading
    the configuration, so `capture_logs` sees their events.
    """
    structlog.reset_defaults()
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(logging.NOTSET)

    test_handler = logging.StreamHandler(sys.stdout)
    test_handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    root_logger.addHandler(test_handler)
    root_logger.setLevel(logging.DEBUG)

    structlog.configure(
        processors=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
    yield

    # --- Teardown Phase ---
    structlog.reset_defaults()
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(logging.NOTSET)


# --- Logging Assertion Fixtures ---
@pytest.fixture
def caplog_structlog() -> Generator[list[EventDict], None, None]:
    """Capture `structlog` events for the duration of a test."""
    with structlog.testing.capture_logs() as captured_events:
        yield captured_events


@pytest.fixture
def assert_log_contains() -> Callable[..., None]:
    """Provide a helper asserting that a capture contains a matching entry."""

    def _assert(log: list[EventDict], text: str, level: str | None = None, **fields: Any) -> None:
        matches = [
            entry
            for entry in log
            if text in entry["event"]
            and (level is None or entry["log_level"].lower() == level.lower())
            and all(entry.get(key) == value for key, value in fields.items())
        ]
        assert matches, f"No log entry found with text '{text}', level '{level}' and fields {fields}"

    return _assert


# --- Environment Isolation ---
@pytest.fixture
def isolated_data_dir(mocker: MockerFixture, tmp_path: Path) -> Path:
    """Point the default data directory at a fresh directory under `tmp_path`."""
    data_dir = tmp_path / "default_data_dir"
    data_dir.mkdir()
    mocker.patch("platformdirs.user_data_dir", return_value=str(data_dir))
    return data_dir


# --- Store Fixtures ---
@pytest.fixture
def args() -> ArgsManager:
    """Return an empty argument store."""
    return ArgsManager()


@pytest.fixture
def categories() -> LogCategories:
    """Return an empty category mask."""
    return LogCategories()


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[..., Path]:
    """
    Return a helper writing a config file under `tmp_path`.

    The helper takes the file body and an optional file name.
    """

    def _write(body: str, name: str = "dynamic.conf") -> Path:
        path = tmp_path / name
        path.write_text(body, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def runtime_context(isolated_data_dir: Path) -> Callable[..., RuntimeContext]:  # noqa: ARG001
    """Return a helper running the startup sequence against the isolated data dir."""

    def _startup(*argv: str, strict: bool = False) -> RuntimeContext:
        return RuntimeContext.startup(list(argv), strict=strict)

    return _startup


# --- CLI ---
@pytest.fixture(scope="session")
def runner() -> CliRunner:
    """Return a Typer CLI runner."""
    return CliRunner()
