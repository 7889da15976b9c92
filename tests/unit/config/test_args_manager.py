# SPDX-License-Identifier: EUPL-1.2
# SPDX-FileCopyrightText: © 2025-present Jürgen Mülbert

"""
Pytest suite for the ArgsManager class.

Covers command-line parsing, config-file merging and its precedence rules,
the typed accessors and the soft/force/delete overrides.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from dynconfig.args_manager import (
    ArgsManager,
    interpret_bool,
    parse_config_text,
    parse_int_prefix,
)
from dynconfig.exceptions import ArgumentParseError, ConfigFileError, ConfigFileErrorKind

if TYPE_CHECKING:
    from collections.abc import Callable

    from pytest_mock import MockerFixture
    from structlog.typing import EventDict


class TestParseParameters:
    @pytest.mark.unit
    def test_name_value_pairs_are_stored(self, args: ArgsManager) -> None:
        args.parse_parameters(["-foo=bar", "-rpcport=33350"])

        assert args.is_arg_set("foo")
        assert args.get_arg("foo", "d") == "bar"
        assert args.get_arg("rpcport", "d") == "33350"

    @pytest.mark.unit
    def test_bare_flag_stores_true_sentinel(self, args: ArgsManager) -> None:
        args.parse_parameters(["-server"])

        assert args.get_arg("server", "d") == "1"
        assert args.get_bool_arg("server", False) is True

    @pytest.mark.unit
    def test_explicit_empty_value_is_kept(self, args: ArgsManager) -> None:
        args.parse_parameters(["-debug="])

        assert args.get_arg("debug", "d") == ""
        assert args.get_bool_arg("debug", False) is True

    @pytest.mark.unit
    def test_accessors_accept_leading_marker(self, args: ArgsManager) -> None:
        args.parse_parameters(["-foo=bar"])

        assert args.is_arg_set("-foo")
        assert args.get_arg("-foo", "") == "bar"
        assert args.get_args("-foo") == ["bar"]

    @pytest.mark.unit
    def test_names_are_case_sensitive(self, args: ArgsManager, mocker: MockerFixture) -> None:
        mocker.patch("dynconfig.args_manager.sys.platform", "linux")
        args.parse_parameters(["-Foo=1"])

        assert args.is_arg_set("Foo")
        assert not args.is_arg_set("foo")

    @pytest.mark.unit
    def test_double_dash_is_read_as_single_dash(self, args: ArgsManager) -> None:
        args.parse_parameters(["--datadir=/tmp/x"])

        assert args.get_arg("datadir", "") == "/tmp/x"

    @pytest.mark.unit
    def test_positional_tokens_are_returned_in_order(self, args: ArgsManager, mocker: MockerFixture) -> None:
        mocker.patch("dynconfig.args_manager.sys.platform", "linux")

        positional = args.parse_parameters(["getinfo", "-testnet", "/tmp/wallet.dat", "", "extra"])

        assert positional == ["getinfo", "/tmp/wallet.dat", "", "extra"]
        assert args.snapshot() == {"testnet": "1"}

    @pytest.mark.unit
    def test_slash_marker_on_windows(self, args: ArgsManager, mocker: MockerFixture) -> None:
        mocker.patch("dynconfig.args_manager.sys.platform", "win32")

        positional = args.parse_parameters(["/DataDir=C:\\dyn", "-Server"])

        assert positional == []
        assert args.get_arg("datadir", "") == "C:\\dyn"
        assert args.is_arg_set("server")

    @pytest.mark.unit
    def test_last_command_line_occurrence_wins(self, args: ArgsManager) -> None:
        args.parse_parameters(["-connect=a", "-connect=b", "-connect=c"])

        assert args.get_arg("connect", "") == "c"
        assert args.get_args("connect") == ["a", "b", "c"]

    @pytest.mark.unit
    @pytest.mark.parametrize("token", ["-", "-=value", "--=value", "--"])
    def test_empty_name_raises(self, args: ArgsManager, token: str) -> None:
        with pytest.raises(ArgumentParseError) as excinfo:
            args.parse_parameters([token])

        assert excinfo.value.token == token

    @pytest.mark.unit
    def test_failed_parse_stores_nothing(self, args: ArgsManager) -> None:
        with pytest.raises(ArgumentParseError):
            args.parse_parameters(["-good=1", "-=bad"])

        assert not args.is_arg_set("good")
        assert args.snapshot() == {}

    @pytest.mark.unit
    def test_parse_is_logged_without_values(
        self,
        args: ArgsManager,
        caplog_structlog: list[EventDict],
        assert_log_contains: Callable[..., None],
    ) -> None:
        args.parse_parameters(["-rpcpassword=hunter2", "getinfo"])

        assert_log_contains(caplog_structlog, "Parsed command line", "debug", options=["rpcpassword"], positional=1)
        assert all("hunter2" not in str(entry) for entry in caplog_structlog)


class TestNegation:
    @pytest.mark.unit
    def test_negated_name_is_set_and_false(self, args: ArgsManager) -> None:
        args.parse_parameters(["-nofoo"])

        assert args.is_arg_set("foo")
        assert args.is_negated("foo")
        assert args.get_bool_arg("foo", True) is False
        assert args.get_arg("foo", "d") == "0"

    @pytest.mark.unit
    def test_negation_is_terminal_for_config_file(
        self, args: ArgsManager, write_config: Callable[..., Path]
    ) -> None:
        args.parse_parameters(["-nofoo"])
        args.read_config_file(write_config("foo=1\n"))

        assert args.is_arg_set("foo")
        assert args.get_bool_arg("foo", True) is False
        assert args.get_args("foo") == ["0"]

    @pytest.mark.unit
    def test_double_negative_is_a_positive(self, args: ArgsManager) -> None:
        args.parse_parameters(["-nofoo=0"])

        assert args.get_bool_arg("foo", False) is True
        assert not args.is_negated("foo")

    @pytest.mark.unit
    def test_explicit_negation_value(self, args: ArgsManager) -> None:
        args.parse_parameters(["-nofoo=1"])

        assert args.is_negated("foo")
        assert args.get_bool_arg("foo", True) is False

    @pytest.mark.unit
    def test_later_positive_token_lifts_negation(self, args: ArgsManager) -> None:
        args.parse_parameters(["-nofoo", "-foo=1"])

        assert not args.is_negated("foo")
        assert args.get_bool_arg("foo", False) is True
        assert args.get_args("foo") == ["0", "1"]

    @pytest.mark.unit
    def test_short_no_names_are_not_negations(self, args: ArgsManager) -> None:
        args.parse_parameters(["-no"])

        assert args.get_arg("no", "") == "1"
        assert not args.is_negated("no")

    @pytest.mark.unit
    def test_config_file_negation_sets_false_without_terminal_mark(
        self, args: ArgsManager, write_config: Callable[..., Path]
    ) -> None:
        args.read_config_file(write_config("nolisten=1\nlisten=1\n"))

        assert not args.is_negated("listen")
        assert args.get_args("listen") == ["0", "1"]
        assert args.get_bool_arg("listen", False) is True


class TestReadConfigFile:
    @pytest.mark.unit
    def test_reads_entries_and_skips_comments(self, args: ArgsManager, write_config: Callable[..., Path]) -> None:
        path = write_config("# node settings\n\nrpcuser = alice\n   # indented comment\nrpcport=33350\n")

        merged = args.read_config_file(path)

        assert merged == 2
        assert args.get_arg("rpcuser", "") == "alice"
        assert args.get_int_arg("rpcport", 0) == 33350

    @pytest.mark.unit
    def test_command_line_keeps_precedence(self, args: ArgsManager, write_config: Callable[..., Path]) -> None:
        args.parse_parameters(["-foo=1"])
        args.read_config_file(write_config("foo=2\n"))

        assert args.get_arg("foo", "") == "1"
        assert args.get_args("foo") == ["1", "2"]

    @pytest.mark.unit
    def test_last_config_occurrence_wins(self, args: ArgsManager, write_config: Callable[..., Path]) -> None:
        args.read_config_file(write_config("addnode=a\naddnode=b\n"))

        assert args.get_arg("addnode", "") == "b"
        assert args.get_args("addnode") == ["a", "b"]

    @pytest.mark.unit
    def test_command_line_occurrences_precede_config_occurrences(
        self, args: ArgsManager, write_config: Callable[..., Path]
    ) -> None:
        args.parse_parameters(["-connect=cli1", "-connect=cli2"])
        args.read_config_file(write_config("connect=conf1\nconnect=conf2\n"))

        assert args.get_args("connect") == ["cli1", "cli2", "conf1", "conf2"]
        assert args.get_arg("connect", "") == "cli2"

    @pytest.mark.unit
    def test_value_may_contain_equals_and_hash(self, args: ArgsManager, write_config: Callable[..., Path]) -> None:
        args.read_config_file(write_config("rpcpassword=a=b#c\n"))

        assert args.get_arg("rpcpassword", "") == "a=b#c"

    @pytest.mark.unit
    def test_leading_marker_in_file_is_tolerated(self, args: ArgsManager, write_config: Callable[..., Path]) -> None:
        args.read_config_file(write_config("-testnet=1\n"))

        assert args.get_bool_arg("testnet", False) is True

    @pytest.mark.unit
    def test_missing_file_is_not_an_error_by_default(
        self,
        args: ArgsManager,
        tmp_path: Path,
        caplog_structlog: list[EventDict],
        assert_log_contains: Callable[..., None],
    ) -> None:
        missing = tmp_path / "absent.conf"

        assert args.read_config_file(missing) == 0
        assert args.snapshot() == {}
        assert_log_contains(caplog_structlog, "No config file found", "info", path=str(missing))

    @pytest.mark.unit
    def test_missing_file_in_strict_mode(self, args: ArgsManager, tmp_path: Path) -> None:
        missing = tmp_path / "absent.conf"

        with pytest.raises(ConfigFileError) as excinfo:
            args.read_config_file(missing, strict=True)

        assert excinfo.value.kind is ConfigFileErrorKind.NOT_FOUND
        assert excinfo.value.path == missing

    @pytest.mark.unit
    def test_directory_is_an_io_error(self, args: ArgsManager, tmp_path: Path) -> None:
        with pytest.raises(ConfigFileError) as excinfo:
            args.read_config_file(tmp_path)

        assert excinfo.value.kind is ConfigFileErrorKind.IO_ERROR

    @pytest.mark.unit
    def test_undecodable_file_is_an_io_error(self, args: ArgsManager, tmp_path: Path) -> None:
        path = tmp_path / "latin1.conf"
        path.write_bytes(b"rpcuser=j\xfcrgen\n")

        with pytest.raises(ConfigFileError) as excinfo:
            args.read_config_file(path)

        assert excinfo.value.kind is ConfigFileErrorKind.IO_ERROR

    @pytest.mark.unit
    def test_os_error_is_wrapped(self, args: ArgsManager, tmp_path: Path, mocker: MockerFixture) -> None:
        mocker.patch.object(Path, "read_text", side_effect=PermissionError("denied"))

        with pytest.raises(ConfigFileError) as excinfo:
            args.read_config_file(tmp_path / "dynamic.conf")

        assert excinfo.value.kind is ConfigFileErrorKind.IO_ERROR
        assert isinstance(excinfo.value.__cause__, PermissionError)

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("body", "line_number"),
        [
            ("rpcuser=alice\njustaname\n", 2),
            ("# comment\n\n=value\n", 3),
            ("[main]\nrpcuser=alice\n", 1),
        ],
    )
    def test_malformed_line_reports_line_number(
        self,
        args: ArgsManager,
        write_config: Callable[..., Path],
        body: str,
        line_number: int,
    ) -> None:
        with pytest.raises(ConfigFileError) as excinfo:
            args.read_config_file(write_config(body))

        assert excinfo.value.kind is ConfigFileErrorKind.MALFORMED_LINE
        assert excinfo.value.line_number == line_number
        assert f"line {line_number}" in str(excinfo.value)

    @pytest.mark.unit
    def test_malformed_file_changes_nothing(self, args: ArgsManager, write_config: Callable[..., Path]) -> None:
        with pytest.raises(ConfigFileError):
            args.read_config_file(write_config("rpcuser=alice\nbroken\n"))

        assert not args.is_arg_set("rpcuser")

    @pytest.mark.unit
    @pytest.mark.parametrize("separator", ["\u2028", "\u0085", "\x0b", "\x0c", "\x1c", "\x1e"])
    def test_only_line_feed_ends_a_line(
        self, args: ArgsManager, write_config: Callable[..., Path], separator: str
    ) -> None:
        args.read_config_file(write_config(f"comment=a{separator}b\nrpcport=1\n"))

        assert args.get_arg("comment", "") == f"a{separator}b"
        assert args.get_int_arg("rpcport", 0) == 1

    @pytest.mark.unit
    def test_line_numbers_ignore_unicode_separators(self, args: ArgsManager, write_config: Callable[..., Path]) -> None:
        with pytest.raises(ConfigFileError) as excinfo:
            args.read_config_file(write_config("comment=a\u2028b\nbroken\n"))

        assert excinfo.value.line_number == 2

    @pytest.mark.unit
    def test_byte_order_mark_is_skipped(self, args: ArgsManager, tmp_path: Path) -> None:
        path = tmp_path / "dynamic.conf"
        path.write_bytes(b"\xef\xbb\xbfrpcport=1\r\nrpcuser=alice\r\n")

        assert args.read_config_file(path) == 2
        assert args.is_arg_set("rpcport")
        assert args.get_int_arg("rpcport", 0) == 1
        assert args.get_arg("rpcuser", "") == "alice"
        assert "\ufeffrpcport" not in args.snapshot()

    @pytest.mark.unit
    def test_parse_config_text_returns_line_numbers(self) -> None:
        entries = parse_config_text("\n# c\na=1\n b = 2 \n", "dynamic.conf")

        assert entries == [(3, "a", "1"), (4, "b", "2")]


class TestAccessors:
    @pytest.mark.unit
    def test_get_arg_default_when_unset(self, args: ArgsManager) -> None:
        assert args.get_arg("missing", "fallback") == "fallback"
        assert args.get_int_arg("missing", 5) == 5
        assert args.get_bool_arg("missing", True) is True
        assert args.get_args("missing") == []
        assert not args.is_arg_set("missing")

    @pytest.mark.unit
    def test_int_default_selects_integer_parsing(self, args: ArgsManager) -> None:
        args.parse_parameters(["-maxconnections=125"])

        assert args.get_arg("maxconnections", 8) == 125
        assert args.get_arg("maxconnections", "8") == "125"

    @pytest.mark.unit
    def test_bool_default_selects_boolean_parsing(self, args: ArgsManager) -> None:
        args.parse_parameters(["-listen=0", "-upnp", "-nodnsseed"])

        assert args.get_arg("listen", True) is False
        assert args.get_arg("upnp", False) is True
        assert args.get_arg("dnsseed", True) is False
        assert args.get_arg("unset", True) is True

    @pytest.mark.unit
    def test_unparsable_integer_is_zero_not_default(self, args: ArgsManager) -> None:
        args.force_set_arg("n", "abc")

        assert args.get_arg("n", 5) == 0
        assert args.get_int_arg("n", 5) == 0
        assert args.get_int_arg("unset", 5) == 5

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("value", "expected"),
        [("42", 42), ("-7", -7), ("+3", 3), ("  12abc", 12), ("abc", 0), ("", 0), ("1e3", 1)],
    )
    def test_parse_int_prefix(self, value: str, expected: int) -> None:
        assert parse_int_prefix(value) == expected

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("", True),
            ("1", True),
            ("true", True),
            ("YES", True),
            ("on", True),
            ("0", False),
            ("false", False),
            ("No", False),
            ("off", False),
            ("2", True),
            ("garbage", False),
        ],
    )
    def test_interpret_bool(self, value: str, expected: bool) -> None:  # noqa: FBT001
        assert interpret_bool(value) is expected

    @pytest.mark.unit
    def test_get_args_returns_a_copy(self, args: ArgsManager) -> None:
        args.parse_parameters(["-connect=a"])

        args.get_args("connect").append("b")

        assert args.get_args("connect") == ["a"]

    @pytest.mark.unit
    def test_snapshot_is_sorted_copy(self, args: ArgsManager) -> None:
        args.parse_parameters(["-zeta=1", "-alpha=2"])

        snapshot = args.snapshot()
        snapshot["alpha"] = "changed"

        assert list(args.snapshot()) == ["alpha", "zeta"]
        assert args.get_arg("alpha", "") == "2"


class TestOverrides:
    @pytest.mark.unit
    def test_soft_set_only_when_unset(self, args: ArgsManager) -> None:
        assert args.soft_set_arg("x", "a") is True
        assert args.soft_set_arg("x", "b") is False
        assert args.get_arg("x", "") == "a"
        assert args.get_args("x") == ["a"]

    @pytest.mark.unit
    def test_soft_set_does_not_touch_negated_name(self, args: ArgsManager) -> None:
        args.parse_parameters(["-nolisten"])

        assert args.soft_set_bool_arg("listen", True) is False
        assert args.get_bool_arg("listen", True) is False

    @pytest.mark.unit
    def test_soft_set_bool_stores_sentinels(self, args: ArgsManager) -> None:
        assert args.soft_set_bool_arg("listen", False) is True
        assert args.get_arg("listen", "") == "0"
        assert args.soft_set_bool_arg("upnp", True) is True
        assert args.get_arg("upnp", "") == "1"

    @pytest.mark.unit
    def test_soft_set_value_outranks_later_config_file(
        self, args: ArgsManager, write_config: Callable[..., Path]
    ) -> None:
        args.soft_set_arg("listen", "0")
        args.read_config_file(write_config("listen=1\n"))

        assert args.get_arg("listen", "") == "0"
        assert args.get_args("listen") == ["0", "1"]

    @pytest.mark.unit
    def test_force_set_overwrites_and_clears_negation(self, args: ArgsManager) -> None:
        args.parse_parameters(["-nox"])

        args.force_set_arg("x", "1")

        assert args.get_bool_arg("x", False) is True
        assert not args.is_negated("x")
        assert args.get_args("x") == ["0", "1"]

    @pytest.mark.unit
    def test_delete_arg_erases_everything(self, args: ArgsManager, write_config: Callable[..., Path]) -> None:
        args.parse_parameters(["-nox", "-x=2"])
        args.parse_parameters(["-nox"])

        args.delete_arg("x")

        assert not args.is_arg_set("x")
        assert args.get_args("x") == []
        assert not args.is_negated("x")

        # with the command-line mark gone, the config file may set it again
        args.read_config_file(write_config("x=3\n"))
        assert args.get_arg("x", "") == "3"

    @pytest.mark.unit
    def test_delete_unknown_name_is_a_no_op(self, args: ArgsManager) -> None:
        args.delete_arg("never-set")

        assert args.snapshot() == {}


class TestConcurrency:
    @pytest.mark.unit
    def test_readers_never_see_partial_parse(self, args: ArgsManager) -> None:
        tokens = [f"-opt{i}={i}" for i in range(200)]
        observed: list[int] = []
        stop = threading.Event()

        def reader() -> None:
            while not stop.is_set():
                observed.append(len(args.snapshot()))

        thread = threading.Thread(target=reader)
        thread.start()
        try:
            args.parse_parameters(tokens)
        finally:
            stop.set()
            thread.join()

        assert set(observed) <= {0, 200}
        assert len(args.snapshot()) == 200
