"""Tests for utility functions."""

import os
import stat

import pytest

from wg_wrapper.common.exceptions import ConfigurationError, WriteError
from wg_wrapper.common.utils import (
    expand_path,
    format_bytes,
    normalize_list,
    parse_bytes,
    truncate_key,
    validate_interface_name,
    validate_non_empty_string,
    write_atomic,
)


class TestValidation:
    """Test string and name validators."""

    def test_non_empty_string(self):
        assert validate_non_empty_string("  wg0 ", "name") == "wg0"

    @pytest.mark.parametrize("value", ["", "   "])
    def test_empty_string_rejected(self, value):
        with pytest.raises(ConfigurationError, match="name cannot be empty"):
            validate_non_empty_string(value, "name")

    def test_interface_name(self):
        assert validate_interface_name(" home ") == "home"

    @pytest.mark.parametrize(
        "name,message",
        [
            ("", "Interface name is required"),
            ("my vpn", "cannot contain spaces"),
            ("a/b", "cannot contain spaces"),
        ],
    )
    def test_bad_interface_names(self, name, message):
        with pytest.raises(ConfigurationError, match=message):
            validate_interface_name(name)


class TestLists:
    def test_normalize_list(self):
        assert normalize_list("10.0.0.0/8,  ::/0 ,,") == "10.0.0.0/8, ::/0"
        assert normalize_list("") == ""

    def test_expand_path(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        assert expand_path(" ~/vpn.conf ") == tmp_path / "vpn.conf"


class TestByteFigures:
    """Test transfer figure parsing and formatting."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("1.50 MiB received", 1572864),
            ("200.00 KiB sent", 204800),
            ("92 B", 92),
            ("2 GiB", 2 * 1024**3),
            ("1 TiB", 1024**4),
            ("1.5 PB", 0),
            ("garbage", 0),
            ("x KiB", 0),
        ],
    )
    def test_parse_bytes(self, text, expected):
        assert parse_bytes(text) == expected

    @pytest.mark.parametrize(
        "value,expected",
        [
            (0, "0 B"),
            (1023, "1023 B"),
            (1024, "1.00 KiB"),
            (1572864, "1.50 MiB"),
            (3 * 1024**3, "3.00 GiB"),
        ],
    )
    def test_format_bytes(self, value, expected):
        assert format_bytes(value) == expected

    def test_truncate_key(self):
        key = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnop="
        assert truncate_key(key) == f"{key[:8]}…{key[-8:]}"
        assert truncate_key("short") == "short"


class TestWriteAtomic:
    """Test atomic replacement of configuration files."""

    def test_writes_content_verbatim(self, tmp_path):
        target = tmp_path / "home.conf"
        write_atomic(target, "[Interface]\r\nMTU = 1420")
        assert target.read_bytes() == b"[Interface]\r\nMTU = 1420"

    def test_replaces_existing_file(self, tmp_path):
        target = tmp_path / "home.conf"
        target.write_text("old\n")
        write_atomic(target, "new\n")
        assert target.read_text() == "new\n"
        assert os.listdir(tmp_path) == ["home.conf"]

    def test_applies_mode(self, tmp_path):
        target = tmp_path / "home.conf"
        write_atomic(target, "x\n", mode=0o640)
        assert stat.S_IMODE(target.stat().st_mode) == 0o640

    def test_existing_file_keeps_its_mode(self, tmp_path):
        target = tmp_path / "home.conf"
        target.write_text("old\n")
        target.chmod(0o640)

        write_atomic(target, "new\n", mode=0o600)

        assert stat.S_IMODE(target.stat().st_mode) == 0o640
        assert target.read_text() == "new\n"

    def test_missing_directory(self, tmp_path):
        with pytest.raises(WriteError, match="Cannot write"):
            write_atomic(tmp_path / "nope" / "home.conf", "x\n")

    def test_failed_rename_keeps_original(self, tmp_path, monkeypatch):
        target = tmp_path / "home.conf"
        target.write_text("original\n")

        def fail_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("os.replace", fail_replace)
        with pytest.raises(WriteError, match="disk full"):
            write_atomic(target, "new\n")

        assert target.read_text() == "original\n"
        assert os.listdir(tmp_path) == ["home.conf"]
