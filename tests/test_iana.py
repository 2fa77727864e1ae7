import os
from pathlib import Path
from unittest.mock import patch

import pytest

from system_tz import (
    UnknownTimezoneError,
    available_timezones,
    parse_tz,
    reset_tzpath,
)
from system_tz import _iana
from system_tz._iana import validate_tzid

TZIF_HEADER = b"TZif2" + bytes(15)


@pytest.fixture
def tzpath(tmp_path):
    """A fake zoneinfo directory, set as the only TZPATH entry"""
    (tmp_path / "Mars").mkdir()
    (tmp_path / "Mars" / "Olympus_Mons").write_bytes(TZIF_HEADER)
    (tmp_path / "Moon").write_bytes(TZIF_HEADER)
    (tmp_path / "posixrules").write_bytes(TZIF_HEADER)
    (tmp_path / "zone.tab").write_text("# not a tzif file\n")
    (tmp_path / "right").mkdir()
    (tmp_path / "right" / "Moon").write_bytes(TZIF_HEADER)
    reset_tzpath([tmp_path])
    try:
        yield tmp_path
    finally:
        reset_tzpath()


class TestParse:
    @pytest.mark.parametrize(
        "s, expected",
        [
            ("Europe/Paris", "Europe/Paris"),
            (" Europe/Paris ", "Europe/Paris"),
            ("europe/paris\n", "Europe/Paris"),
            ("\tEUROPE/PARIS", "Europe/Paris"),
            ("america/argentina/buenos_aires", "America/Argentina/Buenos_Aires"),
            ("utc", "UTC"),
            ("Etc/utc", "Etc/UTC"),
            ("etc/gmt+12", "Etc/GMT+12"),
        ],
    )
    def test_valid(self, s, expected):
        assert parse_tz(s) == expected

    @pytest.mark.parametrize(
        "s",
        [
            "",
            "   ",
            "Europe/Nowhere",
            "Europe",
            "CET-1CEST,M3.5.0,M10.5.0/3",
            "../../etc/passwd",
            "/Europe/Paris",
            "Europe/Paris/",
            "Europe//Paris",
            "Europe/Pärís",
            "Europe/Paris\x00",
            "A" * 200,
        ],
    )
    def test_invalid(self, s):
        assert parse_tz(s) is None

    def test_from_tzpath(self, tzpath):
        assert parse_tz("mars/olympus_mons") == "Mars/Olympus_Mons"
        assert parse_tz("MOON") == "Moon"
        # tzdata is still consulted
        assert parse_tz("europe/paris") == "Europe/Paris"

    def test_tzpath_reset_is_picked_up(self, tzpath):
        assert parse_tz("moon") == "Moon"
        reset_tzpath([])
        assert parse_tz("moon") is None


class TestValidate:
    @pytest.mark.parametrize(
        "key", ["Europe/Paris", "Etc/GMT-14", "America/Port-au-Prince", "UTC"]
    )
    def test_valid(self, key):
        assert validate_tzid(key) == key

    @pytest.mark.parametrize(
        "key", ["", ".", "..", "-foo", "+foo", "a/../b", "a/./b", "a b", "a/"]
    )
    def test_invalid(self, key):
        with pytest.raises(UnknownTimezoneError, match="Unknown timezone"):
            validate_tzid(key)


def test_unknown_timezone_error():
    assert issubclass(UnknownTimezoneError, ValueError)
    assert str(UnknownTimezoneError.for_key("Foo/Bar")) == (
        "Unknown timezone: 'Foo/Bar'"
    )


class TestAvailableTimezones:
    def test_tzdata(self):
        zones = available_timezones()
        assert "Europe/Paris" in zones
        assert "America/Phoenix" in zones
        assert "Etc/UTC" in zones

    def test_tzpath(self, tzpath):
        zones = available_timezones()
        assert "Mars/Olympus_Mons" in zones
        assert "Moon" in zones
        assert "posixrules" not in zones
        assert "zone.tab" not in zones
        assert "right/Moon" not in zones

    def test_missing_tzpath_dir(self, tmp_path):
        try:
            reset_tzpath([tmp_path / "does-not-exist"])
            assert "Europe/Paris" in available_timezones()
        finally:
            reset_tzpath()


class TestResetTzpath:
    def test_explicit(self, tmp_path):
        try:
            reset_tzpath([tmp_path, str(tmp_path / "sub")])
            assert _iana.TZPATH == (str(tmp_path), str(tmp_path / "sub"))
        finally:
            reset_tzpath()

    def test_string_not_allowed(self):
        with pytest.raises(TypeError, match="iterable"):
            reset_tzpath("/usr/share/zoneinfo")

    def test_relative_not_allowed(self):
        with pytest.raises(ValueError, match="absolute"):
            reset_tzpath(["usr/share/zoneinfo"])

    def test_from_env(self):
        abs_path = str(Path("/foo/zoneinfo").absolute())
        env = os.pathsep.join([abs_path, "relative/path"])
        try:
            with patch.dict(os.environ, {"PYTHONTZPATH": env}):
                reset_tzpath()
                assert _iana.TZPATH == (abs_path,)
            with patch.dict(os.environ, {"PYTHONTZPATH": ""}):
                reset_tzpath()
                assert _iana.TZPATH == ()
        finally:
            reset_tzpath()
