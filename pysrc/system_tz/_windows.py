"""Windows timezones and their mapping to IANA IDs.

Windows uses its own naming scheme for timezones (e.g. "Romance Standard Time").
The mapping to IANA IDs is taken from the Unicode CLDR ``windowsZones.xml``
dataset, which is downloaded and compiled into the ``_windows_zones`` module
when the package is built on Windows.
"""

from __future__ import annotations

import ctypes
import logging
import struct
import sys
import threading
from datetime import datetime
from importlib import import_module
from types import ModuleType
from typing import NamedTuple, Optional, Sequence, final

import tzlocal

from ._iana import UnknownTimezoneError, parse_tz

__all__ = ["DatasetVersion", "WindowsTz", "get_tz"]

logger = logging.getLogger(__name__)

_DATASET_MODULE = "system_tz._windows_zones"


class DatasetVersion(NamedTuple):
    """Metadata of the bundled ``windowsZones`` dataset"""

    build_date: Optional[datetime]
    # (otherVersion, typeVersion) as declared by the CLDR document
    version: tuple[str, str]
    # Fingerprint of the dataset contents, to detect drift between builds
    hash: Optional[int]


@final
class WindowsTz:
    """A known Windows timezone, with the IANA IDs it corresponds to.

    Instances are only obtained from the bundled dataset, through
    :meth:`get` or :meth:`from_iana`.
    """

    __slots__ = ("zone", "territory", "iana")

    # The Windows timezone key, e.g. "W. Europe Standard Time"
    zone: str
    # ISO 3166 region code (or "001" for the default mapping).
    # Missing only for entries that aren't part of the CLDR data.
    territory: Optional[str]
    # Never empty. The first entry is the canonical IANA ID.
    iana: tuple[str, ...]

    def __init__(
        self, zone: str, territory: Optional[str], iana: Sequence[str]
    ):
        self.zone = zone
        self.territory = territory
        self.iana = tuple(iana)

    @classmethod
    def get(
        cls, zone: str, territory: Optional[str] = None
    ) -> Optional[WindowsTz]:
        """Look up a Windows timezone in the bundled dataset.

        If no ``territory`` is given, the first entry with a matching
        ``zone`` is returned. In practice this is the CLDR default
        (territory "001").
        """
        for tz in _get_dataset()[1]:
            if tz.zone == zone and (
                territory is None or tz.territory == territory
            ):
                return tz
        return None

    @classmethod
    def from_iana(cls, key: str) -> WindowsTz:
        """Find the first Windows timezone that maps to the given IANA ID.

        Raises
        ------
        UnknownTimezoneError
            If the ID is unknown, or no Windows timezone maps to it.
        """
        name = parse_tz(key)
        if name is not None:
            for tz in _get_dataset()[1]:
                if name in tz.iana:
                    return tz
        raise UnknownTimezoneError.for_key(key)

    @classmethod
    def all(cls) -> tuple[WindowsTz, ...]:
        """All known Windows timezones, in the order of the dataset"""
        return _get_dataset()[1]

    @classmethod
    def dataset_version(cls) -> Optional[DatasetVersion]:
        """The version of the bundled dataset, or ``None`` if the package
        was built without it."""
        return _get_dataset()[0]

    def to_iana(self) -> str:
        """The canonical IANA ID for this Windows timezone"""
        return self.iana[0]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, WindowsTz):
            return (
                self.zone == other.zone
                and self.territory == other.territory
                and self.iana == other.iana
            )
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self.zone, self.territory, self.iana))

    def __repr__(self) -> str:
        return f"WindowsTz({self.zone!r}, {self.territory!r}, {self.iana!r})"


_Dataset = tuple[Optional[DatasetVersion], tuple[WindowsTz, ...]]
_DATASET: Optional[_Dataset] = None
_DATASET_LOCK = threading.Lock()


def _get_dataset() -> _Dataset:
    # Double-checked: the lock is only taken until the dataset is loaded.
    # Afterwards the dataset is immutable and shared freely between threads.
    if _DATASET is None:
        with _DATASET_LOCK:
            if _DATASET is None:
                _set_dataset(_import_dataset())
    assert _DATASET is not None
    return _DATASET


def _import_dataset() -> Optional[ModuleType]:
    try:
        return import_module(_DATASET_MODULE)
    except ModuleNotFoundError as e:
        if e.name != _DATASET_MODULE:  # pragma: no cover
            raise
        # Only expected off Windows. On Windows it means the package was
        # built elsewhere, or with SYSTEM_TZ_NO_BUILD_WINDOWS_ZONES set.
        logger.log(
            logging.WARNING if sys.platform == "win32" else logging.DEBUG,
            "No Windows zones dataset bundled with this build",
        )
        return None


def _set_dataset(module: Optional[ModuleType]) -> None:
    """Load the table from a generated dataset module.
    ``None`` stands for an empty dataset."""
    global _DATASET
    if module is None:
        _DATASET = (None, ())
        return
    version = DatasetVersion(
        build_date=(
            datetime.fromisoformat(module.BUILD_DATE)
            if module.BUILD_DATE
            else None
        ),
        version=tuple(module.VERSION),
        hash=module.HASH,
    )
    _DATASET = (version, tuple(WindowsTz(*row) for row in module.ZONES))


def _reset_dataset() -> None:
    global _DATASET
    with _DATASET_LOCK:
        _DATASET = None


# Return values of GetDynamicTimeZoneInformation. Anything else is an error.
# https://learn.microsoft.com/en-us/windows/win32/api/timezoneapi/nf-timezoneapi-getdynamictimezoneinformation
_TIME_ZONE_ID_UNKNOWN = 0
_TIME_ZONE_ID_DAYLIGHT = 2


class _SystemTime(ctypes.Structure):
    _fields_ = [
        (name, ctypes.c_uint16)
        for name in (
            "wYear",
            "wMonth",
            "wDayOfWeek",
            "wDay",
            "wHour",
            "wMinute",
            "wSecond",
            "wMilliseconds",
        )
    ]


class _DynamicTimeZoneInformation(ctypes.Structure):
    # WCHAR buffers are declared as raw UTF-16 code units, so that the
    # layout doesn't depend on the platform's wchar_t.
    _fields_ = [
        ("Bias", ctypes.c_int32),
        ("StandardName", ctypes.c_uint16 * 32),
        ("StandardDate", _SystemTime),
        ("StandardBias", ctypes.c_int32),
        ("DaylightName", ctypes.c_uint16 * 32),
        ("DaylightDate", _SystemTime),
        ("DaylightBias", ctypes.c_int32),
        ("TimeZoneKeyName", ctypes.c_uint16 * 128),
        ("DynamicDaylightTimeDisabled", ctypes.c_uint8),
    ]


def _utf16_to_str(units: Sequence[int]) -> Optional[str]:
    """Decode a NUL-terminated UTF-16 buffer. Returns None if empty."""
    units = list(units)
    try:
        end = units.index(0)
    except ValueError:
        end = len(units)
    if end == 0:
        return None
    return struct.pack(f"<{end}H", *units[:end]).decode(
        "utf-16-le", errors="replace"
    )


def _native_zone_names() -> list[str]:
    """Windows timezone names of the system, most specific first"""
    info = _DynamicTimeZoneInformation()
    try:
        kernel32 = ctypes.WinDLL("kernel32")  # type: ignore[attr-defined]
        func = kernel32.GetDynamicTimeZoneInformation
    except (AttributeError, OSError):
        return []
    func.restype = ctypes.c_uint32
    status = func(ctypes.byref(info))
    if not _TIME_ZONE_ID_UNKNOWN <= status <= _TIME_ZONE_ID_DAYLIGHT:
        logger.debug("GetDynamicTimeZoneInformation failed: %#x", status)
        return []
    return [
        name
        for name in (
            _utf16_to_str(info.TimeZoneKeyName),
            _utf16_to_str(info.StandardName),
        )
        if name
    ]


def _from_locale() -> Optional[str]:
    try:
        name = tzlocal.get_localzone_name()
    # ZoneInfoNotFoundError is a KeyError, registry failures are OSErrors
    except (LookupError, ValueError, OSError) as e:
        logger.debug("tzlocal could not determine the timezone: %s", e)
        return None
    if name is None:
        return None
    if (tz := parse_tz(name)) is None:
        logger.debug("Ignoring unknown timezone %r from tzlocal", name)
    return tz


def _from_native() -> Optional[str]:
    for name in _native_zone_names():
        if (tz := WindowsTz.get(name)) is not None:
            return tz.to_iana()
        logger.debug("Windows timezone %r not in the dataset", name)
    return None


def get_tz() -> Optional[str]:
    return _from_locale() or _from_native()
