"""IANA timezone IDs: the set of known names, and case-insensitive parsing."""

from __future__ import annotations

import os
import sysconfig
from functools import lru_cache
from importlib.resources import files
from pathlib import Path
from typing import Iterable, Iterator, Optional

__all__ = [
    "TZPATH",
    "UnknownTimezoneError",
    "available_timezones",
    "parse_tz",
    "reset_tzpath",
    "validate_tzid",
]

TZPATH: tuple[str, ...] = ()
"""The directories searched for system zoneinfo files, in addition to
the ``tzdata`` package. Determined the same way as :data:`zoneinfo.TZPATH`.
"""


class UnknownTimezoneError(ValueError):
    """No timezone with the given ID is known"""

    @classmethod
    def for_key(cls, key: str) -> UnknownTimezoneError:
        return cls(f"Unknown timezone: {key!r}")


def reset_tzpath(target: Iterable[str | os.PathLike[str]] | None = None, /):
    """Reset or set the directories searched for zoneinfo files.

    Behaves similarly to :func:`zoneinfo.reset_tzpath`
    """
    global TZPATH

    if target is not None:
        # This is such a common mistake, that we raise a descriptive error
        if isinstance(target, (str, bytes)):
            raise TypeError("tzpath must be an iterable of paths")

        target = tuple(target)
        if not all(map(os.path.isabs, target)):
            raise ValueError("tzpaths must be absolute paths")
        TZPATH = tuple(str(Path(p)) for p in target)
    else:
        TZPATH = _tzpath_from_env()


def _tzpath_from_env() -> tuple[str, ...]:
    try:
        env_var = os.environ["PYTHONTZPATH"]
    except KeyError:
        env_var = sysconfig.get_config_var("TZPATH")

    if not env_var:
        return ()

    raw_tzpath = env_var.split(os.pathsep)
    # invalid paths are silently ignored, like zoneinfo does
    return tuple(filter(os.path.isabs, raw_tzpath))


def available_timezones() -> set[str]:
    """Gather the set of all known IANA timezone IDs.

    Combines the ``tzdata`` package (if installed) with the zoneinfo files
    found under :data:`TZPATH`. Like :func:`zoneinfo.available_timezones`,
    the "special" zones (posixrules, right/, posix/) are ignored.
    """
    zones = set(_tzdata_zones())
    for base in TZPATH:
        zones.update(_find_all_tznames(Path(base)))
    zones.discard("posixrules")
    return zones


def _tzdata_zones() -> list[str]:
    try:
        listing = files("tzdata").joinpath("zones").read_text(encoding="utf-8")
    except (ImportError, FileNotFoundError):
        return []
    return [z for z in map(str.strip, listing.splitlines()) if z]


# Recursion is safe here since the file tree is trusted, and nesting doesn't
# even approach the recursion limit.
def _find_all_tznames(base: Path) -> Iterator[str]:
    if not base.is_dir():
        return
    for entry in base.iterdir():
        if entry.is_dir():
            if entry.name in ("right", "posix"):
                continue
            for p in _find_nested_tzfiles(entry):
                yield p.relative_to(base).as_posix()
        elif _is_tzifile(entry):
            yield entry.name


def _find_nested_tzfiles(path: Path) -> Iterator[Path]:
    for entry in path.iterdir():
        if entry.is_dir():
            yield from _find_nested_tzfiles(entry)
        elif _is_tzifile(entry):
            yield entry


def _is_tzifile(p: Path) -> bool:
    try:
        with p.open("rb") as f:
            return f.read(4) == b"TZif"
    except OSError:
        return False


def validate_tzid(key: str) -> str:
    """Checks for invalid characters and path traversal in the key."""
    if (
        key.isascii()
        # There's no standard limit on IANA tz IDs, but we have to draw
        # the line somewhere to prevent abuse.
        and 0 < len(key) < 100
        and all(b.isalnum() or b in "-_+/." for b in key)
        and ".." not in key
        and "//" not in key
        and "/./" not in key
        and key[0] not in ".-+/"
        and key[-1] != "/"
    ):
        return key
    raise UnknownTimezoneError.for_key(key)


# Keyed on the tzpath, so that resetting it is reflected without explicit
# cache clearing.
@lru_cache(maxsize=4)
def _casefold_index(tzpath: tuple[str, ...]) -> dict[str, str]:
    index: dict[str, str] = {}
    # tzdata first: its spelling wins over whatever the filesystem has
    for name in _tzdata_zones():
        index.setdefault(name.lower(), name)
    for base in tzpath:
        for name in _find_all_tznames(Path(base)):
            if name != "posixrules":
                index.setdefault(name.lower(), name)
    return index


def parse_tz(candidate: str) -> Optional[str]:
    """Parse a string as an IANA timezone ID, ignoring case and
    surrounding whitespace. Returns the canonical spelling, or ``None``.

    >>> parse_tz(" europe/PARIS\\n")
    'Europe/Paris'
    """
    key = candidate.strip()
    try:
        validate_tzid(key)
    except UnknownTimezoneError:
        return None
    return _casefold_index(TZPATH).get(key.lower())


reset_tzpath()  # populate the tzpath once at startup
