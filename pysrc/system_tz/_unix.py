"""Timezone discovery on unix-like systems (Linux, the BSDs, MacOS).

No single source is authoritative here, so we probe a number of well-known
locations in order. The first one that yields a known IANA ID wins.

References:
* https://man7.org/linux/man-pages/man5/localtime.5.html
* https://www.man7.org/linux/man-pages/man1/timedatectl.1.html
"""

from __future__ import annotations

import logging
import os
import os.path
from typing import Callable, Iterator, Optional

from ._iana import parse_tz

logger = logging.getLogger(__name__)

TZ_ENV = "TZ"
TIMEZONE_FILES = ("/etc/timezone", "/var/db/zoneinfo")
LOCALTIME_LINKS = ("/etc/localtime", "/usr/local/etc/localtime")
# (path, key prefixes) of line-based KEY=value configuration files
CONFIG_FILES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("/etc/sysconfig/clock", ("ZONE", "TIMEZONE")),  # CentOS, OpenSUSE
    ("/etc/conf.d/clock", ("TIMEZONE",)),  # Gentoo
    ("/etc/default/init", ("TZ",)),
    ("/usr/local/etc/default/init", ("TZ",)),
)


def get_tz() -> Optional[str]:
    for source, probe in _probes():
        raw = probe()
        if raw is None:
            continue
        if (tz := parse_tz(raw)) is not None:
            return tz
        logger.debug("Ignoring unknown timezone %r from %s", raw, source)
    return None


# The probes are created lazily from the module constants on each call,
# so that a patched environment or path is picked up.
def _probes() -> Iterator[tuple[str, Callable[[], Optional[str]]]]:
    yield f"${TZ_ENV}", _from_env
    for path in TIMEZONE_FILES:
        yield path, lambda path=path: _read_file(path)
    for path in LOCALTIME_LINKS:
        yield path, lambda path=path: _from_symlink(path)
    for path, prefixes in CONFIG_FILES:
        yield path, lambda path=path, prefixes=prefixes: _from_config(
            path, prefixes
        )


def _from_env() -> Optional[str]:
    try:
        tz_env = os.environ[TZ_ENV]
    except KeyError:
        return None
    if tz_env.startswith(":"):
        tz_env = tz_env[1:]  # strip leading colon
    if os.path.isabs(tz_env.strip()):
        return _tzid_from_path(tz_env.strip())
    return tz_env


def _read_file(path: str) -> Optional[str]:
    try:
        with open(path, encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError):
        return None


def _from_symlink(path: str) -> Optional[str]:
    try:
        os.readlink(path)
    except OSError:
        # Not a symlink (or missing): a plain copy can't be traced to its ID
        return None
    return _tzid_from_path(os.path.realpath(path))


def _tzid_from_path(path: str) -> Optional[str]:
    """Find the IANA timezone ID from a path to a zoneinfo file.
    Returns None if the path is not in a zoneinfo directory.
    """
    # Find the path segment containing 'zoneinfo',
    # e.g. `zoneinfo/` or `zoneinfo.default/`
    if (marker := path.rfind("zoneinfo")) == -1:
        return None
    if (index := path.find("/", marker)) == -1:
        return None
    return path[index + 1 :]


def _from_config(path: str, prefixes: tuple[str, ...]) -> Optional[str]:
    if (content := _read_file(path)) is None:
        return None
    for line in content.splitlines():
        line = line.lstrip()
        if line.startswith(prefixes):
            _, sep, value = line.partition("=")
            return value.strip().strip("\"'") if sep else None
    return None
