"""Get the timezone of the operating system, as an IANA timezone ID.

>>> from system_tz import system_tz
>>> system_tz()
'Europe/Paris'

Supported platform families are unix (Linux, the BSDs, MacOS), Windows,
and emscripten (e.g. Pyodide in the browser).

On Windows, the system uses its own timezone names. These are mapped to
IANA IDs using the Unicode CLDR ``windowsZones`` dataset, which is compiled
into the package at build time. See :class:`WindowsTz`.
"""

from __future__ import annotations

from typing import Optional

from . import _system
from ._iana import (
    UnknownTimezoneError,
    available_timezones,
    parse_tz,
    reset_tzpath,
)
from ._windows import DatasetVersion, WindowsTz

__version__ = "0.4.0"

__all__ = [
    "DatasetVersion",
    "UnknownTimezoneError",
    "WindowsTz",
    "available_timezones",
    "parse_tz",
    "reset_tzpath",
    "system_tz",
]


def system_tz() -> Optional[str]:
    """Determine the timezone configured in the operating system.

    Returns the IANA timezone ID (e.g. ``"Europe/Paris"``), or ``None``
    if it can't be determined. Sources are probed on each call,
    so changes to the system configuration are picked up.
    """
    return _system.get_tz()
