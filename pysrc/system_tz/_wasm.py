"""Timezone discovery in the browser (Pyodide and other emscripten builds).

Reference: https://developer.mozilla.org/en-US/docs/Web/JavaScript/Reference/Global_Objects/Intl/DateTimeFormat/resolvedOptions
"""

from __future__ import annotations

import logging
from typing import Optional

from ._iana import parse_tz

logger = logging.getLogger(__name__)

_OPTION_NAMES = ("timeZoneName", "timeZone")


def get_tz() -> Optional[str]:
    try:
        import js  # only provided by the host runtime
    except ImportError:
        return None

    try:
        opts = js.Intl.DateTimeFormat.new().resolvedOptions()
    # Errors raised by the host surface as pyodide.ffi.JsException,
    # which isn't importable outside of it
    except Exception as e:
        logger.debug("Intl.DateTimeFormat is unavailable: %s", e)
        return None
    for field in _OPTION_NAMES:
        value = getattr(opts, field, None)
        if not isinstance(value, str):
            continue
        if (tz := parse_tz(value)) is not None:
            return tz
        logger.debug("Ignoring unknown timezone %r from Intl.%s", value, field)
    return None
