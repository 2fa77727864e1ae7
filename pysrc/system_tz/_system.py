import sys
from typing import Callable, Optional

__all__ = ["FAMILY", "get_tz"]

# Finding the system timezone depends on the platform family.
# The implementation is picked once, when this module is imported.
# Cygwin has a unix filesystem layout, but no WinDLL in ctypes.
if sys.platform == "win32":  # pragma: no cover
    from ._windows import get_tz as _get_tz

    FAMILY = "windows"
elif sys.platform in ("emscripten", "wasi"):  # pragma: no cover
    from ._wasm import get_tz as _get_tz

    FAMILY = "wasm"
else:
    from ._unix import get_tz as _get_tz

    FAMILY = "unix"

get_tz: Callable[[], Optional[str]] = _get_tz
