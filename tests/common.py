import os
import types
from contextlib import contextmanager
from datetime import datetime, timezone
from io import StringIO
from pathlib import Path
from unittest.mock import patch

from windows_zones import WindowsZonesData, parse

from system_tz import _windows

DATA_DIR = Path(__file__).parent / "data"
# A trimmed copy of the CLDR windowsZones.xml
SAMPLE_XML = (DATA_DIR / "windowsZones.xml").read_text(encoding="utf-8")
SAMPLE_BUILD_DATE = datetime(2023, 4, 18, 9, 30, tzinfo=timezone.utc)


def sample_data() -> WindowsZonesData:
    return parse(SAMPLE_XML)


def load_generated(data: WindowsZonesData, build_date=SAMPLE_BUILD_DATE):
    """Generate the dataset module and import it from memory"""
    out = StringIO()
    data.write(out, build_date)
    module = types.ModuleType("system_tz._windows_zones")
    exec(compile(out.getvalue(), "_windows_zones.py", "exec"), module.__dict__)
    return module


@contextmanager
def restore_windows_zones():
    saved = _windows._DATASET
    try:
        yield
    finally:
        _windows._DATASET = saved


@contextmanager
def windows_zones(data=None):
    """Make the given dataset (the sample by default) the bundled one"""
    module = load_generated(data or sample_data())
    with restore_windows_zones():
        _windows._set_dataset(module)
        yield module


@contextmanager
def system_tz_env(name):
    with patch.dict(os.environ, {"TZ": name}):
        yield
