# See pyproject.toml for why this file exists.
from setuptools import build_meta as _orig
from setuptools.build_meta import *
import os
import platform


if os.getenv("SYSTEM_TZ_NO_BUILD_WINDOWS_ZONES") or (
    platform.system() != "Windows"
):
    build_deps = []
else:
    # needed by windows_zones.py to download and validate the dataset
    build_deps = ["httpx", "tzdata"]


def get_requires_for_build_wheel(config_settings=None):
    return _orig.get_requires_for_build_wheel(config_settings) + build_deps


def get_requires_for_build_sdist(config_settings=None):
    return _orig.get_requires_for_build_sdist(config_settings)


def get_requires_for_build_editable(config_settings=None):
    return _orig.get_requires_for_build_editable(config_settings) + build_deps
