import os

import platform
from setuptools import setup
from setuptools.command.bdist_wheel import bdist_wheel
from setuptools.command.build_py import build_py

_SKIP_BUILD_SUGGESTION = """
*******************************************************************************

Building the Windows timezone dataset of `system_tz` failed. See errors above.
Set the `SYSTEM_TZ_NO_BUILD_WINDOWS_ZONES` environment variable to any value
to skip building it. Windows timezone names then can't be mapped to IANA IDs.

*******************************************************************************
"""


class BuildPy(build_py):
    def run(self):
        build_py.run(self)
        if os.getenv("SYSTEM_TZ_NO_BUILD_WINDOWS_ZONES") or (
            platform.system() != "Windows"
        ):
            print("Skipping Windows timezone dataset build")
            return

        # importable through `backend-path` in pyproject.toml
        from windows_zones import build

        if getattr(self, "editable_mode", False):
            out_dir = os.path.join("pysrc", "system_tz")
        else:
            out_dir = os.path.join(self.build_lib, "system_tz")
        try:
            build(out_dir)
        except Exception as e:
            print(_SKIP_BUILD_SUGGESTION)
            raise e


class BdistWheel(bdist_wheel):
    # Whether the dataset is bundled depends on the build platform,
    # so a wheel must only be installed where it was built.
    def finalize_options(self):
        bdist_wheel.finalize_options(self)
        self.root_is_pure = False

    def get_tag(self):
        _, _, plat = bdist_wheel.get_tag(self)
        return "py3", "none", plat


setup(
    cmdclass={"build_py": BuildPy, "bdist_wheel": BdistWheel},
)
