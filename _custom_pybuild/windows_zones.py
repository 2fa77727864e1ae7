"""Build the ``system_tz._windows_zones`` module from the Unicode CLDR
``windowsZones.xml`` dataset.

This runs at build time only (see ``setup.py``): the latest dataset is
downloaded, validated against the IANA tz database, and written out as a
plain Python module, so that there's no parsing cost at runtime.
Any failure aborts the build. An outdated or partial dataset would silently
degrade every lookup on Windows.

Can also be run by hand:

    python _custom_pybuild/windows_zones.py pysrc/system_tz
"""

from __future__ import annotations

import argparse
import asyncio
import hashlib
import json
import logging
import os
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from importlib.resources import files
from pathlib import Path
from typing import IO, NamedTuple, Optional, Sequence

import httpx

logger = logging.getLogger(__name__)

SOURCE = (
    "https://raw.githubusercontent.com/unicode-org/cldr/main"
    "/common/supplemental/windowsZones.xml"
)
MODULE_NAME = "_windows_zones.py"

# Windows reports this as the standard name of its UTC zone,
# but the CLDR data only knows it by its key ("UTC").
EXTRA_ZONES = (("Coordinated Universal Time", None, ("Etc/UTC",)),)


class DatasetError(Exception):
    """The dataset couldn't be built"""


class MapZone(NamedTuple):
    zone: str
    territory: Optional[str]
    iana: tuple[str, ...]


class WindowsZonesData(NamedTuple):
    # (otherVersion, typeVersion) of the <mapTimezones> element
    version: tuple[str, str]
    zones: tuple[MapZone, ...]

    def hash(self) -> int:
        """A 64-bit fingerprint of the dataset.

        Unlike the builtin ``hash()``, this is stable across processes,
        so it can be compared between builds.
        """
        payload = json.dumps(
            [list(self.version), [list(z) for z in self.zones]],
            ensure_ascii=False,
            separators=(",", ":"),
        ).encode()
        digest = hashlib.blake2b(payload, digest_size=8).digest()
        return int.from_bytes(digest, "big")

    def write(self, f: IO[str], build_date: Optional[datetime]) -> None:
        """Write the dataset as a Python module"""
        w = f.write
        w('"""Generated from the Unicode CLDR windowsZones dataset.\n\n')
        w(f"Source: {SOURCE}\n")
        w('DO NOT EDIT: regenerated on every build.\n"""\n\n')
        w("# Version of the bundled dataset\n")
        w(f"BUILD_DATE = {build_date and build_date.isoformat()!r}\n")
        w(f"VERSION = {self.version!r}\n")
        w(f"HASH = {self.hash()!r}\n\n")
        w("# (windows zone, territory, IANA IDs)\n")
        w("ZONES = (\n")
        for zone, territory, iana in self.zones:
            w(f"    ({zone!r}, {territory!r}, {iana!r}),\n")
        w(")\n")


async def _fetch(
    url: str, transport: Optional[httpx.AsyncBaseTransport]
) -> str:
    async with httpx.AsyncClient(
        transport=transport, follow_redirects=True
    ) as client:
        response = await client.get(url)
        response.raise_for_status()
        return response.text


def fetch(
    url: str = SOURCE, transport: Optional[httpx.AsyncBaseTransport] = None
) -> str:
    """Download the dataset. There are no retries."""
    logger.info("Downloading %s", url)
    try:
        return asyncio.run(_fetch(url, transport))
    except httpx.HTTPError as e:
        raise DatasetError(f"Failed to GET Unicode CLDR data: {e}") from e


def known_timezones() -> frozenset[str]:
    """The IANA IDs we validate against: those of the ``tzdata`` package"""
    try:
        listing = files("tzdata").joinpath("zones").read_text(encoding="utf-8")
    except (ImportError, FileNotFoundError) as e:
        raise DatasetError("The tzdata package is required") from e
    return frozenset(filter(None, map(str.strip, listing.splitlines())))


def parse(
    document: str | bytes, known: Optional[frozenset[str]] = None
) -> WindowsZonesData:
    """Parse and validate the XML document.

    Every listed IANA ID must be known, otherwise the whole dataset is
    rejected. Exact duplicate entries are dropped.
    """
    if known is None:
        known = known_timezones()
    try:
        root = ET.fromstring(document)
    except ET.ParseError as e:
        raise DatasetError(f"Failed to deserialize XML data: {e}") from e

    timezones = root.find("windowsZones/mapTimezones")
    if timezones is None:
        raise DatasetError("Missing <windowsZones><mapTimezones> element")
    version = (
        _attr(timezones, "otherVersion"),
        _attr(timezones, "typeVersion"),
    )

    zones: dict[MapZone, None] = {}  # ordered set
    for elem in timezones.iter("mapZone"):
        names = _attr(elem, "type").split()
        if not names:
            raise DatasetError(f"No IANA ID for {_attr(elem, 'other')!r}")
        for name in names:
            if name not in known:
                raise DatasetError(f"Invalid IANA ID {name!r} in dataset")
        zone = MapZone(
            _attr(elem, "other"),
            elem.get("territory"),
            tuple(dict.fromkeys(names)),
        )
        zones.setdefault(zone)

    for extra in EXTRA_ZONES:
        zones.setdefault(MapZone(*extra))

    logger.info("Parsed %d Windows timezones (%s)", len(zones), version)
    return WindowsZonesData(version, tuple(zones))


def _attr(elem: ET.Element, name: str) -> str:
    try:
        return elem.attrib[name]
    except KeyError:
        raise DatasetError(
            f"Missing attribute {name!r} on <{elem.tag}>"
        ) from None


def build_date() -> Optional[datetime]:
    """The build timestamp, honouring ``SOURCE_DATE_EPOCH``
    (https://reproducible-builds.org/specs/source-date-epoch/)"""
    try:
        epoch = os.environ["SOURCE_DATE_EPOCH"]
    except KeyError:
        return datetime.now(timezone.utc).replace(microsecond=0)
    try:
        return datetime.fromtimestamp(int(epoch), timezone.utc)
    except (ValueError, OverflowError, OSError):
        logger.warning("Ignoring invalid SOURCE_DATE_EPOCH=%r", epoch)
        return None


def build(
    out_dir: str | os.PathLike[str],
    *,
    url: str = SOURCE,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Path:
    """Run the whole pipeline and write the module into ``out_dir``"""
    data = parse(fetch(url, transport))
    target = Path(out_dir) / MODULE_NAME
    with target.open("w", encoding="utf-8") as f:
        data.write(f, build_date())
    logger.info("Wrote %s (hash %d)", target, data.hash())
    return target


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "out_dir", type=Path, help="directory to write the module to"
    )
    parser.add_argument("--url", default=SOURCE)
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    build(args.out_dir, url=args.url)


if __name__ == "__main__":
    main()
