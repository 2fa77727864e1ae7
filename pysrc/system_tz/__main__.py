import argparse
import logging
import sys
from typing import Optional, Sequence

from . import __version__, system_tz

REPOSITORY = "https://github.com/b4D8/system_tz"


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="tz",
        description="Print the timezone of the operating system.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="log the sources that were probed to stderr",
    )
    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s"
        )

    if (tz := system_tz()) is not None:
        print(tz)
        return 0
    print("Error: Failed to get timezone", file=sys.stderr)
    print(
        f"You might want to report this error on {REPOSITORY}",
        file=sys.stderr,
    )
    return 1


if __name__ == "__main__":
    sys.exit(main())
