# path: blueways-api/blueways/cli.py

from __future__ import annotations

from typing import List, Optional
import argparse
import logging
import sys

from blueways.config import load_settings
from blueways.errors import AcquisitionError
from blueways.services.network_store import NetworkStore
from blueways.services.pipeline import run_alignment, run_tracing

logger = logging.getLogger("blueways")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="blueways",
        description="Align and trace paddling routes in a route-network GeoJSON file.",
    )
    parser.add_argument(
        "command",
        choices=["align", "trace", "all"],
        help="align: fix direction and snap endpoints; trace: follow OSM waterways; all: both",
    )
    parser.add_argument("path", help="Route-network GeoJSON file (rewritten in place)")
    parser.add_argument("--config", default=None, help="YAML settings file")
    parser.add_argument("--log-level", default=None, help="Override the configured log level")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings(args.config)

    logging.basicConfig(
        level=(args.log_level or settings.log_level).upper(),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    store = NetworkStore(args.path, backup_suffix=settings.backup_suffix, indent=settings.json_indent)
    try:
        if args.command in ("align", "all"):
            s = run_alignment(store, settings)
            logger.info("Fixed: %d  Reversed: %d  Errors: %d", s.fixed, s.reversed, s.errored)
        if args.command in ("trace", "all"):
            # "all" keeps the backup taken before alignment
            t = run_tracing(store, settings, backup=args.command == "trace")
            logger.info("Updated: %d  Skipped: %d  Failed: %d", t.updated, t.skipped, t.failed)
    except (OSError, ValueError, AcquisitionError) as e:
        logger.error("Fatal error: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
