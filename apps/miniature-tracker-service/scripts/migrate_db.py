"""Bring the configured database to the latest schema version."""

from __future__ import annotations

import argparse
import logging
import sys

from minitracker.config import get_settings
from minitracker.db.database import Database
from minitracker.db.migrate import current_version, head_version, upgrade_to_head
from minitracker.errors import TrackerError


logger = logging.getLogger("minitracker.scripts.migrate_db")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Apply pending schema migrations")
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only report the current and latest versions; exit 1 when migrations are pending",
    )
    return parser.parse_args(argv)


def run(check: bool) -> int:
    database = Database.from_settings(get_settings())
    try:
        current = current_version(database)
        head = head_version()
        if check:
            print(f"current={current or '<empty>'} head={head}")
            return 0 if current == head else 1
        version = upgrade_to_head(database)
        print(f"Database schema at version {version} (was {current or '<empty>'}).")
        return 0
    except TrackerError as exc:
        print(f"Migration failed: {exc.message}", file=sys.stderr)
        logger.error("Schema migration aborted: %s", exc.message)
        return 1
    finally:
        database.dispose()


def main(argv: list[str] | None = None) -> int:
    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    args = parse_args(argv)
    return run(check=args.check)


if __name__ == "__main__":  # pragma: no cover - manual execution path
    sys.exit(main())
