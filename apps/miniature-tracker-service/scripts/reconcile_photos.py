"""Find and remove photo blobs that no metadata row references."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import timedelta

from minitracker.bootstrap import bootstrap
from minitracker.errors import TrackerError


logger = logging.getLogger("minitracker.scripts.reconcile_photos")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile photo blobs with photo metadata")
    parser.add_argument(
        "--min-age-minutes",
        type=float,
        default=15.0,
        help="Leave blobs younger than this alone; they may belong to an upload in flight (default: 15)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report orphaned blobs and dangling rows without deleting anything",
    )
    return parser.parse_args(argv)


def reconcile(min_age_minutes: float, dry_run: bool) -> int:
    services = bootstrap(migrate=False)
    try:
        report = services.repositories.photos.reconcile(
            min_age=timedelta(minutes=min_age_minutes),
            dry_run=dry_run,
        )
    except TrackerError as exc:
        print(f"Reconciliation failed: {exc.message}", file=sys.stderr)
        logger.error("Photo reconciliation aborted: %s", exc.message)
        return 1
    finally:
        services.close()

    if dry_run:
        print(
            f"{len(report.orphaned_blobs)} orphaned blobs would be deleted "
            f"({len(report.skipped_recent)} too recent to judge); no changes made."
        )
    else:
        print(f"Deleted {len(report.deleted_blobs)} of {len(report.orphaned_blobs)} orphaned blobs.")
    if report.dangling_photo_ids:
        print(f"{len(report.dangling_photo_ids)} photo rows reference missing blobs:")
        for photo_id in report.dangling_photo_ids:
            print(f"  {photo_id}")
    for failure in report.failures:
        print(f"Could not delete {failure.storage_key}: {failure.message}", file=sys.stderr)
    return 1 if report.failures else 0


def main(argv: list[str] | None = None) -> int:
    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    args = parse_args(argv)
    return reconcile(min_age_minutes=args.min_age_minutes, dry_run=args.dry_run)


if __name__ == "__main__":  # pragma: no cover - manual execution path
    sys.exit(main())
