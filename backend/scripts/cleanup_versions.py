"""Cleanup old auto-generated content entry versions.

Usage:
  python scripts/cleanup_versions.py                      # dry-run
  python scripts/cleanup_versions.py --apply              # delete old versions
  python scripts/cleanup_versions.py --days 30 --include-manual --apply
"""
import argparse
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from headless_cms.config import settings
from headless_cms.database import Database
from headless_cms.main import configure_logging
from headless_cms.services import version_service


def main(argv=None):
    parser = argparse.ArgumentParser()
    parser.add_argument("--apply", action="store_true", help="Actually delete old versions")
    parser.add_argument("--days", type=int, default=settings.VERSION_RETENTION_DAYS, help="Retention period in days")
    parser.add_argument("--keep-recent", type=int, default=settings.VERSION_KEEP_RECENT, help="Newest versions kept per entry")
    parser.add_argument("--include-manual", action="store_true", help="Also delete manual checkpoints and rollback records")
    args = parser.parse_args(argv)

    configure_logging(settings)
    database = Database(settings.DATABASE_URL)
    db = database.session()
    try:
        result = version_service.cleanup_old_versions(
            db,
            retention_days=args.days,
            keep_manual=not args.include_manual,
            keep_recent=args.keep_recent,
            dry_run=not args.apply,
        )
    finally:
        db.close()
        database.dispose()

    print("Version cleanup result")
    print(f"  dry_run: {result['dry_run']}")
    print(f"  cutoff: {result['cutoff'].isoformat()}")
    print(f"  candidate_count: {result['candidate_count']}")
    print(f"  deleted_count: {result['deleted_count']}")
    if result["candidates"]:
        print("  candidates:")
        for item in result["candidates"]:
            print(f"    - entry {item['content_entry_id']} v{item['version_number']}")


if __name__ == "__main__":
    main()
