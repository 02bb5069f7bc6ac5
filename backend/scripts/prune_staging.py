"""
Delete staged uploads left behind in UPLOAD_DIR (cleanup failures, crashes mid-upload).
Files younger than STALE_STAGING_SECONDS (or --max-age) are kept: they may still be scanning.
Run from backend/: python scripts/prune_staging.py [--max-age SECONDS]
"""
import argparse
import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from scanvault.core.config import get_settings
from scanvault.services.storage import LocalStorage


def main() -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Prune stale staged uploads")
    parser.add_argument("--max-age", type=float, default=settings.stale_staging_seconds, help="Seconds")
    parser.add_argument("--upload-dir", default=settings.upload_dir, help="Staging directory")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)
    storage = LocalStorage(args.upload_dir)
    removed = storage.prune_stale(args.max_age)
    print(f"Removed {removed} stale staged file(s) from {storage.root}.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
