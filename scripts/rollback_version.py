#!/usr/bin/env python3
"""
Roll a clinic-month back to a stored DataVersion.

The current values are snapshotted first, so the rollback can itself be
rolled back.

Usage:
    python3 scripts/rollback_version.py 3f2c9a4e-...
    python3 scripts/rollback_version.py 3f2c9a4e-... --config config/ingestion.yaml
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def main() -> int:
    parser = argparse.ArgumentParser(description="Restore a stored P&L version.")
    parser.add_argument("version_id", help="DataVersion id to restore")
    parser.add_argument("--config", default=None, help="Path to ingestion YAML settings")
    args = parser.parse_args()

    from pnl_batch.services.upload_service import UploadService
    from pnl_config import load_settings
    from pnl_kernel.db.engine import get_session, init_engine_from_url
    from pnl_kernel.exceptions import NotFoundError, PersistenceError
    from pnl_kernel.logging_config import configure_logging

    settings = load_settings(args.config)
    configure_logging(level=settings.log_level)
    init_engine_from_url(settings.database_url)

    session = get_session()
    try:
        result = UploadService(session, settings=settings).rollback(args.version_id)
    except NotFoundError as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1
    except PersistenceError as exc:
        print(f"  ERROR [{exc.code}]: {exc}", file=sys.stderr)
        return 2
    finally:
        session.close()

    print(
        f"  Restored {result.clinic_name} {result.year}-{result.month:02d} "
        f"to version {result.version}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
