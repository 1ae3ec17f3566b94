#!/usr/bin/env python3
"""
Bulk-import every P&L CSV in a directory through the upload pipeline.

Each file is copied into the upload directory, one upload is recorded for
the whole set, and the worker runs it synchronously.  The source directory
is left untouched.

Usage:
    python3 scripts/import_directory.py --dir ./exports
    python3 scripts/import_directory.py --dir ./exports --config config/ingestion.yaml --uploaded-by ops
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

W = 72


def _print_event(event) -> None:
    data = event.to_dict()
    line = f"  [{data['progress']:>3}%] {data['status']}"
    if "currentFile" in data:
        line += f"  {data['currentFile']}"
    if "message" in data:
        line += f"  {data['message']}"
    print(line)


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Import all P&L CSV files in a directory.",
    )
    parser.add_argument("--dir", required=True, help="Directory containing *.csv exports")
    parser.add_argument("--config", default=None, help="Path to ingestion YAML settings")
    parser.add_argument("--uploaded-by", default="import-script", help="Actor recorded on the upload")
    parser.add_argument("--quiet", action="store_true", help="Do not print progress events")
    args = parser.parse_args()

    from pnl_batch.orchestrator import UploadOrchestrator
    from pnl_config import load_settings
    from pnl_kernel.db.engine import create_tables, get_session_factory, init_engine_from_url
    from pnl_kernel.logging_config import configure_logging

    source_dir = Path(args.dir)
    if not source_dir.is_dir():
        print(f"  ERROR: not a directory: {source_dir}", file=sys.stderr)
        return 1

    files = sorted(p for p in source_dir.iterdir() if p.suffix.lower() == ".csv")
    if not files:
        print(f"  No CSV files found in {source_dir}")
        return 1

    settings = load_settings(args.config)
    configure_logging(level=settings.log_level)
    init_engine_from_url(settings.database_url)
    create_tables()

    orchestrator = UploadOrchestrator(get_session_factory(), settings=settings)
    orchestrator.broadcaster.start()
    if not args.quiet:
        orchestrator.broadcaster.subscribe(_print_event)

    session = get_session_factory()()
    try:
        service = orchestrator.upload_service(session)
        staged = [service.stage_file(path) for path in files]
        upload_id = service.begin_upload(staged, uploaded_by=args.uploaded_by)
    finally:
        session.close()

    print(f"  Upload {upload_id}: {len(staged)} file(s)")
    results = orchestrator.worker.tick()
    orchestrator.broadcaster.shutdown()

    if not results:
        print("  Upload failed; see the log for details.", file=sys.stderr)
        return 1

    result = results[0]
    print()
    print("=" * W)
    print("IMPORT SUMMARY".center(W))
    print("=" * W)
    print(f"  Status:            {result.status.value}")
    print(f"  Files processed:   {result.files_processed}")
    print(f"  Records processed: {result.records_processed}")
    print(f"  Clinics:           {', '.join(result.clinics_affected) or '-'}")
    if result.errors:
        print(f"  Errors ({len(result.errors)}):")
        for issue in result.errors:
            where = f"{issue.file} {issue.record}" if issue.record else issue.file
            print(f"    - {where}: {issue.error}")
    if result.warnings:
        print(f"  Warnings: {len(result.warnings)}")
    print()
    return 0 if result.success else 2


if __name__ == "__main__":
    sys.exit(main())
