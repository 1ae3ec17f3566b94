"""
pnl_batch -- durable upload jobs for P&L ingestion.

An upload request persists a ``pending`` UploadHistory and returns at once;
the UploadWorker picks it up and runs the ingestion pipeline detached from
the request.
"""

from pnl_batch.orchestrator import UploadOrchestrator

__all__ = ["UploadOrchestrator"]
