"""Ingestion services: upload orchestration and progress fan-out."""

from pnl_ingestion.services.ingestion_service import IngestionService
from pnl_ingestion.services.progress import ProgressBroadcaster

__all__ = ["IngestionService", "ProgressBroadcaster"]
