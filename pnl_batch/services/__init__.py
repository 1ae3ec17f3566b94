"""Upload submission and the background worker."""

from pnl_batch.services.upload_service import UploadService
from pnl_batch.services.worker import UploadWorker

__all__ = ["UploadService", "UploadWorker"]
