"""ORM models.  Importing this package registers every table on Base.metadata."""

from pnl_kernel.models.clinic import Clinic
from pnl_kernel.models.data_version import DataVersion
from pnl_kernel.models.financial_record import FinancialRecord
from pnl_kernel.models.upload_history import UploadHistory

__all__ = [
    "Clinic",
    "FinancialRecord",
    "DataVersion",
    "UploadHistory",
]
