"""Read-only selectors over upload history and version chains."""

from pnl_kernel.selectors.base import BaseSelector
from pnl_kernel.selectors.upload_selector import UploadPage, UploadSelector
from pnl_kernel.selectors.version_selector import VersionSelector

__all__ = [
    "BaseSelector",
    "UploadPage",
    "UploadSelector",
    "VersionSelector",
]
