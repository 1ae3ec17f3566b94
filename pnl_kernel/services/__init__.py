"""Kernel services: clinic resolution and versioned record writes."""

from pnl_kernel.services.clinic_resolver import ClinicResolver, derive_location
from pnl_kernel.services.version_store import KeyLockRegistry, VersionStore

__all__ = [
    "ClinicResolver",
    "derive_location",
    "KeyLockRegistry",
    "VersionStore",
]
