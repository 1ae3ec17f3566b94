"""
ORM model for point-in-time snapshots of a FinancialRecord.

Contract:
    A DataVersion is written once by ``VersionStore`` immediately before the
    live record for its key is overwritten, and never mutated or deleted.

Invariants enforced:
    - (clinic_id, year, month, version) is UNIQUE, so a second writer racing
      for the same version number fails instead of forking the chain.
    - ``data`` holds every canonical field as a decimal string.
    - ``previous_version_id`` points at version - 1 of the same key, or is
      NULL for version 1.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import ForeignKey, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSON
from sqlalchemy.orm import Mapped, mapped_column

from pnl_kernel.db.base import TrackedBase, UUIDString

if TYPE_CHECKING:
    from pnl_kernel.domain.types import VersionSnapshot


class DataVersion(TrackedBase):
    """Immutable snapshot of one clinic-month's values."""

    __tablename__ = "data_versions"

    __table_args__ = (
        UniqueConstraint(
            "clinic_id", "year", "month", "version",
            name="uq_data_version_key_version",
        ),
        Index("idx_data_version_key", "clinic_id", "year", "month"),
    )

    clinic_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("clinics.id"),
        nullable=False,
    )
    year: Mapped[int] = mapped_column(nullable=False)
    month: Mapped[int] = mapped_column(nullable=False)
    version: Mapped[int] = mapped_column(nullable=False)
    previous_version_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("data_versions.id"),
        nullable=True,
    )
    upload_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("upload_history.id"),
        nullable=True,
    )
    data: Mapped[dict] = mapped_column(JSON, nullable=False)

    def __repr__(self) -> str:
        return f"<DataVersion {self.clinic_id} {self.year}-{self.month:02d} v{self.version}>"

    def values(self) -> dict[str, Decimal]:
        """Stored field values as Decimals."""
        return {name: Decimal(amount) for name, amount in self.data.items()}

    def to_dto(self) -> VersionSnapshot:
        from pnl_kernel.domain.types import VersionSnapshot

        return VersionSnapshot(
            version_id=self.id,
            clinic_id=self.clinic_id,
            year=self.year,
            month=self.month,
            version=self.version,
            previous_version_id=self.previous_version_id,
            upload_id=self.upload_id,
            data=self.values(),
            created_at=self.created_at,
        )
