"""
ORM model for clinic locations.

Clinics are provisioned on first sighting during ingestion (see
``pnl_kernel.services.clinic_resolver``).  They are never deleted; ``active``
marks a location that no longer reports.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pnl_kernel.db.base import TrackedBase

if TYPE_CHECKING:
    from pnl_kernel.models.financial_record import FinancialRecord


class Clinic(TrackedBase):
    """A business location whose monthly P&L is ingested."""

    __tablename__ = "clinics"

    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    financial_records: Mapped[list["FinancialRecord"]] = relationship(
        "FinancialRecord",
        back_populates="clinic",
    )

    def __repr__(self) -> str:
        return f"<Clinic {self.name}>"
