"""Read access to the DataVersion chain of a clinic."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select

from pnl_kernel.domain.types import VersionSnapshot
from pnl_kernel.models.data_version import DataVersion
from pnl_kernel.selectors.base import BaseSelector


class VersionSelector(BaseSelector):

    def list_versions(
        self,
        clinic_id: UUID,
        year: int | None = None,
        month: int | None = None,
    ) -> list[VersionSnapshot]:
        """Versions of one clinic, ordered year, month, version descending."""
        stmt = select(DataVersion).where(DataVersion.clinic_id == clinic_id)
        if year is not None:
            stmt = stmt.where(DataVersion.year == year)
        if month is not None:
            stmt = stmt.where(DataVersion.month == month)
        stmt = stmt.order_by(
            DataVersion.year.desc(),
            DataVersion.month.desc(),
            DataVersion.version.desc(),
        )
        return [row.to_dto() for row in self.session.execute(stmt).scalars()]
