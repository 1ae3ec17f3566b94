"""
ClinicResolver -- map a display name to a persisted Clinic.

Lookup order:
    1. exact name match;
    2. case-insensitive containment (an existing clinic whose name contains
       the incoming name);
    3. create a new active clinic.

New clinics get ``location`` = the text after the last hyphen of the name,
trimmed, or the full name when there is no hyphen.  Ingestion therefore
needs no separate clinic-setup step for a new location.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import InterfaceError, OperationalError, SQLAlchemyError

from pnl_kernel.exceptions import PersistenceError
from pnl_kernel.logging_config import get_logger
from pnl_kernel.models.clinic import Clinic
from pnl_kernel.services.base import BaseService

logger = get_logger("services.clinic_resolver")


def derive_location(name: str) -> str:
    """Text after the last hyphen, else the whole name."""
    if "-" in name:
        tail = name.rsplit("-", 1)[1].strip()
        if tail:
            return tail
    return name.strip()


class ClinicResolver(BaseService):
    """Resolve or provision clinics by display name.  Flushes, never commits."""

    def find(self, name: str) -> Clinic | None:
        clinic = self.session.execute(
            select(Clinic).where(Clinic.name == name)
        ).scalar_one_or_none()
        if clinic is not None:
            return clinic

        return self.session.execute(
            select(Clinic)
            .where(Clinic.name.icontains(name, autoescape=True))
            .order_by(Clinic.name)
            .limit(1)
        ).scalar_one_or_none()

    def resolve(self, name: str) -> Clinic:
        """
        Return the clinic for *name*, creating it if no match exists.

        Args:
            name: Clinic display name as extracted from the source file.

        Returns:
            A persisted (flushed) Clinic.

        Raises:
            PersistenceError: If the new clinic cannot be flushed.
        """
        clinic = self.find(name)
        if clinic is not None:
            if clinic.name != name:
                logger.info(
                    "clinic_matched_by_containment",
                    extra={"requested_name": name, "clinic_name": clinic.name},
                )
            return clinic

        clinic = Clinic(name=name, location=derive_location(name), active=True)
        self.session.add(clinic)
        try:
            self.session.flush()
        except (OperationalError, InterfaceError):
            raise
        except SQLAlchemyError as exc:
            raise PersistenceError("resolve_clinic", name, str(exc)) from exc
        logger.info(
            "clinic_created",
            extra={"clinic_id": str(clinic.id), "clinic_name": name, "location": clinic.location},
        )
        return clinic
