"""
Module: pnl_kernel.services.version_store
Responsibility: Snapshot a FinancialRecord before every overwrite and restore
    any snapshot on demand.
Architecture position: Kernel > Services.  Flushes, never commits.  Callers
    hold ``key_lock`` for the key across their commit.

Invariants enforced:
    - For each (clinic_id, year, month) the stored versions are exactly
      {1..N}; version k+1 links to version k via ``previous_version_id``.
    - A snapshot is a full copy of every canonical field, taken before the
      live row is replaced.
    - Overwrites are full-row replacements (absent fields become 0).
    - A rollback snapshots the live row first, so a rollback is itself
      reversible.
    - Snapshot and replace for one key run under one in-process lock, shared
      by every VersionStore in the process.  The live row is read
      ``FOR UPDATE`` on PostgreSQL.  The unique version constraint catches
      any writer outside this process.

Failure modes:
    - VersionNotFoundError from ``rollback`` for an unknown id; nothing is
      mutated.
    - PersistenceError when a snapshot or write fails in the database
      (constraint violation, data error).  The session must be rolled back
      by the caller.
    - OperationalError / InterfaceError (lost connection, outage) propagate
      unchanged so the caller can treat them as fatal.
    - KeyError from ``overwrite`` for a field outside the catalogue, raised
      before any mutation.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from pnl_kernel.domain.line_items import record_values
from pnl_kernel.domain.types import RollbackResult
from pnl_kernel.exceptions import PersistenceError, VersionNotFoundError
from pnl_kernel.logging_config import get_logger
from pnl_kernel.models.clinic import Clinic
from pnl_kernel.models.data_version import DataVersion
from pnl_kernel.models.financial_record import FinancialRecord
from pnl_kernel.services.base import BaseService

logger = get_logger("services.version_store")

PeriodKey = tuple[UUID, int, int]


class KeyLockRegistry:
    """One re-entrant lock per (clinic_id, year, month)."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[PeriodKey, threading.RLock] = {}

    def lock_for(self, key: PeriodKey) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock


_PROCESS_LOCKS = KeyLockRegistry()


def _key_label(clinic_id: UUID, year: int, month: int) -> str:
    return f"{clinic_id}/{year}-{month:02d}"


class VersionStore(BaseService):
    """Versioned writes and rollback for FinancialRecord rows."""

    def __init__(self, session: Session, locks: KeyLockRegistry | None = None):
        super().__init__(session)
        self._locks = locks or _PROCESS_LOCKS

    # ------------------------------------------------------------------
    # Locking
    # ------------------------------------------------------------------

    @contextmanager
    def key_lock(self, clinic_id: UUID, year: int, month: int) -> Iterator[None]:
        """Hold the process-wide lock for one key (re-entrant)."""
        lock = self._locks.lock_for((clinic_id, year, month))
        with lock:
            yield

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _live_record(self, clinic_id: UUID, year: int, month: int) -> FinancialRecord | None:
        return self.session.execute(
            select(FinancialRecord)
            .where(
                FinancialRecord.clinic_id == clinic_id,
                FinancialRecord.year == year,
                FinancialRecord.month == month,
            )
            .with_for_update()
        ).scalar_one_or_none()

    def _latest_version(self, clinic_id: UUID, year: int, month: int) -> DataVersion | None:
        return self.session.execute(
            select(DataVersion)
            .where(
                DataVersion.clinic_id == clinic_id,
                DataVersion.year == year,
                DataVersion.month == month,
            )
            .order_by(DataVersion.version.desc())
            .limit(1)
        ).scalar_one_or_none()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _snapshot_record(self, record: FinancialRecord, upload_id: UUID | None) -> DataVersion:
        latest = self._latest_version(record.clinic_id, record.year, record.month)
        version = DataVersion(
            clinic_id=record.clinic_id,
            year=record.year,
            month=record.month,
            version=(latest.version if latest is not None else 0) + 1,
            previous_version_id=latest.id if latest is not None else None,
            upload_id=upload_id,
            data={name: str(amount) for name, amount in record.values().items()},
        )
        self.session.add(version)
        self.session.flush()
        logger.info(
            "version_snapshot_created",
            extra={
                "clinic_id": str(record.clinic_id),
                "year": record.year,
                "month": record.month,
                "version": version.version,
                "upload_id": str(upload_id) if upload_id else None,
            },
        )
        return version

    def snapshot(
        self,
        clinic_id: UUID,
        year: int,
        month: int,
        upload_id: UUID | None = None,
    ) -> DataVersion | None:
        """
        Snapshot the live record for a key, if one exists.

        Returns:
            The new DataVersion, or None when there is no live record.

        Raises:
            PersistenceError: If the snapshot cannot be written.
        """
        key = _key_label(clinic_id, year, month)
        with self.key_lock(clinic_id, year, month):
            try:
                record = self._live_record(clinic_id, year, month)
                if record is None:
                    return None
                return self._snapshot_record(record, upload_id)
            except (OperationalError, InterfaceError):
                raise
            except SQLAlchemyError as exc:
                raise PersistenceError("snapshot", key, str(exc)) from exc

    def overwrite(
        self,
        clinic_id: UUID,
        year: int,
        month: int,
        values: Mapping[str, Decimal],
        upload_id: UUID | None = None,
    ) -> FinancialRecord:
        """
        Snapshot the live record (if any) and replace it with *values*.

        Every canonical field missing from *values* is written as 0.

        Returns:
            The live FinancialRecord after the write (flushed).

        Raises:
            KeyError: If *values* names a field outside the catalogue.
            PersistenceError: If the snapshot or write fails.
        """
        full_values = record_values(values)
        key = _key_label(clinic_id, year, month)

        with self.key_lock(clinic_id, year, month):
            try:
                record = self._live_record(clinic_id, year, month)
                if record is not None:
                    self._snapshot_record(record, upload_id)
                else:
                    record = FinancialRecord(
                        clinic_id=clinic_id,
                        year=year,
                        month=month,
                        period_date=date(year, month, 1),
                    )
                    self.session.add(record)
                record.replace_values(full_values)
                self.session.flush()
            except (OperationalError, InterfaceError):
                raise
            except SQLAlchemyError as exc:
                raise PersistenceError("overwrite", key, str(exc)) from exc

        logger.debug("financial_record_written", extra={"key": key})
        return record

    def rollback(self, version_id: UUID | str) -> RollbackResult:
        """
        Restore the live record for a version's key to that version's values.

        The current live values are snapshotted first, as a new version.

        Raises:
            VersionNotFoundError: If *version_id* is unknown.
            PersistenceError: If the snapshot or write fails.
        """
        target = self.get_version(version_id)
        clinic = self.session.get(Clinic, target.clinic_id)

        with self.key_lock(target.clinic_id, target.year, target.month):
            self.overwrite(target.clinic_id, target.year, target.month, target.values())

        logger.info(
            "version_rolled_back",
            extra={
                "version_id": str(target.id),
                "clinic_id": str(target.clinic_id),
                "year": target.year,
                "month": target.month,
                "restored_version": target.version,
            },
        )
        return RollbackResult(
            clinic_id=target.clinic_id,
            clinic_name=clinic.name if clinic is not None else "",
            year=target.year,
            month=target.month,
            version=target.version,
        )

    def get_version(self, version_id: UUID | str) -> DataVersion:
        """
        Load a DataVersion by id.

        Raises:
            VersionNotFoundError: If the id is malformed or unknown.
        """
        try:
            key = version_id if isinstance(version_id, UUID) else UUID(str(version_id))
        except ValueError:
            raise VersionNotFoundError(str(version_id)) from None
        version = self.session.get(DataVersion, key)
        if version is None:
            raise VersionNotFoundError(str(version_id))
        return version
