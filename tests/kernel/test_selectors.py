"""Tests for the read-only upload and version selectors."""

from datetime import datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from pnl_kernel.domain.types import UploadStatus
from pnl_kernel.exceptions import UploadNotFoundError
from pnl_kernel.models.clinic import Clinic
from pnl_kernel.models.upload_history import UploadHistory
from pnl_kernel.selectors import UploadSelector, VersionSelector
from pnl_kernel.services.version_store import VersionStore


def _upload(session, name, created_at, status="completed"):
    upload = UploadHistory(
        filename=name,
        original_name=name,
        file_size=10,
        uploaded_by="tester",
        status=status,
        upload_metadata={"file_count": 1},
        created_at=created_at,
        updated_at=created_at,
    )
    session.add(upload)
    session.flush()
    return upload


class TestUploadSelector:
    def test_lists_newest_first(self, session):
        base = datetime(2026, 1, 1, 9, 0, 0)
        for i in range(3):
            _upload(session, f"file{i}.csv", base + timedelta(minutes=i))

        page = UploadSelector(session).list_uploads()

        assert [u.original_name for u in page.uploads] == [
            "file2.csv", "file1.csv", "file0.csv",
        ]
        assert page.total == 3
        assert page.pages == 1

    def test_pagination(self, session):
        base = datetime(2026, 1, 1, 9, 0, 0)
        for i in range(5):
            _upload(session, f"file{i}.csv", base + timedelta(minutes=i))

        page = UploadSelector(session).list_uploads(page=2, limit=2)

        assert [u.original_name for u in page.uploads] == ["file2.csv", "file1.csv"]
        assert page.total == 5
        assert page.pages == 3

    def test_page_below_one_is_first_page(self, session):
        _upload(session, "only.csv", datetime(2026, 1, 1))
        page = UploadSelector(session).list_uploads(page=0)
        assert page.page == 1
        assert len(page.uploads) == 1

    def test_get_upload_returns_summary(self, session):
        upload = _upload(session, "a.csv", datetime(2026, 1, 1), status="pending")

        summary = UploadSelector(session).get_upload(upload.id)

        assert summary.upload_id == upload.id
        assert summary.status is UploadStatus.PENDING
        assert summary.metadata == {"file_count": 1}

    def test_get_unknown_upload(self, session):
        with pytest.raises(UploadNotFoundError):
            UploadSelector(session).get_upload(uuid4())


class TestVersionSelector:
    @pytest.fixture
    def clinic(self, session):
        c = Clinic(name="Katy", location="Katy")
        session.add(c)
        session.flush()
        return c

    def test_lists_versions_descending(self, session, clinic):
        store = VersionStore(session)
        for month in (1, 2):
            for amount in ("1", "2", "3"):
                store.overwrite(clinic.id, 2024, month, {"practice_income": Decimal(amount)})

        versions = VersionSelector(session).list_versions(clinic.id)

        assert [(v.month, v.version) for v in versions] == [
            (2, 2), (2, 1), (1, 2), (1, 1),
        ]
        assert versions[-1].data["practice_income"] == Decimal("1")

    def test_filters_by_month(self, session, clinic):
        store = VersionStore(session)
        for month in (1, 2):
            store.overwrite(clinic.id, 2024, month, {"practice_income": Decimal("1")})
            store.overwrite(clinic.id, 2024, month, {"practice_income": Decimal("2")})

        versions = VersionSelector(session).list_versions(clinic.id, year=2024, month=1)

        assert [(v.month, v.version) for v in versions] == [(1, 1)]

    def test_unknown_clinic_has_no_versions(self, session):
        assert VersionSelector(session).list_versions(uuid4()) == []
