"""Tests for the canonical line-item catalogue and the FinancialRecord columns."""

from decimal import Decimal

import pytest
from sqlalchemy import Numeric, inspect

from pnl_kernel.domain.line_items import (
    FIELD_NAMES,
    LINE_ITEMS,
    Section,
    fields_in,
    is_field,
    record_values,
)
from pnl_kernel.models.financial_record import FinancialRecord

_NON_AMOUNT_COLUMNS = {
    "id", "clinic_id", "year", "month", "period_date", "created_at", "updated_at",
}


class TestCatalogue:
    def test_field_names_are_unique(self):
        assert len(FIELD_NAMES) == len(set(FIELD_NAMES))

    def test_every_section_has_items(self):
        for section in Section:
            assert fields_in(section), section

    def test_derived_totals_are_marked_as_totals(self):
        totals = {item.field for item in LINE_ITEMS if item.is_total}
        assert {
            "total_income",
            "total_cogs",
            "gross_profit",
            "total_expenses",
            "net_ordinary_income",
            "net_income",
        } <= totals

    def test_is_field(self):
        assert is_field("practice_income")
        assert not is_field("practiceIncome")


class TestRecordValues:
    def test_fills_absent_fields_with_zero(self):
        values = record_values({"practice_income": Decimal("1200")})
        assert set(values) == set(FIELD_NAMES)
        assert values["practice_income"] == Decimal("1200")
        assert values["net_income"] == Decimal("0")

    def test_unknown_field_raises_key_error(self):
        with pytest.raises(KeyError, match="bogus_field"):
            record_values({"bogus_field": Decimal("1")})


class TestFinancialRecordColumns:
    """The model declares exactly one amount column per canonical field."""

    def test_amount_columns_match_catalogue(self):
        columns = {c.key for c in inspect(FinancialRecord).columns}
        assert columns - _NON_AMOUNT_COLUMNS == set(FIELD_NAMES)

    def test_amount_columns_are_numeric(self):
        table = FinancialRecord.__table__
        for name in FIELD_NAMES:
            column_type = table.c[name].type
            assert isinstance(column_type, Numeric)
            assert column_type.scale == 9

    def test_replace_values_is_a_full_replace(self):
        record = FinancialRecord(year=2024, month=1)
        record.replace_values({"practice_income": Decimal("5"), "net_income": Decimal("5")})
        record.replace_values({"practice_income": Decimal("7")})
        assert record.practice_income == Decimal("7")
        assert record.net_income == Decimal("0")
