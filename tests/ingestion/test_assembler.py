"""Tests for assembling monthly records from parsed rows."""

from decimal import Decimal

from pnl_ingestion.adapters.pnl_csv import parse_structure
from pnl_ingestion.mapping.assembler import assemble_records

PRACTICE = "44500 · Practice Income"
RENT = "67100 · Rent Expense"


def _assemble(rows, filename="katy.csv"):
    structure = parse_structure(rows, filename, organization="American Pain Partners LLC")
    return assemble_records(rows, structure, filename=filename)


class TestAssembleRecords:
    def test_single_month_single_line(self, make_rows):
        rows = make_rows(lines=[(PRACTICE, "1,200.00")])

        result = _assemble(rows)

        assert len(result.records) == 1
        record = result.records[0]
        assert (record.clinic_name, record.year, record.month) == ("Katy", 2024, 1)
        assert record.values == {"practice_income": Decimal("1200.00")}
        assert result.unmapped_labels == ()

    def test_one_record_per_non_empty_month(self, make_rows):
        rows = make_rows(
            months=("Jan 24", "Feb 24", "Mar 24"),
            lines=[(PRACTICE, "100", "0", "300"), (RENT, "10", "", "(30)")],
        )

        result = _assemble(rows)

        assert [r.month for r in result.records] == [1, 3]
        march = result.records[1]
        assert march.values["practice_income"] == Decimal("300")
        assert march.values["rent_expense"] == Decimal("-30")

    def test_all_zero_month_is_dropped(self, make_rows):
        rows = make_rows(lines=[(PRACTICE, "0.00"), (RENT, "-")])
        assert _assemble(rows).records == ()

    def test_later_row_wins_for_duplicate_field(self, make_rows):
        rows = make_rows(lines=[(PRACTICE, "100"), ("44500 \ufffd Practice Income", "250")])

        record = _assemble(rows).records[0]

        assert record.values["practice_income"] == Decimal("250")

    def test_missing_cell_is_zero(self, make_rows):
        rows = make_rows(months=("Jan 24", "Feb 24"), lines=[(PRACTICE, "5", "7")])
        rows.append([RENT, "3"])

        records = _assemble(rows).records

        assert records[0].values["rent_expense"] == Decimal("3")
        assert records[1].values["rent_expense"] == Decimal("0")

    def test_unmapped_labels_reported_once(self, make_rows, captured_logs):
        rows = make_rows(
            months=("Jan 24", "Feb 24"),
            lines=[
                (PRACTICE, "1", "1"),
                ("Ordinary Income/Expense", "", ""),
                ("Ordinary Income/Expense", "", ""),
            ],
        )

        result = _assemble(rows)

        assert result.unmapped_labels == ("Ordinary Income/Expense",)
        warnings = [r for r in captured_logs() if r["message"] == "unmapped_label"]
        assert len(warnings) == 1
        assert warnings[0]["source_name"] == "katy.csv"

    def test_no_month_columns_yields_no_records(self, make_rows):
        rows = make_rows(months=("Total",), lines=[(PRACTICE, "5")])
        assert _assemble(rows).records == ()
