"""
Record validators for assembled P&L records.

``validate_record`` returns hard errors: a failing record is skipped and
reported.  ``check_derived_totals`` returns warnings only: the values are
stored as given.

Architecture: pnl_ingestion/domain. ZERO I/O.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal

from pnl_ingestion.domain.types import AssembledRecord

DERIVED_TOTAL_TOLERANCE = Decimal("0.01")

# result field -> (added fields, subtracted fields)
DERIVED_TOTALS: dict[str, tuple[tuple[str, ...], tuple[str, ...]]] = {
    "net_ordinary_income": (("gross_profit",), ("total_expenses",)),
    "net_income": (
        ("net_ordinary_income", "interest_income"),
        (
            "depreciation_expense",
            "management_fee_paid",
            "interest_expense",
            "corporate_admin_fee",
            "other_expenses",
        ),
    ),
}


def validate_record(
    record: AssembledRecord,
    min_year: int = 2020,
    max_year: int = 2030,
) -> list[str]:
    """Field constraints for one record.  Empty list means valid."""
    errors: list[str] = []
    if not record.clinic_name or not record.clinic_name.strip():
        errors.append("Clinic name is required")
    if not min_year <= record.year <= max_year:
        errors.append(
            f"Invalid year: {record.year}. Must be between {min_year} and {max_year}"
        )
    if not 1 <= record.month <= 12:
        errors.append(f"Invalid month: {record.month}. Must be between 1 and 12")
    return errors


def check_derived_totals(values: Mapping[str, Decimal]) -> list[str]:
    """
    Compare reported totals with the totals derived from their components.

    Only totals present in *values* are checked.  Missing components count
    as zero.
    """
    warnings: list[str] = []
    for total_field, (added, subtracted) in DERIVED_TOTALS.items():
        if total_field not in values:
            continue
        expected = sum((values.get(f, Decimal(0)) for f in added), Decimal(0)) - sum(
            (values.get(f, Decimal(0)) for f in subtracted), Decimal(0)
        )
        reported = values[total_field]
        if abs(reported - expected) > DERIVED_TOTAL_TOLERANCE:
            warnings.append(
                f"{total_field} is {reported}, components give {expected}"
            )
    return warnings
