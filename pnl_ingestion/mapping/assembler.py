"""
Record assembly: parsed rows + month columns -> one record per month.

For each month, every data row below the header is resolved through the
label table and its cell parsed as an amount.  A later row for the same
canonical field overwrites an earlier one.  A month whose mapped values are
all zero is treated as "no data" and dropped.
"""

from __future__ import annotations

from decimal import Decimal

from pnl_kernel.logging_config import get_logger

from pnl_ingestion.domain.types import AssembledRecord, AssemblyResult, PnlStructure
from pnl_ingestion.mapping.cells import parse_amount
from pnl_ingestion.mapping.labels import normalize_label, resolve_label

logger = get_logger("ingestion.assembler")


def _mapped_rows(
    rows: list[list[str]],
    first_data_row: int,
) -> tuple[list[tuple[str, list[str]]], list[str]]:
    """Split data rows into (field, row) pairs and unmapped labels."""
    mapped: list[tuple[str, list[str]]] = []
    unmapped: list[str] = []
    for row in rows[first_data_row:]:
        if not row:
            continue
        label = normalize_label(row[0])
        if not label:
            continue
        field = resolve_label(label)
        if field is None:
            if label not in unmapped:
                unmapped.append(label)
            continue
        mapped.append((field, row))
    return mapped, unmapped


def assemble_records(
    rows: list[list[str]],
    structure: PnlStructure,
    *,
    header_row_index: int = 3,
    filename: str | None = None,
) -> AssemblyResult:
    """Build the non-empty monthly records of one file."""
    mapped, unmapped = _mapped_rows(rows, header_row_index + 1)

    for label in unmapped:
        logger.warning("unmapped_label", extra={"label": label, "source_name": filename})

    records: list[AssembledRecord] = []
    for column in structure.months:
        values: dict[str, Decimal] = {}
        for field, row in mapped:
            cell = row[column.column_index] if column.column_index < len(row) else None
            values[field] = parse_amount(cell)

        if not any(amount != 0 for amount in values.values()):
            logger.debug(
                "empty_month_dropped",
                extra={"year": column.year, "month": column.month, "source_name": filename},
            )
            continue

        records.append(
            AssembledRecord(
                clinic_name=structure.clinic_name,
                year=column.year,
                month=column.month,
                values=values,
            )
        )

    return AssemblyResult(records=tuple(records), unmapped_labels=tuple(unmapped))
