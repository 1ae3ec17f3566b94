"""Label normalization, cell parsing and record assembly."""

from pnl_ingestion.mapping.assembler import assemble_records
from pnl_ingestion.mapping.cells import parse_amount
from pnl_ingestion.mapping.labels import LABEL_TABLE, normalize_label, resolve_label

__all__ = [
    "LABEL_TABLE",
    "assemble_records",
    "normalize_label",
    "parse_amount",
    "resolve_label",
]
