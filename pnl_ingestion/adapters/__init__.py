"""Source adapters."""

from pnl_ingestion.adapters.pnl_csv import parse_month_header, parse_structure, read_rows

__all__ = ["parse_month_header", "parse_structure", "read_rows"]
