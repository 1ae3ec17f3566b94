"""
Frozen settings dataclass for the ingestion pipeline.

Every field has a default, so an empty YAML file yields a working local
configuration (in-memory SQLite, ``./uploads``).
"""

from __future__ import annotations

from dataclasses import dataclass, fields


@dataclass(frozen=True)
class IngestionSettings:
    """Runtime settings for parsing, validation, storage and the worker."""

    database_url: str = "sqlite://"
    upload_dir: str = "uploads"

    # Source layout
    organization_name: str = "American Pain Partners LLC"
    min_rows: int = 5
    header_row_index: int = 3
    first_data_column: int = 1
    column_stride: int = 2

    # Record validation
    min_year: int = 2020
    max_year: int = 2030

    # Worker / logging
    worker_poll_seconds: float = 2.0
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.min_rows < self.header_row_index + 1:
            raise ValueError(
                f"min_rows ({self.min_rows}) must exceed header_row_index ({self.header_row_index})"
            )
        if self.column_stride < 1:
            raise ValueError(f"column_stride must be >= 1, got {self.column_stride}")
        if self.first_data_column < 1:
            raise ValueError(f"first_data_column must be >= 1, got {self.first_data_column}")
        if self.min_year > self.max_year:
            raise ValueError(f"min_year {self.min_year} > max_year {self.max_year}")
        if self.worker_poll_seconds <= 0:
            raise ValueError("worker_poll_seconds must be positive")

    @classmethod
    def field_names(cls) -> frozenset[str]:
        return frozenset(f.name for f in fields(cls))
