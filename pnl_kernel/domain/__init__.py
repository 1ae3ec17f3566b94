"""Pure domain layer: clock abstraction and the canonical line-item catalogue."""

from pnl_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from pnl_kernel.domain.line_items import (
    FIELD_NAMES,
    LINE_ITEMS,
    LineItem,
    Section,
    fields_in,
    is_field,
    record_values,
)

__all__ = [
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "LineItem",
    "Section",
    "LINE_ITEMS",
    "FIELD_NAMES",
    "fields_in",
    "is_field",
    "record_values",
]
