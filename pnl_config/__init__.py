"""
pnl_config -- settings for the P&L ingestion pipeline.

``load_settings()`` is the one place that reads configuration files and
environment variables.  Everything else receives an ``IngestionSettings``.
"""

from pnl_config.loader import load_settings, parse_settings
from pnl_config.schema import IngestionSettings

__all__ = ["IngestionSettings", "load_settings", "parse_settings"]
