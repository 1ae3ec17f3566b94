"""
pnl_ingestion -- monthly P&L CSV ingestion.

Parses positional P&L exports, maps their line-item labels onto the
canonical catalogue, and writes one versioned FinancialRecord per
clinic-month through the kernel's VersionStore.

Architecture:
    pnl_ingestion/ is a top-level package above pnl_kernel.  Nothing in the
    kernel imports from ingestion.
"""
