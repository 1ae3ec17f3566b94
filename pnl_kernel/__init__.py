"""
P&L Kernel - persistence core for clinic profit-and-loss data.

- Canonical line-item catalogue
- Clinic identity resolution
- Point-in-time versioning with rollback
- Structured logging and typed exceptions
"""

__version__ = "0.1.0"
