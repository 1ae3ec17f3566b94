"""
Module: pnl_kernel.selectors.base
Responsibility: Base class for read-only query selectors.
Architecture position: Kernel > Selectors.  May import from db/ and models/.

Invariants enforced:
    - Selectors never add, delete, flush or commit.
    - Selectors return frozen DTOs, not ORM instances.
    - The caller owns the session and its transaction scope.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseSelector(ABC):
    """Read-only access over a caller-owned session."""

    def __init__(self, session: Session):
        self.session = session
