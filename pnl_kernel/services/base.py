"""
BaseService -- abstract base for the kernel services.

Responsibility:
    Common constructor and session-handling contract.  Concrete services
    receive a SQLAlchemy ``Session`` and persist with ``session.flush()``,
    never ``session.commit()``.

Invariants enforced:
    - Transaction boundaries belong to the caller.  The ingestion service
      commits once per record; the upload service commits once per rollback.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseService(ABC):
    """
    Abstract base class for kernel services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``.
    """

    def __init__(self, session: Session):
        self.session = session
