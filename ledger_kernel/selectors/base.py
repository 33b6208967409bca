"""
Module: ledger_kernel.selectors.base
Responsibility: Common base for the read-only port adapters.
Architecture position: Kernel > Selectors.  May import from db/, models/ and
    the domain types the ports return.

Invariants enforced:
    - Read-only: selectors never add, delete, flush or commit.
    - Session ownership stays with the caller.
    - Driver errors surface as ``LookupUnavailableError``; the original
      SQLAlchemy exception is chained as ``__cause__``.
"""

from abc import ABC
from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ledger_kernel.exceptions import LookupUnavailableError
from ledger_kernel.logging_config import get_logger

logger = get_logger("selectors.base")


class BaseSelector(ABC):
    port_name: str = "selector"

    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def _lookup(self, operation: str) -> Generator[None, None, None]:
        try:
            yield
        except SQLAlchemyError as exc:
            logger.error(
                "port_lookup_failed",
                extra={"port": self.port_name, "operation": operation},
                exc_info=True,
            )
            raise LookupUnavailableError(self.port_name, operation, str(exc)) from exc
