# ridelog/DB/transaction.py
"""
Commit helper shared by the repositories.

A failed commit rolls the session back and surfaces as PersistenceError so the
API layer answers 500 instead of leaking driver exceptions. Nothing is retried.
"""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ridelog.Core import log_ws
from ridelog.Core.errors import PersistenceError


def commit_or_raise(DB: Session, action: str) -> None:
    try:
        DB.commit()
    except SQLAlchemyError as e:
        DB.rollback()
        log_ws.log_from_thread(f"[DB] Commit failed ({action}): {e}", msg_type="error")
        raise PersistenceError(
            f"Could not persist changes: {action}",
            context={"action": action}
        ) from e
