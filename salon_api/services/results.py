"""Uniform success/failure envelope returned by every service operation."""

import logging
from typing import Any, Literal

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

FailureReason = Literal['persistence', 'capacity', 'not_found', 'invalid', 'forbidden', 'conflict', 'unauthorized']


class ActionResult(BaseModel):
    success: bool
    message: str | None = None
    data: Any = None
    reason: FailureReason | None = None


def ok(data: Any = None, message: str | None = None) -> ActionResult:
    return ActionResult(success=True, data=data, message=message)


def fail(message: str, reason: FailureReason, data: Any = None) -> ActionResult:
    return ActionResult(success=False, message=message, reason=reason, data=data)


def persistence_failure(db: Session, exc: SQLAlchemyError, operation: str) -> ActionResult:
    db.rollback()
    logger.exception('Persistence error during %s', operation)
    message = str(getattr(exc, 'orig', None) or exc)
    return fail(message, 'persistence')
