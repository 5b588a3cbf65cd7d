"""Human-readable sequential identifiers (COMP000001, ASS000001, REP000001).

The next number is recomputed from storage on every attempt and the insert runs
inside a savepoint, so a collision with a concurrent creator rolls back only the
failed insert and the caller retries with a fresh value.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import InstrumentedAttribute, Session

from apps.api.app.core.errors import PersistenceError
from apps.api.app.services.audit import log_structured_event

logger = logging.getLogger(__name__)

COMPANY_ID_PREFIX = "COMP"
ASSESSMENT_ID_PREFIX = "ASS"
REPORT_ID_PREFIX = "REP"
ID_WIDTH = 6

ModelT = TypeVar("ModelT")


def format_sequential_id(prefix: str, number: int, *, width: int = ID_WIDTH) -> str:
    return f"{prefix}{number:0{width}d}"


def parse_sequential_number(prefix: str, value: str | None) -> int | None:
    if not value or not value.startswith(prefix):
        return None
    digits = value[len(prefix) :]
    return int(digits) if digits.isdigit() else None


def next_sequential_id(
    db: Session, column: InstrumentedAttribute[Any], prefix: str, *, width: int = ID_WIDTH
) -> str:
    """Largest stored number for the prefix plus one."""
    latest = db.scalar(
        select(column)
        .where(column.like(f"{prefix}%"))
        .order_by(func.length(column).desc(), column.desc())
        .limit(1)
    )
    current = parse_sequential_number(prefix, latest) or 0
    return format_sequential_id(prefix, current + 1, width=width)


def _identifier_taken(db: Session, column: InstrumentedAttribute[Any], candidate: str) -> bool:
    return db.scalar(select(func.count()).where(column == candidate)) > 0


def allocate_sequential_id(
    db: Session,
    instance: ModelT,
    *,
    column: InstrumentedAttribute[Any],
    prefix: str,
    max_attempts: int,
) -> ModelT:
    """Assign the next id to `instance`, insert it and flush; retry on id collisions."""
    attribute = column.key
    last_candidate = ""
    for attempt in range(1, max_attempts + 1):
        candidate = next_sequential_id(db, column, prefix)
        last_candidate = candidate
        setattr(instance, attribute, candidate)
        savepoint = db.begin_nested()
        try:
            db.add(instance)
            db.flush()
        except IntegrityError as exc:
            savepoint.rollback()
            if not _identifier_taken(db, column, candidate):
                raise PersistenceError(
                    f"could not persist {type(instance).__name__}: {exc.orig}"
                ) from exc
            logger.warning(
                "sequential id collision on %s (attempt %s/%s)", candidate, attempt, max_attempts
            )
            log_structured_event(
                "identifier.collision",
                prefix=prefix,
                candidate=candidate,
                attempt=attempt,
            )
            continue
        savepoint.commit()
        return instance

    raise PersistenceError(
        f"could not allocate a unique {prefix} identifier after {max_attempts} attempts "
        f"(last candidate {last_candidate})"
    )
