"""
Record store for dreams.

Rules:
- Every write validates the whole record first; nothing is flushed on failure.
- `id` and `submitted_at` are immutable once created.
- SQLAlchemy errors never escape: they are logged, rolled back and raised
  as StoreUnavailableError.
- db.commit() only in the public functions of this module.

Public API
----------
create_dream(db, fields)                       -> Dream
get_dream(db, dream_id)                        -> Dream
update_dream(db, dream_id, patch)              -> Dream
delete_dream(db, dream_id)                     -> bool
query_dreams(db, filters, sort, skip, limit)   -> tuple[list[Dream], int]
count_by_status(db)                            -> StatusCounts
"""
from __future__ import annotations

import json
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterator, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ruya.core.errors import DreamNotFoundError, DreamValidationError, StoreUnavailableError
from ruya.core.logging import get_logger
from ruya.models.dream import Dream, DreamStatus, Gender, MaritalStatus

logger = get_logger(__name__)

NAME_MAX = 100
DREAM_MIN = 10
DREAM_MAX = 5000
INTERPRETATION_MAX = 10_000
INTERPRETER_MAX = 100
TAG_MAX = 50

_IMMUTABLE_FIELDS = ("id", "submitted_at")
_MUTABLE_FIELDS = (
    "name",
    "gender",
    "marital_status",
    "dream",
    "ip_address",
    "interpretation",
    "interpreted_at",
    "interpreted_by",
    "status",
    "tags",
    "is_public",
)


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------

@dataclass
class DreamFilter:
    """Conjunctive predicates; None means "don't filter on this field"."""
    gender: Optional[str] = None
    marital_status: Optional[str] = None
    status: Optional[str] = None
    is_public: Optional[bool] = None
    search: Optional[str] = None


@dataclass
class DreamSort:
    field: str = "submitted_at"
    descending: bool = True


@dataclass
class StatusCounts:
    pending: int = 0
    interpreted: int = 0
    archived: int = 0
    total: int = 0


# ---------------------------------------------------------------------------
# Tiny utilities
# ---------------------------------------------------------------------------

def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def _ev(v) -> str:
    """Return bare string value from a str-enum or plain str."""
    return v.value if hasattr(v, "value") else str(v)


def _jdump(items: list[str]) -> str:
    return json.dumps(items, ensure_ascii=False)


def jload_tags(text: Optional[str]) -> list[str]:
    if not text:
        return []
    try:
        result = json.loads(text)
        return result if isinstance(result, list) else []
    except (ValueError, TypeError):
        return []


def normalize_id(raw: Any) -> Optional[str]:
    """Canonical 32-char hex form of a dream id, or None if malformed."""
    if not isinstance(raw, str):
        return None
    try:
        return uuid.UUID(raw.strip()).hex
    except ValueError:
        return None


def normalize_tags(tags: Any) -> list[str]:
    """Trim, drop empties and de-duplicate while keeping first-seen order."""
    if not tags:
        return []
    cleaned = [t.strip() if isinstance(t, str) else t for t in tags]
    return list(dict.fromkeys(t for t in cleaned if t != ""))


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


# ---------------------------------------------------------------------------
# Validation (pure - no DB access)
# ---------------------------------------------------------------------------

def validate_record(values: dict[str, Any]) -> list[str]:
    """
    Check a full, normalized record against every field constraint.
    Returns the list of violations (empty when valid).
    """
    errors: list[str] = []

    name = values.get("name")
    if not isinstance(name, str) or not name:
        errors.append("Name is required")
    elif len(name) > NAME_MAX:
        errors.append(f"Name cannot exceed {NAME_MAX} characters")

    if _ev(values.get("gender")) not in {g.value for g in Gender}:
        errors.append("Gender must be either male or female")

    if _ev(values.get("marital_status")) not in {m.value for m in MaritalStatus}:
        errors.append("Marital status must be either single or married")

    dream = values.get("dream")
    if not isinstance(dream, str) or not dream:
        errors.append("Dream description is required")
    elif len(dream) < DREAM_MIN:
        errors.append(f"Dream description must be at least {DREAM_MIN} characters")
    elif len(dream) > DREAM_MAX:
        errors.append(f"Dream description cannot exceed {DREAM_MAX} characters")

    interpretation = values.get("interpretation")
    if interpretation is not None:
        if not isinstance(interpretation, str):
            errors.append("Interpretation must be text")
        elif len(interpretation) > INTERPRETATION_MAX:
            errors.append(f"Interpretation cannot exceed {INTERPRETATION_MAX} characters")

    interpreted_by = values.get("interpreted_by")
    if interpreted_by is not None and (
        not isinstance(interpreted_by, str) or len(interpreted_by) > INTERPRETER_MAX
    ):
        errors.append(f"Interpreter name cannot exceed {INTERPRETER_MAX} characters")

    tags = values.get("tags") or []
    if any(not isinstance(t, str) for t in tags):
        errors.append("Tags must be text")
    elif any(len(t) > TAG_MAX for t in tags):
        errors.append(f"Tag cannot exceed {TAG_MAX} characters")

    if not isinstance(values.get("is_public"), bool):
        errors.append("isPublic must be a boolean")

    status = _ev(values.get("status"))
    if status not in {s.value for s in DreamStatus}:
        errors.append("Status must be pending, interpreted, or archived")
    elif status == DreamStatus.interpreted.value:
        if not interpretation or values.get("interpreted_at") is None or not interpreted_by:
            errors.append(
                "Interpreted dreams require interpretation, interpretedAt and interpretedBy"
            )
    elif status == DreamStatus.pending.value and interpretation:
        errors.append("Pending dreams cannot carry an interpretation")

    return errors


def _normalize(values: dict[str, Any]) -> dict[str, Any]:
    out = dict(values)
    for key in ("name", "dream", "interpretation", "interpreted_by", "ip_address"):
        if key in out:
            out[key] = _strip(out[key])
    if "tags" in out:
        out["tags"] = normalize_tags(out["tags"])
    return out


def _current_values(dream: Dream) -> dict[str, Any]:
    values = {key: getattr(dream, key) for key in _MUTABLE_FIELDS}
    values["tags"] = jload_tags(dream.tags)
    return values


# ---------------------------------------------------------------------------
# Error boundary
# ---------------------------------------------------------------------------

@contextmanager
def _store_call(db: Session, operation: str, **context) -> Iterator[None]:
    """Roll back, log and translate any driver/ORM failure."""
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(
            "store_operation_failed",
            operation=operation,
            error_type=type(exc).__name__,
            error=str(exc),
            **context,
        )
        raise StoreUnavailableError() from exc


def _load(db: Session, dream_id: Any) -> Dream:
    key = normalize_id(dream_id)
    if key is None:
        raise DreamNotFoundError(dream_id=str(dream_id))
    dream = db.get(Dream, key)
    if dream is None:
        raise DreamNotFoundError(dream_id=key)
    return dream


# ---------------------------------------------------------------------------
# Public - CRUD
# ---------------------------------------------------------------------------

def create_dream(db: Session, fields: dict[str, Any]) -> Dream:
    """
    Insert a new dream. `id` and `submitted_at` are always assigned here;
    any caller-supplied values for them are ignored.
    """
    unknown = [k for k in fields if k not in _MUTABLE_FIELDS + _IMMUTABLE_FIELDS]
    if unknown:
        raise DreamValidationError([f"Unknown field: {k}" for k in unknown])

    values: dict[str, Any] = {
        "ip_address": "unknown",
        "interpretation": None,
        "interpreted_at": None,
        "interpreted_by": None,
        "status": DreamStatus.pending.value,
        "tags": [],
        "is_public": False,
    }
    values.update({k: v for k, v in fields.items() if k not in _IMMUTABLE_FIELDS})
    values = _normalize(values)
    if not values.get("ip_address"):
        values["ip_address"] = "unknown"

    errors = validate_record(values)
    if errors:
        raise DreamValidationError(errors)

    now = _utcnow()
    dream = Dream(
        id=uuid.uuid4().hex,
        submitted_at=now,
        updated_at=now,
        **{**values, "tags": _jdump(values["tags"])},
    )
    with _store_call(db, "create"):
        db.add(dream)
        db.commit()
        db.refresh(dream)
    return dream


def get_dream(db: Session, dream_id: Any) -> Dream:
    with _store_call(db, "get", dream_id=str(dream_id)):
        return _load(db, dream_id)


def update_dream(db: Session, dream_id: Any, patch: dict[str, Any]) -> Dream:
    """
    Apply a partial update. The merged record is validated before anything
    is written, so a rejected patch leaves the row untouched.
    """
    immutable = [k for k in patch if k in _IMMUTABLE_FIELDS]
    if immutable:
        raise DreamValidationError([f"{k} cannot be changed" for k in immutable])
    unknown = [k for k in patch if k not in _MUTABLE_FIELDS]
    if unknown:
        raise DreamValidationError([f"Unknown field: {k}" for k in unknown])

    with _store_call(db, "update", dream_id=str(dream_id)):
        dream = _load(db, dream_id)
        merged = _current_values(dream)
        merged.update(_normalize(patch))

        errors = validate_record(merged)
        if errors:
            raise DreamValidationError(errors)

        for key in patch:
            value = merged[key]
            setattr(dream, key, _jdump(value) if key == "tags" else value)
        db.commit()
        db.refresh(dream)
    return dream


def delete_dream(db: Session, dream_id: Any) -> bool:
    key = normalize_id(dream_id)
    if key is None:
        return False
    with _store_call(db, "delete", dream_id=key):
        dream = db.get(Dream, key)
        if dream is None:
            return False
        db.delete(dream)
        db.commit()
    return True


# ---------------------------------------------------------------------------
# Public - queries
# ---------------------------------------------------------------------------

def _apply_filters(q, filters: DreamFilter):
    if filters.gender:
        q = q.filter(Dream.gender == filters.gender)
    if filters.marital_status:
        q = q.filter(Dream.marital_status == filters.marital_status)
    if filters.status:
        q = q.filter(Dream.status == filters.status)
    if filters.is_public is not None:
        q = q.filter(Dream.is_public == filters.is_public)
    if filters.search:
        pattern = f"%{_escape_like(filters.search)}%"
        q = q.filter(
            or_(
                Dream.name.ilike(pattern, escape="\\"),
                Dream.dream.ilike(pattern, escape="\\"),
                Dream.interpretation.ilike(pattern, escape="\\"),
            )
        )
    return q


def query_dreams(
    db: Session,
    filters: DreamFilter,
    sort: DreamSort,
    skip: int = 0,
    limit: int = 10,
) -> tuple[list[Dream], int]:
    """Return (page, total_matching) with ties broken by id."""
    column = getattr(Dream, sort.field)
    primary = column.desc() if sort.descending else column.asc()
    tiebreak = Dream.id.desc() if sort.descending else Dream.id.asc()

    with _store_call(db, "query"):
        q = _apply_filters(db.query(Dream), filters)
        total = q.count()
        items = q.order_by(primary, tiebreak).offset(skip).limit(limit).all()
    return items, total


def count_by_status(db: Session) -> StatusCounts:
    """Counts across the whole collection, ignoring any filter."""
    with _store_call(db, "count_by_status"):
        rows = db.query(Dream.status, func.count(Dream.id)).group_by(Dream.status).all()

    counts = StatusCounts()
    for status, n in rows:
        setattr(counts, _ev(status), n)
    counts.total = counts.pending + counts.interpreted + counts.archived
    return counts
