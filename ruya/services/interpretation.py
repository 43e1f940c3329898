"""
Interpretation service: admin-side lifecycle of a dream.

pending ──interpret──▶ interpreted ──archive──▶ archived
   └──────────────archive──────────────────────▲

Public API
----------
interpret_dream(db, dream_id, interpretation, interpreted_by, tags, is_public) -> Dream
archive_dream(db, dream_id)                                                  -> Dream
toggle_public(db, dream_id)                                                  -> Dream
add_tags(db, dream_id, tags)                                                 -> Dream

Authorization happens at the HTTP boundary; nothing here checks tokens.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy.orm import Session

from ruya.core.config import settings
from ruya.core.errors import DreamValidationError
from ruya.core.logging import get_logger
from ruya.models.dream import Dream, DreamStatus
from ruya.services.store import get_dream, jload_tags, normalize_tags, update_dream

logger = get_logger(__name__)

INTERPRETATION_MIN = 10


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def _check_tags(tags: Any) -> list[str]:
    if tags is None:
        return []
    if not isinstance(tags, list):
        raise DreamValidationError(["Tags must be a list of strings"])
    return tags


def interpret_dream(
    db: Session,
    dream_id: str,
    interpretation: Optional[str],
    interpreted_by: Optional[str] = None,
    tags: Optional[list[str]] = None,
    is_public: Optional[bool] = None,
) -> Dream:
    """
    Attach (or overwrite) the interpretation of a dream and mark it
    interpreted. Tags and visibility are replaced, not merged.
    """
    if not isinstance(interpretation, str) or not interpretation.strip():
        raise DreamValidationError(["Interpretation is required"])
    if len(interpretation.strip()) < INTERPRETATION_MIN:
        raise DreamValidationError([
            f"Interpretation must be at least {INTERPRETATION_MIN} characters long"
        ])

    interpreter = interpreted_by.strip() if isinstance(interpreted_by, str) else ""

    dream = update_dream(db, dream_id, {
        "interpretation": interpretation,
        "interpreted_by": interpreter or settings.DEFAULT_INTERPRETER,
        "interpreted_at": _utcnow(),
        "status": DreamStatus.interpreted.value,
        "tags": _check_tags(tags),
        "is_public": bool(is_public) if is_public is not None else False,
    })
    logger.info("dream_interpreted", dream_id=dream.id, interpreted_by=dream.interpreted_by)
    return dream


def archive_dream(db: Session, dream_id: str) -> Dream:
    dream = update_dream(db, dream_id, {"status": DreamStatus.archived.value})
    logger.info("dream_archived", dream_id=dream.id)
    return dream


def toggle_public(db: Session, dream_id: str) -> Dream:
    dream = get_dream(db, dream_id)
    return update_dream(db, dream.id, {"is_public": not dream.is_public})


def add_tags(db: Session, dream_id: str, tags: list[str]) -> Dream:
    """Union new tags into the existing set, keeping first-seen order."""
    new_tags = _check_tags(tags)
    dream = get_dream(db, dream_id)
    merged = normalize_tags(jload_tags(dream.tags) + new_tags)
    return update_dream(db, dream.id, {"tags": merged})
