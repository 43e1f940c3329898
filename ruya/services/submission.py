"""
Submission service: validates, rate-limits and stores public dream submissions.

Public API
----------
validate_submission(submission, policy)                         -> list[str]
submit_dream(db, submission, client_address, limiter, policy)   -> Dream

Order of checks: validation (no side effects) → rate limit → store.
Only accepted submissions consume rate-limit quota.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.orm import Session

from ruya.core.config import settings
from ruya.core.errors import DreamValidationError, RateLimitedError
from ruya.core.logging import get_logger
from ruya.models.dream import Dream, DreamStatus, Gender, MaritalStatus
from ruya.services.moderation import AllowAllPolicy, ContentPolicy, DenylistPolicy
from ruya.services.rate_limit import FixedWindowRateLimiter
from ruya.services.store import DREAM_MAX, DREAM_MIN, NAME_MAX, create_dream

logger = get_logger(__name__)

NAME_MIN = 2


@dataclass
class Submission:
    """Raw public form input; fields may be missing or of the wrong type."""
    name: Any = None
    gender: Any = None
    marital_status: Any = None
    dream: Any = None


def default_policy() -> ContentPolicy:
    terms = settings.blocked_terms_list
    return DenylistPolicy(terms) if terms else AllowAllPolicy()


def validate_submission(
    submission: Submission,
    policy: Optional[ContentPolicy] = None,
) -> list[str]:
    """Return every violated rule, in a stable order."""
    policy = policy or default_policy()
    errors: list[str] = []

    name = submission.name
    if not isinstance(name, str) or len(name.strip()) < NAME_MIN:
        errors.append(f"Name must be at least {NAME_MIN} characters long")
    elif len(name.strip()) > NAME_MAX:
        errors.append(f"Name cannot exceed {NAME_MAX} characters")

    if submission.gender not in {g.value for g in Gender}:
        errors.append("Gender must be either male or female")

    if submission.marital_status not in {m.value for m in MaritalStatus}:
        errors.append("Marital status must be either single or married")

    dream = submission.dream
    if not isinstance(dream, str) or len(dream.strip()) < DREAM_MIN:
        errors.append(f"Dream description must be at least {DREAM_MIN} characters long")
    if isinstance(dream, str) and len(dream) > DREAM_MAX:
        errors.append(f"Dream description cannot exceed {DREAM_MAX} characters")

    if isinstance(dream, str):
        errors.extend(policy.violations(dream))

    return errors


def submit_dream(
    db: Session,
    submission: Submission,
    client_address: str,
    limiter: FixedWindowRateLimiter,
    policy: Optional[ContentPolicy] = None,
) -> Dream:
    """
    Accept one public submission. Raises DreamValidationError (nothing
    counted, nothing stored) or RateLimitedError (nothing stored).
    """
    errors = validate_submission(submission, policy)
    if errors:
        raise DreamValidationError(errors)

    decision = limiter.hit(client_address)
    if not decision.allowed:
        logger.info(
            "submission_rate_limited",
            client=client_address,
            retry_after=round(decision.retry_after, 1),
        )
        raise RateLimitedError(retry_after=decision.retry_after)

    dream = create_dream(db, {
        "name": submission.name,
        "gender": submission.gender,
        "marital_status": submission.marital_status,
        "dream": submission.dream,
        "ip_address": client_address,
        "status": DreamStatus.pending.value,
        "is_public": False,
    })
    logger.info("dream_submitted", dream_id=dream.id, remaining=decision.remaining)
    return dream


# Process-wide limiter shared by every request handled by this worker.
submission_limiter = FixedWindowRateLimiter(
    max_hits=settings.RATE_LIMIT_MAX_SUBMISSIONS,
    window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
    max_keys=settings.RATE_LIMIT_MAX_KEYS,
)
