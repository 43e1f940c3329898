"""
Tests for the submission service and the content policy.
"""
import pytest

from ruya.core.config import settings
from ruya.core.errors import DreamValidationError, RateLimitedError
from ruya.models.dream import Dream
from ruya.services.moderation import AllowAllPolicy, DenylistPolicy, GENUINE_DREAM_MESSAGE
from ruya.services.rate_limit import FixedWindowRateLimiter
from ruya.services.submission import (
    Submission,
    default_policy,
    submit_dream,
    validate_submission,
)

GOOD_DREAM = "I was walking beside a river of clear water at dawn."


def _submission(**overrides) -> Submission:
    values = dict(name="Aisha", gender="female", marital_status="single", dream=GOOD_DREAM)
    values.update(overrides)
    return Submission(**values)


@pytest.fixture()
def limiter(clock):
    return FixedWindowRateLimiter(max_hits=10, window_seconds=60, clock=clock)


# ---------------------------------------------------------------------------
# Content policy
# ---------------------------------------------------------------------------

class TestDenylistPolicy:
    def test_blocks_substring_case_insensitively(self):
        policy = DenylistPolicy(["spam"])
        assert policy.violations("This is SPAMMY text") == [GENUINE_DREAM_MESSAGE]

    def test_allows_clean_text(self):
        assert DenylistPolicy(["spam", "fake"]).violations(GOOD_DREAM) == []

    def test_empty_terms_ignored(self):
        assert DenylistPolicy(["", "spam"]).terms == ("spam",)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class TestValidateSubmission:
    def test_valid(self):
        assert validate_submission(_submission()) == []

    def test_collects_all_errors(self):
        errors = validate_submission(
            Submission(name=" a ", gender="x", marital_status=None, dream="   short   "),
        )
        assert errors == [
            "Name must be at least 2 characters long",
            "Gender must be either male or female",
            "Marital status must be either single or married",
            "Dream description must be at least 10 characters long",
        ]

    def test_long_name_listed_with_other_errors(self):
        errors = validate_submission(_submission(name="x" * 101, dream="short"))
        assert errors == [
            "Name cannot exceed 100 characters",
            "Dream description must be at least 10 characters long",
        ]

    def test_name_length_uses_trimmed_text(self):
        assert validate_submission(_submission(name=" " + "x" * 100 + " ")) == []

    def test_missing_fields(self):
        errors = validate_submission(Submission())
        assert len(errors) == 4

    def test_non_string_dream(self):
        errors = validate_submission(_submission(dream=12345678901))
        assert errors == ["Dream description must be at least 10 characters long"]

    def test_dream_length_uses_raw_text(self):
        errors = validate_submission(_submission(dream="a" * 4990 + " " * 20))
        assert errors == ["Dream description cannot exceed 5000 characters"]

    def test_default_denylist_applies(self):
        errors = validate_submission(_submission(dream="This is only a test of the form."))
        assert errors == [GENUINE_DREAM_MESSAGE]

    def test_empty_denylist_allows_everything(self, monkeypatch):
        monkeypatch.setattr(settings, "BLOCKED_TERMS", "")
        assert isinstance(default_policy(), AllowAllPolicy)

    def test_policy_is_pluggable(self):
        dream = "This is only a test of the form."
        assert validate_submission(_submission(dream=dream), AllowAllPolicy()) == []


# ---------------------------------------------------------------------------
# submit_dream
# ---------------------------------------------------------------------------

class TestSubmitDream:
    def test_stores_trimmed_pending_record(self, db, limiter):
        dream = submit_dream(
            db,
            _submission(name="  Aisha ", dream=f"  {GOOD_DREAM}  "),
            client_address="203.0.113.9",
            limiter=limiter,
        )
        assert dream.name == "Aisha"
        assert dream.dream == GOOD_DREAM
        assert dream.status == "pending"
        assert dream.interpretation is None
        assert dream.is_public is False
        assert dream.ip_address == "203.0.113.9"

    def test_short_dream_creates_nothing(self, db, limiter):
        with pytest.raises(DreamValidationError):
            submit_dream(db, _submission(dream="   tiny   "), "203.0.113.9", limiter)
        assert db.query(Dream).count() == 0

    def test_invalid_submission_does_not_consume_quota(self, db, clock):
        limiter = FixedWindowRateLimiter(max_hits=1, window_seconds=60, clock=clock)
        with pytest.raises(DreamValidationError):
            submit_dream(db, _submission(gender="other"), "203.0.113.9", limiter)
        submit_dream(db, _submission(), "203.0.113.9", limiter)
        assert db.query(Dream).count() == 1

    def test_long_name_does_not_consume_quota(self, db, clock):
        limiter = FixedWindowRateLimiter(max_hits=1, window_seconds=60, clock=clock)
        for _ in range(3):
            with pytest.raises(DreamValidationError):
                submit_dream(db, _submission(name="x" * 101), "203.0.113.9", limiter)
        submit_dream(db, _submission(), "203.0.113.9", limiter)
        assert db.query(Dream).count() == 1

    def test_eleventh_submission_rate_limited(self, db, limiter, clock):
        for _ in range(10):
            submit_dream(db, _submission(), "198.51.100.7", limiter)
        with pytest.raises(RateLimitedError) as exc_info:
            submit_dream(db, _submission(), "198.51.100.7", limiter)
        assert exc_info.value.http_status == 429
        assert db.query(Dream).count() == 10

        clock.advance(60)
        submit_dream(db, _submission(), "198.51.100.7", limiter)
        assert db.query(Dream).count() == 11

    def test_other_clients_unaffected(self, db, limiter):
        for _ in range(10):
            submit_dream(db, _submission(), "198.51.100.7", limiter)
        submit_dream(db, _submission(), "198.51.100.8", limiter)
        assert db.query(Dream).count() == 11
