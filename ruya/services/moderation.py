"""
Content checks applied to public dream submissions.

A policy is anything with `violations(text) -> list[str]`; the submission
service only cares whether the list is empty. The default denylist is a
blunt lowercase substring check, not language analysis.
"""
from __future__ import annotations

from typing import Iterable, Protocol

GENUINE_DREAM_MESSAGE = "Please provide a genuine dream description"


class ContentPolicy(Protocol):
    def violations(self, text: str) -> list[str]:
        ...


class DenylistPolicy:
    """Reject text containing any of the configured terms."""

    def __init__(self, terms: Iterable[str], message: str = GENUINE_DREAM_MESSAGE):
        self.terms = tuple(t.lower() for t in terms if t)
        self.message = message

    def violations(self, text: str) -> list[str]:
        lowered = text.lower()
        if any(term in lowered for term in self.terms):
            return [self.message]
        return []


class AllowAllPolicy:
    def violations(self, text: str) -> list[str]:
        return []
