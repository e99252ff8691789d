"""Trigger matcher — gates whether a reference push starts a run."""

from __future__ import annotations

import logging
from fnmatch import fnmatchcase

from tagrelease.models.trigger import TAG_REF_PREFIX

logger = logging.getLogger(__name__)


class TriggerMatcher:
    """Matches ``refs/tags/<name>`` references against a glob pattern.

    Branch references, bare names and empty tags never match. Matching is
    case-sensitive so ``V1.0`` does not satisfy ``v*``.
    """

    def __init__(self, pattern: str = "v*") -> None:
        self.pattern = pattern

    def matches(self, reference: str) -> bool:
        if not reference.startswith(TAG_REF_PREFIX):
            logger.debug("%r is not a tag reference", reference)
            return False
        tag = reference[len(TAG_REF_PREFIX):]
        return bool(tag) and fnmatchcase(tag, self.pattern)

    def __repr__(self) -> str:
        return f"<TriggerMatcher pattern={self.pattern!r}>"
