"""Deterministic lead scoring and ranking."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

from ucc_leads.models import ExtractedCandidate, Tag

C = TypeVar("C", bound=ExtractedCandidate)

UCC_POINTS = 100
FUNDING_POINTS = 50
FILING_REF_POINTS = 10


def score_candidate(candidate: ExtractedCandidate, max_filing_refs: int = 5) -> int:
    """Score a candidate by its domain signals.

    - 100 if UCC-tagged
    - 50 if FUNDING-tagged
    - 10 per filing reference, counting at most ``max_filing_refs``
    """
    score = 0
    if Tag.UCC in candidate.tags:
        score += UCC_POINTS
    if Tag.FUNDING in candidate.tags:
        score += FUNDING_POINTS
    score += FILING_REF_POINTS * min(len(candidate.filing_refs), max_filing_refs)
    return score


def rank_candidates(
    candidates: Sequence[C],
    max_results: int = 50,
    max_filing_refs: int = 5,
) -> list[C]:
    """Sort by score descending and keep the top ``max_results``.

    The sort is stable: equal scores keep discovery order.
    """
    ranked = sorted(
        candidates,
        key=lambda c: score_candidate(c, max_filing_refs),
        reverse=True,
    )
    return ranked[:max_results]
