"""Explainable risk score aggregation.

Turns the flags that fired into:
- score: int (0-100), the clamped sum of flag weights
- verdict: Safe / Suspicious / Fake, a pure function of score
- score_breakdown: per-flag contributions, in rule order
- reasons: human-readable strings

Weights are never negative, so adding a flag can only raise the score.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from .models import FlagHit, Verdict
from .policy import DEFAULT_POLICY, Policy
from .rules import DESCRIPTIONS


@dataclass(frozen=True)
class AggregatedScore:
    score: int
    verdict: Verdict
    score_breakdown: list[dict[str, Any]]
    reasons: list[str]


def verdict_from_score(score: int, policy: Policy = DEFAULT_POLICY) -> Verdict:
    if score <= 0:
        return "Safe"
    if score < policy.fake_threshold:
        return "Suspicious"
    return "Fake"


def score_flags(hits: Sequence[FlagHit], policy: Policy = DEFAULT_POLICY) -> AggregatedScore:
    """Aggregate flag hits into an explainable score and verdict."""

    seen: set[str] = set()
    breakdown: list[dict[str, Any]] = []
    reasons: list[str] = []
    total = 0

    for hit in hits:
        if hit.flag in seen:
            continue
        seen.add(hit.flag)

        w = max(0, int(hit.weight))
        total += w
        breakdown.append({"flag": hit.flag, "weight": w})
        reasons.append(f"{DESCRIPTIONS.get(hit.flag, hit.flag)} (+{w})")

    capped = max(0, min(total, 100))
    return AggregatedScore(
        score=capped,
        verdict=verdict_from_score(capped, policy),
        score_breakdown=breakdown,
        reasons=reasons,
    )
