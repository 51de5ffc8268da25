"""Models for fraud-detection.

These dataclasses define the output contract of a link verification.
Everything here is computed per call; nothing is persisted by this package.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Literal

Verdict = Literal["Safe", "Suspicious", "Fake"]

# Tri-state DNS existence. "indeterminate" is missing evidence, never fraud evidence.
DnsOutcome = Literal["resolved", "not_found", "indeterminate"]

RESOLVED: DnsOutcome = "resolved"
NOT_FOUND: DnsOutcome = "not_found"
INDETERMINATE: DnsOutcome = "indeterminate"


@dataclass(frozen=True)
class FlagHit:
    """A rule that fired, with the weight the policy assigns to it."""

    flag: str
    weight: int


@dataclass(frozen=True)
class VerificationResult:
    link: str
    domain: str
    dns: DnsOutcome

    verdict: Verdict
    score: int

    # Rule evaluation order, deduplicated.
    flags: list[str] = field(default_factory=list)
    reasons: list[str] = field(default_factory=list)

    policy_version: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
