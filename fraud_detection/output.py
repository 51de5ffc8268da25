"""Output helpers (verdict severity, exit codes)."""

from __future__ import annotations

from collections.abc import Iterable

from .models import VerificationResult

_VERDICT_ORDER = ["Safe", "Suspicious", "Fake"]


def verdict_level(v: str) -> int:
    try:
        return _VERDICT_ORDER.index(v)
    except ValueError:
        return _VERDICT_ORDER.index("Fake")


def worst_verdict(a: str, b: str) -> str:
    return a if verdict_level(a) >= verdict_level(b) else b


def exit_code_from_verdict(verdict: str, *, fail_on: str | None) -> int:
    # Default: always 0
    if fail_on is None:
        return 0
    return 1 if verdict_level(verdict) >= verdict_level(fail_on) else 0


def exit_code_from_results(results: Iterable[VerificationResult], *, fail_on: str | None) -> int:
    worst = "Safe"
    for r in results:
        worst = worst_verdict(worst, r.verdict)
    return exit_code_from_verdict(worst, fail_on=fail_on)
