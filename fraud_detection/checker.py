"""Link verification - core logic.

Public operations:
- verify_domain(domain) -> bool
- verify_single_link(link) -> VerificationResult
- verify_links(links) / iter_verify_links(links) for batches

None of these raise for bad or unreachable links; the worst case is a
low-confidence verdict carrying a flag that explains why.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Callable, Optional

from . import dns_check
from .config import Settings
from .models import INDETERMINATE, NOT_FOUND, RESOLVED, DnsOutcome, FlagHit, VerificationResult
from .normalize import is_malformed_domain, normalize_domain
from .policy import EMPTY_OR_MALFORMED_DOMAIN, Policy
from .rules import RuleInput, evaluate_rules, merge_hits
from .scoring import score_flags

logger = logging.getLogger(__name__)

# (domain, timeout_seconds) -> outcome
Resolver = Callable[[str, float], DnsOutcome]

_OUTCOMES = (RESOLVED, NOT_FOUND, INDETERMINATE)

# Extra wait on top of the resolver's own lifetime before giving up on it.
_DNS_GRACE_SECONDS = 0.5


_settings: Settings
_default_policy: Policy


def init(environ: Optional[Mapping[str, str]] = None) -> None:
    """Load settings and the default policy from the environment.

    Runs once at import. Raises ``ValueError`` (``PolicyError`` for policy
    files) on bad configuration; on failure the previously loaded values
    stay in place. Verification only reads what was loaded here.
    """

    global _settings, _default_policy
    settings = Settings.from_env(environ)
    policy = settings.load_policy()
    _settings, _default_policy = settings, policy
    logger.debug("Loaded settings %s with policy %s", settings, policy.version)


def get_settings() -> Settings:
    return _settings


def get_default_policy() -> Policy:
    return _default_policy


def _default_resolver(domain: str, timeout: float) -> DnsOutcome:
    return dns_check.resolve_domain(domain, timeout=timeout, nameservers=get_settings().nameservers)


def _call_resolver(resolver: Resolver, domain: str, timeout: float) -> DnsOutcome:
    try:
        outcome = resolver(domain, timeout)
    except Exception as e:  # noqa: BLE001
        logger.warning("Resolver raised for %s: %s", domain, e)
        return INDETERMINATE
    if outcome not in _OUTCOMES:
        logger.warning("Resolver returned unknown outcome %r for %s", outcome, domain)
        return INDETERMINATE
    return outcome


def _await_outcome(future: Future[DnsOutcome], domain: str, timeout: float) -> DnsOutcome:
    try:
        return future.result(timeout=timeout + _DNS_GRACE_SECONDS)
    except FuturesTimeoutError:
        logger.debug("Gave up waiting %.1fs for DNS of %s", timeout, domain)
        return INDETERMINATE


def verify_domain(
    domain: str,
    *,
    timeout: Optional[float] = None,
    resolver: Optional[Resolver] = None,
) -> bool:
    """True iff ``domain`` resolves. NotFound and Indeterminate both give False."""

    d = normalize_domain("" if domain is None else str(domain))
    if is_malformed_domain(d):
        return False
    t = get_settings().dns_timeout if timeout is None else timeout
    return _call_resolver(resolver or _default_resolver, d, t) == RESOLVED


def _build_result(
    text: str, domain: str, outcome: DnsOutcome, hits: list[FlagHit], pol: Policy
) -> VerificationResult:
    agg = score_flags(hits, pol)
    return VerificationResult(
        link=text,
        domain=domain,
        dns=outcome,
        verdict=agg.verdict,
        score=agg.score,
        flags=[b["flag"] for b in agg.score_breakdown],
        reasons=agg.reasons,
        policy_version=pol.version,
    )


def _malformed_result(text: str, domain: str, pol: Policy) -> VerificationResult:
    # Nothing to look up: no DNS call, no heuristics.
    hit = FlagHit(EMPTY_OR_MALFORMED_DOMAIN, pol.weight(EMPTY_OR_MALFORMED_DOMAIN))
    return _build_result(text, domain, INDETERMINATE, [hit], pol)


def _offline_result(link: str, pol: Policy) -> VerificationResult:
    """Heuristics only, DNS treated as indeterminate."""

    text = "" if link is None else str(link)
    domain = normalize_domain(text)
    if is_malformed_domain(domain):
        return _malformed_result(text, domain, pol)
    hits = evaluate_rules(RuleInput(link=text, domain=domain, dns=INDETERMINATE), pol)
    return _build_result(text, domain, INDETERMINATE, hits, pol)


def verify_single_link(
    link: str,
    *,
    policy: Optional[Policy] = None,
    timeout: Optional[float] = None,
    resolver: Optional[Resolver] = None,
) -> VerificationResult:
    """Verify one link and return its verdict, score and flags."""

    pol = policy if policy is not None else get_default_policy()
    text = "" if link is None else str(link)
    domain = normalize_domain(text)

    if is_malformed_domain(domain):
        return _malformed_result(text, domain, pol)

    t = get_settings().dns_timeout if timeout is None else timeout
    lookup = resolver or _default_resolver

    # DNS runs on its own thread while the DNS-independent rules evaluate.
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="dns")
    try:
        future = executor.submit(_call_resolver, lookup, domain, t)
        static_hits = evaluate_rules(RuleInput(link=text, domain=domain), pol, needs_dns=False)
        outcome = _await_outcome(future, domain, t)
    finally:
        # A stuck lookup is abandoned, not awaited.
        executor.shutdown(wait=False)

    dns_hits = evaluate_rules(RuleInput(link=text, domain=domain, dns=outcome), pol, needs_dns=True)
    return _build_result(text, domain, outcome, merge_hits(static_hits, dns_hits), pol)


def iter_verify_links(
    links: Iterable[str],
    *,
    policy: Optional[Policy] = None,
    timeout: Optional[float] = None,
    max_workers: Optional[int] = None,
    resolver: Optional[Resolver] = None,
) -> Iterator[VerificationResult]:
    """Verify links in parallel, yielding results in input order.

    In-flight work is bounded, so large inputs are streamed rather than
    loaded at once. Closing the generator cancels links not yet started;
    lookups already running are left to finish and their results dropped.
    """

    pol = policy if policy is not None else get_default_policy()
    workers = max(1, max_workers if max_workers is not None else get_settings().max_workers)
    max_in_flight = workers * 3

    def _verify(link: str) -> VerificationResult:
        return verify_single_link(link, policy=pol, timeout=timeout, resolver=resolver)

    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="verify")
    pending: set[Future[VerificationResult]] = set()
    meta: dict[Future[VerificationResult], tuple[int, str]] = {}
    buffer: dict[int, VerificationResult] = {}
    next_index = 0

    def _collect(done: Iterable[Future[VerificationResult]]) -> None:
        for d in done:
            i, link = meta.pop(d)
            try:
                buffer[i] = d.result()
            except Exception as e:  # noqa: BLE001
                # One broken link must not sink the batch.
                logger.exception("Verification crashed for %r: %s", link, e)
                buffer[i] = _offline_result(link, pol)

    try:
        for idx, link in enumerate(links):
            fut = executor.submit(_verify, link)
            pending.add(fut)
            meta[fut] = (idx, link)

            if len(pending) >= max_in_flight:
                done, pending = wait(pending, return_when=FIRST_COMPLETED)
                _collect(done)
                while next_index in buffer:
                    yield buffer.pop(next_index)
                    next_index += 1

        while pending:
            done, pending = wait(pending, return_when=FIRST_COMPLETED)
            _collect(done)
            while next_index in buffer:
                yield buffer.pop(next_index)
                next_index += 1
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


def verify_links(
    links: Iterable[str],
    *,
    policy: Optional[Policy] = None,
    timeout: Optional[float] = None,
    max_workers: Optional[int] = None,
    resolver: Optional[Resolver] = None,
) -> list[VerificationResult]:
    """Verify every link; the returned list matches the input order."""

    return list(
        iter_verify_links(
            links,
            policy=policy,
            timeout=timeout,
            max_workers=max_workers,
            resolver=resolver,
        )
    )


init()
