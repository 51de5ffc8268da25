"""Heuristic rule set.

Each rule is a pure predicate over the link, its normalized domain and
(for DNS-aware rules) the DNS outcome. A rule fires at most once per
verification. ``RULES`` order is the order flags are reported in:

 1. no-dns-record          DNS said the name does not exist
 2. shortened-url          host is a known URL shortener
 3. suspicious-tld         TLD is on the abuse-heavy denylist
 4. ip-literal-host        host is a raw IPv4/IPv6 address
 5. excessive-subdomains   more labels than the policy allows
 6. keyword-blacklist-hit  host contains a phishing-style keyword
 7. dns-indeterminate      lookup failed or timed out (informational)

The malformed-domain short-circuit is not a rule; see ``checker``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Callable, Optional

from .models import INDETERMINATE, NOT_FOUND, DnsOutcome, FlagHit
from .normalize import is_ip_literal
from .policy import (
    DNS_INDETERMINATE,
    EMPTY_OR_MALFORMED_DOMAIN,
    EXCESSIVE_SUBDOMAINS,
    IP_LITERAL_HOST,
    KEYWORD_BLACKLIST_HIT,
    NO_DNS_RECORD,
    SHORTENED_URL,
    SUSPICIOUS_TLD,
    Policy,
)


@dataclass(frozen=True)
class RuleInput:
    link: str
    domain: str
    dns: Optional[DnsOutcome] = None


@dataclass(frozen=True)
class Rule:
    flag: str
    description: str
    # DNS-aware rules can only run once the lookup has finished.
    needs_dns: bool
    detect: Callable[[RuleInput, Policy], bool]


def _no_dns_record(inp: RuleInput, policy: Policy) -> bool:
    return inp.dns == NOT_FOUND


def _is_shortener(inp: RuleInput, policy: Policy) -> bool:
    d = inp.domain
    return any(d == s or d.endswith("." + s) for s in policy.shorteners)


def _suspicious_tld(inp: RuleInput, policy: Policy) -> bool:
    if is_ip_literal(inp.domain):
        return False
    tld = inp.domain.rsplit(".", 1)[-1]
    return tld in policy.suspicious_tlds


def _ip_literal(inp: RuleInput, policy: Policy) -> bool:
    return is_ip_literal(inp.domain)


def _excessive_subdomains(inp: RuleInput, policy: Policy) -> bool:
    if is_ip_literal(inp.domain):
        return False
    return len(inp.domain.split(".")) > policy.max_labels


def _keyword_hit(inp: RuleInput, policy: Policy) -> bool:
    return any(k in inp.domain for k in policy.keywords)


def _dns_indeterminate(inp: RuleInput, policy: Policy) -> bool:
    return inp.dns == INDETERMINATE


RULES: tuple[Rule, ...] = (
    Rule(NO_DNS_RECORD, "Domain has no DNS record", True, _no_dns_record),
    Rule(SHORTENED_URL, "Known URL shortener hides the destination", False, _is_shortener),
    Rule(SUSPICIOUS_TLD, "Top-level domain frequently used for abuse", False, _suspicious_tld),
    Rule(IP_LITERAL_HOST, "Raw IP address instead of a domain name", False, _ip_literal),
    Rule(EXCESSIVE_SUBDOMAINS, "Unusually deep subdomain nesting", False, _excessive_subdomains),
    Rule(KEYWORD_BLACKLIST_HIT, "Domain contains a phishing-style keyword", False, _keyword_hit),
    Rule(DNS_INDETERMINATE, "DNS lookup was inconclusive", True, _dns_indeterminate),
)

RULE_ORDER: dict[str, int] = {r.flag: i for i, r in enumerate(RULES)}

DESCRIPTIONS: dict[str, str] = {r.flag: r.description for r in RULES}
DESCRIPTIONS[EMPTY_OR_MALFORMED_DOMAIN] = "Link has no usable domain"


def evaluate_rules(
    inp: RuleInput,
    policy: Policy,
    *,
    needs_dns: bool | None = None,
    rules: Iterable[Rule] = RULES,
) -> list[FlagHit]:
    """Run rules against ``inp`` and return hits in rule order.

    ``needs_dns`` restricts evaluation to DNS-aware (True) or DNS-independent
    (False) rules; None runs all of them.
    """

    hits: list[FlagHit] = []
    seen: set[str] = set()
    for rule in rules:
        if needs_dns is not None and rule.needs_dns != needs_dns:
            continue
        if rule.flag in seen:
            continue
        if rule.detect(inp, policy):
            seen.add(rule.flag)
            hits.append(FlagHit(flag=rule.flag, weight=policy.weight(rule.flag)))
    return hits


def merge_hits(*groups: Iterable[FlagHit]) -> list[FlagHit]:
    """Combine hit lists into one deduplicated list in rule order."""

    by_flag: dict[str, FlagHit] = {}
    for group in groups:
        for hit in group:
            by_flag.setdefault(hit.flag, hit)
    return sorted(by_flag.values(), key=lambda h: RULE_ORDER.get(h.flag, len(RULE_ORDER)))
