#!/usr/bin/env python3
"""
Link fraud detection - CLI entry point
"""

from __future__ import annotations

import argparse
import itertools
import json
import logging
from collections.abc import Iterable, Iterator

from .checker import get_default_policy, get_settings, iter_verify_links, verify_domain
from .models import VerificationResult
from .normalize import normalize_domain
from .output import exit_code_from_results, exit_code_from_verdict, worst_verdict
from .policy import load_policy

VERDICT_EMOJI = {"Safe": "✅", "Suspicious": "⚠️", "Fake": "🔴"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Check job-posting links for signs of fraud (DNS + heuristics)"
    )
    parser.add_argument("links", nargs="*", help="Links or domains to check")
    parser.add_argument("--file", "-f", help="File with links to check (one per line)", default=None)
    parser.add_argument(
        "--json", "-j", action="store_true", help="Output as JSON (alias for --format json)"
    )
    parser.add_argument(
        "--format",
        choices=["pretty", "json", "ndjson"],
        default=None,
        help="Output format (default: pretty; --json is an alias for json)",
    )
    parser.add_argument(
        "--domain-only",
        action="store_true",
        help="Only report whether each domain resolves in DNS",
    )
    parser.add_argument(
        "--timeout",
        "-t",
        type=float,
        default=None,
        help="DNS timeout per lookup in seconds (default: FRAUD_DETECTION_DNS_TIMEOUT or 4)",
    )
    parser.add_argument(
        "--workers",
        "-w",
        type=int,
        default=None,
        help="Max parallel workers for batches (default: FRAUD_DETECTION_MAX_WORKERS or 5)",
    )
    parser.add_argument(
        "--policy", help="JSON file overriding the detection policy", default=None
    )
    parser.add_argument(
        "--fail-on",
        choices=["Safe", "Suspicious", "Fake"],
        default=None,
        help="Exit non-zero when any verdict is at or above this level (useful for CI)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    out_format = args.format
    if out_format is None:
        out_format = "json" if args.json else "pretty"

    if not args.links and not args.file:
        parser.error("Either links or --file is required")

    try:
        settings = get_settings()
        policy = load_policy(args.policy) if args.policy else get_default_policy()
    except ValueError as e:  # PolicyError is a ValueError
        parser.error(str(e))

    timeout = args.timeout if args.timeout is not None else settings.dns_timeout

    links: Iterable[str] = args.links
    if args.file:
        links = itertools.chain(args.links, iter_links_from_file(args.file))

    if args.domain_only:
        print_domain_checks(links, timeout=timeout, out_format=out_format)
        raise SystemExit(0)

    results = iter_verify_links(
        links,
        policy=policy,
        timeout=timeout,
        max_workers=args.workers,
    )

    if out_format == "json":
        payload = list(results)
        print(json.dumps([r.to_dict() for r in payload], indent=2, ensure_ascii=False))
        exit_code = exit_code_from_results(payload, fail_on=args.fail_on)
    elif out_format == "ndjson":
        worst = "Safe"
        for r in results:
            print(json.dumps(r.to_dict(), ensure_ascii=False))
            worst = worst_verdict(worst, r.verdict)
        exit_code = exit_code_from_verdict(worst, fail_on=args.fail_on)
    else:
        payload = list(results)
        if len(payload) == 1:
            print_human_readable(payload[0])
        else:
            print_batch_results(payload)
        exit_code = exit_code_from_results(payload, fail_on=args.fail_on)

    raise SystemExit(exit_code)


def iter_links_from_file(filepath: str) -> Iterator[str]:
    """Yield links from a file (streaming).

    Skips empty lines and comments.
    """
    with open(filepath) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#"):
                yield line


def print_domain_checks(links: Iterable[str], *, timeout: float, out_format: str) -> None:
    rows = [
        {"domain": normalize_domain(link), "exists": verify_domain(link, timeout=timeout)}
        for link in links
    ]
    if out_format == "json":
        print(json.dumps(rows, indent=2, ensure_ascii=False))
    elif out_format == "ndjson":
        for row in rows:
            print(json.dumps(row, ensure_ascii=False))
    else:
        for row in rows:
            print(f"DNS verifyDomain({row['domain']}): {row['exists']}")


def print_human_readable(result: VerificationResult) -> None:
    """Print human-readable output."""
    print("\n🔍 Link Verification Report")
    print(f"{'=' * 50}")
    print(f"Link:   {result.link}")
    print(f"Domain: {result.domain or '-'}")
    print(f"DNS:    {result.dns}")
    print(f"{'=' * 50}")

    print(f"\n{VERDICT_EMOJI.get(result.verdict, '❓')} Verdict: {result.verdict}")
    print(f"📊 Score: {result.score}/100")
    print(f"🚩 Flags: {', '.join(result.flags) or 'None'}")

    if result.reasons:
        print("\n📋 Reasons:")
        print(f"{'-' * 50}")
        for reason in result.reasons:
            print(f"  • {reason}")

    print(f"\nPolicy: {result.policy_version}")


def print_batch_results(results: list[VerificationResult]) -> None:
    """Print batch results in human-readable format."""
    print("\n🔍 Link Verification Batch Report")
    print(f"{'=' * 60}")
    print(f"Total links: {len(results)}")

    verdicts: dict[str, int] = {}
    for r in results:
        verdicts[r.verdict] = verdicts.get(r.verdict, 0) + 1

    print("\n📊 Summary:")
    for verdict, count in sorted(verdicts.items()):
        print(f"  {VERDICT_EMOJI.get(verdict, '❓')} {verdict}: {count}")

    print(f"\n{'=' * 60}")
    print("📋 Results:")
    print(f"{'-' * 60}")

    for r in results:
        emoji = VERDICT_EMOJI.get(r.verdict, "❓")
        print(f"  {emoji} [{r.score:>3}/100] {r.verdict:<10} {r.link}")
        if r.flags:
            print(f"      Flags: {', '.join(r.flags)}")

    print()


if __name__ == "__main__":
    main()
