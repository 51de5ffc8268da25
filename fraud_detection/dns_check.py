"""DNS existence check.

Answers "does this domain exist?" as a tri-state:

- resolved: at least one A/AAAA address came back
- not_found: the resolver authoritatively said the name does not exist
  (NXDOMAIN)
- indeterminate: timeouts, unreachable nameservers, invalid names, a name
  with no address records, or any other failure. This is missing
  evidence, not evidence of fraud.

No retries: one timed-out lookup is one ``indeterminate``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import dns.exception
import dns.name
import dns.resolver

from .models import INDETERMINATE, NOT_FOUND, RESOLVED, DnsOutcome
from .normalize import is_ip_literal

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 4.0


def _make_resolver(timeout: float, nameservers: Sequence[str] | None) -> dns.resolver.Resolver:
    if nameservers:
        resolver = dns.resolver.Resolver(configure=False)
        resolver.nameservers = list(nameservers)
    else:
        resolver = dns.resolver.Resolver()
    resolver.timeout = timeout
    resolver.lifetime = timeout
    return resolver


def resolve_domain(
    domain: str,
    timeout: float = DEFAULT_TIMEOUT,
    nameservers: Sequence[str] | None = None,
) -> DnsOutcome:
    """Look up ``domain`` and classify the outcome. Never raises."""

    if not domain:
        return INDETERMINATE

    # An address needs no lookup.
    if is_ip_literal(domain):
        return RESOLVED

    try:
        resolver = _make_resolver(timeout, nameservers)
    except Exception as e:  # noqa: BLE001
        # e.g. no /etc/resolv.conf in a sandbox
        logger.warning("DNS resolver unavailable: %s", e)
        return INDETERMINATE

    for rdtype in ("A", "AAAA"):
        try:
            answers = resolver.resolve(domain, rdtype, search=False)
        except dns.resolver.NXDOMAIN:
            logger.debug("NXDOMAIN for %s", domain)
            return NOT_FOUND
        except dns.resolver.NoAnswer:
            continue
        except dns.exception.Timeout:
            logger.debug("DNS timeout after %.1fs for %s", timeout, domain)
            return INDETERMINATE
        except dns.resolver.NoNameservers as e:
            logger.debug("No nameserver answered for %s: %s", domain, e)
            return INDETERMINATE
        except (dns.name.NameTooLong, dns.name.LabelTooLong, dns.name.EmptyLabel) as e:
            logger.debug("Invalid DNS name %r: %s", domain, e)
            return INDETERMINATE
        except (UnicodeError, ValueError) as e:
            logger.debug("Invalid DNS name %r: %s", domain, e)
            return INDETERMINATE
        except Exception as e:  # noqa: BLE001
            logger.warning("DNS lookup failed for %s: %s", domain, e)
            return INDETERMINATE

        if len(answers) > 0:
            return RESOLVED

    # The name exists but has no A/AAAA records (e.g. mail-only domains).
    logger.debug("No address records for %s", domain)
    return INDETERMINATE
