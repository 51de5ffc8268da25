"""Detection policy: weights, verdict threshold and lookup tables.

The policy is the single place where tunable numbers live. Rules only ask
"does this fire?"; how much a hit counts and where the Fake line sits is
decided here, so a policy can be audited or swapped (e.g. in tests) without
touching rule logic.

Weights and lists are not derived from measured fraud data yet; treat them as
a starting point. Bump ``POLICY_VERSION`` whenever the defaults change.

Overrides can be loaded from JSON, any subset of keys:

  {
    "version": "local-1",
    "fake_threshold": 60,
    "weights": {"shortened-url": 40},
    "shorteners": ["bit.ly", "tinyurl.com"],
    "max_labels": 5
  }
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any

POLICY_VERSION = "2026.1"

# Flag identifiers, in rule evaluation order.
NO_DNS_RECORD = "no-dns-record"
SHORTENED_URL = "shortened-url"
SUSPICIOUS_TLD = "suspicious-tld"
IP_LITERAL_HOST = "ip-literal-host"
EXCESSIVE_SUBDOMAINS = "excessive-subdomains"
KEYWORD_BLACKLIST_HIT = "keyword-blacklist-hit"
DNS_INDETERMINATE = "dns-indeterminate"
EMPTY_OR_MALFORMED_DOMAIN = "empty-or-malformed-domain"

DEFAULT_WEIGHTS: dict[str, int] = {
    NO_DNS_RECORD: 60,
    SHORTENED_URL: 30,
    SUSPICIOUS_TLD: 30,
    IP_LITERAL_HOST: 35,
    EXCESSIVE_SUBDOMAINS: 15,
    KEYWORD_BLACKLIST_HIT: 20,
    DNS_INDETERMINATE: 5,
    EMPTY_OR_MALFORMED_DOMAIN: 100,
}

DEFAULT_SHORTENERS = frozenset(
    {
        "bit.ly",
        "bit.do",
        "buff.ly",
        "cutt.ly",
        "goo.gl",
        "is.gd",
        "ow.ly",
        "rb.gy",
        "rebrand.ly",
        "s.id",
        "shorturl.at",
        "t.co",
        "t.ly",
        "tiny.cc",
        "tinyurl.com",
        "v.gd",
    }
)

DEFAULT_SUSPICIOUS_TLDS = frozenset(
    {
        "buzz",
        "cf",
        "click",
        "country",
        "ga",
        "gq",
        "kim",
        "loan",
        "men",
        "ml",
        "mov",
        "rest",
        "tk",
        "top",
        "work",
        "xyz",
        "zip",
    }
)

DEFAULT_KEYWORDS = frozenset(
    {
        "secure-",
        "verify-",
        "login-",
        "signin-",
        "account-",
        "-verify",
        "-login",
        "payment-",
        "wallet-",
        "easy-money",
        "quick-cash",
        "work-from-home",
        "hiring-now",
    }
)

DEFAULT_FAKE_THRESHOLD = 50
DEFAULT_MAX_LABELS = 4


class PolicyError(ValueError):
    """Raised when a policy table is unusable. Fatal at startup only."""


def _frozen_lower(values: Iterable[str], *, key: str) -> frozenset[str]:
    if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
        raise PolicyError(f"{key} must be a list of strings")
    out: set[str] = set()
    for v in values:
        if not isinstance(v, str) or not v.strip():
            raise PolicyError(f"{key} entries must be non-empty strings, got {v!r}")
        out.add(v.strip().lower().strip("."))
    return frozenset(out)


@dataclass(frozen=True)
class Policy:
    version: str = POLICY_VERSION
    weights: Mapping[str, int] = field(default_factory=lambda: dict(DEFAULT_WEIGHTS))
    fake_threshold: int = DEFAULT_FAKE_THRESHOLD
    shorteners: frozenset[str] = DEFAULT_SHORTENERS
    suspicious_tlds: frozenset[str] = DEFAULT_SUSPICIOUS_TLDS
    keywords: frozenset[str] = DEFAULT_KEYWORDS
    max_labels: int = DEFAULT_MAX_LABELS

    def __post_init__(self) -> None:
        weights: dict[str, int] = {}
        for flag, w in dict(self.weights).items():
            # bool is an int subclass; reject it explicitly.
            if isinstance(w, bool) or not isinstance(w, int):
                raise PolicyError(f"weight for {flag!r} must be an integer, got {w!r}")
            if not 0 <= w <= 100:
                raise PolicyError(f"weight for {flag!r} must be within [0, 100], got {w}")
            weights[flag] = w

        unknown = sorted(f for f in weights if f not in DEFAULT_WEIGHTS)
        if unknown:
            raise PolicyError(f"unknown flags in weights: {', '.join(unknown)}")

        missing = [f for f in DEFAULT_WEIGHTS if f not in weights]
        if missing:
            raise PolicyError(f"missing weights for: {', '.join(missing)}")

        t = self.fake_threshold
        if isinstance(t, bool) or not isinstance(t, int) or not 1 <= t <= 100:
            raise PolicyError(f"fake_threshold must be an integer within [1, 100], got {t!r}")

        if weights[EMPTY_OR_MALFORMED_DOMAIN] < t:
            raise PolicyError(f"{EMPTY_OR_MALFORMED_DOMAIN} weight must reach fake_threshold ({t})")

        m = self.max_labels
        if isinstance(m, bool) or not isinstance(m, int) or m < 1:
            raise PolicyError(f"max_labels must be a positive integer, got {m!r}")

        # Freeze everything so a shared policy cannot drift between verifications.
        object.__setattr__(self, "weights", MappingProxyType(weights))
        object.__setattr__(self, "shorteners", _frozen_lower(self.shorteners, key="shorteners"))
        object.__setattr__(
            self, "suspicious_tlds", _frozen_lower(self.suspicious_tlds, key="suspicious_tlds")
        )
        # Keywords keep their dashes; only case is folded.
        object.__setattr__(
            self,
            "keywords",
            frozenset(k.lower() for k in _check_keywords(self.keywords)),
        )

    def weight(self, flag: str) -> int:
        return int(self.weights.get(flag, 0))

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "weights": dict(self.weights),
            "fake_threshold": self.fake_threshold,
            "shorteners": sorted(self.shorteners),
            "suspicious_tlds": sorted(self.suspicious_tlds),
            "keywords": sorted(self.keywords),
            "max_labels": self.max_labels,
        }


def _check_keywords(values: Iterable[str]) -> list[str]:
    if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
        raise PolicyError("keywords must be a list of strings")
    out = []
    for v in values:
        if not isinstance(v, str) or not v:
            raise PolicyError(f"keywords entries must be non-empty strings, got {v!r}")
        out.append(v)
    return out


DEFAULT_POLICY = Policy()

_KNOWN_KEYS = {
    "version",
    "weights",
    "fake_threshold",
    "shorteners",
    "suspicious_tlds",
    "keywords",
    "max_labels",
}


def policy_from_dict(data: Mapping[str, Any], base: Policy = DEFAULT_POLICY) -> Policy:
    """Overlay ``data`` onto ``base``. Weights merge per flag; lists replace."""

    if not isinstance(data, Mapping):
        raise PolicyError("policy must be a JSON object")

    unknown = sorted(set(data) - _KNOWN_KEYS)
    if unknown:
        raise PolicyError(f"unknown policy keys: {', '.join(unknown)}")

    changes: dict[str, Any] = {}
    if "weights" in data:
        w = data["weights"]
        if not isinstance(w, Mapping):
            raise PolicyError("weights must be an object of flag -> integer")
        merged = dict(base.weights)
        merged.update(w)
        changes["weights"] = merged
    for key in ("version", "fake_threshold", "max_labels", "shorteners", "suspicious_tlds", "keywords"):
        if key in data:
            changes[key] = data[key]

    if "version" in changes and not isinstance(changes["version"], str):
        raise PolicyError("version must be a string")

    return replace(base, **changes)


def load_policy(path: str | Path, base: Policy = DEFAULT_POLICY) -> Policy:
    """Load a JSON policy override from ``path``."""

    p = Path(path)
    try:
        raw = p.read_text(encoding="utf-8")
    except OSError as e:
        raise PolicyError(f"cannot read policy file {p}: {e}") from e

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise PolicyError(f"invalid JSON in policy file {p}: {e}") from e

    return policy_from_dict(parsed, base=base)
