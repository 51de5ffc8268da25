"""Runtime settings.

Read once from the environment (after loading a ``.env`` file if present):

  FRAUD_DETECTION_DNS_TIMEOUT   seconds per DNS lookup (default 4.0)
  FRAUD_DETECTION_NAMESERVERS   comma-separated resolver IPs (default: system)
  FRAUD_DETECTION_MAX_WORKERS   batch parallelism (default 5)
  FRAUD_DETECTION_POLICY_FILE   JSON policy override (default: built-in policy)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

# Load .env file if present
try:
    from dotenv import load_dotenv

    # Try current dir, then home dir
    for env_path in [Path(".env"), Path.home() / ".env", Path.home() / ".fraud-detection.env"]:
        if env_path.exists():
            load_dotenv(env_path)
            break
except ImportError:
    pass  # dotenv not installed, rely on environment variables

from .dns_check import DEFAULT_TIMEOUT
from .policy import DEFAULT_POLICY, Policy, load_policy

DEFAULT_MAX_WORKERS = 5


@dataclass(frozen=True)
class Settings:
    dns_timeout: float = DEFAULT_TIMEOUT
    nameservers: Optional[tuple[str, ...]] = None
    max_workers: int = DEFAULT_MAX_WORKERS
    policy_file: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ

        timeout = DEFAULT_TIMEOUT
        raw = env.get("FRAUD_DETECTION_DNS_TIMEOUT")
        if raw:
            timeout = float(raw)
            if timeout <= 0:
                raise ValueError(f"FRAUD_DETECTION_DNS_TIMEOUT must be positive, got {raw!r}")

        nameservers = None
        raw = env.get("FRAUD_DETECTION_NAMESERVERS")
        if raw:
            nameservers = tuple(ns.strip() for ns in raw.split(",") if ns.strip()) or None

        workers = DEFAULT_MAX_WORKERS
        raw = env.get("FRAUD_DETECTION_MAX_WORKERS")
        if raw:
            workers = int(raw)
            if workers < 1:
                raise ValueError(f"FRAUD_DETECTION_MAX_WORKERS must be >= 1, got {raw!r}")

        return cls(
            dns_timeout=timeout,
            nameservers=nameservers,
            max_workers=workers,
            policy_file=env.get("FRAUD_DETECTION_POLICY_FILE") or None,
        )

    def load_policy(self) -> Policy:
        if not self.policy_file:
            return DEFAULT_POLICY
        return load_policy(self.policy_file)
