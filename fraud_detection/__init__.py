"""Link fraud detection - DNS existence plus heuristic scoring."""

from .checker import init, iter_verify_links, verify_domain, verify_links, verify_single_link
from .models import VerificationResult
from .policy import DEFAULT_POLICY, Policy, PolicyError, load_policy

__version__ = "1.0.0"
__all__ = [
    "init",
    "verify_domain",
    "verify_single_link",
    "verify_links",
    "iter_verify_links",
    "VerificationResult",
    "Policy",
    "PolicyError",
    "DEFAULT_POLICY",
    "load_policy",
]
