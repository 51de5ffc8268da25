"""
Tests for the DNS existence check (dnspython resolver is mocked).
"""

import unittest
from unittest.mock import MagicMock, patch

import dns.exception
import dns.name
import dns.resolver

from fraud_detection.checker import verify_single_link
from fraud_detection.dns_check import resolve_domain


def _resolver_with(side_effect):
    resolver = MagicMock()
    resolver.resolve.side_effect = side_effect
    return resolver


class TestResolveDomain(unittest.TestCase):
    """Tests for resolve_domain outcome classification."""

    @patch("dns.resolver.Resolver")
    def test_resolved(self, mock_cls):
        mock_cls.return_value = _resolver_with([["142.250.74.46"]])
        self.assertEqual(resolve_domain("google.com"), "resolved")

    @patch("dns.resolver.Resolver")
    def test_aaaa_only_is_resolved(self, mock_cls):
        mock_cls.return_value = _resolver_with([dns.resolver.NoAnswer(), ["2001:db8::1"]])
        self.assertEqual(resolve_domain("v6only.example"), "resolved")

    @patch("dns.resolver.Resolver")
    def test_nxdomain_is_not_found(self, mock_cls):
        mock_cls.return_value = _resolver_with(dns.resolver.NXDOMAIN())
        self.assertEqual(resolve_domain("this-should-be-fake-12345.com"), "not_found")

    @patch("dns.resolver.Resolver")
    def test_no_address_records_is_indeterminate(self, mock_cls):
        # Mail-only domains exist; they just have no A/AAAA records.
        mock_cls.return_value = _resolver_with([dns.resolver.NoAnswer(), dns.resolver.NoAnswer()])
        self.assertEqual(resolve_domain("mx-only.example"), "indeterminate")

    @patch("dns.resolver.Resolver")
    def test_mail_only_domain_is_not_fake(self, mock_cls):
        mock_cls.return_value = _resolver_with([dns.resolver.NoAnswer(), dns.resolver.NoAnswer()])
        result = verify_single_link("mx-only-company.com")
        self.assertEqual(result.dns, "indeterminate")
        self.assertEqual(result.flags, ["dns-indeterminate"])
        self.assertEqual(result.verdict, "Suspicious")

    @patch("dns.resolver.Resolver")
    def test_timeout_is_indeterminate(self, mock_cls):
        mock_cls.return_value = _resolver_with(dns.exception.Timeout())
        self.assertEqual(resolve_domain("slow.example"), "indeterminate")

    @patch("dns.resolver.Resolver")
    def test_lifetime_timeout_is_indeterminate(self, mock_cls):
        mock_cls.return_value = _resolver_with(
            dns.resolver.LifetimeTimeout(timeout=4.0, errors=[])
        )
        self.assertEqual(resolve_domain("slow.example"), "indeterminate")

    @patch("dns.resolver.Resolver")
    def test_no_nameservers_is_indeterminate(self, mock_cls):
        mock_cls.return_value = _resolver_with(dns.resolver.NoNameservers())
        self.assertEqual(resolve_domain("example.com"), "indeterminate")

    @patch("dns.resolver.Resolver")
    def test_invalid_name_is_indeterminate(self, mock_cls):
        mock_cls.return_value = _resolver_with(dns.name.LabelTooLong())
        self.assertEqual(resolve_domain("a" * 70 + ".com"), "indeterminate")

    @patch("dns.resolver.Resolver")
    def test_unexpected_error_is_indeterminate(self, mock_cls):
        mock_cls.return_value = _resolver_with(OSError("network is unreachable"))
        self.assertEqual(resolve_domain("example.com"), "indeterminate")

    @patch("dns.resolver.Resolver")
    def test_resolver_construction_failure_is_indeterminate(self, mock_cls):
        mock_cls.side_effect = dns.resolver.NoResolverConfiguration()
        self.assertEqual(resolve_domain("example.com"), "indeterminate")

    @patch("dns.resolver.Resolver")
    def test_ip_literal_skips_lookup(self, mock_cls):
        self.assertEqual(resolve_domain("93.184.216.34"), "resolved")
        self.assertEqual(resolve_domain("2001:db8::1"), "resolved")
        mock_cls.assert_not_called()

    @patch("dns.resolver.Resolver")
    def test_empty_domain_skips_lookup(self, mock_cls):
        self.assertEqual(resolve_domain(""), "indeterminate")
        mock_cls.assert_not_called()

    @patch("dns.resolver.Resolver")
    def test_timeout_and_nameservers_applied(self, mock_cls):
        resolver = _resolver_with([["1.2.3.4"]])
        mock_cls.return_value = resolver

        resolve_domain("example.com", timeout=2.5, nameservers=["9.9.9.9"])

        mock_cls.assert_called_once_with(configure=False)
        self.assertEqual(resolver.nameservers, ["9.9.9.9"])
        self.assertEqual(resolver.timeout, 2.5)
        self.assertEqual(resolver.lifetime, 2.5)
        resolver.resolve.assert_called_once_with("example.com", "A", search=False)


if __name__ == "__main__":
    unittest.main()
