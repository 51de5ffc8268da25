"""
Tests for the detection policy table.
"""

import json
import os
import tempfile
import unittest

from fraud_detection.policy import (
    DEFAULT_POLICY,
    DEFAULT_WEIGHTS,
    POLICY_VERSION,
    Policy,
    PolicyError,
    load_policy,
    policy_from_dict,
)


class TestPolicyValidation(unittest.TestCase):
    def test_default_policy(self):
        self.assertEqual(DEFAULT_POLICY.version, POLICY_VERSION)
        self.assertEqual(dict(DEFAULT_POLICY.weights), DEFAULT_WEIGHTS)
        self.assertEqual(DEFAULT_POLICY.fake_threshold, 50)
        self.assertIn("bit.ly", DEFAULT_POLICY.shorteners)

    def test_weights_are_read_only(self):
        with self.assertRaises(TypeError):
            DEFAULT_POLICY.weights["shortened-url"] = 0  # type: ignore[index]

    def test_negative_weight_rejected(self):
        with self.assertRaises(PolicyError):
            Policy(weights={**DEFAULT_WEIGHTS, "shortened-url": -5})

    def test_weight_above_100_rejected(self):
        with self.assertRaises(PolicyError):
            Policy(weights={**DEFAULT_WEIGHTS, "shortened-url": 101})

    def test_non_integer_weight_rejected(self):
        with self.assertRaises(PolicyError):
            Policy(weights={**DEFAULT_WEIGHTS, "shortened-url": 2.5})
        with self.assertRaises(PolicyError):
            Policy(weights={**DEFAULT_WEIGHTS, "shortened-url": True})

    def test_missing_weight_rejected(self):
        weights = dict(DEFAULT_WEIGHTS)
        del weights["no-dns-record"]
        with self.assertRaises(PolicyError):
            Policy(weights=weights)

    def test_unknown_weight_flag_rejected(self):
        with self.assertRaises(PolicyError) as ctx:
            Policy(weights={**DEFAULT_WEIGHTS, "shortend-url": 40})
        self.assertIn("shortend-url", str(ctx.exception))

    def test_threshold_bounds(self):
        for bad in (0, 101, "50"):
            with self.assertRaises(PolicyError):
                Policy(fake_threshold=bad)

    def test_malformed_weight_must_reach_threshold(self):
        with self.assertRaises(PolicyError):
            Policy(weights={**DEFAULT_WEIGHTS, "empty-or-malformed-domain": 10})

    def test_max_labels(self):
        with self.assertRaises(PolicyError):
            Policy(max_labels=0)

    def test_tables_normalized(self):
        p = Policy(
            shorteners=["Bit.LY"],
            suspicious_tlds=[".XYZ"],
            keywords=["Secure-"],
        )
        self.assertEqual(p.shorteners, frozenset({"bit.ly"}))
        self.assertEqual(p.suspicious_tlds, frozenset({"xyz"}))
        self.assertEqual(p.keywords, frozenset({"secure-"}))

    def test_table_must_be_list(self):
        with self.assertRaises(PolicyError):
            Policy(shorteners="bit.ly")


class TestPolicyLoading(unittest.TestCase):
    def test_overlay_merges_weights(self):
        p = policy_from_dict({"version": "t-1", "weights": {"shortened-url": 45}})
        self.assertEqual(p.version, "t-1")
        self.assertEqual(p.weights["shortened-url"], 45)
        self.assertEqual(p.weights["no-dns-record"], DEFAULT_WEIGHTS["no-dns-record"])

    def test_overlay_replaces_lists(self):
        p = policy_from_dict({"shorteners": ["sho.rt"]})
        self.assertEqual(p.shorteners, frozenset({"sho.rt"}))
        self.assertEqual(p.suspicious_tlds, DEFAULT_POLICY.suspicious_tlds)

    def test_unknown_key(self):
        with self.assertRaises(PolicyError):
            policy_from_dict({"weight": {}})

    def test_misspelled_weight_in_overlay(self):
        with self.assertRaises(PolicyError):
            policy_from_dict({"weights": {"shortend-url": 40}})

    def test_not_an_object(self):
        with self.assertRaises(PolicyError):
            policy_from_dict(["bit.ly"])

    def test_load_from_file(self):
        with tempfile.NamedTemporaryFile(mode="w", suffix=".json", delete=False) as f:
            json.dump({"fake_threshold": 70, "max_labels": 6}, f)
            path = f.name
        try:
            p = load_policy(path)
        finally:
            os.unlink(path)
        self.assertEqual(p.fake_threshold, 70)
        self.assertEqual(p.max_labels, 6)

    def test_invalid_json_file(self):
        with tempfile.NamedTemporaryFile(mode="w", suffix=".json", delete=False) as f:
            f.write("{not json")
            path = f.name
        try:
            with self.assertRaises(PolicyError):
                load_policy(path)
        finally:
            os.unlink(path)

    def test_missing_file(self):
        with self.assertRaises(PolicyError):
            load_policy("/nonexistent/policy.json")


if __name__ == "__main__":
    unittest.main()
