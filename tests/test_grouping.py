#!/usr/bin/env python3
"""
Tests for grouping failing jobs into incidents
"""

import json
import os
import sys
import tempfile
import unittest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from errors import ConfigurationError
from grouping import classify, load_grouping_strategy, parse_grouping_config
from models import GroupingRule


class TestClassify(unittest.TestCase):
    """Test incident key classification"""

    def test_first_matching_rule_wins(self):
        strategy = [
            GroupingRule(pattern=".*-groupa", label="groupa"),
            GroupingRule(pattern="groupa-.*", label="other"),
        ]
        self.assertEqual(classify("x", "groupa", "failed", strategy), "groupa has failed")

    def test_rule_order_decides_between_overlapping_patterns(self):
        strategy = [
            GroupingRule(pattern="fooPipeline-.*", label="pipeline"),
            GroupingRule(pattern=".*-groupa", label="groupa"),
        ]
        self.assertEqual(classify("fooPipeline", "job-groupa", "failed", strategy), "pipeline has failed")
        self.assertEqual(classify("fooPipeline", "job-groupa", "failed", list(reversed(strategy))),
                         "groupa has failed")

    def test_empty_strategy_falls_back_to_job_name(self):
        self.assertEqual(classify("p", "j", "failed", []), "p/j has failed")

    def test_no_match_falls_back_to_job_name_and_status(self):
        strategy = [GroupingRule(pattern="fooPipeline-.*-groupa", label="groupa")]
        self.assertEqual(classify("fooPipeline", "job3-groupc", "errored", strategy),
                         "fooPipeline/job3-groupc has errored")

    def test_invalid_pattern_is_skipped(self):
        strategy = [
            GroupingRule(pattern="([unclosed", label="broken"),
            GroupingRule(pattern="p-j", label="good"),
        ]
        self.assertEqual(classify("p", "j", "failed", strategy), "good has failed")

    def test_only_invalid_patterns_fall_back(self):
        strategy = [GroupingRule(pattern="*oops", label="broken")]
        self.assertEqual(classify("p", "j", "failed", strategy), "p/j has failed")

    def test_matching_is_case_sensitive(self):
        strategy = [GroupingRule(pattern="foopipeline-.*", label="groupa")]
        self.assertEqual(classify("fooPipeline", "job", "failed", strategy), "fooPipeline/job has failed")

    def test_anchors_are_honoured(self):
        strategy = [GroupingRule(pattern="^job$", label="anchored")]
        self.assertEqual(classify("p", "job", "failed", strategy), "p/job has failed")

    def test_classification_is_deterministic(self):
        strategy = [
            GroupingRule(pattern="a-.*", label="first"),
            GroupingRule(pattern=".*-b", label="second"),
        ]
        results = {classify("a", "b", "failed", strategy) for _ in range(20)}
        self.assertEqual(results, {"first has failed"})


class TestGroupingConfig(unittest.TestCase):
    """Test grouping configuration parsing"""

    def test_parse_mapping_keeps_order(self):
        config = {
            "groupb": ["groupb-.*-groupb"],
            "groupa": [".*-groupa", "groupa-.*"],
        }
        strategy = parse_grouping_config(config)
        self.assertEqual(strategy, [
            GroupingRule(pattern="groupb-.*-groupb", label="groupb"),
            GroupingRule(pattern=".*-groupa", label="groupa"),
            GroupingRule(pattern="groupa-.*", label="groupa"),
        ])

    def test_parse_list_form(self):
        config = [
            {"group": "groupa", "patterns": ["fooPipeline-.*-groupa"]},
            {"group": "single", "patterns": "bar-.*"},
        ]
        strategy = parse_grouping_config(config)
        self.assertEqual([rule.label for rule in strategy], ["groupa", "single"])
        self.assertEqual(strategy[1].pattern, "bar-.*")

    def test_invalid_pattern_does_not_disable_its_group(self):
        with self.assertLogs("grouping", level="WARNING"):
            strategy = parse_grouping_config({"groupa": ["([bad", ".*-groupa"]})

        self.assertEqual(strategy, [GroupingRule(pattern=".*-groupa", label="groupa")])
        self.assertEqual(classify("p", "job-groupa", "failed", strategy), "groupa has failed")

    def test_inline_flags_keep_working(self):
        strategy = parse_grouping_config({"groupa": ["(?i)FOO-.*"]})

        self.assertEqual(classify("foo", "x", "failed", strategy), "groupa has failed")

    def test_group_with_only_invalid_patterns_is_skipped(self):
        with self.assertLogs("grouping", level="WARNING"):
            self.assertEqual(parse_grouping_config({"groupa": ["*oops"]}), [])

    def test_group_without_patterns_is_skipped(self):
        self.assertEqual(parse_grouping_config({"empty": []}), [])

    def test_none_is_empty_strategy(self):
        self.assertEqual(parse_grouping_config(None), [])

    def test_invalid_shapes_raise(self):
        for config in ("nope", {"groupa": 3}, [{"patterns": ["x"]}], [["groupa"]]):
            with self.assertRaises(ConfigurationError):
                parse_grouping_config(config)

    def test_load_grouping_strategy_from_file(self):
        with tempfile.NamedTemporaryFile("w", suffix=".json", delete=False) as f:
            json.dump({"groupa": ["fooPipeline-.*-groupa"]}, f)
            path = f.name
        self.addCleanup(os.remove, path)

        strategy = load_grouping_strategy(path)

        self.assertEqual(strategy, [GroupingRule(pattern="fooPipeline-.*-groupa", label="groupa")])
        self.assertEqual(classify("fooPipeline", "job-groupa", "failed", strategy), "groupa has failed")

    def test_load_grouping_strategy_without_path(self):
        self.assertEqual(load_grouping_strategy(None), [])
        self.assertEqual(load_grouping_strategy(""), [])

    def test_load_grouping_strategy_bad_json(self):
        with tempfile.NamedTemporaryFile("w", suffix=".json", delete=False) as f:
            f.write("%%%%")
            path = f.name
        self.addCleanup(os.remove, path)

        with self.assertRaises(ConfigurationError):
            load_grouping_strategy(path)

    def test_load_grouping_strategy_missing_file(self):
        with self.assertRaises(ConfigurationError):
            load_grouping_strategy("/nonexistent/grouping.json")


if __name__ == "__main__":
    unittest.main()
