#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Test suite for format_detector module.
"""

from chapter_engine.format_detector import analyze_format, select_mode
from chapter_engine.matcher import RuleEvaluation
from chapter_engine.models import DetectionMode, Match, Rule


def evaluation(name, priority, count):
    rule = Rule.create(name, rf"{name}\d+", priority)
    matches = [Match(f"{name}{i}", i * 100, name, priority) for i in range(count)]
    return RuleEvaluation(rule=rule, matches=matches)


class TestAnalyzeFormat:
    """Test mixed-format detection."""

    def test_no_matching_rules(self):
        analysis = analyze_format([evaluation("a", 5, 0), evaluation("b", 3, 0)])
        assert analysis.is_mixed is False
        assert analysis.primary_format is None
        assert select_mode(analysis) is DetectionMode.SINGLE_RULE

    def test_single_matching_rule_is_not_mixed(self):
        analysis = analyze_format([evaluation("a", 10, 2), evaluation("b", 5, 0)])
        assert analysis.is_mixed is False
        assert analysis.primary_format.rule_name == "a"
        assert analysis.secondary_formats == []

    def test_runner_up_above_ratio_is_mixed(self):
        analysis = analyze_format([evaluation("a", 10, 10), evaluation("b", 5, 4)])
        assert analysis.is_mixed is True
        assert [s.rule_name for s in analysis.secondary_formats] == ["b"]
        assert select_mode(analysis) is DetectionMode.MULTI_RULE

    def test_runner_up_at_ratio_is_not_mixed(self):
        analysis = analyze_format([evaluation("a", 10, 10), evaluation("b", 5, 3)])
        assert analysis.is_mixed is False

    def test_ratio_is_configurable(self):
        evaluations = [evaluation("a", 10, 10), evaluation("b", 5, 3)]
        assert analyze_format(evaluations, mixed_format_ratio=0.2).is_mixed is True

    def test_primary_is_highest_priority_not_highest_count(self):
        analysis = analyze_format([evaluation("rare", 10, 1), evaluation("common", 2, 40)])
        assert analysis.primary_format.rule_name == "rare"
        assert analysis.is_mixed is True
