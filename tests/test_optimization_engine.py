#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Test suite for optimization_engine module.
"""

from datetime import datetime

import pytest

from chapter_engine.chapter_detector import ChapterDetector
from chapter_engine.config_manager import get_default_config
from chapter_engine.models import (
    ActionKind,
    Chapter,
    ChapterAccuracy,
    OptimizationProposal,
    ProposalAction,
    ProposalCategory,
    Rule,
    Telemetry,
)
from chapter_engine.optimization_engine import (
    UNSUPPORTED_REASON,
    OptimizationEngine,
    OptimizationSession,
    OptimizationThresholds,
    calculate_optimal_chunk_size,
    create_rule_from_format,
    heading_signature,
    measure_accuracy,
)

from conftest import BODY_CN

LOW_ACCURACY = {
    "chapter_accuracy": {
        "accuracy": 0.5,
        "unmatched_formats": [
            {"pattern": "第一回", "count": 3},
            {"pattern": "第二回", "count": 2},
            {"pattern": "卷一", "count": 1},
            {"pattern": "???", "count": 5},
        ],
        "false_positives": [{"rule_name": "numbered_line", "title": "1."}],
    }
}

SLOW = {
    "performance": {
        "processing_time": 4000,
        "file_size": 10 * 1024 * 1024,
        "update_frequency": 20,
        "memory_usage": 150,
    }
}


def kinds(proposal):
    return [action.kind for action in proposal.actions]


class TestCreateRuleFromFormat:
    """Test rule synthesis from unmatched headings."""

    @pytest.mark.parametrize(
        "heading,name,priority",
        [
            ("第三回", "episode_marker", 6),
            ("卷二 风云", "volume_marker", 9),
            ("第2部", "book_marker", 7),
            ("第一折", "zaju_act_marker", 2),
            ("Part IV", "english_part", 5),
            ("Scene 3", "english_scene", 3),
        ],
    )
    def test_known_conventions(self, heading, name, priority):
        rule = create_rule_from_format(heading)
        assert rule.name == name
        assert rule.priority == priority
        assert rule.is_custom is True
        assert rule.pattern.search(heading)

    def test_generic_chinese_heading(self):
        rule = create_rule_from_format("第五章")
        assert rule.name == "custom_chinese_章"
        assert rule.priority == 5
        assert rule.pattern.search("第十二章")

    def test_generic_arabic_heading(self):
        rule = create_rule_from_format("第12节", generic_priority=2)
        assert rule.name == "custom_arabic_节"
        assert rule.priority == 2
        assert rule.pattern.search("第7节")

    def test_generic_english_heading(self):
        rule = create_rule_from_format("Canto 4")
        assert rule.name == "custom_canto_arabic"
        assert rule.pattern.search("CANTO 12")
        assert not rule.pattern.search("Decanto 4")

    def test_unrecognizable_heading(self):
        assert create_rule_from_format("???") is None
        assert create_rule_from_format("") is None


class TestChunkSize:
    """Test the chunk size recommendation."""

    def test_scales_to_target_time(self):
        assert calculate_optimal_chunk_size(4000, 10 * 1024 * 1024) == 98304

    def test_clipped_to_minimum(self):
        assert calculate_optimal_chunk_size(4000, 100) == 50 * 1024

    def test_clipped_to_maximum(self):
        assert calculate_optimal_chunk_size(3100, 10**9) == 2 * 1024 * 1024

    def test_custom_bounds(self):
        thresholds = OptimizationThresholds(min_chunk_size=1, max_chunk_size=10)
        assert calculate_optimal_chunk_size(4000, 10 * 1024 * 1024, thresholds) == 10

    def test_rejects_non_positive_time(self):
        with pytest.raises(ValueError):
            calculate_optimal_chunk_size(0, 1024)


class TestAnalyze:
    """Test proposal generation from telemetry."""

    def test_healthy_telemetry_gives_no_proposals(self):
        engine = OptimizationEngine()
        telemetry = {
            "chapter_accuracy": {"accuracy": 0.95},
            "performance": {"processing_time": 800, "file_size": 1024, "update_frequency": 2, "memory_usage": 20},
            "user_feedback": {"score": 4.5, "complaints": []},
        }
        assert engine.analyze(telemetry) == []

    def test_accuracy_at_threshold_is_not_low(self):
        assert OptimizationEngine().analyze({"chapter_accuracy": {"accuracy": 0.7}}) == []

    def test_low_accuracy_rule_proposal(self):
        proposals = OptimizationEngine().analyze(LOW_ACCURACY)
        assert len(proposals) == 1
        proposal = proposals[0]
        assert proposal.category is ProposalCategory.RULE
        assert proposal.urgency == "high"
        assert kinds(proposal) == [ActionKind.ADD_RULE, ActionKind.ADJUST_PRIORITIES]
        assert proposal.actions[0].payload["rule"].name == "episode_marker"
        assert proposal.actions[1].payload["rule_names"] == ["numbered_line"]

    def test_slow_processing_proposals(self):
        proposals = OptimizationEngine().analyze(SLOW)
        assert [p.category for p in proposals] == [ProposalCategory.PERFORMANCE, ProposalCategory.PERFORMANCE]
        assert kinds(proposals[0]) == [ActionKind.OPTIMIZE_CHUNK_SIZE, ActionKind.REDUCE_MEMORY_USAGE]
        assert proposals[0].actions[0].payload["chunk_size"] == 98304
        assert kinds(proposals[1]) == [ActionKind.BATCH_UPDATES]

    def test_memory_alone_does_not_trigger(self):
        telemetry = {"performance": {"processing_time": 100, "file_size": 1, "update_frequency": 1, "memory_usage": 500}}
        assert OptimizationEngine().analyze(telemetry) == []

    def test_complaints_give_experience_proposal(self):
        telemetry = {
            "user_feedback": {
                "score": 2,
                "complaints": [
                    {"type": "chapter_detection", "description": "chapters are missing"},
                    {"type": "colors", "description": "too dark"},
                ],
            }
        }
        proposals = OptimizationEngine().analyze(telemetry)
        assert len(proposals) == 1
        assert proposals[0].category is ProposalCategory.EXPERIENCE
        assert kinds(proposals[0]) == [ActionKind.IMPROVE_CHAPTER_DETECTION]

    def test_accepts_telemetry_object_and_records_metrics(self):
        engine = OptimizationEngine()
        engine.analyze(Telemetry(chapter_accuracy=ChapterAccuracy(accuracy=0.9)))
        engine.analyze(SLOW)
        assert engine.session.metrics["chapter_detection_accuracy"] == 0.9
        assert engine.session.metrics["processing_time"] == 4000
        assert len(engine.session.telemetry_history) == 2

    @pytest.mark.parametrize(
        "telemetry",
        [
            {"chapter_accuracy": [1]},
            {"performance": "slow"},
            {"chapter_accuracy": {"accuracy": 0.2, "unmatched_formats": ["第一回"]}},
            {"user_feedback": {"complaints": [3]}},
            {"performance": {"processing_time": [4000]}},
        ],
    )
    def test_malformed_telemetry_raises_value_error(self, telemetry):
        with pytest.raises(ValueError):
            OptimizationEngine().analyze(telemetry)

    def test_thresholds_from_config(self):
        config = get_default_config()
        config["optimization"]["low_accuracy_threshold"] = 0.4
        engine = OptimizationEngine.from_config(config)
        assert engine.thresholds.low_accuracy_threshold == 0.4
        assert engine.analyze(LOW_ACCURACY) == []


class TestApply:
    """Test applying proposals through detector bindings."""

    def test_apply_all_actions(self):
        engine = OptimizationEngine()
        detector = ChapterDetector()
        proposals = engine.analyze({**LOW_ACCURACY, **SLOW})
        result = engine.apply(proposals, detector)

        assert result.summary == {"total": 5, "successful": 4, "failed": 1}
        assert result.failed[0].kind is ActionKind.REDUCE_MEMORY_USAGE
        assert result.failed[0].description == UNSUPPORTED_REASON

        rules = {r.name: r for r in detector.get_rules()}
        assert rules["episode_marker"].is_custom
        assert rules["numbered_line"].priority == 0
        assert detector.chunk_size == 98304
        assert detector.batch_updates is True
        assert engine.custom_rules == ["episode_marker"]

    def test_experience_proposals_are_not_applied(self):
        engine = OptimizationEngine()
        proposal = OptimizationProposal(
            ProposalCategory.EXPERIENCE,
            [ProposalAction(ActionKind.IMPROVE_PERFORMANCE, rationale="slow")],
        )
        result = engine.apply(proposal, ChapterDetector())
        assert result.summary["total"] == 0

    def test_explicit_new_priority(self):
        engine = OptimizationEngine()
        detector = ChapterDetector()
        telemetry = {"chapter_accuracy": {"accuracy": 0.1, "false_positives": [{"rule_name": "english_chapter", "new_priority": 2}]}}
        result = engine.apply(engine.analyze(telemetry), detector)
        assert result.summary["failed"] == 0
        assert {r.name: r.priority for r in detector.get_rules()}["english_chapter"] == 2

    def test_unknown_rule_names_fail(self):
        engine = OptimizationEngine()
        telemetry = {"chapter_accuracy": {"accuracy": 0.1, "false_positives": [{"rule_name": "ghost"}]}}
        result = engine.apply(engine.analyze(telemetry), ChapterDetector())
        assert result.summary == {"total": 1, "successful": 0, "failed": 1}

    def test_target_without_operations(self):
        engine = OptimizationEngine()
        result = engine.apply(engine.analyze(LOW_ACCURACY), object())
        assert result.summary["successful"] == 0
        assert all(record.description == UNSUPPORTED_REASON for record in result.failed)

    def test_binding_error_is_recorded(self):
        engine = OptimizationEngine()
        proposal = OptimizationProposal(
            ProposalCategory.PERFORMANCE,
            [ProposalAction(ActionKind.OPTIMIZE_CHUNK_SIZE, {"chunk_size": 0})],
        )
        result = engine.apply(proposal, ChapterDetector())
        assert result.summary["failed"] == 1
        assert "positive integer" in result.failed[0].description

    def test_history_is_timestamped(self):
        engine = OptimizationEngine()
        engine.apply(engine.analyze(SLOW), ChapterDetector())
        history = engine.get_history()
        assert len(history) == 1
        assert datetime.fromisoformat(history[0]["timestamp"]).tzinfo is not None
        assert history[0]["result"]["summary"]["total"] == 3


class TestRollback:
    """Test undoing applied rule changes."""

    def test_rollback_removes_added_rules_and_restores_priorities(self):
        engine = OptimizationEngine()
        detector = ChapterDetector()
        before = [(r.name, r.priority) for r in detector.get_rules()]
        engine.apply(engine.analyze(LOW_ACCURACY), detector)

        outcome = engine.rollback(detector)
        assert outcome["removed_rules"] == ["episode_marker"]
        assert outcome["restored_priorities"] == {"numbered_line": 1}
        assert [(r.name, r.priority) for r in detector.get_rules()] == before
        assert engine.custom_rules == []

    def test_rollback_restores_replaced_rule(self):
        engine = OptimizationEngine()
        detector = ChapterDetector()
        original = detector.rule_store.get("english_chapter")
        replacement = Rule.create("english_chapter", r"Chapter\s+[IVX]+", 6, is_custom=True)
        engine.apply(
            OptimizationProposal(ProposalCategory.RULE, [ProposalAction(ActionKind.ADD_RULE, {"rule": replacement})]),
            detector,
        )
        assert detector.rule_store.get("english_chapter") is replacement

        outcome = engine.rollback(detector)
        assert outcome["restored_rules"] == ["english_chapter"]
        assert detector.rule_store.get("english_chapter") is original

    def _demote(self, name, priority):
        return OptimizationProposal(
            ProposalCategory.RULE,
            [ProposalAction(ActionKind.ADJUST_PRIORITIES, {"adjustments": [{"rule_name": name, "new_priority": priority}]})],
        )

    def _replace(self, rule):
        return OptimizationProposal(ProposalCategory.RULE, [ProposalAction(ActionKind.ADD_RULE, {"rule": rule})])

    def test_rollback_demoted_then_replaced_rule(self):
        engine = OptimizationEngine()
        detector = ChapterDetector()
        original = detector.rule_store.get("english_chapter")
        engine.apply(self._demote("english_chapter", 2), detector)
        engine.apply(self._replace(Rule.create("english_chapter", r"Chapter\s+[IVX]+", 6, is_custom=True)), detector)

        engine.rollback(detector)
        restored = detector.rule_store.get("english_chapter")
        assert restored.priority == original.priority
        assert restored.pattern.pattern == original.pattern.pattern

    def test_rollback_replaced_then_demoted_rule(self):
        engine = OptimizationEngine()
        detector = ChapterDetector()
        original = detector.rule_store.get("english_chapter")
        engine.apply(self._replace(Rule.create("english_chapter", r"Chapter\s+[IVX]+", 6, is_custom=True)), detector)
        engine.apply(self._demote("english_chapter", 1), detector)

        outcome = engine.rollback(detector)
        assert outcome["restored_priorities"] == {}
        assert detector.rule_store.get("english_chapter") is original

    def test_reset_clears_session(self):
        engine = OptimizationEngine()
        engine.apply(engine.analyze({**LOW_ACCURACY, **SLOW}), ChapterDetector())
        engine.reset()
        assert engine.get_history() == []
        assert engine.custom_rules == []
        assert engine.session.telemetry_history == []
        assert engine.session.metrics["processing_time"] is None

    def test_sessions_are_isolated(self):
        first = OptimizationEngine(session=OptimizationSession())
        second = OptimizationEngine(session=OptimizationSession())
        first.apply(first.analyze(SLOW), ChapterDetector())
        assert second.get_history() == []


class TestMeasureAccuracy:
    """Test accuracy telemetry built from a known chapter list."""

    def _chapter(self, title, rule_name):
        return Chapter(title=title, content=title, start_position=0, end_position=len(title), rule_name=rule_name)

    def test_counts_matches_misses_and_false_positives(self):
        chapters = [
            self._chapter("Front Matter", None),
            self._chapter("第一章 甲", "chinese_numeral_chapter"),
            self._chapter("1.", "numbered_line"),
        ]
        accuracy = measure_accuracy(chapters, ["第一章 甲", "第二回 乙", "第三回 丙"])
        assert accuracy.accuracy == pytest.approx(1 / 3)
        assert [(f.pattern, f.count) for f in accuracy.unmatched_formats] == [("第二回", 2)]
        assert [(f.rule_name, f.title) for f in accuracy.false_positives] == [("numbered_line", "1.")]

    def test_nothing_expected_nothing_detected(self):
        assert measure_accuracy([self._chapter("Whole Document", None)], []).accuracy == 1.0

    def test_closed_loop_improves_detection(self):
        text = f"第一章 甲\n{BODY_CN}\n第二回 乙\n{BODY_CN}\n第三回 丙\n{BODY_CN}\n"
        expected = ["第一章 甲", "第二回 乙", "第三回 丙"]
        detector = ChapterDetector()
        engine = OptimizationEngine()

        before = measure_accuracy(detector.detect(text).chapters, expected)
        assert before.accuracy < 0.7

        result = engine.apply(engine.analyze(Telemetry(chapter_accuracy=before)), detector)
        assert result.summary["successful"] == 1

        after = detector.detect(text)
        assert [c.title for c in after.chapters] == expected
        assert measure_accuracy(after.chapters, expected).accuracy == 1.0


class TestHeadingSignature:
    """Test grouping headings by convention."""

    @pytest.mark.parametrize(
        "title,signature,example",
        [
            ("第三回 大闹天宫", "episode_marker", "第三回"),
            ("卷二 风起", "volume_marker", "卷二"),
            ("第12节 尾声", "arabic:节", "第12节"),
            ("第十二节", "chinese:节", "第十二节"),
            ("Chapter 7: Home", "word:chapter", "Chapter 7"),
            ("Epilogue", "literal:Epilogue", "Epilogue"),
        ],
    )
    def test_signatures(self, title, signature, example):
        assert heading_signature(title) == (signature, example)

    def test_same_convention_shares_signature(self):
        assert heading_signature("第一回")[0] == heading_signature("第九十九回")[0]
