#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# HERE IS THE CHANGELOG FOR THIS VERSION OF THE CODE:
# - Telemetry analysis producing rule, performance and experience proposals
# - Rule synthesis from unmatched heading formats (known conventions first, then generic)
# - Explicit OptimizationSession replaces process-wide optimization history
# - apply() goes through caller bindings only and records every attempt
# - rollback() undoes the rule changes applied during a session
# - measure_accuracy() builds accuracy telemetry from a known-correct title list
#

# Copyright 2025 Emasoft
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
optimization_engine.py - Closed-loop tuning of the chapter rule set
===================================================================

The engine turns telemetry into proposals. It never touches a rule store
directly: proposals are applied through bindings supplied by the caller
(normally a :class:`~chapter_engine.chapter_detector.ChapterDetector`), and
everything applied is remembered in the session so it can be audited or
rolled back.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping, Protocol, Sequence

import regex

from .models import (
    ActionKind,
    ApplyRecord,
    ApplyResult,
    Chapter,
    ChapterAccuracy,
    FalsePositive,
    OptimizationProposal,
    PerformanceSample,
    ProposalAction,
    ProposalCategory,
    Rule,
    Telemetry,
    UnmatchedFormat,
    UserFeedback,
)
from .rule_patterns import (
    ALTERNATE_CONVENTIONS,
    CHINESE_NUMERAL_CLASS,
    GENERIC_CHINESE_HEADING_RE,
    GENERIC_ENGLISH_HEADING_RE,
)

logger = logging.getLogger(__name__)

UNSUPPORTED_REASON = "target does not support this operation"

_COMPILED_CONVENTIONS = [(regex.compile(pattern, flags), name, pattern, priority, flags, description) for name, pattern, priority, flags, description in ALTERNATE_CONVENTIONS]


class UnsupportedOperationError(Exception):
    """Raised when the bindings lack the operation an action needs."""

    pass


class RuleStoreBindings(Protocol):
    """Operations the engine may call when applying proposals."""

    def add_rule(self, rule: Rule) -> None: ...

    def remove_rule(self, name: str) -> bool: ...

    def adjust_priorities(self, adjustments: Iterable[Mapping[str, Any]]) -> None: ...

    def get_rules(self) -> list[Rule]: ...

    def set_chunk_size(self, chunk_size: int) -> None: ...

    def enable_batch_updates(self) -> None: ...


@dataclass
class OptimizationThresholds:
    """Trigger levels and tuning targets of the optimization engine."""

    low_accuracy_threshold: float = 0.7
    slow_processing_threshold: float = 3000
    high_update_frequency_threshold: float = 10
    high_memory_threshold: float = 100
    target_processing_time: float = 1500
    min_chunk_size: int = 50 * 1024
    max_chunk_size: int = 2 * 1024 * 1024
    generic_rule_priority: int = 5
    priority_demotion_step: int = 1

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> OptimizationThresholds:
        section = config.get("optimization") or {}
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in section.items() if k in names})


def _default_metrics() -> dict[str, float | None]:
    return {
        "chapter_detection_accuracy": None,
        "processing_time": None,
        "update_frequency": None,
        "user_feedback_score": None,
    }


@dataclass
class OptimizationSession:
    """
    State accumulated by one optimization session.

    Owned by the caller and passed to the engine, so separate documents or
    users never share optimization history.
    """

    metrics: dict[str, float | None] = field(default_factory=_default_metrics)
    telemetry_history: list[Telemetry] = field(default_factory=list)
    history: list[dict[str, Any]] = field(default_factory=list)
    custom_rules: list[str] = field(default_factory=list)
    replaced_rules: dict[str, Rule] = field(default_factory=dict)
    priority_snapshots: dict[str, int] = field(default_factory=dict)

    def clear(self) -> None:
        self.metrics = _default_metrics()
        self.telemetry_history.clear()
        self.history.clear()
        self.custom_rules.clear()
        self.replaced_rules.clear()
        self.priority_snapshots.clear()


# ────────────────────────── rule synthesis ────────────────────────── #


def create_rule_from_format(heading: str, generic_priority: int = 5) -> Rule | None:
    """
    Synthesize a rule that would match an unrecognized heading.

    Known conventions (volumes, parts, books, episodes, acts, scenes) are
    tried first. Otherwise a generic rule is built from the marker character
    (or marker word) and the numeral class of the heading.

    Args:
        heading: Example heading text, e.g. ``第三回`` or ``Canto 4``
        generic_priority: Priority given to generic rules

    Returns:
        A custom Rule, or None when the heading has no recognizable marker
    """
    for compiled, name, pattern, priority, flags, description in _COMPILED_CONVENTIONS:
        if compiled.search(heading):
            return Rule.create(name, pattern, priority, description, flags, is_custom=True)

    m = GENERIC_CHINESE_HEADING_RE.search(heading)
    if m:
        number, marker = m.group(1), m.group(2)
        if number.isdigit():
            numeral_class, label = r"\d+", "arabic"
        else:
            numeral_class, label = f"{CHINESE_NUMERAL_CLASS}+", "chinese"
        return Rule.create(
            f"custom_{label}_{marker}",
            f"第{numeral_class}{marker}",
            generic_priority,
            f"Headings such as '第{number}{marker}'",
            is_custom=True,
        )

    m = GENERIC_ENGLISH_HEADING_RE.search(heading)
    if m:
        word, number = m.group(1), m.group(2)
        if number.isdigit():
            numeral_class, label = r"\d+", "arabic"
        else:
            numeral_class, label = "[IVXLCDM]+", "roman"
        return Rule.create(
            f"custom_{word.lower()}_{label}",
            rf"\b{regex.escape(word)}\s+{numeral_class}\b",
            generic_priority,
            f"Headings such as '{word} {number}'",
            regex.IGNORECASE,
            is_custom=True,
        )
    return None


def calculate_optimal_chunk_size(processing_time: float, file_size: int, thresholds: OptimizationThresholds | None = None) -> int:
    """
    Recommend a read chunk size that brings processing time to the target.

    Assumes the observed run processed one chunk per 100 time units.

    Args:
        processing_time: Observed processing time (milliseconds)
        file_size: Size of the processed document (bytes)
        thresholds: Target time and chunk size bounds

    Returns:
        Chunk size in bytes, clipped to the configured bounds
    """
    thresholds = thresholds or OptimizationThresholds()
    if processing_time <= 0:
        raise ValueError(f"Processing time must be positive, got {processing_time}")
    current_chunk_size = file_size / math.ceil(processing_time / 100)
    suggested = math.floor(current_chunk_size * (thresholds.target_processing_time / processing_time) + 0.5)
    return max(thresholds.min_chunk_size, min(thresholds.max_chunk_size, suggested))


# ────────────────────────── accuracy measurement ────────────────────────── #


def heading_signature(title: str) -> tuple[str, str]:
    """
    Reduce a heading to its format.

    Returns:
        (signature, example marker) - headings with the same signature use
        the same convention, e.g. ``第三回`` and ``第十回``
    """
    for compiled, name, *_ in _COMPILED_CONVENTIONS:
        m = compiled.search(title)
        if m:
            return name, m.group(0)
    m = GENERIC_CHINESE_HEADING_RE.search(title)
    if m:
        kind = "arabic" if m.group(1).isdigit() else "chinese"
        return f"{kind}:{m.group(2)}", m.group(0)
    m = GENERIC_ENGLISH_HEADING_RE.search(title)
    if m:
        return f"word:{m.group(1).lower()}", m.group(0)
    first_line = title.strip().splitlines()[0] if title.strip() else ""
    return f"literal:{first_line}", first_line


def _same_heading(detected: str, expected: str) -> bool:
    detected, expected = detected.strip(), expected.strip()
    if not detected or not expected:
        return False
    return detected == expected or detected.startswith(expected) or expected.startswith(detected)


def measure_accuracy(chapters: Sequence[Chapter], expected_titles: Sequence[str]) -> ChapterAccuracy:
    """
    Compare detected chapters with a known-correct list of chapter titles.

    Synthetic chapters (front matter, whole document) are ignored. Accuracy
    is the number of matched titles over the larger of the expected and
    detected counts.

    Args:
        chapters: Detected chapters
        expected_titles: Correct chapter headings in document order

    Returns:
        ChapterAccuracy with unmatched formats and false positives
    """
    detected = [c for c in chapters if c.rule_name is not None]
    used: set[int] = set()
    missed: list[str] = []

    for title in expected_titles:
        hit = next((i for i, c in enumerate(detected) if i not in used and _same_heading(c.title, title)), None)
        if hit is None:
            missed.append(title)
        else:
            used.add(hit)

    denominator = max(len(expected_titles), len(detected))
    accuracy = len(used) / denominator if denominator else 1.0

    grouped: dict[str, list[Any]] = {}
    for title in missed:
        signature, example = heading_signature(title)
        if signature in grouped:
            grouped[signature][1] += 1
        else:
            grouped[signature] = [example, 1]
    unmatched = [UnmatchedFormat(pattern=example, count=count) for example, count in grouped.values()]

    false_positives = [FalsePositive(rule_name=c.rule_name or "", title=c.title) for i, c in enumerate(detected) if i not in used]
    return ChapterAccuracy(accuracy=accuracy, unmatched_formats=unmatched, false_positives=false_positives)


# ────────────────────────── engine ────────────────────────── #


def _binding(bindings: RuleStoreBindings, name: str) -> Callable[..., Any]:
    operation = getattr(bindings, name, None)
    if operation is None or not callable(operation):
        raise UnsupportedOperationError(UNSUPPORTED_REASON)
    return operation


class OptimizationEngine:
    """Analyzes telemetry and applies the resulting proposals through bindings."""

    def __init__(self, thresholds: OptimizationThresholds | None = None, session: OptimizationSession | None = None) -> None:
        self.thresholds = thresholds or OptimizationThresholds()
        self.session = session if session is not None else OptimizationSession()
        self._handlers: dict[ActionKind, Callable[[ProposalAction, Any], str]] = {
            ActionKind.ADD_RULE: self._apply_add_rule,
            ActionKind.ADJUST_PRIORITIES: self._apply_adjust_priorities,
            ActionKind.OPTIMIZE_CHUNK_SIZE: self._apply_chunk_size,
            ActionKind.BATCH_UPDATES: self._apply_batch_updates,
            ActionKind.REDUCE_MEMORY_USAGE: self._apply_reduce_memory,
        }

    @classmethod
    def from_config(cls, config: Mapping[str, Any], session: OptimizationSession | None = None) -> OptimizationEngine:
        return cls(OptimizationThresholds.from_config(config), session)

    # ─────────────── analysis ─────────────── #

    def analyze(self, telemetry: Telemetry | Mapping[str, Any]) -> list[OptimizationProposal]:
        """
        Turn a telemetry snapshot into proposals, one per breached threshold.

        Args:
            telemetry: Telemetry object or the equivalent mapping

        Returns:
            Proposals, possibly empty when every measurement is within limits
        """
        if isinstance(telemetry, Mapping):
            telemetry = Telemetry.from_dict(telemetry)
        self.session.telemetry_history.append(telemetry)
        th = self.thresholds
        proposals = []

        accuracy = telemetry.chapter_accuracy
        if accuracy is not None:
            self.session.metrics["chapter_detection_accuracy"] = accuracy.accuracy
            if accuracy.accuracy < th.low_accuracy_threshold:
                proposals.append(self._rule_proposal(accuracy))

        performance = telemetry.performance
        if performance is not None:
            self.session.metrics["processing_time"] = performance.processing_time
            self.session.metrics["update_frequency"] = performance.update_frequency
            if performance.processing_time > th.slow_processing_threshold:
                proposals.append(self._performance_proposal(performance))
            if performance.update_frequency > th.high_update_frequency_threshold:
                proposals.append(self._update_frequency_proposal(performance))

        feedback = telemetry.user_feedback
        if feedback is not None:
            self.session.metrics["user_feedback_score"] = feedback.score
            experience = self._experience_proposal(feedback)
            if experience.actions:
                proposals.append(experience)

        logger.debug(f"Telemetry analysis produced {len(proposals)} proposal(s)")
        return proposals

    def _rule_proposal(self, accuracy: ChapterAccuracy) -> OptimizationProposal:
        actions = []
        proposed: set[str] = set()
        for unmatched in accuracy.unmatched_formats:
            # a format seen only once is not worth a rule
            if unmatched.count <= 1:
                continue
            rule = create_rule_from_format(unmatched.pattern, self.thresholds.generic_rule_priority)
            if rule is None:
                logger.debug(f"No rule can be synthesized for heading format '{unmatched.pattern}'")
                continue
            if rule.name in proposed:
                continue
            proposed.add(rule.name)
            actions.append(
                ProposalAction(
                    kind=ActionKind.ADD_RULE,
                    payload={"rule": rule},
                    rationale=f"Unrecognized heading format '{unmatched.pattern}' appeared {unmatched.count} times",
                )
            )

        if accuracy.false_positives:
            rule_names = list(dict.fromkeys(fp.rule_name for fp in accuracy.false_positives if fp.rule_name))
            adjustments = [{"rule_name": fp.rule_name, "new_priority": fp.new_priority} for fp in accuracy.false_positives if fp.rule_name and fp.new_priority is not None]
            actions.append(
                ProposalAction(
                    kind=ActionKind.ADJUST_PRIORITIES,
                    payload={
                        "rule_names": rule_names,
                        "adjustments": adjustments,
                        "titles": [fp.title for fp in accuracy.false_positives],
                    },
                    rationale=f"{len(accuracy.false_positives)} detected chapter(s) are false positives; lower the priority of the rules that produced them",
                )
            )

        return OptimizationProposal(
            category=ProposalCategory.RULE,
            actions=actions,
            description=f"Chapter detection accuracy {accuracy.accuracy:.0%} is below {self.thresholds.low_accuracy_threshold:.0%}; extend the rule set",
            urgency="high",
        )

    def _performance_proposal(self, performance: PerformanceSample) -> OptimizationProposal:
        th = self.thresholds
        chunk_size = calculate_optimal_chunk_size(performance.processing_time, performance.file_size, th)
        actions = [
            ProposalAction(
                kind=ActionKind.OPTIMIZE_CHUNK_SIZE,
                payload={"chunk_size": chunk_size},
                rationale=f"Processing took {performance.processing_time:g}ms, above {th.slow_processing_threshold:g}ms; read the document in {chunk_size} byte chunks",
            )
        ]
        if performance.memory_usage > th.high_memory_threshold:
            actions.append(
                ProposalAction(
                    kind=ActionKind.REDUCE_MEMORY_USAGE,
                    payload={"memory_usage": performance.memory_usage},
                    rationale=f"Memory usage {performance.memory_usage:g}MB is above {th.high_memory_threshold:g}MB; release chapter content that is no longer displayed",
                )
            )
        return OptimizationProposal(
            category=ProposalCategory.PERFORMANCE,
            actions=actions,
            description="Large document processing is slow; adjust input chunking",
            urgency="high",
        )

    def _update_frequency_proposal(self, performance: PerformanceSample) -> OptimizationProposal:
        th = self.thresholds
        action = ProposalAction(
            kind=ActionKind.BATCH_UPDATES,
            payload={"update_frequency": performance.update_frequency},
            rationale=f"{performance.update_frequency:g} updates per second is above {th.high_update_frequency_threshold:g}; batch chapter list updates",
        )
        return OptimizationProposal(
            category=ProposalCategory.PERFORMANCE,
            actions=[action],
            description="Display updates are too frequent; batch them",
            urgency="medium",
        )

    def _experience_proposal(self, feedback: UserFeedback) -> OptimizationProposal:
        kinds = {
            "chapter_detection": ActionKind.IMPROVE_CHAPTER_DETECTION,
            "performance": ActionKind.IMPROVE_PERFORMANCE,
        }
        actions = []
        for complaint in feedback.complaints:
            kind = kinds.get(str(complaint.get("type", "")))
            if kind is None:
                continue
            actions.append(
                ProposalAction(
                    kind=kind,
                    payload={"details": complaint.get("details")},
                    rationale=str(complaint.get("description", "")),
                )
            )
        return OptimizationProposal(
            category=ProposalCategory.EXPERIENCE,
            actions=actions,
            description="Address user feedback",
            urgency="medium",
        )

    # ─────────────── application ─────────────── #

    def apply(self, proposals: OptimizationProposal | Iterable[OptimizationProposal], bindings: RuleStoreBindings) -> ApplyResult:
        """
        Execute proposals through caller-supplied bindings.

        Experience proposals are advisory and are not executed. Every other
        action is recorded as applied or failed; a failure never stops the
        remaining actions.

        Args:
            proposals: One proposal or several
            bindings: Object providing the RuleStoreBindings operations

        Returns:
            ApplyResult with applied and failed actions and a summary
        """
        if isinstance(proposals, OptimizationProposal):
            proposals = [proposals]
        proposals = list(proposals)
        result = ApplyResult()

        for proposal in proposals:
            if proposal.category is ProposalCategory.EXPERIENCE:
                logger.debug(f"Skipping advisory proposal: {proposal.description}")
                continue
            for action in proposal.actions:
                handler = self._handlers.get(action.kind)
                try:
                    if handler is None:
                        raise UnsupportedOperationError(UNSUPPORTED_REASON)
                    description = handler(action, bindings)
                    result.applied.append(ApplyRecord(proposal.category, action.kind, description))
                except UnsupportedOperationError as e:
                    result.failed.append(ApplyRecord(proposal.category, action.kind, str(e)))
                except (ValueError, TypeError, KeyError) as e:
                    logger.warning(f"Failed to apply {action.kind.value}: {e}")
                    result.failed.append(ApplyRecord(proposal.category, action.kind, str(e)))

        self.session.history.append(
            {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "proposals": [p.to_dict() for p in proposals],
                "result": result.to_dict(),
            }
        )
        summary = result.summary
        logger.info(f"Applied {summary['successful']} of {summary['total']} optimization action(s)")
        return result

    def _current_rules(self, bindings: RuleStoreBindings) -> dict[str, Rule]:
        get_rules = getattr(bindings, "get_rules", None)
        if get_rules is None:
            return {}
        return {rule.name: rule for rule in get_rules()}

    def _apply_add_rule(self, action: ProposalAction, bindings: RuleStoreBindings) -> str:
        add_rule = _binding(bindings, "add_rule")
        rule = action.payload["rule"]
        if isinstance(rule, Mapping):
            rule = Rule.from_dict(rule)
        existing = self._current_rules(bindings).get(rule.name)
        add_rule(rule)

        session = self.session
        if existing is not None and rule.name not in session.custom_rules:
            session.replaced_rules[rule.name] = existing
        if rule.name not in session.custom_rules:
            session.custom_rules.append(rule.name)
        return action.rationale or f"Added rule '{rule.name}'"

    def _apply_adjust_priorities(self, action: ProposalAction, bindings: RuleStoreBindings) -> str:
        adjust = _binding(bindings, "adjust_priorities")
        current = {name: rule.priority for name, rule in self._current_rules(bindings).items()}
        explicit = {a["rule_name"]: a["new_priority"] for a in action.payload.get("adjustments", [])}
        names = list(dict.fromkeys(list(action.payload.get("rule_names", [])) + list(explicit)))

        adjustments = []
        for name in names:
            if name in explicit:
                new_priority = explicit[name]
            elif name in current:
                new_priority = current[name] - self.thresholds.priority_demotion_step
            else:
                logger.warning(f"Cannot demote rule '{name}': no such rule")
                continue
            adjustments.append({"rule_name": name, "new_priority": new_priority})
        if not adjustments:
            raise ValueError("None of the rules named in the proposal exist")

        for adjustment in adjustments:
            name = adjustment["rule_name"]
            # rules added in this session are undone by the rule rollback
            if name in current and name not in self.session.priority_snapshots and name not in self.session.custom_rules:
                self.session.priority_snapshots[name] = current[name]
        adjust(adjustments)
        changed = ", ".join(f"{a['rule_name']} -> {a['new_priority']}" for a in adjustments)
        return f"{action.rationale} ({changed})" if action.rationale else f"Adjusted priorities: {changed}"

    def _apply_chunk_size(self, action: ProposalAction, bindings: RuleStoreBindings) -> str:
        _binding(bindings, "set_chunk_size")(action.payload["chunk_size"])
        return action.rationale or f"Chunk size set to {action.payload['chunk_size']}"

    def _apply_batch_updates(self, action: ProposalAction, bindings: RuleStoreBindings) -> str:
        _binding(bindings, "enable_batch_updates")()
        return action.rationale or "Batched updates enabled"

    def _apply_reduce_memory(self, action: ProposalAction, bindings: RuleStoreBindings) -> str:
        _binding(bindings, "reduce_memory_usage")()
        return action.rationale or "Memory usage reduced"

    # ─────────────── session management ─────────────── #

    def rollback(self, bindings: RuleStoreBindings) -> dict[str, Any]:
        """
        Undo the rule changes applied in this session.

        Rules added by the session are removed and the rules they replaced
        are put back, then priorities changed by the session are restored.

        Returns:
            Mapping with ``removed_rules``, ``restored_rules`` and
            ``restored_priorities``
        """
        session = self.session
        removed: list[str] = []
        restored: list[str] = []
        for name in reversed(session.custom_rules):
            if name in session.replaced_rules:
                _binding(bindings, "add_rule")(session.replaced_rules[name])
                restored.append(name)
            elif _binding(bindings, "remove_rule")(name):
                removed.append(name)

        restored_priorities = dict(session.priority_snapshots)
        if restored_priorities:
            _binding(bindings, "adjust_priorities")([{"rule_name": name, "new_priority": priority} for name, priority in restored_priorities.items()])

        session.custom_rules.clear()
        session.replaced_rules.clear()
        session.priority_snapshots.clear()

        outcome = {
            "removed_rules": removed,
            "restored_rules": restored,
            "restored_priorities": restored_priorities,
        }
        session.history.append({"timestamp": datetime.now(timezone.utc).isoformat(), "rollback": outcome})
        logger.info(f"Rolled back {len(removed) + len(restored)} rule change(s) and {len(restored_priorities)} priority change(s)")
        return outcome

    def get_history(self) -> list[dict[str, Any]]:
        return list(self.session.history)

    @property
    def custom_rules(self) -> list[str]:
        """Names of the rules added through this session."""
        return list(self.session.custom_rules)

    def reset(self) -> None:
        """Clear metrics, telemetry history, applied-change history and tracked custom rules."""
        self.session.clear()
