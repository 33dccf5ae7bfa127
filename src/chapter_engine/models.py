#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# Copyright (c) 2025 Emasoft
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
#
# CHANGELOG:
# - Added Rule with regex compilation and construction checks
# - Added Match, Chapter, ValidationReport, FormatAnalysis and DetectionResult
# - Added DetectionMode enum selecting single-rule or multi-rule detection
# - Added optimization proposal, apply result and telemetry models
#

"""Data models for the chapter segmentation engine."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Mapping

import regex


class InvalidRuleError(ValueError):
    """Raised when a rule is missing a required field or its pattern is unusable."""

    pass


class DocumentTooLargeError(ValueError):
    """Raised when a document exceeds the configured size cap."""

    pass


_FLAG_NAMES = ("IGNORECASE", "MULTILINE", "DOTALL", "VERBOSE", "ASCII")


def flags_from_names(names: Any) -> int:
    """
    Convert a list of flag names (e.g. ``["IGNORECASE", "MULTILINE"]``) to regex flags.

    Raises:
        InvalidRuleError: If a name is not a supported flag
    """
    if not names:
        return 0
    if isinstance(names, str):
        names = [names]
    flags = 0
    for name in names:
        key = str(name).upper()
        if key not in _FLAG_NAMES:
            raise InvalidRuleError(f"Unsupported pattern flag '{name}'. Use one of: {', '.join(_FLAG_NAMES)}")
        flags |= getattr(regex, key)
    return flags


def flags_to_names(flags: int) -> list[str]:
    """Inverse of :func:`flags_from_names` for the supported flags."""
    return [name for name in _FLAG_NAMES if flags & getattr(regex, name)]


@dataclass(frozen=True, eq=False)
class Rule:
    """A named, prioritized pattern that locates chapter boundary markers."""

    name: str
    pattern: regex.Pattern
    priority: int
    description: str = ""
    is_custom: bool = False

    @classmethod
    def create(
        cls,
        name: Any,
        pattern: Any,
        priority: Any,
        description: str = "",
        flags: int = 0,
        is_custom: bool = False,
    ) -> Rule:
        """
        Create a rule, compiling string patterns with the ``regex`` engine.

        Args:
            name: Unique rule name
            pattern: Pattern source string or an already compiled pattern
            priority: Integer priority, higher is preferred
            description: Human readable description
            flags: Regex flags applied when ``pattern`` is a string
            is_custom: Whether the rule was supplied by a caller rather than seeded

        Returns:
            The new Rule

        Raises:
            InvalidRuleError: If a field is missing or malformed, or the pattern
                does not compile or matches the empty string
        """
        if not isinstance(name, str) or not name.strip():
            raise InvalidRuleError("Rule is missing a name")
        if pattern is None or pattern == "":
            raise InvalidRuleError(f"Rule '{name}' is missing a pattern")
        if priority is None or isinstance(priority, bool) or not isinstance(priority, int):
            raise InvalidRuleError(f"Rule '{name}' needs an integer priority, got {priority!r}")

        try:
            if isinstance(pattern, str):
                compiled = regex.compile(pattern, flags)
            elif hasattr(pattern, "pattern") and hasattr(pattern, "flags"):
                compiled = regex.compile(pattern.pattern, pattern.flags)
            else:
                raise InvalidRuleError(f"Rule '{name}' has a pattern of unsupported type {type(pattern).__name__}")
        except regex.error as e:
            raise InvalidRuleError(f"Rule '{name}' has an invalid pattern: {e}") from e

        if compiled.fullmatch("") is not None:
            raise InvalidRuleError(f"Rule '{name}' pattern matches the empty string")

        return cls(
            name=name.strip(),
            pattern=compiled,
            priority=priority,
            description=description or "",
            is_custom=is_custom,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], is_custom: bool = True) -> Rule:
        """
        Build a rule from a mapping with ``name``, ``pattern``, ``priority`` and
        optional ``description`` and ``flags`` keys.
        """
        if not isinstance(data, Mapping):
            raise InvalidRuleError(f"Rule definition must be a mapping, got {type(data).__name__}")
        return cls.create(
            name=data.get("name"),
            pattern=data.get("pattern"),
            priority=data.get("priority"),
            description=data.get("description", ""),
            flags=flags_from_names(data.get("flags")),
            is_custom=data.get("is_custom", is_custom),
        )

    @property
    def source(self) -> str:
        return self.pattern.pattern

    def with_priority(self, priority: int) -> Rule:
        return Rule(self.name, self.pattern, priority, self.description, self.is_custom)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "pattern": self.source,
            "flags": flags_to_names(self.pattern.flags),
            "priority": self.priority,
            "description": self.description,
            "is_custom": self.is_custom,
        }


@dataclass(frozen=True)
class Match:
    """One located occurrence of a rule's pattern."""

    title: str
    position: int
    rule_name: str
    priority: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "position": self.position,
            "rule_name": self.rule_name,
            "priority": self.priority,
        }


@dataclass(frozen=True)
class Chapter:
    """A contiguous slice of the document between two boundary markers."""

    title: str
    content: str
    start_position: int
    end_position: int
    rule_name: str | None = None

    @property
    def length(self) -> int:
        return self.end_position - self.start_position

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "content": self.content,
            "start_position": self.start_position,
            "end_position": self.end_position,
            "rule_name": self.rule_name,
        }


@dataclass
class ValidationReport:
    """Advisory findings about a chapter list."""

    is_valid: bool
    warnings: list[str] = field(default_factory=list)
    total_chapters: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "warnings": list(self.warnings),
            "total_chapters": self.total_chapters,
        }


@dataclass(frozen=True)
class RuleScore:
    """Match count of one rule over a document."""

    rule_name: str
    count: int
    priority: int

    def to_dict(self) -> dict[str, Any]:
        return {"rule_name": self.rule_name, "count": self.count, "priority": self.priority}


@dataclass
class FormatAnalysis:
    """Outcome of mixed-format detection."""

    is_mixed: bool
    primary_format: RuleScore | None = None
    secondary_formats: list[RuleScore] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_mixed": self.is_mixed,
            "primary_format": self.primary_format.to_dict() if self.primary_format else None,
            "secondary_formats": [s.to_dict() for s in self.secondary_formats],
        }


class DetectionMode(enum.Enum):
    """How matches are drawn from the rule set for one document."""

    SINGLE_RULE = "single_rule"
    """Only the occurrences of the best-scoring rule are used."""
    MULTI_RULE = "multi_rule"
    """Occurrences of all matching rules are pooled and resolved."""


@dataclass
class DetectionResult:
    """Everything one detection run produces."""

    chapters: list[Chapter]
    matches: list[Match]
    validation: ValidationReport
    total_chapters: int
    is_mixed_format: bool
    mode: DetectionMode
    format_analysis: FormatAnalysis

    def to_dict(self, include_content: bool = True) -> dict[str, Any]:
        chapters = []
        for chapter in self.chapters:
            data = chapter.to_dict()
            if not include_content:
                data.pop("content")
            chapters.append(data)
        return {
            "chapters": chapters,
            "matches": [m.to_dict() for m in self.matches],
            "validation": self.validation.to_dict(),
            "total_chapters": self.total_chapters,
            "is_mixed_format": self.is_mixed_format,
            "mode": self.mode.value,
            "format_analysis": self.format_analysis.to_dict(),
        }


# ────────────────────────── optimization ────────────────────────── #


class ProposalCategory(enum.Enum):
    RULE = "rule"
    PERFORMANCE = "performance"
    EXPERIENCE = "experience"


class ActionKind(enum.Enum):
    ADD_RULE = "add_rule"
    ADJUST_PRIORITIES = "adjust_priorities"
    OPTIMIZE_CHUNK_SIZE = "optimize_chunk_size"
    BATCH_UPDATES = "batch_updates"
    REDUCE_MEMORY_USAGE = "reduce_memory_usage"
    IMPROVE_CHAPTER_DETECTION = "improve_chapter_detection"
    IMPROVE_PERFORMANCE = "improve_performance"


@dataclass
class ProposalAction:
    kind: ActionKind
    payload: dict[str, Any] = field(default_factory=dict)
    rationale: str = ""

    def to_dict(self) -> dict[str, Any]:
        payload = {k: (v.to_dict() if isinstance(v, Rule) else v) for k, v in self.payload.items()}
        return {"kind": self.kind.value, "payload": payload, "rationale": self.rationale}


@dataclass
class OptimizationProposal:
    """A caller-reviewable, not yet applied set of suggested changes."""

    category: ProposalCategory
    actions: list[ProposalAction] = field(default_factory=list)
    description: str = ""
    urgency: str = "medium"

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "description": self.description,
            "urgency": self.urgency,
            "actions": [a.to_dict() for a in self.actions],
        }


@dataclass
class ApplyRecord:
    category: ProposalCategory
    kind: ActionKind
    description: str

    def to_dict(self) -> dict[str, Any]:
        return {"category": self.category.value, "kind": self.kind.value, "description": self.description}


@dataclass
class ApplyResult:
    """Outcome of applying proposals through rule store bindings."""

    applied: list[ApplyRecord] = field(default_factory=list)
    failed: list[ApplyRecord] = field(default_factory=list)

    @property
    def summary(self) -> dict[str, int]:
        return {
            "total": len(self.applied) + len(self.failed),
            "successful": len(self.applied),
            "failed": len(self.failed),
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "applied": [r.to_dict() for r in self.applied],
            "failed": [r.to_dict() for r in self.failed],
            "summary": self.summary,
        }


@dataclass(frozen=True)
class UnmatchedFormat:
    """An expected heading format that detection missed, with its occurrence count."""

    pattern: str
    count: int

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> UnmatchedFormat:
        return cls(pattern=str(data.get("pattern", "")), count=int(data.get("count", 0)))


@dataclass(frozen=True)
class FalsePositive:
    """A detected chapter that is not a real chapter, with the rule that produced it."""

    rule_name: str
    title: str = ""
    new_priority: int | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FalsePositive:
        new_priority = data.get("new_priority")
        return cls(
            rule_name=str(data.get("rule_name", "")),
            title=str(data.get("title", "")),
            new_priority=int(new_priority) if new_priority is not None else None,
        )


def _require_mapping(value: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"Telemetry {what} must be a mapping, got {type(value).__name__}")
    return value


@dataclass
class ChapterAccuracy:
    accuracy: float
    unmatched_formats: list[UnmatchedFormat] = field(default_factory=list)
    false_positives: list[FalsePositive] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ChapterAccuracy:
        return cls(
            accuracy=float(data.get("accuracy", 0.0)),
            unmatched_formats=[UnmatchedFormat.from_dict(_require_mapping(f, "unmatched format")) for f in data.get("unmatched_formats") or []],
            false_positives=[FalsePositive.from_dict(_require_mapping(f, "false positive")) for f in data.get("false_positives") or []],
        )


@dataclass
class PerformanceSample:
    processing_time: float = 0.0
    file_size: int = 0
    update_frequency: float = 0.0
    memory_usage: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PerformanceSample:
        return cls(
            processing_time=float(data.get("processing_time", 0.0)),
            file_size=int(data.get("file_size", 0)),
            update_frequency=float(data.get("update_frequency", 0.0)),
            memory_usage=float(data.get("memory_usage", 0.0)),
        )


@dataclass
class UserFeedback:
    score: float | None = None
    complaints: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> UserFeedback:
        score = data.get("score")
        return cls(
            score=float(score) if score is not None else None,
            complaints=[dict(_require_mapping(c, "complaint")) for c in data.get("complaints") or []],
        )


@dataclass
class Telemetry:
    """A snapshot of accuracy, performance and user feedback measurements."""

    chapter_accuracy: ChapterAccuracy | None = None
    performance: PerformanceSample | None = None
    user_feedback: UserFeedback | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Telemetry:
        """
        Build telemetry from a mapping with optional ``chapter_accuracy``,
        ``performance`` and ``user_feedback`` sections.

        Raises:
            ValueError: If a section or one of its values has the wrong shape
        """
        data = _require_mapping(data, "data")
        sections: dict[str, Any] = {}
        for key, section_cls in (("chapter_accuracy", ChapterAccuracy), ("performance", PerformanceSample), ("user_feedback", UserFeedback)):
            section = data.get(key)
            if not section:
                sections[key] = None
                continue
            try:
                sections[key] = section_cls.from_dict(_require_mapping(section, f"section '{key}'"))
            except TypeError as e:
                raise ValueError(f"Invalid telemetry section '{key}': {e}") from e
        return cls(**sections)
