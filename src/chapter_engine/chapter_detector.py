#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# HERE IS THE CHANGELOG FOR THIS VERSION OF THE CODE:
# - Detection pipeline: matcher -> format detection -> conflict resolution -> segmenter -> validator
# - Single-rule / multi-rule strategy chosen once per document from the format analysis
# - Rule management surface used by callers and by the optimization engine
# - Custom rules from configuration are accepted or rejected at load time
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
chapter_detector.py - Chapter detection for long text documents
===============================================================

Ties the pipeline together. A detection run is a single synchronous pass over
an in-memory text; nothing but the rule store survives between runs, so
detecting the same text twice with the same rules gives the same chapters.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Any, Iterable, Mapping

from .chapter_validators import validate_chapters
from .conflict_resolver import resolve_conflicts
from .format_detector import analyze_format, select_mode
from .matcher import evaluate_rules, pool_matches, rank_rules
from .models import DetectionMode, DetectionResult, DocumentTooLargeError, InvalidRuleError, Rule
from .rule_patterns import (
    DEFAULT_MAX_DOCUMENT_CHARS,
    DEFAULT_MIN_CHAPTERS,
    DEFAULT_MIXED_FORMAT_RATIO,
    DEFAULT_PATTERN_TIMEOUT,
    DEFAULT_PROXIMITY_THRESHOLD,
    DEFAULT_SHORT_CHAPTER_CHARS,
    FRONT_MATTER_TITLE,
    WHOLE_DOCUMENT_TITLE,
)
from .rule_store import RuleStore
from .segmenter import build_chapters

DEFAULT_CHUNK_SIZE = 1024 * 1024


@dataclass
class DetectionSettings:
    """Policy parameters of a detection run."""

    proximity_threshold: int = DEFAULT_PROXIMITY_THRESHOLD
    mixed_format_ratio: float = DEFAULT_MIXED_FORMAT_RATIO
    min_chapters: int = DEFAULT_MIN_CHAPTERS
    short_chapter_chars: int = DEFAULT_SHORT_CHAPTER_CHARS
    check_numbering: bool = True
    pattern_timeout: float | None = DEFAULT_PATTERN_TIMEOUT
    max_document_chars: int = DEFAULT_MAX_DOCUMENT_CHARS
    front_matter_title: str = FRONT_MATTER_TITLE
    whole_document_title: str = WHOLE_DOCUMENT_TITLE

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> DetectionSettings:
        section = config.get("detection") or {}
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in section.items() if k in names})


class ChapterDetector:
    """Detects chapters with a prioritized rule store."""

    def __init__(
        self,
        settings: DetectionSettings | None = None,
        rule_store: RuleStore | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.settings = settings or DetectionSettings()
        self.rule_store = rule_store if rule_store is not None else RuleStore()
        self.logger = logger or logging.getLogger(__name__)
        # Processing parameters consumed by the input acquisition layer
        self.chunk_size = DEFAULT_CHUNK_SIZE
        self.batch_updates = False
        self.rejected_rules: list[tuple[Any, str]] = []

    @classmethod
    def from_config(cls, config: Mapping[str, Any], logger: logging.Logger | None = None) -> ChapterDetector:
        """
        Build a detector from a configuration dictionary.

        Custom rules that fail validation are logged and listed in
        ``rejected_rules`` instead of aborting construction.
        """
        rules_config = config.get("rules") or {}
        store = RuleStore(seed=rules_config.get("use_seed_rules", True))
        detector = cls(DetectionSettings.from_config(config), store, logger)
        for definition in rules_config.get("custom") or []:
            detector.accept_custom_rule(definition)
        return detector

    # ────────────────────────── detection ────────────────────────── #

    def detect(self, text: str) -> DetectionResult:
        """
        Split a document into chapters.

        Args:
            text: The whole document

        Returns:
            DetectionResult with chapters, canonical matches and validation

        Raises:
            TypeError: If text is not a string
            DocumentTooLargeError: If text exceeds ``max_document_chars``
        """
        if not isinstance(text, str):
            raise TypeError("Input must be a string")
        settings = self.settings
        if len(text) > settings.max_document_chars:
            raise DocumentTooLargeError(f"Document has {len(text)} characters, the limit is {settings.max_document_chars}")

        evaluations = evaluate_rules(text, self.rule_store.list(), settings.pattern_timeout)
        analysis = analyze_format(evaluations, settings.mixed_format_ratio)
        mode = select_mode(analysis)
        ranked = rank_rules(evaluations)

        if not ranked:
            matches = []
        elif mode is DetectionMode.SINGLE_RULE:
            matches = list(ranked[0].matches)
        else:
            rule_counts = {e.rule.name: e.count for e in ranked}
            matches = resolve_conflicts(pool_matches(ranked), settings.proximity_threshold, rule_counts)

        chapters = build_chapters(text, matches, settings.front_matter_title, settings.whole_document_title)
        validation = validate_chapters(
            chapters,
            min_chapters=settings.min_chapters,
            short_chapter_chars=settings.short_chapter_chars,
            check_numbering=settings.check_numbering,
        )
        self.logger.debug(f"Detected {len(chapters)} chapter(s) in {mode.value} mode from {len(matches)} boundary match(es)")

        return DetectionResult(
            chapters=chapters,
            matches=matches,
            validation=validation,
            total_chapters=len(chapters),
            is_mixed_format=analysis.is_mixed,
            mode=mode,
            format_analysis=analysis,
        )

    # ────────────────────────── rule management ────────────────────────── #

    def add_rule(self, rule: Rule | Mapping[str, Any]) -> None:
        """
        Add or replace a rule.

        Raises:
            InvalidRuleError: If the rule is missing a name, pattern or
                priority, or its pattern does not compile
        """
        self.rule_store.add(rule)

    def accept_custom_rule(self, definition: Rule | Mapping[str, Any]) -> bool:
        """Add a caller-supplied rule, recording it in ``rejected_rules`` if it is malformed."""
        try:
            self.add_rule(definition)
            return True
        except InvalidRuleError as e:
            self.logger.warning(f"Rejected custom rule: {e}")
            self.rejected_rules.append((definition, str(e)))
            return False

    def remove_rule(self, name: str) -> bool:
        return self.rule_store.remove(name)

    def adjust_priorities(self, adjustments: Iterable[Mapping[str, Any]]) -> None:
        """
        Change the priority of several rules.

        Each adjustment is a mapping with ``rule_name`` and ``new_priority``.
        Unknown rule names and malformed entries are logged and skipped.
        """
        for adjustment in adjustments:
            if not isinstance(adjustment, Mapping):
                self.logger.warning(f"Ignoring malformed priority adjustment: {adjustment!r}")
                continue
            name = adjustment.get("rule_name")
            new_priority = adjustment.get("new_priority")
            if not name or isinstance(new_priority, bool) or not isinstance(new_priority, int):
                self.logger.warning(f"Ignoring malformed priority adjustment: {adjustment!r}")
                continue
            if self.rule_store.update_priority(name, new_priority):
                self.logger.info(f"Rule '{name}' priority set to {new_priority}")

    def get_rules(self) -> list[Rule]:
        """Return a copy of the current rules in priority order."""
        return self.rule_store.list()

    # ────────────────────────── processing parameters ────────────────────────── #

    def set_chunk_size(self, chunk_size: int) -> None:
        """Set the chunk size recommended to the input acquisition layer."""
        if isinstance(chunk_size, bool) or not isinstance(chunk_size, int) or chunk_size <= 0:
            raise ValueError(f"Chunk size must be a positive integer, got {chunk_size!r}")
        self.chunk_size = chunk_size
        self.logger.info(f"Chunk size set to {chunk_size} bytes")

    def enable_batch_updates(self) -> None:
        self.batch_updates = True
        self.logger.info("Batched chapter list updates enabled")
