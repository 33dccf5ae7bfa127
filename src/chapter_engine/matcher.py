#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# HERE IS THE CHANGELOG FOR THIS VERSION OF THE CODE:
# - Per-rule global scanning with fresh finditer calls (no shared scan state)
# - Pattern timeouts isolate a runaway rule from the rest of the rule set
# - Rule ranking by (priority, occurrence count)
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
matcher.py - Locate every occurrence of every rule in a document
================================================================

Each rule's pattern is run in global mode over the whole text, producing
raw ``Match`` records that are not yet deduplicated across rules.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from .models import Match, Rule, RuleScore
from .rule_patterns import DEFAULT_PATTERN_TIMEOUT

logger = logging.getLogger(__name__)


@dataclass
class RuleEvaluation:
    """All occurrences of one rule in a document."""

    rule: Rule
    matches: list[Match] = field(default_factory=list)
    timed_out: bool = False

    @property
    def count(self) -> int:
        return len(self.matches)

    def score(self) -> RuleScore:
        return RuleScore(rule_name=self.rule.name, count=self.count, priority=self.rule.priority)


def find_rule_matches(text: str, rule: Rule, timeout: float | None = DEFAULT_PATTERN_TIMEOUT) -> list[Match]:
    """
    Find every non-overlapping occurrence of a rule's pattern.

    Args:
        text: Document text
        rule: Rule to scan with
        timeout: Seconds allowed for the scan, None for no limit

    Returns:
        Matches in document order

    Raises:
        TimeoutError: If the scan exceeds ``timeout``
    """
    matches = []
    for m in rule.pattern.finditer(text, timeout=timeout):
        if m.end() == m.start():
            continue
        matches.append(
            Match(
                title=m.group(0).strip(),
                position=m.start(),
                rule_name=rule.name,
                priority=rule.priority,
            )
        )
    return matches


def evaluate_rules(text: str, rules: Iterable[Rule], timeout: float | None = DEFAULT_PATTERN_TIMEOUT) -> list[RuleEvaluation]:
    """
    Scan the text with every rule.

    A rule whose scan times out is logged and reported with no matches so the
    remaining rules still run.
    """
    evaluations = []
    for rule in rules:
        try:
            matches = find_rule_matches(text, rule, timeout)
            evaluations.append(RuleEvaluation(rule=rule, matches=matches))
        except TimeoutError:
            logger.warning(f"Rule '{rule.name}' timed out after {timeout}s and was skipped for this document")
            evaluations.append(RuleEvaluation(rule=rule, timed_out=True))
    return evaluations


def rank_rules(evaluations: Iterable[RuleEvaluation]) -> list[RuleEvaluation]:
    """
    Drop rules without matches and sort the rest by priority, then count,
    both descending. The sort is stable, so rule store order breaks ties.
    """
    valid = [e for e in evaluations if e.count > 0]
    valid.sort(key=lambda e: (-e.rule.priority, -e.count))
    return valid


def pool_matches(evaluations: Iterable[RuleEvaluation]) -> list[Match]:
    """Flatten the matches of several rules into one list."""
    return [match for evaluation in evaluations for match in evaluation.matches]
