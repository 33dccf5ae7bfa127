#!/usr/bin/env python3
# -*- coding: utf-8 -*-

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
rule_store.py - Ordered, priority-sorted collection of segmentation rules
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator, Mapping

from .models import InvalidRuleError, Rule
from .rule_patterns import SEED_RULES

logger = logging.getLogger(__name__)


def seed_rules() -> list[Rule]:
    """Build fresh Rule objects for the seed rule table."""
    return [Rule.create(name, pattern, priority, description, flags) for name, pattern, priority, flags, description in SEED_RULES]


class RuleStore:
    """
    Holds the rules used by detection, always sorted by descending priority.

    Rules with equal priority keep their insertion order. Names are the stable
    identity: adding a rule whose name already exists replaces it in place.
    Not safe for concurrent mutation; callers serialize changes.
    """

    def __init__(self, rules: Iterable[Rule] | None = None, seed: bool = True) -> None:
        """
        Initialize the store.

        Args:
            rules: Extra rules added after the seed set
            seed: Whether to start from the seed rule table
        """
        self._seed = seed
        self._rules: list[Rule] = []
        self._order: dict[str, int] = {}
        self._counter = 0
        if seed:
            for rule in seed_rules():
                self._insert(rule)
        for rule in rules or []:
            self._insert(self._coerce(rule))
        self._sort()

    @staticmethod
    def _coerce(rule: Rule | Mapping[str, Any]) -> Rule:
        if isinstance(rule, Rule):
            return rule
        if isinstance(rule, Mapping):
            return Rule.from_dict(rule)
        raise InvalidRuleError(f"Expected a Rule or a rule mapping, got {type(rule).__name__}")

    def _insert(self, rule: Rule) -> None:
        for idx, existing in enumerate(self._rules):
            if existing.name == rule.name:
                self._rules[idx] = rule
                return
        self._rules.append(rule)
        self._order[rule.name] = self._counter
        self._counter += 1

    def _sort(self) -> None:
        self._rules.sort(key=lambda r: (-r.priority, self._order[r.name]))

    def add(self, rule: Rule | Mapping[str, Any]) -> None:
        """
        Add a rule, replacing any existing rule with the same name.

        Raises:
            InvalidRuleError: If the rule is malformed
        """
        rule = self._coerce(rule)
        self._insert(rule)
        self._sort()
        logger.debug(f"Rule '{rule.name}' stored with priority {rule.priority}")

    def remove(self, name: str) -> bool:
        """Remove a rule by name. Returns False if no such rule exists."""
        for idx, rule in enumerate(self._rules):
            if rule.name == name:
                del self._rules[idx]
                del self._order[name]
                return True
        logger.warning(f"Cannot remove rule '{name}': no such rule")
        return False

    def update_priority(self, name: str, new_priority: int) -> bool:
        """Change a rule's priority and re-sort. Returns False if no such rule exists."""
        if isinstance(new_priority, bool) or not isinstance(new_priority, int):
            logger.warning(f"Ignoring non-integer priority {new_priority!r} for rule '{name}'")
            return False
        for idx, rule in enumerate(self._rules):
            if rule.name == name:
                self._rules[idx] = rule.with_priority(new_priority)
                self._sort()
                return True
        logger.warning(f"Cannot update priority of rule '{name}': no such rule")
        return False

    def get(self, name: str) -> Rule | None:
        for rule in self._rules:
            if rule.name == name:
                return rule
        return None

    def list(self) -> list[Rule]:
        """Return a copy of the rules in priority order."""
        return list(self._rules)

    def names(self) -> list[str]:
        return [rule.name for rule in self._rules]

    def reset(self) -> None:
        """Drop every rule and reload the seed set (if this store was seeded)."""
        self._rules = []
        self._order = {}
        self._counter = 0
        if self._seed:
            for rule in seed_rules():
                self._insert(rule)
        self._sort()

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(list(self._rules))

    def __contains__(self, name: object) -> bool:
        return any(rule.name == name for rule in self._rules)
