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
conflict_resolver.py - Reduce pooled matches to one match per chapter boundary
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping

from .models import Match
from .rule_patterns import DEFAULT_PROXIMITY_THRESHOLD

logger = logging.getLogger(__name__)


def _wins(candidate: Match, incumbent: Match, rule_counts: Mapping[str, int]) -> bool:
    if candidate.priority != incumbent.priority:
        return candidate.priority > incumbent.priority
    return rule_counts.get(candidate.rule_name, 0) > rule_counts.get(incumbent.rule_name, 0)


def resolve_conflicts(
    matches: Iterable[Match],
    proximity_threshold: int = DEFAULT_PROXIMITY_THRESHOLD,
    rule_counts: Mapping[str, int] | None = None,
) -> list[Match]:
    """
    Keep one match per real chapter boundary.

    Matches closer than ``proximity_threshold`` characters to an accepted match
    are re-detections of the same boundary. Of two conflicting matches the one
    with the higher priority is kept; on a priority tie the rule with more
    occurrences (``rule_counts``) wins, and otherwise the accepted match stays.

    Args:
        matches: Pooled matches from one or more rules
        proximity_threshold: Minimum distance between distinct boundaries
        rule_counts: Occurrence count per rule name, used to break priority ties

    Returns:
        Position-sorted list of winning matches
    """
    rule_counts = rule_counts or {}
    ordered = sorted(matches, key=lambda m: (m.position, -m.priority, m.rule_name))

    accepted: list[Match] = []
    dropped = 0
    for candidate in ordered:
        # accepted stays position-sorted, so the nearest boundary is the last one
        if accepted and candidate.position - accepted[-1].position < proximity_threshold:
            if _wins(candidate, accepted[-1], rule_counts):
                accepted[-1] = candidate
            dropped += 1
            continue
        accepted.append(candidate)

    if dropped:
        logger.debug(f"Conflict resolution dropped {dropped} of {len(ordered)} matches")
    return accepted
