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
format_detector.py - Decide whether a document mixes heading conventions
"""

from __future__ import annotations

from typing import Iterable

from .matcher import RuleEvaluation, rank_rules
from .models import DetectionMode, FormatAnalysis
from .rule_patterns import DEFAULT_MIXED_FORMAT_RATIO


def analyze_format(evaluations: Iterable[RuleEvaluation], mixed_format_ratio: float = DEFAULT_MIXED_FORMAT_RATIO) -> FormatAnalysis:
    """
    Rank the matching rules and check whether more than one is in real use.

    The document is mixed when at least two rules match and the count of the
    second-ranked rule exceeds ``mixed_format_ratio`` times the top count.

    Args:
        evaluations: Per-rule match results for the document
        mixed_format_ratio: Share of the top count the runner-up must exceed

    Returns:
        FormatAnalysis with the primary format and the other matching formats
    """
    ranked = rank_rules(evaluations)
    if not ranked:
        return FormatAnalysis(is_mixed=False)

    primary = ranked[0].score()
    secondary = [e.score() for e in ranked[1:]]
    is_mixed = bool(secondary) and secondary[0].count > primary.count * mixed_format_ratio
    return FormatAnalysis(is_mixed=is_mixed, primary_format=primary, secondary_formats=secondary)


def select_mode(analysis: FormatAnalysis) -> DetectionMode:
    """Map a format analysis to the detection strategy for the document."""
    return DetectionMode.MULTI_RULE if analysis.is_mixed else DetectionMode.SINGLE_RULE
