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
chapter-engine - Rule-driven chapter segmentation

Splits long Chinese and English texts into chapters with a prioritized,
tunable rule set.
"""

__version__ = "1.0.0"
__author__ = "Emasoft"
__email__ = "713559+Emasoft@users.noreply.github.com"
__license__ = "Apache-2.0"

# Detection pipeline
from . import rule_patterns
from . import models
from . import rule_store
from . import matcher
from . import conflict_resolver
from . import segmenter
from . import format_detector
from . import chapter_validators
from . import chapter_issues
from . import numerals
from . import chapter_detector

# Tuning and editing
from . import optimization_engine
from . import chapter_editing

# Support modules
from . import common_yaml_utils
from . import config_schema
from . import config_manager

from .chapter_detector import ChapterDetector, DetectionSettings
from .models import (
    Chapter,
    DetectionMode,
    DetectionResult,
    DocumentTooLargeError,
    InvalidRuleError,
    Match,
    Rule,
    Telemetry,
    ValidationReport,
)
from .optimization_engine import OptimizationEngine, OptimizationSession, OptimizationThresholds
from .rule_store import RuleStore

__all__ = [
    "rule_patterns",
    "models",
    "rule_store",
    "matcher",
    "conflict_resolver",
    "segmenter",
    "format_detector",
    "chapter_validators",
    "chapter_issues",
    "numerals",
    "chapter_detector",
    "optimization_engine",
    "chapter_editing",
    "common_yaml_utils",
    "config_schema",
    "config_manager",
    "Chapter",
    "ChapterDetector",
    "DetectionMode",
    "DetectionResult",
    "DetectionSettings",
    "DocumentTooLargeError",
    "InvalidRuleError",
    "Match",
    "OptimizationEngine",
    "OptimizationSession",
    "OptimizationThresholds",
    "Rule",
    "RuleStore",
    "Telemetry",
    "ValidationReport",
]
