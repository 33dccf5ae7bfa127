#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# HERE IS THE CHANGELOG FOR THIS VERSION OF THE CODE:
# - Seed rule table for Chinese and English chapter headings
# - Alternate heading conventions used when synthesizing rules from telemetry
# - Policy defaults for conflict resolution, validation and mixed-format detection
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
rule_patterns.py - Pattern tables and policy constants for chapter detection
============================================================================

Contains the seed rule table loaded into every new rule store, the table of
alternate heading conventions the optimization engine classifies unmatched
headings against, and the default policy values used across the pipeline.

Pattern sources are kept as plain strings here; they are compiled with the
``regex`` engine when a :class:`~chapter_engine.models.Rule` is created.
"""

import regex

# ────────────────────────── character classes ────────────────────────── #

CHINESE_NUMERALS = "一二三四五六七八九十百千万零"
CHINESE_NUMERAL_CLASS = f"[{CHINESE_NUMERALS}]"
MIXED_NUMERAL_CLASS = rf"[{CHINESE_NUMERALS}\d]"

# Characters that close a "第...X" heading marker
HEADING_MARKER_CHARS = "章卷节篇部回集幕场折"

# Separator that may follow a heading marker before the rest of the title
# line. Horizontal whitespace only: a title never crosses a line break.
TITLE_SEPARATOR_RE = regex.compile(r"[：:]|[ \t　]")

# ────────────────────────── seed rules ────────────────────────── #

# (name, pattern, priority, flags, description)
SEED_RULES: list[tuple[str, str, int, int, str]] = [
    (
        "chinese_numeral_chapter",
        rf"第{CHINESE_NUMERAL_CLASS}+章",
        10,
        0,
        "Chinese numeral chapters such as '第一章', '第二章'",
    ),
    (
        "chinese_numeral_section",
        rf"第{CHINESE_NUMERAL_CLASS}+节",
        9,
        0,
        "Chinese numeral sections such as '第一节', '第二节'",
    ),
    (
        "arabic_chapter",
        r"第\d+章",
        8,
        0,
        "Arabic numeral chapters such as '第1章', '第2章'",
    ),
    (
        "arabic_section",
        r"第\d+节",
        7,
        0,
        "Arabic numeral sections such as '第1节', '第2节'",
    ),
    (
        "english_chapter",
        r"Chapter\s+\d+",
        6,
        regex.IGNORECASE,
        "English chapters such as 'Chapter 1', 'CHAPTER 2'",
    ),
    (
        "bracketed_chapter",
        r"【第\d+章】",
        5,
        0,
        "Bracketed chapters such as '【第1章】'",
    ),
    (
        "bracketed_section",
        r"【第\d+节】",
        4,
        0,
        "Bracketed sections such as '【第1节】'",
    ),
    (
        "parenthesized_chapter",
        r"\(第\d+章\)",
        3,
        0,
        "Parenthesized chapters such as '(第1章)'",
    ),
    (
        "parenthesized_section",
        r"\(第\d+节\)",
        2,
        0,
        "Parenthesized sections such as '(第1节)'",
    ),
    (
        "numbered_line",
        r"^\d+\.",
        1,
        regex.MULTILINE,
        "Bare numbered lines such as '1.', '2.'",
    ),
]

# ────────────────────────── alternate conventions ────────────────────────── #

# Known heading conventions that the seed table does not cover. The first
# entry whose pattern is found in an unmatched heading wins.
# (name, pattern, priority, flags, description)
ALTERNATE_CONVENTIONS: list[tuple[str, str, int, int, str]] = [
    ("volume_marker", rf"卷{MIXED_NUMERAL_CLASS}+", 9, 0, "Volume markers such as '卷一', '卷2'"),
    ("part_marker", rf"第{MIXED_NUMERAL_CLASS}+篇", 8, 0, "Part markers such as '第一篇', '第2篇'"),
    ("book_marker", rf"第{MIXED_NUMERAL_CLASS}+部", 7, 0, "Book markers such as '第一部', '第2部'"),
    ("episode_marker", rf"第{MIXED_NUMERAL_CLASS}+回", 6, 0, "Episode markers such as '第一回', '第2回'"),
    ("collection_marker", rf"第{MIXED_NUMERAL_CLASS}+集", 5, 0, "Collection markers such as '第一集', '第2集'"),
    ("act_marker", rf"第{MIXED_NUMERAL_CLASS}+幕", 4, 0, "Act markers such as '第一幕', '第2幕'"),
    ("scene_marker", rf"第{MIXED_NUMERAL_CLASS}+场", 3, 0, "Scene markers such as '第一场', '第2场'"),
    ("zaju_act_marker", rf"第{MIXED_NUMERAL_CLASS}+折", 2, 0, "Zaju act markers such as '第一折', '第2折'"),
    ("english_volume", r"(?:Volume|Vol\.)\s+(?:\d+|[IVXLC]+)\b", 5, regex.IGNORECASE, "English volumes such as 'Volume 1', 'Vol. II'"),
    ("english_part", r"Part\s+(?:\d+|[IVXLC]+)\b", 5, regex.IGNORECASE, "English parts such as 'Part 1', 'Part IV'"),
    ("english_book", r"Book\s+(?:\d+|[IVXLC]+)\b", 5, regex.IGNORECASE, "English books such as 'Book 2', 'Book VII'"),
    ("english_act", r"Act\s+(?:\d+|[IVXLC]+)\b", 4, regex.IGNORECASE, "English acts such as 'Act 1', 'Act III'"),
    ("english_scene", r"Scene\s+(?:\d+|[IVXLC]+)\b", 3, regex.IGNORECASE, "English scenes such as 'Scene 1', 'Scene II'"),
]

# Generic fallbacks used when no alternate convention matches
GENERIC_CHINESE_HEADING_RE = regex.compile(rf"第({MIXED_NUMERAL_CLASS}+)([{HEADING_MARKER_CHARS}])")
GENERIC_ENGLISH_HEADING_RE = regex.compile(r"\b([A-Za-z]{3,})\s+(\d+|[IVXLCDM]+)\b")

# ────────────────────────── policy defaults ────────────────────────── #

# Matches closer than this many characters are re-detections of one boundary
DEFAULT_PROXIMITY_THRESHOLD = 50
# Second-ranked rule count above this share of the top count means mixed format
DEFAULT_MIXED_FORMAT_RATIO = 0.3
DEFAULT_MIN_CHAPTERS = 3
DEFAULT_SHORT_CHAPTER_CHARS = 50
# Seconds a single rule may spend scanning a document
DEFAULT_PATTERN_TIMEOUT = 5.0
DEFAULT_MAX_DOCUMENT_CHARS = 50 * 1024 * 1024

FRONT_MATTER_TITLE = "Front Matter"
WHOLE_DOCUMENT_TITLE = "Whole Document"
