#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# HERE IS THE CHANGELOG FOR THIS VERSION OF THE CODE:
# - Structural validation of a detected chapter list
# - Flags too few chapters, empty chapters and abnormally short chapters
# - Optional numbering sequence check through chapter_issues
#

"""
chapter_validators.py - Validation of detected chapters
=======================================================

Validation is advisory: it produces warnings and a validity flag but never
prevents the chapter list from being returned.
"""

from __future__ import annotations

import logging
from typing import Sequence

from .chapter_issues import numbering_warnings
from .models import Chapter, ValidationReport
from .rule_patterns import DEFAULT_MIN_CHAPTERS, DEFAULT_SHORT_CHAPTER_CHARS

logger = logging.getLogger(__name__)


def is_empty_chapter(chapter: Chapter) -> bool:
    """Check if a chapter has no content besides whitespace."""
    return not chapter.content.strip()


def is_short_chapter(chapter: Chapter, short_chapter_chars: int = DEFAULT_SHORT_CHAPTER_CHARS) -> bool:
    """
    Check if a non-empty chapter is shorter than the threshold.

    Short chapters are candidate false positives: a pattern matched incidental
    text rather than a real heading.
    """
    stripped = chapter.content.strip()
    return bool(stripped) and len(stripped) < short_chapter_chars


def validate_chapters(
    chapters: Sequence[Chapter],
    min_chapters: int = DEFAULT_MIN_CHAPTERS,
    short_chapter_chars: int = DEFAULT_SHORT_CHAPTER_CHARS,
    check_numbering: bool = True,
) -> ValidationReport:
    """
    Inspect a chapter list for structural anomalies.

    Args:
        chapters: Detected chapters in document order
        min_chapters: Fewer chapters than this marks the result invalid
        short_chapter_chars: Trimmed length below which a chapter is suspicious
        check_numbering: Also report gaps and repeats in chapter numbers

    Returns:
        ValidationReport with validity flag and warnings
    """
    total = len(chapters)
    warnings = []

    if total < min_chapters:
        warnings.append(f"Only {total} chapter(s) detected, expected at least {min_chapters}; segmentation may have failed")

    empty = sum(1 for c in chapters if is_empty_chapter(c))
    if empty:
        warnings.append(f"{empty} chapter(s) have empty content")

    short = sum(1 for c in chapters if is_short_chapter(c, short_chapter_chars))
    if short:
        warnings.append(f"{short} chapter(s) are shorter than {short_chapter_chars} characters and may be false positives")

    if check_numbering:
        warnings.extend(numbering_warnings(chapters))

    report = ValidationReport(is_valid=total >= min_chapters, warnings=warnings, total_chapters=total)
    if warnings:
        logger.debug(f"Validation produced {len(warnings)} warning(s) for {total} chapter(s)")
    return report
