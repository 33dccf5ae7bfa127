#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# HERE IS THE CHANGELOG FOR THIS VERSION OF THE CODE:
# - Numbering sequence analysis for detected chapters
# - Reports missing, repeated, swapped and out-of-place chapter numbers
# - Gaps are reported as one range each
# - numbering_warnings() reads chapter numbers from detected titles
#

"""
chapter_issues.py - Issue detection for chapter numbering sequences
===================================================================

A gap or repeat in the chapter numbers of a segmentation usually means a
heading was missed or a pattern matched incidental text.
"""

from __future__ import annotations

from typing import Sequence

from .models import Chapter
from .numerals import extract_chapter_number


def _run_length(seq: Sequence[int], idx: int) -> int:
    run_len = 1
    while idx + run_len < len(seq) and seq[idx + run_len] == seq[idx]:
        run_len += 1
    return run_len


def _uncovered(lo: int, hi: int, covered: list[tuple[int, int]]) -> list[tuple[int, int]]:
    """Parts of the closed range lo..hi not inside any covered range."""
    pieces = []
    start = lo
    for c_lo, c_hi in sorted(covered):
        if c_hi < start or c_lo > hi:
            continue
        if c_lo > start:
            pieces.append((start, c_lo - 1))
        start = max(start, c_hi + 1)
        if start > hi:
            break
    if start <= hi:
        pieces.append((start, hi))
    return pieces


def _missing_message(lo: int, hi: int) -> str:
    if lo == hi:
        return f"number {lo} is missing"
    return f"numbers {lo}-{hi} are missing"


def detect_issues(seq: Sequence[int]) -> list[str]:
    """
    Report missing, repeated, swapped and out-of-place numbers in a sequence.

    A gap is reported once as a range, so the number of issues stays
    proportional to the length of the sequence however far apart the
    numbers are.

    Args:
        seq: Chapter numbers in document order

    Returns:
        Human readable issue descriptions, ordered by where they occur
    """
    if not seq:
        return []

    issues: list[tuple[int, str]] = []
    end = seq[-1]
    expected = seq[0]
    seen: set[int] = set()
    reported_missing: list[tuple[int, int]] = []

    def report_gap(idx: int, lo: int, hi: int) -> None:
        for gap in _uncovered(lo, hi, reported_missing):
            issues.append((idx, _missing_message(*gap)))
            reported_missing.append(gap)

    for idx, value in enumerate(seq):
        if value in seen:
            pred = next((x for x in reversed(seq[:idx]) if x != value), None)
            if pred is None:
                pred = seq[0] if seq[0] != value else 0
            run_len = _run_length(seq, idx)
            times = "times" if run_len > 1 else "time"
            issues.append((idx, f"number {value} is repeated {run_len} {times} after number {pred}"))
        else:
            seen.add(value)

        if value > expected:
            report_gap(idx, expected, value - 1)
            expected = value + 1
        elif value == expected:
            expected += 1
        else:
            prev = seq[idx - 1]
            if idx > 0 and prev - value == 1:
                issues.append((idx, f"number {value} is switched in place with number {prev}"))
                issues.append((idx, f"number {prev} is switched in place with number {value}"))
            else:
                issues.append((idx, f"number {value} is out of place after number {prev}"))
            expected = value + 1

    if expected <= end:
        report_gap(len(seq), expected, end)

    issues.sort(key=lambda item: item[0])
    return [message for _, message in issues]


def numbering_warnings(chapters: Sequence[Chapter]) -> list[str]:
    """
    Check the numbering of detected chapters.

    Chapters without a number in their title (front matter, whole document)
    are skipped.
    """
    numbers = []
    for chapter in chapters:
        if chapter.rule_name is None:
            continue
        number = extract_chapter_number(chapter.title)
        if number is not None:
            numbers.append(number)
    return [f"Chapter numbering: {issue}" for issue in detect_issues(numbers)]
