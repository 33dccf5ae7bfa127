#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Test suite for chapter_issues module.
"""

from chapter_engine.chapter_issues import detect_issues, numbering_warnings
from chapter_engine.models import Chapter


class TestDetectIssues:
    """Test the detect_issues function."""

    def test_empty_sequence(self):
        assert detect_issues([]) == []

    def test_perfect_sequence(self):
        assert detect_issues([1, 2, 3, 4, 5]) == []

    def test_missing_numbers_in_middle(self):
        assert detect_issues([1, 2, 5, 6]) == ["numbers 3-4 are missing"]

    def test_repeated_numbers(self):
        assert detect_issues([1, 2, 2, 3]) == [
            "number 2 is repeated 1 time after number 1",
            "number 2 is out of place after number 2",
        ]

    def test_run_of_repeats(self):
        assert detect_issues([1, 2, 3, 3, 3, 4]) == [
            "number 3 is repeated 2 times after number 2",
            "number 3 is out of place after number 3",
            "number 3 is repeated 1 time after number 2",
            "number 3 is out of place after number 3",
        ]

    def test_swapped_adjacent_numbers(self):
        assert detect_issues([1, 3, 2, 4]) == [
            "number 2 is missing",
            "number 2 is switched in place with number 3",
            "number 3 is switched in place with number 2",
            "number 3 is missing",
        ]

    def test_out_of_place_number(self):
        assert detect_issues([1, 2, 5, 3, 4]) == [
            "numbers 3-4 are missing",
            "number 3 is out of place after number 5",
        ]

    def test_all_same_numbers(self):
        assert detect_issues([2, 2, 2]) == [
            "number 2 is repeated 2 times after number 0",
            "number 2 is out of place after number 2",
            "number 2 is repeated 1 time after number 0",
            "number 2 is out of place after number 2",
        ]

    def test_negative_and_zero(self):
        assert detect_issues([-2, -1, 1, 2]) == ["number 0 is missing"]

    def test_large_gap_is_one_range(self):
        assert detect_issues([1, 100]) == ["numbers 2-99 are missing"]

    def test_huge_gap_stays_small(self):
        assert detect_issues([1, 20000000]) == ["numbers 2-19999999 are missing"]

    def test_gap_already_reported_is_not_repeated(self):
        assert detect_issues([1, 5, 2, 8]) == [
            "numbers 2-4 are missing",
            "number 2 is out of place after number 5",
            "numbers 5-7 are missing",
        ]


class TestNumberingWarnings:
    """Test numbering checks over detected chapters."""

    def _chapter(self, title, rule_name="chinese_numeral_chapter"):
        return Chapter(title=title, content=title, start_position=0, end_position=len(title), rule_name=rule_name)

    def test_sequential_chinese_titles(self):
        chapters = [self._chapter(t) for t in ("第一章 甲", "第二章 乙", "第三章 丙")]
        assert numbering_warnings(chapters) == []

    def test_gap_in_chinese_titles(self):
        chapters = [self._chapter(t) for t in ("第九章", "第十章", "第十二章")]
        assert numbering_warnings(chapters) == ["Chapter numbering: number 11 is missing"]

    def test_synthetic_chapters_ignored(self):
        chapters = [self._chapter("Front Matter", rule_name=None), self._chapter("Chapter 1"), self._chapter("Chapter 2")]
        assert numbering_warnings(chapters) == []

    def test_titles_without_numbers_ignored(self):
        chapters = [self._chapter("Chapter 1"), self._chapter("Interlude"), self._chapter("Chapter 2")]
        assert numbering_warnings(chapters) == []
