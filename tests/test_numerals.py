#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Test suite for numerals module.
"""

import pytest

from chapter_engine.numerals import chinese_to_int, extract_chapter_number, parse_num, roman_to_int, words_to_int


class TestChineseToInt:
    """Test Chinese numeral conversion."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("一", 1),
            ("十", 10),
            ("十二", 12),
            ("二十", 20),
            ("一百二十三", 123),
            ("一百零五", 105),
            ("两千零五", 2005),
            ("三万", 30000),
            ("一万二千", 12000),
            ("一二三", 123),
            ("零", 0),
        ],
    )
    def test_values(self, text, expected):
        assert chinese_to_int(text) == expected

    def test_invalid_character(self):
        with pytest.raises(ValueError):
            chinese_to_int("十a")

    def test_empty(self):
        with pytest.raises(ValueError):
            chinese_to_int("")


class TestOtherNumerals:
    """Test Roman and word numerals."""

    @pytest.mark.parametrize("text,expected", [("IV", 4), ("ix", 9), ("XLII", 42), ("MCMXC", 1990)])
    def test_roman(self, text, expected):
        assert roman_to_int(text) == expected

    def test_roman_invalid(self):
        with pytest.raises(ValueError):
            roman_to_int("XQ")

    @pytest.mark.parametrize("text,expected", [("seven", 7), ("twenty-one", 21), ("one hundred", 100), ("two thousand five", 2005)])
    def test_words(self, text, expected):
        assert words_to_int(text) == expected

    def test_parse_num_dispatch(self):
        assert parse_num("42") == 42
        assert parse_num("3rd") == 3
        assert parse_num("XII") == 12
        assert parse_num("十五") == 15
        assert parse_num("eleven") == 11
        assert parse_num("") is None
        assert parse_num("whatever") is None


class TestExtractChapterNumber:
    """Test number extraction from headings."""

    @pytest.mark.parametrize(
        "title,expected",
        [
            ("第十二章：归来", 12),
            ("第3章 新生", 3),
            ("第一百零一回 结局", 101),
            ("【第7章】", 7),
            ("Chapter IV", 4),
            ("CHAPTER 10: Home", 10),
            ("Chapter Twenty-One", 21),
            ("Part 2", 2),
            ("5. The end", 5),
            ("序言", None),
            ("", None),
        ],
    )
    def test_titles(self, title, expected):
        assert extract_chapter_number(title) == expected
