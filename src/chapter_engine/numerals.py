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
Numeral parsing for chapter headings.
Handles Chinese, Arabic, Roman and English word numerals.
"""

import regex

from .rule_patterns import CHINESE_NUMERALS, HEADING_MARKER_CHARS

# Word numbers for conversion
WORD_NUMS = "one|two|three|four|five|six|seven|eight|nine|ten|eleven|twelve|thirteen|fourteen|fifteen|sixteen|seventeen|eighteen|nineteen|twenty|thirty|forty|fifty|sixty|seventy|eighty|ninety|hundred|thousand"

# Conversion tables
_SINGLE = {
    "zero": 0,
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
    "ten": 10,
    "eleven": 11,
    "twelve": 12,
    "thirteen": 13,
    "fourteen": 14,
    "fifteen": 15,
    "sixteen": 16,
    "seventeen": 17,
    "eighteen": 18,
    "nineteen": 19,
}

_TENS = {
    "twenty": 20,
    "thirty": 30,
    "forty": 40,
    "fifty": 50,
    "sixty": 60,
    "seventy": 70,
    "eighty": 80,
    "ninety": 90,
}

_SCALES = {"hundred": 100, "thousand": 1000}
_ROMAN = {"i": 1, "v": 5, "x": 10, "l": 50, "c": 100, "d": 500, "m": 1000}

_CN_DIGITS = {"零": 0, "〇": 0, "一": 1, "二": 2, "两": 2, "三": 3, "四": 4, "五": 5, "六": 6, "七": 7, "八": 8, "九": 9}
_CN_UNITS = {"十": 10, "百": 100, "千": 1000}
_CN_MYRIAD = "万"

# Heading number extraction, tried in order
_CN_HEADING_RE = regex.compile(rf"第\s*([{CHINESE_NUMERALS}两〇\d]+)\s*[{HEADING_MARKER_CHARS}]")
_EN_HEADING_RE = regex.compile(
    rf"\b(?:chapter|ch\.?|chap\.?|part|book|volume|vol\.?|act|scene)\s*(\d+|[ivxlcdm]+|(?:{WORD_NUMS})(?:[-\s](?:{WORD_NUMS}))*)\b",
    regex.IGNORECASE,
)
_NUMBERED_LINE_RE = regex.compile(r"^\s*(\d+)\.")


def roman_to_int(s: str) -> int:
    """Convert Roman numerals to integer."""
    total = prev = 0
    for ch in reversed(s.lower()):
        if ch not in _ROMAN:
            raise ValueError(f"Invalid Roman numeral character: {ch}")
        val = _ROMAN[ch]
        total = total - val if val < prev else total + val
        prev = val
    return total


def words_to_int(text: str) -> int:
    """Convert word numbers to integer."""
    tokens = regex.split(r"[ \t\-]+", text.lower())
    total = curr = 0
    for tok in tokens:
        if tok in _SINGLE:
            curr += _SINGLE[tok]
        elif tok in _TENS:
            curr += _TENS[tok]
        elif tok in _SCALES:
            curr = max(curr, 1) * _SCALES[tok]
            if tok == "thousand":
                total += curr
                curr = 0
        else:
            raise ValueError(f"Unknown word number: {tok}")
    return total + curr


def chinese_to_int(text: str) -> int:
    """
    Convert Chinese numerals to integer.

    Handles positional forms (一百二十三, 十二, 两千零五, 三万) and plain digit
    sequences (一二三 -> 123).

    Raises:
        ValueError: If the text contains a non-numeral character
    """
    if not text:
        raise ValueError("Empty Chinese numeral")
    if all(ch in _CN_DIGITS for ch in text):
        return int("".join(str(_CN_DIGITS[ch]) for ch in text))

    total = section = digit = 0
    for ch in text:
        if ch in _CN_DIGITS:
            digit = _CN_DIGITS[ch]
        elif ch in _CN_UNITS:
            # a bare unit such as the leading 十 in 十二 means one of it
            section += (digit or 1) * _CN_UNITS[ch]
            digit = 0
        elif ch == _CN_MYRIAD:
            total += (section + digit) * 10000
            section = digit = 0
        else:
            raise ValueError(f"Invalid Chinese numeral character: {ch}")
    return total + section + digit


def parse_num(raw: str) -> int | None:
    """Parse various number formats to integer."""
    if not raw:
        return None
    raw = raw.strip()
    if raw.isdigit():
        return int(raw)
    if raw[0].isdigit():
        num_part = "".join(c for c in raw if c.isdigit())
        return int(num_part)
    if regex.fullmatch(r"[ivxlcdm]+", raw, regex.IGNORECASE):
        return roman_to_int(raw)
    try:
        if all(ch in _CN_DIGITS or ch in _CN_UNITS or ch == _CN_MYRIAD for ch in raw):
            return chinese_to_int(raw)
        return words_to_int(raw)
    except ValueError:
        return None


def extract_chapter_number(title: str) -> int | None:
    """
    Find the chapter number in a heading.

    Examples:
        >>> extract_chapter_number("第十二章：归来")
        12
        >>> extract_chapter_number("Chapter IV")
        4
    """
    if not title:
        return None
    for pattern in (_CN_HEADING_RE, _EN_HEADING_RE, _NUMBERED_LINE_RE):
        m = pattern.search(title)
        if m:
            return parse_num(m.group(1))
    return None
