#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Test suite for segmenter module.
"""

import pytest

from chapter_engine.models import Match
from chapter_engine.segmenter import build_chapters, extract_full_title


class TestExtractFullTitle:
    """Test heading title extension."""

    @pytest.mark.parametrize(
        "text,marker,expected",
        [
            ("第一章：开始\n正文", "第一章", "第一章：开始"),
            ("第一章:开始\n正文", "第一章", "第一章:开始"),
            ("第二章 继续\n正文", "第二章", "第二章 继续"),
            ("第二章　继续\r\n正文", "第二章", "第二章　继续"),
            ("Chapter 3: The Road\nbody", "Chapter 3", "Chapter 3: The Road"),
            ("第三章\n正文", "第三章", "第三章"),
            ("第三章结束了", "第三章", "第三章"),
            ("第四章 最后", "第四章", "第四章 最后"),
        ],
    )
    def test_titles(self, text, marker, expected):
        assert extract_full_title(text, 0, marker) == expected

    def test_never_crosses_line_break(self):
        text = "第一章 \n下一行不是标题"
        assert extract_full_title(text, 0, "第一章") == "第一章"

    def test_marker_not_found_returns_marker(self):
        assert extract_full_title("abc", 0, "第一章") == "第一章"


class TestBuildChapters:
    """Test slicing a document at boundary matches."""

    def test_no_matches_gives_whole_document(self):
        chapters = build_chapters("just some text", [])
        assert len(chapters) == 1
        assert chapters[0].title == "Whole Document"
        assert chapters[0].content == "just some text"
        assert (chapters[0].start_position, chapters[0].end_position) == (0, 14)
        assert chapters[0].rule_name is None

    def test_empty_document(self):
        chapters = build_chapters("", [])
        assert chapters[0].content == ""
        assert chapters[0].length == 0

    def test_front_matter(self):
        text = "前言内容\n第一章 开始\n正文"
        pos = text.index("第一章")
        chapters = build_chapters(text, [Match("第一章", pos, "cn", 10)])
        assert [c.title for c in chapters] == ["Front Matter", "第一章 开始"]
        assert chapters[0].content == "前言内容\n"
        assert chapters[0].rule_name is None
        assert chapters[1].rule_name == "cn"

    def test_no_front_matter_when_first_match_at_zero(self):
        text = "第一章 开始\n正文"
        chapters = build_chapters(text, [Match("第一章", 0, "cn", 10)])
        assert len(chapters) == 1

    def test_custom_synthetic_titles(self):
        assert build_chapters("x", [], whole_document_title="全文")[0].title == "全文"
        text = "序\n第一章"
        chapters = build_chapters(text, [Match("第一章", 2, "cn", 10)], front_matter_title="序言")
        assert chapters[0].title == "序言"

    def test_chapters_tile_the_document(self):
        text = "开头\n第一章 甲\n内容一\n第二章 乙\n内容二\n第三章 丙\n内容三"
        matches = [Match(t, text.index(t), "cn", 10) for t in ("第一章", "第二章", "第三章")]
        chapters = build_chapters(text, matches)
        assert "".join(c.content for c in chapters) == text
        assert chapters[0].start_position == 0
        assert chapters[-1].end_position == len(text)
        for prev, nxt in zip(chapters, chapters[1:]):
            assert prev.end_position == nxt.start_position
        for chapter in chapters:
            assert text[chapter.start_position : chapter.end_position] == chapter.content
