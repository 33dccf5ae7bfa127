#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# HERE IS THE CHANGELOG FOR THIS VERSION OF THE CODE:
# - Word counts for mixed Chinese/English text
# - Merge, delete, rename and re-index operations on chapter lists
# - Section splitting for long chapters
# - Blank line collapsing adapted from the text cleanup helpers
#

"""
chapter_editing.py - Editing operations on detected chapters
============================================================

Chapters are immutable; every operation returns a new list. After any
operation the chapters still tile the rebuilt text: each chapter starts where
the previous one ends.
"""

from __future__ import annotations

import math
import re
from dataclasses import replace
from typing import Sequence

from .models import Chapter

CJK_CHAR_RE = re.compile(r"[\u4e00-\u9fff]")
LATIN_WORD_RE = re.compile(r"[A-Za-z]+")


def word_count(text: str) -> int:
    """
    Count words the way Chinese readers expect.

    Every CJK ideograph counts as one word, every run of Latin letters as one
    word. Digits and punctuation are not counted.
    """
    return len(CJK_CHAR_RE.findall(text)) + len(LATIN_WORD_RE.findall(text))


def chapter_word_counts(chapters: Sequence[Chapter]) -> list[tuple[str, int]]:
    return [(chapter.title, word_count(chapter.content)) for chapter in chapters]


def reindex_chapters(chapters: Sequence[Chapter], offset: int = 0) -> list[Chapter]:
    """
    Recompute chapter positions from content lengths.

    Args:
        chapters: Chapters in document order
        offset: Start position of the first chapter

    Returns:
        Chapters with contiguous positions starting at ``offset``
    """
    result = []
    position = offset
    for chapter in chapters:
        end = position + len(chapter.content)
        result.append(replace(chapter, start_position=position, end_position=end))
        position = end
    return result


def _check_index(chapters: Sequence[Chapter], index: int) -> None:
    if not 0 <= index < len(chapters):
        raise ValueError(f"Chapter index {index} out of range (0-{len(chapters) - 1})")


def merge_chapters(chapters: Sequence[Chapter], start: int, end: int) -> list[Chapter]:
    """
    Merge a contiguous range of chapters into one.

    The merged chapter keeps the title and rule of the first chapter in the
    range and spans all of their content.

    Args:
        chapters: Chapters in document order
        start: Index of the first chapter to merge
        end: Index of the last chapter to merge (inclusive)

    Returns:
        New chapter list

    Raises:
        ValueError: If an index is out of range or the range holds fewer than
            two chapters
    """
    _check_index(chapters, start)
    _check_index(chapters, end)
    if end <= start:
        raise ValueError("At least two chapters must be selected for merging")

    selected = chapters[start : end + 1]
    merged = replace(
        selected[0],
        content="".join(c.content for c in selected),
        start_position=selected[0].start_position,
        end_position=selected[-1].end_position,
    )
    return list(chapters[:start]) + [merged] + list(chapters[end + 1 :])


def delete_chapter(chapters: Sequence[Chapter], index: int) -> list[Chapter]:
    """Remove a chapter and its text, shifting the following chapters back."""
    _check_index(chapters, index)
    remaining = list(chapters[:index]) + list(chapters[index + 1 :])
    return reindex_chapters(remaining, chapters[0].start_position)


def rename_chapter(chapters: Sequence[Chapter], index: int, title: str) -> list[Chapter]:
    """Change a chapter's display title. The chapter text is left unchanged."""
    _check_index(chapters, index)
    title = title.strip()
    if not title:
        raise ValueError("Chapter title cannot be empty")
    result = list(chapters)
    result[index] = replace(result[index], title=title)
    return result


def rebuild_text(chapters: Sequence[Chapter]) -> str:
    return "".join(chapter.content for chapter in chapters)


def split_into_sections(content: str, max_sections: int = 3) -> list[str]:
    """
    Split chapter content into at most ``max_sections`` equal-length parts.

    Used for jumping within long chapters; concatenating the sections gives
    back the content.
    """
    if max_sections < 1:
        raise ValueError("max_sections must be at least 1")
    if not content:
        return []
    section_length = math.ceil(len(content) / max_sections)
    return [content[i : i + section_length] for i in range(0, len(content), section_length)]


def collapse_blank_lines(text: str, max_empty_lines: int = 1) -> str:
    """
    Remove excessive empty lines from text.

    Lines holding only whitespace count as empty.

    Args:
        text: The input text
        max_empty_lines: Maximum number of consecutive empty lines to keep

    Returns:
        Text with excessive empty lines removed
    """
    pattern = r"\n(?:[^\S\n]*\n){" + str(max_empty_lines + 1) + ",}"
    replacement = "\n" * (max_empty_lines + 1)
    return re.sub(pattern, replacement, text)
