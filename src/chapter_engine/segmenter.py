#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# HERE IS THE CHANGELOG FOR THIS VERSION OF THE CODE:
# - Builds contiguous chapter records from canonical boundary matches
# - Adds a leading front matter chapter when the first boundary is not at 0
# - Full title extraction stops at the end of the heading line
#

"""
segmenter.py - Convert boundary matches into contiguous chapters
================================================================

Chapter content always runs from one boundary to the next (or to the end of
the document), so joining the content of every chapter reproduces the
original text exactly.
"""

from __future__ import annotations

from typing import Sequence

from .models import Chapter, Match
from .rule_patterns import FRONT_MATTER_TITLE, TITLE_SEPARATOR_RE, WHOLE_DOCUMENT_TITLE


def extract_full_title(text: str, position: int, marker: str) -> str:
    """
    Extend a heading marker to its full title.

    When the marker is followed by a separator (colon or horizontal
    whitespace) the rest of the heading line is part of the title, e.g.
    ``第一章：开始``. The title never crosses a line break.

    Args:
        text: Document text
        position: Offset of the marker in the text
        marker: The matched marker text

    Returns:
        The trimmed full title, or the marker itself
    """
    marker_start = text.find(marker, position)
    if marker_start == -1:
        return marker
    after = marker_start + len(marker)
    if not TITLE_SEPARATOR_RE.match(text, after):
        return marker

    line_end = len(text)
    for newline in ("\n", "\r"):
        idx = text.find(newline, after)
        if idx != -1:
            line_end = min(line_end, idx)
    return text[marker_start:line_end].strip()


def build_chapters(
    text: str,
    matches: Sequence[Match],
    front_matter_title: str = FRONT_MATTER_TITLE,
    whole_document_title: str = WHOLE_DOCUMENT_TITLE,
) -> list[Chapter]:
    """
    Split the text at the given boundaries.

    Args:
        text: Document text
        matches: Canonical boundary matches, sorted by position
        front_matter_title: Title for text before the first boundary
        whole_document_title: Title used when there are no boundaries

    Returns:
        Chapters covering ``[0, len(text))`` without gaps or overlaps
    """
    if not matches:
        return [Chapter(title=whole_document_title, content=text, start_position=0, end_position=len(text))]

    chapters = []
    first = matches[0].position
    if first > 0:
        chapters.append(Chapter(title=front_matter_title, content=text[:first], start_position=0, end_position=first))

    for idx, match in enumerate(matches):
        start = match.position
        end = matches[idx + 1].position if idx + 1 < len(matches) else len(text)
        chapters.append(
            Chapter(
                title=extract_full_title(text, start, match.title),
                content=text[start:end],
                start_position=start,
                end_position=end,
                rule_name=match.rule_name,
            )
        )
    return chapters
