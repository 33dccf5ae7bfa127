#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Pytest configuration and shared fixtures for all tests
"""

import pytest
import sys
import os
import tempfile
import shutil
from pathlib import Path

# Add src directory to path so we can import our modules
src_dir = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src")
sys.path.insert(0, src_dir)

from chapter_engine.chapter_detector import ChapterDetector

# Long enough that no chapter is reported as short
BODY_CN = "这是一段用来测试的中文正文内容。" * 5
BODY_EN = "This is a line of English body text used by the tests. " * 2


def make_chinese_novel(count: int = 3, preface: str = "") -> str:
    """Build a novel with `count` chapters headed 第一章, 第二章, ..."""
    numerals = "一二三四五六七八九十"
    parts = [preface] if preface else []
    for i in range(count):
        parts.append(f"第{numerals[i]}章 标题{i + 1}\n{BODY_CN}\n")
    return "".join(parts)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files"""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path)


@pytest.fixture
def detector():
    """A detector with the seed rules and default settings"""
    return ChapterDetector()


@pytest.fixture
def sample_chinese_text():
    """Three well-formed Chinese chapters"""
    return make_chinese_novel(3)


@pytest.fixture
def sample_english_text():
    """Three English chapters with titles after a colon"""
    return "".join(f"Chapter {i}: Part {i}\n{BODY_EN}\n" for i in range(1, 4))


@pytest.fixture
def mixed_format_text():
    """Chinese numeral chapters interleaved with bracketed arabic chapters"""
    return (
        f"第一章 起\n{BODY_CN}\n"
        f"【第2章】承\n{BODY_CN}\n"
        f"第三章 转\n{BODY_CN}\n"
        f"【第4章】合\n{BODY_CN}\n"
    )
