#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# HERE IS THE CHANGELOG FOR THIS VERSION OF THE CODE:
# - Argument parser with detect, rules and optimize subcommands
# - Global --config and --verbose options
#

"""
cli_parser.py - Command-line argument parsing for chapter-engine
================================================================
"""

from __future__ import annotations

import argparse
from typing import Any

EPILOG = """
Examples:
  chapter-engine detect novel.txt
  chapter-engine detect novel.txt --encoding gb18030 --json
  chapter-engine rules
  chapter-engine --config chapter_engine.yml optimize telemetry.yml --apply
"""


def _add_global_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to configuration file (default: built-in settings). Created with defaults if missing",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )


def _add_detect_command(subparsers: Any) -> None:
    detect = subparsers.add_parser("detect", help="Split a text file into chapters")
    detect.add_argument("filepath", type=str, help="Path to the text file")
    detect.add_argument(
        "--encoding",
        type=str,
        default="utf-8",
        help="Character encoding of the input file. Common: utf-8, gb18030, big5 (default: utf-8)",
    )
    detect.add_argument(
        "--json",
        action="store_true",
        help="Print the detection result as JSON instead of a table",
    )
    detect.add_argument(
        "--include-content",
        action="store_true",
        help="Include chapter text in JSON output",
    )


def _add_optimize_command(subparsers: Any) -> None:
    optimize = subparsers.add_parser("optimize", help="Propose rule and performance changes from a telemetry file")
    optimize.add_argument("telemetry", type=str, help="Path to a YAML telemetry file")
    optimize.add_argument(
        "--apply",
        action="store_true",
        help="Apply the proposals to the rule set and show the result",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="chapter-engine",
        description="Rule-driven chapter segmentation for Chinese and English long-form text",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    _add_global_args(parser)

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True
    _add_detect_command(subparsers)
    subparsers.add_parser("rules", help="List the active chapter rules")
    _add_optimize_command(subparsers)
    return parser
