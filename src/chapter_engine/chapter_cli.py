#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# HERE IS THE CHANGELOG FOR THIS VERSION OF THE CODE:
# - Entry point of the chapter-engine command line
# - detect: chapter table or JSON for a text file
# - rules: active rule table
# - optimize: proposals from a telemetry file, optionally applied
#

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
chapter_cli.py - Command line interface for chapter-engine
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from .chapter_detector import ChapterDetector
from .chapter_editing import word_count
from .cli_parser import create_parser
from .cli_setup import error_console, setup_configuration, setup_logging
from .common_yaml_utils import load_safe_yaml
from .models import DetectionResult, OptimizationProposal, Rule
from .optimization_engine import OptimizationEngine

console = Console()


def _rules_table(rules: Sequence[Rule]) -> Table:
    table = Table(title="Chapter rules")
    table.add_column("Priority", justify="right", no_wrap=True)
    table.add_column("Name", no_wrap=True)
    table.add_column("Pattern")
    table.add_column("Custom", justify="center")
    for rule in rules:
        table.add_row(str(rule.priority), rule.name, Text(rule.source), "yes" if rule.is_custom else "")
    return table


def _print_detection(result: DetectionResult) -> None:
    table = Table(title="Chapters")
    table.add_column("#", justify="right")
    table.add_column("Title")
    table.add_column("Rule", no_wrap=True)
    table.add_column("Start", justify="right")
    table.add_column("End", justify="right")
    table.add_column("Words", justify="right")
    for idx, chapter in enumerate(result.chapters, 1):
        table.add_row(
            str(idx),
            Text(chapter.title),
            chapter.rule_name or "-",
            str(chapter.start_position),
            str(chapter.end_position),
            str(word_count(chapter.content)),
        )
    console.print(table)

    mixed = "mixed format" if result.is_mixed_format else "single format"
    console.print(f"{result.total_chapters} chapter(s), {mixed}, {result.mode.value.replace('_', '-')} detection")
    if result.validation.is_valid:
        console.print("[green]Validation passed[/green]")
    for warning in result.validation.warnings:
        console.print(Text(f"Warning: {warning}", style="yellow"))


def _print_proposals(proposals: Sequence[OptimizationProposal]) -> None:
    if not proposals:
        console.print("[green]No optimization needed[/green]")
        return
    table = Table(title="Optimization proposals")
    table.add_column("Category")
    table.add_column("Urgency")
    table.add_column("Action", no_wrap=True)
    table.add_column("Rationale")
    for proposal in proposals:
        if not proposal.actions:
            table.add_row(proposal.category.value, proposal.urgency, "-", Text(proposal.description))
        for action in proposal.actions:
            table.add_row(proposal.category.value, proposal.urgency, action.kind.value, Text(action.rationale))
    console.print(table)


def run_detect(args: argparse.Namespace, config: dict[str, Any], logger: logging.Logger) -> int:
    file_path = Path(args.filepath)
    if not file_path.exists():
        logger.error(f"File not found: {file_path}")
        error_console.print(f"[bold red]File not found: {file_path}[/bold red]")
        return 1

    text = file_path.read_text(encoding=args.encoding)
    detector = ChapterDetector.from_config(config)
    result = detector.detect(text)
    logger.info(f"Detected {result.total_chapters} chapter(s) in {file_path.name}")

    if args.json:
        print(json.dumps(result.to_dict(include_content=args.include_content), ensure_ascii=False, indent=2))
    else:
        _print_detection(result)
    return 0


def run_rules(args: argparse.Namespace, config: dict[str, Any], logger: logging.Logger) -> int:
    detector = ChapterDetector.from_config(config)
    console.print(_rules_table(detector.get_rules()))
    for definition, reason in detector.rejected_rules:
        console.print(Text(f"Rejected custom rule: {reason}", style="yellow"))
    return 0


def run_optimize(args: argparse.Namespace, config: dict[str, Any], logger: logging.Logger) -> int:
    telemetry = load_safe_yaml(args.telemetry)
    engine = OptimizationEngine.from_config(config)
    proposals = engine.analyze(telemetry)
    _print_proposals(proposals)

    if args.apply and proposals:
        detector = ChapterDetector.from_config(config)
        result = engine.apply(proposals, detector)
        summary = result.summary
        console.print(f"Applied {summary['successful']} of {summary['total']} action(s), {summary['failed']} failed")
        for record in result.failed:
            console.print(Text(f"Failed {record.kind.value}: {record.description}", style="red"))
        console.print(_rules_table(detector.get_rules()))
        console.print(f"Chunk size: {detector.chunk_size} bytes")
    return 0


COMMANDS = {
    "detect": run_detect,
    "rules": run_rules,
    "optimize": run_optimize,
}


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for the chapter-engine CLI."""
    argv = list(sys.argv[1:] if argv is None else argv)

    # Set up configuration first
    _, config = setup_configuration(argv)

    parser = create_parser()
    args = parser.parse_args(argv)

    logger = setup_logging(config, verbose=args.verbose)

    try:
        return COMMANDS[args.command](args, config, logger)
    except (ValueError, OSError) as e:
        logger.error(f"{args.command} failed: {e}")
        error_console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
