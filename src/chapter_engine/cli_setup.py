#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# HERE IS THE CHANGELOG FOR THIS VERSION OF THE CODE:
# - Configuration loading for the chapter-engine CLI
# - Logging setup from the logging section, with optional file output
#

"""
cli_setup.py - CLI setup and initialization
==========================================

Handles initialization of configuration and logging for the chapter-engine
command line.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Sequence, Tuple

from rich.console import Console

from .config_manager import ConfigManager

error_console = Console(stderr=True)


def setup_configuration(argv: Sequence[str] | None = None) -> Tuple[ConfigManager, dict[str, Any]]:
    """Load and validate configuration from the config file named on the command line.

    Without ``--config`` the built-in defaults are used.

    Returns:
        Tuple of (ConfigManager instance, configuration dictionary)
    """
    # Pre-parse to get config file path
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument("--config", type=str, default=None)
    pre_args, _ = pre_parser.parse_known_args(argv)

    try:
        config_path = Path(pre_args.config) if pre_args.config else None
        config_manager = ConfigManager(config_path=config_path)
        return config_manager, config_manager.config
    except (ValueError, OSError) as e:
        error_console.print(f"[bold red]Configuration error:[/bold red] {e}")
        error_console.print("Please fix the configuration file or delete it to regenerate defaults.")
        sys.exit(1)


def setup_logging(config: dict[str, Any], verbose: bool = False) -> logging.Logger:
    """Set up logging based on configuration.

    Args:
        config: Configuration dictionary
        verbose: Force DEBUG level regardless of the configured level

    Returns:
        Configured logger instance
    """
    log_level = logging.DEBUG if verbose else getattr(logging, str(config["logging"]["level"]).upper(), logging.INFO)
    log_format = config["logging"]["format"]

    logging.basicConfig(level=log_level, format=log_format)
    logging.getLogger().setLevel(log_level)
    logger = logging.getLogger("chapter_engine")

    # Set up file logging if enabled
    if config["logging"]["file_enabled"]:
        try:
            file_handler = logging.FileHandler(config["logging"]["file_path"], encoding="utf-8")
            file_handler.setLevel(log_level)
            file_handler.setFormatter(logging.Formatter(log_format))
            logger.addHandler(file_handler)
        except OSError as e:
            logger.error(f"Failed to set up file logging to {config['logging']['file_path']}: {e}")
            # Continue without file logging

    return logger
