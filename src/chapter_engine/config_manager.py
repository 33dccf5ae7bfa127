#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# HERE IS THE CHANGELOG FOR THIS VERSION OF THE CODE:
# - Loads the YAML configuration, creating the default file when missing
# - Validates section names, value types and ranges, reporting the first error
# - Merges user values over the defaults and offers dot-path access
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
config_manager.py - Configuration management for chapter-engine
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from .common_yaml_utils import load_safe_yaml, merge_yaml_configs
from .config_schema import CONFIG_VALUE_TYPES, DEFAULT_CONFIG_TEMPLATE, VALID_LOG_LEVELS


def get_default_config() -> dict[str, Any]:
    """
    Get default configuration as dictionary.

    Returns:
        Default configuration dictionary
    """
    result = yaml.safe_load(DEFAULT_CONFIG_TEMPLATE)
    return result if isinstance(result, dict) else {}


def find_line_number(key_path: str, config_lines: list[str]) -> int | None:
    """
    Find the line number of a configuration key in the YAML file.

    Args:
        key_path: Dot-separated path to key
        config_lines: Configuration file lines

    Returns:
        Line number or None if not found
    """
    keys = key_path.split(".")
    depth = 0
    for i, line in enumerate(config_lines, 1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        indent = len(line) - len(line.lstrip())
        if indent == depth * 2 and stripped.startswith(f"{keys[depth]}:"):
            if depth == len(keys) - 1:
                return i
            depth += 1
    return None


def _type_error(path: str, value: Any, expected: tuple[type, ...]) -> str | None:
    names = " or ".join(t.__name__ for t in expected)
    if bool in expected:
        if not isinstance(value, bool):
            return f"Invalid value {value!r} for {path}. Must be {names}"
        return None
    if isinstance(value, bool) or not isinstance(value, expected):
        return f"Invalid value {value!r} for {path}. Must be {names}"
    return None


_RANGE_CHECKS: dict[str, tuple[Any, str]] = {
    "detection.proximity_threshold": (lambda v: v >= 0, "must be zero or positive"),
    "detection.mixed_format_ratio": (lambda v: 0 <= v <= 1, "must be between 0 and 1"),
    "detection.min_chapters": (lambda v: v >= 0, "must be zero or positive"),
    "detection.short_chapter_chars": (lambda v: v >= 0, "must be zero or positive"),
    "detection.pattern_timeout": (lambda v: v > 0, "must be positive"),
    "detection.max_document_chars": (lambda v: v > 0, "must be positive"),
    "optimization.low_accuracy_threshold": (lambda v: 0 <= v <= 1, "must be between 0 and 1"),
    "optimization.target_processing_time": (lambda v: v > 0, "must be positive"),
    "optimization.min_chunk_size": (lambda v: v > 0, "must be positive"),
    "optimization.max_chunk_size": (lambda v: v > 0, "must be positive"),
    "logging.level": (lambda v: v.upper() in VALID_LOG_LEVELS, f"must be one of {', '.join(VALID_LOG_LEVELS)}"),
}


class ConfigValidator:
    """Validates configuration structure and values."""

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger(__name__)

    def validate_config_first_error(self, config: dict[str, Any], defaults: dict[str, Any], config_lines: list[str]) -> dict[str, Any] | None:
        """
        Validate configuration and return only the FIRST error found.

        Args:
            config: Configuration to validate
            defaults: Default configuration for reference
            config_lines: Configuration file lines for error reporting

        Returns:
            First error found or None if valid
        """
        for section, values in config.items():
            if section not in defaults:
                return {
                    "type": "unknown_key",
                    "key": section,
                    "line": find_line_number(section, config_lines),
                    "message": f"Unknown key '{section}' found at top level",
                }
            if not isinstance(values, dict):
                return {
                    "type": "invalid_section",
                    "key": section,
                    "line": find_line_number(section, config_lines),
                    "message": f"Section '{section}' must be a mapping",
                }
            for key, value in values.items():
                path = f"{section}.{key}"
                if key not in defaults[section]:
                    return {
                        "type": "unknown_key",
                        "key": path,
                        "line": find_line_number(path, config_lines),
                        "message": f"Unknown key '{key}' in section '{section}'",
                    }
                error = self._check_value(path, (section, key), value)
                if error:
                    return {
                        "type": "invalid_value",
                        "path": path,
                        "value": value,
                        "line": find_line_number(path, config_lines),
                        "message": error,
                    }

        optimization = merge_yaml_configs(defaults["optimization"], config.get("optimization") or {})
        if optimization["min_chunk_size"] > optimization["max_chunk_size"]:
            return {
                "type": "invalid_value",
                "path": "optimization.min_chunk_size",
                "value": optimization["min_chunk_size"],
                "line": find_line_number("optimization.min_chunk_size", config_lines),
                "message": "optimization.min_chunk_size must not exceed optimization.max_chunk_size",
            }
        return None

    @staticmethod
    def _check_value(path: str, key: tuple[str, str], value: Any) -> str | None:
        expected = CONFIG_VALUE_TYPES.get(key)
        if expected is None:
            return None
        error = _type_error(path, value, expected)
        if error:
            return error
        check = _RANGE_CHECKS.get(path)
        if check and not check[0](value):
            return f"Invalid value {value!r} for {path}: {check[1]}"
        return None


class ConfigManager:
    """Manages configuration for the chapter segmentation engine."""

    def __init__(
        self,
        config_path: Path | None = None,
        logger: logging.Logger | None = None,
        create_default: bool = True,
    ):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to configuration file; None uses built-in defaults only
            logger: Logger instance
            create_default: Write the default template when the file does not exist

        Raises:
            ValueError: If the configuration file cannot be parsed or is invalid
        """
        self.logger = logger or logging.getLogger(__name__)
        self.config_path = Path(config_path) if config_path is not None else None
        self.create_default = create_default
        self.validator = ConfigValidator(self.logger)
        self._config_lines: list[str] = []
        self.config = self._load_config()

    def _load_config(self) -> dict[str, Any]:
        """Load configuration from file or defaults, validate and merge."""
        defaults = get_default_config()
        if self.config_path is None:
            return defaults

        if not self.config_path.exists():
            if not self.create_default:
                raise ValueError(f"Configuration file not found: {self.config_path}")
            self.logger.info(f"Configuration file not found. Creating default at: {self.config_path}")
            self._create_default_config()

        # an empty section header ("detection:") loads as None
        config = {k: v for k, v in load_safe_yaml(self.config_path).items() if v is not None}
        if not config:
            self.logger.warning("Configuration file is empty. Using defaults.")
            return defaults

        with open(self.config_path, "r", encoding="utf-8") as f:
            self._config_lines = f.read().split("\n")

        first_error = self.validator.validate_config_first_error(config, defaults, self._config_lines)
        if first_error:
            line = first_error.get("line")
            where = f" (line {line})" if line else ""
            raise ValueError(f"{self.config_path}{where}: {first_error['message']}")

        return merge_yaml_configs(defaults, config)

    def _create_default_config(self) -> None:
        """Create default configuration file."""
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                f.write(DEFAULT_CONFIG_TEMPLATE)
            self.logger.info("Default configuration file created successfully.")
        except OSError as e:
            self.logger.error(f"Failed to create configuration file: {e}")
            raise

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key_path: Dot-separated path (e.g., 'detection.min_chapters')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        value: Any = self.config
        for key in key_path.split("."):
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value
