#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# HERE IS THE CHANGELOG FOR THIS VERSION OF THE CODE:
# - Default configuration template for detection, rules, optimization and logging
# - Value schema used by the configuration validator
#

"""
config_schema.py - Configuration schema and default template for chapter-engine
"""

# Default configuration template with extensive comments
DEFAULT_CONFIG_TEMPLATE = """# chapter-engine Configuration File
# ================================
# This file contains default settings for the chapter segmentation engine.
# Any command-line arguments will override these settings.

# Detection Settings
# ------------------
detection:
  # Matches closer than this many characters are treated as the same
  # chapter boundary found by different rules (default: 50)
  proximity_threshold: 50
  # The document is mixed-format when the second most used rule matches
  # more than this share of the top rule's count (default: 0.3)
  mixed_format_ratio: 0.3
  # Fewer chapters than this marks the segmentation as suspicious (default: 3)
  min_chapters: 3
  # Chapters shorter than this (trimmed) are reported as possible false positives
  short_chapter_chars: 50
  # Report gaps and repeats in chapter numbering (default: true)
  check_numbering: true
  # Seconds a single rule may spend scanning a document (default: 5.0)
  pattern_timeout: 5.0
  # Documents longer than this many characters are rejected (default: 50 MiB)
  max_document_chars: 52428800
  # Titles of the synthetic chapters
  front_matter_title: "Front Matter"
  whole_document_title: "Whole Document"

# Rule Settings
# -------------
rules:
  # Start from the built-in rule table (default: true)
  use_seed_rules: true
  # Custom rules appended to the rule store. Each rule needs a unique name,
  # a pattern and an integer priority (higher wins). Example:
  #   - name: "episode_marker"
  #     pattern: "第[一二三四五六七八九十百千万零\\\\d]+回"
  #     priority: 6
  #     description: "Episode markers such as 第一回"
  #     flags: []
  custom: []

# Optimization Settings
# ---------------------
optimization:
  # Accuracy below this triggers rule proposals (default: 0.7)
  low_accuracy_threshold: 0.7
  # Processing time above this (milliseconds) triggers chunk size proposals
  slow_processing_threshold: 3000
  # Update frequency above this (per second) triggers batching proposals
  high_update_frequency_threshold: 10
  # Memory usage above this (MB) triggers memory proposals
  high_memory_threshold: 100
  # Processing time the chunk size recommendation aims for (milliseconds)
  target_processing_time: 1500
  # Bounds for recommended chunk sizes (bytes)
  min_chunk_size: 51200
  max_chunk_size: 2097152
  # Priority given to rules synthesized from unknown heading formats
  generic_rule_priority: 5
  # How far a rule producing false positives is demoted
  priority_demotion_step: 1

# Logging Settings
# ----------------
logging:
  # Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL
  level: INFO
  # Log format
  format: "%(asctime)s - %(levelname)s - %(message)s"
  # Also write logs to a file
  file_enabled: false
  file_path: chapter_engine.log
"""

# (section, key) -> accepted types; bool is checked separately because it is an int subclass
CONFIG_VALUE_TYPES: dict[tuple[str, str], tuple[type, ...]] = {
    ("detection", "proximity_threshold"): (int,),
    ("detection", "mixed_format_ratio"): (int, float),
    ("detection", "min_chapters"): (int,),
    ("detection", "short_chapter_chars"): (int,),
    ("detection", "check_numbering"): (bool,),
    ("detection", "pattern_timeout"): (int, float),
    ("detection", "max_document_chars"): (int,),
    ("detection", "front_matter_title"): (str,),
    ("detection", "whole_document_title"): (str,),
    ("rules", "use_seed_rules"): (bool,),
    ("rules", "custom"): (list,),
    ("optimization", "low_accuracy_threshold"): (int, float),
    ("optimization", "slow_processing_threshold"): (int, float),
    ("optimization", "high_update_frequency_threshold"): (int, float),
    ("optimization", "high_memory_threshold"): (int, float),
    ("optimization", "target_processing_time"): (int, float),
    ("optimization", "min_chunk_size"): (int,),
    ("optimization", "max_chunk_size"): (int,),
    ("optimization", "generic_rule_priority"): (int,),
    ("optimization", "priority_demotion_step"): (int,),
    ("logging", "level"): (str,),
    ("logging", "format"): (str,),
    ("logging", "file_enabled"): (bool,),
    ("logging", "file_path"): (str,),
}

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
