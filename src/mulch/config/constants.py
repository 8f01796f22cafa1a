"""
Constants and default values for mulch.

Centralizes magic numbers and strings to improve maintainability.
"""

import re

# ============================================================================
# Application Metadata
# ============================================================================

APP_NAME = "mulch"
APP_VERSION = "0.3.0"

# ============================================================================
# Project Layout
# ============================================================================

MULCH_DIR = ".mulch"
CONFIG_FILE = "mulch.config.yaml"
EXPERTISE_DIR = "expertise"
EXPERTISE_SUFFIX = ".jsonl"
README_FILE = "README.md"
GITATTRIBUTES_FILE = ".gitattributes"
ENV_FILE = ".env"

# Line-based union merge keeps concurrent appends from conflicting in git.
GITATTRIBUTES_LINE = ".mulch/expertise/*.jsonl merge=union"

DOMAIN_NAME_PATTERN = re.compile(r"[A-Za-z0-9][A-Za-z0-9_-]*")

MULCH_README = """# .mulch/

This directory is managed by mulch, a structured expertise layer for coding agents.

## Key Commands

- `mulch init`      - Initialize a .mulch directory
- `mulch add`       - Add a new domain
- `mulch record`    - Record an expertise record
- `mulch query`     - Query expertise records
- `mulch search`    - Search records across domains
- `mulch status`    - Show domain statistics
- `mulch validate`  - Validate all records against the schema
- `mulch prune`     - Remove expired records
- `mulch diff`      - Show record changes since a git ref
- `mulch learn`     - Suggest domains for changed files

## Structure

- `mulch.config.yaml` - Configuration file
- `expertise/`        - JSONL files, one per domain
"""

# ============================================================================
# Config Defaults
# ============================================================================

DEFAULT_CONFIG_VERSION = "1"

# Governance thresholds (records per domain)
DEFAULT_MAX_ENTRIES = 100
DEFAULT_WARN_ENTRIES = 150
DEFAULT_HARD_LIMIT = 200

# Shelf life in days per non-foundational classification
DEFAULT_SHELF_LIFE_TACTICAL = 14
DEFAULT_SHELF_LIFE_OBSERVATIONAL = 30

DEFAULT_SEARCH_CASE_SENSITIVE = False

# Git ref used by `mulch diff` and `mulch learn`
DEFAULT_DIFF_SINCE = "HEAD~1"

DEFAULT_READY_LIMIT = 10

# ============================================================================
# Environment Variable Names
# ============================================================================

ENV_ROOT = "MULCH_ROOT"
ENV_SHELF_LIFE_TACTICAL = "MULCH_SHELF_LIFE_TACTICAL"
ENV_SHELF_LIFE_OBSERVATIONAL = "MULCH_SHELF_LIFE_OBSERVATIONAL"
ENV_SEARCH_CASE_SENSITIVE = "MULCH_SEARCH_CASE_SENSITIVE"
ENV_LOG_LEVEL = "MULCH_LOG_LEVEL"
ENV_LOG_FILE = "MULCH_LOG_FILE"

# ============================================================================
# Error Messages
# ============================================================================

ERROR_NO_CONFIG = """
No mulch configuration found at: {path}

Run `mulch init` in the project root to create {mulch_dir}/{config_file}.
"""

ERROR_INVALID_DOMAIN = (
    'Invalid domain name: "{domain}". '
    "Only alphanumeric characters, hyphens, and underscores are allowed."
)
