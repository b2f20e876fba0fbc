"""Core infrastructure layer - no business logic dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Logging setup (Loguru)
- Console management (Rich)
"""

# Configuration
from .config import (
    Config,
    load_config,
    parse_config,
    get_config_dir,
    get_config_path,
    get_data_dir,
    get_log_file_path,
    create_default_config,
    ensure_directories,
)

# Logging
from .output import setup_loguru

# Console
from .console import (
    configure_console,
    get_console,
    playlist_table,
    safe_print,
    show_error,
    show_hint,
)

__all__ = [
    # Config
    "Config",
    "load_config",
    "parse_config",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "get_log_file_path",
    "create_default_config",
    "ensure_directories",
    # Logging
    "setup_loguru",
    # Console
    "configure_console",
    "get_console",
    "playlist_table",
    "safe_print",
    "show_error",
    "show_hint",
]
