"""Core infrastructure layer - no business logic dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Database storage handle and schema (SQLite)
- Console and log output (Rich, Loguru)
"""

# Configuration
from .config import (
    Config,
    DatabaseConfig,
    LibraryConfig,
    LoggingConfig,
    create_default_config,
    ensure_directories,
    get_config_dir,
    get_config_path,
    get_data_dir,
    load_config,
)

# Database
from .database import SqliteDatabase, init_database, transaction
from .db_adapter import ConnectionProtocol, StorageHandle

# Console and logging
from .console import get_console, print_plain
from .output import log, setup_loguru

__all__ = [
    # Config
    "Config",
    "DatabaseConfig",
    "LibraryConfig",
    "LoggingConfig",
    "create_default_config",
    "ensure_directories",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "load_config",
    # Database
    "SqliteDatabase",
    "init_database",
    "transaction",
    "ConnectionProtocol",
    "StorageHandle",
    # Console
    "get_console",
    "print_plain",
    "log",
    "setup_loguru",
]
