"""
Configuration management for audio-tagger
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

DEFAULT_EXTENSIONS = ["mp3", "flac", "m4a", "wav", "ogg", "aac"]


@dataclass
class LibraryConfig:
    """Configuration for directory scanning and tag extraction."""

    supported_extensions: List[str] = field(
        default_factory=lambda: list(DEFAULT_EXTENSIONS)
    )
    max_workers: int = 4
    read_timeout_seconds: float = 10.0

    def validate(self) -> None:
        """Validate library configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        if not self.supported_extensions:
            raise ValueError("supported_extensions must not be empty")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.read_timeout_seconds <= 0:
            raise ValueError(
                f"read_timeout_seconds must be > 0, got {self.read_timeout_seconds}"
            )


@dataclass
class DatabaseConfig:
    """Configuration for playlist and track storage."""

    path: Optional[str] = None  # Default: <data dir>/library.db

    def resolved_path(self) -> Path:
        if self.path:
            return Path(self.path).expanduser()
        return get_data_dir() / "library.db"


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = None  # Default: <data dir>/audio-tagger.log
    max_file_size_mb: int = 10
    backup_count: int = 5

    def validate(self) -> None:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.level not in valid_levels:
            raise ValueError(
                f"Invalid log level: {self.level}. Valid levels are: {valid_levels}"
            )


@dataclass
class Config:
    """Main configuration object."""

    library: LibraryConfig = field(default_factory=LibraryConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "audio-tagger"
    return Path.home() / ".config" / "audio-tagger"


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the following order:
    1. Current working directory
    2. XDG_CONFIG_HOME/audio-tagger (or ~/.config/audio-tagger)
    """
    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "audio-tagger"
    return Path.home() / ".local" / "share" / "audio-tagger"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# audio-tagger configuration

[library]
# Extensions treated as audio files (case-insensitive, without the dot)
supported_extensions = ["mp3", "flac", "m4a", "wav", "ogg", "aac"]

# Worker threads used to read tags during a scan
max_workers = 4

# Seconds to wait for a single file before skipping it
read_timeout_seconds = 10.0

[database]
# SQLite database file (default: ~/.local/share/audio-tagger/library.db)
# path = "/path/to/library.db"

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/audio-tagger/audio-tagger.log)
# log_file = "/path/to/audio-tagger.log"

# Maximum log file size in MB before rotation
max_file_size_mb = 10

# Number of rotated log files to keep
backup_count = 5
""".strip()


def parse_config(toml_data: dict) -> Config:
    """Build a Config from parsed TOML data, falling back to defaults per section."""
    config = Config()

    if "library" in toml_data:
        library_data = toml_data["library"]
        try:
            library = LibraryConfig(
                supported_extensions=[
                    ext.lower().lstrip(".")
                    for ext in library_data.get(
                        "supported_extensions", config.library.supported_extensions
                    )
                ],
                max_workers=int(
                    library_data.get("max_workers", config.library.max_workers)
                ),
                read_timeout_seconds=float(
                    library_data.get(
                        "read_timeout_seconds", config.library.read_timeout_seconds
                    )
                ),
            )
            library.validate()
            config.library = library
        except (TypeError, ValueError, AttributeError) as e:
            print(f"Warning: Invalid library configuration: {e}")
            print("Using default library configuration.")

    if "database" in toml_data:
        config.database = DatabaseConfig(path=toml_data["database"].get("path"))

    if "logging" in toml_data:
        logging_data = toml_data["logging"]
        log_file = logging_data.get("log_file")
        if log_file:
            log_file = str(Path(log_file).expanduser())
        try:
            logging_config = LoggingConfig(
                level=str(logging_data.get("level", config.logging.level)).upper(),
                log_file=log_file,
                max_file_size_mb=int(
                    logging_data.get("max_file_size_mb", config.logging.max_file_size_mb)
                ),
                backup_count=int(
                    logging_data.get("backup_count", config.logging.backup_count)
                ),
            )
            logging_config.validate()
            config.logging = logging_config
        except (TypeError, ValueError) as e:
            print(f"Warning: Invalid logging configuration: {e}")
            print("Using default logging configuration.")

    return config


def apply_env_overrides(config: Config) -> Config:
    """Apply environment variable overrides to a loaded config.

    - AUDIO_TAGGER_DB_PATH
    - AUDIO_TAGGER_LOG_LEVEL
    """
    db_path = os.environ.get("AUDIO_TAGGER_DB_PATH")
    if db_path:
        config.database.path = db_path

    log_level = os.environ.get("AUDIO_TAGGER_LOG_LEVEL")
    if log_level:
        config.logging.level = log_level.upper()

    return config


def load_config(config_path: Optional[Path] = None, create: bool = False) -> Config:
    """Load configuration from file, or defaults when no file exists.

    Args:
        config_path: Explicit config file (default: see get_config_path)
        create: Write a default config file when none exists
    """
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config_path = config_path or get_config_path()

    if not config_path.exists():
        if create:
            config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(config_path, "w", encoding="utf-8") as f:
                f.write(create_default_config())
            print(f"Created default configuration at: {config_path}")
        return apply_env_overrides(Config())

    try:
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        print(f"Error loading configuration from {config_path}: {e}")
        print("Using default configuration.")
        return apply_env_overrides(Config())

    return apply_env_overrides(parse_config(toml_data))


def ensure_directories() -> None:
    """Ensure all necessary directories exist."""
    get_config_dir().mkdir(parents=True, exist_ok=True)
    get_data_dir().mkdir(parents=True, exist_ok=True)
