"""Configuration loading and validation."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from dirhasher.processor.scheduler import DEFAULT_WORKERS, MAX_WORKERS
from dirhasher.utils.hashing import ALGORITHMS, DEFAULT_ALGORITHM

DEFAULT_CONFIG_FILES = ["dirhasher.yaml", "dirhasher.yml", ".dirhasher.yaml"]


class ConfigError(Exception):
    """Raised when a configuration file can't be loaded."""

    pass


@dataclass
class HashingConfig:
    """Digest options."""

    algorithm: str = DEFAULT_ALGORITHM
    uppercase: bool = True


@dataclass
class WorkerConfig:
    """Concurrency options."""

    count: int = DEFAULT_WORKERS


@dataclass
class OutputConfig:
    """Output options."""

    sort: bool = False  # sort calculate output by path
    show_ok: bool = False  # print a line for every verified file
    progress: bool = True


@dataclass
class LoggingConfig:
    """Logging options."""

    level: str = "WARNING"
    file: Path | None = None
    operation_log: Path | None = None  # JSONL record of every outcome


@dataclass
class Config:
    """Complete application configuration."""

    hashing: HashingConfig = field(default_factory=HashingConfig)
    workers: WorkerConfig = field(default_factory=WorkerConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from file.

    Args:
        config_path: Path to YAML config file. Defaults to the first of
            DEFAULT_CONFIG_FILES found in the working directory.

    Returns:
        Loaded Config object; defaults when no file exists.

    Raises:
        ConfigError: If the file exists but can't be read or parsed.
    """
    config = Config()

    # Try default paths if not specified
    if config_path is None:
        for default_path in DEFAULT_CONFIG_FILES:
            if Path(default_path).exists():
                config_path = Path(default_path)
                break

    if config_path and config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot load config {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config {config_path} must be a mapping")
        config = _parse_config(data)

    return config


def _parse_config(data: dict[str, Any]) -> Config:
    """Parse configuration dictionary into Config object.

    Args:
        data: Raw configuration dictionary.

    Returns:
        Config object.
    """
    config = Config()

    # Hashing section
    if "hashing" in data:
        hashing_data = data["hashing"] or {}
        config.hashing = HashingConfig(
            algorithm=str(hashing_data.get("algorithm", DEFAULT_ALGORITHM)).lower(),
            uppercase=hashing_data.get("uppercase", True),
        )

    # Workers section
    if "workers" in data:
        workers_data = data["workers"] or {}
        config.workers = WorkerConfig(
            count=workers_data.get("count", DEFAULT_WORKERS),
        )

    # Output section
    if "output" in data:
        output_data = data["output"] or {}
        config.output = OutputConfig(
            sort=output_data.get("sort", False),
            show_ok=output_data.get("show_ok", False),
            progress=output_data.get("progress", True),
        )

    # Logging section
    if "logging" in data:
        logging_data = data["logging"] or {}
        log_file = logging_data.get("file")
        operation_log = logging_data.get("operation_log")
        config.logging = LoggingConfig(
            level=logging_data.get("level", "WARNING"),
            file=Path(log_file) if log_file else None,
            operation_log=Path(operation_log) if operation_log else None,
        )

    return config


def validate_config(config: Config) -> list[str]:
    """Validate configuration, return list of issues.

    Args:
        config: Configuration to validate.

    Returns:
        List of validation issue messages.
    """
    issues = []

    # Check algorithm is supported
    if config.hashing.algorithm not in ALGORITHMS:
        issues.append(f"Unsupported algorithm: {config.hashing.algorithm}")

    # Worker count is clamped, but tell the user
    if not isinstance(config.workers.count, int) or isinstance(config.workers.count, bool):
        issues.append(f"Worker count must be an integer: {config.workers.count!r}")
    elif not 1 <= config.workers.count <= MAX_WORKERS:
        issues.append(
            f"Worker count {config.workers.count} outside 1-{MAX_WORKERS}, it will be clamped"
        )

    # Validate log level
    valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if str(config.logging.level).upper() not in valid_levels:
        issues.append(f"Invalid log level: {config.logging.level}")

    return issues


def create_default_config(path: Path) -> None:
    """Create default configuration file.

    Args:
        path: Path to write config file.
    """
    default_config = f"""# dirhasher configuration
# Command-line options override these values.

hashing:
  # sha256 (default) or md5
  algorithm: "{DEFAULT_ALGORITHM}"
  # Write digests as uppercase hex; set to false for lowercase.
  # Checking is case-insensitive either way.
  uppercase: true

workers:
  # Files hashed concurrently, 1-{MAX_WORKERS}
  count: {DEFAULT_WORKERS}

output:
  # Sort calculated manifests by path instead of completion order
  sort: false
  # Print a line for every verified file, not only failures
  show_ok: false
  progress: true

logging:
  level: "WARNING"
  # file: "./logs/dirhasher.log"
  # operation_log: "./logs/operations.jsonl"
"""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(default_config)
