"""
Configuration management for the buildpack manifest validator.

Settings come from defaults, an optional config file and environment
variables, in that order of precedence (last wins).
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from rich.console import Console

from .error_handling import ErrorCategory, get_error_handler

console = Console(stderr=True)

OUTPUT_FORMATS = ("console", "json")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ValidationConfig:
    """Core validation configuration."""

    schema_path: Optional[str] = None
    output_format: str = "console"
    quiet: bool = False
    verbose: bool = False


@dataclass
class SecurityConfig:
    """Limits applied to manifest files before they are parsed."""

    max_file_size_mb: int = 10
    allowed_file_extensions: List[str] = field(
        default_factory=lambda: [".yml", ".yaml"]
    )

    @property
    def max_file_size_bytes(self) -> int:
        """Convert MB to bytes for internal use."""
        return self.max_file_size_mb * 1024 * 1024


@dataclass
class LoggingConfig:
    """Logging configuration."""

    log_level: str = "WARNING"
    structured: bool = True


@dataclass
class ValidatorConfig:
    """Main configuration containing all subsections."""

    validation: ValidationConfig = field(default_factory=ValidationConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# Global configuration instance
_global_config: Optional[ValidatorConfig] = None


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _invalid_settings(config: ValidatorConfig) -> Dict[Tuple[str, str], str]:
    """Map (section, key) of every invalid setting to its error message."""
    invalid: Dict[Tuple[str, str], str] = {}

    output_format = config.validation.output_format
    if not isinstance(output_format, str) or output_format not in OUTPUT_FORMATS:
        invalid[("validation", "output_format")] = (
            f"validation.output_format must be one of {', '.join(OUTPUT_FORMATS)}"
        )
    schema_path = config.validation.schema_path
    if schema_path is not None and not isinstance(schema_path, str):
        invalid[("validation", "schema_path")] = "validation.schema_path must be a string"
    elif schema_path and not Path(schema_path).is_file():
        invalid[("validation", "schema_path")] = (
            f"validation.schema_path does not exist: {schema_path}"
        )
    for key in ("quiet", "verbose"):
        if not isinstance(getattr(config.validation, key), bool):
            invalid[("validation", key)] = f"validation.{key} must be true or false"

    max_file_size_mb = config.security.max_file_size_mb
    if not _is_int(max_file_size_mb):
        invalid[("security", "max_file_size_mb")] = (
            "security.max_file_size_mb must be an integer"
        )
    elif max_file_size_mb <= 0:
        invalid[("security", "max_file_size_mb")] = (
            "security.max_file_size_mb must be positive"
        )
    extensions = config.security.allowed_file_extensions
    if not isinstance(extensions, list) or not all(isinstance(ext, str) for ext in extensions):
        invalid[("security", "allowed_file_extensions")] = (
            "security.allowed_file_extensions must be a list of strings"
        )
    elif not extensions:
        invalid[("security", "allowed_file_extensions")] = (
            "security.allowed_file_extensions must not be empty"
        )
    elif any(not ext.startswith(".") for ext in extensions):
        bad = ", ".join(ext for ext in extensions if not ext.startswith("."))
        invalid[("security", "allowed_file_extensions")] = (
            f"security.allowed_file_extensions entries must start with '.': {bad}"
        )

    log_level = config.logging.log_level
    if not isinstance(log_level, str) or log_level.upper() not in LOG_LEVELS:
        invalid[("logging", "log_level")] = (
            f"logging.log_level must be one of {', '.join(LOG_LEVELS)}"
        )
    if not isinstance(config.logging.structured, bool):
        invalid[("logging", "structured")] = "logging.structured must be true or false"

    return invalid


def validate_config_values(config: ValidatorConfig) -> List[str]:
    """
    Validate configuration values and return any errors.

    Args:
        config: Configuration to validate

    Returns:
        List[str]: List of validation errors (empty if valid)
    """
    return list(_invalid_settings(config).values())


def config_structure_errors(file_config: Dict[str, Any]) -> List[str]:
    """Report config file sections that are not mappings."""
    return [
        f"{section_name} must be a mapping"
        for section_name in ("validation", "security", "logging")
        if section_name in file_config and not isinstance(file_config[section_name], dict)
    ]


def load_config_file(config_path: Path) -> Optional[Dict[str, Any]]:
    """Load config from file."""
    if not config_path.exists():
        return None

    try:
        with open(config_path, encoding="utf-8") as f:
            if config_path.suffix.lower() in [".yaml", ".yml"]:
                return yaml.safe_load(f)
            elif config_path.suffix.lower() == ".json":
                return json.load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        console.print(
            f"⚠️  Error loading config from {config_path}: {e}", style="yellow"
        )

    return None


def find_config_file() -> Optional[Path]:
    """Find config file in standard locations."""
    locations = [
        Path.cwd() / ".buildpack-manifest.json",
        Path.cwd() / ".buildpack-manifest.yaml",
        Path.cwd() / ".buildpack-manifest.yml",
        Path.home() / ".config" / "buildpack-manifest" / "config.json",
        Path.home() / ".config" / "buildpack-manifest" / "config.yaml",
    ]

    for location in locations:
        if location.exists():
            return location

    return None


def load_environment_overrides(config: ValidatorConfig) -> None:
    """Apply BUILDPACK_MANIFEST_* environment variable overrides."""

    def get_env_int(key: str) -> Optional[int]:
        try:
            return int(os.environ[key]) if key in os.environ else None
        except ValueError:
            console.print(f"⚠️  Invalid integer value for {key}, using default", style="yellow")
            return None

    if schema_path := os.environ.get("BUILDPACK_MANIFEST_SCHEMA"):
        config.validation.schema_path = schema_path
    if output_format := os.environ.get("BUILDPACK_MANIFEST_OUTPUT_FORMAT"):
        config.validation.output_format = output_format.lower()
    if max_file_size := get_env_int("BUILDPACK_MANIFEST_MAX_FILE_SIZE_MB"):
        config.security.max_file_size_mb = max_file_size
    if log_level := os.environ.get("BUILDPACK_MANIFEST_LOG_LEVEL"):
        config.logging.log_level = log_level.upper()


def apply_config_section(
    config: Any, section_data: Dict[str, Any], section_name: str
) -> None:
    """Apply configuration from dictionary to config section."""
    if not isinstance(section_data, dict):
        console.print(
            f"⚠️  Config section {section_name} must be a mapping, ignoring it",
            style="yellow",
        )
        return

    for key, value in section_data.items():
        if hasattr(config, key):
            setattr(config, key, value)
        else:
            console.print(
                f"⚠️  Unknown config key in {section_name}: {key}", style="yellow"
            )


def build_config(file_config: Optional[Dict[str, Any]]) -> ValidatorConfig:
    """Build a configuration from parsed file contents plus environment overrides."""
    config = ValidatorConfig()

    if file_config and not isinstance(file_config, dict):
        console.print("⚠️  Config file must contain a mapping, ignoring it", style="yellow")
    elif file_config:
        for section_name in ("validation", "security", "logging"):
            if section_name in file_config:
                apply_config_section(
                    getattr(config, section_name), file_config[section_name], section_name
                )

    load_environment_overrides(config)
    return config


def load_config() -> ValidatorConfig:
    """Load configuration from file and environment."""
    global _global_config

    if _global_config is not None:
        return _global_config

    file_config = None
    config_file = find_config_file()
    if config_file:
        file_config = load_config_file(config_file)

    config = build_config(file_config)

    invalid = _invalid_settings(config)
    if invalid:
        console.print("⚠️  Configuration validation errors:", style="red")
        for error in invalid.values():
            console.print(f"  • {error}", style="red", markup=False)
            get_error_handler().warning(
                ErrorCategory.CONFIGURATION,
                error,
                "cli_config",
                "load_config",
                details={"config_file": str(config_file) if config_file else None},
            )
        console.print("Using default values for invalid settings.", style="yellow")
        _reset_to_defaults(config, invalid)

    _global_config = config
    return config


def _reset_to_defaults(config: ValidatorConfig, invalid: Dict[Tuple[str, str], str]) -> None:
    defaults = ValidatorConfig()
    for section_name, key in invalid:
        default = getattr(getattr(defaults, section_name), key)
        setattr(getattr(config, section_name), key, default)


def get_config() -> ValidatorConfig:
    """Get the global configuration instance."""
    global _global_config
    if _global_config is None:
        _global_config = load_config()
    return _global_config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _global_config
    _global_config = None


def create_sample_config() -> str:
    """Generate a sample configuration file."""
    sample_config = {
        "validation": {
            "schema_path": None,
            "output_format": "console",
            "quiet": False,
            "verbose": False,
        },
        "security": {
            "max_file_size_mb": 10,
            "allowed_file_extensions": [".yml", ".yaml"],
        },
        "logging": {
            "log_level": "WARNING",
            "structured": True,
        },
    }

    return json.dumps(sample_config, indent=2)
