"""Loading buildpack manifest files into plain Python data."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .cli_config import SecurityConfig, get_config
from .error_handling import ErrorCategory, ManifestLoadError, log_parsing_error
from .structured_logging import log_manifest_loaded


def _validate_file_path(file_path: str, security: SecurityConfig) -> Path:
    """
    Check that the manifest path points at a readable file we are willing to parse.

    Raises:
        ManifestLoadError: If the path is missing, not a file, has a
            disallowed extension or exceeds the size limit
    """
    if not file_path or not isinstance(file_path, str):
        raise ManifestLoadError("File path must be a non-empty string", ErrorCategory.LOAD)

    try:
        path = Path(file_path).resolve()
    except (OSError, ValueError) as e:
        raise ManifestLoadError(f"Invalid file path: {e}", ErrorCategory.LOAD)

    if not path.exists():
        raise ManifestLoadError(f"File does not exist: {path}", ErrorCategory.LOAD)

    if not path.is_file():
        raise ManifestLoadError(f"Path is not a file: {path}", ErrorCategory.LOAD)

    allowed_extensions = {ext.lower() for ext in security.allowed_file_extensions}
    if path.suffix.lower() not in allowed_extensions:
        raise ManifestLoadError(
            f"File type not allowed: {path.suffix or path.name}", ErrorCategory.LOAD
        )

    try:
        file_size = path.stat().st_size
    except OSError as e:
        raise ManifestLoadError(f"Cannot access file: {e}", ErrorCategory.LOAD)
    if file_size > security.max_file_size_bytes:
        raise ManifestLoadError(
            f"File too large: {file_size} bytes (max: {security.max_file_size_bytes})",
            ErrorCategory.LOAD,
        )

    return path


def _read_manifest_text(path: Path) -> str:
    try:
        with open(path, encoding="utf-8") as f:
            return f.read()
    except UnicodeDecodeError:
        raise ManifestLoadError("File contains invalid UTF-8 characters", ErrorCategory.LOAD)
    except PermissionError:
        raise ManifestLoadError("Permission denied reading file", ErrorCategory.LOAD)
    except OSError as e:
        raise ManifestLoadError(f"Error reading file: {e}", ErrorCategory.LOAD)


def parse_manifest(content: str, source: str = "<string>") -> Dict[str, Any]:
    """
    Parse manifest text into a mapping.

    Args:
        content: YAML text of the manifest
        source: Name used in error messages

    Returns:
        Dict[str, Any]: The manifest document

    Raises:
        ManifestLoadError: If the text is not YAML or not a mapping
    """
    try:
        document = yaml.safe_load(content)
    except yaml.YAMLError as e:
        line_number = None
        mark = getattr(e, "problem_mark", None)
        if mark is not None:
            line_number = mark.line + 1
        log_parsing_error(
            "Manifest is not valid YAML",
            "manifest_loader",
            "parse_manifest",
            line_number=line_number,
            file_path=source,
            exception=e,
        )
        location = f" (line {line_number})" if line_number else ""
        raise ManifestLoadError(
            f"Invalid YAML in {source}{location}: {getattr(e, 'problem', None) or e}",
            ErrorCategory.PARSING,
        )

    if not isinstance(document, dict):
        kind = "empty" if document is None else type(document).__name__
        raise ManifestLoadError(
            f"Manifest must be a mapping at the top level, got {kind}",
            ErrorCategory.PARSING,
        )

    return document


def load_manifest(
    file_path: str, security: Optional[SecurityConfig] = None
) -> Dict[str, Any]:
    """
    Read and parse a buildpack manifest file.

    Args:
        file_path: Path to manifest.yml
        security: File limits, defaults to the global configuration

    Returns:
        Dict[str, Any]: The manifest document

    Raises:
        ManifestLoadError: If the file cannot be read or parsed
    """
    security = security or get_config().security
    try:
        path = _validate_file_path(file_path, security)
    except ManifestLoadError as e:
        log_parsing_error(
            str(e),
            "manifest_loader",
            "load_manifest",
            category=ErrorCategory.LOAD,
            file_path=file_path if isinstance(file_path, str) else None,
        )
        raise

    document = parse_manifest(_read_manifest_text(path), source=path.name)
    log_manifest_loaded(str(path), len(document))
    return document
