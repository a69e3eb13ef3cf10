"""Structural validation of manifest documents against a JSON Schema."""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError as InvalidSchemaError

from .error_handling import SchemaLoadError

DEFAULT_SCHEMA_PATH = Path(__file__).parent / "schema" / "manifest_schema.json"

# Schema cache to avoid reloading files
_SCHEMA_CACHE: Dict[str, dict] = {}


@dataclass(frozen=True)
class SchemaError:
    """One structural problem found in a manifest document."""

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


def load_schema(schema_path: Optional[str] = None) -> dict:
    """
    Load the manifest JSON Schema.

    Args:
        schema_path: Schema file to use, defaults to the bundled manifest schema

    Returns:
        Schema dictionary

    Raises:
        SchemaLoadError: If the file is missing, not JSON or not a valid schema
    """
    path = Path(schema_path) if schema_path else DEFAULT_SCHEMA_PATH
    cache_key = str(path.resolve())
    if cache_key in _SCHEMA_CACHE:
        return _SCHEMA_CACHE[cache_key]

    if not path.is_file():
        raise SchemaLoadError(f"Schema file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            schema = json.load(f)
    except json.JSONDecodeError as e:
        raise SchemaLoadError(f"Invalid JSON in schema file {path}: {e.msg}") from e
    except OSError as e:
        raise SchemaLoadError(f"Cannot read schema file {path}: {e}") from e

    try:
        Draft7Validator.check_schema(schema)
    except InvalidSchemaError as e:
        raise SchemaLoadError(f"Invalid schema in {path}: {e.message}") from e

    _SCHEMA_CACHE[cache_key] = schema
    return schema


def clear_cache() -> None:
    """Clear the schema cache. Useful for testing."""
    _SCHEMA_CACHE.clear()


def _format_path(absolute_path) -> str:
    tokens = [str(token).replace("~", "~0").replace("/", "~1") for token in absolute_path]
    return "/" + "/".join(tokens)


def validate_document(document: Any, schema: dict) -> List[SchemaError]:
    """
    Validate a manifest document and collect every schema violation.

    Args:
        document: Parsed manifest
        schema: JSON Schema dictionary

    Returns:
        List[SchemaError]: Errors sorted by document path (empty if valid)
    """
    validator = Draft7Validator(schema)
    errors = sorted(
        validator.iter_errors(document),
        key=lambda e: [str(token) for token in e.absolute_path],
    )
    return [SchemaError(path=_format_path(e.absolute_path), message=e.message) for e in errors]
