# In src/buildpack_manifest/dependency.py
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping


@dataclass(frozen=True)
class Dependency:
    """One buildable package version declared under 'dependencies'."""

    name: str
    version: str
    attributes: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @classmethod
    def from_mapping(cls, entry: Mapping[str, Any]) -> "Dependency":
        attributes = {
            key: value for key, value in entry.items() if key not in ("name", "version")
        }
        return cls(
            name=_as_text(entry.get("name")),
            version=_as_text(entry.get("version")),
            attributes=attributes,
        )


@dataclass(frozen=True)
class DefaultVersion:
    """The preferred version of a dependency name, from 'default_versions'."""

    name: str
    version: str

    @classmethod
    def from_mapping(cls, entry: Mapping[str, Any]) -> "DefaultVersion":
        return cls(
            name=_as_text(entry.get("name")),
            version=_as_text(entry.get("version")),
        )


def _as_text(value: Any) -> str:
    # Non-string scalars are a schema error; keep their text so checks still run.
    return "" if value is None else str(value)


def _is_entry(item: Any) -> bool:
    # Entries without a name or version are left to the schema check.
    return (
        isinstance(item, dict)
        and item.get("name") is not None
        and item.get("version") is not None
    )


def dependencies_from_section(section: Any) -> List[Dependency]:
    """Build Dependency records from a raw 'dependencies' section."""
    if not isinstance(section, list):
        return []
    return [Dependency.from_mapping(item) for item in section if _is_entry(item)]


def default_versions_from_section(section: Any) -> List[DefaultVersion]:
    """Build DefaultVersion records from a raw 'default_versions' section."""
    if not isinstance(section, list):
        return []
    return [
        DefaultVersion.from_mapping(item) for item in section if _is_entry(item)
    ]
