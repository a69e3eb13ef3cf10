"""
Cross-field consistency rules for the 'default_versions' section.

These rules cannot be expressed by the structural schema: they compare the
default version declarations against the declared dependencies.
"""

from collections import Counter
from typing import List, Sequence, Set, Tuple

from .dependency import DefaultVersion, Dependency

REPORT_HEADER = "The buildpack manifest is malformed:"
REPORT_TRAILER = (
    "For more information, see "
    "https://docs.cloudfoundry.org/buildpacks/custom.html#specifying-default-versions"
)


def _unique_in_order(values: Sequence[str]) -> List[str]:
    seen: Set[str] = set()
    ordered = []
    for value in values:
        if value not in seen:
            seen.add(value)
            ordered.append(value)
    return ordered


def find_duplicate_names(default_versions: Sequence[DefaultVersion]) -> List[str]:
    """Return names declared more than once, in first-occurrence order."""
    names = [entry.name for entry in default_versions]
    counts = Counter(names)
    return [name for name in _unique_in_order(names) if counts[name] > 1]


def find_missing_names(
    dependencies: Sequence[Dependency], default_versions: Sequence[DefaultVersion]
) -> List[str]:
    """Return default version names that no dependency entry carries."""
    dependency_names = {dep.name for dep in dependencies}
    return [
        name
        for name in _unique_in_order([entry.name for entry in default_versions])
        if name not in dependency_names
    ]


def find_missing_versions(
    dependencies: Sequence[Dependency], default_versions: Sequence[DefaultVersion]
) -> List[Tuple[str, str]]:
    """
    Return (name, version) pairs with no matching dependency version.

    Names without any dependency entry are skipped; they are reported by
    find_missing_names instead.
    """
    versions_by_name = {}
    for dep in dependencies:
        versions_by_name.setdefault(dep.name, set()).add(dep.version)

    missing = []
    for entry in default_versions:
        known_versions = versions_by_name.get(entry.name)
        if known_versions is None or entry.version in known_versions:
            continue
        pair = (entry.name, entry.version)
        if pair not in missing:
            missing.append(pair)
    return missing


def check(
    dependencies: Sequence[Dependency], default_versions: Sequence[DefaultVersion]
) -> List[str]:
    """
    Check default versions against the declared dependencies.

    Every rule runs even when an earlier one found problems, so a single
    call reports all of them.

    Args:
        dependencies: Entries from the manifest's 'dependencies' section
        default_versions: Entries from the manifest's 'default_versions' section

    Returns:
        List[str]: Error messages in rule order (empty if consistent)
    """
    messages = []

    for name in find_duplicate_names(default_versions):
        messages.append(
            f"{name} had more than one 'default_versions' entry in the buildpack manifest."
        )

    for name in find_missing_names(dependencies, default_versions):
        messages.append(
            f"a 'default_versions' entry for {name} was specified by the buildpack "
            f"manifest, but no 'dependencies' entry with the name {name} was found "
            "in the buildpack manifest."
        )

    for name, version in find_missing_versions(dependencies, default_versions):
        messages.append(
            f"a 'default_versions' entry for {name} {version} was specified by the "
            f"buildpack manifest, but no 'dependencies' entry for {name} {version} "
            "was found in the buildpack manifest."
        )

    return messages


def format_report(messages: Sequence[str]) -> str:
    """Assemble messages into the multi-line diagnostic, or '' if there are none."""
    if not messages:
        return ""
    lines = [REPORT_HEADER]
    lines.extend(f"- {message}" for message in messages)
    lines.append(REPORT_TRAILER)
    return "\n".join(lines)
