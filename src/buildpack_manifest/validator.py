"""
Buildpack manifest validation.

Combines structural schema validation with the default version consistency
rules and returns every problem as a categorized issue. Deciding what to do
with an invalid manifest (printing, exit status) is left to the caller.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .cli_config import ValidatorConfig, get_config
from .consistency import check, format_report
from .dependency import default_versions_from_section, dependencies_from_section
from .error_handling import ErrorCategory, ManifestLoadError
from .manifest_loader import load_manifest
from .schema_validator import load_schema, validate_document
from .structured_logging import (
    get_validator_logger,
    log_validation_complete,
    log_validation_start,
)


@dataclass(frozen=True)
class ValidationIssue:
    """A single validation problem."""

    category: ErrorCategory
    message: str
    path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "path": self.path}


@dataclass
class ValidationReport:
    """Everything found wrong with one manifest."""

    manifest_path: str
    issues: List[ValidationIssue] = field(default_factory=list)
    consistency_report: Optional[str] = None

    @property
    def valid(self) -> bool:
        return not self.issues

    @property
    def errors(self) -> Dict[str, List[ValidationIssue]]:
        """Issues grouped by category name, only non-empty categories."""
        grouped: Dict[str, List[ValidationIssue]] = {}
        for issue in self.issues:
            grouped.setdefault(issue.category.value, []).append(issue)
        return grouped

    def issues_for(self, category: ErrorCategory) -> List[ValidationIssue]:
        return [issue for issue in self.issues if issue.category == category]

    def error_counts(self) -> Dict[str, int]:
        return {category: len(issues) for category, issues in self.errors.items()}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "manifest": self.manifest_path,
            "valid": self.valid,
            "errors": {
                category: [issue.to_dict() for issue in issues]
                for category, issues in self.errors.items()
            },
        }


def validate_document_consistency(document: Dict[str, Any]) -> List[ValidationIssue]:
    """
    Run the default version rules on an already loaded manifest.

    Returns an empty list when the manifest has no 'default_versions' section.
    """
    if document.get("default_versions") is None:
        return []

    messages = check(
        dependencies_from_section(document.get("dependencies")),
        default_versions_from_section(document.get("default_versions")),
    )
    return [ValidationIssue(ErrorCategory.DEFAULT_VERSIONS, message) for message in messages]


class ManifestValidator:
    """Validates one buildpack manifest file."""

    def __init__(
        self,
        manifest_path: str,
        schema_path: Optional[str] = None,
        config: Optional[ValidatorConfig] = None,
    ):
        self.manifest_path = manifest_path
        self.config = config or get_config()
        self.schema_path = schema_path or self.config.validation.schema_path
        self.report: Optional[ValidationReport] = None

    def valid(self) -> bool:
        """Validate the manifest and return whether it has no issues."""
        return self.validate().valid

    @property
    def errors(self) -> Dict[str, List[ValidationIssue]]:
        if self.report is None:
            self.validate()
        return self.report.errors

    def validate(self) -> ValidationReport:
        """
        Run every check on the manifest.

        Returns:
            ValidationReport: The collected issues

        Raises:
            SchemaLoadError: If the schema itself cannot be loaded
        """
        schema = load_schema(self.schema_path)
        report = ValidationReport(manifest_path=self.manifest_path)
        log_validation_start(self.manifest_path)

        try:
            document = load_manifest(self.manifest_path, self.config.security)
        except ManifestLoadError as e:
            report.issues.append(ValidationIssue(e.category, str(e)))
            return self._finish(report)

        logger = get_validator_logger()

        schema_errors = validate_document(document, schema)
        if schema_errors:
            logger.info("schema_errors_found", count=len(schema_errors))
        report.issues.extend(
            ValidationIssue(ErrorCategory.PARSING, error.message, error.path)
            for error in schema_errors
        )

        consistency_issues = validate_document_consistency(document)
        if consistency_issues:
            logger.info("default_versions_errors_found", count=len(consistency_issues))
            report.consistency_report = format_report(
                [issue.message for issue in consistency_issues]
            )
        report.issues.extend(consistency_issues)

        return self._finish(report)

    def _finish(self, report: ValidationReport) -> ValidationReport:
        log_validation_complete(self.manifest_path, report.valid, report.error_counts())
        self.report = report
        return report


def validate_manifest(
    manifest_path: str,
    schema_path: Optional[str] = None,
    config: Optional[ValidatorConfig] = None,
) -> ValidationReport:
    """Validate a manifest file and return its report."""
    return ManifestValidator(manifest_path, schema_path, config).validate()
