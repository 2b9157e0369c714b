"""
Command and Validation Result Models

DESIGN DECISION: Expected failures are values, not exceptions.
A rejected command returns a CommandResult with success=False and the
issues that blocked it. Nothing was mutated when that happens.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class CommandErrorKind(str, Enum):
    """Why a command was rejected."""
    VALIDATION = "validation"
    REFERENTIAL_INTEGRITY = "referential_integrity"
    NOT_FOUND = "not_found"


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field (or relationship) with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'non_finite', 'referenced_by_transactions')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """Result of validating one command input."""

    is_valid: bool = Field(
        ...,
        description="Overall validation result"
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def warnings(self) -> list[str]:
        """Non-blocking messages that should still be shown."""
        return [issue.message for issue in self.issues if issue.severity == "warning"]

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @classmethod
    def from_issues(cls, issues: list[ValidationIssue]) -> "ValidationResult":
        return cls(
            is_valid=not any(issue.severity == "error" for issue in issues),
            issues=issues,
        )


class CommandResult(BaseModel):
    """
    Outcome of one store command.

    generated_count is the number of transactions the command created
    (recurring catch-up can create several).
    """

    success: bool
    error_kind: Optional[CommandErrorKind] = None
    message: str = ""
    issues: list[ValidationIssue] = Field(default_factory=list)
    entity_id: Optional[str] = None
    generated_count: int = Field(default=0, ge=0)

    @classmethod
    def ok(
        cls,
        message: str = "",
        entity_id: Optional[str] = None,
        generated_count: int = 0,
        issues: Optional[list[ValidationIssue]] = None,
    ) -> "CommandResult":
        """Successful result; issues carries any non-blocking warnings."""
        return cls(
            success=True,
            message=message,
            issues=issues or [],
            entity_id=entity_id,
            generated_count=generated_count,
        )

    @classmethod
    def rejected(
        cls,
        kind: CommandErrorKind,
        message: str,
        issues: Optional[list[ValidationIssue]] = None,
        entity_id: Optional[str] = None,
    ) -> "CommandResult":
        return cls(
            success=False,
            error_kind=kind,
            message=message,
            issues=issues or [],
            entity_id=entity_id,
        )
