from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

STRUCTURAL_ERROR = "StructuralError"
SECURITY_ERROR = "SecurityError"
CORRUPTION_ERROR = "CorruptionError"
FORMAT_ERROR = "FormatError"
LIMIT_ERROR = "LimitError"
STRUCTURAL_WARNING = "StructuralWarning"
REFERENCE_WARNING = "ReferenceWarning"
FORMAT_WARNING = "FormatWarning"


@dataclass
class ValidationIssue:
    code: str
    category: str
    message: str
    hint: str
    context: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        data = {
            "code": self.code,
            "category": self.category,
            "message": self.message,
            "hint": self.hint,
        }
        if self.context:
            data["context"] = self.context
        return data


@dataclass
class ValidationResult:
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)
    sanitized: str | None = None

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def error_messages(self) -> list[str]:
        return [issue.message for issue in self.errors]

    @property
    def warning_messages(self) -> list[str]:
        return [issue.message for issue in self.warnings]

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "valid": self.valid,
            "errors": [issue.to_dict() for issue in self.errors],
            "warnings": [issue.to_dict() for issue in self.warnings],
        }
        if self.sanitized is not None:
            data["sanitized"] = self.sanitized
        return data


@dataclass(frozen=True)
class ElementStats:
    total_elements: int
    element_counts: dict[str, int]
    size_kb: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_elements": self.total_elements,
            "element_counts": dict(self.element_counts),
            "size_kb": self.size_kb,
        }
