"""Base classes and types for SST config pattern detection.

This module provides the foundational abstractions for creating
pattern rules: violations, fixes, the per-run detection context and
the abstract rule class every detector derives from.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from .syntax.nodes import Node, Program
from .syntax.source import SourceUnit


class Severity(Enum):
    """Severity of a pattern violation."""

    ERROR = "error"  # Blocks deployment
    WARNING = "warning"  # Reported, does not block


class FixConfidence(Enum):
    """How safe a fix is to apply without review.

    Levels are assigned by the rule that emits the fix; they are an
    ordering, not a probability.
    """

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _CONFIDENCE_RANK[self]

    def at_least(self, other: "FixConfidence") -> bool:
        return self.rank >= other.rank


_CONFIDENCE_RANK = {
    FixConfidence.HIGH: 3,
    FixConfidence.MEDIUM: 2,
    FixConfidence.LOW: 1,
}


class PatternCategory(Enum):
    """Misconfiguration categories. Each violation code belongs to exactly one."""

    CONFIG_FILE = "config-file"
    STAGE_VARIABLE = "stage-variable"
    FUNCTION_SIGNATURE = "function-signature"
    DOMAIN_CONFIG = "domain-config"
    CORS_CONFIG = "cors-config"
    PULUMI_OUTPUT = "pulumi-output"
    ENVIRONMENT_VARIABLE = "environment-variable"
    RESOURCE_DEPENDENCY = "resource-dependency"
    DYNAMODB_SCHEMA = "dynamodb-schema"

    @property
    def title(self) -> str:
        """Display name, e.g. 'Stage Variable'."""
        return " ".join(word.capitalize() for word in self.value.split("-"))


@dataclass
class CodeFix:
    """A textual replacement for the ``[start, end)`` range of a source.

    Offsets are only valid against the exact SourceUnit the fix was
    created from; ``old_code`` is the text found there at creation time.
    """

    old_code: str
    new_code: str
    confidence: FixConfidence
    description: str
    start: int
    end: int

    def __post_init__(self) -> None:
        if not 0 <= self.start <= self.end:
            raise ValueError(f"Invalid fix range [{self.start}, {self.end})")

    def overlaps(self, other: "CodeFix") -> bool:
        """Whether applying both fixes would touch the same text.

        Insertions (empty ranges) only conflict at the same position or
        strictly inside the other range.
        """
        if self.start == self.end or other.start == other.end:
            if self.start == self.end and other.start == other.end:
                return self.start == other.start
            insert, span = (self, other) if self.start == self.end else (other, self)
            return span.start < insert.start < span.end
        return self.start < other.end and other.start < self.end

    def apply(self, content: str) -> str:
        """Apply the fix to content."""
        return content[: self.start] + self.new_code + content[self.end :]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "old_code": self.old_code,
            "new_code": self.new_code,
            "confidence": self.confidence.value,
            "description": self.description,
            "start": self.start,
            "end": self.end,
        }


@dataclass
class PatternViolation:
    """A pattern violation found in an SST config file."""

    code: str  # e.g., "SST-VAL-001"
    severity: Severity
    category: PatternCategory
    resource: str
    property: str
    message: str
    line: int  # 1-indexed
    column: int = 1  # 1-indexed
    fix: CodeFix | None = None
    related_codes: list[str] = field(default_factory=list)
    docs_url: str | None = None

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR

    @property
    def is_auto_fixable(self) -> bool:
        """True when the violation carries a high-confidence fix."""
        return self.fix is not None and self.fix.confidence == FixConfidence.HIGH

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "severity": self.severity.value,
            "category": self.category.value,
            "resource": self.resource,
            "property": self.property,
            "message": self.message,
            "line": self.line,
            "column": self.column,
            "fix": self.fix.to_dict() if self.fix else None,
            "related_codes": self.related_codes,
            "docs_url": self.docs_url,
        }


@dataclass
class PatternDetectionContext:
    """Context passed to pattern rules.

    Holds the parsed source and the project root. Rules must treat it
    as read-only.
    """

    source: SourceUnit
    project_root: Path = field(default_factory=Path.cwd)

    @classmethod
    def from_text(
        cls,
        text: str,
        path: Path | str = "sst.config.ts",
        project_root: Path | None = None,
    ) -> "PatternDetectionContext":
        """Create a context from in-memory text (mainly for tests)."""
        return cls(
            source=SourceUnit.from_text(text, path),
            project_root=project_root or Path.cwd(),
        )

    @property
    def tree(self) -> Program:
        return self.source.tree

    @property
    def text(self) -> str:
        return self.source.text

    @property
    def file_path(self) -> Path:
        return self.source.path


class PatternRule(ABC):
    """Abstract base class for pattern rules.

    All pattern rules must inherit from this class and implement the
    required abstract members. Rules are stateless: the same instance is
    shared by every detection run. Rules are responsible for:
    - Defining their unique identifier and category
    - Declaring the violation codes they may emit
    - Implementing detection logic and, where unambiguous, fixes
    """

    @property
    @abstractmethod
    def rule_id(self) -> str:
        """Unique rule identifier, e.g. 'stage-variable'."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable rule name."""

    @property
    @abstractmethod
    def category(self) -> PatternCategory:
        """Primary category of the violations this rule emits."""

    @property
    @abstractmethod
    def codes(self) -> tuple[str, ...]:
        """Violation codes this rule may emit."""

    @property
    def description(self) -> str:
        """Detailed description of what this rule checks."""
        return f"Rule {self.rule_id}: {self.name}"

    @property
    def enabled_by_default(self) -> bool:
        return True

    @abstractmethod
    def detect(self, context: PatternDetectionContext) -> list[PatternViolation]:
        """Run the rule and return violations.

        Args:
            context: PatternDetectionContext with the parsed source

        Returns:
            List of PatternViolation objects for any issues detected.
        """

    def _create_violation(
        self,
        context: PatternDetectionContext,
        code: str,
        node: Node,
        resource: str,
        property: str,
        message: str,
        severity: Severity = Severity.ERROR,
        fix: CodeFix | None = None,
    ) -> PatternViolation:
        """Helper to create a violation positioned at node.

        Category, related codes and documentation URL come from the
        error catalog entry for code.
        """
        from .error_catalog import get_error_info

        entry = get_error_info(code)
        if entry is None:
            raise KeyError(f"Unknown violation code: {code}")
        line, column = context.source.line_and_column(node)
        return PatternViolation(
            code=code,
            severity=severity,
            category=entry.category,
            resource=resource,
            property=property,
            message=message,
            line=line,
            column=column,
            fix=fix,
            related_codes=list(entry.related_codes),
            docs_url=entry.sst_docs_url,
        )

    def _create_fix(
        self,
        context: PatternDetectionContext,
        start: int,
        end: int,
        new_code: str,
        confidence: FixConfidence,
        description: str,
    ) -> CodeFix:
        """Helper to create a fix whose old_code is read from the source."""
        return CodeFix(
            old_code=context.text[start:end],
            new_code=new_code,
            confidence=confidence,
            description=description,
            start=start,
            end=end,
        )

    def _replace_node(
        self,
        context: PatternDetectionContext,
        node: Node,
        new_code: str,
        confidence: FixConfidence,
        description: str,
    ) -> CodeFix:
        return self._create_fix(context, node.start, node.end, new_code, confidence, description)

    def __repr__(self) -> str:
        """String representation of the rule."""
        return f"<{self.__class__.__name__} {self.rule_id}>"


__all__ = [
    "CodeFix",
    "FixConfidence",
    "PatternCategory",
    "PatternDetectionContext",
    "PatternRule",
    "PatternViolation",
    "Severity",
]
