"""Pattern detector for orchestrating SST config validation.

This module provides the PatternDetector class that manages rule
registration and runs the enabled rules against a parsed config file,
isolating each rule so one failure never hides the others.
"""

import time
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from ..kit_logging import get_logger
from .base import (
    PatternCategory,
    PatternDetectionContext,
    PatternRule,
    PatternViolation,
    Severity,
)
from .config import PatternDetectionConfig
from .error_catalog import get_error_info
from .errors import ParseError
from .rules import ALL_RULES
from .syntax.source import SourceUnit, parse

logger = get_logger()

CONFIG_FILE_NAME = "sst.config.ts"
MISSING_FILE_CODE = "SST-VAL-000"


@dataclass
class DetectionResult:
    """Result of one detection run.

    Created fresh for every call and never cached.
    """

    violations: list[PatternViolation] = field(default_factory=list)
    duration_ms: float = 0.0
    rules_executed: int = 0
    rules_skipped: int = 0
    rule_errors: list[tuple[str, str]] = field(default_factory=list)  # (rule_id, error)

    @property
    def error_count(self) -> int:
        return sum(1 for v in self.violations if v.severity == Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for v in self.violations if v.severity == Severity.WARNING)

    @property
    def auto_fixable_count(self) -> int:
        """Violations carrying a high-confidence fix."""
        return sum(1 for v in self.violations if v.is_auto_fixable)

    @property
    def has_errors(self) -> bool:
        return self.error_count > 0

    @property
    def has_rule_errors(self) -> bool:
        return len(self.rule_errors) > 0

    def by_category(self) -> dict[PatternCategory, list[PatternViolation]]:
        return group_by_category(self.violations)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "violations": [v.to_dict() for v in self.violations],
            "error_count": self.error_count,
            "warning_count": self.warning_count,
            "auto_fixable_count": self.auto_fixable_count,
            "duration_ms": self.duration_ms,
            "rules_executed": self.rules_executed,
            "rules_skipped": self.rules_skipped,
            "rule_errors": [{"rule_id": e[0], "error": e[1]} for e in self.rule_errors],
        }


def group_by_category(
    violations: list[PatternViolation],
) -> dict[PatternCategory, list[PatternViolation]]:
    """Group violations by category, keeping detection order within each."""
    grouped: dict[PatternCategory, list[PatternViolation]] = {}
    for violation in violations:
        grouped.setdefault(violation.category, []).append(violation)
    return grouped


class PatternDetector:
    """Engine for running pattern rules against SST config files.

    Manages rule registration and execution. Rules are registered
    statically; by default the built-in ALL_RULES set is used.
    """

    def __init__(
        self,
        config: PatternDetectionConfig | None = None,
        rules: list[PatternRule] | tuple[PatternRule, ...] | None = None,
    ):
        """Initialize the detector.

        Args:
            config: Detection configuration, defaults to built-in defaults
            rules: Rules to register, defaults to ALL_RULES
        """
        self.config = config or PatternDetectionConfig()
        self._rules: dict[str, PatternRule] = {}
        for rule in ALL_RULES if rules is None else rules:
            self.register(rule)

    def register(self, rule: PatternRule) -> None:
        """Register a rule with the detector.

        Raises:
            ValueError: If a rule with the same ID is already registered.
        """
        if rule.rule_id in self._rules:
            raise ValueError(f"Rule {rule.rule_id} is already registered")
        self._rules[rule.rule_id] = rule

    def unregister(self, rule_id: str) -> bool:
        """Unregister a rule by ID.

        Returns:
            True if rule was unregistered, False if not found.
        """
        if rule_id not in self._rules:
            return False
        del self._rules[rule_id]
        return True

    def get_rule(self, rule_id: str) -> PatternRule | None:
        return self._rules.get(rule_id)

    def get_rules(self) -> list[PatternRule]:
        return list(self._rules.values())

    def get_rules_by_category(self, category: PatternCategory | str) -> list[PatternRule]:
        category = PatternCategory(category)
        return [r for r in self._rules.values() if r.category == category]

    def get_enabled_rules(self) -> list[PatternRule]:
        return [
            r
            for r in self._rules.values()
            if self.config.is_rule_enabled(r.rule_id, r.enabled_by_default)
        ]

    @property
    def rule_count(self) -> int:
        """Number of registered rules."""
        return len(self._rules)

    def detect(
        self, path: Path | str, project_root: Path | str | None = None
    ) -> DetectionResult:
        """Detect pattern violations in an SST config file.

        Args:
            path: Path to sst.config.ts
            project_root: Project root directory, defaults to the file's parent

        Returns:
            DetectionResult. A missing or unreadable file yields a single
            SST-VAL-000 violation instead of raising.
        """
        start_time = time.perf_counter()
        path = Path(path)

        try:
            source = parse(path)
        except ParseError as e:
            logger.warning(f"Cannot load config for pattern detection: {e}")
            return DetectionResult(
                violations=[self._missing_file_violation(path, e)],
                duration_ms=(time.perf_counter() - start_time) * 1000,
            )

        root = Path(project_root) if project_root is not None else path.parent
        result = self.detect_source(source, root)
        result.duration_ms = (time.perf_counter() - start_time) * 1000
        return result

    def detect_source(
        self, source: SourceUnit, project_root: Path | str | None = None
    ) -> DetectionResult:
        """Run enabled rules against an already parsed source."""
        start_time = time.perf_counter()
        context = PatternDetectionContext(
            source=source,
            project_root=Path(project_root) if project_root is not None else source.path.parent,
        )

        violations: list[PatternViolation] = []
        rule_errors: list[tuple[str, str]] = []
        rules_executed = 0
        rules_skipped = 0

        for rule in self._rules.values():
            if not self.config.is_rule_enabled(rule.rule_id, rule.enabled_by_default):
                rules_skipped += 1
                continue

            rules_executed += 1
            rule_violations, error = self._execute_rule(rule, context)
            if error is not None:
                rule_errors.append((rule.rule_id, error))
                continue
            violations.extend(self._filter_violations(rule, rule_violations))

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(
            f"Pattern detection on {source.path}: {len(violations)} violation(s) "
            f"from {rules_executed} rule(s) in {duration_ms:.1f}ms"
        )
        return DetectionResult(
            violations=violations,
            duration_ms=duration_ms,
            rules_executed=rules_executed,
            rules_skipped=rules_skipped,
            rule_errors=rule_errors,
        )

    def detect_by_category(
        self, path: Path | str, project_root: Path | str | None = None
    ) -> dict[PatternCategory, list[PatternViolation]]:
        return group_by_category(self.detect(path, project_root).violations)

    def group_by_category(
        self, violations: list[PatternViolation]
    ) -> dict[PatternCategory, list[PatternViolation]]:
        return group_by_category(violations)

    def has_violations(self, path: Path | str, project_root: Path | str | None = None) -> bool:
        return len(self.detect(path, project_root).violations) > 0

    def get_violation_counts(self, result: DetectionResult) -> dict[str, int]:
        """Count violations per code."""
        counts: dict[str, int] = {}
        for violation in result.violations:
            counts[violation.code] = counts.get(violation.code, 0) + 1
        return counts

    def _execute_rule(
        self, rule: PatternRule, context: PatternDetectionContext
    ) -> tuple[list[PatternViolation], str | None]:
        """Execute a single rule with timing and error handling."""
        start_time = time.perf_counter()
        try:
            violations = rule.detect(context)
        except Exception as e:
            if not self.config.continue_on_error:
                raise
            logger.exception(f"Pattern rule {rule.rule_id} failed on {context.file_path}")
            return [], f"{type(e).__name__}: {e}"

        execution_time_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(f"Rule {rule.rule_id}: {len(violations)} violation(s) in {execution_time_ms:.1f}ms")
        return violations, None

    def _filter_violations(
        self, rule: PatternRule, violations: list[PatternViolation]
    ) -> list[PatternViolation]:
        severity = self.config.get_severity_override(rule.rule_id)
        filtered = []
        for violation in violations:
            if not self.config.is_code_enabled(violation.code):
                continue
            if severity is not None and violation.severity != severity:
                violation = replace(violation, severity=severity)
            filtered.append(violation)
        return filtered

    def _missing_file_violation(self, path: Path, error: ParseError) -> PatternViolation:
        entry = get_error_info(MISSING_FILE_CODE)
        message = f"{CONFIG_FILE_NAME} not found" if not path.exists() else error.message
        return PatternViolation(
            code=MISSING_FILE_CODE,
            severity=Severity.ERROR,
            category=entry.category,
            resource=CONFIG_FILE_NAME,
            property="file",
            message=message,
            line=1,
            column=1,
            related_codes=list(entry.related_codes),
            docs_url=entry.sst_docs_url,
        )


def create_pattern_detector(
    config: PatternDetectionConfig | None = None,
) -> PatternDetector:
    """Create a detector with every built-in rule registered.

    Args:
        config: Optional configuration, defaults to built-in defaults

    Returns:
        Configured PatternDetector instance.
    """
    return PatternDetector(config=config)


__all__ = [
    "CONFIG_FILE_NAME",
    "DetectionResult",
    "MISSING_FILE_CODE",
    "PatternDetector",
    "create_pattern_detector",
    "group_by_category",
]
