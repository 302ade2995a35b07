"""
SST Config Pattern Detection for deploy-kit.

This package detects configuration patterns in ``sst.config.ts`` that
cause silent deployment failures (wrong stage variables, domain and
DNS settings, CORS typos, Pulumi Output misuse, reserved environment
variables, resource link order, unindexed DynamoDB fields) and applies
safe fixes for them.

Example usage:
    from deploy_kit.patterns import (
        AutoFixer,
        PatternDetectionConfig,
        create_pattern_detector,
        parse,
    )

    detector = create_pattern_detector()
    result = detector.detect("sst.config.ts")

    if result.has_errors:
        print(f"Found {result.error_count} blocking issues")

    # Preview fixes at the project's configured minimum confidence
    source = parse("sst.config.ts")
    config = PatternDetectionConfig.load(".")
    fixes = AutoFixer(config=config).preview(source, result.violations)
"""

from pathlib import Path

from .base import (
    CodeFix,
    FixConfidence,
    PatternCategory,
    PatternDetectionContext,
    PatternRule,
    PatternViolation,
    Severity,
)
from .config import PatternDetectionConfig, RuleConfig
from .engine import DetectionResult, PatternDetector, create_pattern_detector
from .error_catalog import (
    ERROR_CATALOG,
    ErrorCatalogEntry,
    format_error_catalog_entry,
    get_error_info,
    get_errors_by_category,
)
from .errors import FixApplicationError, ParseError, PatternDetectionError
from .fix import AutoFixer, FixOptions, FixResult, SkippedFix, generate_diff
from .formatter import (
    PatternReporter,
    format_pattern_detection_summary,
    format_pattern_violations,
    format_quick_summary,
)
from .rules import ALL_RULES, RULESET_VERSION
from .syntax import SourceUnit, parse


def detect_and_format(
    path: Path | str, project_root: Path | str | None = None
) -> tuple[DetectionResult, str, bool]:
    """Detect violations and render them for display.

    Configuration is loaded from the project root.

    Args:
        path: Path to sst.config.ts
        project_root: Project root, defaults to the file's parent

    Returns:
        (result, formatted text, whether any error-severity violation exists)
    """
    root = Path(project_root) if project_root is not None else Path(path).parent
    detector = create_pattern_detector(PatternDetectionConfig.load(root))
    result = detector.detect(path, root)

    if result.violations:
        formatted = format_pattern_violations(result.violations)
        formatted += format_pattern_detection_summary(result)
    else:
        formatted = format_quick_summary(result)
    return result, formatted, result.has_errors


def detect_and_fix(
    path: Path | str, project_root: Path | str | None = None, apply: bool = False
) -> tuple[DetectionResult, FixResult]:
    """Detect violations and fix them at the project's minimum confidence.

    Without apply this is a dry run and the file is left untouched.
    """
    root = Path(project_root) if project_root is not None else Path(path).parent
    config = PatternDetectionConfig.load(root)
    result = create_pattern_detector(config).detect(path, root)
    options = FixOptions.from_config(config, apply=apply)
    fixes = AutoFixer(config=config).fix_file(path, result.violations, options)
    return result, fixes


__all__ = [
    # Base types
    "CodeFix",
    "FixConfidence",
    "PatternCategory",
    "PatternDetectionContext",
    "PatternRule",
    "PatternViolation",
    "Severity",
    # Parsing
    "SourceUnit",
    "parse",
    # Rules
    "ALL_RULES",
    "RULESET_VERSION",
    # Configuration
    "PatternDetectionConfig",
    "RuleConfig",
    # Detection
    "DetectionResult",
    "PatternDetector",
    "create_pattern_detector",
    "detect_and_fix",
    "detect_and_format",
    # Fixing
    "AutoFixer",
    "FixOptions",
    "FixResult",
    "SkippedFix",
    "generate_diff",
    # Error catalog
    "ERROR_CATALOG",
    "ErrorCatalogEntry",
    "format_error_catalog_entry",
    "get_error_info",
    "get_errors_by_category",
    # Errors
    "FixApplicationError",
    "ParseError",
    "PatternDetectionError",
    # Output
    "PatternReporter",
]
