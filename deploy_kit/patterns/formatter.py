"""Output formatting for pattern detection results.

This module renders DetectionResult and FixResult objects as plain text
with optional ANSI colors. Nothing in detection or fixing calls it;
callers pick when and where to print.
"""

import sys
from typing import TextIO

from .base import FixConfidence, PatternCategory, PatternViolation, Severity
from .engine import DetectionResult
from .error_catalog import get_error_info
from .fix import FixResult

RED = "\033[0;31m"
GREEN = "\033[0;32m"
YELLOW = "\033[1;33m"
CYAN = "\033[0;36m"
BOLD = "\033[1m"
DIM = "\033[2m"
RESET = "\033[0m"

_SUMMARY_RULE = "═" * 70
_CATEGORY_RULE = "─" * 70

CONFIDENCE_MARKERS = {
    FixConfidence.HIGH: "🟢",
    FixConfidence.MEDIUM: "🟡",
    FixConfidence.LOW: "🔴",
}


def _paint(text: str, color: str, use_color: bool) -> str:
    return f"{color}{text}{RESET}" if use_color else text


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count != 1 else ''}"


def format_violation(violation: PatternViolation, use_color: bool = False) -> str:
    """Format a single violation with its fix, docs and related codes."""
    header = _paint(f"  [{violation.code}] {violation.resource}", BOLD, use_color)
    header += _paint(f" (line {violation.line}:{violation.column})", DIM, use_color)
    lines = ["", header, f"  {violation.message}"]

    if violation.fix:
        fix = violation.fix
        marker = CONFIDENCE_MARKERS.get(fix.confidence, "⚪")
        lines.append("")
        lines.append(
            _paint(
                f"  {marker} Suggested Fix ({fix.confidence.value} confidence):",
                CYAN,
                use_color,
            )
        )
        lines.append(_paint(f"    - {fix.old_code}", RED, use_color))
        lines.append(_paint(f"    + {fix.new_code}", GREEN, use_color))

    if violation.docs_url:
        lines.append("")
        lines.append(_paint(f"  📚 Docs: {violation.docs_url}", DIM, use_color))

    if violation.related_codes:
        lines.append(
            _paint(f"  🔗 Related: {', '.join(violation.related_codes)}", DIM, use_color)
        )

    return "\n".join(lines) + "\n"


def format_pattern_violations(
    violations: list[PatternViolation], use_color: bool = False
) -> str:
    """Format violations as an errors section followed by a warnings section.

    Returns:
        Formatted text, or an empty string when there are no violations
    """
    if not violations:
        return ""

    errors = [v for v in violations if v.severity == Severity.ERROR]
    warnings = [v for v in violations if v.severity == Severity.WARNING]

    output = ""
    if errors:
        output += _paint(f"\n❌ SST Pattern Errors ({len(errors)}):\n", BOLD + RED, use_color)
        output += "".join(format_violation(v, use_color) for v in errors)
    if warnings:
        output += _paint(
            f"\n⚠️  SST Pattern Warnings ({len(warnings)}):\n", BOLD + YELLOW, use_color
        )
        output += "".join(format_violation(v, use_color) for v in warnings)
    return output


def format_pattern_detection_summary(result: DetectionResult, use_color: bool = False) -> str:
    lines = [
        "",
        _paint(_SUMMARY_RULE, BOLD, use_color),
        _paint("  SST Pattern Detection Summary", BOLD, use_color),
        _paint(_SUMMARY_RULE, BOLD, use_color),
        "",
        f"  Total Issues: {len(result.violations)}",
        f"  {_paint('Errors', RED, use_color)}: {result.error_count}",
        f"  {_paint('Warnings', YELLOW, use_color)}: {result.warning_count}",
        f"  {_paint('Auto-fixable', GREEN, use_color)}: {result.auto_fixable_count}",
        f"  {_paint(f'Duration: {result.duration_ms:.0f}ms', DIM, use_color)}",
    ]
    if result.rule_errors:
        failed = ", ".join(rule_id for rule_id, _ in result.rule_errors)
        lines.append(f"  {_paint(f'Rules failed: {failed}', RED, use_color)}")
    return "\n".join(lines) + "\n"


def format_violations_by_category(
    violations_by_category: dict[PatternCategory, list[PatternViolation]],
    use_color: bool = False,
) -> str:
    output = ""
    for category, violations in violations_by_category.items():
        output += _paint(
            f"\n\n{category.title} ({len(violations)}):\n", BOLD + CYAN, use_color
        )
        output += _paint(_CATEGORY_RULE, DIM, use_color) + "\n"
        output += format_pattern_violations(violations, use_color)
    return output


def format_violation_with_catalog(violation: PatternViolation, use_color: bool = False) -> str:
    """Format a violation followed by its error catalog explanation."""
    output = format_violation(violation, use_color)

    entry = get_error_info(violation.code)
    if entry is None:
        return output

    output += _paint("\n  ═══ Error Details ═══\n", DIM, use_color)
    output += _paint(f"  {entry.description}\n", DIM, use_color)
    output += _paint(f"\n  Root Cause: {entry.root_cause}\n", DIM, use_color)

    if entry.bad_example:
        output += _paint("\n  ❌ Incorrect:\n", RED, use_color)
        output += "\n".join(
            _paint(f"    {line}", DIM, use_color) for line in entry.bad_example.split("\n")
        )
        output += "\n"

    if entry.good_example:
        output += _paint("\n  ✅ Correct:\n", GREEN, use_color)
        output += "\n".join(
            _paint(f"    {line}", DIM, use_color) for line in entry.good_example.split("\n")
        )
        output += "\n"

    return output


def format_quick_summary(result: DetectionResult, use_color: bool = False) -> str:
    """One-line summary, e.g. '⚠️  2 errors, 1 warning (1 auto-fixable)'."""
    if not result.violations:
        return _paint("✅ No pattern issues detected", GREEN, use_color)

    parts = []
    if result.error_count > 0:
        parts.append(_paint(_plural(result.error_count, "error"), RED, use_color))
    if result.warning_count > 0:
        parts.append(_paint(_plural(result.warning_count, "warning"), YELLOW, use_color))

    summary = f"⚠️  {', '.join(parts)}"
    if result.auto_fixable_count > 0:
        summary += _paint(f" ({result.auto_fixable_count} auto-fixable)", DIM, use_color)
    return summary


def format_fix_result(result: FixResult, use_color: bool = False) -> str:
    output = ""

    if result.error:
        output += _paint(f"\n❌ Fixes not applied: {result.error}\n", RED, use_color)

    if result.applied_fixes:
        verb = "Applied" if result.applied else "Would apply"
        output += _paint(
            f"\n✅ {verb} {len(result.applied_fixes)} fix(es):\n\n", GREEN, use_color
        )
        for item in result.applied_fixes:
            output += f"  {item.code}: {item.fix.description}\n"
            output += _paint(f"    - {item.fix.old_code}\n", RED, use_color)
            output += _paint(f"    + {item.fix.new_code}\n\n", GREEN, use_color)

    if result.skipped_fixes:
        output += _paint(
            f"\n⏭️  Skipped {len(result.skipped_fixes)} fix(es):\n\n", YELLOW, use_color
        )
        for item in result.skipped_fixes:
            output += f"  {item.code}: {item.fix.description}\n"
            output += f"    Reason: {item.reason}\n\n"

    if not result.applied_fixes and not result.skipped_fixes and not result.error:
        output += "\nNo fixes available.\n"

    return output


class PatternReporter:
    """Writes formatted pattern results to a stream.

    Colors are used when the stream is a terminal unless use_color says
    otherwise.
    """

    def __init__(self, stream: TextIO = sys.stderr, use_color: bool | None = None):
        """Initialize the reporter.

        Args:
            stream: Output stream (default: stderr).
            use_color: Whether to use ANSI colors. Auto-detects if None.
        """
        self.stream = stream
        if use_color is None:
            self.use_color = hasattr(stream, "isatty") and stream.isatty()
        else:
            self.use_color = use_color

    def report(
        self, result: DetectionResult, by_category: bool = False, with_catalog: bool = False
    ) -> None:
        """Output violations followed by the detection summary."""
        if with_catalog:
            for violation in result.violations:
                self.stream.write(format_violation_with_catalog(violation, self.use_color))
        elif by_category:
            self.stream.write(
                format_violations_by_category(result.by_category(), self.use_color)
            )
        else:
            self.stream.write(format_pattern_violations(result.violations, self.use_color))
        self.stream.write(format_pattern_detection_summary(result, self.use_color))

    def report_quick(self, result: DetectionResult) -> None:
        print(format_quick_summary(result, self.use_color), file=self.stream)

    def report_fixes(self, result: FixResult) -> None:
        self.stream.write(format_fix_result(result, self.use_color))


__all__ = [
    "PatternReporter",
    "format_fix_result",
    "format_pattern_detection_summary",
    "format_pattern_violations",
    "format_quick_summary",
    "format_violation",
    "format_violation_with_catalog",
    "format_violations_by_category",
]
