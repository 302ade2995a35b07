"""
Unit tests for pattern result formatting.

Tests cover:
- Single violation rendering with fixes, docs and related codes
- Error and warning sections
- Detection summaries and quick summaries
- Fix result rendering
- PatternReporter output
"""

import io

import pytest

from deploy_kit.patterns.base import (
    CodeFix,
    FixConfidence,
    PatternCategory,
    PatternViolation,
    Severity,
)
from deploy_kit.patterns.engine import DetectionResult
from deploy_kit.patterns.fix import AppliedFix, FixResult, SkippedFix
from deploy_kit.patterns.formatter import (
    RED,
    RESET,
    PatternReporter,
    format_fix_result,
    format_pattern_detection_summary,
    format_pattern_violations,
    format_quick_summary,
    format_violation,
    format_violation_with_catalog,
    format_violations_by_category,
)


def make_violation(
    code: str = "SST-VAL-021",
    severity: Severity = Severity.ERROR,
    category: PatternCategory = PatternCategory.CORS_CONFIG,
    fix: CodeFix | None = None,
) -> PatternViolation:
    return PatternViolation(
        code=code,
        severity=severity,
        category=category,
        resource='Bucket("Uploads")',
        property="cors",
        message='Invalid CORS property "allowedOrigins". Use "allowOrigins" instead.',
        line=5,
        column=14,
        fix=fix,
        related_codes=["SST-VAL-022", "SST-VAL-023"],
        docs_url="https://sst.dev/docs/component/aws/bucket#cors",
    )


@pytest.fixture
def cors_fix():
    return CodeFix(
        old_code="allowedOrigins",
        new_code="allowOrigins",
        confidence=FixConfidence.HIGH,
        description="Rename allowedOrigins to allowOrigins",
        start=40,
        end=54,
    )


# =============================================================================
# Violation Formatting Tests
# =============================================================================


class TestFormatViolation:
    """Tests for single violation rendering."""

    def test_plain_output(self, cors_fix):
        """Test the full plain-text layout."""
        output = format_violation(make_violation(fix=cors_fix))
        assert output == (
            '\n  [SST-VAL-021] Bucket("Uploads") (line 5:14)\n'
            '  Invalid CORS property "allowedOrigins". Use "allowOrigins" instead.\n'
            "\n"
            "  🟢 Suggested Fix (high confidence):\n"
            "    - allowedOrigins\n"
            "    + allowOrigins\n"
            "\n"
            "  📚 Docs: https://sst.dev/docs/component/aws/bucket#cors\n"
            "  🔗 Related: SST-VAL-022, SST-VAL-023\n"
        )

    def test_without_fix(self):
        """Test violations without a fix omit the fix block."""
        output = format_violation(make_violation())
        assert "Suggested Fix" not in output
        assert "[SST-VAL-021]" in output

    def test_confidence_markers(self, cors_fix):
        """Test the marker follows fix confidence."""
        cors_fix.confidence = FixConfidence.LOW
        output = format_violation(make_violation(fix=cors_fix))
        assert "🔴 Suggested Fix (low confidence):" in output

    def test_color_output(self, cors_fix):
        """Test ANSI codes are only added with use_color."""
        assert "\033[" not in format_violation(make_violation(fix=cors_fix))
        colored = format_violation(make_violation(fix=cors_fix), use_color=True)
        assert f"{RED}    - allowedOrigins{RESET}" in colored

    def test_with_catalog(self):
        """Test catalog details follow the violation."""
        output = format_violation_with_catalog(make_violation())
        assert "═══ Error Details ═══" in output
        assert "Root Cause:" in output
        assert "❌ Incorrect:" in output
        assert "✅ Correct:" in output

    def test_with_catalog_unknown_code(self):
        """Test unknown codes render without catalog details."""
        violation = make_violation(code="SST-VAL-999")
        assert format_violation_with_catalog(violation) == format_violation(violation)


class TestFormatViolations:
    """Tests for error and warning sections."""

    def test_empty(self):
        """Test no violations gives empty output."""
        assert format_pattern_violations([]) == ""

    def test_sections(self):
        """Test errors come before warnings with counts."""
        violations = [
            make_violation(code="SST-VAL-022", severity=Severity.WARNING),
            make_violation(),
        ]
        output = format_pattern_violations(violations)
        assert "❌ SST Pattern Errors (1):" in output
        assert "⚠️  SST Pattern Warnings (1):" in output
        assert output.index("[SST-VAL-021]") < output.index("[SST-VAL-022]")

    def test_by_category(self):
        """Test violations grouped under category titles."""
        grouped = {
            PatternCategory.CORS_CONFIG: [make_violation()],
            PatternCategory.DYNAMODB_SCHEMA: [
                make_violation(code="SST-VAL-061", category=PatternCategory.DYNAMODB_SCHEMA)
            ],
        }
        output = format_violations_by_category(grouped)
        assert "Cors Config (1):" in output
        assert "Dynamodb Schema (1):" in output
        assert output.index("Cors Config") < output.index("Dynamodb Schema")


# =============================================================================
# Summary Tests
# =============================================================================


class TestSummaries:
    """Tests for detection summaries."""

    def test_detection_summary(self, cors_fix):
        """Test the summary block counts."""
        result = DetectionResult(
            violations=[
                make_violation(fix=cors_fix),
                make_violation(code="SST-VAL-022", severity=Severity.WARNING),
            ],
            duration_ms=12.4,
        )
        output = format_pattern_detection_summary(result)
        assert "SST Pattern Detection Summary" in output
        assert "Total Issues: 2" in output
        assert "Errors: 1" in output
        assert "Warnings: 1" in output
        assert "Auto-fixable: 1" in output
        assert "Duration: 12ms" in output
        assert "Rules failed" not in output

    def test_detection_summary_rule_errors(self):
        """Test failed rules are listed."""
        result = DetectionResult(rule_errors=[("cors-config", "RuntimeError: boom")])
        assert "Rules failed: cors-config" in format_pattern_detection_summary(result)

    def test_quick_summary_clean(self):
        """Test the clean quick summary."""
        assert format_quick_summary(DetectionResult()) == "✅ No pattern issues detected"

    def test_quick_summary(self, cors_fix):
        """Test pluralization and the auto-fixable suffix."""
        result = DetectionResult(
            violations=[
                make_violation(fix=cors_fix),
                make_violation(),
                make_violation(code="SST-VAL-022", severity=Severity.WARNING),
            ]
        )
        assert format_quick_summary(result) == "⚠️  2 errors, 1 warning (1 auto-fixable)"

    def test_quick_summary_warnings_only(self):
        """Test a summary with only warnings."""
        result = DetectionResult(violations=[make_violation(severity=Severity.WARNING)])
        assert format_quick_summary(result) == "⚠️  1 warning"


# =============================================================================
# Fix Result Tests
# =============================================================================


class TestFormatFixResult:
    """Tests for fix result rendering."""

    def test_applied(self, cors_fix):
        """Test applied fixes are listed with their diff lines."""
        result = FixResult(
            applied=True, fix_count=1, applied_fixes=[AppliedFix("SST-VAL-021", cors_fix)]
        )
        output = format_fix_result(result)
        assert "✅ Applied 1 fix(es):" in output
        assert "  SST-VAL-021: Rename allowedOrigins to allowOrigins\n" in output
        assert "    - allowedOrigins\n" in output
        assert "    + allowOrigins\n" in output

    def test_dry_run(self, cors_fix):
        """Test dry runs say what would be applied."""
        result = FixResult(fix_count=1, applied_fixes=[AppliedFix("SST-VAL-021", cors_fix)])
        assert "✅ Would apply 1 fix(es):" in format_fix_result(result)

    def test_skipped(self, cors_fix):
        """Test skipped fixes show their reason."""
        result = FixResult(
            skipped_fixes=[SkippedFix("SST-VAL-021", cors_fix, "Declined by user")]
        )
        output = format_fix_result(result)
        assert "Skipped 1 fix(es):" in output
        assert "    Reason: Declined by user\n" in output

    def test_error(self):
        """Test errors are reported."""
        result = FixResult(error="file changed on disk since it was parsed")
        output = format_fix_result(result)
        assert "❌ Fixes not applied: file changed on disk since it was parsed" in output
        assert "No fixes available" not in output

    def test_nothing(self):
        """Test the empty result message."""
        assert format_fix_result(FixResult()) == "\nNo fixes available.\n"


# =============================================================================
# Reporter Tests
# =============================================================================


class TestPatternReporter:
    """Tests for PatternReporter."""

    def test_color_autodetect(self):
        """Test non-terminal streams disable colors."""
        assert PatternReporter(io.StringIO()).use_color is False
        assert PatternReporter(io.StringIO(), use_color=True).use_color is True

    def test_report(self, cors_fix):
        """Test report writes violations then the summary."""
        stream = io.StringIO()
        result = DetectionResult(violations=[make_violation(fix=cors_fix)])
        PatternReporter(stream, use_color=False).report(result)
        output = stream.getvalue()
        assert output.index("SST Pattern Errors") < output.index("Detection Summary")

    def test_report_by_category(self):
        """Test the category view."""
        stream = io.StringIO()
        result = DetectionResult(violations=[make_violation()])
        PatternReporter(stream, use_color=False).report(result, by_category=True)
        assert "Cors Config (1):" in stream.getvalue()

    def test_report_with_catalog(self):
        """Test the catalog view."""
        stream = io.StringIO()
        result = DetectionResult(violations=[make_violation()])
        PatternReporter(stream, use_color=False).report(result, with_catalog=True)
        assert "Error Details" in stream.getvalue()

    def test_report_quick(self):
        """Test the quick summary is printed on its own line."""
        stream = io.StringIO()
        PatternReporter(stream, use_color=False).report_quick(DetectionResult())
        assert stream.getvalue() == "✅ No pattern issues detected\n"

    def test_report_fixes(self):
        """Test fix results are written."""
        stream = io.StringIO()
        PatternReporter(stream, use_color=False).report_fixes(FixResult())
        assert "No fixes available" in stream.getvalue()
