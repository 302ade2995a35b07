"""
Unit tests for the Pulumi output rule.

Tests for SST-VAL-031 (unnecessary $interpolate) and SST-VAL-032
(Output values in string concatenation).
"""

import pytest

from deploy_kit.patterns.base import (
    FixConfidence,
    PatternCategory,
    PatternDetectionContext,
    Severity,
)


def create_context(content: str) -> PatternDetectionContext:
    """Create a PatternDetectionContext for testing."""
    return PatternDetectionContext.from_text(content)


# =============================================================================
# Pulumi Output Rule Tests
# =============================================================================


class TestPulumiOutputRule:
    """Tests for the pulumi-output rule."""

    @pytest.fixture
    def rule(self):
        from deploy_kit.patterns.rules.pulumi_output import PulumiOutputRule

        return PulumiOutputRule()

    def test_rule_metadata(self, rule):
        """Test rule has correct metadata."""
        assert rule.rule_id == "pulumi-output"
        assert rule.name == "Pulumi Output Pattern Detection"
        assert rule.category == PatternCategory.PULUMI_OUTPUT
        assert rule.codes == ("SST-VAL-031", "SST-VAL-032")


class TestUnnecessaryInterpolate:
    """Tests for SST-VAL-031."""

    @pytest.fixture
    def rule(self):
        from deploy_kit.patterns.rules.pulumi_output import PulumiOutputRule

        return PulumiOutputRule()

    def test_single_value_interpolate(self, rule):
        """Test $interpolate around one value is a warning with a fix."""
        content = "const arn = $interpolate`${table.arn}`;"
        violations = rule.detect(create_context(content))
        assert [v.code for v in violations] == ["SST-VAL-031"]
        violation = violations[0]
        assert violation.severity == Severity.WARNING
        assert violation.property == "$interpolate"
        assert violation.message == (
            "Unnecessary $interpolate wrapper - Pulumi Output can be used directly"
        )
        assert violation.fix.old_code == "$interpolate`${table.arn}`"
        assert violation.fix.new_code == "table.arn"
        assert violation.fix.confidence == FixConfidence.HIGH

    def test_interpolate_with_text_is_valid(self, rule):
        """Test $interpolate combining text and values is not flagged."""
        for content in (
            "const u = $interpolate`https://${api.url}`;",
            "const u = $interpolate`${api.url}/path`;",
            "const u = $interpolate`${a.url}${b.url}`;",
        ):
            assert rule.detect(create_context(content)) == []

    def test_other_tags_are_ignored(self, rule):
        """Test other template tags are not flagged."""
        assert rule.detect(create_context("const q = sql`${table.name}`;")) == []


class TestStringConcatenation:
    """Tests for SST-VAL-032."""

    @pytest.fixture
    def rule(self):
        from deploy_kit.patterns.rules.pulumi_output import PulumiOutputRule

        return PulumiOutputRule()

    def test_concatenation_with_output(self, rule):
        """Test "text" + resource.url is an error with an interpolate fix."""
        content = 'const u = "https://" + api.url + "/v1";'
        violations = rule.detect(create_context(content))
        assert [v.code for v in violations] == ["SST-VAL-032"]
        violation = violations[0]
        assert violation.severity == Severity.ERROR
        assert violation.property == "string-concatenation"
        assert violation.message == (
            "Pulumi Output cannot be used in string concatenation - use $interpolate or .apply()"
        )
        assert violation.fix.old_code == '"https://" + api.url + "/v1"'
        assert violation.fix.new_code == "$interpolate`https://${api.url}/v1`"
        assert violation.fix.confidence == FixConfidence.MEDIUM

    def test_only_outermost_chain_is_reported(self, rule):
        """Test a long chain produces one violation."""
        content = 'const u = "a" + x.arn + "b" + y.id + "c";'
        violations = rule.detect(create_context(content))
        assert len(violations) == 1
        assert violations[0].fix.new_code == "$interpolate`a${x.arn}b${y.id}c`"

    def test_literal_text_is_escaped(self, rule):
        """Test backticks, backslashes and ${ in literals are escaped."""
        content = r'const u = "a`b\\c${" + bucket.name;'
        violation = rule.detect(create_context(content))[0]
        assert violation.fix.new_code == r"$interpolate`a\`b\\c\${${bucket.name}`"

    def test_template_operands_are_spliced(self, rule):
        """Test template operands keep their substitutions."""
        content = "const u = `https://${host}` + api.url;"
        violation = rule.detect(create_context(content))[0]
        assert violation.fix.new_code == "$interpolate`https://${host}${api.url}`"

    def test_concatenation_without_outputs_is_valid(self, rule):
        """Test plain string concatenation is not flagged."""
        for content in ('const a = "x" + "y";', "const b = prefix + suffix;", "const c = 1 + 2;"):
            assert rule.detect(create_context(content)) == []

    def test_inside_apply_is_valid(self, rule):
        """Test concatenation inside an .apply() callback is not flagged."""
        content = 'const u = api.url.apply((url) => "https://" + api.url);'
        assert rule.detect(create_context(content)) == []

    def test_inside_interpolate_is_valid(self, rule):
        """Test concatenation inside $interpolate substitutions is not flagged."""
        content = 'const u = $interpolate`${"prefix-" + table.name}`;'
        violations = rule.detect(create_context(content))
        assert "SST-VAL-032" not in [v.code for v in violations]

    def test_inside_pulumi_interpolate_is_valid(self, rule):
        """Test pulumi.interpolate is treated like $interpolate."""
        content = 'const u = pulumi.interpolate`x${"a" + table.arn}`;'
        assert rule.detect(create_context(content)) == []

    def test_parenthesized_output(self, rule):
        """Test outputs wrapped in parentheses are still recognised."""
        content = 'const u = "arn:" + (queue.arn);'
        violations = rule.detect(create_context(content))
        assert [v.code for v in violations] == ["SST-VAL-032"]
        assert violations[0].fix.new_code == "$interpolate`arn:${(queue.arn)}`"
