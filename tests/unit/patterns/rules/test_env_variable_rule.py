"""
Unit tests for the environment variable rule.

Tests for SST-VAL-041 (reserved AWS variables), SST-VAL-042
(leading underscore) and SST-VAL-043 (LAMBDA_ prefix).
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


def function_with_env(env: str, resource: str = "Function") -> str:
    return (
        f'const api = new sst.aws.{resource}("Api", {{\n'
        f'  handler: "src/api.handler",\n'
        f"  environment: {env},\n"
        f"}});"
    )


# =============================================================================
# Env Variable Rule Tests
# =============================================================================


class TestEnvVariableRule:
    """Tests for the env-variable rule."""

    @pytest.fixture
    def rule(self):
        from deploy_kit.patterns.rules.env_variable import EnvVariableRule

        return EnvVariableRule()

    def test_rule_metadata(self, rule):
        """Test rule has correct metadata."""
        assert rule.rule_id == "env-variable"
        assert rule.name == "Environment Variable Pattern Detection"
        assert rule.category == PatternCategory.ENVIRONMENT_VARIABLE
        assert rule.codes == ("SST-VAL-041", "SST-VAL-042", "SST-VAL-043")

    def test_valid_environment(self, rule):
        """Test ordinary variable names are not flagged."""
        content = function_with_env('{ TABLE_NAME: table.name, STAGE: $app.stage }')
        assert rule.detect(create_context(content)) == []

    @pytest.mark.parametrize(
        "name",
        [
            "AWS_ACCESS_KEY_ID",
            "AWS_SECRET_ACCESS_KEY",
            "AWS_SESSION_TOKEN",
            "AWS_REGION",
            "AWS_DEFAULT_REGION",
        ],
    )
    def test_reserved_aws_variables(self, rule, name):
        """Test reserved AWS variables are flagged without a fix."""
        content = function_with_env(f'{{ {name}: "x" }}')
        violations = rule.detect(create_context(content))
        assert [v.code for v in violations] == ["SST-VAL-041"]
        violation = violations[0]
        assert violation.severity == Severity.ERROR
        assert violation.resource == 'Function("Api")'
        assert violation.property == f"environment.{name}"
        assert violation.message == (
            f"{name} is a reserved Lambda environment variable and cannot be set manually"
        )
        assert violation.fix is None
        assert violation.line == 3

    def test_leading_underscore(self, rule):
        """Test _name is flagged with a medium rename fix."""
        content = function_with_env('{ _handler: "x" }')
        violations = rule.detect(create_context(content))
        assert [v.code for v in violations] == ["SST-VAL-042"]
        fix = violations[0].fix
        assert fix.old_code == "_handler"
        assert fix.new_code == "HANDLER"
        assert fix.confidence == FixConfidence.MEDIUM
        assert fix.description == "Remove leading underscore: _handler → HANDLER"

    def test_only_underscores_has_no_fix(self, rule):
        """Test a name made only of underscores gets no fix."""
        content = function_with_env('{ "__": "x" }')
        violations = rule.detect(create_context(content))
        assert [v.code for v in violations] == ["SST-VAL-042"]
        assert violations[0].fix is None

    def test_lambda_prefix(self, rule):
        """Test LAMBDA_ names are flagged with an APP_ rename fix."""
        content = function_with_env('{ LAMBDA_TIMEOUT: "30" }')
        violations = rule.detect(create_context(content))
        assert [v.code for v in violations] == ["SST-VAL-043"]
        fix = violations[0].fix
        assert fix.new_code == "APP_TIMEOUT"
        assert fix.description == "Replace LAMBDA_ prefix: LAMBDA_TIMEOUT → APP_TIMEOUT"

    def test_quoted_key_keeps_quotes(self, rule):
        """Test string keys keep their quote style."""
        content = function_with_env("{ 'LAMBDA_MODE': 'x' }")
        fix = rule.detect(create_context(content))[0].fix
        assert fix.old_code == "'LAMBDA_MODE'"
        assert fix.new_code == "'APP_MODE'"

    def test_multiple_variables(self, rule):
        """Test all reserved names in one environment are reported in order."""
        content = function_with_env(
            '{\n    AWS_REGION: "us-east-1",\n    OK: "1",\n    _SECRET: "s",\n    LAMBDA_X: "x",\n  }'
        )
        violations = rule.detect(create_context(content))
        assert [v.code for v in violations] == ["SST-VAL-041", "SST-VAL-042", "SST-VAL-043"]

    def test_other_resources_are_ignored(self, rule):
        """Test only Function resources are checked."""
        content = function_with_env('{ AWS_REGION: "x" }', resource="Nextjs")
        assert rule.detect(create_context(content)) == []

    def test_non_object_environment_is_ignored(self, rule):
        """Test an environment built elsewhere is not checked."""
        content = function_with_env("sharedEnv")
        assert rule.detect(create_context(content)) == []

    def test_spread_and_computed_keys_are_skipped(self, rule):
        """Test spreads and computed keys are ignored."""
        content = function_with_env("{ ...base, [key]: 'x', AWS_REGION: 'y' }")
        violations = rule.detect(create_context(content))
        assert [v.code for v in violations] == ["SST-VAL-041"]
