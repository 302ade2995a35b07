"""
Unit tests for the CORS configuration rule.

Tests for SST-VAL-021/022/023 (wrong property names) and
SST-VAL-024 (array instead of object).
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
# CORS Config Rule Tests
# =============================================================================


class TestCorsConfigRule:
    """Tests for the cors-config rule."""

    @pytest.fixture
    def rule(self):
        from deploy_kit.patterns.rules.cors_config import CorsConfigRule

        return CorsConfigRule()

    def test_rule_metadata(self, rule):
        """Test rule has correct metadata."""
        assert rule.rule_id == "cors-config"
        assert rule.name == "CORS Configuration Pattern Detection"
        assert rule.category == PatternCategory.CORS_CONFIG
        assert rule.codes == ("SST-VAL-021", "SST-VAL-022", "SST-VAL-023", "SST-VAL-024")

    def test_valid_cors(self, rule):
        """Test correct CORS property names are not flagged."""
        content = """const bucket = new sst.aws.Bucket("Uploads", {
  cors: { allowOrigins: ["*"], allowMethods: ["GET"], allowHeaders: ["*"] },
});"""
        assert rule.detect(create_context(content)) == []

    @pytest.mark.parametrize(
        "wrong,correct,code",
        [
            ("allowedOrigins", "allowOrigins", "SST-VAL-021"),
            ("allowedMethods", "allowMethods", "SST-VAL-022"),
            ("allowedHeaders", "allowHeaders", "SST-VAL-023"),
        ],
    )
    def test_wrong_property_names(self, rule, wrong, correct, code):
        """Test each misspelled property is flagged with a rename fix."""
        content = f'const b = new sst.aws.Bucket("Uploads", {{ cors: {{ {wrong}: ["*"] }} }});'
        violations = rule.detect(create_context(content))
        assert [v.code for v in violations] == [code]
        violation = violations[0]
        assert violation.severity == Severity.ERROR
        assert violation.resource == 'Bucket("Uploads")'
        assert violation.property == f"cors.{wrong}"
        assert violation.message == f'Wrong CORS property name: "{wrong}" should be "{correct}"'
        assert violation.fix.old_code == wrong
        assert violation.fix.new_code == correct
        assert violation.fix.confidence == FixConfidence.HIGH
        assert violation.fix.description == f"Rename {wrong} to {correct}"

    def test_quoted_key_keeps_quotes(self, rule):
        """Test string keys are renamed with their quotes."""
        content = "const b = new sst.aws.Bucket(\"B\", { cors: { 'allowedOrigins': [] } });"
        fix = rule.detect(create_context(content))[0].fix
        assert fix.old_code == "'allowedOrigins'"
        assert fix.new_code == "'allowOrigins'"

    def test_multiple_wrong_names(self, rule):
        """Test every wrong name in one object is reported."""
        content = """const api = new sst.aws.ApiGatewayV2("Api", {
  cors: {
    allowedOrigins: ["*"],
    allowedMethods: ["GET"],
    allowedHeaders: ["*"],
  },
});"""
        violations = rule.detect(create_context(content))
        assert [v.code for v in violations] == ["SST-VAL-021", "SST-VAL-022", "SST-VAL-023"]
        assert [v.line for v in violations] == [3, 4, 5]
        assert violations[0].resource == 'ApiGatewayV2("Api")'

    def test_cors_array_with_single_object(self, rule):
        """Test an array holding one object converts to that object."""
        content = 'const b = new sst.aws.Bucket("B", { cors: [{ allowOrigins: ["*"] }] });'
        violations = rule.detect(create_context(content))
        assert [v.code for v in violations] == ["SST-VAL-024"]
        violation = violations[0]
        assert violation.property == "cors"
        assert violation.message == "CORS should be an object, not an array"
        assert violation.fix.old_code == '[{ allowOrigins: ["*"] }]'
        assert violation.fix.new_code == '{ allowOrigins: ["*"] }'
        assert violation.is_auto_fixable

    def test_cors_array_with_several_objects_has_no_fix(self, rule):
        """Test arrays with several rules are flagged without a fix."""
        content = 'const b = new sst.aws.Bucket("B", { cors: [{ a: 1 }, { b: 2 }] });'
        violations = rule.detect(create_context(content))
        assert [v.code for v in violations] == ["SST-VAL-024"]
        assert violations[0].fix is None

    def test_cors_boolean_is_ignored(self, rule):
        """Test cors: true is accepted."""
        content = 'const f = new sst.aws.Function("F", { url: { cors: true }, cors: true });'
        assert rule.detect(create_context(content)) == []

    def test_non_resource_objects_are_ignored(self, rule):
        """Test cors settings outside resource constructors are not checked."""
        content = 'const settings = { cors: { allowedOrigins: ["*"] } };'
        assert rule.detect(create_context(content)) == []
