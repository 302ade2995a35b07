"""
Integration tests for the detect -> fix -> re-detect pipeline.

Runs every built-in rule over the fixture configs and over a config that
triggers most rules at once, then checks that fixes are sound: offsets
match the source, fixed output parses, and re-detection converges.
"""

import hashlib
import json
from pathlib import Path

import pytest

from deploy_kit.patterns import detect_and_fix, detect_and_format
from deploy_kit.patterns.base import FixConfidence, Severity
from deploy_kit.patterns.engine import PatternDetector, create_pattern_detector
from deploy_kit.patterns.fix import AutoFixer, FixOptions
from deploy_kit.patterns.rules import ALL_RULES
from deploy_kit.patterns.syntax.source import SourceUnit, parse

FIXTURES = Path(__file__).parent.parent / "fixtures" / "sst-configs"

BROKEN_APP = """/// <reference path="./.sst/platform/config.d.ts" />

export default $config({
  app(input) {
    return {
      name: "shop",
      removal: input?.stage === "production" ? "retain" : "remove",
      home: "aws",
    };
  },
  async run() {
    const stage = input?.stage || "dev";

    const table = new sst.aws.Dynamo("Orders", {
      fields: { id: "string", extra: "string" },
      primaryIndex: { hashKey: "id" },
    });

    const bucket = new sst.aws.Bucket("Uploads", {
      cors: { allowedOrigins: ["*"] },
    });

    const api = new sst.aws.Function("Api", {
      handler: "src/api.handler",
      link: [table, bucket],
      environment: {
        AWS_REGION: "us-east-1",
        TABLE_ARN: $interpolate`${table.arn}`,
      },
    });

    const web = new sst.aws.Nextjs("Web", {
      domain: $app.stage !== "dev" ? { name: "shop.example.com" } : undefined,
      environment: {
        API_URL: "https://" + api.url,
      },
    });

    return { url: web.url };
  },
});
"""


def write_config(directory: Path, content: str) -> Path:
    path = directory / "sst.config.ts"
    path.write_text(content, encoding="utf-8")
    return path


def file_hash(path: Path) -> str:
    return hashlib.sha256(path.read_bytes()).hexdigest()


def fix_until_stable(text: str, min_confidence: FixConfidence = FixConfidence.LOW) -> str:
    """Apply fixes and re-detect until no further fix applies."""
    detector = create_pattern_detector()
    fixer = AutoFixer()
    options = FixOptions(min_confidence=min_confidence)
    for _ in range(5):
        source = SourceUnit.from_text(text)
        result = fixer.fix(source, detector.detect_source(source).violations, options)
        assert not result.has_error
        if result.fixed_code is None:
            return text
        text = result.fixed_code
    pytest.fail("fixes did not converge")


# =============================================================================
# Fixture Config Tests
# =============================================================================


class TestFixtureConfigs:
    """Detection over the fixture configs."""

    @pytest.mark.parametrize(
        "name",
        ["valid-complete.ts", "valid-app-input-stage.ts", "invalid-function-timeout.ts"],
    )
    def test_clean_fixtures(self, name):
        """Test fixtures without supported misconfigurations are clean."""
        result = create_pattern_detector().detect(FIXTURES / name)
        assert result.violations == []
        assert result.rules_executed == len(ALL_RULES)

    def test_cors_properties(self):
        """Test each wrong CORS name gets its own code and fix."""
        result = create_pattern_detector().detect(FIXTURES / "invalid-cors-properties.ts")
        assert sorted(v.code for v in result.violations) == [
            "SST-VAL-021",
            "SST-VAL-022",
            "SST-VAL-023",
        ]
        assert result.auto_fixable_count == 3
        assert all(v.resource == 'Bucket("MawaveBucket")' for v in result.violations)

    def test_cors_array(self):
        """Test an array CORS value is converted to its single object."""
        path = FIXTURES / "invalid-cors-array.ts"
        result = create_pattern_detector().detect(path)
        assert [v.code for v in result.violations] == ["SST-VAL-024"]
        fix = result.violations[0].fix
        assert fix.old_code.startswith("[")
        assert fix.new_code.startswith("{")
        assert fix.new_code.rstrip().endswith("}")

    def test_cors_array_converges(self):
        """Test fixing the array exposes and then fixes the property names."""
        text = (FIXTURES / "invalid-cors-array.ts").read_text(encoding="utf-8")
        fixed = fix_until_stable(text)
        assert "allowOrigins" in fixed
        assert "allowedOrigins" not in fixed
        assert create_pattern_detector().detect_source(SourceUnit.from_text(fixed)).violations == []

    def test_dynamo_ttl_object_counts_as_indexed(self):
        """Test ttl.attribute is treated as used."""
        result = create_pattern_detector().detect(FIXTURES / "invalid-dynamo-ttl.ts")
        assert "SST-VAL-061" not in [v.code for v in result.violations]

    def test_dynamo_unused_fields(self):
        """Test unused multi-line fields are removed at the file's indentation."""
        path = FIXTURES / "invalid-dynamo-unused-fields.ts"
        result = create_pattern_detector().detect(path)
        assert [v.code for v in result.violations] == ["SST-VAL-061"]
        violation = result.violations[0]
        assert '["createdAt", "lastReadAt"]' in violation.message
        assert violation.fix.new_code == 'fields: {\n        id: "string"\n      }'

        source = parse(path)
        fixed = AutoFixer().fix(source, result.violations).fixed_code
        assert '      fields: {\n        id: "string"\n      },\n      primaryIndex' in fixed
        assert 'createdAt: "number"' not in fixed
        assert 'lastReadAt: "number"' not in fixed
        assert create_pattern_detector().detect_source(SourceUnit.from_text(fixed)).violations == []


# =============================================================================
# Scenario Tests
# =============================================================================


class TestScenarios:
    """End-to-end behaviour of the detector and fixer."""

    def test_input_stage_in_run(self):
        """Test input?.stage in a parameterless run() is one stage violation."""
        source = SourceUnit.from_text(
            "export default $config({\n"
            "  async run() {\n"
            '    const stage = input?.stage || "dev";\n'
            "  },\n"
            "});\n"
        )
        result = create_pattern_detector().detect_source(source)
        assert [v.code for v in result.violations] == ["SST-VAL-001"]

    def test_unused_dynamo_field(self):
        """Test the single-line fields fix keeps indexed fields only."""
        source = SourceUnit.from_text(
            'const t = new sst.aws.Dynamo("T", {\n'
            '  fields: { id: "string", extra: "string" },\n'
            '  primaryIndex: { hashKey: "id" },\n'
            "});\n"
        )
        result = create_pattern_detector().detect_source(source)
        assert [v.code for v in result.violations] == ["SST-VAL-061"]
        assert '"extra"' in result.violations[0].message
        fixed = AutoFixer().fix(source, result.violations).fixed_code
        assert 'fields: { id: "string" },' in fixed

    def test_circular_links(self):
        """Test resources linking each other give one violation per direction."""
        source = SourceUnit.from_text(
            "export default $config({\n"
            "  async run() {\n"
            '    const a = new sst.aws.Function("A", { handler: "a", link: [b] });\n'
            '    const b = new sst.aws.Function("B", { handler: "b", link: [a] });\n'
            "  },\n"
            "});\n"
        )
        result = create_pattern_detector().detect_source(source)
        assert [v.code for v in result.violations].count("SST-VAL-051") == 2

    def test_cors_fix_then_redetect(self, tmp_path):
        """Test the CORS fix is written and re-detection is clean."""
        path = write_config(
            tmp_path,
            'const b = new sst.aws.Bucket("B", {\n  cors: { allowedOrigins: ["*"] },\n});\n',
        )
        detector = create_pattern_detector()
        result = detector.detect(path)
        assert [v.code for v in result.violations] == ["SST-VAL-021"]
        assert result.violations[0].fix.confidence == FixConfidence.HIGH

        fix_result = AutoFixer().fix_file(path, result.violations, FixOptions(apply=True))
        assert fix_result.applied
        assert 'allowOrigins: ["*"]' in path.read_text(encoding="utf-8")
        assert detector.detect(path).violations == []

    def test_detect_is_idempotent(self, tmp_path):
        """Test detecting an unchanged file twice gives the same payload."""
        path = write_config(tmp_path, BROKEN_APP)
        detector = create_pattern_detector()
        first = detector.detect(path).to_dict()
        second = detector.detect(path).to_dict()
        first.pop("duration_ms")
        second.pop("duration_ms")
        assert first["violations"]
        assert first == second
        assert create_pattern_detector().detect(path).violations == detector.detect(path).violations

    def test_dry_run_leaves_file_untouched(self, tmp_path):
        """Test apply=False never changes the file on disk."""
        path = write_config(tmp_path, BROKEN_APP)
        before = file_hash(path)
        result = create_pattern_detector().detect(path)

        fixer = AutoFixer()
        dry = fixer.fix_file(path, result.violations, FixOptions(min_confidence=FixConfidence.LOW))
        preview = fixer.preview(parse(path), result.violations)

        assert dry.fixed_code is not None
        assert not dry.applied
        assert not preview.applied
        assert file_hash(path) == before


# =============================================================================
# Combined Config Tests
# =============================================================================


class TestCombinedConfig:
    """Every rule over one misconfigured app."""

    @pytest.fixture
    def source(self):
        return SourceUnit.from_text(BROKEN_APP)

    def test_detects_each_category(self, source):
        """Test the expected codes are reported."""
        result = create_pattern_detector().detect_source(source)
        assert set(v.code for v in result.violations) == {
            "SST-VAL-001",
            "SST-VAL-011",
            "SST-VAL-012",
            "SST-VAL-021",
            "SST-VAL-031",
            "SST-VAL-032",
            "SST-VAL-041",
            "SST-VAL-061",
        }
        assert result.rule_errors == []
        warnings = [v.code for v in result.violations if v.severity == Severity.WARNING]
        assert warnings == ["SST-VAL-031"]

    def test_fix_offsets_match_source(self, source):
        """Test every fix describes text actually present at its offsets."""
        result = create_pattern_detector().detect_source(source)
        line_count = source.text.count("\n") + 1
        for violation in result.violations:
            assert 1 <= violation.line <= line_count
            if violation.fix is not None:
                fix = violation.fix
                assert source.text[fix.start : fix.end] == fix.old_code

    def test_rules_do_not_interfere(self, source):
        """Test each rule alone reports what it reports alongside the others."""
        combined = create_pattern_detector().detect_source(source).violations
        for rule in ALL_RULES:
            alone = PatternDetector(rules=[rule]).detect_source(source).violations
            assert alone == [v for v in combined if v.code in rule.codes]

    def test_fixed_output_parses(self, source):
        """Test applying every fix keeps the file syntactically valid."""
        fixed = fix_until_stable(source.text)
        assert SourceUnit.from_text(fixed).tree.errors == []

    def test_fixes_converge(self, source):
        """Test re-detection after fixing leaves only unfixable violations."""
        fixed = fix_until_stable(source.text)
        result = create_pattern_detector().detect_source(SourceUnit.from_text(fixed))
        assert [v.code for v in result.violations] == ["SST-VAL-041"]
        assert all(v.fix is None for v in result.violations)
        assert fix_until_stable(fixed) == fixed

    def test_high_confidence_only(self, source):
        """Test the default fix run leaves medium fixes for review."""
        result = create_pattern_detector().detect_source(source)
        fix_result = AutoFixer().fix(source, result.violations)
        skipped = {item.code for item in fix_result.skipped_fixes}
        assert {"SST-VAL-011", "SST-VAL-012"} <= skipped
        assert "$app.stage !==" in fix_result.fixed_code


# =============================================================================
# detect_and_format Tests
# =============================================================================


class TestDetectAndFormat:
    """Tests for the one-call detect and render helper."""

    def test_clean_project(self, tmp_path):
        """Test a clean config renders the quick summary."""
        path = write_config(tmp_path, (FIXTURES / "valid-complete.ts").read_text(encoding="utf-8"))
        result, formatted, has_errors = detect_and_format(path)
        assert result.violations == []
        assert formatted == "✅ No pattern issues detected"
        assert has_errors is False

    def test_project_with_errors(self, tmp_path):
        """Test violations are rendered with the summary."""
        path = write_config(
            tmp_path, (FIXTURES / "invalid-cors-properties.ts").read_text(encoding="utf-8")
        )
        result, formatted, has_errors = detect_and_format(path)
        assert has_errors is True
        assert "❌ SST Pattern Errors (3):" in formatted
        assert "SST Pattern Detection Summary" in formatted

    def test_project_config_is_loaded(self, tmp_path):
        """Test .deploy-kit/patterns.json in the project root applies."""
        path = write_config(
            tmp_path, (FIXTURES / "invalid-cors-properties.ts").read_text(encoding="utf-8")
        )
        config_dir = tmp_path / ".deploy-kit"
        config_dir.mkdir()
        (config_dir / "patterns.json").write_text(
            json.dumps({"rules": {"cors-config": {"severity": "warning"}}}), encoding="utf-8"
        )
        result, formatted, has_errors = detect_and_format(path)
        assert has_errors is False
        assert result.warning_count == 3
        assert "⚠️  SST Pattern Warnings (3):" in formatted

    def test_missing_file(self, tmp_path):
        """Test a missing config is reported as SST-VAL-000."""
        result, formatted, has_errors = detect_and_format(tmp_path / "sst.config.ts")
        assert has_errors is True
        assert [v.code for v in result.violations] == ["SST-VAL-000"]
        assert "sst.config.ts not found" in formatted


# =============================================================================
# detect_and_fix Tests
# =============================================================================


class TestDetectAndFix:
    """Tests for the one-call detect and fix helper."""

    def test_default_confidence_is_high(self, tmp_path):
        """Test medium fixes are left for review without a project config."""
        path = write_config(tmp_path, BROKEN_APP)
        before = file_hash(path)
        result, fixes = detect_and_fix(path)
        assert result.has_errors
        assert {"SST-VAL-011", "SST-VAL-012"} <= {s.code for s in fixes.skipped_fixes}
        assert not fixes.applied
        assert file_hash(path) == before

    def test_project_min_fix_confidence(self, tmp_path):
        """Test min_fix_confidence from patterns.json selects medium fixes."""
        path = write_config(tmp_path, BROKEN_APP)
        config_dir = tmp_path / ".deploy-kit"
        config_dir.mkdir()
        (config_dir / "patterns.json").write_text(
            json.dumps({"min_fix_confidence": "medium"}), encoding="utf-8"
        )
        _, fixes = detect_and_fix(path, apply=True)
        applied = {f.code for f in fixes.applied_fixes}
        assert {"SST-VAL-011", "SST-VAL-012"} <= applied
        assert fixes.applied
        text = path.read_text(encoding="utf-8")
        assert '$app.stage === "production"' in text
        assert "dns: sst.aws.dns(" in text
