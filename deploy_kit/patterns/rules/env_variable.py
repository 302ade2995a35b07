"""Environment variable pattern rule.

Detects Lambda environment variable names reserved by the runtime:
- SST-VAL-041: AWS credential and region variables
- SST-VAL-042: names starting with ``_``
- SST-VAL-043: names starting with ``LAMBDA_``
"""

from ..base import (
    CodeFix,
    FixConfidence,
    PatternCategory,
    PatternDetectionContext,
    PatternRule,
    PatternViolation,
)
from ..matching import ResourceKind, find_property, iter_resources, unwrap
from ..syntax.nodes import (
    ObjectLiteral,
    PropertyAssignment,
    StringLiteral,
    property_key_name,
)

RESERVED_ENV_VARS = frozenset(
    {
        "AWS_ACCESS_KEY_ID",
        "AWS_SECRET_ACCESS_KEY",
        "AWS_SESSION_TOKEN",
        "AWS_REGION",
        "AWS_DEFAULT_REGION",
    }
)

LAMBDA_PREFIX = "LAMBDA_"
REPLACEMENT_PREFIX = "APP_"


class EnvVariableRule(PatternRule):
    """Detect reserved Lambda environment variables."""

    @property
    def rule_id(self) -> str:
        return "env-variable"

    @property
    def name(self) -> str:
        return "Environment Variable Pattern Detection"

    @property
    def category(self) -> PatternCategory:
        return PatternCategory.ENVIRONMENT_VARIABLE

    @property
    def codes(self) -> tuple[str, ...]:
        return ("SST-VAL-041", "SST-VAL-042", "SST-VAL-043")

    @property
    def description(self) -> str:
        return "Detects reserved Lambda environment variables"

    def detect(self, context: PatternDetectionContext) -> list[PatternViolation]:
        violations = []
        for resource in iter_resources(context.tree, "Function"):
            violations.extend(self._check_function(context, resource))
        return violations

    def _check_function(
        self, context: PatternDetectionContext, resource: ResourceKind
    ) -> list[PatternViolation]:
        env_prop = find_property(resource.config, "environment")
        if env_prop is None:
            return []
        environment = unwrap(env_prop.value)
        if not isinstance(environment, ObjectLiteral):
            return []

        label = f'Function("{resource.name}")'
        violations = []
        for prop in environment.properties:
            if not isinstance(prop, PropertyAssignment):
                continue
            var_name = property_key_name(prop.key)
            if not var_name:
                continue

            if var_name in RESERVED_ENV_VARS:
                code = "SST-VAL-041"
                message = (
                    f"{var_name} is a reserved Lambda environment variable "
                    "and cannot be set manually"
                )
                fix = None
            elif var_name.startswith("_"):
                code = "SST-VAL-042"
                message = "Variables starting with _ are reserved by Lambda runtime"
                fix = self._rename_fix(
                    context,
                    prop,
                    var_name.lstrip("_").upper(),
                    f"Remove leading underscore: {var_name} → {var_name.lstrip('_').upper()}",
                )
            elif var_name.startswith(LAMBDA_PREFIX):
                code = "SST-VAL-043"
                message = "Variables starting with LAMBDA_ are reserved by Lambda runtime"
                replacement = REPLACEMENT_PREFIX + var_name[len(LAMBDA_PREFIX) :]
                fix = self._rename_fix(
                    context,
                    prop,
                    replacement,
                    f"Replace LAMBDA_ prefix: {var_name} → {replacement}",
                )
            else:
                continue

            violations.append(
                self._create_violation(
                    context,
                    code=code,
                    node=prop,
                    resource=label,
                    property=f"environment.{var_name}",
                    message=message,
                    fix=fix,
                )
            )
        return violations

    def _rename_fix(
        self,
        context: PatternDetectionContext,
        prop: PropertyAssignment,
        new_name: str,
        description: str,
    ) -> CodeFix | None:
        """Rename an environment key, keeping its quoting."""
        if not new_name:
            return None
        if isinstance(prop.key, StringLiteral):
            new_key = f"{prop.key.quote}{new_name}{prop.key.quote}"
        elif new_name.isidentifier():
            new_key = new_name
        else:
            new_key = f'"{new_name}"'
        return self._replace_node(context, prop.key, new_key, FixConfidence.MEDIUM, description)
