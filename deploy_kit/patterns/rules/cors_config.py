"""CORS configuration pattern rule.

- SST-VAL-021: ``allowedOrigins`` instead of ``allowOrigins``
- SST-VAL-022: ``allowedMethods`` instead of ``allowMethods``
- SST-VAL-023: ``allowedHeaders`` instead of ``allowHeaders``
- SST-VAL-024: ``cors`` given as an array instead of an object
"""

from ..base import (
    FixConfidence,
    PatternCategory,
    PatternDetectionContext,
    PatternRule,
    PatternViolation,
)
from ..matching import ResourceKind, find_property, iter_resources, unwrap
from ..syntax.nodes import (
    ArrayLiteral,
    ObjectLiteral,
    PropertyAssignment,
    StringLiteral,
    property_key_name,
)

# wrong name -> (correct name, code)
WRONG_PROPERTY_NAMES = {
    "allowedOrigins": ("allowOrigins", "SST-VAL-021"),
    "allowedMethods": ("allowMethods", "SST-VAL-022"),
    "allowedHeaders": ("allowHeaders", "SST-VAL-023"),
}


class CorsConfigRule(PatternRule):
    """Detect CORS property name typos and format errors."""

    @property
    def rule_id(self) -> str:
        return "cors-config"

    @property
    def name(self) -> str:
        return "CORS Configuration Pattern Detection"

    @property
    def category(self) -> PatternCategory:
        return PatternCategory.CORS_CONFIG

    @property
    def codes(self) -> tuple[str, ...]:
        return ("SST-VAL-021", "SST-VAL-022", "SST-VAL-023", "SST-VAL-024")

    def detect(self, context: PatternDetectionContext) -> list[PatternViolation]:
        violations = []
        for resource in iter_resources(context.tree):
            violations.extend(self._check_resource(context, resource))
        return violations

    def _check_resource(
        self, context: PatternDetectionContext, resource: ResourceKind
    ) -> list[PatternViolation]:
        cors_prop = find_property(resource.config, "cors")
        if cors_prop is None:
            return []

        label = f'{resource.type_name}("{resource.name}")'
        cors = unwrap(cors_prop.value)

        if isinstance(cors, ArrayLiteral):
            return [self._check_array(context, cors_prop, cors, label)]
        if not isinstance(cors, ObjectLiteral):
            return []

        violations = []
        for prop in cors.properties:
            if not isinstance(prop, PropertyAssignment):
                continue
            key_name = property_key_name(prop.key)
            if key_name not in WRONG_PROPERTY_NAMES:
                continue
            correct, code = WRONG_PROPERTY_NAMES[key_name]

            new_key = correct
            if isinstance(prop.key, StringLiteral):
                new_key = f"{prop.key.quote}{correct}{prop.key.quote}"
            fix = self._replace_node(
                context,
                prop.key,
                new_key,
                FixConfidence.HIGH,
                f"Rename {key_name} to {correct}",
            )
            violations.append(
                self._create_violation(
                    context,
                    code=code,
                    node=prop,
                    resource=label,
                    property=f"cors.{key_name}",
                    message=f'Wrong CORS property name: "{key_name}" should be "{correct}"',
                    fix=fix,
                )
            )
        return violations

    def _check_array(
        self,
        context: PatternDetectionContext,
        cors_prop: PropertyAssignment,
        cors: ArrayLiteral,
        label: str,
    ) -> PatternViolation:
        fix = None
        # Only a single object element converts without losing rules
        if len(cors.elements) == 1 and isinstance(unwrap(cors.elements[0]), ObjectLiteral):
            fix = self._replace_node(
                context,
                cors,
                context.source.text_of(cors.elements[0]),
                FixConfidence.HIGH,
                "Convert CORS array to object",
            )
        return self._create_violation(
            context,
            code="SST-VAL-024",
            node=cors_prop,
            resource=label,
            property="cors",
            message="CORS should be an object, not an array",
            fix=fix,
        )
