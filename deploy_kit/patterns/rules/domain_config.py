"""Domain configuration pattern rule.

Detects domain settings that fail deployment or pick the wrong stages:
- SST-VAL-011: ``stage !== "dev"`` guarding a custom domain
- SST-VAL-012: ``domain.name`` without an explicit ``dns`` provider
- SST-VAL-012a: ``dns`` provider without ``override: true``

Without ``override: true`` SST cannot take over a CloudFront
distribution that already serves the domain, and the deploy fails with
``CNAMEAlreadyExists``.
"""

from ..base import (
    CodeFix,
    FixConfidence,
    PatternCategory,
    PatternDetectionContext,
    PatternRule,
    PatternViolation,
)
from ..matching import ResourceKind, find_property, iter_resources, static_string, unwrap
from ..syntax.nodes import (
    Binary,
    Call,
    Conditional,
    KeywordLiteral,
    Node,
    ObjectLiteral,
    PropertyAssignment,
)
from ..syntax.tokenizer import tokenize

DOMAIN_RESOURCES = ("Nextjs", "StaticSite", "Remix", "Astro", "Router", "ApiGatewayV2")

DEV_STAGES = frozenset({"dev", "development"})

DNS_PROVIDER_SNIPPET = 'dns: sst.aws.dns({ zone: "YOUR_ZONE_ID", override: true })'
OVERRIDE_SNIPPET = "override: true"


class DomainConfigRule(PatternRule):
    """Detect incorrect custom domain configuration."""

    @property
    def rule_id(self) -> str:
        return "domain-config"

    @property
    def name(self) -> str:
        return "Domain Configuration Pattern Detection"

    @property
    def category(self) -> PatternCategory:
        return PatternCategory.DOMAIN_CONFIG

    @property
    def codes(self) -> tuple[str, ...]:
        return ("SST-VAL-011", "SST-VAL-012", "SST-VAL-012a")

    @property
    def description(self) -> str:
        return "Detects incorrect domain configuration patterns"

    def detect(self, context: PatternDetectionContext) -> list[PatternViolation]:
        violations = []
        for resource in iter_resources(context.tree, *DOMAIN_RESOURCES):
            violations.extend(self._check_resource(context, resource))
        return violations

    def _check_resource(
        self, context: PatternDetectionContext, resource: ResourceKind
    ) -> list[PatternViolation]:
        domain_prop = find_property(resource.config, "domain")
        if domain_prop is None:
            return []

        label = f'{resource.type_name}("{resource.name}")'
        domain = unwrap(domain_prop.value)
        violations = []

        candidates = [domain]
        if isinstance(domain, Conditional):
            violation = self._check_stage_condition(context, domain, label)
            if violation is not None:
                violations.append(violation)
            candidates = [unwrap(domain.consequent), unwrap(domain.alternate)]

        for candidate in candidates:
            if isinstance(candidate, ObjectLiteral):
                violation = self._check_dns(context, candidate, label)
                if violation is not None:
                    violations.append(violation)
        return violations

    def _check_stage_condition(
        self, context: PatternDetectionContext, domain: Conditional, label: str
    ) -> PatternViolation | None:
        test = unwrap(domain.test)
        if not isinstance(test, Binary) or test.op not in ("!==", "!="):
            return None

        if static_string(test.right) in DEV_STAGES:
            subject = test.left
        elif static_string(test.left) in DEV_STAGES:
            subject = test.right
        else:
            return None

        fix = self._replace_node(
            context,
            test,
            f'{context.source.text_of(subject)} === "production"',
            FixConfidence.MEDIUM,
            'Use explicit stage === "production" check instead of negative comparison',
        )
        return self._create_violation(
            context,
            code="SST-VAL-011",
            node=test,
            resource=label,
            property="domain",
            message=(
                'Using stage !== "dev" breaks for other non-production stages '
                "(staging, preview, test)"
            ),
            fix=fix,
        )

    def _check_dns(
        self, context: PatternDetectionContext, domain: ObjectLiteral, label: str
    ) -> PatternViolation | None:
        name_prop = find_property(domain, "name")
        if name_prop is None:
            return None

        dns_prop = find_property(domain, "dns")
        if dns_prop is None:
            fix = self._insert_property(
                context,
                domain,
                DNS_PROVIDER_SNIPPET,
                FixConfidence.MEDIUM,
                "Add explicit DNS provider with override: true for existing distributions",
            )
            return self._create_violation(
                context,
                code="SST-VAL-012",
                node=name_prop,
                resource=label,
                property="domain.dns",
                message=(
                    "domain.name requires explicit dns configuration to prevent "
                    "CloudFront CNAME conflicts"
                ),
                fix=fix,
            )

        if self._has_override(context, dns_prop):
            return None
        return self._create_violation(
            context,
            code="SST-VAL-012a",
            node=dns_prop,
            resource=label,
            property="domain.dns",
            message=(
                "dns configuration missing override parameter "
                "(required for updating existing CloudFront distributions)"
            ),
            fix=self._override_fix(context, dns_prop),
        )

    def _has_override(self, context: PatternDetectionContext, dns_prop: PropertyAssignment) -> bool:
        value = unwrap(dns_prop.value)
        if not isinstance(value, Call):
            # dns: false or a variable; only provider calls are checked
            return True
        if not value.arguments:
            return False
        config = unwrap(value.arguments[0])
        if not isinstance(config, ObjectLiteral):
            return False
        override = find_property(config, "override")
        if override is None:
            return False
        flag = unwrap(override.value)
        if isinstance(flag, KeywordLiteral):
            return flag.value == "true"
        return "false" not in context.source.text_of(flag)

    def _override_fix(
        self, context: PatternDetectionContext, dns_prop: PropertyAssignment
    ) -> CodeFix | None:
        value = unwrap(dns_prop.value)
        if not isinstance(value, Call):
            return None
        description = "Add override: true to dns configuration to allow updating existing distributions"

        if not value.arguments:
            # sst.aws.dns() -> sst.aws.dns({ override: true })
            close = value.end - 1
            if context.text[close] != ")":
                return None
            return self._create_fix(
                context, close, close, "{ " + OVERRIDE_SNIPPET + " }", FixConfidence.HIGH, description
            )

        config = unwrap(value.arguments[0])
        if not isinstance(config, ObjectLiteral):
            return None
        override = find_property(config, "override")
        if override is not None:
            return self._replace_node(context, override.value, "true", FixConfidence.HIGH, description)
        return self._insert_property(context, config, OVERRIDE_SNIPPET, FixConfidence.HIGH, description)

    def _insert_property(
        self,
        context: PatternDetectionContext,
        obj: ObjectLiteral,
        snippet: str,
        confidence: FixConfidence,
        description: str,
    ) -> CodeFix:
        """Insert ``snippet`` as the last member of an object literal.

        The insertion is zero-width so it never overlaps fixes inside
        existing members. Trailing commas and line layout are kept, and
        commas inside comments are not mistaken for the separator.
        """
        if not obj.properties:
            return self._replace_node(context, obj, "{ " + snippet + " }", confidence, description)

        last: Node = obj.properties[-1]
        comma = next(
            (
                tok.start
                for tok in tokenize(context.text[last.end : obj.end - 1])
                if tok.is_punct(",")
            ),
            -1,
        )
        multiline = "\n" in context.source.text_of(obj)

        if comma >= 0:
            position = last.end + comma + 1
            if multiline:
                new_code = f"\n{context.source.line_indent(last.start)}{snippet},"
            else:
                new_code = f" {snippet}"
        else:
            position = last.end
            if multiline:
                new_code = f",\n{context.source.line_indent(last.start)}{snippet}"
            else:
                new_code = f", {snippet}"

        return self._create_fix(context, position, position, new_code, confidence, description)
