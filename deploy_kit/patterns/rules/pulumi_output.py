"""Pulumi output pattern rule.

Detects misuse of deferred (Pulumi Output) values:
- SST-VAL-031: ``$interpolate`${x}``` wrapping a single value
- SST-VAL-032: Output properties joined with ``+`` string concatenation
"""

from ..base import (
    FixConfidence,
    PatternCategory,
    PatternDetectionContext,
    PatternRule,
    PatternViolation,
    Severity,
)
from ..matching import member_path, unwrap
from ..syntax.nodes import (
    Binary,
    Call,
    Identifier,
    Node,
    PropertyAccess,
    StringLiteral,
    TaggedTemplate,
    TemplateLiteral,
)

INTERPOLATE_TAG = "$interpolate"

# Property names that usually hold a resource Output
OUTPUT_PROPERTIES = frozenset({"arn", "name", "id", "url", "domain", "endpoint"})


def _is_interpolate_tag(tag: Node) -> bool:
    tag = unwrap(tag)
    if isinstance(tag, Identifier):
        return tag.name == INTERPOLATE_TAG
    return member_path(tag) == ["pulumi", "interpolate"]


def _escape_template_text(value: str) -> str:
    return value.replace("\\", "\\\\").replace("`", "\\`").replace("${", "\\${")


class PulumiOutputRule(PatternRule):
    """Detect incorrect Pulumi Output usage patterns."""

    @property
    def rule_id(self) -> str:
        return "pulumi-output"

    @property
    def name(self) -> str:
        return "Pulumi Output Pattern Detection"

    @property
    def category(self) -> PatternCategory:
        return PatternCategory.PULUMI_OUTPUT

    @property
    def codes(self) -> tuple[str, ...]:
        return ("SST-VAL-031", "SST-VAL-032")

    def detect(self, context: PatternDetectionContext) -> list[PatternViolation]:
        violations = []
        for node in context.tree.walk():
            violation = None
            if isinstance(node, TaggedTemplate):
                violation = self._check_unnecessary_interpolate(context, node)
            elif isinstance(node, Binary) and node.op == "+":
                violation = self._check_concatenation(context, node)
            if violation is not None:
                violations.append(violation)
        return violations

    def _check_unnecessary_interpolate(
        self, context: PatternDetectionContext, node: TaggedTemplate
    ) -> PatternViolation | None:
        tag = unwrap(node.tag)
        if not isinstance(tag, Identifier) or tag.name != INTERPOLATE_TAG:
            return None
        template = node.template
        if template.head or len(template.spans) != 1 or template.spans[0].literal:
            return None

        inner = template.spans[0].expression
        fix = self._replace_node(
            context,
            node,
            context.source.text_of(inner),
            FixConfidence.HIGH,
            "Remove $interpolate wrapper",
        )
        return self._create_violation(
            context,
            code="SST-VAL-031",
            node=node,
            resource=context.file_path.name,
            property="$interpolate",
            message="Unnecessary $interpolate wrapper - Pulumi Output can be used directly",
            severity=Severity.WARNING,
            fix=fix,
        )

    def _check_concatenation(
        self, context: PatternDetectionContext, node: Binary
    ) -> PatternViolation | None:
        # Only the outermost + of a chain is reported
        parent = node.parent
        if isinstance(parent, Binary) and parent.op == "+":
            return None

        operands = self._flatten(node)
        if not any(self._looks_like_output(operand) for operand in operands):
            return None
        if self._inside_deferred_context(node):
            return None

        fix = self._replace_node(
            context,
            node,
            self._build_interpolation(context, operands),
            FixConfidence.MEDIUM,
            "Wrap string concatenation in $interpolate",
        )
        return self._create_violation(
            context,
            code="SST-VAL-032",
            node=node,
            resource=context.file_path.name,
            property="string-concatenation",
            message=(
                "Pulumi Output cannot be used in string concatenation - "
                "use $interpolate or .apply()"
            ),
            fix=fix,
        )

    def _flatten(self, node: Node) -> list[Node]:
        """Operands of a left-to-right + chain."""
        operands: list[Node] = []
        stack = [node]
        while stack:
            current = stack.pop()
            if isinstance(current, Binary) and current.op == "+":
                stack.append(current.right)
                stack.append(current.left)
            else:
                operands.append(current)
        return operands

    def _looks_like_output(self, node: Node) -> bool:
        node = unwrap(node)
        return isinstance(node, PropertyAccess) and node.name.name in OUTPUT_PROPERTIES

    def _inside_deferred_context(self, node: Node) -> bool:
        """Inside an interpolation template or an .apply() callback."""
        for ancestor in node.ancestors():
            if isinstance(ancestor, TaggedTemplate) and _is_interpolate_tag(ancestor.tag):
                return True
            if isinstance(ancestor, Call):
                callee = unwrap(ancestor.callee)
                if isinstance(callee, PropertyAccess) and callee.name.name == "apply":
                    return True
        return False

    def _build_interpolation(
        self, context: PatternDetectionContext, operands: list[Node]
    ) -> str:
        parts = []
        for operand in operands:
            inner = unwrap(operand)
            if isinstance(inner, StringLiteral):
                parts.append(_escape_template_text(inner.value))
            elif isinstance(inner, TemplateLiteral):
                # Splice the raw template body, substitutions included
                parts.append(context.text[inner.start + 1 : inner.end - 1])
            else:
                parts.append("${" + context.source.text_of(operand) + "}")
        return INTERPOLATE_TAG + "`" + "".join(parts) + "`"
