"""Stage variable pattern rule.

Detects stage handling that silently breaks multi-stage deployments:
- SST-VAL-001: ``input.stage`` used outside the ``app()`` entry function
- SST-VAL-002: ``run()`` entry function declared with parameters
- SST-VAL-003: ``const stage = "dev"`` style hardcoded stage values

``input?.stage || "dev"`` inside ``run()`` always evaluates to ``"dev"``
because ``run()`` never receives ``input``.
"""

from ..base import (
    FixConfidence,
    PatternCategory,
    PatternDetectionContext,
    PatternRule,
    PatternViolation,
)
from ..matching import enclosing_named_function, function_name, static_string, unwrap
from ..syntax.nodes import (
    FUNCTION_TYPES,
    FunctionLike,
    Identifier,
    PropertyAccess,
    VariableDeclarator,
)

# Entry function that legitimately receives the input parameter
APP_FUNCTION = "app"
# Entry function that must be nullary
RUN_FUNCTION = "run"

HARDCODED_STAGES = frozenset(
    {"dev", "development", "staging", "production", "prod", "test"}
)


class StageVariableRule(PatternRule):
    """Detect incorrect stage variable usage (input.stage vs $app.stage)."""

    @property
    def rule_id(self) -> str:
        return "stage-variable"

    @property
    def name(self) -> str:
        return "Stage Variable Pattern Detection"

    @property
    def category(self) -> PatternCategory:
        return PatternCategory.STAGE_VARIABLE

    @property
    def codes(self) -> tuple[str, ...]:
        return ("SST-VAL-001", "SST-VAL-002", "SST-VAL-003")

    @property
    def description(self) -> str:
        return (
            "Detects input.stage used outside app(), run() declared with "
            "parameters, and hardcoded stage values."
        )

    def detect(self, context: PatternDetectionContext) -> list[PatternViolation]:
        violations = []
        for node in context.tree.walk():
            if isinstance(node, PropertyAccess):
                violation = self._check_input_stage(context, node)
            elif isinstance(node, FUNCTION_TYPES):
                violation = self._check_run_signature(context, node)
            elif isinstance(node, VariableDeclarator):
                violation = self._check_hardcoded_stage(context, node)
            else:
                continue
            if violation is not None:
                violations.append(violation)
        return violations

    def _check_input_stage(
        self, context: PatternDetectionContext, node: PropertyAccess
    ) -> PatternViolation | None:
        if node.name.name != "stage":
            return None
        target = unwrap(node.object)
        if not isinstance(target, Identifier) or target.name != "input":
            return None

        enclosing = enclosing_named_function(node)
        function = enclosing[0] if enclosing else None
        if function == APP_FUNCTION:
            return None

        if function == RUN_FUNCTION:
            message = (
                "run() function does not receive input parameter. "
                "Use $app.stage instead of input.stage."
            )
        else:
            message = "Using input.stage causes silent failures. Use $app.stage instead."

        fix = self._replace_node(
            context,
            node,
            "$app.stage",
            FixConfidence.HIGH,
            "Replace input.stage with $app.stage",
        )
        return self._create_violation(
            context,
            code="SST-VAL-001",
            node=node,
            resource=context.file_path.name,
            property="stage",
            message=message,
            fix=fix,
        )

    def _check_run_signature(
        self, context: PatternDetectionContext, node: FunctionLike
    ) -> PatternViolation | None:
        if not node.params or function_name(node) != RUN_FUNCTION:
            return None

        if node.params_start is not None and node.params_end is not None:
            start, end = node.params_start, node.params_end
        else:
            # Bare arrow parameter: run = input => { ... }
            start, end = node.params[0].start, node.params[-1].end

        fix = self._create_fix(
            context,
            start,
            end,
            "()",
            FixConfidence.HIGH,
            "Remove parameters from run() function",
        )
        return self._create_violation(
            context,
            code="SST-VAL-002",
            node=node,
            resource=context.file_path.name,
            property="run()",
            message="run() function should not accept parameters in SST v3",
            fix=fix,
        )

    def _check_hardcoded_stage(
        self, context: PatternDetectionContext, node: VariableDeclarator
    ) -> PatternViolation | None:
        if not isinstance(node.target, Identifier) or node.target.name != "stage":
            return None
        if node.init is None:
            return None
        value = static_string(node.init)
        if value not in HARDCODED_STAGES:
            return None

        fix = self._replace_node(
            context,
            node.init,
            "$app.stage",
            FixConfidence.HIGH,
            "Replace hardcoded stage with $app.stage",
        )
        return self._create_violation(
            context,
            code="SST-VAL-003",
            node=node,
            resource=context.file_path.name,
            property="stage",
            message=f'Hardcoded stage value "{value}" prevents multi-stage deployments',
            fix=fix,
        )
