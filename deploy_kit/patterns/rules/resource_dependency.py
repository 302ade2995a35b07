"""Resource dependency pattern rule.

Checks the ``link`` graph between resources bound to variables:
- SST-VAL-051: two resources link each other
- SST-VAL-052: a resource links one declared further down the file
"""

from dataclasses import dataclass, field

from ..base import (
    PatternCategory,
    PatternDetectionContext,
    PatternRule,
    PatternViolation,
)
from ..matching import classify_resource, find_property, root_identifier, unwrap
from ..syntax.nodes import ArrayLiteral, Identifier, Node, VariableDeclarator


@dataclass
class ResourceBinding:
    """A resource constructor assigned to a variable."""

    name: str
    line: int
    node: Node
    dependencies: list[str] = field(default_factory=list)


class ResourceDependencyRule(PatternRule):
    """Detect circular and out-of-order resource links."""

    @property
    def rule_id(self) -> str:
        return "resource-dependency"

    @property
    def name(self) -> str:
        return "Resource Dependency Pattern Detection"

    @property
    def category(self) -> PatternCategory:
        return PatternCategory.RESOURCE_DEPENDENCY

    @property
    def codes(self) -> tuple[str, ...]:
        return ("SST-VAL-051", "SST-VAL-052")

    def detect(self, context: PatternDetectionContext) -> list[PatternViolation]:
        bindings = self._collect_bindings(context)
        violations = []

        for binding in bindings.values():
            for dependency in binding.dependencies:
                target = bindings.get(dependency)
                if target is None:
                    continue

                if binding.name in target.dependencies:
                    violations.append(
                        self._create_violation(
                            context,
                            code="SST-VAL-051",
                            node=binding.node,
                            resource=binding.name,
                            property="link",
                            message=(
                                f"Circular dependency detected: "
                                f"{binding.name} ↔ {dependency}"
                            ),
                        )
                    )

                if target.line > binding.line:
                    violations.append(
                        self._create_violation(
                            context,
                            code="SST-VAL-052",
                            node=binding.node,
                            resource=binding.name,
                            property="link",
                            message=(
                                f'Using resource "{dependency}" before it is '
                                f"declared (line {target.line})"
                            ),
                        )
                    )

        return violations

    def _collect_bindings(
        self, context: PatternDetectionContext
    ) -> dict[str, ResourceBinding]:
        bindings: dict[str, ResourceBinding] = {}
        for node in context.tree.walk():
            if not isinstance(node, VariableDeclarator):
                continue
            if not isinstance(node.target, Identifier) or node.init is None:
                continue
            resource = classify_resource(unwrap(node.init))
            if resource is None:
                continue

            name = node.target.name
            if name in bindings:
                # Shadowed names in other scopes keep the first declaration
                continue
            bindings[name] = ResourceBinding(
                name=name,
                line=context.source.line_of(node),
                node=node,
                dependencies=self._link_dependencies(name, resource.config),
            )
        return bindings

    def _link_dependencies(self, name: str, config: Node | None) -> list[str]:
        link = find_property(config, "link")
        if link is None:
            return []

        value = unwrap(link.value)
        candidates = value.elements if isinstance(value, ArrayLiteral) else [value]

        dependencies: list[str] = []
        for element in candidates:
            identifier = root_identifier(element)
            if identifier is None:
                continue
            if identifier.name == name or identifier.name in dependencies:
                continue
            dependencies.append(identifier.name)
        return dependencies
