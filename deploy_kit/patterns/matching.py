"""
Structural matching helpers shared by pattern rules.

Resources are recognised by the shape of their constructor call,
``new <namespace>.<provider>.<Type>("Name", { ...config })``, never by
type information.
"""

from collections.abc import Iterator
from dataclasses import dataclass

from .syntax.nodes import (
    FUNCTION_TYPES,
    ArrowFunction,
    FunctionDeclaration,
    FunctionExpression,
    Identifier,
    MethodDeclaration,
    New,
    Node,
    ObjectLiteral,
    Parenthesized,
    PropertyAccess,
    PropertyAssignment,
    StringLiteral,
    TemplateLiteral,
    TypeAssertion,
    VariableDeclarator,
    property_key_name,
)

RESOURCE_PROVIDERS = frozenset({"aws", "cloudflare", "vercel"})
UNKNOWN_RESOURCE = "Unknown"


@dataclass(frozen=True)
class ResourceKind:
    """A recognised infrastructure resource constructor call."""

    namespace: str  # usually "sst"
    provider: str  # aws, cloudflare or vercel
    type_name: str  # e.g. "Function", "Dynamo"
    name: str  # first string argument, or "Unknown"
    config: ObjectLiteral | None
    node: New


def unwrap(node: Node | None) -> Node | None:
    """Strip parentheses and type assertions around an expression."""
    while isinstance(node, (Parenthesized, TypeAssertion)):
        node = node.expression
    return node


def static_string(node: Node | None) -> str | None:
    """Value of a string literal or substitution-free template, else None."""
    node = unwrap(node)
    if isinstance(node, StringLiteral):
        return node.value
    if isinstance(node, TemplateLiteral) and not node.spans:
        return node.head
    return None


def member_path(node: Node | None) -> list[str] | None:
    """Names along an ``a.b.c`` chain of plain identifiers, else None."""
    names: list[str] = []
    while isinstance(node, PropertyAccess):
        names.append(node.name.name)
        node = node.object
    if not isinstance(node, Identifier):
        return None
    names.append(node.name)
    names.reverse()
    return names


def root_identifier(node: Node | None) -> Identifier | None:
    """The identifier at the base of a property-access chain."""
    node = unwrap(node)
    while isinstance(node, PropertyAccess):
        node = unwrap(node.object)
    return node if isinstance(node, Identifier) else None


def classify_resource(node: Node) -> ResourceKind | None:
    """Classify a ``new ns.provider.Type(...)`` expression.

    Returns:
        ResourceKind for a resource constructor, None for anything else
    """
    if not isinstance(node, New):
        return None
    path = member_path(node.callee)
    if path is None or len(path) != 3 or path[1] not in RESOURCE_PROVIDERS:
        return None

    arguments = node.arguments or []
    name = UNKNOWN_RESOURCE
    if arguments:
        name = static_string(arguments[0]) or UNKNOWN_RESOURCE
    config = unwrap(arguments[1]) if len(arguments) > 1 else None

    return ResourceKind(
        namespace=path[0],
        provider=path[1],
        type_name=path[2],
        name=name,
        config=config if isinstance(config, ObjectLiteral) else None,
        node=node,
    )


def iter_resources(root: Node, *type_names: str) -> Iterator[ResourceKind]:
    """Yield every resource constructor below root, optionally by type."""
    for node in root.walk():
        if not isinstance(node, New):
            continue
        resource = classify_resource(node)
        if resource is None:
            continue
        if type_names and resource.type_name not in type_names:
            continue
        yield resource


def find_property(obj: Node | None, name: str) -> PropertyAssignment | None:
    """Find a ``name: value`` property in an object literal."""
    obj = unwrap(obj)
    if not isinstance(obj, ObjectLiteral):
        return None
    for prop in obj.properties:
        if isinstance(prop, PropertyAssignment) and property_key_name(prop.key) == name:
            return prop
    return None


def function_name(fn: Node) -> str | None:
    """Name a function is known by, if any.

    Methods and named declarations use their own name. Anonymous
    functions and arrows take the name of the variable or property they
    are bound to.
    """
    if isinstance(fn, MethodDeclaration):
        return property_key_name(fn.key)
    if isinstance(fn, (FunctionDeclaration, FunctionExpression)) and fn.name is not None:
        return fn.name.name
    if isinstance(fn, (FunctionExpression, ArrowFunction)):
        binding = fn.parent
        while isinstance(binding, (Parenthesized, TypeAssertion)):
            binding = binding.parent
        if isinstance(binding, VariableDeclarator) and isinstance(binding.target, Identifier):
            return binding.target.name
        if isinstance(binding, PropertyAssignment):
            return property_key_name(binding.key)
    return None


def enclosing_named_function(node: Node) -> tuple[str, Node] | None:
    """Nearest enclosing function that has a name.

    Anonymous callbacks are walked through, so an access inside
    ``items.map(x => ...)`` within ``run()`` resolves to ``run``.
    """
    for ancestor in node.ancestors():
        if isinstance(ancestor, FUNCTION_TYPES):
            name = function_name(ancestor)
            if name is not None:
                return name, ancestor
    return None


__all__ = [
    "RESOURCE_PROVIDERS",
    "UNKNOWN_RESOURCE",
    "ResourceKind",
    "classify_resource",
    "enclosing_named_function",
    "find_property",
    "function_name",
    "iter_resources",
    "member_path",
    "root_identifier",
    "static_string",
    "unwrap",
]
