"""
Syntax tree node types.

Every node records the half-open ``[start, end)`` span of source text it was
parsed from and a parent pointer that is filled in once the whole tree has
been built. Children are discovered from the dataclass fields, so adding a
node type only requires declaring its fields in source order.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field, fields
from typing import Optional


@dataclass(kw_only=True, eq=False)
class Node:
    """Base class for all syntax tree nodes."""

    start: int
    end: int
    parent: Optional["Node"] = field(init=False, default=None, repr=False, compare=False)

    def children(self) -> Iterator["Node"]:
        """Yield direct child nodes in source order."""
        for f in fields(self):
            if f.name == "parent":
                continue
            value = getattr(self, f.name)
            if isinstance(value, Node):
                yield value
            elif isinstance(value, list):
                for item in value:
                    if isinstance(item, Node):
                        yield item

    def walk(self) -> Iterator["Node"]:
        """Pre-order traversal of this node and all descendants."""
        stack: list[Node] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(list(node.children())))

    def ancestors(self) -> Iterator["Node"]:
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    @property
    def kind(self) -> str:
        return type(self).__name__


# --- Program & statements ---


@dataclass(kw_only=True, eq=False)
class Program(Node):
    statements: list[Node]
    # (offset, message) pairs recorded while recovering from bad input
    errors: list[tuple[int, str]] = field(default_factory=list, repr=False)


@dataclass(kw_only=True, eq=False)
class Block(Node):
    statements: list[Node]


@dataclass(kw_only=True, eq=False)
class EmptyStatement(Node):
    pass


@dataclass(kw_only=True, eq=False)
class ExpressionStatement(Node):
    expression: Node


@dataclass(kw_only=True, eq=False)
class VariableDeclarator(Node):
    target: Node
    init: Node | None = None


@dataclass(kw_only=True, eq=False)
class VariableStatement(Node):
    declaration_kind: str  # var, let or const
    declarations: list[VariableDeclarator]


@dataclass(kw_only=True, eq=False)
class Parameter(Node):
    target: Node
    default: Node | None = None
    rest: bool = False


@dataclass(kw_only=True, eq=False)
class FunctionLike(Node):
    """Shared shape of functions, arrows and methods.

    ``params_start``/``params_end`` span the parenthesised parameter list
    including both parentheses. They are None for a bare single-parameter
    arrow such as ``x => x``.
    """

    params: list[Parameter]
    body: Node | None
    params_start: int | None = None
    params_end: int | None = None
    is_async: bool = False


@dataclass(kw_only=True, eq=False)
class FunctionDeclaration(FunctionLike):
    name: Optional["Identifier"] = None

    def children(self) -> Iterator[Node]:
        if self.name is not None:
            yield self.name
        yield from self.params
        if self.body is not None:
            yield self.body


@dataclass(kw_only=True, eq=False)
class FunctionExpression(FunctionLike):
    name: Optional["Identifier"] = None

    def children(self) -> Iterator[Node]:
        if self.name is not None:
            yield self.name
        yield from self.params
        if self.body is not None:
            yield self.body


@dataclass(kw_only=True, eq=False)
class ArrowFunction(FunctionLike):
    pass


@dataclass(kw_only=True, eq=False)
class MethodDeclaration(FunctionLike):
    key: Node | None = None
    accessor: str = "method"  # method, get or set

    def children(self) -> Iterator[Node]:
        if self.key is not None:
            yield self.key
        yield from self.params
        if self.body is not None:
            yield self.body


@dataclass(kw_only=True, eq=False)
class PropertyDeclaration(Node):
    key: Node
    value: Node | None = None


@dataclass(kw_only=True, eq=False)
class ClassNode(Node):
    """Class declaration or class expression."""

    name: Optional["Identifier"]
    heritage: Node | None
    members: list[Node]


@dataclass(kw_only=True, eq=False)
class TypeDeclaration(Node):
    """Type-only declaration (type alias, interface, enum, namespace, declare)."""

    keyword: str


@dataclass(kw_only=True, eq=False)
class ImportDeclaration(Node):
    module: Optional["StringLiteral"] = None


@dataclass(kw_only=True, eq=False)
class ExportDeclaration(Node):
    declaration: Node | None = None
    is_default: bool = False


@dataclass(kw_only=True, eq=False)
class ReturnStatement(Node):
    argument: Node | None = None


@dataclass(kw_only=True, eq=False)
class ThrowStatement(Node):
    argument: Node | None = None


@dataclass(kw_only=True, eq=False)
class IfStatement(Node):
    test: Node
    consequent: Node
    alternate: Node | None = None


@dataclass(kw_only=True, eq=False)
class LoopStatement(Node):
    """for / for-in / for-of / while / do-while."""

    keyword: str
    head: list[Node]
    body: Node


@dataclass(kw_only=True, eq=False)
class TryStatement(Node):
    block: Block
    param: Node | None = None
    handler: Block | None = None
    finalizer: Block | None = None


@dataclass(kw_only=True, eq=False)
class SwitchCase(Node):
    test: Node | None
    statements: list[Node]


@dataclass(kw_only=True, eq=False)
class SwitchStatement(Node):
    discriminant: Node
    cases: list[SwitchCase]


@dataclass(kw_only=True, eq=False)
class JumpStatement(Node):
    keyword: str  # break or continue
    label: str | None = None


# --- Expressions ---


@dataclass(kw_only=True, eq=False)
class Identifier(Node):
    name: str


@dataclass(kw_only=True, eq=False)
class StringLiteral(Node):
    value: str
    quote: str


@dataclass(kw_only=True, eq=False)
class NumericLiteral(Node):
    raw: str


@dataclass(kw_only=True, eq=False)
class KeywordLiteral(Node):
    """true, false, null, this or super."""

    value: str


@dataclass(kw_only=True, eq=False)
class RegexLiteral(Node):
    raw: str


@dataclass(kw_only=True, eq=False)
class TemplateSpan(Node):
    expression: Node
    literal: str


@dataclass(kw_only=True, eq=False)
class TemplateLiteral(Node):
    head: str
    spans: list[TemplateSpan]


@dataclass(kw_only=True, eq=False)
class TaggedTemplate(Node):
    tag: Node
    template: TemplateLiteral


@dataclass(kw_only=True, eq=False)
class SpreadElement(Node):
    argument: Node


@dataclass(kw_only=True, eq=False)
class ArrayLiteral(Node):
    elements: list[Node | None]  # None marks a hole


@dataclass(kw_only=True, eq=False)
class ComputedPropertyName(Node):
    expression: Node


@dataclass(kw_only=True, eq=False)
class PropertyAssignment(Node):
    key: Node
    value: Node


@dataclass(kw_only=True, eq=False)
class ShorthandProperty(Node):
    name: Identifier
    default: Node | None = None


@dataclass(kw_only=True, eq=False)
class SpreadAssignment(Node):
    argument: Node


@dataclass(kw_only=True, eq=False)
class ObjectLiteral(Node):
    properties: list[Node]


@dataclass(kw_only=True, eq=False)
class PropertyAccess(Node):
    object: Node
    name: Identifier
    optional: bool = False


@dataclass(kw_only=True, eq=False)
class ElementAccess(Node):
    object: Node
    index: Node
    optional: bool = False


@dataclass(kw_only=True, eq=False)
class Call(Node):
    callee: Node
    arguments: list[Node]
    optional: bool = False


@dataclass(kw_only=True, eq=False)
class New(Node):
    callee: Node
    arguments: list[Node] | None = None


@dataclass(kw_only=True, eq=False)
class Unary(Node):
    op: str
    operand: Node
    prefix: bool = True


@dataclass(kw_only=True, eq=False)
class Binary(Node):
    op: str
    left: Node
    right: Node


@dataclass(kw_only=True, eq=False)
class Assignment(Node):
    op: str
    target: Node
    value: Node


@dataclass(kw_only=True, eq=False)
class Conditional(Node):
    test: Node
    consequent: Node
    alternate: Node


@dataclass(kw_only=True, eq=False)
class Parenthesized(Node):
    expression: Node


@dataclass(kw_only=True, eq=False)
class TypeAssertion(Node):
    """``x as T``, ``x satisfies T``, ``<T>x`` or ``x!``."""

    expression: Node
    assertion: str


@dataclass(kw_only=True, eq=False)
class ErrorNode(Node):
    """Placeholder for input the parser could not make sense of."""

    message: str = ""


FUNCTION_TYPES = (FunctionDeclaration, FunctionExpression, ArrowFunction, MethodDeclaration)


def set_parents(root: Node) -> None:
    """Fill in parent pointers for every node below root."""
    for node in root.walk():
        for child in node.children():
            child.parent = node


def property_key_name(key: Node | None) -> str | None:
    """Static name of a property key, or None for computed keys."""
    if isinstance(key, Identifier):
        return key.name
    if isinstance(key, StringLiteral):
        return key.value
    if isinstance(key, NumericLiteral):
        return key.raw
    return None
