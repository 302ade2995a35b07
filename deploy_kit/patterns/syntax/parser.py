"""
Tolerant recursive descent parser for SST configuration files.

The parser covers the TypeScript surface that appears in ``sst.config.ts``
files: declarations, functions and arrows, object and array literals,
template literals, calls, ``new`` expressions and the usual operators.
Type-level syntax (annotations, aliases, interfaces, enums, ``declare``)
is recognised and skipped without building nodes for it.

It never raises on bad input. Unexpected tokens become ``ErrorNode``s, a
message is recorded on ``Program.errors``, and every loop is guaranteed to
make progress so any text produces a tree.

Grammar (expressions, precedence low to high):
    expression   -> assignment ("," assignment)*
    assignment   -> arrow | conditional (assign_op assignment)?
    conditional  -> binary ("?" assignment ":" assignment)?
    binary       -> unary (binary_op unary)*          (precedence climbing)
    unary        -> prefix_op unary | "<" type ">" unary | postfix
    postfix      -> (primary | new) call_tail ("++" | "--")?
    call_tail    -> ("." name | "?." ... | "[" expr "]" | args | template | "!")*
"""

from collections.abc import Callable

from .nodes import (
    ArrayLiteral,
    ArrowFunction,
    Assignment,
    Binary,
    Block,
    Call,
    ClassNode,
    ComputedPropertyName,
    Conditional,
    ElementAccess,
    EmptyStatement,
    ErrorNode,
    ExportDeclaration,
    ExpressionStatement,
    FunctionDeclaration,
    FunctionExpression,
    Identifier,
    IfStatement,
    ImportDeclaration,
    JumpStatement,
    KeywordLiteral,
    LoopStatement,
    MethodDeclaration,
    New,
    Node,
    NumericLiteral,
    ObjectLiteral,
    Parameter,
    Parenthesized,
    Program,
    PropertyAccess,
    PropertyAssignment,
    PropertyDeclaration,
    RegexLiteral,
    ReturnStatement,
    ShorthandProperty,
    SpreadAssignment,
    SpreadElement,
    StringLiteral,
    SwitchCase,
    SwitchStatement,
    TaggedTemplate,
    TemplateLiteral,
    TemplateSpan,
    ThrowStatement,
    TryStatement,
    TypeAssertion,
    TypeDeclaration,
    Unary,
    VariableDeclarator,
    VariableStatement,
    set_parents,
)
from .tokenizer import Token, TokenKind, tokenize

_BINARY_PRECEDENCE = {
    "??": 1,
    "||": 2,
    "&&": 3,
    "|": 4,
    "^": 5,
    "&": 6,
    "==": 7,
    "!=": 7,
    "===": 7,
    "!==": 7,
    "<": 8,
    ">": 8,
    "<=": 8,
    ">=": 8,
    "instanceof": 8,
    "in": 8,
    "as": 8,
    "satisfies": 8,
    "<<": 9,
    ">>": 9,
    ">>>": 9,
    "+": 10,
    "-": 10,
    "*": 11,
    "/": 11,
    "%": 11,
    "**": 12,
}
_WORD_OPERATORS = frozenset({"instanceof", "in", "as", "satisfies"})

_ASSIGNMENT_OPERATORS = frozenset(
    {"=", "+=", "-=", "*=", "/=", "%=", "**=", "<<=", ">>=", ">>>=", "&=", "|=", "^=",
     "&&=", "||=", "??="}
)

_PREFIX_WORDS = frozenset({"typeof", "void", "delete", "await", "yield"})
_LITERAL_WORDS = frozenset({"true", "false", "null", "this", "super"})
_TYPE_PREFIX_WORDS = frozenset(
    {"keyof", "typeof", "unique", "readonly", "infer", "asserts", "new", "abstract"}
)
_PARAMETER_MODIFIERS = frozenset({"public", "private", "protected", "readonly", "override"})
_MEMBER_MODIFIERS = frozenset(
    {"public", "private", "protected", "static", "readonly", "abstract", "override",
     "declare", "accessor"}
)
_TYPE_DECLARATION_WORDS = frozenset(
    {"type", "interface", "enum", "declare", "namespace", "module"}
)

# Tokens that end the current construct; primary expressions never consume them.
_CLOSERS = frozenset({")", "]", "}", ";", ","})
# Tokens that cannot appear inside type arguments.
_NOT_IN_TYPE_ARGUMENTS = frozenset(
    {";", "&&", "||", "??", "==", "===", "!=", "!==", "+", "*", "/", "%", "?", ":"}
)

_TEMPLATE_STARTS = (TokenKind.TEMPLATE, TokenKind.TEMPLATE_HEAD)

# Statements, assignments and unary operands each count one level.
MAX_NESTING_DEPTH = 100
NESTING_TOO_DEEP = "Nesting too deep"


def parse_text(text: str) -> Program:
    """Parse TypeScript source text into a syntax tree.

    Never raises. Recovery messages are available on ``Program.errors``.
    """
    parser = _Parser(text)
    try:
        return parser.parse_program()
    except RecursionError:
        errors = [*parser.errors, (parser.current.start, NESTING_TOO_DEEP)]
        return Program(start=0, end=len(text), statements=[], errors=errors)


class _Parser:
    """Recursive descent parser over a token list."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.tokens = tokenize(text)
        self.pos = 0
        self.errors: list[tuple[int, str]] = []
        self.no_in = False
        self.depth = 0

    # -- Token helpers --

    @property
    def current(self) -> Token:
        return self.tokens[self.pos]

    def peek(self, offset: int = 1) -> Token:
        return self._at(self.pos + offset)

    def _at(self, index: int) -> Token:
        if index < len(self.tokens):
            return self.tokens[index]
        return self.tokens[-1]  # EOF

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return tok

    @property
    def at_eof(self) -> bool:
        return self.current.kind is TokenKind.EOF

    @property
    def last_end(self) -> int:
        """End offset of the most recently consumed token."""
        return self.tokens[self.pos - 1].end if self.pos > 0 else 0

    def match(self, *values: str) -> Token | None:
        if self.current.is_punct(*values):
            return self.advance()
        return None

    def match_word(self, *values: str) -> Token | None:
        if self.current.is_ident(*values):
            return self.advance()
        return None

    def expect(self, value: str) -> Token | None:
        tok = self.match(value)
        if tok is None:
            found = self.current.value or self.current.kind.value
            self._error(f"Expected '{value}', got {found!r}")
        return tok

    def _error(self, message: str, offset: int | None = None) -> None:
        self.errors.append((self.current.start if offset is None else offset, message))

    def _nested(self, parse: Callable[[], Node]) -> Node:
        """Run parse one nesting level deeper, skipping input past MAX_NESTING_DEPTH."""
        if self.depth >= MAX_NESTING_DEPTH:
            return self._skip_too_deep()
        self.depth += 1
        try:
            return parse()
        finally:
            self.depth -= 1

    def _skip_too_deep(self) -> ErrorNode:
        tok = self.current
        self._error(NESTING_TOO_DEEP, tok.start)
        if tok.is_punct("(", "[", "{"):
            self.pos = min(self._skip_balanced(self.pos), len(self.tokens) - 1)
        elif tok.kind is not TokenKind.EOF and tok.value not in _CLOSERS:
            self.advance()
        end = self.last_end if self.current is not tok else tok.start
        return ErrorNode(start=tok.start, end=end, message=NESTING_TOO_DEEP)

    # -- Lookahead over raw tokens --

    def _skip_balanced(self, index: int) -> int:
        """Index just past the bracket group opening at index."""
        depth = 0
        while True:
            tok = self._at(index)
            if tok.kind is TokenKind.EOF:
                return index
            if tok.kind is TokenKind.PUNCT:
                if tok.value in ("(", "[", "{"):
                    depth += 1
                elif tok.value in (")", "]", "}"):
                    depth -= 1
                    if depth <= 0:
                        return index + 1
            index += 1

    def _skip_angle(self, index: int) -> int | None:
        """Index just past the ``<...>`` group at index, or None if it is not one."""
        depth = 0
        while True:
            tok = self._at(index)
            if tok.kind is TokenKind.EOF:
                return None
            if tok.kind is TokenKind.PUNCT:
                value = tok.value
                if value == "<":
                    depth += 1
                elif value in (">", ">>", ">>>"):
                    depth -= len(value)
                    if depth <= 0:
                        return index + 1
                elif value in ("(", "[", "{"):
                    index = self._skip_balanced(index)
                    continue
                elif value in (")", "]", "}") or value in _NOT_IN_TYPE_ARGUMENTS:
                    return None
            index += 1

    def _scan_type(self, index: int) -> int:
        """Index just past the type expression starting at index."""
        expect_operand = True
        pending_conditionals = 0
        while True:
            tok = self._at(index)
            if tok.kind is TokenKind.EOF:
                return index

            if expect_operand:
                if tok.is_punct("|", "&", "-"):
                    index += 1
                    continue
                if tok.is_ident(*_TYPE_PREFIX_WORDS) and self._type_operand_at(index + 1):
                    index += 1
                    continue
                if tok.is_punct("("):
                    index = self._skip_balanced(index)
                    if self._at(index).is_punct("=>"):
                        index += 1
                        continue
                    expect_operand = False
                    continue
                if tok.is_punct("<"):
                    end = self._skip_angle(index)
                    if end is None:
                        return index
                    index = end
                    continue
                if tok.is_punct("[", "{"):
                    index = self._skip_balanced(index)
                    expect_operand = False
                    continue
                if tok.kind is TokenKind.IDENT:
                    index += 1
                    if tok.value == "import" and self._at(index).is_punct("("):
                        index = self._skip_balanced(index)
                    while self._at(index).is_punct(".") and self._at(index + 1).kind is TokenKind.IDENT:
                        index += 2
                    if self._at(index).is_punct("<"):
                        end = self._skip_angle(index)
                        if end is not None:
                            index = end
                    expect_operand = False
                    continue
                if tok.kind in (TokenKind.STRING, TokenKind.NUMBER, TokenKind.TEMPLATE):
                    index += 1
                    expect_operand = False
                    continue
                if tok.kind is TokenKind.TEMPLATE_HEAD:
                    while self._at(index).kind not in (TokenKind.TEMPLATE_TAIL, TokenKind.EOF):
                        index += 1
                    if self._at(index).kind is TokenKind.TEMPLATE_TAIL:
                        index += 1
                    expect_operand = False
                    continue
                return index

            if tok.is_punct("[") and not tok.newline_before:
                index = self._skip_balanced(index)
                continue
            if tok.is_punct("|", "&"):
                index += 1
                expect_operand = True
                continue
            if tok.is_ident("extends", "is") and not tok.newline_before:
                if tok.value == "extends":
                    pending_conditionals += 1
                index += 1
                expect_operand = True
                continue
            if pending_conditionals and tok.is_punct("?"):
                index += 1
                expect_operand = True
                continue
            if pending_conditionals and tok.is_punct(":"):
                pending_conditionals -= 1
                index += 1
                expect_operand = True
                continue
            return index

    def _type_operand_at(self, index: int) -> bool:
        tok = self._at(index)
        if tok.kind in (TokenKind.IDENT, TokenKind.STRING, TokenKind.NUMBER):
            return True
        return tok.is_punct("(", "[", "{")

    def _skip_type(self) -> None:
        end = self._scan_type(self.pos)
        if end == self.pos:
            self._error("Expected type")
        self.pos = end

    def _arrow_ahead(self) -> bool:
        """Whether an arrow function starts at the current token."""
        index = self.pos
        tok = self._at(index)
        nxt = self._at(index + 1)
        if tok.is_ident("async") and not nxt.newline_before and (
            nxt.kind is TokenKind.IDENT or nxt.is_punct("(", "<")
        ):
            index += 1
            tok = nxt

        if tok.kind is TokenKind.IDENT:
            after = self._at(index + 1)
            return after.is_punct("=>") and not after.newline_before

        if tok.is_punct("<"):
            end = self._skip_angle(index)
            if end is None:
                return False
            index = end
            tok = self._at(index)

        if not tok.is_punct("("):
            return False
        close = self._skip_balanced(index)
        after = self._at(close)
        if after.is_punct("=>"):
            return True
        if after.is_punct(":"):
            end = self._scan_type(close + 1)
            return end > close + 1 and self._at(end).is_punct("=>")
        return False

    # -- Statements --

    def parse_program(self) -> Program:
        statements = self._parse_statement_list(closer=None)
        program = Program(
            start=0, end=len(self.text), statements=statements, errors=self.errors
        )
        set_parents(program)
        return program

    def _parse_statement_list(
        self, closer: str | None, stop_words: tuple[str, ...] = ()
    ) -> list[Node]:
        statements: list[Node] = []
        while not self.at_eof:
            tok = self.current
            if closer is not None and tok.is_punct(closer):
                break
            if stop_words and tok.is_ident(*stop_words):
                break
            before = self.pos
            statement = self.parse_statement()
            if self.pos == before:
                tok = self.advance()
                message = f"Unexpected token {tok.value!r}"
                self._error(message, tok.start)
                statement = ErrorNode(start=tok.start, end=tok.end, message=message)
            statements.append(statement)
        return statements

    def parse_statement(self) -> Node:
        return self._nested(self._parse_statement)

    def _parse_statement(self) -> Node:
        tok = self.current

        if tok.kind is TokenKind.PUNCT:
            if tok.value == "{":
                return self.parse_block()
            if tok.value == ";":
                self.advance()
                return EmptyStatement(start=tok.start, end=tok.end)
            if tok.value == "@":
                self._skip_decorators()
                return self.parse_statement()

        elif tok.kind is TokenKind.IDENT:
            word = tok.value
            nxt = self.peek()

            if word in ("var", "const") or (
                word == "let" and (nxt.kind is TokenKind.IDENT or nxt.is_punct("[", "{"))
            ):
                if word == "const" and nxt.is_ident("enum"):
                    self.advance()
                    return self._skip_type_declaration("enum", start=tok.start)
                return self.parse_variable_statement()

            if word == "function" or (
                word == "async" and nxt.is_ident("function") and not nxt.newline_before
            ):
                return self.parse_function(declaration=True)

            if word == "class" or (word == "abstract" and nxt.is_ident("class")):
                return self.parse_class()

            if word in _TYPE_DECLARATION_WORDS and self._starts_type_declaration(word):
                return self._skip_type_declaration(word, start=tok.start)

            if word == "import" and nxt.is_punct("(", "."):
                return self.parse_expression_statement()

            handler = self._statement_handlers().get(word)
            if handler is not None:
                return handler()

            if nxt.is_punct(":"):
                # Labeled statement
                self.advance()
                self.advance()
                return self.parse_statement()

        return self.parse_expression_statement()

    def _statement_handlers(self) -> dict[str, Callable[[], Node]]:
        return {
            "if": self.parse_if,
            "for": self.parse_for,
            "while": self.parse_while,
            "do": self.parse_do,
            "return": self.parse_return,
            "throw": self.parse_throw,
            "try": self.parse_try,
            "switch": self.parse_switch,
            "break": self.parse_jump,
            "continue": self.parse_jump,
            "import": self.parse_import,
            "export": self.parse_export,
        }

    def _starts_type_declaration(self, word: str) -> bool:
        nxt = self.peek()
        if nxt.newline_before:
            return False
        if word == "type":
            return nxt.kind is TokenKind.IDENT and self.peek(2).is_punct("=", "<")
        if word in ("namespace", "module"):
            return nxt.kind in (TokenKind.IDENT, TokenKind.STRING)
        return nxt.kind is TokenKind.IDENT

    def _skip_type_declaration(self, word: str, start: int) -> TypeDeclaration:
        self.advance()
        if word == "declare":
            if self.match_word("global"):
                if self.current.is_punct("{"):
                    self.pos = self._skip_balanced(self.pos)
            else:
                # The declared statement carries no runtime value
                self.parse_statement()
        elif word == "type":
            self.advance()
            if self.current.is_punct("<"):
                end = self._skip_angle(self.pos)
                if end is not None:
                    self.pos = end
            self.expect("=")
            self._skip_type()
        else:
            while not self.at_eof and not self.current.is_punct("{", ";"):
                if self.current.is_punct("<"):
                    end = self._skip_angle(self.pos)
                    self.pos = end if end is not None else self.pos + 1
                else:
                    self.advance()
            if self.current.is_punct("{"):
                self.pos = self._skip_balanced(self.pos)
        self.match(";")
        return TypeDeclaration(start=start, end=self.last_end, keyword=word)

    def parse_block(self) -> Block:
        start = self.current.start
        if not self.expect("{"):
            return Block(start=start, end=start, statements=[])
        statements = self._parse_statement_list(closer="}")
        self.expect("}")
        return Block(start=start, end=self.last_end, statements=statements)

    def parse_expression_statement(self) -> Node:
        before = self.pos
        expr = self.parse_expression()
        if self.pos == before:
            return expr
        self.match(";")
        return ExpressionStatement(start=expr.start, end=self.last_end, expression=expr)

    def parse_variable_statement(self, consume_semicolon: bool = True) -> VariableStatement:
        keyword = self.advance()
        declarations: list[VariableDeclarator] = []
        while True:
            target = self.parse_binding_target()
            self.match("!")
            if self.match(":"):
                self._skip_type()
            init = self.parse_assignment() if self.match("=") else None
            declarations.append(
                VariableDeclarator(start=target.start, end=self.last_end, target=target, init=init)
            )
            if not self.match(","):
                break
        if consume_semicolon:
            self.match(";")
        return VariableStatement(
            start=keyword.start,
            end=self.last_end,
            declaration_kind=keyword.value,
            declarations=declarations,
        )

    def parse_binding_target(self) -> Node:
        tok = self.current
        if tok.is_punct("{"):
            return self.parse_object_literal()
        if tok.is_punct("["):
            return self.parse_array_literal()
        if tok.kind is TokenKind.IDENT:
            return self._identifier()
        self._error("Expected binding name")
        return ErrorNode(start=tok.start, end=tok.start, message="Expected binding name")

    def parse_if(self) -> IfStatement:
        start = self.advance().start
        self.expect("(")
        test = self.parse_expression()
        self.expect(")")
        consequent = self.parse_statement()
        alternate = self.parse_statement() if self.match_word("else") else None
        return IfStatement(
            start=start,
            end=self.last_end,
            test=test,
            consequent=consequent,
            alternate=alternate,
        )

    def parse_for(self) -> LoopStatement:
        start = self.advance().start
        self.match_word("await")
        self.expect("(")
        head: list[Node] = []

        tok = self.current
        if tok.is_ident("var", "const") or (tok.is_ident("let") and self.peek().kind is TokenKind.IDENT):
            head.append(self.parse_variable_statement(consume_semicolon=False))
        elif not tok.is_punct(";"):
            self.no_in = True
            try:
                head.append(self.parse_expression())
            finally:
                self.no_in = False

        if self.match_word("of", "in"):
            head.append(self.parse_expression())
        else:
            self.expect(";")
            if not self.current.is_punct(";"):
                head.append(self.parse_expression())
            self.expect(";")
            if not self.current.is_punct(")"):
                head.append(self.parse_expression())
        self.expect(")")
        body = self.parse_statement()
        return LoopStatement(start=start, end=self.last_end, keyword="for", head=head, body=body)

    def parse_while(self) -> LoopStatement:
        start = self.advance().start
        self.expect("(")
        test = self.parse_expression()
        self.expect(")")
        body = self.parse_statement()
        return LoopStatement(start=start, end=self.last_end, keyword="while", head=[test], body=body)

    def parse_do(self) -> LoopStatement:
        start = self.advance().start
        body = self.parse_statement()
        head: list[Node] = []
        if self.match_word("while"):
            self.expect("(")
            head.append(self.parse_expression())
            self.expect(")")
        self.match(";")
        return LoopStatement(start=start, end=self.last_end, keyword="do", head=head, body=body)

    def _parse_optional_argument(self) -> Node | None:
        tok = self.current
        if tok.newline_before or tok.kind is TokenKind.EOF or tok.is_punct(";", "}"):
            return None
        return self.parse_expression()

    def parse_return(self) -> ReturnStatement:
        start = self.advance().start
        argument = self._parse_optional_argument()
        self.match(";")
        return ReturnStatement(start=start, end=self.last_end, argument=argument)

    def parse_throw(self) -> ThrowStatement:
        start = self.advance().start
        argument = self._parse_optional_argument()
        self.match(";")
        return ThrowStatement(start=start, end=self.last_end, argument=argument)

    def parse_try(self) -> TryStatement:
        start = self.advance().start
        block = self.parse_block()
        param = handler = finalizer = None
        if self.match_word("catch"):
            if self.match("("):
                param = self.parse_binding_target()
                if self.match(":"):
                    self._skip_type()
                self.expect(")")
            handler = self.parse_block()
        if self.match_word("finally"):
            finalizer = self.parse_block()
        return TryStatement(
            start=start,
            end=self.last_end,
            block=block,
            param=param,
            handler=handler,
            finalizer=finalizer,
        )

    def parse_switch(self) -> SwitchStatement:
        start = self.advance().start
        self.expect("(")
        discriminant = self.parse_expression()
        self.expect(")")
        cases: list[SwitchCase] = []
        if self.expect("{"):
            while not self.at_eof and not self.current.is_punct("}"):
                case_start = self.current.start
                if self.match_word("case"):
                    test: Node | None = self.parse_expression()
                elif self.match_word("default"):
                    test = None
                else:
                    tok = self.advance()
                    self._error(f"Unexpected token {tok.value!r}", tok.start)
                    continue
                self.expect(":")
                statements = self._parse_statement_list("}", stop_words=("case", "default"))
                cases.append(
                    SwitchCase(start=case_start, end=self.last_end, test=test, statements=statements)
                )
            self.expect("}")
        return SwitchStatement(
            start=start, end=self.last_end, discriminant=discriminant, cases=cases
        )

    def parse_jump(self) -> JumpStatement:
        tok = self.advance()
        label = None
        if self.current.kind is TokenKind.IDENT and not self.current.newline_before:
            label = self.advance().value
        self.match(";")
        return JumpStatement(start=tok.start, end=self.last_end, keyword=tok.value, label=label)

    def parse_import(self) -> ImportDeclaration:
        start = self.advance().start
        module = None
        while not self.at_eof:
            tok = self.current
            if tok.kind is TokenKind.STRING:
                module = self._string_literal()
                break
            if tok.is_punct("{"):
                self.pos = self._skip_balanced(self.pos)
                continue
            if tok.is_punct(";", ")", "}"):
                break
            self.advance()
        if self.current.is_ident("with", "assert") and self.peek().is_punct("{"):
            self.advance()
            self.pos = self._skip_balanced(self.pos)
        self.match(";")
        return ImportDeclaration(start=start, end=self.last_end, module=module)

    def parse_export(self) -> ExportDeclaration:
        start = self.advance().start

        if self.match_word("default"):
            tok = self.current
            if tok.is_ident("function", "class", "abstract") or (
                tok.is_ident("async") and self.peek().is_ident("function")
            ):
                declaration = self.parse_statement()
            else:
                declaration = self.parse_assignment()
                self.match(";")
            return ExportDeclaration(
                start=start, end=self.last_end, declaration=declaration, is_default=True
            )

        if self.current.is_punct("{", "*") or (
            self.current.is_ident("type") and self.peek().is_punct("{")
        ):
            self.match_word("type")
            if self.current.is_punct("{"):
                self.pos = self._skip_balanced(self.pos)
            else:
                self.advance()
                if self.match_word("as"):
                    self.advance()
            if self.match_word("from") and self.current.kind is TokenKind.STRING:
                self.advance()
            self.match(";")
            return ExportDeclaration(start=start, end=self.last_end)

        if self.match("="):
            declaration = self.parse_expression()
            self.match(";")
            return ExportDeclaration(
                start=start, end=self.last_end, declaration=declaration, is_default=True
            )

        declaration = self.parse_statement()
        return ExportDeclaration(start=start, end=self.last_end, declaration=declaration)

    # -- Functions & classes --

    def parse_function(self, declaration: bool) -> FunctionDeclaration | FunctionExpression:
        start = self.current.start
        is_async = self.match_word("async") is not None
        self.advance()  # function
        self.match("*")
        name = self._identifier() if self.current.kind is TokenKind.IDENT else None
        self._skip_type_parameters()
        params, params_start, params_end = self.parse_parameters()
        if self.match(":"):
            self._skip_type()
        body = self.parse_block() if self.current.is_punct("{") else None
        if body is None:
            self.match(";")
        cls = FunctionDeclaration if declaration else FunctionExpression
        return cls(
            start=start,
            end=self.last_end,
            name=name,
            params=params,
            body=body,
            params_start=params_start,
            params_end=params_end,
            is_async=is_async,
        )

    def _skip_type_parameters(self) -> None:
        if self.current.is_punct("<"):
            end = self._skip_angle(self.pos)
            if end is not None:
                self.pos = end

    def parse_parameters(self) -> tuple[list[Parameter], int, int]:
        start = self.current.start
        params: list[Parameter] = []
        if not self.expect("("):
            return params, start, start
        while not self.at_eof and not self.current.is_punct(")"):
            self._skip_decorators()
            while self.current.is_ident(*_PARAMETER_MODIFIERS) and (
                self.peek().kind is TokenKind.IDENT or self.peek().is_punct("{", "[")
            ):
                self.advance()
            param_start = self.current.start
            rest = self.match("...") is not None
            target = self.parse_binding_target()
            self.match("?")
            if self.match(":"):
                self._skip_type()
            default = self.parse_assignment() if self.match("=") else None
            params.append(
                Parameter(
                    start=param_start,
                    end=self.last_end,
                    target=target,
                    default=default,
                    rest=rest,
                )
            )
            if not self.match(","):
                break
        self.expect(")")
        return params, start, self.last_end

    def parse_arrow(self) -> ArrowFunction:
        start = self.current.start
        is_async = False
        if self.current.is_ident("async") and not self.peek().is_punct("=>"):
            self.advance()
            is_async = True

        params_start = params_end = None
        if self.current.kind is TokenKind.IDENT:
            ident = self._identifier()
            params = [Parameter(start=ident.start, end=ident.end, target=ident)]
        else:
            self._skip_type_parameters()
            params, params_start, params_end = self.parse_parameters()
            if self.match(":"):
                self._skip_type()

        self.expect("=>")
        body = self.parse_block() if self.current.is_punct("{") else self.parse_assignment()
        return ArrowFunction(
            start=start,
            end=self.last_end,
            params=params,
            body=body,
            params_start=params_start,
            params_end=params_end,
            is_async=is_async,
        )

    def _parse_method_rest(
        self, start: int, key: Node, accessor: str, is_async: bool
    ) -> MethodDeclaration:
        self._skip_type_parameters()
        params, params_start, params_end = self.parse_parameters()
        if self.match(":"):
            self._skip_type()
        body = self.parse_block() if self.current.is_punct("{") else None
        return MethodDeclaration(
            start=start,
            end=self.last_end,
            key=key,
            params=params,
            body=body,
            params_start=params_start,
            params_end=params_end,
            is_async=is_async,
            accessor=accessor,
        )

    def parse_class(self) -> ClassNode:
        start = self.current.start
        self.match_word("abstract")
        self.advance()  # class
        name = None
        if self.current.kind is TokenKind.IDENT and not self.current.is_ident("extends", "implements"):
            name = self._identifier()
        self._skip_type_parameters()

        heritage = None
        if self.match_word("extends"):
            heritage = self._parse_call_tail(self.parse_primary(), allow_calls=True)
            self._skip_type_parameters()
        if self.match_word("implements"):
            while not self.at_eof and not self.current.is_punct("{"):
                if self.current.is_punct("<"):
                    end = self._skip_angle(self.pos)
                    self.pos = end if end is not None else self.pos + 1
                else:
                    self.advance()

        members: list[Node] = []
        if self.expect("{"):
            while not self.at_eof and not self.current.is_punct("}"):
                before = self.pos
                member = self._parse_class_member()
                if self.pos == before:
                    tok = self.advance()
                    self._error(f"Unexpected token {tok.value!r}", tok.start)
                    continue
                if member is not None:
                    members.append(member)
            self.expect("}")
        return ClassNode(
            start=start, end=self.last_end, name=name, heritage=heritage, members=members
        )

    def _parse_class_member(self) -> Node | None:
        if self.match(";"):
            return None
        self._skip_decorators()
        start = self.current.start

        if self.current.is_ident("static") and self.peek().is_punct("{"):
            self.advance()
            return self.parse_block()

        while self.current.is_ident(*_MEMBER_MODIFIERS) and self._property_key_at(self.peek()):
            self.advance()

        # Index signature: [key: string]: T
        if (
            self.current.is_punct("[")
            and self.peek().kind is TokenKind.IDENT
            and self.peek(2).is_punct(":")
        ):
            self.pos = self._skip_balanced(self.pos)
            if self.match(":"):
                self._skip_type()
            self.match(";")
            return None

        is_async, accessor = self._parse_member_modifiers()
        key = self.parse_property_key()
        if key is None:
            return None
        self.match("?", "!")
        if self.current.is_punct("(", "<"):
            return self._parse_method_rest(start, key, accessor, is_async)
        if self.match(":"):
            self._skip_type()
        value = self.parse_assignment() if self.match("=") else None
        self.match(";")
        return PropertyDeclaration(start=start, end=self.last_end, key=key, value=value)

    def _parse_member_modifiers(self) -> tuple[bool, str]:
        is_async = False
        accessor = "method"
        tok = self.current
        if tok.is_ident("get", "set", "async") and self._property_key_at(self.peek()):
            self.advance()
            if tok.value == "async":
                is_async = True
            else:
                accessor = tok.value
        self.match("*")
        return is_async, accessor

    def _property_key_at(self, tok: Token) -> bool:
        if tok.kind in (TokenKind.IDENT, TokenKind.STRING, TokenKind.NUMBER):
            return True
        return tok.is_punct("[", "*")

    def _skip_decorators(self) -> None:
        while self.match("@"):
            self._parse_call_tail(self.parse_primary(), allow_calls=True)

    # -- Expressions --

    def parse_expression(self) -> Node:
        expr = self.parse_assignment()
        while self.match(","):
            right = self.parse_assignment()
            expr = Binary(start=expr.start, end=self.last_end, op=",", left=expr, right=right)
        return expr

    def parse_assignment(self) -> Node:
        return self._nested(self._parse_assignment)

    def _parse_assignment(self) -> Node:
        if self._arrow_ahead():
            return self.parse_arrow()
        left = self.parse_conditional()
        tok = self.current
        if tok.kind is TokenKind.PUNCT and tok.value in _ASSIGNMENT_OPERATORS:
            self.advance()
            value = self.parse_assignment()
            return Assignment(
                start=left.start, end=self.last_end, op=tok.value, target=left, value=value
            )
        return left

    def parse_conditional(self) -> Node:
        test = self.parse_binary()
        if not self.match("?"):
            return test
        saved_no_in, self.no_in = self.no_in, False
        try:
            consequent = self.parse_assignment()
        finally:
            self.no_in = saved_no_in
        self.expect(":")
        alternate = self.parse_assignment()
        return Conditional(
            start=test.start,
            end=self.last_end,
            test=test,
            consequent=consequent,
            alternate=alternate,
        )

    def _binary_operator(self, tok: Token) -> str | None:
        if tok.kind is TokenKind.PUNCT and tok.value in _BINARY_PRECEDENCE:
            return tok.value
        if tok.kind is TokenKind.IDENT and tok.value in _WORD_OPERATORS:
            if tok.value == "in" and self.no_in:
                return None
            if tok.value in ("as", "satisfies") and tok.newline_before:
                return None
            return tok.value
        return None

    def parse_binary(self, min_precedence: int = 0) -> Node:
        """Precedence climbing over binary operators."""
        left = self.parse_unary()
        while True:
            op = self._binary_operator(self.current)
            if op is None:
                break
            precedence = _BINARY_PRECEDENCE[op]
            if precedence < min_precedence:
                break
            self.advance()
            if op in ("as", "satisfies"):
                self._skip_type()
                left = TypeAssertion(
                    start=left.start, end=self.last_end, expression=left, assertion=op
                )
                continue
            # ** is right-associative
            right = self.parse_binary(precedence if op == "**" else precedence + 1)
            left = Binary(start=left.start, end=self.last_end, op=op, left=left, right=right)
        return left

    def parse_unary(self) -> Node:
        return self._nested(self._parse_unary)

    def _parse_unary(self) -> Node:
        tok = self.current
        if tok.is_punct("!", "~", "+", "-", "++", "--") or (
            tok.is_ident(*_PREFIX_WORDS) and self._operand_at(self.peek())
        ):
            self.advance()
            operand = self.parse_unary()
            return Unary(start=tok.start, end=self.last_end, op=tok.value, operand=operand)

        if tok.is_punct("<"):
            end = self._skip_angle(self.pos)
            if end is not None:
                self.pos = end
                operand = self.parse_unary()
                return TypeAssertion(
                    start=tok.start, end=self.last_end, expression=operand, assertion="<>"
                )

        expr = self.parse_postfix()
        nxt = self.current
        if nxt.is_punct("++", "--") and not nxt.newline_before:
            self.advance()
            return Unary(start=expr.start, end=nxt.end, op=nxt.value, operand=expr, prefix=False)
        return expr

    def _operand_at(self, tok: Token) -> bool:
        if tok.kind is TokenKind.EOF:
            return False
        return not tok.is_punct(")", "]", "}", ",", ";", ":", "=", "=>", ".", "?.")

    def parse_postfix(self) -> Node:
        expr = self.parse_new() if self.current.is_ident("new") else self.parse_primary()
        return self._parse_call_tail(expr, allow_calls=True)

    def _parse_call_tail(self, expr: Node, allow_calls: bool) -> Node:
        while True:
            tok = self.current

            if tok.is_punct("."):
                self.advance()
                name = self._property_name()
                expr = PropertyAccess(start=expr.start, end=self.last_end, object=expr, name=name)

            elif tok.is_punct("?.") and allow_calls:
                self.advance()
                if self.current.is_punct("("):
                    arguments = self.parse_arguments()
                    expr = Call(
                        start=expr.start,
                        end=self.last_end,
                        callee=expr,
                        arguments=arguments,
                        optional=True,
                    )
                elif self.match("["):
                    index = self.parse_expression()
                    self.expect("]")
                    expr = ElementAccess(
                        start=expr.start, end=self.last_end, object=expr, index=index, optional=True
                    )
                else:
                    name = self._property_name()
                    expr = PropertyAccess(
                        start=expr.start, end=self.last_end, object=expr, name=name, optional=True
                    )

            elif tok.is_punct("["):
                self.advance()
                index = self.parse_expression()
                self.expect("]")
                expr = ElementAccess(start=expr.start, end=self.last_end, object=expr, index=index)

            elif tok.is_punct("(") and allow_calls:
                arguments = self.parse_arguments()
                expr = Call(start=expr.start, end=self.last_end, callee=expr, arguments=arguments)

            elif tok.kind in _TEMPLATE_STARTS and allow_calls:
                template = self.parse_template()
                expr = TaggedTemplate(start=expr.start, end=template.end, tag=expr, template=template)

            elif tok.is_punct("!") and not tok.newline_before:
                self.advance()
                expr = TypeAssertion(start=expr.start, end=tok.end, expression=expr, assertion="!")

            elif tok.is_punct("<"):
                # Explicit type arguments: f<T>(...), new Foo<T>(...), tag<T>`...`
                end = self._skip_angle(self.pos)
                if end is None:
                    break
                after = self._at(end)
                if not (after.is_punct("(") or after.kind in _TEMPLATE_STARTS):
                    break
                self.pos = end

            else:
                break
        return expr

    def parse_new(self) -> Node:
        tok = self.advance()
        if self.current.is_punct("."):
            # new.target
            return Identifier(start=tok.start, end=tok.end, name="new")
        callee = self.parse_new() if self.current.is_ident("new") else self.parse_primary()
        callee = self._parse_call_tail(callee, allow_calls=False)
        arguments = self.parse_arguments() if self.current.is_punct("(") else None
        return New(start=tok.start, end=self.last_end, callee=callee, arguments=arguments)

    def parse_arguments(self) -> list[Node]:
        self.expect("(")
        arguments = self._parse_list(")", self._parse_element)
        self.expect(")")
        return arguments

    def _parse_element(self) -> Node:
        tok = self.current
        if self.match("..."):
            argument = self.parse_assignment()
            return SpreadElement(start=tok.start, end=self.last_end, argument=argument)
        return self.parse_assignment()

    def _parse_list(self, closer: str, parse_item: Callable[[], Node]) -> list[Node]:
        items: list[Node] = []
        while not self.at_eof and not self.current.is_punct(closer):
            before = self.pos
            item = parse_item()
            if self.pos == before:
                break
            items.append(item)
            if not self.match(",") and not self.current.is_punct(closer):
                self._error(f"Expected ',' or '{closer}'")
        return items

    def parse_primary(self) -> Node:
        tok = self.current
        kind = tok.kind

        if kind is TokenKind.IDENT:
            word = tok.value
            if word == "function" or (word == "async" and self.peek().is_ident("function")):
                return self.parse_function(declaration=False)
            if word == "class":
                return self.parse_class()
            if word == "new":
                return self.parse_new()
            self.advance()
            if word in _LITERAL_WORDS:
                return KeywordLiteral(start=tok.start, end=tok.end, value=word)
            return Identifier(start=tok.start, end=tok.end, name=word)

        if kind is TokenKind.NUMBER:
            self.advance()
            return NumericLiteral(start=tok.start, end=tok.end, raw=tok.value)

        if kind is TokenKind.STRING:
            return self._string_literal()

        if kind in _TEMPLATE_STARTS:
            return self.parse_template()

        if kind is TokenKind.REGEX:
            self.advance()
            return RegexLiteral(start=tok.start, end=tok.end, raw=tok.value)

        if kind is TokenKind.PUNCT:
            if tok.value == "(":
                self.advance()
                saved_no_in, self.no_in = self.no_in, False
                try:
                    expr = self.parse_expression()
                finally:
                    self.no_in = saved_no_in
                self.expect(")")
                return Parenthesized(start=tok.start, end=self.last_end, expression=expr)
            if tok.value == "[":
                return self.parse_array_literal()
            if tok.value == "{":
                return self.parse_object_literal()
            if tok.value == "@":
                self._skip_decorators()
                return self.parse_primary()

        if (
            kind in (TokenKind.EOF, TokenKind.TEMPLATE_MIDDLE, TokenKind.TEMPLATE_TAIL)
            or tok.value in _CLOSERS
        ):
            return ErrorNode(start=tok.start, end=tok.start, message="Expected expression")

        self.advance()
        message = f"Unexpected token {tok.value!r}"
        self._error(message, tok.start)
        return ErrorNode(start=tok.start, end=tok.end, message=message)

    def parse_template(self) -> TemplateLiteral:
        first = self.advance()
        if first.kind is TokenKind.TEMPLATE:
            return TemplateLiteral(start=first.start, end=first.end, head=first.value, spans=[])

        spans: list[TemplateSpan] = []
        while True:
            expr = self.parse_expression()
            if self.current.kind not in (TokenKind.TEMPLATE_MIDDLE, TokenKind.TEMPLATE_TAIL):
                self._error("Unterminated template substitution")
                while self.current.kind not in (
                    TokenKind.TEMPLATE_MIDDLE,
                    TokenKind.TEMPLATE_TAIL,
                    TokenKind.EOF,
                ):
                    self.advance()
                if self.at_eof:
                    spans.append(
                        TemplateSpan(start=expr.start, end=self.last_end, expression=expr, literal="")
                    )
                    break
            part = self.advance()
            spans.append(
                TemplateSpan(start=expr.start, end=part.end, expression=expr, literal=part.value)
            )
            if part.kind is TokenKind.TEMPLATE_TAIL:
                break
        return TemplateLiteral(start=first.start, end=self.last_end, head=first.value, spans=spans)

    def parse_array_literal(self) -> ArrayLiteral:
        start = self.advance().start
        elements: list[Node | None] = []
        while not self.at_eof and not self.current.is_punct("]"):
            if self.match(","):
                elements.append(None)
                continue
            before = self.pos
            element = self._parse_element()
            if self.pos == before:
                break
            elements.append(element)
            if not self.match(",") and not self.current.is_punct("]"):
                self._error("Expected ',' or ']'")
        self.expect("]")
        return ArrayLiteral(start=start, end=self.last_end, elements=elements)

    def parse_object_literal(self) -> ObjectLiteral:
        start = self.advance().start
        properties = self._parse_list("}", self._parse_object_member)
        self.expect("}")
        return ObjectLiteral(start=start, end=self.last_end, properties=properties)

    def _parse_object_member(self) -> Node:
        tok = self.current
        if self.match("..."):
            argument = self.parse_assignment()
            return SpreadAssignment(start=tok.start, end=self.last_end, argument=argument)

        is_async, accessor = self._parse_member_modifiers()
        key = self.parse_property_key()
        if key is None:
            self._error("Expected property name")
            return ErrorNode(start=tok.start, end=self.last_end, message="Expected property name")
        self.match("?")

        if self.current.is_punct("(", "<"):
            return self._parse_method_rest(tok.start, key, accessor, is_async)
        if self.match(":"):
            value = self.parse_assignment()
            return PropertyAssignment(start=tok.start, end=self.last_end, key=key, value=value)
        if isinstance(key, Identifier):
            default = self.parse_assignment() if self.match("=") else None
            return ShorthandProperty(start=tok.start, end=self.last_end, name=key, default=default)

        self._error("Expected ':'")
        return ErrorNode(start=tok.start, end=self.last_end, message="Expected ':'")

    def parse_property_key(self) -> Node | None:
        tok = self.current
        if tok.kind is TokenKind.IDENT:
            return self._identifier()
        if tok.kind is TokenKind.STRING:
            return self._string_literal()
        if tok.kind is TokenKind.NUMBER:
            self.advance()
            return NumericLiteral(start=tok.start, end=tok.end, raw=tok.value)
        if self.match("["):
            expr = self.parse_assignment()
            self.expect("]")
            return ComputedPropertyName(start=tok.start, end=self.last_end, expression=expr)
        return None

    # -- Leaf helpers --

    def _identifier(self) -> Identifier:
        tok = self.advance()
        return Identifier(start=tok.start, end=tok.end, name=tok.value)

    def _string_literal(self) -> StringLiteral:
        tok = self.advance()
        return StringLiteral(
            start=tok.start, end=tok.end, value=tok.value, quote=self.text[tok.start]
        )

    def _property_name(self) -> Identifier:
        tok = self.current
        if tok.kind is TokenKind.IDENT:
            return self._identifier()
        self._error("Expected property name")
        return Identifier(start=tok.start, end=tok.start, name="")


__all__ = ["parse_text"]
