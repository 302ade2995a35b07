"""
Tokenizer for SST configuration sources.

Turns TypeScript source text into a flat list of tokens carrying exact
start/end offsets into the original text. The tokenizer never raises:
characters it does not understand become ERROR tokens so the parser can
still build a best-effort tree.

Template literals are split the same way the TypeScript scanner does it:

    `a${x}b${y}c`  ->  TEMPLATE_HEAD("a") x TEMPLATE_MIDDLE("b") y TEMPLATE_TAIL("c")
    `plain`        ->  TEMPLATE("plain")
"""

import re
from enum import Enum


class TokenKind(Enum):
    """Token types produced by the tokenizer."""

    IDENT = "ident"  # identifiers and keywords alike
    NUMBER = "number"
    STRING = "string"
    TEMPLATE = "template"  # template without substitutions
    TEMPLATE_HEAD = "template_head"
    TEMPLATE_MIDDLE = "template_middle"
    TEMPLATE_TAIL = "template_tail"
    REGEX = "regex"
    PUNCT = "punct"
    ERROR = "error"
    EOF = "eof"


class Token:
    """A single token with its offsets in the source text."""

    __slots__ = ("kind", "value", "start", "end", "newline_before")

    def __init__(
        self,
        kind: TokenKind,
        value: str,
        start: int,
        end: int,
        newline_before: bool = False,
    ) -> None:
        self.kind = kind
        self.value = value
        self.start = start
        self.end = end
        self.newline_before = newline_before

    def is_punct(self, *values: str) -> bool:
        return self.kind is TokenKind.PUNCT and self.value in values

    def is_ident(self, *values: str) -> bool:
        if self.kind is not TokenKind.IDENT:
            return False
        return not values or self.value in values

    def __repr__(self) -> str:
        return f"Token({self.kind.name}, {self.value!r}, {self.start}:{self.end})"


# Longest first so that greedy matching picks ">>>=" over ">>".
PUNCTUATORS = sorted(
    [
        ">>>=", "...", "===", "!==", "**=", "<<=", ">>=", ">>>", "&&=", "||=",
        "??=", "=>", "==", "!=", "<=", ">=", "&&", "||", "??", "?.", "++",
        "--", "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=", "**", "<<",
        ">>", "{", "}", "(", ")", "[", "]", ";", ",", "<", ">", "+", "-",
        "*", "/", "%", "&", "|", "^", "!", "~", "?", ":", "=", ".", "@",
    ],
    key=len,
    reverse=True,
)

# Words after which a "/" starts a regular expression rather than a division.
_REGEX_PRECEDING_WORDS = frozenset(
    {
        "return", "typeof", "instanceof", "in", "of", "new", "delete", "void",
        "throw", "case", "do", "else", "yield", "await",
    }
)

_NUMBER_RE = re.compile(
    r"0[xX][0-9a-fA-F_]+n?"
    r"|0[bB][01_]+n?"
    r"|0[oO][0-7_]+n?"
    r"|(?:\d[\d_]*(?:\.[\d_]*)?|\.\d[\d_]*)(?:[eE][+-]?\d+)?n?"
)
_IDENT_RE = re.compile(r"(?:[^\W\d]|\$)(?:\w|\$)*")

_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}


def tokenize(source: str) -> list[Token]:
    """Tokenize source text.

    Args:
        source: Full text of the configuration file.

    Returns:
        List of tokens ending with a single EOF token.
    """
    return _Tokenizer(source).run()


class _Tokenizer:
    def __init__(self, source: str) -> None:
        self.source = source
        self.n = len(source)
        self.i = 0
        self.tokens: list[Token] = []
        # "{" for plain braces, "${" for template substitutions
        self.brace_stack: list[str] = []
        self.newline_pending = False

    def run(self) -> list[Token]:
        source = self.source

        # Hashbang line
        if source.startswith("#!"):
            end = source.find("\n")
            self.i = self.n if end == -1 else end

        while True:
            self._skip_trivia()
            if self.i >= self.n:
                break

            c = source[self.i]
            start = self.i

            if c in ('"', "'"):
                self._read_string(start)
            elif c == "`":
                self._read_template(start + 1, start, opening=True)
            elif c.isdigit() or (
                c == "." and self.i + 1 < self.n and source[self.i + 1].isdigit()
            ):
                m = _NUMBER_RE.match(source, self.i)
                assert m is not None
                self._emit(TokenKind.NUMBER, m.group(0), start, m.end())
            elif c == "#" and self.i + 1 < self.n:
                m = _IDENT_RE.match(source, self.i + 1)
                if m:
                    self._emit(TokenKind.IDENT, "#" + m.group(0), start, m.end())
                else:
                    self._emit(TokenKind.ERROR, c, start, start + 1)
            elif c == "/" and self._regex_allowed():
                self._read_regex(start)
            elif c == "}" and self.brace_stack and self.brace_stack[-1] == "${":
                self.brace_stack.pop()
                self._read_template(start + 1, start, opening=False)
            else:
                m = _IDENT_RE.match(source, self.i)
                if m:
                    self._emit(TokenKind.IDENT, m.group(0), start, m.end())
                else:
                    self._read_punct(start)

        self._emit(TokenKind.EOF, "", self.n, self.n)
        return self.tokens

    # -- helpers --

    def _emit(self, kind: TokenKind, value: str, start: int, end: int) -> None:
        self.tokens.append(Token(kind, value, start, end, self.newline_pending))
        self.newline_pending = False
        self.i = end

    def _skip_trivia(self) -> None:
        source = self.source
        while self.i < self.n:
            c = source[self.i]
            if c == "\n":
                self.newline_pending = True
                self.i += 1
            elif c in " \t\r\f\v\ufeff\u00a0":
                self.i += 1
            elif source.startswith("//", self.i):
                end = source.find("\n", self.i)
                self.i = self.n if end == -1 else end
            elif source.startswith("/*", self.i):
                end = source.find("*/", self.i + 2)
                stop = self.n if end == -1 else end + 2
                if "\n" in source[self.i : stop]:
                    self.newline_pending = True
                self.i = stop
            else:
                return

    def _regex_allowed(self) -> bool:
        if not self.tokens:
            return True
        prev = self.tokens[-1]
        if prev.kind in (
            TokenKind.NUMBER,
            TokenKind.STRING,
            TokenKind.TEMPLATE,
            TokenKind.TEMPLATE_TAIL,
            TokenKind.REGEX,
        ):
            return False
        if prev.kind is TokenKind.IDENT:
            return prev.value in _REGEX_PRECEDING_WORDS
        if prev.kind is TokenKind.PUNCT:
            return prev.value not in (")", "]", "}", "++", "--")
        return True

    def _read_punct(self, start: int) -> None:
        for punct in PUNCTUATORS:
            if self.source.startswith(punct, start):
                # "?." followed by a digit is a conditional and a number
                if punct == "?." and start + 2 < self.n and self.source[start + 2].isdigit():
                    continue
                if punct == "{":
                    self.brace_stack.append("{")
                elif punct == "}" and self.brace_stack:
                    self.brace_stack.pop()
                self._emit(TokenKind.PUNCT, punct, start, start + len(punct))
                return
        self._emit(TokenKind.ERROR, self.source[start], start, start + 1)

    def _read_string(self, start: int) -> None:
        source = self.source
        quote = source[start]
        i = start + 1
        chars: list[str] = []
        while i < self.n:
            c = source[i]
            if c == "\\":
                i, decoded = _read_escape(source, i)
                chars.append(decoded)
                continue
            if c == quote:
                self._emit(TokenKind.STRING, "".join(chars), start, i + 1)
                return
            if c == "\n":
                # Unterminated on this line: keep what we have
                break
            chars.append(c)
            i += 1
        self._emit(TokenKind.STRING, "".join(chars), start, i)

    def _read_template(self, i: int, start: int, opening: bool) -> None:
        """Scan template text from index i up to "`" or "${"."""
        source = self.source
        chars: list[str] = []
        while i < self.n:
            c = source[i]
            if c == "\\":
                i, decoded = _read_escape(source, i)
                chars.append(decoded)
                continue
            if c == "`":
                kind = TokenKind.TEMPLATE if opening else TokenKind.TEMPLATE_TAIL
                self._emit(kind, "".join(chars), start, i + 1)
                return
            if c == "$" and i + 1 < self.n and source[i + 1] == "{":
                kind = TokenKind.TEMPLATE_HEAD if opening else TokenKind.TEMPLATE_MIDDLE
                self.brace_stack.append("${")
                self._emit(kind, "".join(chars), start, i + 2)
                return
            chars.append(c)
            i += 1
        # Unterminated template runs to the end of the file
        kind = TokenKind.TEMPLATE if opening else TokenKind.TEMPLATE_TAIL
        self._emit(kind, "".join(chars), start, self.n)

    def _read_regex(self, start: int) -> None:
        source = self.source
        i = start + 1
        in_class = False
        while i < self.n:
            c = source[i]
            if c == "\\":
                i += 2
                continue
            if c == "\n":
                break
            if c == "[":
                in_class = True
            elif c == "]":
                in_class = False
            elif c == "/" and not in_class:
                i += 1
                while i < self.n and (source[i].isalnum() or source[i] in "_$"):
                    i += 1
                self._emit(TokenKind.REGEX, source[start:i], start, i)
                return
            i += 1
        # Not a regex after all: treat "/" as an operator
        self._read_punct(start)


def _read_escape(source: str, i: int) -> tuple[int, str]:
    """Decode the escape sequence starting at the backslash at index i."""
    n = len(source)
    if i + 1 >= n:
        return n, ""
    c = source[i + 1]
    if c in _SIMPLE_ESCAPES:
        return i + 2, _SIMPLE_ESCAPES[c]
    if c == "\r" and source.startswith("\r\n", i + 1):
        return i + 3, ""
    if c == "\n":
        return i + 2, ""
    if c == "x":
        digits = source[i + 2 : i + 4]
        if len(digits) == 2 and all(ch in "0123456789abcdefABCDEF" for ch in digits):
            return i + 4, chr(int(digits, 16))
        return i + 2, c
    if c == "u":
        if i + 2 < n and source[i + 2] == "{":
            close = source.find("}", i + 3)
            if close != -1:
                try:
                    return close + 1, chr(int(source[i + 3 : close], 16))
                except ValueError:
                    return close + 1, ""
        digits = source[i + 2 : i + 6]
        if len(digits) == 4 and all(ch in "0123456789abcdefABCDEF" for ch in digits):
            return i + 6, chr(int(digits, 16))
        return i + 2, c
    return i + 2, c


__all__ = ["Token", "TokenKind", "tokenize", "PUNCTUATORS"]
