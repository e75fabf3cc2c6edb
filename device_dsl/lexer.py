"""Tokenizer and token cursor for the device description language."""

from __future__ import annotations

import bisect
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

_RESERVED = frozenset(
    {
        "_", "abstract", "as", "async", "await", "become", "box", "break",
        "const", "continue", "crate", "do", "dyn", "else", "enum", "extern",
        "false", "final", "fn", "for", "if", "impl", "in", "let", "loop",
        "macro", "match", "mod", "move", "mut", "override", "priv", "pub",
        "ref", "return", "Self", "self", "static", "struct", "super", "trait",
        "true", "try", "type", "typeof", "unsafe", "unsized", "use",
        "virtual", "where", "while", "yield",
    }
)

_CLOSERS = {"}": "{", "]": "[", ")": "("}
_GROUP_NAMES = {"{": "curly braces", "[": "square brackets", "(": "parentheses"}
_MULTI_PUNCTS = ("...", "..=", "..", "::")
_PUNCT_CHARS = frozenset("=;,:#!.-+*/%^&|<>@?$~'")
_SIMPLE_ESCAPES = {
    "n": "\n", "t": "\t", "r": "\r", "0": "\0", "\\": "\\", "'": "'", '"': '"',
}
_UNICODE_ESCAPE = re.compile(r"\{([0-9a-fA-F_]+)\}")
_PREFIX_BASES = {"0x": 16, "0o": 8, "0b": 2}


class DslError(ValueError):
    """An error in the text of a device description, with its location if known."""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column

    def __str__(self) -> str:
        return self.message


class TokenKind(Enum):
    IDENT = "identifier"
    INT = "integer literal"
    FLOAT = "float literal"
    STR = "string literal"
    PUNCT = "punctuation"
    GROUP = "group"


@dataclass(frozen=True)
class IntLiteral:
    """An integer literal as written, with its value and optional type suffix."""

    text: str
    value: int
    suffix: str = ""

    def to_int(self, bits: int, signed: bool) -> int:
        """Return the value, checked to fit an integer of the given width."""
        if self.value < 0 and not signed:
            raise DslError("invalid digit found in string")
        if signed:
            low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
        else:
            low, high = 0, (1 << bits) - 1
        if self.value > high:
            raise DslError("number too large to fit in target type")
        if self.value < low:
            raise DslError("number too small to fit in target type")
        return self.value

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class Token:
    """One token; groups carry their inner tokens as ``value``."""

    kind: TokenKind
    text: str
    value: object = None
    delimiter: str = ""
    line: int = field(default=1, compare=False)
    column: int = field(default=1, compare=False)
    end_line: int = field(default=1, compare=False)
    end_column: int = field(default=1, compare=False)


def _is_ident_start(char: str) -> bool:
    return char == "_" or char.isalpha()


def _is_ident_continue(char: str) -> bool:
    return char == "_" or char.isalnum()


def _quote(content: str) -> str:
    escaped = (
        content.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


class _Lexer:
    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self._line_starts = [0] + [i + 1 for i, c in enumerate(text) if c == "\n"]

    def location(self, offset: int) -> tuple[int, int]:
        line = bisect.bisect_right(self._line_starts, offset)
        return line, offset - self._line_starts[line - 1] + 1

    def error(self, message: str, offset: int) -> DslError:
        return DslError(message, *self.location(offset))

    def make(self, kind, start, end, value=None, delimiter="", end_at=None) -> Token:
        return Token(
            kind,
            self.text[start:end],
            value,
            delimiter,
            *self.location(start),
            *self.location(end if end_at is None else end_at),
        )

    def run(self) -> tuple[Token, ...]:
        text = self.text
        stack: list[tuple[str, int, list[Token]]] = []
        current: list[Token] = []
        while self.pos < len(text):
            start = self.pos
            char = text[start]
            if char.isspace():
                self.pos += 1
            elif text.startswith("//", start):
                self._line_comment(start, current)
            elif text.startswith("/*", start):
                self._block_comment(start, current)
            elif char in _GROUP_NAMES:
                stack.append((char, start, current))
                current = []
                self.pos += 1
            elif char in _CLOSERS:
                if not stack or stack[-1][0] != _CLOSERS[char]:
                    raise self.error(f"unexpected closing delimiter: `{char}`", start)
                opener, open_at, outer = stack.pop()
                self.pos += 1
                outer.append(
                    self.make(TokenKind.GROUP, open_at, self.pos, tuple(current), opener, end_at=start)
                )
                current = outer
            elif char == '"':
                current.append(self._string(start))
            elif char == "r" and self._raw_string_follows(start):
                current.append(self._raw_string(start))
            elif char.isdigit():
                current.append(self._number(start))
            elif _is_ident_start(char):
                current.append(self._ident(start))
            elif char in _PUNCT_CHARS:
                width = next((len(p) for p in _MULTI_PUNCTS if text.startswith(p, start)), 1)
                self.pos += width
                current.append(self.make(TokenKind.PUNCT, start, self.pos))
            else:
                raise self.error(f"unexpected character `{char}`", start)
        if stack:
            opener, open_at, _ = stack[-1]
            raise self.error(f"unclosed delimiter `{opener}`", open_at)
        return tuple(current)

    def _doc(self, start: int, content: str, inner: bool, out: list[Token]) -> None:
        loc = self.location(start) * 2

        def token(kind, text, value=None, delimiter=""):
            return Token(kind, text, value, delimiter, *loc)

        literal = _quote(content)
        out.append(token(TokenKind.PUNCT, "#"))
        if inner:
            out.append(token(TokenKind.PUNCT, "!"))
        children = (
            token(TokenKind.IDENT, "doc"),
            token(TokenKind.PUNCT, "="),
            token(TokenKind.STR, literal, content),
        )
        out.append(token(TokenKind.GROUP, f"[doc = {literal}]", children, "["))

    def _line_comment(self, start: int, out: list[Token]) -> None:
        end = self.text.find("\n", start)
        if end < 0:
            end = len(self.text)
        line = self.text[start:end].rstrip("\r")
        self.pos = end
        if line.startswith("///") and not line.startswith("////"):
            self._doc(start, line[3:], False, out)
        elif line.startswith("//!"):
            self._doc(start, line[3:], True, out)

    def _block_comment(self, start: int, out: list[Token]) -> None:
        text = self.text
        depth = 0
        pos = start
        closed = False
        while pos < len(text):
            if text.startswith("/*", pos):
                depth += 1
                pos += 2
            elif text.startswith("*/", pos):
                depth -= 1
                pos += 2
                if depth == 0:
                    closed = True
                    break
            else:
                pos += 1
        if not closed:
            raise self.error("unterminated block comment", start)
        self.pos = pos
        body = text[start + 2 : pos - 2]
        if body.startswith("*") and not body.startswith("**") and body != "*":
            self._doc(start, body[1:], False, out)
        elif body.startswith("!"):
            self._doc(start, body[1:], True, out)

    def _string(self, start: int) -> Token:
        text = self.text
        pos = start + 1
        chars: list[str] = []
        while True:
            if pos >= len(text):
                raise self.error("unterminated double quote string", start)
            char = text[pos]
            if char == '"':
                pos += 1
                break
            if char != "\\":
                chars.append(char)
                pos += 1
                continue
            escape = text[pos + 1 : pos + 2]
            if escape == "\n":
                pos += 2
                while pos < len(text) and text[pos] in " \t\n\r":
                    pos += 1
            elif escape in _SIMPLE_ESCAPES:
                chars.append(_SIMPLE_ESCAPES[escape])
                pos += 2
            elif escape == "x":
                digits = text[pos + 2 : pos + 4]
                if len(digits) != 2 or any(d not in "0123456789abcdefABCDEF" for d in digits):
                    raise self.error("invalid character in numeric character escape", pos)
                code = int(digits, 16)
                if code > 0x7F:
                    raise self.error("out of range hex escape", pos)
                chars.append(chr(code))
                pos += 4
            elif escape == "u":
                match = _UNICODE_ESCAPE.match(text, pos + 2)
                if not match:
                    raise self.error("invalid unicode character escape", pos)
                code = int(match.group(1).replace("_", ""), 16)
                if code > 0x10FFFF or 0xD800 <= code <= 0xDFFF:
                    raise self.error("invalid unicode character escape", pos)
                chars.append(chr(code))
                pos = match.end()
            else:
                raise self.error(f"unknown character escape: `{escape}`", pos)
        self.pos = pos
        return self.make(TokenKind.STR, start, pos, "".join(chars))

    def _raw_string_follows(self, start: int) -> bool:
        pos = start + 1
        while pos < len(self.text) and self.text[pos] == "#":
            pos += 1
        return pos < len(self.text) and self.text[pos] == '"'

    def _raw_string(self, start: int) -> Token:
        pos = start + 1
        hashes = 0
        while self.text[pos] == "#":
            hashes += 1
            pos += 1
        closing = '"' + "#" * hashes
        end = self.text.find(closing, pos + 1)
        if end < 0:
            raise self.error("unterminated raw string", start)
        self.pos = end + len(closing)
        return self.make(TokenKind.STR, start, self.pos, self.text[pos + 1 : end])

    def _ident(self, start: int) -> Token:
        text = self.text
        pos = start + 1
        if text.startswith("r#", start) and start + 2 < len(text) and _is_ident_start(text[start + 2]):
            pos = start + 3
        while pos < len(text) and _is_ident_continue(text[pos]):
            pos += 1
        self.pos = pos
        return self.make(TokenKind.IDENT, start, pos)

    def _skip_digits(self, pos: int) -> int:
        while pos < len(self.text) and (self.text[pos].isdigit() or self.text[pos] == "_"):
            pos += 1
        return pos

    def _exponent_end(self, pos: int) -> int:
        text = self.text
        if pos < len(text) and text[pos] in "eE":
            probe = pos + 1
            if probe < len(text) and text[probe] in "+-":
                probe += 1
            if probe < len(text) and text[probe].isdigit():
                return self._skip_digits(probe)
        return pos

    def _suffix_end(self, pos: int) -> int:
        while pos < len(self.text) and _is_ident_continue(self.text[pos]):
            pos += 1
        return pos

    def _number(self, start: int) -> Token:
        text = self.text
        base = _PREFIX_BASES.get(text[start : start + 2])
        if base:
            pos = start + 2
            allowed = "0123456789abcdefABCDEF_" if base == 16 else "0123456789_"
            while pos < len(text) and text[pos] in allowed:
                pos += 1
            digits = text[start + 2 : pos].replace("_", "")
            if not digits:
                raise self.error("no valid digits found for number", start)
            if any(int(d, 16) >= base for d in digits):
                raise self.error(f"invalid digit for a base {base} literal", start)
            value = int(digits, base)
        else:
            pos = self._skip_digits(start)
            digits = text[start:pos].replace("_", "")
            is_float = False
            if pos < len(text) and text[pos] == ".":
                after = text[pos + 1 : pos + 2]
                if not (after == "." or (after and _is_ident_start(after))):
                    pos = self._exponent_end(self._skip_digits(pos + 1))
                    is_float = True
            else:
                exponent = self._exponent_end(pos)
                if exponent > pos:
                    pos = exponent
                    is_float = True
            if is_float:
                pos = self._suffix_end(pos)
                self.pos = pos
                return self.make(TokenKind.FLOAT, start, pos, text[start:pos])
            value = int(digits)
        suffix_start = pos
        pos = self._suffix_end(pos)
        self.pos = pos
        literal = IntLiteral(text[start:pos], value, text[suffix_start:pos])
        return self.make(TokenKind.INT, start, pos, literal)


def tokenize(text: str) -> tuple[Token, ...]:
    """Split text into tokens, turning doc comments into ``#[doc = "..."]``."""
    return _Lexer(text).run()


class Cursor:
    """A position in a sequence of tokens, with parsing helpers."""

    def __init__(self, tokens: Sequence[Token], end: Optional[tuple[int, int]] = None, position: int = 0):
        self._tokens = tuple(tokens)
        self._pos = position
        if end is None:
            end = (self._tokens[-1].end_line, self._tokens[-1].end_column) if self._tokens else (1, 1)
        self._end = end

    def is_empty(self) -> bool:
        return self._pos >= len(self._tokens)

    def peek(self, offset: int = 0) -> Optional[Token]:
        index = self._pos + offset
        return self._tokens[index] if 0 <= index < len(self._tokens) else None

    def peek_keyword(self, word: str, offset: int = 0) -> bool:
        token = self.peek(offset)
        return token is not None and token.kind is TokenKind.IDENT and token.text == word

    def peek_punct(self, punct: str) -> bool:
        token = self.peek()
        return token is not None and token.kind is TokenKind.PUNCT and token.text == punct

    def peek_group(self, delimiter: str) -> bool:
        token = self.peek()
        return token is not None and token.kind is TokenKind.GROUP and token.delimiter == delimiter

    def fork(self) -> "Cursor":
        return Cursor(self._tokens, self._end, self._pos)

    def advance_to(self, other: "Cursor") -> None:
        """Move to the position of a fork of this cursor."""
        if other._tokens is not self._tokens:
            raise ValueError("cursor does not share this token stream")
        self._pos = other._pos

    def next(self) -> Token:
        token = self.peek()
        if token is None:
            raise DslError("unexpected end of input", *self._end)
        self._pos += 1
        return token

    def expect_keyword(self, word: str) -> Token:
        if self.peek_keyword(word):
            return self.next()
        raise self.error(f"expected `{word}`")

    def expect_punct(self, punct: str) -> Token:
        if self.peek_punct(punct):
            return self.next()
        raise DslError(f"expected `{punct}`", *self._location())

    def expect_ident(self) -> Token:
        token = self.peek()
        if token is not None and token.kind is TokenKind.IDENT:
            if token.text in _RESERVED:
                raise self.error(f"expected identifier, found keyword `{token.text}`")
            return self.next()
        raise self.error("expected identifier")

    def expect_int(self) -> IntLiteral:
        token = self.peek()
        if token is not None and token.kind is TokenKind.INT:
            self.next()
            return token.value
        following = self.peek(1)
        if self.peek_punct("-") and following is not None and following.kind is TokenKind.INT:
            self.next()
            self.next()
            literal = following.value
            return IntLiteral("-" + literal.text, -literal.value, literal.suffix)
        raise self.error("expected integer literal")

    def expect_str(self) -> str:
        token = self.peek()
        if token is not None and token.kind is TokenKind.STR:
            self.next()
            return token.value
        raise self.error("expected string literal")

    def expect_bool(self) -> bool:
        if self.peek_keyword("true") or self.peek_keyword("false"):
            return self.next().text == "true"
        raise self.error("expected boolean literal")

    def expect_group(self, delimiter: str) -> "Cursor":
        """Consume a delimited group and return a cursor over its contents."""
        if self.peek_group(delimiter):
            token = self.next()
            return Cursor(token.value, (token.end_line, token.end_column))
        raise self.error(f"expected {_GROUP_NAMES[delimiter]}")

    def error(self, message: str) -> DslError:
        """Build an error at the current position."""
        if self.is_empty():
            return DslError(f"unexpected end of input, {message}", *self._end)
        return DslError(message, *self._location())

    def _location(self) -> tuple[int, int]:
        token = self.peek()
        return (token.line, token.column) if token is not None else self._end


class Lookahead:
    """Tries alternatives at one position and reports all of them on failure."""

    def __init__(self, cursor: Cursor):
        self._cursor = cursor.fork()
        self._expected: list[str] = []

    def peek_keyword(self, word: str) -> bool:
        self._expected.append(f"`{word}`")
        return self._cursor.peek_keyword(word)

    def peek_int(self) -> bool:
        self._expected.append("integer literal")
        token = self._cursor.peek()
        return token is not None and token.kind is TokenKind.INT

    def peek_group(self, delimiter: str) -> bool:
        self._expected.append(_GROUP_NAMES[delimiter])
        return self._cursor.peek_group(delimiter)

    def error(self) -> DslError:
        expected = self._expected
        if not expected:
            if self._cursor.is_empty():
                return DslError("unexpected end of input", *self._cursor._end)
            return DslError("unexpected token", *self._cursor._location())
        if len(expected) == 1:
            message = f"expected {expected[0]}"
        elif len(expected) == 2:
            message = f"expected {expected[0]} or {expected[1]}"
        else:
            message = "expected one of: " + ", ".join(expected)
        return self._cursor.error(message)