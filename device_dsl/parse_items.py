"""Parsers for the small pieces of a device description: attributes, fields and the like."""

from __future__ import annotations

from typing import Callable, Optional, TypeVar

from device_dsl.hir import (
    Access,
    Attribute,
    BaseType,
    BitOrder,
    ByteOrder,
    CfgAttribute,
    DirectConversion,
    DocAttribute,
    EnumConversion,
    EnumValue,
    EnumValueKind,
    EnumVariant,
    Field,
    FieldAddress,
    FieldAddressKind,
    FieldConversion,
    Repeat,
)
from device_dsl.lexer import Cursor, DslError, Lookahead, Token, TokenKind

T = TypeVar("T")

_CLOSING = {"(": ")", "[": "]", "{": "}"}
_PATH_KEYWORDS = ("crate", "self", "super", "Self")


def _error_at(cursor: Cursor, message: str) -> DslError:
    """An error at the cursor's token, without the end-of-input prefix."""
    token = cursor.peek()
    if token is None:
        return DslError(message)
    return DslError(message, token.line, token.column)


def _render(tokens: tuple[Token, ...]) -> str:
    """Render tokens back to text, one space between tokens."""
    parts = []
    for token in tokens:
        if token.kind is TokenKind.GROUP:
            parts.append(token.delimiter + _render(token.value) + _CLOSING[token.delimiter])
        else:
            parts.append(token.text)
    return " ".join(parts)


def _parse_terminated(cursor: Cursor, parse_item: Callable[[Cursor], T]) -> tuple[T, ...]:
    """Items separated by commas, with an optional trailing comma, up to the end."""
    items = []
    while not cursor.is_empty():
        items.append(parse_item(cursor))
        if cursor.is_empty():
            break
        cursor.expect_punct(",")
    return tuple(items)


def _peek_any_group(cursor: Cursor) -> bool:
    token = cursor.peek()
    return token is not None and token.kind is TokenKind.GROUP


def _parse_attribute(inner: Cursor, hash_token: Token) -> Attribute:
    name_token = inner.peek()
    if name_token is None or name_token.kind is not TokenKind.IDENT:
        raise inner.error("expected identifier")
    inner.next()
    if inner.peek_punct("::"):
        raise _error_at(inner, "expected this path to be an identifier")
    name = name_token.text

    list_group: Optional[Token] = None
    value_tokens: Optional[list[Token]] = None
    if inner.is_empty():
        pass
    elif _peek_any_group(inner):
        list_group = inner.next()
        if not inner.is_empty():
            raise _error_at(inner, "unexpected token")
    elif inner.peek_punct("="):
        inner.next()
        if inner.is_empty():
            raise inner.error("expected an expression")
        value_tokens = []
        while not inner.is_empty():
            value_tokens.append(inner.next())
    else:
        raise _error_at(inner, "unexpected token")

    if name == "doc":
        if list_group is not None:
            raise DslError("expected `=`", list_group.line, list_group.column)
        if value_tokens is None:
            raise DslError(
                "expected a value for this attribute: `doc = ...`",
                name_token.line,
                name_token.column,
            )
        if len(value_tokens) == 1 and value_tokens[0].kind is TokenKind.STR:
            return DocAttribute(value_tokens[0].value)
        raise DslError("Invalid doc attribute format", hash_token.line, hash_token.column)
    if name == "cfg":
        if value_tokens is not None:
            raise DslError("expected `(`", name_token.line, name_token.column)
        if list_group is None:
            raise DslError(
                "expected attribute arguments in parentheses: `cfg(...)`",
                name_token.line,
                name_token.column,
            )
        return CfgAttribute(_render(list_group.value), hash_token.line, hash_token.column)
    raise DslError(
        f"Unsupported attribute '{name}'. Only `doc` and `cfg` attributes are allowed",
        hash_token.line,
        hash_token.column,
    )


def parse_attributes(cursor: Cursor) -> tuple[Attribute, ...]:
    """Parse any number of outer ``#[doc ...]`` and ``#[cfg(...)]`` attributes."""
    attributes = []
    while cursor.peek_punct("#"):
        hash_token = cursor.next()
        inner = cursor.expect_group("[")
        attributes.append(_parse_attribute(inner, hash_token))
    return tuple(attributes)


def _parse_choice(cursor: Cursor, choices: tuple[tuple[str, T], ...]) -> T:
    lookahead = Lookahead(cursor)
    for word, result in choices:
        if lookahead.peek_keyword(word):
            cursor.next()
            return result
    raise lookahead.error()


def parse_access(cursor: Cursor) -> Access:
    """Parse ``RW``, ``RO``, ``WO`` or their long forms."""
    return _parse_choice(
        cursor,
        (
            ("ReadWrite", Access.RW),
            ("RW", Access.RW),
            ("ReadOnly", Access.RO),
            ("RO", Access.RO),
            ("WriteOnly", Access.WO),
            ("WO", Access.WO),
        ),
    )


def parse_byte_order(cursor: Cursor) -> ByteOrder:
    return _parse_choice(cursor, (("LE", ByteOrder.LE), ("BE", ByteOrder.BE)))


def parse_bit_order(cursor: Cursor) -> BitOrder:
    return _parse_choice(cursor, (("LSB0", BitOrder.LSB0), ("MSB0", BitOrder.MSB0)))


def parse_base_type(cursor: Cursor) -> BaseType:
    return _parse_choice(
        cursor,
        (("bool", BaseType.BOOL), ("uint", BaseType.UINT), ("int", BaseType.INT)),
    )


def parse_enum_value(cursor: Cursor) -> EnumValue:
    """Parse an integer literal, ``default`` or ``catch_all``."""
    try:
        return EnumValue(EnumValueKind.SPECIFIED, cursor.expect_int())
    except DslError:
        pass
    if cursor.peek_keyword("default"):
        cursor.next()
        return EnumValue(EnumValueKind.DEFAULT)
    if cursor.peek_keyword("catch_all"):
        cursor.next()
        return EnumValue(EnumValueKind.CATCH_ALL)
    raise _error_at(
        cursor,
        "Specifier not recognized. Must be an integer literal, `default` or `catch_all`",
    )


def parse_repeat(cursor: Cursor) -> Repeat:
    """Parse ``REPEAT = { count: N, stride: M };``."""
    cursor.expect_keyword("REPEAT")
    cursor.expect_punct("=")
    inner = cursor.expect_group("{")
    inner.expect_keyword("count")
    inner.expect_punct(":")
    count = inner.expect_int()
    inner.expect_punct(",")
    inner.expect_keyword("stride")
    inner.expect_punct(":")
    stride = inner.expect_int()
    if inner.peek_punct(","):
        inner.next()
    if not inner.is_empty():
        raise _error_at(inner, "unexpected token")
    cursor.expect_punct(";")
    return Repeat(count, stride)


def parse_field_address(cursor: Cursor) -> FieldAddress:
    """Parse ``N``, ``N..M`` or ``N..=M``."""
    start = cursor.expect_int()
    if cursor.peek_punct("..="):
        cursor.next()
        return FieldAddress(FieldAddressKind.RANGE_INCLUSIVE, start, cursor.expect_int())
    if cursor.peek_punct(".."):
        cursor.next()
        return FieldAddress(FieldAddressKind.RANGE, start, cursor.expect_int())
    return FieldAddress(FieldAddressKind.INTEGER, start)


def _generic_arguments(cursor: Cursor) -> str:
    pieces = []
    depth = 0
    while True:
        token = cursor.next()
        if token.kind is TokenKind.PUNCT and token.text == "<":
            depth += 1
        elif token.kind is TokenKind.PUNCT and token.text == ">":
            depth -= 1
        pieces.append(_render((token,)).replace(" ", ""))
        if depth == 0:
            return "".join(pieces)


def parse_path(cursor: Cursor) -> str:
    """Parse a type path such as ``crate::module::Type`` and return it without spaces."""
    parts = []
    if cursor.peek_punct("::"):
        cursor.next()
        parts.append("::")
    while True:
        if any(cursor.peek_keyword(word) for word in _PATH_KEYWORDS):
            parts.append(cursor.next().text)
        else:
            parts.append(cursor.expect_ident().text)
        if cursor.peek_punct("<"):
            parts.append(_generic_arguments(cursor))
        if not cursor.peek_punct("::"):
            return "".join(parts)
        cursor.next()
        parts.append("::")


def parse_field_conversion(cursor: Cursor) -> FieldConversion:
    """Parse ``as [try] Path`` or ``as [try] enum Name { variants }``."""
    cursor.expect_keyword("as")
    use_try = cursor.peek_keyword("try")
    if use_try:
        cursor.next()
    if not cursor.peek_keyword("enum"):
        return DirectConversion(path=parse_path(cursor), use_try=use_try)
    cursor.next()
    name = cursor.expect_ident().text
    inner = cursor.expect_group("{")
    variants = parse_enum_variants(inner)
    return EnumConversion(name=name, variants=variants, use_try=use_try)


def parse_enum_variant(cursor: Cursor) -> EnumVariant:
    attributes = parse_attributes(cursor)
    name = cursor.expect_ident().text
    value = None
    if cursor.peek_punct("="):
        cursor.next()
        value = parse_enum_value(cursor)
    return EnumVariant(name=name, value=value, attributes=attributes)


def parse_enum_variants(cursor: Cursor) -> tuple[EnumVariant, ...]:
    """Parse comma-separated enum variants up to the end of the cursor."""
    return _parse_terminated(cursor, parse_enum_variant)


def parse_field(cursor: Cursor) -> Field:
    """Parse ``name: [access] base_type [as conversion] = address``."""
    attributes = parse_attributes(cursor)
    name = cursor.expect_ident().text
    cursor.expect_punct(":")
    fork = cursor.fork()
    try:
        access: Optional[Access] = parse_access(fork)
        cursor.advance_to(fork)
    except DslError:
        access = None
    base_type = parse_base_type(cursor)
    conversion = parse_field_conversion(cursor) if cursor.peek_keyword("as") else None
    cursor.expect_punct("=")
    address = parse_field_address(cursor)
    return Field(
        name=name,
        base_type=base_type,
        address=address,
        access=access,
        conversion=conversion,
        attributes=attributes,
    )


def parse_fields(cursor: Cursor) -> tuple[Field, ...]:
    """Parse comma-separated fields up to the end of the cursor."""
    return _parse_terminated(cursor, parse_field)