"""Parsers for the structure of a device description: config, objects and the device."""

from __future__ import annotations

from typing import Callable, Iterable, Optional, TypeVar

from device_dsl.boundary import Boundary, boundaries_from, boundary_from_name
from device_dsl.hir import (
    Access,
    BasicCommandValue,
    Block,
    BlockItem,
    BlockItemKind,
    Buffer,
    Command,
    CommandItem,
    CommandItemKind,
    CommandValue,
    Device,
    ExtendedCommandValue,
    GlobalConfig,
    GlobalConfigKind,
    Object,
    RefObject,
    Register,
    RegisterItem,
    RegisterItemKind,
)
from device_dsl.lexer import Cursor, DslError, Lookahead, tokenize
from device_dsl.parse_items import (
    parse_access,
    parse_attributes,
    parse_bit_order,
    parse_byte_order,
    parse_fields,
    parse_repeat,
)

T = TypeVar("T")


def _error_here(cursor: Cursor, message: str) -> DslError:
    """An error at the cursor's token, without the end-of-input prefix."""
    token = cursor.peek()
    if token is None:
        return DslError(message)
    return DslError(message, token.line, token.column)


def _comma_separated(cursor: Cursor, parse_item: Callable[[Cursor], T]) -> tuple[T, ...]:
    items = []
    while not cursor.is_empty():
        items.append(parse_item(cursor))
        if cursor.is_empty():
            break
        cursor.expect_punct(",")
    return tuple(items)


def _select(cursor: Cursor, words: Iterable[str]) -> str:
    """Return the first of the keywords found at the cursor, without consuming it."""
    lookahead = Lookahead(cursor)
    for word in words:
        if lookahead.peek_keyword(word):
            return word
    raise lookahead.error()


def _assignment(cursor: Cursor, word: str, parse_value: Callable[[Cursor], T]) -> T:
    """Parse ``WORD = value;``."""
    cursor.expect_keyword(word)
    cursor.expect_punct("=")
    value = parse_value(cursor)
    cursor.expect_punct(";")
    return value


def _reject_duplicate(items: Iterable, kinds: set, cursor: Cursor) -> None:
    if any(item.kind in kinds for item in items):
        raise _error_here(cursor, "duplicate item found")


def _ident_text(cursor: Cursor) -> str:
    return cursor.expect_ident().text


def _word_boundaries(cursor: Cursor) -> tuple[Boundary, ...]:
    if cursor.peek_group("["):
        inner = cursor.expect_group("[")
        names = _comma_separated(inner, _ident_text)
        return tuple(boundary_from_name(name) for name in names)
    try:
        text = cursor.expect_str()
    except DslError as error:
        raise DslError(
            "Expected an array of boundaries or a string", error.line, error.column
        ) from None
    return tuple(boundaries_from(text))


_GLOBAL_PARSERS: dict[GlobalConfigKind, Callable[[Cursor], object]] = {
    GlobalConfigKind.DEFAULT_REGISTER_ACCESS: parse_access,
    GlobalConfigKind.DEFAULT_FIELD_ACCESS: parse_access,
    GlobalConfigKind.DEFAULT_BUFFER_ACCESS: parse_access,
    GlobalConfigKind.DEFAULT_BYTE_ORDER: parse_byte_order,
    GlobalConfigKind.DEFAULT_BIT_ORDER: parse_bit_order,
    GlobalConfigKind.REGISTER_ADDRESS_TYPE: _ident_text,
    GlobalConfigKind.COMMAND_ADDRESS_TYPE: _ident_text,
    GlobalConfigKind.BUFFER_ADDRESS_TYPE: _ident_text,
    GlobalConfigKind.NAME_WORD_BOUNDARIES: _word_boundaries,
    GlobalConfigKind.DEFMT_FEATURE: Cursor.expect_str,
}


def parse_global_config(cursor: Cursor) -> GlobalConfig:
    """Parse one ``type Name = value;`` line of the config block."""
    cursor.expect_keyword("type")
    word = _select(cursor, (kind.value for kind in GlobalConfigKind))
    kind = GlobalConfigKind(word)
    return GlobalConfig(kind, _assignment(cursor, word, _GLOBAL_PARSERS[kind]))


def parse_global_config_list(cursor: Cursor) -> tuple[GlobalConfig, ...]:
    """Parse an optional ``config { ... }`` block."""
    if not cursor.peek_keyword("config"):
        return ()
    cursor.next()
    inner = cursor.expect_group("{")
    configs = []
    while not inner.is_empty():
        configs.append(parse_global_config(inner))
    return tuple(configs)


def parse_block_items(cursor: Cursor) -> tuple[BlockItem, ...]:
    """Parse the ``const`` items at the start of a block."""
    items: list[BlockItem] = []
    while cursor.peek_keyword("const"):
        if cursor.peek_keyword("ADDRESS_OFFSET", 1):
            cursor.next()
            _reject_duplicate(items, {BlockItemKind.ADDRESS_OFFSET}, cursor)
            value = _assignment(cursor, "ADDRESS_OFFSET", Cursor.expect_int)
            items.append(BlockItem(BlockItemKind.ADDRESS_OFFSET, value))
        elif cursor.peek_keyword("REPEAT", 1):
            cursor.next()
            _reject_duplicate(items, {BlockItemKind.REPEAT}, cursor)
            items.append(BlockItem(BlockItemKind.REPEAT, parse_repeat(cursor)))
        else:
            raise _error_here(cursor, "Invalid value. Must be an `ADDRESS_OFFSET` or `REPEAT`")
    return tuple(items)


_REGISTER_TYPES = {
    "Access": (RegisterItemKind.ACCESS, parse_access),
    "ByteOrder": (RegisterItemKind.BYTE_ORDER, parse_byte_order),
    "BitOrder": (RegisterItemKind.BIT_ORDER, parse_bit_order),
}

_REGISTER_CONSTS = {
    "ADDRESS": (RegisterItemKind.ADDRESS, Cursor.expect_int),
    "SIZE_BITS": (RegisterItemKind.SIZE_BITS, Cursor.expect_int),
    "RESET_VALUE": None,
    "REPEAT": None,
    "ALLOW_BIT_OVERLAP": (RegisterItemKind.ALLOW_BIT_OVERLAP, Cursor.expect_bool),
    "ALLOW_ADDRESS_OVERLAP": (RegisterItemKind.ALLOW_ADDRESS_OVERLAP, Cursor.expect_bool),
}


def _byte(cursor: Cursor) -> int:
    return cursor.expect_int().to_int(8, False)


def _reset_value(cursor: Cursor) -> RegisterItem:
    cursor.expect_keyword("RESET_VALUE")
    cursor.expect_punct("=")
    lookahead = Lookahead(cursor)
    if lookahead.peek_int():
        item = RegisterItem(RegisterItemKind.RESET_VALUE_INT, cursor.expect_int())
    elif lookahead.peek_group("["):
        inner = cursor.expect_group("[")
        item = RegisterItem(RegisterItemKind.RESET_VALUE_ARRAY, _comma_separated(inner, _byte))
    else:
        raise lookahead.error()
    cursor.expect_punct(";")
    return item


def parse_register_items(cursor: Cursor) -> tuple[RegisterItem, ...]:
    """Parse the ``type`` and ``const`` items at the start of a register."""
    items: list[RegisterItem] = []
    while True:
        if cursor.peek_keyword("type"):
            cursor.next()
            word = _select(cursor, _REGISTER_TYPES)
            kind, parse_value = _REGISTER_TYPES[word]
            _reject_duplicate(items, {kind}, cursor)
            items.append(RegisterItem(kind, _assignment(cursor, word, parse_value)))
        elif cursor.peek_keyword("const"):
            cursor.next()
            word = _select(cursor, _REGISTER_CONSTS)
            if word == "RESET_VALUE":
                _reject_duplicate(
                    items,
                    {RegisterItemKind.RESET_VALUE_INT, RegisterItemKind.RESET_VALUE_ARRAY},
                    cursor,
                )
                items.append(_reset_value(cursor))
            elif word == "REPEAT":
                _reject_duplicate(items, {RegisterItemKind.REPEAT}, cursor)
                items.append(RegisterItem(RegisterItemKind.REPEAT, parse_repeat(cursor)))
            else:
                kind, parse_value = _REGISTER_CONSTS[word]
                _reject_duplicate(items, {kind}, cursor)
                items.append(RegisterItem(kind, _assignment(cursor, word, parse_value)))
        else:
            return tuple(items)


_COMMAND_TYPES = {
    "ByteOrder": (CommandItemKind.BYTE_ORDER, parse_byte_order),
    "BitOrder": (CommandItemKind.BIT_ORDER, parse_bit_order),
}

_COMMAND_CONSTS = {
    "ADDRESS": (CommandItemKind.ADDRESS, Cursor.expect_int),
    "SIZE_BITS_IN": (CommandItemKind.SIZE_BITS_IN, Cursor.expect_int),
    "SIZE_BITS_OUT": (CommandItemKind.SIZE_BITS_OUT, Cursor.expect_int),
    "REPEAT": None,
    "ALLOW_BIT_OVERLAP": (CommandItemKind.ALLOW_BIT_OVERLAP, Cursor.expect_bool),
    "ALLOW_ADDRESS_OVERLAP": (CommandItemKind.ALLOW_ADDRESS_OVERLAP, Cursor.expect_bool),
}


def parse_command_items(cursor: Cursor) -> tuple[CommandItem, ...]:
    """Parse the ``type`` and ``const`` items at the start of an extended command."""
    items: list[CommandItem] = []
    while True:
        if cursor.peek_keyword("type"):
            cursor.next()
            word = _select(cursor, _COMMAND_TYPES)
            kind, parse_value = _COMMAND_TYPES[word]
            _reject_duplicate(items, {kind}, cursor)
            items.append(CommandItem(kind, _assignment(cursor, word, parse_value)))
        elif cursor.peek_keyword("const"):
            cursor.next()
            word = _select(cursor, _COMMAND_CONSTS)
            if word == "REPEAT":
                _reject_duplicate(items, {CommandItemKind.REPEAT}, cursor)
                items.append(CommandItem(CommandItemKind.REPEAT, parse_repeat(cursor)))
            else:
                kind, parse_value = _COMMAND_CONSTS[word]
                _reject_duplicate(items, {kind}, cursor)
                items.append(CommandItem(kind, _assignment(cursor, word, parse_value)))
        else:
            return tuple(items)


def parse_command_value(cursor: Cursor) -> CommandValue:
    """Parse ``= address`` or ``{ items [in { fields }] [out { fields }] }``."""
    if cursor.peek_punct("="):
        cursor.next()
        return BasicCommandValue(cursor.expect_int())

    inner = cursor.expect_group("{")
    items = parse_command_items(inner)

    in_fields = None
    if inner.peek_keyword("in"):
        inner.next()
        in_fields = parse_fields(inner.expect_group("{"))
    if inner.peek_punct(","):
        inner.next()

    out_fields = None
    if inner.peek_keyword("out"):
        inner.next()
        out_fields = parse_fields(inner.expect_group("{"))
    if inner.peek_punct(","):
        inner.next()

    if not inner.is_empty():
        raise _error_here(inner, "Did not expect any more tokens")

    return ExtendedCommandValue(items=items, in_fields=in_fields, out_fields=out_fields)


def parse_block(cursor: Cursor) -> Block:
    attributes = parse_attributes(cursor)
    cursor.expect_keyword("block")
    name = cursor.expect_ident().text
    inner = cursor.expect_group("{")
    items = parse_block_items(inner)
    objects = parse_objects(inner)
    return Block(name=name, items=items, objects=objects, attributes=attributes)


def parse_register(cursor: Cursor) -> Register:
    attributes = parse_attributes(cursor)
    cursor.expect_keyword("register")
    name = cursor.expect_ident().text
    inner = cursor.expect_group("{")
    items = parse_register_items(inner)
    fields = parse_fields(inner)
    return Register(name=name, items=items, fields=fields, attributes=attributes)


def parse_command(cursor: Cursor) -> Command:
    attributes = parse_attributes(cursor)
    cursor.expect_keyword("command")
    name = cursor.expect_ident().text
    value = None if cursor.is_empty() else parse_command_value(cursor)
    return Command(name=name, value=value, attributes=attributes)


def parse_buffer(cursor: Cursor) -> Buffer:
    attributes = parse_attributes(cursor)
    cursor.expect_keyword("buffer")
    name = cursor.expect_ident().text
    access: Optional[Access] = None
    if cursor.peek_punct(":"):
        cursor.next()
        access = parse_access(cursor)
    address = None
    if cursor.peek_punct("="):
        cursor.next()
        address = cursor.expect_int()
    return Buffer(name=name, access=access, address=address, attributes=attributes)


def parse_ref(cursor: Cursor) -> RefObject:
    attributes = parse_attributes(cursor)
    cursor.expect_keyword("ref")
    name = cursor.expect_ident().text
    cursor.expect_punct("=")
    target = parse_object(cursor)
    return RefObject(name=name, object=target, attributes=attributes)


_OBJECT_PARSERS: dict[str, Callable[[Cursor], Object]] = {
    "block": parse_block,
    "register": parse_register,
    "command": parse_command,
    "buffer": parse_buffer,
    "ref": parse_ref,
}


def parse_object(cursor: Cursor) -> Object:
    """Parse any object, choosing by the keyword after its attributes."""
    fork = cursor.fork()
    try:
        parse_attributes(fork)
    except DslError:
        pass
    word = _select(fork, _OBJECT_PARSERS)
    return _OBJECT_PARSERS[word](cursor)


def parse_objects(cursor: Cursor) -> tuple[Object, ...]:
    """Parse comma-separated objects up to the end of the cursor."""
    return _comma_separated(cursor, parse_object)


def parse_device(cursor: Cursor) -> Device:
    global_configs = parse_global_config_list(cursor)
    objects = parse_objects(cursor)
    return Device(global_configs=global_configs, objects=objects)


def parse_str(text: str, rule: Callable[[Cursor], T] = parse_device) -> T:
    """Tokenize the text and parse all of it with the given rule."""
    cursor = Cursor(tokenize(text))
    result = rule(cursor)
    if not cursor.is_empty():
        raise _error_here(cursor, "unexpected token")
    return result