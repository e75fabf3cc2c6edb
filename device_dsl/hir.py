"""Syntax tree of a parsed device description, close to how it was written."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from device_dsl.boundary import Boundary
from device_dsl.lexer import IntLiteral


class Access(Enum):
    """Who may read or write a register, field or buffer."""

    RW = "RW"
    RO = "RO"
    WO = "WO"


class ByteOrder(Enum):
    LE = "LE"
    BE = "BE"


class BitOrder(Enum):
    LSB0 = "LSB0"
    MSB0 = "MSB0"


class BaseType(Enum):
    """The raw type a field is read as."""

    BOOL = "bool"
    UINT = "uint"
    INT = "int"

    def is_bool(self) -> bool:
        """Whether the base type is ``bool``."""
        return self is BaseType.BOOL


@dataclass(frozen=True)
class DocAttribute:
    """A doc comment or ``#[doc = "..."]`` attribute."""

    text: str


@dataclass(frozen=True)
class CfgAttribute:
    """A ``#[cfg(...)]`` attribute; its location takes no part in equality."""

    condition: str
    line: Optional[int] = field(default=None, compare=False)
    column: Optional[int] = field(default=None, compare=False)


Attribute = Union[DocAttribute, CfgAttribute]


@dataclass(frozen=True)
class Repeat:
    """A ``REPEAT = { count: .., stride: .. };`` specification."""

    count: IntLiteral
    stride: IntLiteral


class EnumValueKind(Enum):
    SPECIFIED = "specified"
    DEFAULT = "default"
    CATCH_ALL = "catch_all"


@dataclass(frozen=True)
class EnumValue:
    """The value given to an enum variant; ``literal`` is set only when specified."""

    kind: EnumValueKind
    literal: Optional[IntLiteral] = None


@dataclass(frozen=True, kw_only=True)
class EnumVariant:
    name: str
    value: Optional[EnumValue] = None
    attributes: tuple[Attribute, ...] = ()


@dataclass(frozen=True, kw_only=True)
class DirectConversion:
    """A conversion to an existing type named by its path."""

    path: str
    use_try: bool = False


@dataclass(frozen=True, kw_only=True)
class EnumConversion:
    """A conversion to an enum defined in place."""

    name: str
    variants: tuple[EnumVariant, ...] = ()
    use_try: bool = False


FieldConversion = Union[DirectConversion, EnumConversion]


class FieldAddressKind(Enum):
    INTEGER = "integer"
    RANGE = "range"
    RANGE_INCLUSIVE = "range_inclusive"


@dataclass(frozen=True)
class FieldAddress:
    """A single bit, ``start..end`` or ``start..=end``."""

    kind: FieldAddressKind
    start: IntLiteral
    end: Optional[IntLiteral] = None


@dataclass(frozen=True, kw_only=True)
class Field:
    name: str
    base_type: BaseType
    address: FieldAddress
    access: Optional[Access] = None
    conversion: Optional[FieldConversion] = None
    attributes: tuple[Attribute, ...] = ()


class GlobalConfigKind(Enum):
    DEFAULT_REGISTER_ACCESS = "DefaultRegisterAccess"
    DEFAULT_FIELD_ACCESS = "DefaultFieldAccess"
    DEFAULT_BUFFER_ACCESS = "DefaultBufferAccess"
    DEFAULT_BYTE_ORDER = "DefaultByteOrder"
    DEFAULT_BIT_ORDER = "DefaultBitOrder"
    REGISTER_ADDRESS_TYPE = "RegisterAddressType"
    COMMAND_ADDRESS_TYPE = "CommandAddressType"
    BUFFER_ADDRESS_TYPE = "BufferAddressType"
    NAME_WORD_BOUNDARIES = "NameWordBoundaries"
    DEFMT_FEATURE = "DefmtFeature"


@dataclass(frozen=True)
class GlobalConfig:
    """One ``type X = ...;`` line of the ``config`` block.

    The value is an Access, ByteOrder, BitOrder, an identifier string for the
    address types, a tuple of Boundary, or a string for the defmt feature.
    """

    kind: GlobalConfigKind
    value: Union[Access, ByteOrder, BitOrder, str, tuple[Boundary, ...]]


class BlockItemKind(Enum):
    ADDRESS_OFFSET = "AddressOffset"
    REPEAT = "Repeat"


@dataclass(frozen=True)
class BlockItem:
    kind: BlockItemKind
    value: Union[IntLiteral, Repeat]


class RegisterItemKind(Enum):
    ACCESS = "Access"
    BYTE_ORDER = "ByteOrder"
    BIT_ORDER = "BitOrder"
    ADDRESS = "Address"
    SIZE_BITS = "SizeBits"
    RESET_VALUE_INT = "ResetValueInt"
    RESET_VALUE_ARRAY = "ResetValueArray"
    REPEAT = "Repeat"
    ALLOW_BIT_OVERLAP = "AllowBitOverlap"
    ALLOW_ADDRESS_OVERLAP = "AllowAddressOverlap"


@dataclass(frozen=True)
class RegisterItem:
    """One item of a register; an array reset value is a tuple of bytes."""

    kind: RegisterItemKind
    value: Union[Access, ByteOrder, BitOrder, IntLiteral, tuple[int, ...], Repeat, bool]


class CommandItemKind(Enum):
    BYTE_ORDER = "ByteOrder"
    BIT_ORDER = "BitOrder"
    ADDRESS = "Address"
    SIZE_BITS_IN = "SizeBitsIn"
    SIZE_BITS_OUT = "SizeBitsOut"
    REPEAT = "Repeat"
    ALLOW_BIT_OVERLAP = "AllowBitOverlap"
    ALLOW_ADDRESS_OVERLAP = "AllowAddressOverlap"


@dataclass(frozen=True)
class CommandItem:
    kind: CommandItemKind
    value: Union[ByteOrder, BitOrder, IntLiteral, Repeat, bool]


@dataclass(frozen=True)
class BasicCommandValue:
    """The short ``command Foo = 5`` form."""

    address: IntLiteral


@dataclass(frozen=True, kw_only=True)
class ExtendedCommandValue:
    """The braced form with items and optional ``in`` and ``out`` field lists."""

    items: tuple[CommandItem, ...] = ()
    in_fields: Optional[tuple[Field, ...]] = None
    out_fields: Optional[tuple[Field, ...]] = None


CommandValue = Union[BasicCommandValue, ExtendedCommandValue]


@dataclass(frozen=True, kw_only=True)
class Block:
    name: str
    items: tuple[BlockItem, ...] = ()
    objects: tuple["Object", ...] = ()
    attributes: tuple[Attribute, ...] = ()


@dataclass(frozen=True, kw_only=True)
class Register:
    name: str
    items: tuple[RegisterItem, ...] = ()
    fields: tuple[Field, ...] = ()
    attributes: tuple[Attribute, ...] = ()


@dataclass(frozen=True, kw_only=True)
class Command:
    name: str
    value: Optional[CommandValue] = None
    attributes: tuple[Attribute, ...] = ()


@dataclass(frozen=True, kw_only=True)
class Buffer:
    name: str
    access: Optional[Access] = None
    address: Optional[IntLiteral] = None
    attributes: tuple[Attribute, ...] = ()


@dataclass(frozen=True, kw_only=True)
class RefObject:
    """A new object made by referring to another one and overriding parts of it."""

    name: str
    object: "Object"
    attributes: tuple[Attribute, ...] = ()


Object = Union[Block, Register, Command, Buffer, RefObject]


@dataclass(frozen=True, kw_only=True)
class Device:
    """A whole description: the global configuration and the top-level objects."""

    global_configs: tuple[GlobalConfig, ...] = ()
    objects: tuple[Object, ...] = ()