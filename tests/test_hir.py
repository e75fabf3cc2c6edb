import dataclasses

import pytest

from device_dsl.boundary import Boundary
from device_dsl.hir import (
    Access,
    BaseType,
    BasicCommandValue,
    BitOrder,
    Block,
    BlockItem,
    BlockItemKind,
    Buffer,
    ByteOrder,
    CfgAttribute,
    Command,
    CommandItem,
    CommandItemKind,
    Device,
    DirectConversion,
    DocAttribute,
    EnumConversion,
    EnumValue,
    EnumValueKind,
    EnumVariant,
    ExtendedCommandValue,
    Field,
    FieldAddress,
    FieldAddressKind,
    GlobalConfig,
    GlobalConfigKind,
    RefObject,
    Register,
    RegisterItem,
    RegisterItemKind,
    Repeat,
)
from device_dsl.lexer import IntLiteral


def lit(text):
    return IntLiteral(text, int(text, 0))


def test_base_type_is_bool():
    assert BaseType.BOOL.is_bool() is True
    assert BaseType.UINT.is_bool() is False
    assert BaseType.INT.is_bool() is False


def test_attribute_equality():
    doc1 = DocAttribute("some doc")
    doc2 = DocAttribute("some doc")
    assert doc1 == doc2
    assert doc1 != DocAttribute("different doc")

    cfg1 = CfgAttribute("some cfg", 1, 1)
    cfg2 = CfgAttribute("some cfg", 7, 3)
    assert cfg1 == cfg2
    assert cfg1 != CfgAttribute("different cfg", 1, 1)

    assert doc1 != cfg1


def test_cfg_location_ignored_in_hash():
    assert len({CfgAttribute("foo", 1, 1), CfgAttribute("foo", 2, 5)}) == 1


def test_repeat_compares_literal_text():
    assert Repeat(lit("55"), lit("0x123")) == Repeat(lit("55"), lit("0x123"))
    assert Repeat(lit("55"), lit("0x123")) != Repeat(lit("55"), lit("291"))


def test_keyword_values():
    assert Access("RO") is Access.RO
    assert ByteOrder("BE") is ByteOrder.BE
    assert BitOrder("MSB0") is BitOrder.MSB0
    assert BaseType("uint") is BaseType.UINT
    assert GlobalConfigKind("NameWordBoundaries") is GlobalConfigKind.NAME_WORD_BOUNDARIES
    assert RegisterItemKind.ALLOW_BIT_OVERLAP.value == "AllowBitOverlap"
    assert CommandItemKind.SIZE_BITS_OUT.value == "SizeBitsOut"
    assert EnumValueKind("catch_all") is EnumValueKind.CATCH_ALL


def test_items_of_each_kind_are_distinct():
    register_items = {RegisterItem(kind, None) for kind in RegisterItemKind}
    command_items = {CommandItem(kind, None) for kind in CommandItemKind}
    configs = {GlobalConfig(kind, None) for kind in GlobalConfigKind}
    assert len(register_items) == 10
    assert len(command_items) == 8
    assert len(configs) == 10


def test_buffer_defaults():
    buffer = Buffer(name="Foo")
    assert buffer.access is None
    assert buffer.address is None
    assert buffer.attributes == ()


def test_command_defaults():
    command = Command(name="Bar")
    assert command.value is None
    extended = ExtendedCommandValue()
    assert extended.items == ()
    assert extended.in_fields is None
    assert extended.out_fields is None


def test_nodes_are_frozen():
    buffer = Buffer(name="Foo")
    with pytest.raises(dataclasses.FrozenInstanceError):
        buffer.name = "Bar"
    assert buffer.name == "Foo"
    renamed = dataclasses.replace(buffer, name="Bar")
    assert renamed.name == "Bar"
    assert renamed != buffer


def test_nested_equality():
    def build(address):
        return Device(
            global_configs=(
                GlobalConfig(GlobalConfigKind.DEFAULT_REGISTER_ACCESS, Access.RW),
                GlobalConfig(
                    GlobalConfigKind.NAME_WORD_BOUNDARIES,
                    (Boundary.DIGIT_LOWER, Boundary.HYPHEN),
                ),
            ),
            objects=(
                Block(
                    name="MyBlock",
                    attributes=(DocAttribute(" Hi there"),),
                    items=(BlockItem(BlockItemKind.ADDRESS_OFFSET, lit("5")),),
                    objects=(
                        Command(name="A", value=BasicCommandValue(lit("5"))),
                        Buffer(name="B", address=lit(address)),
                    ),
                ),
            ),
        )

    assert build("6") == build("6")
    assert build("6") != build("7")
    assert hash(build("6")) == hash(build("6"))


def test_field_with_enum_conversion():
    field = Field(
        name="ExsitingType",
        access=Access.RW,
        base_type=BaseType.UINT,
        conversion=EnumConversion(
            name="Bar",
            variants=(
                EnumVariant(name="A"),
                EnumVariant(name="B", value=EnumValue(EnumValueKind.SPECIFIED, lit("0xFF"))),
                EnumVariant(
                    name="C",
                    value=EnumValue(EnumValueKind.DEFAULT),
                    attributes=(DocAttribute(" This is C"),),
                ),
            ),
        ),
        address=FieldAddress(FieldAddressKind.INTEGER, lit("0x1234")),
    )
    assert field.conversion.variants[1].value.literal.value == 0xFF
    assert field.conversion.variants[0].value is None
    assert field.conversion.use_try is False
    assert field.address.end is None


def test_direct_conversion_use_try():
    assert DirectConversion(path="crate::a::B", use_try=True) != DirectConversion(path="crate::a::B")


def test_register_and_ref():
    register = Register(
        name="Foo",
        items=(
            RegisterItem(RegisterItemKind.ACCESS, Access.RW),
            RegisterItem(RegisterItemKind.RESET_VALUE_ARRAY, (0, 1, 2, 0x30)),
        ),
    )
    ref = RefObject(name="MyRef", object=register, attributes=(DocAttribute(" Hi!"),))
    assert ref.object.items[1].value == (0, 1, 2, 48)
    assert ref.object.fields == ()
    assert ref == RefObject(name="MyRef", object=register, attributes=(DocAttribute(" Hi!"),))


def test_command_item_equality():
    assert CommandItem(CommandItemKind.BYTE_ORDER, ByteOrder.LE) == CommandItem(
        CommandItemKind.BYTE_ORDER, ByteOrder.LE
    )
    assert CommandItem(CommandItemKind.BYTE_ORDER, ByteOrder.LE) != CommandItem(
        CommandItemKind.BYTE_ORDER, ByteOrder.BE
    )