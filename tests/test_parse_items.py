import pytest

from device_dsl.hir import (
    Access,
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
    Repeat,
)
from device_dsl.lexer import Cursor, DslError, IntLiteral, tokenize
from device_dsl.parse_items import (
    parse_access,
    parse_attributes,
    parse_base_type,
    parse_bit_order,
    parse_byte_order,
    parse_enum_value,
    parse_enum_variant,
    parse_enum_variants,
    parse_field,
    parse_field_address,
    parse_field_conversion,
    parse_fields,
    parse_path,
    parse_repeat,
)


def parse(rule, text):
    cursor = Cursor(tokenize(text))
    result = rule(cursor)
    assert cursor.is_empty()
    return result


def parse_error(rule, text):
    with pytest.raises(DslError) as info:
        rule(Cursor(tokenize(text)))
    return str(info.value)


def lit(text, value):
    return IntLiteral(text, value)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("RW", Access.RW),
        ("ReadWrite", Access.RW),
        ("RO", Access.RO),
        ("ReadOnly", Access.RO),
        ("WO", Access.WO),
        ("WriteOnly", Access.WO),
    ],
)
def test_parse_access(text, expected):
    assert parse(parse_access, text) == expected


def test_parse_access_error():
    assert (
        parse_error(parse_access, "ABCD")
        == "expected one of: `ReadWrite`, `RW`, `ReadOnly`, `RO`, `WriteOnly`, `WO`"
    )


def test_parse_byte_order():
    assert parse(parse_byte_order, "LE") == ByteOrder.LE
    assert parse(parse_byte_order, "BE") == ByteOrder.BE
    assert parse_error(parse_byte_order, "ABCD") == "expected `LE` or `BE`"


def test_parse_bit_order():
    assert parse(parse_bit_order, "LSB0") == BitOrder.LSB0
    assert parse(parse_bit_order, "MSB0") == BitOrder.MSB0
    assert parse_error(parse_bit_order, "ABCD") == "expected `LSB0` or `MSB0`"


def test_parse_base_type():
    assert parse(parse_base_type, "bool") == BaseType.BOOL
    assert parse(parse_base_type, "uint") == BaseType.UINT
    assert parse(parse_base_type, "int") == BaseType.INT
    assert parse_error(parse_base_type, "ABCD") == "expected one of: `bool`, `uint`, `int`"


def test_parse_enum_value():
    assert parse(parse_enum_value, "55") == EnumValue(EnumValueKind.SPECIFIED, lit("55", 55))
    assert parse(parse_enum_value, "default") == EnumValue(EnumValueKind.DEFAULT)
    assert parse(parse_enum_value, "catch_all") == EnumValue(EnumValueKind.CATCH_ALL)
    assert (
        parse_error(parse_enum_value, "ABCD")
        == "Specifier not recognized. Must be an integer literal, `default` or `catch_all`"
    )


def test_parse_repeat():
    expected = Repeat(lit("55", 55), lit("0x123", 0x123))
    assert parse(parse_repeat, "REPEAT = { count: 55, stride: 0x123, };") == expected
    assert parse(parse_repeat, "REPEAT = { count: 55, stride: 0x123 };") == expected


def test_parse_repeat_errors():
    assert parse_error(parse_repeat, "ABCD") == "expected `REPEAT`"
    assert parse_error(parse_repeat, "REPEAT = { count: 55 stride: 0x123 };") == "expected `,`"
    assert parse_error(parse_repeat, "REPEAT = ") == "unexpected end of input, expected curly braces"


def test_parse_field_address():
    assert parse(parse_field_address, "55") == FieldAddress(FieldAddressKind.INTEGER, lit("55", 55))
    assert parse(parse_field_address, "55..=0x123") == FieldAddress(
        FieldAddressKind.RANGE_INCLUSIVE, lit("55", 55), lit("0x123", 0x123)
    )
    assert parse(parse_field_address, "55..0x123") == FieldAddress(
        FieldAddressKind.RANGE, lit("55", 55), lit("0x123", 0x123)
    )
    assert parse_error(parse_field_address, "ABCD") == "expected integer literal"


def test_parse_path():
    assert parse(parse_path, "crate::my_mod::MyStruct") == "crate::my_mod::MyStruct"
    assert parse(parse_path, "::core::Foo<u8>") == "::core::Foo<u8>"


def test_parse_field_plain():
    assert parse(parse_field, "TestField: ReadOnly int = 0x123") == Field(
        name="TestField",
        access=Access.RO,
        base_type=BaseType.INT,
        address=FieldAddress(FieldAddressKind.INTEGER, lit("0x123", 0x123)),
    )


def test_parse_field_direct_conversion():
    assert parse(
        parse_field, "ExsitingType: RW uint as crate::module::foo::Bar = 0x1234"
    ) == Field(
        name="ExsitingType",
        access=Access.RW,
        base_type=BaseType.UINT,
        conversion=DirectConversion(path="crate::module::foo::Bar", use_try=False),
        address=FieldAddress(FieldAddressKind.INTEGER, lit("0x1234", 0x1234)),
    )


def test_parse_field_try_conversion():
    assert parse(
        parse_field, "ExsitingType: RW uint as try crate::module::foo::Bar = 0x1234"
    ) == Field(
        name="ExsitingType",
        access=Access.RW,
        base_type=BaseType.UINT,
        conversion=DirectConversion(path="crate::module::foo::Bar", use_try=True),
        address=FieldAddress(FieldAddressKind.INTEGER, lit("0x1234", 0x1234)),
    )


def test_parse_field_enum_with_path_fails():
    assert (
        parse_error(parse_field, "ExsitingType: RW uint as enum crate::module::foo::Bar = 0x1234")
        == "expected identifier, found keyword `crate`"
    )


def test_parse_field_empty_enum():
    assert parse(parse_field, "ExsitingType: RW uint as enum Bar { } = 0x1234") == Field(
        name="ExsitingType",
        access=Access.RW,
        base_type=BaseType.UINT,
        conversion=EnumConversion(name="Bar", variants=(), use_try=False),
        address=FieldAddress(FieldAddressKind.INTEGER, lit("0x1234", 0x1234)),
    )


def test_parse_field_without_access():
    field = parse(parse_field, "foo: bool = 0")
    assert field.access is None
    assert field.base_type == BaseType.BOOL
    assert field.address == FieldAddress(FieldAddressKind.INTEGER, lit("0", 0))


def test_parse_enum_variant_list():
    assert parse(
        parse_enum_variants, "A, B = 0xFF,\n/// This is C\nC = default, D = catch_all"
    ) == (
        EnumVariant(name="A"),
        EnumVariant(name="B", value=EnumValue(EnumValueKind.SPECIFIED, lit("0xFF", 0xFF))),
        EnumVariant(
            name="C",
            value=EnumValue(EnumValueKind.DEFAULT),
            attributes=(DocAttribute(" This is C"),),
        ),
        EnumVariant(name="D", value=EnumValue(EnumValueKind.CATCH_ALL)),
    )


def test_parse_enum_variant_with_cfg():
    assert parse(parse_enum_variant, "#[cfg(yes)] Four = catch_all") == EnumVariant(
        name="Four",
        value=EnumValue(EnumValueKind.CATCH_ALL),
        attributes=(CfgAttribute("yes"),),
    )


def test_parse_field_conversion_try_enum():
    conversion = parse(parse_field_conversion, "as try enum Val { One, Two = 2 }")
    assert conversion == EnumConversion(
        name="Val",
        variants=(
            EnumVariant(name="One"),
            EnumVariant(name="Two", value=EnumValue(EnumValueKind.SPECIFIED, lit("2", 2))),
        ),
        use_try=True,
    )


def test_parse_fields():
    fields = parse(parse_fields, "a: bool = 0, b: WO uint = 1..4,")
    assert [f.name for f in fields] == ["a", "b"]
    assert fields[1].access == Access.WO
    assert fields[1].address == FieldAddress(FieldAddressKind.RANGE, lit("1", 1), lit("4", 4))


def test_parse_fields_missing_comma():
    assert parse_error(parse_fields, "a: bool = 0 b: bool = 1") == "expected `,`"


def test_parse_fields_empty():
    assert parse(parse_fields, "") == ()


def test_parse_attributes_doc_and_cfg():
    attributes = parse(parse_attributes, '/// A command!\n#[cfg(feature = "std")]')
    assert attributes == (DocAttribute(" A command!"), CfgAttribute('feature = "std"'))
    assert attributes[1].line == 2


def test_parse_attributes_doc_literal():
    assert parse(parse_attributes, '#[doc = "hello"]') == (DocAttribute("hello"),)


def test_parse_attribute_errors():
    assert (
        parse_error(parse_attributes, "#[custom]")
        == "Unsupported attribute 'custom'. Only `doc` and `cfg` attributes are allowed"
    )
    assert parse_error(parse_attributes, "#[doc(bla)]") == "expected `=`"
    assert parse_error(parse_attributes, "#[doc = 1]") == "Invalid doc attribute format"


def test_parse_attributes_none():
    cursor = Cursor(tokenize("buffer Foo"))
    assert parse_attributes(cursor) == ()
    assert cursor.peek_keyword("buffer")