# device_dsl

A parser for a small language that describes a hardware device. A description
has an optional global `config` section followed by registers, commands,
buffers, blocks and refs. Parsing produces a tree of frozen Python dataclasses
that stays close to how the text was written.

## Installation

```
pip install .
```

## Usage

`device_dsl.parser.parse_str(text, rule=parse_device)` tokenizes the text,
parses it with the given rule and checks that all of the text was used. A rule
is any parsing function that takes a `Cursor`, such as `parse_device`,
`parse_register_items` or `device_dsl.parse_items.parse_field`. Failures raise
`device_dsl.lexer.DslError`, a `ValueError` whose message says what was
expected and whose `line` and `column` attributes give the location when
known.

```python
from device_dsl.lexer import DslError
from device_dsl.parser import parse_register_items, parse_str

device = parse_str(
    """
    config {
        type DefaultRegisterAccess = RW;
        type DefaultByteOrder = LE;
    }

    /// The status register
    register Status {
        const ADDRESS = 0x10;
        const SIZE_BITS = 8;

        ready: RO bool = 0,
        mode: uint as enum Mode { Off, On = 1, Other = catch_all } = 1..=3,
    },

    command Reset = 0x42,
    buffer Fifo: RO = 0x20
    """
)

print(device.objects[0].name)      # Status
print(device.objects[0].attributes)  # (DocAttribute(text=' The status register'),)

try:
    parse_str("type Access = RW", parse_register_items)
except DslError as error:
    print(error)  # expected `;`
```

Integer literals are kept as `IntLiteral` objects (the text as written, its
value and any suffix); `IntLiteral.to_int(bits, signed)` checks that the value
fits an integer of the given width.

### The language

- `config { type <Setting> = <value>; ... }` with the settings
  `DefaultRegisterAccess`, `DefaultFieldAccess`, `DefaultBufferAccess`,
  `DefaultByteOrder`, `DefaultBitOrder`, `RegisterAddressType`,
  `CommandAddressType`, `BufferAddressType`, `NameWordBoundaries` and
  `DefmtFeature`. `NameWordBoundaries` takes either an example string, whose
  boundaries are detected (`"aA:1B"` gives `LowerUpper` and `DigitUpper`), or a
  list of boundary names such as `[DigitLower, Hyphen]`, matched without regard
  to case.
- `register Name { ... }` holds `type` items (`Access`, `ByteOrder`,
  `BitOrder`) and `const` items (`ADDRESS`, `SIZE_BITS`, `RESET_VALUE` as an
  integer or a list of bytes, `REPEAT`, `ALLOW_BIT_OVERLAP`,
  `ALLOW_ADDRESS_OVERLAP`), followed by comma-separated fields.
- A field is `name: [access] bool|uint|int [as [try] Path | as [try] enum Name { ... }] = address`,
  where the address is `N`, `N..M` or `N..=M`. Enum variants may be given an
  integer, `default` or `catch_all`.
- `command Name`, `command Name = <address>` or
  `command Name { items  in { fields }, out { fields } }`, with the items
  `ByteOrder`, `BitOrder`, `ADDRESS`, `SIZE_BITS_IN`, `SIZE_BITS_OUT`,
  `REPEAT`, `ALLOW_BIT_OVERLAP` and `ALLOW_ADDRESS_OVERLAP`.
- `buffer Name[: <access>] [= <address>]`.
- `block Name { const ADDRESS_OFFSET = ...; const REPEAT = { count: N, stride: M }; objects }`.
- `ref Name = <object>`.

Access may be written `RW`/`ReadWrite`, `RO`/`ReadOnly` or `WO`/`WriteOnly`.
Objects and fields may carry `///` doc comments (or `#[doc = "..."]`) and
`#[cfg(...)]` attributes; any other attribute is rejected. Each item may be
given only once in a list; a repeat is reported as `duplicate item found`.

### Modules

- `device_dsl.lexer` — `tokenize`, `Token`, `IntLiteral`, `Cursor`,
  `Lookahead` and `DslError`.
- `device_dsl.boundary` — the `Boundary` enum, `all_boundaries`,
  `boundaries_from` and `boundary_from_name`.
- `device_dsl.hir` — the dataclasses and enums the parser produces, from
  `Device` down to `Field`, `EnumVariant` and `Repeat`.
- `device_dsl.parse_items` — rules for attributes, access, byte and bit order,
  base types, enum values and variants, repeats, field addresses, paths and
  fields.
- `device_dsl.parser` — rules for the config block, block/register/command
  items, objects and whole devices, and `parse_str`.

## What this package does not do

It only parses. It does not check a parsed description for meaning beyond the
syntax (missing addresses, overlapping fields, invalid overrides in refs), does
not apply the config defaults, does not turn the tree into a lower-level model
and does not generate any code from it. There is no command-line tool.

## Running the tests

```
pip install .[test]
pytest
```