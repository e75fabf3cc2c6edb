"""Parser for a device description language of registers, commands, buffers and blocks."""

__version__ = "1.0.5"

__all__ = ["boundary", "hir", "lexer", "parse_items", "parser"]