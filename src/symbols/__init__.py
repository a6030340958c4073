"""Consumer-side symbol import."""

from symbols.importer import SymbolTable, load_unit, use_symbols

__all__ = ["SymbolTable", "load_unit", "use_symbols"]
