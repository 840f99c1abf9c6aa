"""Decompiler that turns Loot-compiled x86-64 ELF binaries back into Racket source."""

__version__ = "0.1.0"

__all__ = ["__version__"]