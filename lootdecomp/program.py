"""A decoded program: instructions, their addresses and symbols."""

from __future__ import annotations

from pathlib import Path

from .decode import DecodeError, decode_instructions
from .elffile import ElfError, ElfFile


class ProgramError(Exception):
    """Raised when a program cannot be loaded."""


class Program:
    """Instructions from the entry point onward, with address and symbol lookups."""

    def __init__(self, entry_point: int, instructions, addresses, symbols) -> None:
        self.entry_point = entry_point
        self.instructions = list(instructions)
        self._index_by_address = {}
        self._address_by_index = {}
        for index, address in enumerate(addresses):
            self._index_by_address[address] = index
            self._address_by_index[index] = address
        self._symbols_to_address = {}
        self._address_to_symbols = {}
        for name, address in symbols:
            self._symbols_to_address[name] = address
            self._address_to_symbols.setdefault(address, set()).add(name)

    def address_to_index(self, address: int):
        return self._index_by_address.get(address)

    def index_to_address(self, index: int):
        return self._address_by_index.get(index)

    def address_to_symbols(self, address: int) -> set:
        return set(self._address_to_symbols.get(address, ()))

    def symbol_to_address(self, symbol: str):
        return self._symbols_to_address.get(symbol)

    @classmethod
    def from_elf_bytes(cls, data: bytes) -> "Program":
        try:
            elf = ElfFile.parse(data)
            symbols = [(s.name, s.value) for s in elf.symbols()]
            text = elf.section_by_name(".text")
            if text is None:
                raise ProgramError("ELF file did not have a .text segment")
            code = elf.section_data(text)
        except ElfError as exc:
            raise ProgramError(str(exc)) from exc
        by_name = dict(symbols)
        if "entry" not in by_name:
            raise ProgramError(".text section of ELF file did not have entry symbol")
        entry = by_name["entry"]
        start = entry - text.addr
        if start < 0 or start > len(code):
            raise ProgramError("entry point lies outside the text section")
        if "err" not in by_name:
            raise ProgramError("could not find err label")
        end = by_name["err"] + 10
        try:
            decoded = decode_instructions(code[start:], entry, end)
        except DecodeError as exc:
            raise ProgramError(str(exc)) from exc
        return cls(
            entry,
            [d.instruction for d in decoded],
            [d.ip for d in decoded],
            symbols,
        )

    @classmethod
    def from_elf_file(cls, path) -> "Program":
        try:
            data = Path(path).read_bytes()
        except OSError as exc:
            raise ProgramError(f"Failed to read ELF file: {exc}") from exc
        return cls.from_elf_bytes(data)