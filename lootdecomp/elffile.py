"""A small reader for the parts of ELF files the decompiler needs."""

from __future__ import annotations

import struct
from dataclasses import dataclass

SHT_SYMTAB = 2
SHF_COMPRESSED = 0x800


class ElfError(Exception):
    """Raised when an ELF file cannot be read."""


@dataclass(frozen=True)
class ElfSymbol:
    name: str
    value: int


@dataclass(frozen=True)
class ElfSection:
    name: str
    type: int
    flags: int
    addr: int
    offset: int
    size: int
    link: int
    entsize: int


def _cstring(table: bytes, index: int) -> str:
    if index >= len(table):
        raise ElfError("Failed to lookup name associated with symbol")
    end = table.find(b"\0", index)
    if end < 0:
        end = len(table)
    try:
        return table[index:end].decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ElfError("symbol name is not valid UTF-8") from exc


class ElfFile:
    """A parsed ELF image: its sections and its symbol table."""

    def __init__(self, data: bytes, is64: bool, endian: str, sections: list) -> None:
        self.data = data
        self.is64 = is64
        self.endian = endian
        self.sections = sections

    @classmethod
    def parse(cls, data: bytes) -> "ElfFile":
        data = bytes(data)
        if len(data) < 16 or data[:4] != b"\x7fELF":
            raise ElfError("Failed to parse ELF file: bad magic")
        if data[4] not in (1, 2):
            raise ElfError("Failed to parse ELF file: unknown class")
        if data[5] not in (1, 2):
            raise ElfError("Failed to parse ELF file: unknown byte order")
        is64 = data[4] == 2
        endian = "<" if data[5] == 1 else ">"
        header = endian + ("HHIQQQIHHHHHH" if is64 else "HHIIIIIHHHHHH")
        try:
            fields = struct.unpack_from(header, data, 16)
        except struct.error as exc:
            raise ElfError("Failed to parse ELF file: truncated header") from exc
        shoff, shentsize, shnum, shstrndx = fields[5], fields[10], fields[11], fields[12]
        sh_format = endian + ("IIQQQQIIQQ" if is64 else "IIIIIIIIII")
        raw = []
        for number in range(shnum):
            try:
                raw.append(struct.unpack_from(sh_format, data, shoff + number * shentsize))
            except struct.error as exc:
                raise ElfError("Failed to parse section table in ELF file") from exc
        names = b""
        if raw and shstrndx < len(raw):
            entry = raw[shstrndx]
            names = data[entry[4]:entry[4] + entry[5]]
        sections = [
            ElfSection(
                name=_cstring(names, entry[0]) if names else "",
                type=entry[1],
                flags=entry[2],
                addr=entry[3],
                offset=entry[4],
                size=entry[5],
                link=entry[6],
                entsize=entry[9],
            )
            for entry in raw
        ]
        return cls(data, is64, endian, sections)

    def section_by_name(self, name: str):
        """Return the section called ``name``, or None."""
        return next((s for s in self.sections if s.name == name), None)

    def section_data(self, section: ElfSection) -> bytes:
        if section.flags & SHF_COMPRESSED:
            raise ElfError("ELF file had compression header")
        end = section.offset + section.size
        if end > len(self.data):
            raise ElfError(f"section {section.name} extends past end of file")
        return self.data[section.offset:end]

    def symbols(self) -> list:
        """Return every entry of the symbol table, in order."""
        table = next((s for s in self.sections if s.type == SHT_SYMTAB), None)
        if table is None:
            raise ElfError("ELF file did not have a symbol table")
        if table.link >= len(self.sections):
            raise ElfError("Failed to parse symbol table in ELF file")
        strings = self.section_data(self.sections[table.link])
        body = self.section_data(table)
        if self.is64:
            fmt, name_at, value_at = self.endian + "IBBHQQ", 0, 4
        else:
            fmt, name_at, value_at = self.endian + "IIIBBH", 0, 1
        size = struct.calcsize(fmt)
        step = table.entsize or size
        return [
            ElfSymbol(_cstring(strings, entry[name_at]), entry[value_at])
            for entry in (
                struct.unpack_from(fmt, body, start)
                for start in range(0, len(body) - size + 1, step)
            )
        ]