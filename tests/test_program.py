import struct

import pytest

from lootdecomp.isa import Instruction, LiteralArg, Mnemonic, Register, RegisterArg
from lootdecomp.program import Program, ProgramError

CODE = bytes.fromhex("53 4157 4889fb 4883c308 b850000000 415f 5b c3 c3 c3")
BASE = 0x401000


def build_elf(text, text_addr, symbols):
    strtab = b"\0"
    syms = struct.pack("<IBBHQQ", 0, 0, 0, 0, 0, 0)
    for name, value in symbols:
        syms += struct.pack("<IBBHQQ", len(strtab), 0, 0, 1, value, 0)
        strtab += name.encode() + b"\0"
    shstr = b"\0.text\0.symtab\0.strtab\0.shstrtab\0"
    off_str = 64 + len(text)
    off_sym = off_str + len(strtab)
    off_shs = off_sym + len(syms)
    shoff = off_shs + len(shstr)
    sh = lambda *f: struct.pack("<IIQQQQIIQQ", *f)
    headers = (
        sh(0, 0, 0, 0, 0, 0, 0, 0, 0, 0)
        + sh(1, 1, 6, text_addr, 64, len(text), 0, 0, 16, 0)
        + sh(7, 2, 0, 0, off_sym, len(syms), 3, 1, 8, 24)
        + sh(15, 3, 0, 0, off_str, len(strtab), 0, 0, 1, 0)
        + sh(23, 3, 0, 0, off_shs, len(shstr), 0, 0, 1, 0)
    )
    ident = b"\x7fELF" + bytes([2, 1, 1]) + bytes(9)
    header = ident + struct.pack(
        "<HHIQQQIHHHHHH", 2, 62, 1, text_addr, 0, shoff, 0, 64, 0, 0, 64, 5, 4)
    return header + text + strtab + syms + shstr + headers


def load():
    return Program.from_elf_bytes(
        build_elf(CODE, BASE, [("entry", BASE), ("err", BASE + 20), ("start", BASE)]))


def test_decodes_instructions():
    program = load()
    assert program.entry_point == BASE
    assert len(program.instructions) == 10
    assert program.instructions[4] == Instruction(
        Mnemonic.MOV, (RegisterArg(Register.EAX), LiteralArg(0x50)))


def test_address_index_round_trip():
    program = load()
    for index in range(len(program.instructions)):
        assert program.address_to_index(program.index_to_address(index)) == index
    assert program.address_to_index(BASE + 20) == 9
    assert program.address_to_index(BASE + 2) is None


def test_symbols():
    program = load()
    assert program.address_to_symbols(BASE) == {"entry", "start"}
    assert program.address_to_symbols(BASE + 1) == set()
    assert program.symbol_to_address("err") == BASE + 20
    assert program.symbol_to_address("missing") is None


def test_missing_entry():
    with pytest.raises(ProgramError, match="entry"):
        Program.from_elf_bytes(build_elf(CODE, BASE, [("err", BASE + 20)]))


def test_missing_err():
    with pytest.raises(ProgramError, match="err label"):
        Program.from_elf_bytes(build_elf(CODE, BASE, [("entry", BASE)]))


def test_missing_file(tmp_path):
    with pytest.raises(ProgramError):
        Program.from_elf_file(tmp_path / "absent")