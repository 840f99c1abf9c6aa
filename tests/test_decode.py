import pytest

from lootdecomp.decode import DecodeError, decode_instructions, decode_one
from lootdecomp.isa import (
    AddressArg,
    Instruction,
    LiteralArg,
    Mnemonic,
    OffsetArg,
    Register,
    RegisterArg,
)


def one(hexbytes, ip=0x1000):
    return decode_one(bytes.fromhex(hexbytes), 0, ip)


def reg(r):
    return RegisterArg(r)


def test_push_pop_ret():
    assert one("53").instruction == Instruction(Mnemonic.PUSH, (reg(Register.RBX),))
    d = one("4157")
    assert d.instruction == Instruction(Mnemonic.PUSH, (reg(Register.R15),))
    assert d.length == 2
    assert one("5b").instruction.mnemonic is Mnemonic.POP
    assert one("c3").instruction == Instruction(Mnemonic.RET)


def test_mov_register_forms():
    assert one("4889fb").instruction == Instruction(
        Mnemonic.MOV, (reg(Register.RBX), reg(Register.RDI))
    )
    assert one("4989c1").instruction == Instruction(
        Mnemonic.MOV, (reg(Register.R9), reg(Register.RAX))
    )


def test_mov_immediate():
    d = one("b818000000")
    assert d.instruction == Instruction(Mnemonic.MOV, (reg(Register.EAX), LiteralArg(0x18)))
    assert d.length == 5


def test_mov_memory_operands():
    assert one("488945f8").instruction == Instruction(
        Mnemonic.MOV, (OffsetArg(Register.RBP, -8), reg(Register.RAX))
    )
    assert one("488b442408").instruction == Instruction(
        Mnemonic.MOV, (reg(Register.RAX), OffsetArg(Register.RSP, 8))
    )


def test_arithmetic_immediates():
    assert one("4883c010").instruction == Instruction(
        Mnemonic.ADD, (reg(Register.RAX), LiteralArg(0x10))
    )
    assert one("4983e708").instruction == Instruction(
        Mnemonic.AND, (reg(Register.R15), LiteralArg(0x8))
    )
    assert one("4983f900").instruction == Instruction(
        Mnemonic.CMP, (reg(Register.R9), LiteralArg(0))
    )


def test_negative_immediate_is_sign_extended():
    lit = one("4883c4f8").instruction.operands[1]
    assert lit == LiteralArg((1 << 64) - 8)


def test_register_register_arithmetic():
    assert one("4c29fc").instruction == Instruction(
        Mnemonic.SUB, (reg(Register.RSP), reg(Register.R15))
    )


def test_branches_resolve_targets():
    assert one("7505").instruction == Instruction(Mnemonic.JNE, (AddressArg(0x1007),))
    assert one("e800000000").instruction == Instruction(Mnemonic.CALL, (AddressArg(0x1005),))
    assert one("0f8400000000").instruction.operands == (AddressArg(0x1006),)
    assert one("ebfe").instruction.operands == (AddressArg(0x1000),)


def test_lea_rip_relative():
    d = one("488d0510000000")
    assert d.instruction == Instruction(Mnemonic.LEA, (reg(Register.RAX), AddressArg(0x1017)))


def test_unsupported_opcode_and_register():
    with pytest.raises(DecodeError):
        one("90")
    with pytest.raises(DecodeError):
        one("b901000000")
    with pytest.raises(DecodeError):
        one("b8")


def test_decode_instructions_stops_after_end():
    code = bytes.fromhex("53" "4157" "c3" "90")
    out = decode_instructions(code, 0x2000, 0x2003)
    assert [d.ip for d in out] == [0x2000, 0x2001, 0x2003]
    assert out[-1].instruction.mnemonic is Mnemonic.RET


def test_decode_instructions_reports_position():
    with pytest.raises(DecodeError, match="instruction 1"):
        decode_instructions(bytes.fromhex("5390"), 0x2000, 0x3000)