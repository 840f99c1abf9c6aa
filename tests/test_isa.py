import pytest

from lootdecomp.isa import (
    AddressArg,
    Instruction,
    LiteralArg,
    Mnemonic,
    OffsetArg,
    Register,
    RegisterArg,
)


def test_register_lookup_by_name():
    assert Register("r15") is Register.R15
    with pytest.raises(ValueError):
        Register("ecx")


def test_operand_count_checked():
    with pytest.raises(ValueError):
        Instruction(Mnemonic.RET, (RegisterArg(Register.RAX),))
    with pytest.raises(ValueError):
        Instruction(Mnemonic.MOV, (RegisterArg(Register.RAX),))


def test_instructions_compare_by_value():
    a = Instruction(Mnemonic.PUSH, [RegisterArg(Register.RBX)])
    b = Instruction(Mnemonic.PUSH, (RegisterArg(Register.RBX),))
    assert a == b
    assert a.operands == (RegisterArg(Register.RBX),)


def test_rendering():
    assert str(Instruction(Mnemonic.RET)) == "ret"
    ins = Instruction(Mnemonic.MOV, (OffsetArg(Register.RBP, -8), RegisterArg(Register.RAX)))
    assert str(ins) == "mov [rbp-0x8], rax"
    assert str(Instruction(Mnemonic.JMP, (AddressArg(0x10),))) == "jmp 0x10"
    assert str(LiteralArg(16)) == "0x10"