"""The subset of x86-64 instructions the decompiler understands."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

Address = int


class Register(Enum):
    EAX = "eax"
    R9D = "r9d"
    RAX = "rax"
    RBX = "rbx"
    RCX = "rcx"
    RDX = "rdx"
    RBP = "rbp"
    RSP = "rsp"
    RSI = "rsi"
    RDI = "rdi"
    R8 = "r8"
    R9 = "r9"
    R10 = "r10"
    R11 = "r11"
    R12 = "r12"
    R13 = "r13"
    R14 = "r14"
    R15 = "r15"


class Mnemonic(Enum):
    ADD = ("add", 2)
    SUB = ("sub", 2)
    AND = ("and", 2)
    XOR = ("xor", 2)
    MOV = ("mov", 2)
    CMOVE = ("cmove", 2)
    CMOVL = ("cmovl", 2)
    CMP = ("cmp", 2)
    CALL = ("call", 1)
    JMP = ("jmp", 1)
    JNE = ("jne", 1)
    JE = ("je", 1)
    JL = ("jl", 1)
    JG = ("jg", 1)
    PUSH = ("push", 1)
    POP = ("pop", 1)
    LEA = ("lea", 2)
    RET = ("ret", 0)

    def __init__(self, text: str, arity: int) -> None:
        self.text = text
        self.arity = arity


@dataclass(frozen=True)
class AddressArg:
    address: Address

    def __str__(self) -> str:
        return hex(self.address)


@dataclass(frozen=True)
class RegisterArg:
    register: Register

    def __str__(self) -> str:
        return self.register.value


@dataclass(frozen=True)
class OffsetArg:
    register: Register
    offset: int

    def __str__(self) -> str:
        sign = "-" if self.offset < 0 else "+"
        return f"[{self.register.value}{sign}{abs(self.offset):#x}]"


@dataclass(frozen=True)
class LiteralArg:
    value: int

    def __str__(self) -> str:
        return hex(self.value)


Arg = Union[AddressArg, RegisterArg, OffsetArg, LiteralArg]


@dataclass(frozen=True)
class Instruction:
    mnemonic: Mnemonic
    operands: tuple = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "operands", tuple(self.operands))
        if len(self.operands) != self.mnemonic.arity:
            raise ValueError(
                f"{self.mnemonic.text} takes {self.mnemonic.arity} operand(s), "
                f"got {len(self.operands)}"
            )

    def __str__(self) -> str:
        if not self.operands:
            return self.mnemonic.text
        return f"{self.mnemonic.text} " + ", ".join(str(op) for op in self.operands)