"""Decoding of x86-64 machine code into the supported instruction subset."""

from __future__ import annotations

from dataclasses import dataclass

from .isa import (
    AddressArg,
    Instruction,
    LiteralArg,
    Mnemonic,
    OffsetArg,
    Register,
    RegisterArg,
)

_MASK64 = (1 << 64) - 1

_NAMES64 = ["rax", "rcx", "rdx", "rbx", "rsp", "rbp", "rsi", "rdi",
            "r8", "r9", "r10", "r11", "r12", "r13", "r14", "r15"]
_NAMES32 = ["eax", "ecx", "edx", "ebx", "esp", "ebp", "esi", "edi",
            "r8d", "r9d", "r10d", "r11d", "r12d", "r13d", "r14d", "r15d"]

_GROUP1 = {0: Mnemonic.ADD, 4: Mnemonic.AND, 5: Mnemonic.SUB, 6: Mnemonic.XOR, 7: Mnemonic.CMP}
_RM_REG_OPS = {0x01: Mnemonic.ADD, 0x21: Mnemonic.AND, 0x29: Mnemonic.SUB, 0x31: Mnemonic.XOR}
_JCC = {0x4: Mnemonic.JE, 0x5: Mnemonic.JNE, 0xC: Mnemonic.JL, 0xF: Mnemonic.JG}


class DecodeError(Exception):
    """Raised for bytes that are not a supported instruction."""


@dataclass(frozen=True)
class DecodedInstruction:
    ip: int
    length: int
    instruction: Instruction


@dataclass(frozen=True)
class _Memory:
    base: object  # register index, "rip" or None
    disp: int


class _Cursor:
    def __init__(self, data: bytes, offset: int) -> None:
        self.data = data
        self.start = offset
        self.pos = offset

    def take(self, n: int) -> bytes:
        if self.pos + n > len(self.data):
            raise DecodeError("truncated instruction")
        chunk = self.data[self.pos:self.pos + n]
        self.pos += n
        return chunk

    def u8(self) -> int:
        return self.take(1)[0]

    def i8(self) -> int:
        return int.from_bytes(self.take(1), "little", signed=True)

    def i32(self) -> int:
        return int.from_bytes(self.take(4), "little", signed=True)

    def u32(self) -> int:
        return int.from_bytes(self.take(4), "little")

    @property
    def length(self) -> int:
        return self.pos - self.start


def _register(index: int, bits: int) -> Register:
    name = (_NAMES64 if bits == 64 else _NAMES32)[index]
    try:
        return Register(name)
    except ValueError:
        raise DecodeError(f"unsupported register {name}") from None


def _reg_arg(index: int, bits: int) -> RegisterArg:
    return RegisterArg(_register(index, bits))


def _modrm(cur: _Cursor, rex: int):
    byte = cur.u8()
    mod, reg, rm = byte >> 6, (byte >> 3) & 7, byte & 7
    reg |= (rex & 4) << 1
    rex_b = (rex & 1) << 3
    if mod == 3:
        return reg, rm | rex_b
    disp = 0
    if rm == 4:
        sib = cur.u8()
        low = sib & 7
        if low == 5 and mod == 0:
            base = None
            disp = cur.i32()
        else:
            base = low | rex_b
    elif rm == 5 and mod == 0:
        base = "rip"
        disp = cur.i32()
    else:
        base = rm | rex_b
    if mod == 1:
        disp = cur.i8()
    elif mod == 2:
        disp = cur.i32()
    return reg, _Memory(base, disp)


def _require_register(rm, bits: int) -> RegisterArg:
    if isinstance(rm, _Memory):
        raise DecodeError("expected a register operand, found memory")
    return _reg_arg(rm, bits)


def _offset_arg(mem: _Memory) -> OffsetArg:
    if not isinstance(mem.base, int):
        raise DecodeError("unsupported memory base")
    return OffsetArg(_register(mem.base, 64), mem.disp)


def _sign_immediate(value: int, bits: int) -> int:
    return value & ((1 << bits) - 1)


def decode_one(data: bytes, offset: int, ip: int) -> DecodedInstruction:
    """Decode the instruction at ``data[offset]``, which lives at address ``ip``."""
    cur = _Cursor(data, offset)
    rex = 0
    op = cur.u8()
    while 0x40 <= op <= 0x4F:
        rex = op
        op = cur.u8()
    wide = bool(rex & 8)
    bits = 64 if wide else 32
    rex_b = (rex & 1) << 3

    def done(mnemonic, *operands):
        return DecodedInstruction(ip, cur.length, Instruction(mnemonic, operands))

    def branch_target(rel: int) -> int:
        return (ip + cur.length + rel) & _MASK64

    if 0x50 <= op <= 0x57:
        return done(Mnemonic.PUSH, _reg_arg((op - 0x50) | rex_b, 64))
    if 0x58 <= op <= 0x5F:
        return done(Mnemonic.POP, _reg_arg((op - 0x58) | rex_b, 64))
    if op == 0xC3:
        return done(Mnemonic.RET)
    if op == 0xE8:
        rel = cur.i32()
        return done(Mnemonic.CALL, AddressArg(branch_target(rel)))
    if op == 0xEB:
        rel = cur.i8()
        return done(Mnemonic.JMP, AddressArg(branch_target(rel)))
    if op in (0x74, 0x75, 0x7C, 0x7F):
        rel = cur.i8()
        return done(_JCC[op & 0xF], AddressArg(branch_target(rel)))
    if op == 0x0F:
        op2 = cur.u8()
        if op2 in (0x84, 0x85, 0x8C, 0x8F):
            rel = cur.i32()
            return done(_JCC[op2 & 0xF], AddressArg(branch_target(rel)))
        if op2 in (0x44, 0x4C) and wide:
            reg, rm = _modrm(cur, rex)
            mnemonic = Mnemonic.CMOVE if op2 == 0x44 else Mnemonic.CMOVL
            return done(mnemonic, _reg_arg(reg, 64), _require_register(rm, 64))
        raise DecodeError(f"unsupported opcode 0f {op2:02x}")
    if op == 0xFF:
        reg, rm = _modrm(cur, rex)
        if reg & 7 == 4:
            return done(Mnemonic.JMP, _require_register(rm, 64))
        raise DecodeError(f"unsupported opcode ff /{reg & 7}")
    if op in (0x83, 0x81):
        reg, rm = _modrm(cur, rex)
        ext = reg & 7
        mnemonic = _GROUP1.get(ext)
        if mnemonic is None or (mnemonic is Mnemonic.CMP and (op != 0x83 or not wide)):
            raise DecodeError(f"unsupported opcode {op:02x} /{ext}")
        imm = cur.i8() if op == 0x83 else cur.i32()
        return done(mnemonic, _require_register(rm, bits), LiteralArg(_sign_immediate(imm, bits)))
    if op in _RM_REG_OPS:
        reg, rm = _modrm(cur, rex)
        return done(_RM_REG_OPS[op], _require_register(rm, bits), _reg_arg(reg, bits))
    if op in (0x89, 0x8B):
        reg, rm = _modrm(cur, rex)
        rm_arg = _offset_arg(rm) if isinstance(rm, _Memory) else _reg_arg(rm, bits)
        reg_arg = _reg_arg(reg, bits)
        if op == 0x89:
            return done(Mnemonic.MOV, rm_arg, reg_arg)
        return done(Mnemonic.MOV, reg_arg, rm_arg)
    if 0xB8 <= op <= 0xBF and not wide:
        dst = _reg_arg((op - 0xB8) | rex_b, 32)
        return done(Mnemonic.MOV, dst, LiteralArg(cur.u32()))
    if op == 0x8D and wide:
        reg, rm = _modrm(cur, rex)
        if not isinstance(rm, _Memory):
            raise DecodeError("lea requires a memory operand")
        if rm.base == "rip":
            address = (ip + cur.length + rm.disp) & _MASK64
        else:
            address = rm.disp & _MASK64
        return done(Mnemonic.LEA, _reg_arg(reg, 64), AddressArg(address))
    raise DecodeError(f"unsupported opcode {op:02x}")


def decode_instructions(data: bytes, start_ip: int, end_ip: int) -> list:
    """Decode ``data`` (located at ``start_ip``) up to and including address ``end_ip``."""
    decoded = []
    offset = 0
    ip = start_ip
    while offset < len(data) and ip <= end_ip:
        try:
            item = decode_one(data, offset, ip)
        except DecodeError as exc:
            raise DecodeError(
                f"errored at instruction {len(decoded)} ({ip:#x}) with error {exc}"
            ) from exc
        decoded.append(item)
        offset += item.length
        ip += item.length
    return decoded