"""Recovery of Loot expressions from compiled instruction sequences."""

from __future__ import annotations

from .isa import AddressArg, Instruction, LiteralArg, Mnemonic, Register, RegisterArg
from .loot import (
    Begin,
    BooleanDatum,
    CharacterDatum,
    If,
    IntegerDatum,
    Literal,
    LootProgram,
    Op,
    Operation,
    OpKind,
    Unknown,
)


class DecompileError(Exception):
    """Raised when instructions do not form a recognisable program."""


class _Hole:
    def __init__(self, kind) -> None:
        self.kind = kind


def _reg(register: Register) -> RegisterArg:
    return RegisterArg(register)


def _ins(mnemonic: Mnemonic, *operands) -> Instruction:
    return Instruction(mnemonic, operands)


_LIT = _Hole(LiteralArg)
_ADDR = _Hole(AddressArg)
_ACC = (Register.EAX, Register.RAX)
_R9, _R8, _RAX, _R15, _RSP = (_reg(r) for r in (
    Register.R9, Register.R8, Register.RAX, Register.R15, Register.RSP))

_CALL = [
    _ins(Mnemonic.MOV, _R15, _RSP),
    _ins(Mnemonic.AND, _R15, LiteralArg(0x8)),
    _ins(Mnemonic.SUB, _RSP, _R15),
    _ins(Mnemonic.CALL, _ADDR),
    _ins(Mnemonic.ADD, _RSP, _R15),
]


def _int_check(source: RegisterArg) -> list:
    return [
        _ins(Mnemonic.MOV, _R9, source),
        _ins(Mnemonic.AND, _R9, LiteralArg(0xF)),
        _ins(Mnemonic.CMP, _R9, LiteralArg(0x0)),
        _ins(Mnemonic.JNE, _ADDR),
    ]


_INT_CHECK = _int_check(_RAX)
_PLUS_CHECK = [_ins(Mnemonic.POP, _R8)] + _int_check(_R8) + _int_check(_RAX)
_PROLOGUE = [
    _ins(Mnemonic.PUSH, _reg(Register.RBX)),
    _ins(Mnemonic.PUSH, _R15),
    _ins(Mnemonic.MOV, _reg(Register.RBX), _reg(Register.RDI)),
]


def _match(instrs, pos: int, template):
    """Return captured operands if ``template`` matches at ``pos``, else None."""
    if pos < 0 or pos + len(template) > len(instrs):
        return None
    captures = []
    for actual, expected in zip(instrs[pos:], template):
        if actual.mnemonic != expected.mnemonic:
            return None
        for got, want in zip(actual.operands, expected.operands):
            if isinstance(want, _Hole):
                if not isinstance(got, want.kind):
                    return None
                captures.append(got)
            elif got != want:
                return None
    return captures


def _match_acc(instrs, pos: int, build):
    for register in _ACC:
        found = _match(instrs, pos, build(_reg(register)))
        if found is not None:
            return found
    return None


def _fold(exprs: list):
    if not exprs:
        raise DecompileError("no expression was recognised")
    expr = exprs.pop()
    while exprs:
        expr = Begin(exprs.pop(), expr)
    return expr


def _pop(items: list, what: str):
    if not items:
        raise DecompileError(f"missing operand for {what}")
    return items.pop()


def _symbol(program, name: str) -> int:
    address = program.symbol_to_address(name)
    if address is None:
        raise DecompileError(f"program has no {name} symbol")
    return address


def _index(program, address: int) -> int:
    index = program.address_to_index(address)
    if index is None:
        raise DecompileError(f"no instruction at address {address:#x}")
    return index


def parse_const(lit: int):
    """Decode a tagged immediate value into an expression, or None."""
    if lit == 0b011000:
        return Literal(BooleanDatum(True))
    if lit == 0b111000:
        return Literal(BooleanDatum(False))
    if lit == 0b1111000:
        return Op(Operation(OpKind.VOID))
    if lit & 0b11111 == 0b01000:
        code = lit >> 5
        if code > 0x10FFFF or 0xD800 <= code <= 0xDFFF:
            return None
        return Literal(CharacterDatum(chr(code)))
    if lit & 0b1111 == 0:
        return Literal(IntegerDatum(lit >> 4))
    return None


def parse_expr(program, position: int, stop, stack: list):
    """Parse expressions from ``position`` until ``stop`` or unrecognised code."""
    instrs = program.instructions
    exprs = []
    pos = position
    err_label = _symbol(program, "err")

    while stop is None or pos < stop:
        expr, new_pos = Unknown(), pos

        found = _match_acc(instrs, pos, lambda acc: [_ins(Mnemonic.MOV, acc, _LIT)])
        if found is not None:
            expr = parse_const(found[0].value)
            if expr is None:
                raise DecompileError(f"unrecognised constant {found[0].value:#x}")
            new_pos = pos + 1
        elif (found := _match(instrs, pos, _CALL)) is not None:
            target = found[0].address
            if target == _symbol(program, "read_byte"):
                expr = Op(Operation(OpKind.READ_BYTE))
            elif target == _symbol(program, "peek_byte"):
                expr = Op(Operation(OpKind.PEEK_BYTE))
            else:
                raise DecompileError(f"unsupported call target {target:#x}")
            new_pos = pos + 5
        elif (found := _match(instrs, pos, _INT_CHECK)) is not None:
            if found[0].address != err_label:
                raise DecompileError("expected jump to err label")
            if _match(instrs, pos + 4, [_ins(Mnemonic.ADD, _RAX, LiteralArg(0x10))]) is None:
                raise DecompileError("unsupported operation after integer check")
            expr = Op(Operation(OpKind.ADD1, (_pop(exprs, "add1"),)))
            new_pos = pos + 5
        elif _match_acc(instrs, pos, lambda acc: [_ins(Mnemonic.PUSH, acc)]) is not None:
            stack.append(_fold(exprs))
            expr, new_pos = parse_expr(program, pos + 1, None, stack)
        elif (found := _match(instrs, pos, _PLUS_CHECK)) is not None:
            if any(label.address != err_label for label in found):
                raise DecompileError("expected jump to err label")
            if _match(instrs, pos + 9, [_ins(Mnemonic.ADD, _RAX, _R8)]) is None:
                raise DecompileError("unsupported binary operation")
            first = _pop(stack, "+")
            second = _pop(exprs, "+")
            expr = Op(Operation(OpKind.PLUS, (first, second)))
            new_pos = pos + 10
        elif (found := _match_acc(
            instrs, pos,
            lambda acc: [_ins(Mnemonic.CMP, acc, _LIT), _ins(Mnemonic.JE, _ADDR)],
        )) is not None:
            false_index = _index(program, found[1].address)
            jmp_loc = false_index - 1
            if_true = parse_expr(program, pos + 2, jmp_loc, stack)[0]
            jump = instrs[jmp_loc] if 0 <= jmp_loc < len(instrs) else None
            if jump is None or _match(instrs, jmp_loc, [_ins(Mnemonic.JMP, _ADDR)]) is None:
                raise DecompileError(
                    "parsing failed while trying to find end jump for if statement")
            if_end = _index(program, jump.operands[0].address)
            if_false = parse_expr(program, false_index, if_end, stack)[0]
            expr = If(_pop(exprs, "if"), if_true, if_false)
            new_pos = if_end

        pos = new_pos
        if isinstance(expr, Unknown):
            break
        exprs.append(expr)

    return _fold(exprs), pos


def parse_defines(program, position: int):
    """Return the definitions at ``position``; none are recognised yet."""
    return [], position + 1


def parse(program) -> LootProgram:
    """Decompile a whole program."""
    if _match(program.instructions, 0, _PROLOGUE) is None:
        raise DecompileError("Unable to parse loot program")
    defines, start = parse_defines(program, 3)
    end = _index(program, _symbol(program, "err")) - 4
    expr = parse_expr(program, start, end, [])[0]
    return LootProgram(defines, expr)