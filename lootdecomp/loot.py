"""Abstract syntax of Loot programs and their rendering as Racket source."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

Id = int


def _debug_string(text: str) -> str:
    escapes = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\t": "\\t", "\r": "\\r", "\0": "\\0"}
    return '"' + "".join(escapes.get(ch, ch) for ch in text) + '"'


@dataclass(frozen=True)
class IntegerDatum:
    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class BooleanDatum:
    value: bool

    def __str__(self) -> str:
        return "#t" if self.value else "#f"


@dataclass(frozen=True)
class CharacterDatum:
    value: str

    def __post_init__(self) -> None:
        if len(self.value) != 1:
            raise ValueError("a character datum holds exactly one character")

    def __str__(self) -> str:
        return f"#\\{self.value}"


@dataclass(frozen=True)
class StringDatum:
    value: str

    def __str__(self) -> str:
        return _debug_string(self.value)


Datum = Union[IntegerDatum, BooleanDatum, CharacterDatum, StringDatum]


class OpKind(Enum):
    """Primitive operations, with their printed name and arity."""

    READ_BYTE = ("read-byte", 0)
    PEEK_BYTE = ("peek-byte", 0)
    VOID = ("void", 0)
    ADD1 = ("add1", 1)
    SUB1 = ("sub1", 1)
    ZERO_HUH = ("zero?", 1)
    CHAR_HUH = ("char?", 1)
    INTEGER_TO_CHAR = ("integer->char", 1)
    CHAR_TO_INTEGER = ("char->integer", 1)
    WRITE_BYTE = ("write-byte", 1)
    EOF_OBJECT_HUH = ("", 1)
    BOX = ("box", 1)
    CAR = ("car", 1)
    CDR = ("cdr", 1)
    UNBOX = ("unbox", 1)
    EMPTY_HUH = ("empty?", 1)
    CONS_HUH = ("cons?", 1)
    BOX_HUH = ("box?", 1)
    VECTOR_HUH = ("vector?", 1)
    VECTOR_LENGTH = ("vector-length", 1)
    STRING_HUH = ("string?", 1)
    STRING_LENGTH = ("string-length", 1)
    PLUS = ("+", 2)
    SUB = ("-", 2)
    LESS = ("<", 2)
    EQUAL = ("equal?", 2)
    EQ_HUH = ("eq?", 2)
    CONS = ("cons", 2)
    MAKE_VECTOR = ("make-vector", 2)
    VECTOR_REF = ("vector-ref", 2)
    MAKE_STRING = ("make-string", 2)
    STRING_REF = ("string-ref", 2)
    VECTOR_SET_BANG = ("vector-set!", 3)

    def __init__(self, label: str, arity: int) -> None:
        self.label = label
        self.arity = arity


@dataclass
class Operation:
    kind: OpKind
    args: tuple = ()

    def __post_init__(self) -> None:
        self.args = tuple(self.args)
        if len(self.args) != self.kind.arity:
            raise ValueError(
                f"{self.kind.name} takes {self.kind.arity} argument(s), got {len(self.args)}"
            )

    def __str__(self) -> str:
        return self.kind.label + "".join(f" {arg}" for arg in self.args)


@dataclass
class VarPattern:
    id: Id

    def __str__(self) -> str:
        return f"({self!r})"


@dataclass
class LiteralPattern:
    datum: Datum

    def __str__(self) -> str:
        return f"({self!r})"


@dataclass
class BoxPattern:
    inner: object

    def __str__(self) -> str:
        return f"({self!r})"


@dataclass
class ConsPattern:
    head: object
    tail: object

    def __str__(self) -> str:
        return f"({self!r})"


@dataclass
class ConjPattern:
    left: object
    right: object

    def __str__(self) -> str:
        return f"({self!r})"


@dataclass
class Literal:
    datum: Datum

    def __str__(self) -> str:
        return str(self.datum)


@dataclass
class Op:
    operation: Operation

    def __str__(self) -> str:
        return f"({self.operation})"


@dataclass
class If:
    test: object
    then: object
    otherwise: object

    def __str__(self) -> str:
        return f"(if {self.test} {self.then} {self.otherwise})"


@dataclass
class Begin:
    first: object
    second: object

    def __str__(self) -> str:
        return f"(begin\n  {self.first}\n  {self.second})"


@dataclass
class Let:
    id: Id
    value: object
    body: object

    def __str__(self) -> str:
        return f"(let ([var{self.id} {self.value}])\n  {self.body})"


@dataclass
class Var:
    id: Id

    def __str__(self) -> str:
        return f"var{self.id}"


@dataclass
class App:
    proc: object
    args: list = field(default_factory=list)

    def __str__(self) -> str:
        return f"({self.proc}" + "".join(f" {arg}" for arg in self.args) + ")"


@dataclass
class Match:
    scrutinee: object
    patterns: list = field(default_factory=list)
    bodies: list = field(default_factory=list)

    def __str__(self) -> str:
        return f"({self!r})"


@dataclass
class Lam:
    id: Id
    params: list = field(default_factory=list)
    body: object = None

    def __str__(self) -> str:
        return f"({self!r})"


@dataclass
class Unknown:
    """An expression the decompiler could not recognise."""

    def __repr__(self) -> str:
        return "Unknown"

    def __str__(self) -> str:
        return "(Unknown)"


Expr = Union[Literal, Op, If, Begin, Let, Var, App, Match, Lam, Unknown]


@dataclass
class Defn:
    id: Id
    params: list
    body: object

    def __str__(self) -> str:
        if self.params:
            params = "".join(f" var{p}" for p in self.params)
            return f"(define (defn{self.id}{params})\n  {self.body})"
        return f"(define defn{self.id} {self.body})"


@dataclass
class LootProgram:
    defines: list
    expr: object

    def __str__(self) -> str:
        return "#lang racket\n" + "".join(f"{d}\n" for d in self.defines) + str(self.expr)