# lootdecomp

`lootdecomp` reads an x86-64 ELF executable built by the Loot compiler. Loot
compiles a small subset of Racket. The package decodes the machine code that
starts at the `entry` symbol, up to the `err` label. From that code it rebuilds
the Racket expression the binary was compiled from.

The decompiler recognises the code patterns the compiler emits for:

- integer, boolean and character literals, and `(void)`
- `(read-byte)` and `(peek-byte)`
- `(add1 e)` and `(+ e1 e2)`
- `(if c t f)`
- sequences of expressions, shown as `(begin ...)`

## Installation

```sh
pip install .
```

The package uses only the Python standard library. It needs Python 3.10 or
newer.

## Command line

```sh
lootdecomp path/to/program
```

On success the command prints `Decompiled Program:` and then the recovered
source, which starts with `#lang racket`. For example:

```
Decompiled Program:
#lang racket
(add1 41)
```

If the file cannot be read, is not a usable ELF file, or cannot be
decompiled, the command prints `Error: ...` to standard error and exits with
status 1.

## Library use

```python
from lootdecomp.program import Program
from lootdecomp.decompiler import parse

binary = Program.from_elf_file("path/to/program")
print(parse(binary))
```

The modules are:

- `lootdecomp.elffile`: `ElfFile.parse` reads an ELF image. It gives sections
  (`section_by_name`, `section_data`) and the symbol table (`symbols`). It
  raises `ElfError` on malformed or compressed input.
- `lootdecomp.isa`: the supported instructions (`Instruction`, `Mnemonic`,
  `Register`) and operand kinds (`AddressArg`, `RegisterArg`, `OffsetArg`,
  `LiteralArg`).
- `lootdecomp.decode`: `decode_one` and `decode_instructions` turn machine code
  into `DecodedInstruction` values. They raise `DecodeError` on any opcode
  outside the supported subset.
- `lootdecomp.program`: `Program.from_elf_file` and `Program.from_elf_bytes`
  load a binary and raise `ProgramError` on failure. A `Program` holds
  `entry_point` and the list `instructions`. It also offers
  `symbol_to_address`, `address_to_symbols`, `address_to_index` and
  `index_to_address`.
- `lootdecomp.decompiler`: `parse`, `parse_expr`, `parse_const` and
  `parse_defines`. They raise `DecompileError` when the code does not form a
  recognisable program.
- `lootdecomp.loot`: the expression tree that `parse` returns. Printing a
  `LootProgram` gives its Racket source.

## Limitations

- Only the instructions listed in `lootdecomp.isa` are decoded. Any other
  machine instruction before the end of the program is reported as an error.
- Function definitions are not recovered. `parse_defines` always returns an
  empty list.
- Expression recovery stops quietly at the first instruction sequence it does
  not recognise. It keeps what it has parsed up to that point.
- `let`, variables, function application, `match` and lambdas exist in
  `lootdecomp.loot`, but the decompiler never produces them.

## Running the tests

```sh
pip install ".[test]"
pytest
```