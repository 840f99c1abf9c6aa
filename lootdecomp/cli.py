"""Command line entry point."""

from __future__ import annotations

import argparse
import sys

from .decompiler import DecompileError, parse
from .program import Program, ProgramError


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Decompile a compiled Loot program.")
    parser.add_argument("program", help="path of the ELF executable")
    args = parser.parse_args(argv)
    try:
        program = Program.from_elf_file(args.program)
        loot_program = parse(program)
    except (ProgramError, DecompileError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print("Decompiled Program:")
    print(loot_program)
    return 0


if __name__ == "__main__":
    sys.exit(main())