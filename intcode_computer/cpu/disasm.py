"""
Intcode Computer — Linear-Sweep Disassembler

Code and data share one address space, so a static listing can only
guess where instructions are. This walks forward from `start`, decoding
whatever it finds; cells that don't decode (or whose operands would run
off the end of the image) are listed as DATA and the sweep moves on by
one cell.
"""

from typing import Iterator, Sequence, Tuple

from .decoder import DecodeError, decode, format_instruction


def disassemble(cells: Sequence[int], start: int = 0) -> Iterator[Tuple[int, str]]:
    """Yield (address, listing text) for every instruction or data cell."""
    addr = start
    while addr < len(cells):
        raw = cells[addr]
        try:
            instruction = decode(raw)
        except DecodeError:
            yield addr, f"DATA {raw}"
            addr += 1
            continue

        end = addr + 1 + instruction.arity
        if end > len(cells):
            yield addr, f"DATA {raw}"
            addr += 1
            continue

        yield addr, format_instruction(instruction, cells[addr + 1:end])
        addr = end


def listing(cells: Sequence[int], start: int = 0) -> str:
    """Disassemble into a printable listing, one line per entry."""
    return '\n'.join(f"{addr:5d}: {text}" for addr, text in disassemble(cells, start))
