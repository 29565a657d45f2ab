"""
Intcode Computer — Instruction Decoder

Maps a raw memory cell to a typed Instruction (opcode + one addressing
mode per parameter). The decoder is a pure function: it never touches
memory and the same raw value always yields the same Instruction or the
same DecodeError.

Encoding (decimal digits, right to left):
  DE      two-digit opcode
  C       mode of parameter 1
  B       mode of parameter 2
  A       mode of parameter 3

  e.g. 1002 -> opcode 02 (MUL), modes 0, 1, 0 (position, immediate, position)

Addressing modes:
  POSITION   0   operand is an address
  IMMEDIATE  1   operand is a literal value
  RELATIVE   2   operand is an offset from the relative base register

Decoding is strict. Anything that is not exactly a well-formed
instruction is rejected, including leading digits beyond the modes the
opcode uses. A program that starts writing junk over its own code is
caught at the first corrupted instruction instead of running on as a
differently shaped one.
"""

from __future__ import annotations
import enum
from dataclasses import dataclass
from typing import Optional, Tuple

from ..config import MIN_INSTRUCTION, MAX_INSTRUCTION, OPCODE_DIVISOR, MODE_BASE


class DecodeError(ValueError):
    """Raised when a raw value is not a valid instruction."""
    def __init__(self, raw: int, reason: str):
        self.raw = raw
        self.reason = reason
        super().__init__(f"Bad instruction {raw}: {reason}")


# ──────────────────────────────────────────────
# Addressing modes and opcodes
# ──────────────────────────────────────────────

class ParameterMode(enum.IntEnum):
    POSITION = 0
    IMMEDIATE = 1
    RELATIVE = 2


class Opcode(enum.IntEnum):
    ADD = 1
    MULTIPLY = 2
    READ = 3
    WRITE = 4
    JUMP_IF_TRUE = 5
    JUMP_IF_FALSE = 6
    LESS_THAN = 7
    EQUALS = 8
    RELATIVE_BASE_OFFSET = 9
    HALT = 99


# Slot kinds: which modes a parameter slot accepts
IN = frozenset(ParameterMode)
OUT = frozenset({ParameterMode.POSITION, ParameterMode.RELATIVE})


# ──────────────────────────────────────────────
# Opcode table
# ──────────────────────────────────────────────
# Format: opcode -> (mnemonic, slot signature, ip_advance)
#
# ip_advance is applied only when the instruction does not redirect
# control flow. HALT has none: the run loop stops on it.

OPCODES = {
    Opcode.ADD:                  ('ADD', (IN, IN, OUT), 4),
    Opcode.MULTIPLY:             ('MUL', (IN, IN, OUT), 4),
    Opcode.READ:                 ('IN',  (OUT,),        2),
    Opcode.WRITE:                ('OUT', (IN,),         2),
    Opcode.JUMP_IF_TRUE:         ('JNZ', (IN, IN),      3),
    Opcode.JUMP_IF_FALSE:        ('JZ',  (IN, IN),      3),
    Opcode.LESS_THAN:            ('LT',  (IN, IN, OUT), 4),
    Opcode.EQUALS:               ('EQ',  (IN, IN, OUT), 4),
    Opcode.RELATIVE_BASE_OFFSET: ('ARB', (IN,),         2),
    Opcode.HALT:                 ('HLT', (),            None),
}


@dataclass(frozen=True)
class Instruction:
    """A decoded instruction. Immutable and hashable."""
    opcode: Opcode
    modes: Tuple[ParameterMode, ...] = ()

    @property
    def mnemonic(self) -> str:
        return OPCODES[self.opcode][0]

    @property
    def arity(self) -> int:
        return len(self.modes)

    @property
    def advance(self) -> int:
        """Instruction pointer increment when control flow is not redirected."""
        step = OPCODES[self.opcode][2]
        if step is None:
            raise ValueError(f"{self.mnemonic} has no instruction pointer advance")
        return step

    @property
    def output_slot(self) -> Optional[int]:
        """Index of the parameter that is written to, or None."""
        for index, allowed in enumerate(OPCODES[self.opcode][1]):
            if allowed is OUT:
                return index
        return None


def decode(raw: int) -> Instruction:
    """Decode a raw integer into an Instruction.

    Raises DecodeError for values outside [1, 99999], unknown opcodes,
    unknown mode digits, modes not legal for their slot (e.g. an
    immediate-mode write target) and superfluous leading digits.
    """
    if not MIN_INSTRUCTION <= raw <= MAX_INSTRUCTION:
        raise DecodeError(raw, "out of range")

    try:
        opcode = Opcode(raw % OPCODE_DIVISOR)
    except ValueError:
        raise DecodeError(raw, "opcode not valid") from None

    signature = OPCODES[opcode][1]
    modes = tuple(_decode_mode(raw, slot, allowed)
                  for slot, allowed in enumerate(signature, start=1))

    # Everything above the last mode digit the opcode uses must be zero
    if raw // MODE_BASE ** (len(signature) + 2) > 0:
        raise DecodeError(raw, "superfluous digits")

    return Instruction(opcode, modes)


def _decode_mode(raw: int, slot: int, allowed: frozenset) -> ParameterMode:
    """Pull out the mode digit for parameter `slot` (1-indexed)."""
    digit = raw // MODE_BASE ** (slot + 1) % MODE_BASE
    try:
        mode = ParameterMode(digit)
    except ValueError:
        raise DecodeError(raw, f"invalid parameter mode {digit} "
                               f"for parameter {slot}") from None
    if mode not in allowed:
        names = '/'.join(m.name for m in sorted(allowed))
        raise DecodeError(raw, f"parameter {slot} mode {mode.name} does not "
                               f"comply with the allowed modes {names}")
    return mode


# ──────────────────────────────────────────────
# Listing helpers (trace + disassembler)
# ──────────────────────────────────────────────

def format_operand(mode: ParameterMode, literal: int) -> str:
    if mode == ParameterMode.IMMEDIATE:
        return f"#{literal}"
    if mode == ParameterMode.RELATIVE:
        return f"[rb{literal:+d}]"
    return f"[{literal}]"


def format_instruction(instruction: Instruction, operands=()) -> str:
    """Render an instruction and its literal operands as a listing line.

    format_instruction(decode(1002), (4, 3, 4)) -> 'MUL  [4], #3, [4]'
    """
    args = ', '.join(format_operand(mode, literal)
                     for mode, literal in zip(instruction.modes, operands))
    return f"{instruction.mnemonic:4s} {args}".rstrip()
