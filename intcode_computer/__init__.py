"""
Intcode Computer
================
A small virtual machine for the Intcode instruction encoding: integer
memory shared by code and data, an instruction pointer, a relative base
register and a pluggable I/O channel.

Architecture:
    ┌──────────┐    ┌──────────┐    ┌──────────┐    ┌───────────┐
    │ Program  │───>│  Memory  │───>│ Decoder  │───>│  Computer │<──> ComputerIo
    │ (text)   │    │ (tape)   │    │ (instr)  │    │ (run loop)│     (console/buffer/serial)
    └──────────┘    └──────────┘    └──────────┘    └───────────┘

    - program.py:        parse / format comma-separated program text
    - mem/memory.py:     growable zero-filled integer tape
    - cpu/decoder.py:    raw cell -> Instruction, strict validation
    - cpu/disasm.py:     linear-sweep listing
    - cpu/regs.py:       instruction pointer, relative base, step counter
    - computer.py:       fetch/decode/execute loop, ExecutionState, faults
    - periph/:           I/O channels (ComputerIo implementations)
"""

__version__ = "0.9.0"

from .computer import (
    Computer, ComputerFault, ExecutionState, Status, RUNNING, WAITING_ON_INPUT,
)
from .cpu.decoder import DecodeError, Instruction, Opcode, ParameterMode, decode
from .mem.memory import Memory, NegativeAddress
from .periph.base import ComputerIo
from .periph.buffer import BufferIo
from .periph.console import StandardIo
from .program import ProgramFormatError, format_program, load_program_file, parse_program


def run_program(program, inputs=()):
    """Run a program with queued inputs on a fresh Computer.

    Returns (ExecutionState, outputs). The state is WAITING_ON_INPUT if
    the inputs ran out before the program halted.

    Args:
        program: program cells, or program text ("1,0,0,3,99").
        inputs: values to queue for IN instructions.
    """
    if isinstance(program, str):
        program = parse_program(program)
    io = BufferIo(inputs)
    state = Computer(program, io).run()
    return state, io.outputs
