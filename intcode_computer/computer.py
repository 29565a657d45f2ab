"""
Intcode Computer — Main Execution Engine

This is the top-level class that integrates:
  - Registers (cpu/regs.py): instruction pointer, relative base
  - Memory (mem/memory.py): growable integer tape
  - Decoder (cpu/decoder.py): raw cell -> Instruction
  - I/O channel (periph/): any ComputerIo implementation

Execution model, one iteration per instruction:
  1. Decode the cell at IP (no pre-fetch: self-modified code is seen)
  2. Resolve each parameter by its mode; write targets resolve to an
     address and are never dereferenced
  3. Execute the handler -> update memory / registers / channel
  4. Advance IP, unless the instruction jumped

run() stops on:
  - HALT:              returns Halted(memory[0])
  - IN, no input:      returns WAITING_ON_INPUT (resumable)
  - fault:             raises ComputerFault (not resumable)

Output contract: OUT never suspends. A run collects every output the
program produces until it halts or blocks on input.

Suspend quirk (kept on purpose): when IN finds no input, IP has
already moved past the IN. Resuming continues with the *next*
instruction; the IN is not re-issued.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Set

from .config import DEFAULT_PROMPT, HALT_VALUE_ADDRESS
from .cpu.decoder import (
    DecodeError, Instruction, Opcode, ParameterMode, decode, format_instruction,
)
from .cpu.regs import Registers
from .mem.memory import Memory, NegativeAddress
from .periph.base import ComputerIo
from .periph.console import StandardIo

log = logging.getLogger(__name__)


class ComputerFault(Exception):
    """Fatal execution fault. The machine cannot continue."""
    def __init__(self, message: str, address: Optional[int] = None,
                 raw: Optional[int] = None):
        self.address = address
        self.raw = raw
        where = ""
        if address is not None:
            where = f"at address {address}"
            if raw is not None:
                where += f" (instruction {raw})"
            where += ": "
        super().__init__(f"fault {where}{message}")


class Status(enum.Enum):
    RUNNING = 'RUNNING'
    WAITING_ON_INPUT = 'WAITING_ON_INPUT'
    HALTED = 'HALTED'


@dataclass(frozen=True)
class ExecutionState:
    """Result of a run: the status plus, for HALTED, memory[0] at halt."""
    status: Status
    value: Optional[int] = None

    @classmethod
    def halted(cls, value: int) -> "ExecutionState":
        return cls(Status.HALTED, value)

    @property
    def is_halted(self) -> bool:
        return self.status is Status.HALTED

    @property
    def is_waiting(self) -> bool:
        return self.status is Status.WAITING_ON_INPUT

    def __str__(self) -> str:
        if self.is_halted:
            return f"Halted({self.value})"
        return self.status.name


RUNNING = ExecutionState(Status.RUNNING)
WAITING_ON_INPUT = ExecutionState(Status.WAITING_ON_INPUT)


class Computer:
    """Intcode virtual machine.

    Usage:
        io = BufferIo([5])
        computer = Computer(program, io)
        state = computer.run()
        if state.is_halted:
            print(state.value, io.outputs)
        elif state.is_waiting:
            io.feed(7)
            state = computer.run()
    """

    def __init__(self, program: Iterable[int], io: Optional[ComputerIo] = None):
        self.regs = Registers()
        self.mem = Memory(program)
        self.io: ComputerIo = io if io is not None else StandardIo()
        self.state: ExecutionState = RUNNING
        self.prompt = DEFAULT_PROMPT

        # Breakpoints: IP addresses callers check via at_breakpoint()
        self._breakpoints: Set[int] = set()

        # Trace output
        self._trace = False
        self._trace_output: List[str] = []

        # Opcode -> handler. Handlers return True when they set IP themselves.
        self._dispatch = self._build_dispatch()

    @classmethod
    def load_program(cls, program: Iterable[int], io: Optional[ComputerIo] = None) -> "Computer":
        return cls(program, io)

    # ══════════════════════════════════════════════
    # Register / memory views
    # ══════════════════════════════════════════════

    @property
    def ip(self) -> int:
        return self.regs.ip

    @property
    def relative_base(self) -> int:
        return self.regs.relative_base

    @property
    def steps(self) -> int:
        return self.regs.steps

    @property
    def memory(self) -> Memory:
        return self.mem

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def run(self) -> ExecutionState:
        """Run until HALT or until IN finds no input.

        Raises ComputerFault on a corrupt instruction, a negative address
        or an immediate-mode write, and when called on a halted machine.
        No step budget is imposed here; drive step() to bound execution.
        """
        self._resume()
        while True:
            state = self.step()
            if state is not None:
                return state

    def step(self) -> Optional[ExecutionState]:
        """Execute one instruction. Returns the new state if run() should stop, else None."""
        self._resume()
        ip = self.regs.ip
        raw = self._load(ip, ip)

        try:
            instruction = decode(raw)
        except DecodeError as e:
            log.debug("Decode failure at %d: %s", ip, e)
            raise ComputerFault(e.reason, ip, raw) from e

        operands = [self._load(ip + 1 + i, ip) for i in range(instruction.arity)]

        if self._trace:
            self._trace_output.append(
                f"{ip:5d}: {format_instruction(instruction, operands):30s} {self.regs.display()}"
            )

        self.regs.steps += 1
        jumped = self._dispatch[instruction.opcode](instruction, operands)
        if self.state is not RUNNING:
            return self.state
        if not jumped:
            self.regs.ip = ip + instruction.advance
        return None

    def _resume(self):
        if self.state.is_halted:
            raise ComputerFault("machine has halted", self.regs.ip)
        self.state = RUNNING

    # ══════════════════════════════════════════════
    # Operand resolution
    # ══════════════════════════════════════════════

    def _load(self, addr: int, ip: int) -> int:
        try:
            return self.mem.read(addr)
        except NegativeAddress as e:
            raise ComputerFault(str(e), ip, self._raw_at(ip)) from e

    def _store(self, addr: int, value: int, ip: int):
        try:
            self.mem.write(addr, value)
        except NegativeAddress as e:
            raise ComputerFault(str(e), ip, self._raw_at(ip)) from e

    def _raw_at(self, ip: int) -> Optional[int]:
        return self.mem.read(ip) if ip >= 0 else None

    def _value(self, instruction: Instruction, operands: List[int], slot: int) -> int:
        """Resolve an input parameter to the value it denotes."""
        mode, literal = instruction.modes[slot], operands[slot]
        if mode == ParameterMode.IMMEDIATE:
            return literal
        return self._load(self._address(mode, literal), self.regs.ip)

    def _target(self, instruction: Instruction, operands: List[int], slot: int) -> int:
        """Resolve a write parameter to an address. Never dereferenced.

        decode() only admits POSITION or RELATIVE here. The address is
        checked now so a bad IN target faults before the channel is read.
        """
        addr = self._address(instruction.modes[slot], operands[slot])
        if addr < 0:
            raise ComputerFault(f"negative address {addr}",
                                self.regs.ip, self._raw_at(self.regs.ip))
        return addr

    def _address(self, mode: ParameterMode, literal: int) -> int:
        if mode == ParameterMode.RELATIVE:
            return self.regs.relative_base + literal
        return literal

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════
    # Handler signature: handler(instruction, operands) -> jumped

    def _build_dispatch(self) -> dict:
        return {
            Opcode.ADD:                  self._op_add,
            Opcode.MULTIPLY:             self._op_multiply,
            Opcode.READ:                 self._op_read,
            Opcode.WRITE:                self._op_write,
            Opcode.JUMP_IF_TRUE:         self._op_jump_if_true,
            Opcode.JUMP_IF_FALSE:        self._op_jump_if_false,
            Opcode.LESS_THAN:            self._op_less_than,
            Opcode.EQUALS:               self._op_equals,
            Opcode.RELATIVE_BASE_OFFSET: self._op_relative_base_offset,
            Opcode.HALT:                 self._op_halt,
        }

    def _binary(self, instruction, operands, func) -> bool:
        a = self._value(instruction, operands, 0)
        b = self._value(instruction, operands, 1)
        self._store(self._target(instruction, operands, 2), func(a, b), self.regs.ip)
        return False

    def _op_add(self, instruction, operands):
        return self._binary(instruction, operands, lambda a, b: a + b)

    def _op_multiply(self, instruction, operands):
        return self._binary(instruction, operands, lambda a, b: a * b)

    def _op_less_than(self, instruction, operands):
        return self._binary(instruction, operands, lambda a, b: int(a < b))

    def _op_equals(self, instruction, operands):
        return self._binary(instruction, operands, lambda a, b: int(a == b))

    def _op_read(self, instruction, operands):
        target = self._target(instruction, operands, 0)
        value = self.io.try_read(self.prompt)
        if value is None:
            # Advance past the IN anyway: a resumed machine does not re-read
            self.regs.ip += instruction.advance
            self.state = WAITING_ON_INPUT
            log.debug("Waiting on input, will resume at %d", self.regs.ip)
            return True
        self._store(target, value, self.regs.ip)
        return False

    def _op_write(self, instruction, operands):
        self.io.write(self._value(instruction, operands, 0))
        return False

    def _op_jump_if_true(self, instruction, operands):
        if self._value(instruction, operands, 0) != 0:
            self.regs.ip = self._value(instruction, operands, 1)
            return True
        return False

    def _op_jump_if_false(self, instruction, operands):
        if self._value(instruction, operands, 0) == 0:
            self.regs.ip = self._value(instruction, operands, 1)
            return True
        return False

    def _op_relative_base_offset(self, instruction, operands):
        self.regs.relative_base += self._value(instruction, operands, 0)
        return False

    def _op_halt(self, instruction, operands):
        value = self.mem.read(HALT_VALUE_ADDRESS)
        self.state = ExecutionState.halted(value)
        log.debug("Halted at %d after %d steps, memory[0] = %d",
                  self.regs.ip, self.regs.steps, value)
        return True

    # ══════════════════════════════════════════════
    # Breakpoint API
    # ══════════════════════════════════════════════

    def add_breakpoint(self, addr: int):
        """Mark an IP address; at_breakpoint() reports when IP reaches it."""
        self._breakpoints.add(addr)

    def remove_breakpoint(self, addr: int):
        self._breakpoints.discard(addr)

    def clear_breakpoints(self):
        self._breakpoints.clear()

    def at_breakpoint(self) -> bool:
        return self.regs.ip in self._breakpoints

    # ══════════════════════════════════════════════
    # Trace / Debug
    # ══════════════════════════════════════════════

    def enable_trace(self, enable: bool = True):
        """Enable per-instruction trace recording."""
        self._trace = enable

    def get_trace(self) -> str:
        return '\n'.join(self._trace_output)

    def clear_trace(self):
        self._trace_output.clear()

    def reset(self, program: Iterable[int]):
        """Reload memory and clear registers, state and trace."""
        self.regs.reset()
        self.mem.load(program)
        self.state = RUNNING
        self._trace_output.clear()
