#!/usr/bin/env python3
"""
intcode — Intcode Computer CLI

One CLI for running and inspecting Intcode programs:
    intcode run      — Load a program and run it to halt (or until it waits on input)
    intcode disasm   — Linear-sweep listing of a program

Usage:
    intcode run <program.txt> [--set ADDR=VALUE ...] [--input N ...]
                              [--serial URL [--baud B]] [--max-steps N]
                              [--trace] [--dump]
    intcode disasm <program.txt> [--start ADDR] [-o listing.txt]

Examples:
    intcode run day2.txt --set 1=12 --set 2=2        # prints Halted(...)
    intcode run diag.txt --input 5                    # prints outputs, then state
    intcode run diag.txt                              # prompts on the console
    intcode run boost.txt --serial socket://localhost:7777
    intcode run spin.txt --max-steps 100000 --trace
    intcode disasm day2.txt

Exit status:
    0  halted
    1  fault, bad program file, or I/O error
    2  machine left waiting on input
    3  --max-steps budget exhausted
"""

import argparse
import logging
import sys
from pathlib import Path

import serial

from . import __version__
from .computer import Computer, ComputerFault
from .config import EXIT_BUDGET, EXIT_FAULT, EXIT_HALTED, EXIT_WAITING, SERIAL_BAUD
from .cpu.disasm import listing
from .periph.buffer import BufferIo
from .periph.console import StandardIo
from .periph.serial_link import SerialIo
from .program import ProgramFormatError, load_program_file

log = logging.getLogger("intcode")


def parse_assignment(value: str):
    """Parse ADDR=VALUE for --set."""
    addr, sep, cell = value.partition("=")
    try:
        if not sep:
            raise ValueError
        addr, cell = int(addr, 0), int(cell, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected ADDR=VALUE, got {value!r}") from None
    if addr < 0:
        raise argparse.ArgumentTypeError(f"negative address in {value!r}")
    return addr, cell


def setup_logging(args):
    """Configure logging from -v/-q/--log-file."""
    if args.quiet:
        level = logging.ERROR
    elif args.verbose == 0:
        level = logging.WARNING
    elif args.verbose == 1:
        level = logging.INFO
    else:  # -vv or more
        level = logging.DEBUG

    handlers = []

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    handlers.append(console)

    if args.log_file:
        log_path = Path(args.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
        handlers.append(file_handler)

    logging.basicConfig(
        level=logging.DEBUG if args.log_file else level,
        handlers=handlers,
        force=True
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="intcode",
        description="Intcode Computer — run and inspect Intcode programs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""commands:
  run        Run a program to halt or until it waits on input
  disasm     Disassemble a program (linear sweep)
""",
    )
    parser.add_argument("--version", action="version", version=f"intcode {__version__}")
    parser.add_argument("--verbose", "-v", action="count", default=0,
                        help="Increase verbosity (-v, -vv)")
    parser.add_argument("--quiet", "-q", action="store_true",
                        help="Suppress all log output except errors")
    parser.add_argument("--log-file", type=str, help="Write log to file")
    sub = parser.add_subparsers(dest="command", metavar="command")

    # ── run ──────────────────────────────────────────────────────────────
    p_run = sub.add_parser("run", help="Run a program")
    p_run.add_argument("program", help="Program file (comma-separated integers)")
    p_run.add_argument("--set", dest="assignments", action="append", default=[],
                       type=parse_assignment, metavar="ADDR=VALUE",
                       help="Patch a memory cell before running (repeatable)")
    source = p_run.add_mutually_exclusive_group()
    source.add_argument("--input", dest="inputs", action="append", default=None,
                        type=int, metavar="N",
                        help="Queue an input value instead of prompting (repeatable)")
    source.add_argument("--serial", metavar="URL",
                        help="Exchange I/O over a serial port or pyserial URL")
    p_run.add_argument("--baud", type=int, default=SERIAL_BAUD,
                       help=f"Serial baud rate (default: {SERIAL_BAUD})")
    p_run.add_argument("--max-steps", type=int, default=None,
                       help="Stop after this many instructions")
    p_run.add_argument("--trace", action="store_true",
                       help="Print an instruction trace to stderr after the run")
    p_run.add_argument("--dump", action="store_true",
                       help="Print final memory contents after the run")

    # ── disasm ───────────────────────────────────────────────────────────
    p_dis = sub.add_parser("disasm", help="Disassemble a program")
    p_dis.add_argument("program", help="Program file (comma-separated integers)")
    p_dis.add_argument("--start", type=lambda x: int(x, 0), default=0,
                       help="Address to start the sweep (default: 0)")
    p_dis.add_argument("-o", "--output", help="Output file (default: stdout)")

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return EXIT_HALTED

    setup_logging(args)

    try:
        return COMMANDS[args.command](args)
    except (ProgramFormatError, OSError) as e:
        log.error("Cannot load %s: %s", args.program, e)
        return EXIT_FAULT


# ═════════════════════════════════════════════════════════════════════════════
# COMMAND IMPLEMENTATIONS
# ═════════════════════════════════════════════════════════════════════════════

def _drive(computer: Computer, max_steps):
    """run(), or step() under a budget. Returns None if the budget ran out."""
    if max_steps is None:
        return computer.run()
    for _ in range(max_steps):
        state = computer.step()
        if state is not None:
            return state
    return None


# ── run ──────────────────────────────────────────────────────────────────
def cmd_run(args):
    program = load_program_file(args.program)
    for addr, value in args.assignments:
        if addr >= len(program):
            program.extend([0] * (addr + 1 - len(program)))
        program[addr] = value
    log.info("Loaded %d cells from %s", len(program), args.program)

    if args.serial:
        io = SerialIo(args.serial, baudrate=args.baud)
    elif args.inputs is not None:
        io = BufferIo(args.inputs)
    else:
        io = StandardIo()

    computer = Computer(program, io)
    computer.enable_trace(args.trace)

    try:
        if isinstance(io, SerialIo):
            with io:
                state = _drive(computer, args.max_steps)
        else:
            state = _drive(computer, args.max_steps)
    except ComputerFault as e:
        log.error("%s", e)
        return EXIT_FAULT
    except serial.SerialException as e:
        log.error("Serial I/O failed on %s: %s", args.serial, e)
        return EXIT_FAULT
    finally:
        if args.trace:
            print(computer.get_trace(), file=sys.stderr)

    if isinstance(io, BufferIo):
        for value in io.outputs:
            print(value)
    if args.dump:
        print(computer.memory.dump())

    log.info("Executed %d instructions", computer.steps)
    if state is None:
        log.warning("Step budget of %d exhausted at address %d", args.max_steps, computer.ip)
        return EXIT_BUDGET

    print(state)
    return EXIT_WAITING if state.is_waiting else EXIT_HALTED


# ── disasm ───────────────────────────────────────────────────────────────
def cmd_disasm(args):
    text = listing(load_program_file(args.program), args.start)
    if args.output:
        try:
            Path(args.output).write_text(text + "\n", encoding="utf-8")
        except OSError as e:
            log.error("Cannot write listing to %s: %s", args.output, e)
            return EXIT_FAULT
        log.info("Listing written to %s", args.output)
    else:
        print(text)
    return EXIT_HALTED


COMMANDS = {
    "run": cmd_run,
    "disasm": cmd_disasm,
}


if __name__ == "__main__":
    sys.exit(main())
