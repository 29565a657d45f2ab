"""
Intcode Computer — Machine / Channel Configuration
==================================================

Plain constants shared by the decoder, the engine, the I/O channels and
the command-line front end. Change them here, not at the call sites.
"""

# =============================================================================
#  INSTRUCTION ENCODING
# =============================================================================
MIN_INSTRUCTION = 1
MAX_INSTRUCTION = 99_999      # 2 opcode digits + at most 3 mode digits

OPCODE_DIVISOR = 100          # raw % 100 -> opcode
MODE_BASE = 10                # one decimal digit per parameter mode


# =============================================================================
#  MEMORY
# =============================================================================
HALT_VALUE_ADDRESS = 0        # Halted(value) reports memory[0]
DUMP_WIDTH = 8                # cells per line in Memory.dump()


# =============================================================================
#  CONSOLE CHANNEL
# =============================================================================
DEFAULT_PROMPT = "Enter number: "
INVALID_INPUT_MESSAGE = "Not an integer, try again."


# =============================================================================
#  SERIAL CHANNEL (integers exchanged as ASCII decimal lines)
# =============================================================================
SERIAL_BAUD = 9600
SERIAL_TIMEOUT = 1.0          # seconds; a read timeout means "no input yet"
SERIAL_LINE_END = b"\n"
SERIAL_ENCODING = "ascii"


# =============================================================================
#  CLI EXIT CODES
# =============================================================================
EXIT_HALTED = 0
EXIT_FAULT = 1
EXIT_WAITING = 2
EXIT_BUDGET = 3
