"""
Intcode Computer — Register Set

Register model:
  ip             instruction pointer (address of the next instruction)
  relative_base  base for RELATIVE-mode operands, moved only by ARB
  steps          instructions executed since load/reset
"""


class Registers:
    """Intcode machine registers."""

    __slots__ = ('ip', 'relative_base', 'steps')

    def __init__(self):
        self.ip: int = 0
        self.relative_base: int = 0
        self.steps: int = 0

    def display(self) -> str:
        """Format register state for trace output."""
        return f"IP={self.ip:<5d} RB={self.relative_base:<5d} N={self.steps}"

    def reset(self):
        self.ip = 0
        self.relative_base = 0
        self.steps = 0
