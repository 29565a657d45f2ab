"""
Intcode Computer — Buffer-Backed I/O Channel

Programmatic channel for tests and for chaining machines. Input values
are queued with feed(); outputs collect in a list for inspection.
Reading from an empty queue returns None, which suspends the Computer
in WAITING_ON_INPUT instead of blocking.

Chaining machines in series is sequential handoff:

    a_io, b_io = BufferIo([phase_a, 0]), BufferIo([phase_b])
    a.run()
    b_io.feed(*a_io.take_outputs())
    b.run()
"""

from collections import deque
from typing import Iterable, List, Optional

from .base import ComputerIo


class BufferIo(ComputerIo):
    """Queue-backed channel: inputs via feed(), outputs in .outputs."""

    def __init__(self, inputs: Iterable[int] = ()):
        self._rx_queue: deque = deque(inputs)
        self.outputs: List[int] = []
        self.prompts: List[str] = []

    def try_read(self, prompt: str) -> Optional[int]:
        self.prompts.append(prompt)
        if not self._rx_queue:
            return None
        return self._rx_queue.popleft()

    def write(self, value: int):
        self.outputs.append(value)

    # --- External API (test harness / machine chaining) ---

    def feed(self, *values: int):
        """Queue values for subsequent IN instructions."""
        self._rx_queue.extend(values)

    @property
    def pending(self) -> int:
        """Number of queued input values not yet consumed."""
        return len(self._rx_queue)

    @property
    def last_output(self) -> Optional[int]:
        return self.outputs[-1] if self.outputs else None

    def take_outputs(self) -> List[int]:
        """Return and clear everything written so far."""
        taken, self.outputs = self.outputs, []
        return taken

    def reset(self):
        self._rx_queue.clear()
        self.outputs.clear()
        self.prompts.clear()
