"""
Intcode Computer — I/O Channel Interface

The engine never touches a stream directly. Every IN instruction asks
the attached channel for one value and every OUT instruction hands it
one. Channels are swappable between runs (computer.io = other).
"""

from abc import ABC, abstractmethod
from typing import Optional


class ComputerIo(ABC):
    """I/O capability consumed by the Computer."""

    @abstractmethod
    def try_read(self, prompt: str) -> Optional[int]:
        """Return the next input value, or None if none is available.

        None is not an error: the Computer suspends in WAITING_ON_INPUT
        and the caller resumes it after making input available.
        """

    @abstractmethod
    def write(self, value: int):
        """Accept one output value."""
