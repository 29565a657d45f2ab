"""
Intcode Computer — Console I/O Channel (default)

Blocking text-stream channel for standalone runs. IN prompts and reads
a line, re-prompting until the line parses as an integer; malformed
lines are never consumed as values. OUT prints one value per line.

End of input stream is reported as "no value available", which leaves
the Computer WAITING_ON_INPUT rather than raising.
"""

import sys
from typing import Optional, TextIO

from ..config import DEFAULT_PROMPT, INVALID_INPUT_MESSAGE
from .base import ComputerIo


class StandardIo(ComputerIo):
    """Prompt on a text stream, read integers line by line."""

    def __init__(self, stdin: Optional[TextIO] = None,
                 stdout: Optional[TextIO] = None,
                 prompt: Optional[str] = None):
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stdout = stdout if stdout is not None else sys.stdout
        self.prompt = prompt

    def try_read(self, prompt: str) -> Optional[int]:
        text = self.prompt if self.prompt is not None else (prompt or DEFAULT_PROMPT)
        while True:
            self.stdout.write(text)
            self.stdout.flush()
            line = self.stdin.readline()
            if not line:
                return None
            try:
                return int(line.strip())
            except ValueError:
                self.stdout.write(INVALID_INPUT_MESSAGE + "\n")

    def write(self, value: int):
        self.stdout.write(f"{value}\n")
        self.stdout.flush()
