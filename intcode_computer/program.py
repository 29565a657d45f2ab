"""
Intcode Computer — Program Text Format

A program is a comma-separated list of base-10 integers with no header
or metadata:

    1002,4,3,4,33

Surrounding whitespace, blank lines and a trailing newline are allowed.
"""

from pathlib import Path
from typing import Iterable, List, Union


class ProgramFormatError(ValueError):
    """Raised when program text contains a token that isn't an integer."""
    def __init__(self, message: str, index: int = -1, token: str = ""):
        self.index = index
        self.token = token
        super().__init__(f"Cell {index}: {message}" if index >= 0 else message)


def parse_program(text: str) -> List[int]:
    """Parse comma-separated program text into a list of cells."""
    text = text.strip()
    if not text:
        raise ProgramFormatError("empty program")

    cells = []
    for index, token in enumerate(text.split(',')):
        token = token.strip()
        try:
            cells.append(int(token))
        except ValueError:
            raise ProgramFormatError(f"not an integer: {token!r}", index, token) from None
    return cells


def format_program(cells: Iterable[int]) -> str:
    return ','.join(str(c) for c in cells)


def load_program_file(path: Union[str, Path]) -> List[int]:
    """Read and parse a program file."""
    return parse_program(Path(path).read_text(encoding='utf-8'))
