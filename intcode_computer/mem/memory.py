"""
Intcode Computer — Growable Integer Memory

Memory is one flat, zero-indexed list of Python ints. Code and data
share it, so writes can change instructions that haven't run yet; the
engine never caches decoded instructions.

There is no upper bound. Any access past the current end grows the
list with zeros up to and including that address before the access
completes. Only negative addresses are an error.

Every read and write goes through _ensure(), so growth behaves the same
whichever way an address is reached.
"""

from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..config import DUMP_WIDTH


class NegativeAddress(IndexError):
    """Raised on any access to an address below zero."""
    def __init__(self, addr: int):
        self.addr = addr
        super().__init__(f"negative address {addr}")


class Memory:
    """Zero-filled, grow-on-demand integer tape.

    Watchpoints: addr -> [callback(addr, old_val, new_val)], fired on
    every write to that address (after the growth, before the store).
    """

    def __init__(self, cells: Iterable[int] = ()):
        self._mem: List[int] = list(cells)
        self._watchpoints: Dict[int, List[Callable]] = {}

    # --- Core read/write ---

    def _ensure(self, addr: int) -> int:
        """Validate addr and grow the tape so that addr is in range."""
        if addr < 0:
            raise NegativeAddress(addr)
        if addr >= len(self._mem):
            self._mem.extend([0] * (addr + 1 - len(self._mem)))
        return addr

    def read(self, addr: int) -> int:
        return self._mem[self._ensure(addr)]

    def write(self, addr: int, value: int):
        addr = self._ensure(addr)
        if addr in self._watchpoints:
            old = self._mem[addr]
            for cb in self._watchpoints[addr]:
                cb(addr, old, value)
        self._mem[addr] = value

    def __getitem__(self, addr: int) -> int:
        return self.read(_single_address(addr))

    def __setitem__(self, addr: int, value: int):
        self.write(_single_address(addr), value)

    def __len__(self) -> int:
        return len(self._mem)

    # --- Bulk load ---

    def load(self, cells: Iterable[int]):
        """Replace the whole image. Watchpoints stay registered."""
        self._mem = list(cells)

    def to_list(self) -> List[int]:
        return list(self._mem)

    # --- Watchpoints ---

    def add_watchpoint(self, addr: int, callback: Callable):
        """Call callback(addr, old_val, new_val) on every write to addr."""
        self._watchpoints.setdefault(addr, []).append(callback)

    def remove_watchpoint(self, addr: int, callback: Optional[Callable] = None):
        """Remove a watchpoint. If callback is None, removes all on that addr."""
        if addr in self._watchpoints:
            if callback is None:
                del self._watchpoints[addr]
            else:
                self._watchpoints[addr] = [
                    cb for cb in self._watchpoints[addr] if cb != callback
                ]

    # --- Snapshots ---

    def snapshot(self, start: int = 0, end: Optional[int] = None) -> Tuple[int, ...]:
        """Copy of cells start..end inclusive (default: to the current end).

        Does not grow memory; cells past the end read as 0.
        """
        if start < 0:
            raise NegativeAddress(start)
        if end is None:
            end = len(self._mem) - 1
        return tuple(self._mem[a] if a < len(self._mem) else 0
                     for a in range(start, end + 1))

    @staticmethod
    def diff_snapshots(snap_a, snap_b, base_addr: int = 0) -> Dict[int, Tuple[int, int]]:
        """Compare two snapshots, return {addr: (old, new)} for changed cells.

        A shorter snapshot is treated as zero-filled, matching how memory grows.
        """
        changes = {}
        for i in range(max(len(snap_a), len(snap_b))):
            old = snap_a[i] if i < len(snap_a) else 0
            new = snap_b[i] if i < len(snap_b) else 0
            if old != new:
                changes[base_addr + i] = (old, new)
        return changes

    # --- Dump ---

    def dump(self, start: int = 0, length: Optional[int] = None) -> str:
        """Produce an address-prefixed dump of memory for debugging."""
        if start < 0:
            raise NegativeAddress(start)
        if length is None:
            length = max(len(self._mem) - start, 0)
        cells = self.snapshot(start, start + length - 1) if length else ()
        lines = []
        for offset in range(0, len(cells), DUMP_WIDTH):
            row = ' '.join(f'{v:>6d}' for v in cells[offset:offset + DUMP_WIDTH])
            lines.append(f'{start + offset:5d}: {row}')
        return '\n'.join(lines)


def _single_address(addr):
    if isinstance(addr, slice):
        raise TypeError("Memory is indexed by single addresses; "
                        "use snapshot(start, end) for a range")
    return addr
