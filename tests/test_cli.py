"""
Intcode Computer — Program Format and CLI Tests

Usage:
  python -m pytest tests/test_cli.py -v
"""

import sys
import os
import io as _io
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import argparse
import logging

import pytest

from intcode_computer import (
    ProgramFormatError, format_program, load_program_file, parse_program,
)
from intcode_computer.cli import main, parse_assignment
from intcode_computer.config import EXIT_BUDGET, EXIT_FAULT, EXIT_HALTED, EXIT_WAITING

DATA = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data")


@pytest.fixture(autouse=True)
def restore_logging():
    """main() reconfigures the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _write(tmp_path, text, name="prog.txt"):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return str(path)


# ═══════════════════════════════════════════════
# Test Group 1: Program text
# ═══════════════════════════════════════════════

class TestProgramFormat:
    """Comma-separated integer text."""

    def test_parse(self):
        assert parse_program("1002,4,3,4,33") == [1002, 4, 3, 4, 33]

    def test_whitespace_and_newline(self):
        assert parse_program(" 1, -2 ,\n3\n\n") == [1, -2, 3]

    def test_large_values(self):
        assert parse_program("104,1125899906842624,99")[1] == 1125899906842624

    def test_bad_token(self):
        with pytest.raises(ProgramFormatError) as info:
            parse_program("1,2,x,4")
        assert info.value.index == 2
        assert info.value.token == "x"
        assert "Cell 2" in str(info.value)

    def test_trailing_comma_rejected(self):
        with pytest.raises(ProgramFormatError):
            parse_program("1,2,")

    def test_empty(self):
        with pytest.raises(ProgramFormatError, match="empty"):
            parse_program("  \n")

    def test_format(self):
        assert format_program([1, -2, 99]) == "1,-2,99"

    def test_load_file(self):
        program = load_program_file(os.path.join(DATA, "arithmetic.txt"))
        assert program[:4] == [1, 0, 0, 3]


class TestAssignment:
    """--set ADDR=VALUE parsing."""

    def test_decimal_and_hex(self):
        assert parse_assignment("1=12") == (1, 12)
        assert parse_assignment("0x10=-5") == (16, -5)

    @pytest.mark.parametrize("text", ["12", "a=1", "1=b", "-1=3"])
    def test_rejected(self, text):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_assignment(text)


# ═══════════════════════════════════════════════
# Test Group 2: intcode run
# ═══════════════════════════════════════════════

class TestRun:
    """Exit codes and printed results of `intcode run`."""

    def test_arithmetic_with_patches(self, capsys):
        path = os.path.join(DATA, "arithmetic.txt")
        assert main(["run", path, "--set", "1=12", "--set", "2=2"]) == EXIT_HALTED
        assert capsys.readouterr().out.strip() == "Halted(2692315)"

    def test_queued_inputs(self, capsys):
        path = os.path.join(DATA, "diagnostic.txt")
        assert main(["run", path, "--input", "1"]) == EXIT_HALTED
        lines = capsys.readouterr().out.split()
        assert lines[-2] == "7988899"
        assert lines[-1].startswith("Halted(")

    def test_console_outputs(self, tmp_path, capsys, monkeypatch):
        monkeypatch.setattr(sys, "stdin", _io.StringIO("6\n"))
        path = _write(tmp_path, "3,0,4,0,99")
        assert main(["run", path]) == EXIT_HALTED
        out = capsys.readouterr().out
        assert "6\n" in out
        assert out.rstrip().endswith("Halted(6)")

    def test_waiting(self, tmp_path, capsys, monkeypatch):
        monkeypatch.setattr(sys, "stdin", _io.StringIO(""))
        path = _write(tmp_path, "3,0,99")
        assert main(["run", path]) == EXIT_WAITING
        assert capsys.readouterr().out.rstrip().endswith("WAITING_ON_INPUT")

    def test_set_extends_program(self, tmp_path, capsys):
        path = _write(tmp_path, "4,10,99")
        assert main(["run", path, "--set", "10=77", "--input", "0"]) == EXIT_HALTED
        assert capsys.readouterr().out.split()[0] == "77"

    def test_step_budget(self, tmp_path, capsys):
        path = _write(tmp_path, "1105,1,0")
        assert main(["run", path, "--max-steps", "10"]) == EXIT_BUDGET
        assert "budget" in capsys.readouterr().err

    def test_fault(self, tmp_path, capsys):
        path = _write(tmp_path, "104,1,98")
        assert main(["run", path, "--input", "0"]) == EXIT_FAULT
        captured = capsys.readouterr()
        assert "instruction 98" in captured.err

    def test_missing_file(self, tmp_path, capsys):
        assert main(["run", str(tmp_path / "nope.txt")]) == EXIT_FAULT
        assert "Cannot load" in capsys.readouterr().err

    def test_bad_program_text(self, tmp_path, capsys):
        path = _write(tmp_path, "1,two,3")
        assert main(["run", path]) == EXIT_FAULT
        assert "not an integer" in capsys.readouterr().err

    def test_trace_and_dump(self, tmp_path, capsys):
        path = _write(tmp_path, "104,42,99")
        assert main(["run", path, "--input", "0", "--trace", "--dump"]) == EXIT_HALTED
        captured = capsys.readouterr()
        assert "OUT  #42" in captured.err
        assert "    0:" in captured.out

    def test_serial_loopback(self, tmp_path, capsys):
        """Nothing queued on the loopback: the machine waits on its IN."""
        path = _write(tmp_path, "3,0,99")
        assert main(["run", path, "--serial", "loop://"]) == EXIT_WAITING

    def test_serial_and_input_conflict(self, tmp_path, capsys):
        """--input and --serial are alternative input sources."""
        path = _write(tmp_path, "3,0,99")
        with pytest.raises(SystemExit) as info:
            main(["run", path, "--serial", "loop://", "--input", "1"])
        assert info.value.code == 2
        assert "not allowed with" in capsys.readouterr().err

    def test_log_file(self, tmp_path):
        path = _write(tmp_path, "99")
        log_path = tmp_path / "logs" / "run.log"
        assert main(["-v", "run", path, "--input", "0", "--log-file", str(log_path)]) == EXIT_HALTED
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "Loaded 1 cells" in log_path.read_text(encoding="utf-8")


# ═══════════════════════════════════════════════
# Test Group 3: intcode disasm
# ═══════════════════════════════════════════════

class TestDisasm:
    """Listing output of `intcode disasm`."""

    def test_stdout(self, tmp_path, capsys):
        path = _write(tmp_path, "1002,4,3,4,33")
        assert main(["disasm", path]) == EXIT_HALTED
        assert capsys.readouterr().out.splitlines() == [
            "    0: MUL  [4], #3, [4]",
            "    4: DATA 33",
        ]

    def test_output_file(self, tmp_path):
        path = _write(tmp_path, "104,7,99")
        out = tmp_path / "listing.txt"
        assert main(["disasm", path, "-o", str(out)]) == EXIT_HALTED
        assert out.read_text(encoding="utf-8") == "    0: OUT  #7\n    2: HLT\n"

    def test_unwritable_output(self, tmp_path, capsys):
        """A failed listing write is reported as a write error, not a load error."""
        path = _write(tmp_path, "104,7,99")
        out = tmp_path / "missing" / "listing.txt"
        assert main(["disasm", path, "-o", str(out)]) == EXIT_FAULT
        err = capsys.readouterr().err
        assert "Cannot write listing" in err
        assert "Cannot load" not in err

    def test_no_command_prints_help(self, capsys):
        assert main([]) == EXIT_HALTED
        assert "disasm" in capsys.readouterr().out
