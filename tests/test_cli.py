"""
Tests for the command line interface.
"""

import pytest

from rv32asm.__main__ import main

PROGRAM = """\
    addi x1, x0, 5
loop:
    addi x1, x1, -1
    bne x1, x0, loop
"""


@pytest.fixture
def source(tmp_path):
    path = tmp_path / "prog.S"
    path.write_text(PROGRAM)
    return path


class TestMain:
    """Tests for main()."""

    def test_hex_to_stdout(self, source, capsys):
        """Test that hex goes to stdout without -o."""
        assert main([str(source)]) == 0
        assert capsys.readouterr().out.split() == ["00500093", "fff08093", "fe009ee3"]

    def test_hex_to_file(self, source, tmp_path, capsys):
        """Test writing the output file."""
        out = tmp_path / "prog.hex"
        assert main([str(source), "-o", str(out)]) == 0
        assert out.read_text() == "00500093\nfff08093\nfe009ee3\n"
        assert "Assembly successful: 3 instructions" in capsys.readouterr().out

    def test_listing(self, source, capsys):
        """Test the listing option."""
        assert main([str(source), "--listing"]) == 0
        out = capsys.readouterr().out
        assert "Address   Code" in out
        assert "bne ra, zero, -4" in out

    def test_missing_input(self, tmp_path, capsys):
        """Test that a missing file is reported."""
        assert main([str(tmp_path / "none.S")]) == 1
        assert "Input file not found" in capsys.readouterr().err

    def test_assembly_error(self, tmp_path, capsys):
        """Test that assembly errors print the line and exit non-zero."""
        path = tmp_path / "bad.S"
        path.write_text("nop\nbeq x0, x0, nowhere\n")
        assert main([str(path)]) == 1
        err = capsys.readouterr().err
        assert "Error: Line 2: Undefined label: nowhere" in err

    def test_isa_option(self, source, tmp_path, capsys):
        """Test assembling against a YAML table."""
        table = tmp_path / "subset.yaml"
        table.write_text(
            "name: subset\n"
            "formats: {0x13: I, 0x63: B}\n"
            "instructions:\n"
            "  addi: {opcode: 0x13, funct3: 0}\n"
            "  bne: {opcode: 0x63, funct3: 1}\n"
        )
        assert main([str(source), "--isa", str(table), "-v"]) == 0
        out = capsys.readouterr().out
        assert "Instruction table 'subset': 2 instructions" in out
        assert "fe009ee3" in out

    def test_invalid_isa(self, source, tmp_path, capsys):
        """Test that a bad table is reported as an error."""
        table = tmp_path / "bad.yaml"
        table.write_text("formats: {}\n")
        assert main([str(source), "--isa", str(table)]) == 1
        assert "Error: 'formats' must be a non-empty mapping" in capsys.readouterr().err
