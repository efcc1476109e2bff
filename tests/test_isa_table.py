"""
Tests for the YAML instruction table loader.
"""

import pytest

from rv32asm import Assembler
from rv32asm.errors import InstructionTableError, UnknownMnemonicError
from rv32asm.instructions import InstructionFormat, RV32I
from rv32asm.isa_table import (
    VALID_FORMATS,
    get_instruction_set_summary,
    load_instruction_set,
    load_instruction_set_file,
)


SUBSET_TABLE = """
name: "rv32i-subset"
formats:
  0x13: I
  0x33: R
  0x63: B
instructions:
  addi: {opcode: 0x13, funct3: 0}
  add:  {opcode: 0x33, funct3: 0, funct7: 0}
  sub:  {opcode: 0x33, funct3: 0, funct7: 0x20}
  bne:  {opcode: 0x63, funct3: 1}
"""


class TestLoadInstructionSet:
    """Tests for load_instruction_set function."""

    def test_valid_minimal_table(self):
        """Test parsing a table with one instruction."""
        yaml_content = """
formats:
  0x37: U
instructions:
  lui: {opcode: 0x37}
"""
        isa = load_instruction_set(yaml_content)
        assert isa.name == "custom"
        assert len(isa) == 1
        assert isa.classify_format(0x37) is InstructionFormat.U

    def test_valid_subset_table(self):
        """Test parsing a table with several formats."""
        isa = load_instruction_set(SUBSET_TABLE)
        assert isa.name == "rv32i-subset"
        assert isa.resolve_func7("sub") == 0x20
        assert isa.get_instruction("addi") == RV32I.get_instruction("addi")

    def test_invalid_yaml_syntax(self):
        """Test that invalid YAML raises error."""
        yaml_content = """
formats:
  0x13: I
instructions: [
"""
        with pytest.raises(InstructionTableError, match="Invalid YAML syntax"):
            load_instruction_set(yaml_content)

    def test_not_a_mapping(self):
        """Test that a top-level list is rejected."""
        with pytest.raises(InstructionTableError, match="must be a YAML mapping"):
            load_instruction_set("- addi\n- add\n")

    def test_missing_formats(self):
        """Test that missing 'formats' field raises error."""
        yaml_content = """
instructions:
  addi: {opcode: 0x13, funct3: 0}
"""
        with pytest.raises(InstructionTableError, match="Missing required field 'formats'"):
            load_instruction_set(yaml_content)

    def test_missing_instructions(self):
        """Test that missing 'instructions' field raises error."""
        yaml_content = """
formats:
  0x13: I
"""
        with pytest.raises(InstructionTableError, match="Missing required field 'instructions'"):
            load_instruction_set(yaml_content)

    def test_empty_formats(self):
        """Test that empty formats mapping raises error."""
        yaml_content = """
formats: {}
instructions:
  addi: {opcode: 0x13, funct3: 0}
"""
        with pytest.raises(InstructionTableError, match="'formats' must be a non-empty mapping"):
            load_instruction_set(yaml_content)

    def test_invalid_format_type(self):
        """Test that an unknown format letter raises error."""
        yaml_content = """
formats:
  0x13: Q
instructions:
  addi: {opcode: 0x13, funct3: 0}
"""
        with pytest.raises(InstructionTableError, match="invalid format 'Q'"):
            load_instruction_set(yaml_content)

    def test_opcode_without_format(self):
        """Test that an instruction's opcode must appear in formats."""
        yaml_content = """
formats:
  0x13: I
instructions:
  add: {opcode: 0x33, funct3: 0, funct7: 0}
"""
        with pytest.raises(InstructionTableError, match="has no format in 'formats'"):
            load_instruction_set(yaml_content)

    def test_missing_opcode(self):
        """Test that an instruction without an opcode raises error."""
        yaml_content = """
formats:
  0x13: I
instructions:
  addi: {funct3: 0}
"""
        with pytest.raises(InstructionTableError, match="missing required field 'opcode'"):
            load_instruction_set(yaml_content)

    def test_missing_funct3(self):
        """Test that I-type instructions need funct3."""
        yaml_content = """
formats:
  0x13: I
instructions:
  addi: {opcode: 0x13}
"""
        with pytest.raises(InstructionTableError, match="missing required field 'funct3'"):
            load_instruction_set(yaml_content)

    def test_missing_funct7(self):
        """Test that R-type instructions need funct7."""
        yaml_content = """
formats:
  0x33: R
instructions:
  add: {opcode: 0x33, funct3: 0}
"""
        with pytest.raises(InstructionTableError, match="missing required field 'funct7'"):
            load_instruction_set(yaml_content)

    def test_funct3_out_of_range(self):
        """Test that funct3 must fit in three bits."""
        yaml_content = """
formats:
  0x13: I
instructions:
  addi: {opcode: 0x13, funct3: 8}
"""
        with pytest.raises(InstructionTableError, match=r"must be an integer in \[0, 7\]"):
            load_instruction_set(yaml_content)

    def test_duplicate_mnemonic_case_insensitive(self):
        """Test that mnemonics differing only in case collide."""
        yaml_content = """
formats:
  0x13: I
instructions:
  addi: {opcode: 0x13, funct3: 0}
  ADDI: {opcode: 0x13, funct3: 0}
"""
        with pytest.raises(InstructionTableError, match="Duplicate mnemonic 'addi'"):
            load_instruction_set(yaml_content)

    def test_load_from_file(self, tmp_path):
        """Test loading a table from disk."""
        path = tmp_path / "subset.yaml"
        path.write_text(SUBSET_TABLE)
        assert len(load_instruction_set_file(str(path))) == 4


class TestValidFormats:
    """Tests for VALID_FORMATS constant."""

    def test_all_format_types_defined(self):
        """Test that every instruction format can be named in a table."""
        assert set(VALID_FORMATS) == {"R", "I", "S", "B", "U", "J"}


class TestAssembleWithTable:
    """Tests for assembling against a loaded table."""

    def test_subset_assembles(self):
        """Test that a custom table produces the standard encodings."""
        isa = load_instruction_set(SUBSET_TABLE)
        words = Assembler(isa=isa).assemble_string(
            "addi x1, x0, 5\nloop: addi x1, x1, -1\nbne x1, x0, loop"
        )
        assert words == [0x00500093, 0xFFF08093, 0xFE009EE3]

    def test_mnemonic_outside_table(self):
        """Test that instructions missing from the table are unknown."""
        isa = load_instruction_set(SUBSET_TABLE)
        with pytest.raises(UnknownMnemonicError):
            Assembler(isa=isa).assemble_string("lw a0, 0(sp)")


class TestGetInstructionSetSummary:
    """Tests for get_instruction_set_summary function."""

    def test_summary_basic(self):
        """Test summary counts per format."""
        summary = get_instruction_set_summary(load_instruction_set(SUBSET_TABLE))
        assert summary["name"] == "rv32i-subset"
        assert summary["instruction_count"] == 4
        assert summary["opcodes"] == [0x13, 0x33, 0x63]
        assert summary["by_format"] == {"I": 1, "R": 2, "B": 1}

    def test_summary_builtin(self):
        """Test the summary of the built-in table."""
        summary = get_instruction_set_summary(RV32I)
        assert summary["instruction_count"] == 37
        assert summary["by_format"]["J"] == 1
