"""
Tests for the instruction tables.
"""

import pytest

from rv32asm.errors import UnknownMnemonicError
from rv32asm.instructions import (
    OPCODE_ARITHMETIC,
    OPCODE_ARITHMETIC_IMM,
    OPCODE_AUIPC,
    OPCODE_BRANCH,
    OPCODE_JAL,
    OPCODE_JALR,
    OPCODE_LOAD,
    OPCODE_LUI,
    OPCODE_STORE,
    Instruction,
    InstructionFormat,
    InstructionSet,
    RV32I,
    classify_format,
    resolve_func3,
    resolve_func7,
    resolve_opcode,
)


class TestResolveOpcode:
    """Tests for mnemonic to opcode lookup."""

    @pytest.mark.parametrize("mnemonic, opcode", [
        ("addi", 0x13),
        ("add", 0x33),
        ("jal", 0x6F),
        ("jalr", 0x67),
        ("beq", 0x63),
        ("lw", 0x03),
        ("sw", 0x23),
        ("lui", 0x37),
        ("auipc", 0x17),
        ("ADD", 0x33),
    ])
    def test_known(self, mnemonic, opcode):
        """Test opcodes of the base instruction families."""
        assert resolve_opcode(mnemonic) == opcode

    def test_unknown(self):
        """Test that unknown mnemonics raise UnknownMnemonicError."""
        with pytest.raises(UnknownMnemonicError, match="Unknown instruction: mul"):
            resolve_opcode("mul")

    def test_pseudo_is_not_base(self):
        """Test that pseudo-instructions are not in the base table."""
        assert "li" not in RV32I
        assert "nop" not in RV32I


class TestFunctFields:
    """Tests for funct3/funct7 lookup."""

    def test_funct3(self):
        """Test funct3 values."""
        assert resolve_func3("bne") == 0b001
        assert resolve_func3("lbu") == 0b100
        assert resolve_func3("sra") == 0b101

    def test_funct7(self):
        """Test funct7 values, including shift-immediates."""
        assert resolve_func7("sub") == 0x20
        assert resolve_func7("add") == 0x00
        assert resolve_func7("srai") == 0x20

    def test_missing_field(self):
        """Test that asking for an absent field is an error."""
        with pytest.raises(ValueError, match="no funct3"):
            resolve_func3("lui")
        with pytest.raises(ValueError, match="no funct7"):
            resolve_func7("addi")


class TestClassifyFormat:
    """Tests for opcode to format classification."""

    @pytest.mark.parametrize("opcode, fmt", [
        (OPCODE_ARITHMETIC_IMM, InstructionFormat.I),
        (OPCODE_LOAD, InstructionFormat.I),
        (OPCODE_JALR, InstructionFormat.I),
        (OPCODE_ARITHMETIC, InstructionFormat.R),
        (OPCODE_JAL, InstructionFormat.J),
        (OPCODE_LUI, InstructionFormat.U),
        (OPCODE_AUIPC, InstructionFormat.U),
        (OPCODE_BRANCH, InstructionFormat.B),
        (OPCODE_STORE, InstructionFormat.S),
    ])
    def test_formats(self, opcode, fmt):
        """Test every opcode in the built-in table."""
        assert classify_format(opcode) is fmt

    def test_unknown_opcode(self):
        """Test that an opcode outside the table is an invariant violation."""
        with pytest.raises(AssertionError):
            classify_format(0x73)

    def test_descriptor_format_matches_opcode(self):
        """Test that every descriptor agrees with the opcode classification."""
        for instr in RV32I.instructions.values():
            assert instr.format is RV32I.classify_format(instr.opcode)


class TestInstructionSet:
    """Tests for InstructionSet construction."""

    def test_mismatched_format_rejected(self):
        """Test that a descriptor whose format disagrees with its opcode is rejected."""
        with pytest.raises(ValueError, match="does not match opcode"):
            InstructionSet(
                "bad",
                {0x13: InstructionFormat.I},
                {"addi": Instruction(0x13, InstructionFormat.R, 0, 0)},
            )

    def test_tables_are_read_only(self):
        """Test that the table mappings cannot be mutated."""
        with pytest.raises(TypeError):
            RV32I.instructions["mul"] = Instruction(0x33, InstructionFormat.R, 0, 1)

    def test_mnemonics(self):
        """Test the mnemonic listing."""
        mnemonics = RV32I.get_all_mnemonics()
        assert len(mnemonics) == 37
        assert "sltiu" in mnemonics
