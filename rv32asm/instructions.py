"""
RISC-V instruction definitions.

This module defines the supported base instructions with their opcodes,
funct3, funct7 and format types, and the lookups the encoder uses to
classify an instruction. Alternative tables can be loaded from YAML with
:mod:`rv32asm.isa_table`.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional
from enum import Enum, auto

from .errors import UnknownMnemonicError


class InstructionFormat(Enum):
    """RISC-V instruction format types."""

    R = auto()  # Register-register operations
    I = auto()  # Immediate operations
    S = auto()  # Store operations
    B = auto()  # Branch operations
    U = auto()  # Upper immediate operations
    J = auto()  # Jump operations


# Opcode constants
OPCODE_LOAD = 0x03
OPCODE_ARITHMETIC_IMM = 0x13
OPCODE_AUIPC = 0x17
OPCODE_STORE = 0x23
OPCODE_ARITHMETIC = 0x33
OPCODE_LUI = 0x37
OPCODE_BRANCH = 0x63
OPCODE_JALR = 0x67
OPCODE_JAL = 0x6F


@dataclass(frozen=True)
class Instruction:
    """
    Definition of a RISC-V instruction.

    Attributes:
        opcode: 7-bit opcode field
        format: Instruction format type
        funct3: 3-bit function field (None if not applicable)
        funct7: 7-bit function field (None if not applicable)
    """

    opcode: int
    format: InstructionFormat
    funct3: Optional[int] = None
    funct7: Optional[int] = None


class InstructionSet:
    """
    Immutable table of mnemonics and the opcode-to-format classification.

    Each assembly reads from one of these; nothing writes to it after
    construction, so a single table can be shared freely.
    """

    def __init__(
        self,
        name: str,
        formats: Mapping[int, InstructionFormat],
        instructions: Mapping[str, Instruction],
    ):
        for mnemonic, instr in instructions.items():
            if formats.get(instr.opcode) is not instr.format:
                raise ValueError(
                    f"{mnemonic}: format {instr.format.name} does not match opcode 0x{instr.opcode:02X}"
                )
        self.name = name
        self._formats = MappingProxyType(dict(formats))
        self._instructions = MappingProxyType(
            {mnemonic.lower(): instr for mnemonic, instr in instructions.items()}
        )

    def __contains__(self, mnemonic: str) -> bool:
        return mnemonic.lower() in self._instructions

    def __len__(self) -> int:
        return len(self._instructions)

    def __repr__(self) -> str:
        return f"InstructionSet({self.name!r}, {len(self)} instructions)"

    @property
    def formats(self) -> Mapping[int, InstructionFormat]:
        return self._formats

    @property
    def instructions(self) -> Mapping[str, Instruction]:
        return self._instructions

    def get_instruction(self, mnemonic: str) -> Optional[Instruction]:
        """
        Look up an instruction by mnemonic.

        Args:
            mnemonic: Instruction mnemonic (case-insensitive)

        Returns:
            Instruction object if found, None otherwise
        """
        return self._instructions.get(mnemonic.lower())

    def resolve_instruction(self, mnemonic: str) -> Instruction:
        """Look up an instruction, raising UnknownMnemonicError if absent."""
        instr = self.get_instruction(mnemonic)
        if instr is None:
            raise UnknownMnemonicError(f"Unknown instruction: {mnemonic}")
        return instr

    def resolve_opcode(self, mnemonic: str) -> int:
        return self.resolve_instruction(mnemonic).opcode

    def resolve_func3(self, mnemonic: str) -> int:
        funct3 = self.resolve_instruction(mnemonic).funct3
        if funct3 is None:
            raise ValueError(f"{mnemonic} has no funct3 field")
        return funct3

    def resolve_func7(self, mnemonic: str) -> int:
        funct7 = self.resolve_instruction(mnemonic).funct7
        if funct7 is None:
            raise ValueError(f"{mnemonic} has no funct7 field")
        return funct7

    def classify_format(self, opcode: int) -> InstructionFormat:
        """
        Map an opcode to its instruction format.

        Every opcode in the instruction table has a format, so a miss here
        means the table itself is inconsistent.
        """
        try:
            return self._formats[opcode]
        except KeyError:
            raise AssertionError(f"Opcode 0x{opcode:02X} has no instruction format")

    def get_all_mnemonics(self) -> List[str]:
        """Get a list of all supported instruction mnemonics."""
        return list(self._instructions.keys())


# =============================================================================
# RV32I Base Integer Instruction Set
# =============================================================================

RV32I_FORMATS: Dict[int, InstructionFormat] = {
    OPCODE_ARITHMETIC_IMM: InstructionFormat.I,
    OPCODE_JALR: InstructionFormat.I,
    OPCODE_LOAD: InstructionFormat.I,
    OPCODE_ARITHMETIC: InstructionFormat.R,
    OPCODE_JAL: InstructionFormat.J,
    OPCODE_LUI: InstructionFormat.U,
    OPCODE_AUIPC: InstructionFormat.U,
    OPCODE_BRANCH: InstructionFormat.B,
    OPCODE_STORE: InstructionFormat.S,
}


def _define(opcode: int, funct3: Optional[int] = None, funct7: Optional[int] = None) -> Instruction:
    return Instruction(opcode=opcode, format=RV32I_FORMATS[opcode], funct3=funct3, funct7=funct7)


INSTRUCTIONS: Dict[str, Instruction] = {
    # -------------------------------------------------------------------------
    # R-Type Instructions (Register-Register) - Opcode: 0x33
    # -------------------------------------------------------------------------
    "add": _define(OPCODE_ARITHMETIC, funct3=0b000, funct7=0x00),
    "sub": _define(OPCODE_ARITHMETIC, funct3=0b000, funct7=0x20),
    "sll": _define(OPCODE_ARITHMETIC, funct3=0b001, funct7=0x00),
    "slt": _define(OPCODE_ARITHMETIC, funct3=0b010, funct7=0x00),
    "sltu": _define(OPCODE_ARITHMETIC, funct3=0b011, funct7=0x00),
    "xor": _define(OPCODE_ARITHMETIC, funct3=0b100, funct7=0x00),
    "srl": _define(OPCODE_ARITHMETIC, funct3=0b101, funct7=0x00),
    "sra": _define(OPCODE_ARITHMETIC, funct3=0b101, funct7=0x20),
    "or": _define(OPCODE_ARITHMETIC, funct3=0b110, funct7=0x00),
    "and": _define(OPCODE_ARITHMETIC, funct3=0b111, funct7=0x00),
    # -------------------------------------------------------------------------
    # I-Type Instructions (Immediate) - Opcode: 0x13
    # -------------------------------------------------------------------------
    "addi": _define(OPCODE_ARITHMETIC_IMM, funct3=0b000),
    "slti": _define(OPCODE_ARITHMETIC_IMM, funct3=0b010),
    "sltiu": _define(OPCODE_ARITHMETIC_IMM, funct3=0b011),
    "xori": _define(OPCODE_ARITHMETIC_IMM, funct3=0b100),
    "ori": _define(OPCODE_ARITHMETIC_IMM, funct3=0b110),
    "andi": _define(OPCODE_ARITHMETIC_IMM, funct3=0b111),
    "slli": _define(OPCODE_ARITHMETIC_IMM, funct3=0b001, funct7=0x00),
    "srli": _define(OPCODE_ARITHMETIC_IMM, funct3=0b101, funct7=0x00),
    "srai": _define(OPCODE_ARITHMETIC_IMM, funct3=0b101, funct7=0x20),
    # -------------------------------------------------------------------------
    # Load Instructions (I-Type) - Opcode: 0x03
    # -------------------------------------------------------------------------
    "lb": _define(OPCODE_LOAD, funct3=0b000),
    "lh": _define(OPCODE_LOAD, funct3=0b001),
    "lw": _define(OPCODE_LOAD, funct3=0b010),
    "lbu": _define(OPCODE_LOAD, funct3=0b100),
    "lhu": _define(OPCODE_LOAD, funct3=0b101),
    # -------------------------------------------------------------------------
    # Store Instructions (S-Type) - Opcode: 0x23
    # -------------------------------------------------------------------------
    "sb": _define(OPCODE_STORE, funct3=0b000),
    "sh": _define(OPCODE_STORE, funct3=0b001),
    "sw": _define(OPCODE_STORE, funct3=0b010),
    # -------------------------------------------------------------------------
    # Branch Instructions (B-Type) - Opcode: 0x63
    # -------------------------------------------------------------------------
    "beq": _define(OPCODE_BRANCH, funct3=0b000),
    "bne": _define(OPCODE_BRANCH, funct3=0b001),
    "blt": _define(OPCODE_BRANCH, funct3=0b100),
    "bge": _define(OPCODE_BRANCH, funct3=0b101),
    "bltu": _define(OPCODE_BRANCH, funct3=0b110),
    "bgeu": _define(OPCODE_BRANCH, funct3=0b111),
    # -------------------------------------------------------------------------
    # Jump Instructions
    # -------------------------------------------------------------------------
    "jal": _define(OPCODE_JAL),
    "jalr": _define(OPCODE_JALR, funct3=0b000),
    # -------------------------------------------------------------------------
    # Upper Immediate Instructions (U-Type)
    # -------------------------------------------------------------------------
    "lui": _define(OPCODE_LUI),
    "auipc": _define(OPCODE_AUIPC),
}

RV32I = InstructionSet("rv32i", RV32I_FORMATS, INSTRUCTIONS)


def get_instruction(mnemonic: str) -> Optional[Instruction]:
    """Look up an instruction in the built-in RV32I table."""
    return RV32I.get_instruction(mnemonic)


def resolve_opcode(mnemonic: str) -> int:
    return RV32I.resolve_opcode(mnemonic)


def resolve_func3(mnemonic: str) -> int:
    return RV32I.resolve_func3(mnemonic)


def resolve_func7(mnemonic: str) -> int:
    return RV32I.resolve_func7(mnemonic)


def classify_format(opcode: int) -> InstructionFormat:
    return RV32I.classify_format(opcode)
