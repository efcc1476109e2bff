"""
rv32asm - A two-pass RV32I assembler.

Translates RISC-V assembly text into 32-bit machine words.
"""

from .assembler import Assembler, assemble, resolve_labels
from .decoder import decode_instruction, disassemble
from .instructions import InstructionFormat, InstructionSet, RV32I
from .isa_table import load_instruction_set, load_instruction_set_file
from .errors import (
    AssemblerError,
    ParseError,
    EncodingError,
    SymbolError,
    TooManyTokensError,
    UnknownMnemonicError,
    UnknownRegisterError,
    ImmediateParseError,
    ImmediateRangeError,
    OperandCountError,
    UndefinedLabelError,
    DuplicateLabelError,
    DecodingError,
    InstructionTableError,
)

__version__ = "1.0.0"
__all__ = [
    "Assembler",
    "assemble",
    "resolve_labels",
    "decode_instruction",
    "disassemble",
    "InstructionFormat",
    "InstructionSet",
    "RV32I",
    "load_instruction_set",
    "load_instruction_set_file",
    "AssemblerError",
    "ParseError",
    "EncodingError",
    "SymbolError",
    "TooManyTokensError",
    "UnknownMnemonicError",
    "UnknownRegisterError",
    "ImmediateParseError",
    "ImmediateRangeError",
    "OperandCountError",
    "UndefinedLabelError",
    "DuplicateLabelError",
    "DecodingError",
    "InstructionTableError",
]
