"""
Instruction Table Loader

Parses and validates YAML instruction tables that replace the built-in
RV32I definitions. A table maps opcodes to formats and mnemonics to their
opcode/funct3/funct7 constants:

    name: "rv32i-subset"
    formats:
      0x13: I
      0x33: R
    instructions:
      addi: {opcode: 0x13, funct3: 0}
      add:  {opcode: 0x33, funct3: 0, funct7: 0}
"""

from typing import Any, Dict

import yaml

from .errors import InstructionTableError
from .instructions import Instruction, InstructionFormat, InstructionSet

VALID_FORMATS = {fmt.name: fmt for fmt in InstructionFormat}

# Formats that carry a funct3 / funct7 field
FUNCT3_FORMATS = {InstructionFormat.R, InstructionFormat.I, InstructionFormat.S, InstructionFormat.B}
FUNCT7_FORMATS = {InstructionFormat.R}


def load_instruction_set(yaml_content: str) -> InstructionSet:
    """
    Parse and validate a YAML instruction table.

    Args:
        yaml_content: Raw YAML string content

    Returns:
        InstructionSet built from the table

    Raises:
        InstructionTableError: If the table is invalid
    """
    try:
        table = yaml.safe_load(yaml_content)
    except yaml.YAMLError as e:
        raise InstructionTableError(f"Invalid YAML syntax: {e}")

    if not isinstance(table, dict):
        raise InstructionTableError("Instruction table must be a YAML mapping/dictionary")

    name = table.get("name", "custom")
    if not isinstance(name, str):
        raise InstructionTableError("'name' must be a string")

    formats = _validate_formats(table)
    instructions = _validate_instructions(table, formats)
    return InstructionSet(name, formats, instructions)


def load_instruction_set_file(filepath: str) -> InstructionSet:
    """Load an instruction table from a YAML file."""
    with open(filepath, "r") as f:
        return load_instruction_set(f.read())


def _validate_formats(table: dict) -> Dict[int, InstructionFormat]:
    """Validate the opcode -> format mapping."""
    if "formats" not in table:
        raise InstructionTableError("Missing required field 'formats'")

    raw = table["formats"]
    if not isinstance(raw, dict) or not raw:
        raise InstructionTableError("'formats' must be a non-empty mapping")

    formats = {}
    for opcode, fmt_name in raw.items():
        _require_int_range(opcode, 0, 0x7F, f"formats opcode {opcode!r}")
        if fmt_name not in VALID_FORMATS:
            raise InstructionTableError(
                f"formats[0x{opcode:02X}]: invalid format '{fmt_name}'. "
                f"Valid formats: {', '.join(sorted(VALID_FORMATS))}"
            )
        formats[opcode] = VALID_FORMATS[fmt_name]
    return formats


def _validate_instructions(
    table: dict, formats: Dict[int, InstructionFormat]
) -> Dict[str, Instruction]:
    """Validate each mnemonic entry against the format mapping."""
    if "instructions" not in table:
        raise InstructionTableError("Missing required field 'instructions'")

    raw = table["instructions"]
    if not isinstance(raw, dict) or not raw:
        raise InstructionTableError("'instructions' must be a non-empty mapping")

    instructions = {}
    for mnemonic, entry in raw.items():
        if not isinstance(mnemonic, str):
            raise InstructionTableError(f"Mnemonic {mnemonic!r} must be a string")
        key = mnemonic.lower()
        if key in instructions:
            raise InstructionTableError(f"Duplicate mnemonic '{key}'")
        instructions[key] = _validate_instruction(key, entry, formats)
    return instructions


def _validate_instruction(
    mnemonic: str, entry: Any, formats: Dict[int, InstructionFormat]
) -> Instruction:
    if not isinstance(entry, dict):
        raise InstructionTableError(f"Instruction '{mnemonic}' must be a mapping")

    if "opcode" not in entry:
        raise InstructionTableError(f"Instruction '{mnemonic}' missing required field 'opcode'")
    opcode = entry["opcode"]
    _require_int_range(opcode, 0, 0x7F, f"{mnemonic}.opcode")
    if opcode not in formats:
        raise InstructionTableError(
            f"Instruction '{mnemonic}': opcode 0x{opcode:02X} has no format in 'formats'"
        )
    fmt = formats[opcode]

    funct3 = entry.get("funct3")
    if fmt in FUNCT3_FORMATS:
        if funct3 is None:
            raise InstructionTableError(f"Instruction '{mnemonic}' missing required field 'funct3'")
        _require_int_range(funct3, 0, 0x7, f"{mnemonic}.funct3")

    funct7 = entry.get("funct7")
    if fmt in FUNCT7_FORMATS and funct7 is None:
        raise InstructionTableError(f"Instruction '{mnemonic}' missing required field 'funct7'")
    if funct7 is not None:
        _require_int_range(funct7, 0, 0x7F, f"{mnemonic}.funct7")

    return Instruction(opcode=opcode, format=fmt, funct3=funct3, funct7=funct7)


def _require_int_range(value: Any, lo: int, hi: int, field_path: str) -> None:
    """Validate that value is an integer within [lo, hi]."""
    if not isinstance(value, int) or isinstance(value, bool) or not lo <= value <= hi:
        raise InstructionTableError(f"'{field_path}' must be an integer in [{lo}, {hi}]")


def get_instruction_set_summary(isa: InstructionSet) -> dict:
    """
    Get a summary of an instruction set for display.

    Args:
        isa: Loaded instruction set

    Returns:
        Summary dictionary with key info
    """
    by_format: Dict[str, int] = {}
    for instr in isa.instructions.values():
        by_format[instr.format.name] = by_format.get(instr.format.name, 0) + 1

    return {
        "name": isa.name,
        "instruction_count": len(isa),
        "opcodes": sorted(isa.formats),
        "by_format": by_format,
    }
