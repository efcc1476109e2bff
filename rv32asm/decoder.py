"""
RISC-V instruction decoder.

Recovers the fields of an encoded word, undoing the B-type and J-type
immediate scrambling. Used for listings and for checking encodings.
"""

from dataclasses import dataclass
from typing import Optional

from .encoder import sign_extend
from .errors import DecodingError
from .instructions import OPCODE_LOAD, InstructionFormat, InstructionSet, RV32I
from .registers import get_register_name


@dataclass(frozen=True)
class DecodedInstruction:
    """
    Fields recovered from a 32-bit instruction word.

    Fields that the format does not carry are None. ``imm`` is sign-extended
    for I/S/B/J formats (B/J as byte offsets) and the raw 20-bit field for U.
    """

    word: int
    opcode: int
    format: InstructionFormat
    rd: Optional[int] = None
    rs1: Optional[int] = None
    rs2: Optional[int] = None
    funct3: Optional[int] = None
    funct7: Optional[int] = None
    imm: Optional[int] = None


def _field(word: int, lo: int, width: int) -> int:
    return (word >> lo) & ((1 << width) - 1)


def decode_instruction(word: int, isa: InstructionSet = RV32I) -> DecodedInstruction:
    """
    Decode a 32-bit word into its instruction fields.

    Raises:
        DecodingError: If the opcode is not part of ``isa``
    """
    word &= 0xFFFFFFFF
    opcode = _field(word, 0, 7)
    fmt = isa.formats.get(opcode)
    if fmt is None:
        raise DecodingError(f"Unknown opcode 0x{opcode:02X} in word 0x{word:08X}")

    rd = _field(word, 7, 5)
    funct3 = _field(word, 12, 3)
    rs1 = _field(word, 15, 5)
    rs2 = _field(word, 20, 5)
    funct7 = _field(word, 25, 7)

    if fmt is InstructionFormat.R:
        return DecodedInstruction(word, opcode, fmt, rd=rd, rs1=rs1, rs2=rs2, funct3=funct3, funct7=funct7)

    if fmt is InstructionFormat.I:
        imm = sign_extend(_field(word, 20, 12), 12)
        return DecodedInstruction(word, opcode, fmt, rd=rd, rs1=rs1, funct3=funct3, imm=imm)

    if fmt is InstructionFormat.S:
        imm = sign_extend((funct7 << 5) | rd, 12)
        return DecodedInstruction(word, opcode, fmt, rs1=rs1, rs2=rs2, funct3=funct3, imm=imm)

    if fmt is InstructionFormat.B:
        imm = (
            (_field(word, 31, 1) << 12)
            | (_field(word, 7, 1) << 11)
            | (_field(word, 25, 6) << 5)
            | (_field(word, 8, 4) << 1)
        )
        return DecodedInstruction(word, opcode, fmt, rs1=rs1, rs2=rs2, funct3=funct3, imm=sign_extend(imm, 13))

    if fmt is InstructionFormat.U:
        return DecodedInstruction(word, opcode, fmt, rd=rd, imm=_field(word, 12, 20))

    imm = (
        (_field(word, 31, 1) << 20)
        | (_field(word, 12, 8) << 12)
        | (_field(word, 20, 1) << 11)
        | (_field(word, 21, 10) << 1)
    )
    return DecodedInstruction(word, opcode, fmt, rd=rd, imm=sign_extend(imm, 21))


def mnemonic_for(decoded: DecodedInstruction, isa: InstructionSet = RV32I) -> Optional[str]:
    """Find the mnemonic whose opcode/funct3/funct7 match a decoded word."""
    for mnemonic, instr in isa.instructions.items():
        if instr.opcode != decoded.opcode:
            continue
        if instr.funct3 is not None and instr.funct3 != decoded.funct3:
            continue
        if instr.funct7 is not None:
            # Shift-immediates keep funct7 in imm[11:5]
            funct7 = decoded.funct7 if decoded.format is InstructionFormat.R else (decoded.imm >> 5) & 0x7F
            if instr.funct7 != funct7:
                continue
        return mnemonic
    return None


def disassemble(word: int, isa: InstructionSet = RV32I) -> str:
    """Render a word as assembly text using ABI register names."""
    decoded = decode_instruction(word, isa)
    mnemonic = mnemonic_for(decoded, isa) or f"0x{decoded.opcode:02x}"
    fmt = decoded.format

    def reg(num: int) -> str:
        return get_register_name(num)

    if fmt is InstructionFormat.R:
        return f"{mnemonic} {reg(decoded.rd)}, {reg(decoded.rs1)}, {reg(decoded.rs2)}"
    if fmt is InstructionFormat.I:
        if decoded.opcode == OPCODE_LOAD:
            return f"{mnemonic} {reg(decoded.rd)}, {decoded.imm}({reg(decoded.rs1)})"
        instr = isa.get_instruction(mnemonic)
        imm = decoded.imm
        if instr is not None and instr.funct7 is not None:
            imm &= 0x1F
        return f"{mnemonic} {reg(decoded.rd)}, {reg(decoded.rs1)}, {imm}"
    if fmt is InstructionFormat.S:
        return f"{mnemonic} {reg(decoded.rs2)}, {decoded.imm}({reg(decoded.rs1)})"
    if fmt is InstructionFormat.B:
        return f"{mnemonic} {reg(decoded.rs1)}, {reg(decoded.rs2)}, {decoded.imm}"
    if fmt is InstructionFormat.U:
        return f"{mnemonic} {reg(decoded.rd)}, 0x{decoded.imm:x}"
    return f"{mnemonic} {reg(decoded.rd)}, {decoded.imm}"
