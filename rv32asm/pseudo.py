"""
Pseudo-instruction expansion.

Expands RISC-V pseudo-instructions into their equivalent base instructions.
Expansion works on token lists (mnemonic first) and is purely syntactic:
label operands are passed through for the encoder to resolve.
"""

from typing import Callable, Dict, List, Tuple

from .immediates import LABEL_RE, is_numeric_literal, parse_immediate
from .errors import ImmediateRangeError, OperandCountError

# Type alias for expanded instruction tokens: [mnemonic, operand, ...]
ExpandedInstruction = List[str]

Expander = Callable[[List[str]], List[ExpandedInstruction]]


def _require_operands(name: str, operands: List[str], count: int) -> None:
    if len(operands) != count:
        if count == 0:
            raise OperandCountError(f"{name.upper()} takes no operands, got {len(operands)}")
        noun = "operand" if count == 1 else "operands"
        raise OperandCountError(
            f"{name.upper()} requires {count} {noun}, got {len(operands)}"
        )


def split_immediate(value: int) -> Tuple[int, int]:
    """
    Split a 32-bit constant into LUI and ADDI parts.

    Returns:
        (upper20, lower12) where ``(upper20 << 12) + lower12`` equals the
        value modulo 2**32 and lower12 fits a signed 12-bit immediate
    """
    upper = (value + 0x800) >> 12  # Add 0x800 to handle sign extension of lower
    lower = value - (upper << 12)
    return upper & 0xFFFFF, lower


def expand_li(operands: List[str]) -> List[ExpandedInstruction]:
    """
    Expand LI (load immediate) pseudo-instruction.

    li rd, imm ->
        If imm fits in 12 bits signed: addi rd, x0, imm
        Otherwise: lui rd, upper20 ; addi rd, rd, lower12
    li rd, label ->
        addi rd, x0, label (the label's address must fit 12 bits signed)
    """
    _require_operands("li", operands, 2)

    rd = operands[0]
    value = operands[1].strip()

    # Labels are resolved later, so their width is unknown here
    if not is_numeric_literal(value) and LABEL_RE.match(value):
        return [["addi", rd, "x0", value]]

    imm = parse_immediate(value)

    if not -(1 << 31) <= imm <= 0xFFFFFFFF:
        raise ImmediateRangeError(f"LI value {imm} does not fit in 32 bits")

    if -2048 <= imm <= 2047:
        return [["addi", rd, "x0", str(imm)]]

    upper, lower = split_immediate(imm)
    result = [["lui", rd, str(upper)]]
    if lower != 0:
        result.append(["addi", rd, rd, str(lower)])
    return result


def _unary(mnemonic: str, build: Callable[[str, str], List[str]]) -> Expander:
    """Build an expander for ``op rd, rs`` style pseudo-instructions."""

    def expand(operands: List[str]) -> List[ExpandedInstruction]:
        _require_operands(mnemonic, operands, 2)
        rd, rs = operands
        return [build(rd, rs)]

    return expand


def _branch_zero(mnemonic: str, build: Callable[[str, str], List[str]]) -> Expander:
    """Build an expander for ``bxxz rs, offset`` branches against x0."""

    def expand(operands: List[str]) -> List[ExpandedInstruction]:
        _require_operands(mnemonic, operands, 2)
        rs, offset = operands
        return [build(rs, offset)]

    return expand


def _branch_swapped(mnemonic: str, base: str) -> Expander:
    """Build an expander for ``bgt rs, rt, offset`` -> ``blt rt, rs, offset``."""

    def expand(operands: List[str]) -> List[ExpandedInstruction]:
        _require_operands(mnemonic, operands, 3)
        rs, rt, offset = operands
        return [[base, rt, rs, offset]]

    return expand


def _jump(mnemonic: str, link: str) -> Expander:
    """Build an expander for ``j``-style jumps: jal <link>, offset."""

    def expand(operands: List[str]) -> List[ExpandedInstruction]:
        _require_operands(mnemonic, operands, 1)
        return [["jal", link, operands[0]]]

    return expand


def _jump_register(mnemonic: str, link: str) -> Expander:
    """Build an expander for ``jr``-style jumps: jalr <link>, rs, 0."""

    def expand(operands: List[str]) -> List[ExpandedInstruction]:
        _require_operands(mnemonic, operands, 1)
        return [["jalr", link, operands[0], "0"]]

    return expand


def expand_nop(operands: List[str]) -> List[ExpandedInstruction]:
    """
    Expand NOP pseudo-instruction.

    nop -> addi x0, x0, 0
    """
    _require_operands("nop", operands, 0)
    return [["addi", "x0", "x0", "0"]]


def expand_ret(operands: List[str]) -> List[ExpandedInstruction]:
    """
    Expand RET (return) pseudo-instruction.

    ret -> jalr x0, ra, 0
    """
    _require_operands("ret", operands, 0)
    return [["jalr", "x0", "ra", "0"]]


# Map of pseudo-instruction names to their expansion functions
PSEUDO_INSTRUCTIONS: Dict[str, Expander] = {
    "li": expand_li,
    "nop": expand_nop,
    "ret": expand_ret,
    "mv": _unary("mv", lambda rd, rs: ["addi", rd, rs, "0"]),
    "not": _unary("not", lambda rd, rs: ["xori", rd, rs, "-1"]),
    "neg": _unary("neg", lambda rd, rs: ["sub", rd, "x0", rs]),
    "seqz": _unary("seqz", lambda rd, rs: ["sltiu", rd, rs, "1"]),
    "snez": _unary("snez", lambda rd, rs: ["sltu", rd, "x0", rs]),
    "sltz": _unary("sltz", lambda rd, rs: ["slt", rd, rs, "x0"]),
    "sgtz": _unary("sgtz", lambda rd, rs: ["slt", rd, "x0", rs]),
    "beqz": _branch_zero("beqz", lambda rs, off: ["beq", rs, "x0", off]),
    "bnez": _branch_zero("bnez", lambda rs, off: ["bne", rs, "x0", off]),
    "blez": _branch_zero("blez", lambda rs, off: ["bge", "x0", rs, off]),
    "bgez": _branch_zero("bgez", lambda rs, off: ["bge", rs, "x0", off]),
    "bltz": _branch_zero("bltz", lambda rs, off: ["blt", rs, "x0", off]),
    "bgtz": _branch_zero("bgtz", lambda rs, off: ["blt", "x0", rs, off]),
    "bgt": _branch_swapped("bgt", "blt"),
    "ble": _branch_swapped("ble", "bge"),
    "bgtu": _branch_swapped("bgtu", "bltu"),
    "bleu": _branch_swapped("bleu", "bgeu"),
    "j": _jump("j", "x0"),
    "call": _jump("call", "ra"),
    "tail": _jump("tail", "x0"),
    "jr": _jump_register("jr", "x0"),
}

# Base mnemonics that also have a one-operand pseudo form
SHORT_FORMS: Dict[str, Expander] = {
    "jal": _jump("jal", "ra"),
    "jalr": _jump_register("jalr", "ra"),
}


def is_pseudo_instruction(tokens: List[str]) -> bool:
    """Check if a token list is a pseudo-instruction."""
    if not tokens:
        return False
    mnemonic = tokens[0].lower()
    if mnemonic in PSEUDO_INSTRUCTIONS:
        return True
    return mnemonic in SHORT_FORMS and len(tokens) == 2


def expand_pseudo(tokens: List[str]) -> List[ExpandedInstruction]:
    """
    Expand a pseudo-instruction into base instructions.

    Args:
        tokens: Instruction tokens, mnemonic first, label already stripped

    Returns:
        List of base-instruction token lists. Anything that is not a
        pseudo-instruction is returned unchanged as the only element.

    Raises:
        OperandCountError: If a pseudo-instruction has the wrong operand count
        ImmediateParseError: If LI is given neither a literal nor a label name
        ImmediateRangeError: If LI is given a value wider than 32 bits
    """
    if not is_pseudo_instruction(tokens):
        return [list(tokens)]

    mnemonic = tokens[0].lower()
    expander = PSEUDO_INSTRUCTIONS.get(mnemonic) or SHORT_FORMS[mnemonic]
    return expander(tokens[1:])


def get_pseudo_instruction_count(tokens: List[str]) -> int:
    """
    Get the number of base instructions a line expands to.

    This is needed for address calculation in the first pass.
    """
    return len(expand_pseudo(tokens))
