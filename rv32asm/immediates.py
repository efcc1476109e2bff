"""
Immediate operand parsing and label resolution.
"""

import re
from typing import Mapping

from .errors import ImmediateParseError, UndefinedLabelError
from .instructions import InstructionFormat

LABEL_RE = re.compile(r"^[A-Za-z_.$][\w.$]*$")

# Formats whose label operands are encoded relative to the instruction's pc
PC_RELATIVE_FORMATS = frozenset({InstructionFormat.B, InstructionFormat.J})

DECIMAL_DIGITS = re.compile(r"[0-9]+")

# Radix prefix -> (base, allowed digits after the prefix)
RADIX_PREFIXES = {
    "0x": (16, re.compile(r"[0-9a-fA-F]+")),
    "0b": (2, re.compile(r"[01]+")),
    "0o": (8, re.compile(r"[0-7]+")),
}


def parse_immediate(value_str: str) -> int:
    """
    Parse an immediate value from string.

    Supports:
    - Decimal: 123, -45, +7
    - Hexadecimal: 0x1A, 0X1a
    - Binary: 0b1010
    - Octal: 0o17

    Returns:
        Integer value
    """
    value_str = value_str.strip()

    if not value_str:
        raise ImmediateParseError("Empty immediate value")

    negative = value_str.startswith("-")
    digits = value_str[1:] if value_str[:1] in ("-", "+") else value_str

    base, pattern = RADIX_PREFIXES.get(digits[:2].lower(), (10, DECIMAL_DIGITS))
    if base != 10:
        digits = digits[2:]
    if not pattern.fullmatch(digits):
        raise ImmediateParseError(f"Invalid immediate value: {value_str}")

    result = int(digits, base)
    return -result if negative else result


def is_numeric_literal(token: str) -> bool:
    try:
        parse_immediate(token)
    except ImmediateParseError:
        return False
    return True


def resolve_immediate(
    token: str,
    labels: Mapping[str, int],
    pc: int,
    fmt: InstructionFormat,
) -> int:
    """
    Resolve an immediate operand to a signed integer.

    Numeric literals are returned unchanged, also for branches and jumps.
    A label resolves to its byte address, or, for B-type and J-type
    instructions, to its offset from ``pc``.

    Args:
        token: Operand text
        labels: Label table built by the first pass
        pc: Address of the instruction being encoded
        fmt: Format of the instruction being encoded

    Returns:
        Integer value, not yet range-checked
    """
    token = token.strip()
    if is_numeric_literal(token):
        return parse_immediate(token)

    if not LABEL_RE.match(token):
        raise ImmediateParseError(f"Invalid immediate value: {token}")

    if token not in labels:
        raise UndefinedLabelError(f"Undefined label: {token}")

    address = labels[token]
    if fmt in PC_RELATIVE_FORMATS:
        return address - pc
    return address
