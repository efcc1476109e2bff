"""
Main assembler implementation.

Two-pass assembler for RISC-V RV32I assembly to 32-bit machine words.

Pass 1 walks every line once and records each label's byte address. It
expands pseudo-instructions exactly like pass 2 does, so a line that turns
into several words moves every later label by the right amount.

Pass 2 expands, resolves and encodes every instruction in source order.
The first error aborts the whole assembly.
"""

from typing import Dict, List, Mapping, Optional, Tuple

from .tokenizer import tokenize, is_label, label_name, split_lines
from .registers import resolve_register, is_valid_register
from .immediates import resolve_immediate
from .instructions import (
    OPCODE_BRANCH,
    OPCODE_JALR,
    OPCODE_LOAD,
    OPCODE_STORE,
    InstructionFormat,
    InstructionSet,
    RV32I,
)
from .pseudo import expand_pseudo
from .encoder import encode_instruction
from .decoder import disassemble
from .errors import (
    AssemblerError,
    DecodingError,
    DuplicateLabelError,
    OperandCountError,
    TooManyTokensError,
)

# Longest line: label, mnemonic and three operands
MAX_TOKENS = 5

# Token positions per operand family: (rd, rs1, rs2, imm); None if absent
OperandLayout = Tuple[Optional[int], Optional[int], Optional[int], Optional[int]]

LAYOUT_R: OperandLayout = (1, 2, 3, None)
LAYOUT_I_ARITHMETIC: OperandLayout = (1, 2, None, 3)
LAYOUT_I_LOAD: OperandLayout = (1, 3, None, 2)
LAYOUT_I_JALR_MEMORY: OperandLayout = (1, 3, None, 2)
LAYOUT_S_STORE: OperandLayout = (None, 3, 1, 2)
LAYOUT_B_BRANCH: OperandLayout = (None, 1, 2, 3)
LAYOUT_U: OperandLayout = (1, None, None, 2)
LAYOUT_J: OperandLayout = (1, None, None, 2)

FORMAT_LAYOUTS: Dict[InstructionFormat, OperandLayout] = {
    InstructionFormat.R: LAYOUT_R,
    InstructionFormat.I: LAYOUT_I_ARITHMETIC,
    InstructionFormat.S: LAYOUT_S_STORE,
    InstructionFormat.B: LAYOUT_B_BRANCH,
    InstructionFormat.U: LAYOUT_U,
    InstructionFormat.J: LAYOUT_J,
}

OPCODE_LAYOUTS: Dict[int, OperandLayout] = {
    OPCODE_LOAD: LAYOUT_I_LOAD,
    OPCODE_STORE: LAYOUT_S_STORE,
    OPCODE_BRANCH: LAYOUT_B_BRANCH,
}


def operand_layout(tokens: List[str], opcode: int, fmt: InstructionFormat) -> OperandLayout:
    """
    Pick the token position of each field.

    The format alone is not enough: loads, jalr and arithmetic-immediates
    are all I-type but place rs1 and the immediate differently.
    """
    if opcode == OPCODE_JALR:
        # jalr rd, rs1, imm  |  jalr rd, imm(rs1)
        if len(tokens) > 2 and not is_valid_register(tokens[2]):
            return LAYOUT_I_JALR_MEMORY
        return LAYOUT_I_ARITHMETIC
    return OPCODE_LAYOUTS.get(opcode, FORMAT_LAYOUTS[fmt])


def strip_label(tokens: List[str]) -> List[str]:
    """Drop a leading ``label:`` token."""
    if tokens and is_label(tokens[0]):
        return tokens[1:]
    return tokens


def check_token_count(tokens: List[str]) -> None:
    if len(tokens) > MAX_TOKENS:
        raise TooManyTokensError(
            f"Too many tokens ({len(tokens)}), at most {MAX_TOKENS} allowed"
        )


def assemble_instruction(
    tokens: List[str],
    labels: Mapping[str, int],
    pc: int,
    isa: InstructionSet = RV32I,
) -> int:
    """
    Encode one base instruction.

    Args:
        tokens: Base instruction tokens (mnemonic first, no label)
        labels: Label table from pass 1
        pc: Byte address of this instruction
        isa: Instruction table

    Returns:
        32-bit encoded instruction
    """
    mnemonic = tokens[0]
    instr = isa.resolve_instruction(mnemonic)
    fmt = isa.classify_format(instr.opcode)
    rd_pos, rs1_pos, rs2_pos, imm_pos = operand_layout(tokens, instr.opcode, fmt)

    expected = 1 + sum(pos is not None for pos in (rd_pos, rs1_pos, rs2_pos, imm_pos))
    if len(tokens) != expected:
        raise OperandCountError(
            f"{mnemonic} requires {expected - 1} operands, got {len(tokens) - 1}"
        )

    rd = resolve_register(tokens[rd_pos]) if rd_pos is not None else 0
    rs1 = resolve_register(tokens[rs1_pos]) if rs1_pos is not None else 0
    rs2 = resolve_register(tokens[rs2_pos]) if rs2_pos is not None else 0
    imm = resolve_immediate(tokens[imm_pos], labels, pc, fmt) if imm_pos is not None else 0

    return encode_instruction(instr, rd, rs1, rs2, imm)


def resolve_labels(text: str, isa: InstructionSet = RV32I) -> Dict[str, int]:
    """
    Build the label table by a single forward pass.

    Args:
        text: Full program source
        isa: Instruction table the program will be encoded against

    Returns:
        Mapping of label name to byte address
    """
    return Assembler(isa=isa).resolve_labels(split_lines(text))


def assemble(text: str, isa: Optional[InstructionSet] = None) -> List[int]:
    """
    Assemble a full program of newline-separated instructions.

    Returns:
        List of 32-bit words in program order

    Raises:
        AssemblerError: The first error found; no partial output is returned
    """
    return Assembler(isa=isa).assemble_string(text)


class Assembler:
    """
    Two-pass RISC-V assembler.

    Pass 1: Collect labels and compute addresses
    Pass 2: Encode instructions with resolved labels
    """

    def __init__(self, verbose: bool = False, isa: Optional[InstructionSet] = None):
        """
        Initialize the assembler.

        Args:
            verbose: If True, print detailed assembly information
            isa: Instruction table to assemble against (RV32I by default)
        """
        self.verbose = verbose
        self.isa = isa or RV32I
        self.symbols: Dict[str, int] = {}  # label -> byte address
        self.instructions: List[int] = []  # encoded 32-bit instructions
        self.current_address: int = 0
        self.source_map: List[Tuple[int, str, int]] = []  # (addr, original_line, line_num)

    def log(self, message: str) -> None:
        """Print message if verbose mode is enabled."""
        if self.verbose:
            print(message)

    def assemble_file(self, input_path: str, output_path: str = None) -> List[int]:
        """
        Assemble an assembly file to hex output.

        Args:
            input_path: Path to input .S file
            output_path: Path to output .hex file (optional)

        Returns:
            List of 32-bit encoded instructions
        """
        self.log(f"Assembling: {input_path}")
        with open(input_path, "r") as f:
            source = f.read()

        self.assemble_string(source)

        if output_path:
            self.write_hex(output_path)
            self.log(f"Output written to: {output_path}")

        return self.instructions

    def assemble_string(self, source: str) -> List[int]:
        """
        Assemble from a string.

        Args:
            source: Assembly source code

        Returns:
            List of 32-bit encoded instructions
        """
        lines = split_lines(source)
        self.instructions = []
        self.source_map = []
        try:
            self.symbols = self.resolve_labels(lines)
            self._pass2(lines)
        except AssemblerError:
            self.symbols = {}
            self.instructions = []
            self.source_map = []
            raise
        return list(self.instructions)

    def _expand_line(self, line: str) -> List[List[str]]:
        """Tokenize one line and expand it into base instructions."""
        tokens = tokenize(line)
        check_token_count(tokens)
        tokens = strip_label(tokens)
        if not tokens:
            return []
        return expand_pseudo(tokens)

    def resolve_labels(self, lines: List[str]) -> Dict[str, int]:
        """
        First pass: Collect labels and compute addresses.
        """
        self.log("\n=== Pass 1: Collecting labels ===")
        symbols: Dict[str, int] = {}
        self.current_address = 0

        for line_num, line in enumerate(lines, start=1):
            try:
                tokens = tokenize(line)
                if tokens and is_label(tokens[0]):
                    label = label_name(tokens[0])
                    if label in symbols:
                        raise DuplicateLabelError(f"Duplicate label: {label}")
                    symbols[label] = self.current_address
                    self.log(f"  Label '{label}' at 0x{self.current_address:04X}")

                # Each base instruction is 4 bytes
                self.current_address += 4 * len(self._expand_line(line))
            except AssemblerError as e:
                raise e.with_location(line_num, line)

        self.log(f"  Total symbols: {len(symbols)}")
        self.log(f"  Program size: {self.current_address} bytes")
        return symbols

    def _pass2(self, lines: List[str]) -> None:
        """
        Second pass: Encode instructions with resolved labels.
        """
        self.log("\n=== Pass 2: Encoding instructions ===")
        self.current_address = 0

        for line_num, line in enumerate(lines, start=1):
            try:
                for tokens in self._expand_line(line):
                    encoded = assemble_instruction(
                        tokens, self.symbols, self.current_address, self.isa
                    )
                    self.instructions.append(encoded)
                    self.source_map.append((self.current_address, line, line_num))
                    self.log(
                        f"  0x{self.current_address:04X}: {encoded:08X}  "
                        f"{tokens[0]} {', '.join(tokens[1:])}"
                    )
                    self.current_address += 4
            except AssemblerError as e:
                raise e.with_location(line_num, line)

        self.log(f"\n  Total instructions: {len(self.instructions)}")

    def write_hex(self, output_path: str) -> None:
        """
        Write assembled instructions to hex file.

        Args:
            output_path: Path to output file
        """
        with open(output_path, "w") as f:
            for instr in self.instructions:
                f.write(f"{instr:08x}\n")

    def get_hex_string(self) -> str:
        """
        Get assembled instructions as a hex string.

        Returns:
            String with one hex instruction per line
        """
        return "\n".join(f"{instr:08x}" for instr in self.instructions)

    def get_listing(self) -> str:
        """
        Get an assembly listing showing addresses, encodings, decoded
        instructions and source.

        Returns:
            Formatted listing string
        """
        lines = []
        lines.append("Address   Code       Decoded                   Source")
        lines.append("-" * 78)

        for (addr, source, line_num), code in zip(self.source_map, self.instructions):
            try:
                decoded = disassemble(code, self.isa)
            except DecodingError:
                decoded = "?"
            lines.append(f"0x{addr:04X}:   {code:08X}   {decoded:<24}  {source.strip()}")

        return "\n".join(lines)
