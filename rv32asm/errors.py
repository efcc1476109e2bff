"""
Custom exception types for the rv32asm assembler.

Every assembly error can carry the source line number and raw line text.
The driver fills them in when the error is raised from a helper that does
not know which line it is working on.
"""


class AssemblerError(Exception):
    """Base exception for assembler errors."""

    def __init__(self, message: str, line_num: int = None, line_text: str = None):
        self.message = message
        self.line_num = line_num
        self.line_text = line_text
        super().__init__(self._format())

    def _format(self) -> str:
        if self.line_num is None:
            return self.message
        if self.line_text:
            return f"Line {self.line_num}: {self.message}\n  {self.line_text.strip()}"
        return f"Line {self.line_num}: {self.message}"

    def with_location(self, line_num: int, line_text: str) -> "AssemblerError":
        """Attach a source location unless one is already present."""
        if self.line_num is None:
            self.line_num = line_num
            self.line_text = line_text
            self.args = (self._format(),)
        return self

    def __str__(self) -> str:
        return self._format()


class ParseError(AssemblerError):
    """Exception raised for parsing errors."""

    pass


class TooManyTokensError(ParseError):
    """A line holds more tokens than any instruction can use."""

    pass


class UnknownMnemonicError(ParseError):
    """Mnemonic is neither a base instruction nor a pseudo-instruction."""

    pass


class UnknownRegisterError(ParseError):
    """Operand does not name a register."""

    pass


class ImmediateParseError(ParseError):
    """Operand is not a valid integer literal or label name."""

    pass


class OperandCountError(ParseError):
    """Instruction has the wrong number of operands."""

    pass


class EncodingError(AssemblerError):
    """Exception raised for instruction encoding errors."""

    pass


class ImmediateRangeError(EncodingError):
    """Immediate value does not fit its bit field."""

    pass


class SymbolError(AssemblerError):
    """Exception raised for symbol/label errors."""

    pass


class UndefinedLabelError(SymbolError):
    pass


class DuplicateLabelError(SymbolError):
    pass


class DecodingError(AssemblerError):
    """Word cannot be decoded with the active instruction set."""

    pass


class InstructionTableError(Exception):
    """Raised when an instruction table definition is invalid."""

    pass
