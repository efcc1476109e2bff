"""
Assembly source line tokenizer.

Handles comment stripping and splitting a line into tokens. Whitespace,
commas and the parentheses of memory operands are all delimiters, so
``lw a0, 8(sp)`` becomes ``["lw", "a0", "8", "sp"]``.
"""

import re
from typing import List

# Tokens are separated by whitespace, commas and parentheses
TOKEN_DELIMITERS = re.compile(r"[\s,()]+")

LABEL_MARKER = ":"


def strip_comments(line: str) -> str:
    """
    Remove comments from a line.

    Supports # and // style comments.
    """
    hash_pos = line.find("#")
    double_slash = line.find("//")

    comment_pos = -1
    if hash_pos >= 0 and double_slash >= 0:
        comment_pos = min(hash_pos, double_slash)
    elif hash_pos >= 0:
        comment_pos = hash_pos
    elif double_slash >= 0:
        comment_pos = double_slash

    if comment_pos >= 0:
        return line[:comment_pos]
    return line


def tokenize(line: str) -> List[str]:
    """
    Split one source line into tokens.

    Returns:
        Ordered list of non-empty tokens; empty for blank or comment-only lines
    """
    return [token for token in TOKEN_DELIMITERS.split(strip_comments(line)) if token]


def is_label(token: str) -> bool:
    """Check if a token defines a label (``name:``)."""
    return len(token) > len(LABEL_MARKER) and token.endswith(LABEL_MARKER)


def label_name(token: str) -> str:
    return token[: -len(LABEL_MARKER)]


def split_lines(text: str) -> List[str]:
    """
    Split program text on LF only; a trailing newline adds no extra line.

    A CR left by CRLF input is whitespace to the tokenizer.
    """
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines
