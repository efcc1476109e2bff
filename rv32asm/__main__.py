#!/usr/bin/env python3
"""
rv32asm - Command Line Interface

Usage:
    python3 -m rv32asm input.S -o output.hex
    python3 -m rv32asm input.S -o output.hex -v
    python3 -m rv32asm input.S --listing
    python3 -m rv32asm input.S --isa table.yaml
"""

import argparse
import sys
from pathlib import Path

from . import __version__
from .assembler import Assembler
from .errors import AssemblerError, InstructionTableError
from .isa_table import get_instruction_set_summary, load_instruction_set_file


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rv32asm",
        description="Two-pass RV32I assembler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s programs/fib.S -o programs/fib.hex
  %(prog)s programs/fib.S -o programs/fib.hex -v
  %(prog)s programs/fib.S --listing
  %(prog)s programs/fib.S --isa tables/rv32i.yaml
        """,
    )

    parser.add_argument(
        "input",
        type=str,
        help="Input assembly file (.S)",
    )

    parser.add_argument(
        "-o",
        "--output",
        type=str,
        help="Output hex file (.hex). If not specified, prints to stdout.",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    parser.add_argument(
        "-l",
        "--listing",
        action="store_true",
        help="Print assembly listing",
    )

    parser.add_argument(
        "--isa",
        type=str,
        help="YAML instruction table to use instead of the built-in RV32I table",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: Input file not found: {args.input}", file=sys.stderr)
        return 1

    output_path = args.output or None

    try:
        isa = None
        if args.isa:
            isa = load_instruction_set_file(args.isa)
            if args.verbose:
                summary = get_instruction_set_summary(isa)
                print(
                    f"Instruction table '{summary['name']}': "
                    f"{summary['instruction_count']} instructions"
                )

        asm = Assembler(verbose=args.verbose, isa=isa)
        asm.assemble_file(str(input_path), output_path)

        if args.listing:
            print("\n" + asm.get_listing())

        # If no output file, print hex to stdout
        if not output_path and not args.listing:
            print(asm.get_hex_string())

        if args.verbose or output_path:
            print(f"\nAssembly successful: {len(asm.instructions)} instructions")

    except (AssemblerError, InstructionTableError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc()
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
