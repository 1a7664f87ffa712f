#!/usr/bin/env python3
"""
lmcrun: Little Man Computer assembler + interpreter CLI

Usage:
    python lmcrun.py <program.lmc> [--data-type float|int] [--strict]
                                   [--parsed] [--linked] [--trace]
                                   [--max-steps N] [-v] [-q]

INP reads one line from stdin (prompting "Inp: " on stderr when stdin is a
terminal); OUT writes the accumulator as one line to stdout.

Examples:
    python lmcrun.py examples/countdown.lmc
    python lmcrun.py examples/add.lmc --data-type int --trace
    python lmcrun.py examples/multiply.lmc --linked       # listing only
    echo 5 | python lmcrun.py examples/countdown.lmc -q
"""

import argparse
import logging
import sys
import os

# Allow running from project root without installing
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from lmc import __version__
from lmc.devices import ConsoleInput, ConsoleOutput
from lmc.interpreter import Interpreter, InterpreterError, StopReason
from lmc.linker import LinkError, Linker
from lmc.listing import format_resolved, format_unresolved
from lmc.numeric import DATA_TYPES, get_data_type
from lmc.parser import ParseError, Parser

logger = logging.getLogger("lmcrun")


def _setup_logging(verbose: int, quiet: bool):
    """stderr logging: WARNING by default, -v INFO, -vv DEBUG (step trace)."""
    if quiet:
        level = logging.ERROR
    elif verbose == 0:
        level = logging.WARNING
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    logging.basicConfig(level=level, handlers=[console], force=True)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lmcrun",
        description="Little Man Computer assembler and interpreter",
        epilog="Data types: " + ", ".join(
            f"{name} ({dt.description})" for name, dt in DATA_TYPES.items()),
    )
    parser.add_argument("input", nargs="?", help="LMC source file")
    parser.add_argument("--data-type", default="float", choices=list(DATA_TYPES.keys()),
                        help="Accumulator / memory cell type (default: float)")
    parser.add_argument("--strict", action="store_true",
                        help="Reject lines with no label/mnemonic separator instead of skipping them")
    parser.add_argument("--parsed", action="store_true",
                        help="Print the parsed (unlinked) program and exit (debug)")
    parser.add_argument("--linked", action="store_true",
                        help="Print the linked program and exit (debug)")
    parser.add_argument("--trace", action="store_true",
                        help="Print every execution step to stderr")
    parser.add_argument("--max-steps", type=int, default=None,
                        help="Stop after N steps instead of running until HLT")
    parser.add_argument("--verbose", "-v", action="count", default=0,
                        help="Increase log verbosity (-v, -vv)")
    parser.add_argument("--quiet", "-q", action="store_true",
                        help="Only log errors; no INP prompt")
    parser.add_argument("--version", action="version",
                        version=f"lmcrun {__version__}")
    return parser


def main(argv=None) -> int:
    args = _build_parser().parse_args(argv)
    _setup_logging(args.verbose, args.quiet)

    if not args.input:
        print("Error: no file provided", file=sys.stderr)
        return 1

    # Read input
    try:
        with open(args.input, "r", encoding="utf-8") as f:
            source = f.read()
    except FileNotFoundError:
        print(f"Error: File not found: {args.input}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error reading {args.input}: {e}", file=sys.stderr)
        return 1

    data_type = get_data_type(args.data_type)
    logger.info("Input: %s (%s data)", args.input, data_type.name)

    try:
        unresolved = Parser(data_type=data_type, strict=args.strict).parse(source)
        if args.parsed:
            print(format_unresolved(unresolved))
            return 0

        program = Linker(data_type).link(unresolved)
        if args.linked:
            print(format_resolved(program))
            return 0

        prompt = "" if args.quiet or not sys.stdin.isatty() else "Inp: "
        interp = Interpreter(program, input_device=ConsoleInput(prompt=prompt),
                             output_device=ConsoleOutput())

        trace = None
        if args.trace:
            def trace(step):
                print(step.render(data_type), file=sys.stderr)

        reason = interp.run(args.max_steps, on_step=trace)

        logger.info("%s after %d steps", reason.value, interp.steps_executed)
        if reason is StopReason.TIMEOUT:
            print(f"Stopped: step limit of {args.max_steps} reached", file=sys.stderr)
            return 3

    except ParseError as e:
        print(f"Parse error: {e}", file=sys.stderr)
        return 1
    except LinkError as e:
        print(f"Link error: {e}", file=sys.stderr)
        return 1
    except InterpreterError as e:
        print(f"Runtime error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Internal error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 2

    return 0


if __name__ == "__main__":
    sys.exit(main())
