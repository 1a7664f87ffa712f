"""
LMC Toolkit: Little Man Computer assembler and interpreter
============================================================
Assembles LMC source text and runs it on a stepping single-accumulator
machine (INP ADD SUB STA LDA BRA BRZ BRP OUT HLT + DAT).

Architecture:
    ┌──────────┐    ┌────────────┐    ┌──────────┐    ┌──────────┐    ┌─────────────┐
    │  Source  │───>│ Normalizer │───>│  Parser  │───>│  Linker  │───>│ Interpreter │
    │ (.lmc)   │    │  (lines)   │    │ (labels) │    │(indices) │    │   (steps)   │
    └──────────┘    └────────────┘    └──────────┘    └──────────┘    └─────────────┘

    - normalizer.py:   strip // comments, collapse whitespace
    - parser.py:       label/mnemonic/operand split, #immediate cell synthesis
    - linker.py:       label -> address, DAT literal -> number
    - interpreter.py:  one instruction per step(), ExecutionStep snapshots
    - numeric.py:      accumulator data types (float, int)
    - devices.py:      line-based input/output for INP/OUT
    - listing.py:      debug listings
"""

__version__ = "0.2.0"

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Union

from .numeric import DataType, DATA_TYPES, FLOAT64, INTEGER, get_data_type
from .instructions import (
    ExecutionStep, Opcode, ResolvedInstruction, ResolvedProgram,
    UnresolvedInstruction, UnresolvedProgram,
)
from .normalizer import normalize_line
from .parser import (
    Parser, ParseError, UnknownOperator, MissingOperand, InvalidOperand,
    MissingSeparator, parse_source,
)
from .linker import Linker, LinkError, UndefinedLabel, MalformedLiteral, InvalidLabelTarget, link
from .devices import BufferedInput, BufferedOutput, ConsoleInput, ConsoleOutput
from .interpreter import (
    Interpreter, InterpreterError, TypeMismatchAtAddress, MalformedInput,
    InputExhausted, ProgramCounterOutOfRange, StopReason,
)
from .listing import format_resolved, format_unresolved


def assemble(source: str, data_type: Union[str, DataType] = FLOAT64,
             strict: bool = False) -> ResolvedProgram:
    """Parse and link LMC source text into a ResolvedProgram.

    Args:
        source: LMC assembly text.
        data_type: 'float' (default), 'int', or a DataType instance.
        strict: Raise MissingSeparator instead of skipping lines with no space.

    Raises:
        ParseError, LinkError
    """
    data_type = get_data_type(data_type)
    program = Parser(data_type=data_type, strict=strict).parse(source)
    return Linker(data_type).link(program)


@dataclass
class RunResult:
    steps: List[ExecutionStep] = field(default_factory=list)
    output: List[str] = field(default_factory=list)
    reason: Optional[StopReason] = None


def run_source(source: str, inputs: Iterable[str] = (),
               data_type: Union[str, DataType] = FLOAT64,
               max_steps: Optional[int] = None) -> RunResult:
    """Assemble and run source with in-memory I/O, collecting every step.

    Raises ParseError, LinkError or InterpreterError from the stage that fails.
    """
    program = assemble(source, data_type=data_type)
    out = BufferedOutput()
    interp = Interpreter(program, input_device=BufferedInput(inputs), output_device=out)

    result = RunResult(output=out.lines)
    result.reason = interp.run(max_steps, on_step=result.steps.append)
    return result
