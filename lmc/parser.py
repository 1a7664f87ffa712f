"""
LMC assembly parser.

Turns source text into an UnresolvedProgram: an instruction list with
textual operands plus a label table. Nothing is checked against the label
table here; the linker does that.

Line format (after normalization):

    <label> <mnemonic> [operand]
     <mnemonic> [operand]          (leading space = no label)

    loop  LDA count     // comment
          BRZ done
          SUB #1        // #1 -> anonymous DAT 1 cell appended at the end
          STA count
          BRA loop
    done  HLT
    count DAT 3

Immediates: an address operand written '#<literal>' is a label spelled
'#<literal>'. After the main pass every such label that is not already
defined gets a fresh DAT cell holding the literal, appended after all
written instructions. Equal spellings share one cell.
"""

from __future__ import annotations
import logging
import re
from typing import List, Optional, Tuple, Union

from .instructions import Opcode, UnresolvedInstruction, UnresolvedProgram
from .normalizer import normalize_line
from .numeric import DataType, FLOAT64, get_data_type

__all__ = ['Parser', 'ParseError', 'UnknownOperator', 'MissingOperand',
           'InvalidOperand', 'MissingSeparator', 'parse_source', 'IMMEDIATE_PREFIX']

logger = logging.getLogger(__name__)

IMMEDIATE_PREFIX = '#'


class ParseError(Exception):
    """Raised on malformed source lines. The first one aborts the parse."""
    def __init__(self, message: str, line_num: int = 0, line_text: str = ""):
        self.line_num = line_num
        self.line_text = line_text
        super().__init__(f"Line {line_num}: {message}" if line_num else message)


class UnknownOperator(ParseError):
    def __init__(self, text: str, line_num: int = 0, line_text: str = ""):
        self.text = text
        super().__init__(f"Unknown operator: '{text}'", line_num, line_text)


class MissingOperand(ParseError):
    def __init__(self, mnemonic: str, line_num: int = 0, line_text: str = ""):
        self.mnemonic = mnemonic
        super().__init__(f"{mnemonic}: missing operand", line_num, line_text)


class InvalidOperand(ParseError):
    def __init__(self, text: str, line_num: int = 0, line_text: str = ""):
        self.text = text
        super().__init__(f"Invalid operand: '{text}'", line_num, line_text)


class MissingSeparator(ParseError):
    """Strict mode only: a line with no space between label and mnemonic."""
    def __init__(self, text: str, line_num: int = 0, line_text: str = ""):
        self.text = text
        super().__init__(
            f"'{text}' has no label/mnemonic separator "
            f"(indent it to mark an unlabeled instruction)",
            line_num, line_text)


class Parser:
    """Single-pass LMC parser with a trailing immediate-synthesis pass.

    Usage:
        program = Parser().parse(source_text)
        program = Parser(data_type="int", strict=True).parse(source_text)

    strict=False skips lines that have no space at all (a bare "INP" in
    column 0) with a warning; strict=True raises MissingSeparator.
    """

    def __init__(self, data_type: Union[str, DataType] = FLOAT64, strict: bool = False):
        self.data_type = get_data_type(data_type)
        self.strict = strict
        self.program = UnresolvedProgram()
        self._immediates: List[Tuple[str, int, str]] = []   # (token, line_num, raw line)

    def parse(self, source: str) -> UnresolvedProgram:
        self.program = UnresolvedProgram()
        self._immediates = []

        # Only \n (optionally \r\n) ends a line; \f, \v etc. are in-line whitespace
        for line_num, raw in enumerate(re.split(r'\r?\n', source), 1):
            line = normalize_line(raw)
            if line is None:
                continue
            self._parse_line(line, line_num, raw)

        self._synthesize_immediates()

        logger.debug("Parsed %d instructions, %d labels",
                     len(self.program.instructions), len(self.program.labels))
        return self.program

    def _parse_line(self, line: str, line_num: int, raw: str):
        label, sep, rest = line.partition(' ')
        if not sep:
            if self.strict:
                raise MissingSeparator(line, line_num, raw)
            logger.warning("Line %d: skipping '%s' (no label/mnemonic separator)",
                           line_num, line)
            return

        mnemonic, sep, operand = rest.partition(' ')
        instruction = self._build_instruction(mnemonic, operand if sep else None,
                                              line_num, raw)

        label = label.strip()
        if label:
            self._define_label(label, len(self.program.instructions), line_num)

        if (instruction.opcode.carries_address
                and instruction.operand.startswith(IMMEDIATE_PREFIX)):
            self._immediates.append((instruction.operand, line_num, raw))

        self.program.instructions.append(instruction)

    def _build_instruction(self, mnemonic: str, operand: Optional[str],
                           line_num: int, raw: str) -> UnresolvedInstruction:
        opcode = Opcode.from_mnemonic(mnemonic)
        if opcode is None:
            raise UnknownOperator(mnemonic.strip(), line_num, raw)

        if operand is not None:
            operand = operand.strip() or None

        if opcode.carries_nothing:
            if operand is not None:
                logger.debug("Line %d: ignoring operand '%s' on %s",
                             line_num, operand, opcode.value)
            return UnresolvedInstruction(opcode, None, line_num)

        if operand is None:
            raise MissingOperand(opcode.value, line_num, raw)

        if opcode.carries_data:
            self._check_literal(operand, line_num, raw)

        return UnresolvedInstruction(opcode, operand, line_num)

    def _check_literal(self, text: str, line_num: int, raw: str):
        try:
            self.data_type.parse(text)
        except ValueError:
            raise InvalidOperand(text, line_num, raw) from None

    def _define_label(self, name: str, index: int, line_num: int):
        if name in self.program.labels:
            logger.warning("Line %d: label '%s' already defined at address %d; keeping the first",
                           line_num, name, self.program.labels[name])
            return
        self.program.labels[name] = index

    def _synthesize_immediates(self):
        """Append one DAT cell per distinct, not-yet-defined immediate token."""
        for token, line_num, raw in self._immediates:
            if token in self.program.labels:
                continue
            literal = token[len(IMMEDIATE_PREFIX):].strip()
            try:
                self.data_type.parse(literal)
            except ValueError:
                raise InvalidOperand(token, line_num, raw) from None
            self.program.labels[token] = len(self.program.instructions)
            self.program.instructions.append(UnresolvedInstruction(Opcode.DAT, literal))
            logger.debug("Immediate %s -> address %d", token, self.program.labels[token])


def parse_source(source: str, data_type: Union[str, DataType] = FLOAT64,
                 strict: bool = False) -> UnresolvedProgram:
    """Parse source text into an UnresolvedProgram."""
    return Parser(data_type=data_type, strict=strict).parse(source)
