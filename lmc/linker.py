"""
LMC linker.

One pass over an UnresolvedProgram, producing a ResolvedProgram of the
same length and order:

    ADD/SUB/STA/LDA/BRA/BRZ/BRP <label>   ->  <index of label>
    DAT <literal>                         ->  DAT <parsed value>
    INP/OUT/HLT                           ->  unchanged

Any label not in the table, or any literal the data type rejects, stops
the link with a LinkError.
"""

from __future__ import annotations
import logging
from typing import Union

from .instructions import (
    ResolvedInstruction, ResolvedProgram, UnresolvedInstruction, UnresolvedProgram,
)
from .numeric import DataType, FLOAT64, get_data_type

__all__ = ['Linker', 'LinkError', 'UndefinedLabel', 'MalformedLiteral',
           'InvalidLabelTarget', 'link']

logger = logging.getLogger(__name__)


class LinkError(Exception):
    """Raised when an unresolved program can't be turned into a resolved one."""
    def __init__(self, message: str, line_num: int = 0):
        self.line_num = line_num
        super().__init__(f"Line {line_num}: {message}" if line_num else message)


class UndefinedLabel(LinkError):
    def __init__(self, name: str, line_num: int = 0):
        self.name = name
        super().__init__(f"Undefined label: '{name}'", line_num)


class MalformedLiteral(LinkError):
    def __init__(self, text: str, target_type: str, line_num: int = 0):
        self.text = text
        self.target_type = target_type
        super().__init__(f"Malformed {target_type} literal: '{text}'", line_num)


class InvalidLabelTarget(LinkError):
    """Label table entry pointing outside the program."""
    def __init__(self, name: str, index: int, line_num: int = 0):
        self.name = name
        self.index = index
        super().__init__(f"Label '{name}' points at address {index}, outside the program",
                         line_num)


class Linker:
    """Resolves labels and DAT literals.

    Usage:
        resolved = Linker("int").link(Parser("int").parse(source))
    """

    def __init__(self, data_type: Union[str, DataType] = FLOAT64):
        self.data_type = get_data_type(data_type)

    def link(self, program: UnresolvedProgram) -> ResolvedProgram:
        self._program = program
        resolved = [self._resolve(instr) for instr in program.instructions]

        logger.info("Linked %d instructions (%d labels, %s data)",
                    len(resolved), len(program.labels), self.data_type.name)
        return ResolvedProgram(resolved, self.data_type, dict(program.labels))

    def _resolve(self, instr: UnresolvedInstruction) -> ResolvedInstruction:
        opcode = instr.opcode
        if opcode.carries_address:
            return ResolvedInstruction.addressed(opcode, self._lookup(instr))
        if opcode.carries_data:
            try:
                value = self.data_type.parse(instr.operand)
            except ValueError:
                raise MalformedLiteral(instr.operand, self.data_type.name,
                                       instr.line_num) from None
            return ResolvedInstruction.dat(value)
        return ResolvedInstruction.bare(opcode)

    def _lookup(self, instr: UnresolvedInstruction) -> int:
        name = instr.operand
        try:
            index = self._program.labels[name]
        except KeyError:
            raise UndefinedLabel(name, instr.line_num) from None
        if not 0 <= index < len(self._program.instructions):
            raise InvalidLabelTarget(name, index, instr.line_num)
        return index


def link(program: UnresolvedProgram, data_type: Union[str, DataType] = FLOAT64) -> ResolvedProgram:
    """Link an UnresolvedProgram into a ResolvedProgram."""
    return Linker(data_type).link(program)
