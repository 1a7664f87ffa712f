"""
Instruction and program model for the LMC toolchain.

The same eleven opcodes exist at two pipeline stages, and each stage gets
its own instruction type so "not yet linked" and "linked" can't be mixed up:

    UnresolvedInstruction   parser output; operand is raw text
                            (label name for addressed ops, literal for DAT)
    ResolvedInstruction     linker output; address is a memory index,
                            DAT value is a parsed number

Operand shape per opcode:
    INP OUT HLT                     no operand
    ADD SUB STA LDA BRA BRZ BRP     address (label -> index)
    DAT                             data value
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .numeric import DataType

__all__ = ['Opcode', 'UnresolvedInstruction', 'ResolvedInstruction',
           'UnresolvedProgram', 'ResolvedProgram', 'ExecutionStep']


class Opcode(Enum):
    INP = 'INP'
    ADD = 'ADD'
    SUB = 'SUB'
    STA = 'STA'
    LDA = 'LDA'
    BRA = 'BRA'
    BRZ = 'BRZ'
    BRP = 'BRP'
    OUT = 'OUT'
    HLT = 'HLT'
    DAT = 'DAT'

    @property
    def carries_address(self) -> bool:
        return self in _ADDRESS_OPCODES

    @property
    def carries_data(self) -> bool:
        return self is Opcode.DAT

    @property
    def carries_nothing(self) -> bool:
        return self in _BARE_OPCODES

    @classmethod
    def from_mnemonic(cls, text: str) -> Optional[Opcode]:
        """Case-insensitive lookup; None for unknown mnemonics."""
        return cls.__members__.get(text.strip().upper())


_ADDRESS_OPCODES = frozenset({
    Opcode.ADD, Opcode.SUB, Opcode.STA, Opcode.LDA,
    Opcode.BRA, Opcode.BRZ, Opcode.BRP,
})
_BARE_OPCODES = frozenset({Opcode.INP, Opcode.OUT, Opcode.HLT})


# ──────────────────────────────────────────────
# Instructions
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class UnresolvedInstruction:
    """Parsed instruction with a textual operand."""
    opcode: Opcode
    operand: Optional[str] = None
    line_num: int = 0           # 1-based source line, 0 if synthesized

    def __post_init__(self):
        if self.opcode.carries_nothing:
            if self.operand is not None:
                raise ValueError(f"{self.opcode.value} takes no operand")
        elif self.operand is None:
            raise ValueError(f"{self.opcode.value} requires an operand")

    def __str__(self) -> str:
        if self.operand is None:
            return self.opcode.value
        return f"{self.opcode.value} {self.operand}"


@dataclass(frozen=True)
class ResolvedInstruction:
    """Linked instruction: address is an index into program memory."""
    opcode: Opcode
    address: Optional[int] = None
    value: Any = None

    def __post_init__(self):
        if self.opcode.carries_address:
            if self.address is None or self.value is not None:
                raise ValueError(f"{self.opcode.value} carries exactly one address")
        elif self.opcode.carries_data:
            if self.address is not None or self.value is None:
                raise ValueError("DAT carries exactly one data value")
        elif self.address is not None or self.value is not None:
            raise ValueError(f"{self.opcode.value} takes no operand")

    @classmethod
    def dat(cls, value: Any) -> ResolvedInstruction:
        return cls(Opcode.DAT, value=value)

    @classmethod
    def addressed(cls, opcode: Opcode, address: int) -> ResolvedInstruction:
        return cls(opcode, address=address)

    @classmethod
    def bare(cls, opcode: Opcode) -> ResolvedInstruction:
        return cls(opcode)

    @property
    def is_data(self) -> bool:
        return self.opcode is Opcode.DAT

    def render(self, data_type: Optional[DataType] = None) -> str:
        """Assembly-like text, e.g. 'ADD 7' or 'DAT 10'."""
        if self.opcode.carries_address:
            return f"{self.opcode.value} {self.address}"
        if self.opcode.carries_data:
            shown = data_type.format(self.value) if data_type else str(self.value)
            return f"DAT {shown}"
        return self.opcode.value

    def __str__(self) -> str:
        return self.render()


# ──────────────────────────────────────────────
# Programs
# ──────────────────────────────────────────────

@dataclass
class UnresolvedProgram:
    """Parser output: instructions in source order + label table."""
    instructions: List[UnresolvedInstruction] = field(default_factory=list)
    labels: Dict[str, int] = field(default_factory=dict)   # name -> index

    def __len__(self) -> int:
        return len(self.instructions)

    def labels_at(self, index: int) -> List[str]:
        return [name for name, idx in self.labels.items() if idx == index]


@dataclass
class ResolvedProgram:
    """Linker output, owned by one interpreter for the length of a run.

    The instruction list doubles as memory: STA replaces a DAT cell in
    place. Label names are kept only so listings can show them.
    """
    instructions: List[ResolvedInstruction]
    data_type: DataType
    labels: Dict[str, int] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.instructions)

    def __getitem__(self, index: int) -> ResolvedInstruction:
        return self.instructions[index]

    def labels_at(self, index: int) -> List[str]:
        return [name for name, idx in self.labels.items() if idx == index]

    def copy(self) -> ResolvedProgram:
        """Independent memory image (for a fresh run of the same program)."""
        return ResolvedProgram(list(self.instructions), self.data_type, dict(self.labels))


@dataclass(frozen=True)
class ExecutionStep:
    """One interpreter transition.

    pc is the program counter *before* the instruction ran, accumulator
    the value *after* it ran.
    """
    pc: int
    accumulator: Any
    instruction: ResolvedInstruction

    def render(self, data_type: Optional[DataType] = None) -> str:
        acc = data_type.format(self.accumulator) if data_type else str(self.accumulator)
        return f"{self.pc:03d}: {self.instruction.render(data_type):<12} ACC={acc}"

    def __str__(self) -> str:
        return self.render()
