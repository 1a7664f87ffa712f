"""
LMC interpreter: stepping state machine over a ResolvedProgram.

State is (program, pc, accumulator), starting at pc=0 and a zero
accumulator. Each step executes the instruction at pc:

    INP      acc = parsed input line             pc += 1
    ADD i    acc += mem[i]                       pc += 1
    SUB i    acc -= mem[i]                       pc += 1
    STA i    mem[i] = acc                        pc += 1
    LDA i    acc = mem[i]                        pc += 1
    BRA i                                        pc = i
    BRZ i                                        pc = i if acc == 0 else pc + 1
    BRP i                                        pc = i if acc >= 0 else pc + 1
    OUT      write acc as one line               pc += 1
    HLT      stop: no step is produced, the machine stays halted
    DAT      error: data is never executed

mem[i] must be a DAT cell for ADD/SUB/STA/LDA.

Every executed instruction yields an ExecutionStep (pc before, acc after).
A run is single-pass: once halted, re-running means a new Interpreter,
and STA writes to the program are not undone.
"""

from __future__ import annotations
import logging
from enum import Enum
from typing import Any, Callable, Iterator, Optional

from .devices import ConsoleInput, ConsoleOutput, InputDevice, OutputDevice
from .instructions import ExecutionStep, Opcode, ResolvedInstruction, ResolvedProgram

__all__ = ['Interpreter', 'InterpreterError', 'TypeMismatchAtAddress', 'MalformedInput',
           'InputExhausted', 'ProgramCounterOutOfRange', 'StopReason']

logger = logging.getLogger(__name__)


class StopReason(Enum):
    HALT = 'HALT'
    TIMEOUT = 'TIMEOUT'


class InterpreterError(Exception):
    """Runtime fault. The interpreter state is left as it was before the step."""
    def __init__(self, message: str, pc: Optional[int] = None):
        self.pc = pc
        super().__init__(f"[pc={pc}] {message}" if pc is not None else message)


class TypeMismatchAtAddress(InterpreterError):
    def __init__(self, address: int, message: str = "", pc: Optional[int] = None):
        self.address = address
        super().__init__(message or f"Address {address} does not hold data", pc)


class MalformedInput(InterpreterError):
    def __init__(self, text: str, target_type: str = "", pc: Optional[int] = None):
        self.text = text
        self.target_type = target_type
        what = f"{target_type} " if target_type else ""
        super().__init__(f"Malformed {what}input: '{text}'", pc)


class InputExhausted(InterpreterError):
    def __init__(self, pc: Optional[int] = None):
        super().__init__("INP with no input left", pc)


class ProgramCounterOutOfRange(InterpreterError):
    def __init__(self, pc: int, size: int):
        self.size = size
        super().__init__(f"Program counter ran past the end of memory ({size} cells)", pc)


class Interpreter:
    """LMC machine.

    Usage:
        interp = Interpreter(program, input_device=BufferedInput(["7"]))
        step = interp.step()
        while step is not None:
            print(step)
            step = interp.step()

        # or, as an iterator
        for step in Interpreter(program):
            ...

        reason = Interpreter(program).run(max_steps=10_000)
    """

    def __init__(self, program: ResolvedProgram,
                 input_device: Optional[InputDevice] = None,
                 output_device: Optional[OutputDevice] = None):
        self.program = program
        self.data_type = program.data_type
        self.input = input_device if input_device is not None else ConsoleInput()
        self.output = output_device if output_device is not None else ConsoleOutput()

        self.pc: int = 0
        self.accumulator: Any = self.data_type.zero
        self.halted: bool = False
        self.steps_executed: int = 0

        self._dispatch = {
            Opcode.INP: self._inp,
            Opcode.ADD: self._add,
            Opcode.SUB: self._sub,
            Opcode.STA: self._sta,
            Opcode.LDA: self._lda,
            Opcode.BRA: self._bra,
            Opcode.BRZ: self._brz,
            Opcode.BRP: self._brp,
            Opcode.OUT: self._out,
        }

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> Optional[ExecutionStep]:
        """Execute one instruction. Returns the step, or None once halted."""
        if self.halted:
            return None

        pc = self.pc
        if not 0 <= pc < len(self.program):
            raise ProgramCounterOutOfRange(pc, len(self.program))

        instr = self.program[pc]
        if instr.opcode is Opcode.HLT:
            self.halted = True
            logger.debug("%03d: HLT after %d steps", pc, self.steps_executed)
            return None
        if instr.is_data:
            raise TypeMismatchAtAddress(pc, f"Attempted to execute DAT cell at address {pc}", pc)

        # Handlers compute the new state first and commit it last
        self.accumulator, self.pc = self._dispatch[instr.opcode](instr)
        self.steps_executed += 1

        step = ExecutionStep(pc, self.accumulator, instr)
        logger.debug("%s", step.render(self.data_type))
        return step

    def run(self, max_steps: Optional[int] = None,
            on_step: Optional[Callable[[ExecutionStep], None]] = None) -> StopReason:
        """Step until HLT, or until max_steps steps have run (TIMEOUT).

        on_step, if given, is called with every ExecutionStep as it is produced.
        """
        executed = 0
        while True:
            # A HLT right at the limit still counts as halting
            if max_steps is not None and executed >= max_steps and not self.at_halt:
                return StopReason.TIMEOUT
            step = self.step()
            if step is None:
                return StopReason.HALT
            executed += 1
            if on_step is not None:
                on_step(step)

    def __iter__(self) -> Iterator[ExecutionStep]:
        return self

    def __next__(self) -> ExecutionStep:
        step = self.step()
        if step is None:
            raise StopIteration
        return step

    @property
    def at_halt(self) -> bool:
        """True if halted, or if the next step would execute HLT."""
        return (self.halted
                or (0 <= self.pc < len(self.program)
                    and self.program[self.pc].opcode is Opcode.HLT))

    # ══════════════════════════════════════════════
    # Memory access
    # ══════════════════════════════════════════════

    def _load(self, address: int) -> Any:
        cell = self.program[address]
        if not cell.is_data:
            raise TypeMismatchAtAddress(
                address, f"Address {address} holds {cell.opcode.value}, not data", self.pc)
        return cell.value

    def _store(self, address: int, value: Any):
        cell = self.program[address]
        if not cell.is_data:
            raise TypeMismatchAtAddress(
                address, f"Cannot store into {cell.opcode.value} at address {address}", self.pc)
        self.program.instructions[address] = ResolvedInstruction.dat(value)

    # ══════════════════════════════════════════════
    # Instruction handlers: return (accumulator, next pc)
    # ══════════════════════════════════════════════

    def _inp(self, instr):
        line = self.input.read_line()
        if line is None:
            raise InputExhausted(self.pc)
        text = line.strip()
        try:
            value = self.data_type.parse(text)
        except ValueError:
            raise MalformedInput(text, self.data_type.name, self.pc) from None
        return value, self.pc + 1

    def _add(self, instr):
        return self.accumulator + self._load(instr.address), self.pc + 1

    def _sub(self, instr):
        return self.accumulator - self._load(instr.address), self.pc + 1

    def _sta(self, instr):
        self._store(instr.address, self.accumulator)
        return self.accumulator, self.pc + 1

    def _lda(self, instr):
        return self._load(instr.address), self.pc + 1

    def _bra(self, instr):
        return self.accumulator, instr.address

    def _brz(self, instr):
        if self.accumulator == self.data_type.zero:
            return self.accumulator, instr.address
        return self.accumulator, self.pc + 1

    def _brp(self, instr):
        if self.accumulator >= self.data_type.zero:
            return self.accumulator, instr.address
        return self.accumulator, self.pc + 1

    def _out(self, instr):
        self.output.write_line(self.data_type.format(self.accumulator))
        return self.accumulator, self.pc + 1
