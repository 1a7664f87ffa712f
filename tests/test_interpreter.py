"""
Interpreter tests: per-opcode semantics, step snapshots, halting and
runtime faults.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from lmc import assemble
from lmc.devices import BufferedInput, BufferedOutput
from lmc.instructions import Opcode, ResolvedInstruction
from lmc.interpreter import (
    Interpreter, InterpreterError, TypeMismatchAtAddress, MalformedInput,
    InputExhausted, ProgramCounterOutOfRange, StopReason,
)


def _machine(source: str, inputs=(), data_type: str = "float"):
    """Assemble source; return (interpreter, output device)."""
    out = BufferedOutput()
    interp = Interpreter(assemble(source, data_type=data_type),
                         input_device=BufferedInput(inputs), output_device=out)
    return interp, out


class TestScenarios:
    def test_inp_out_hlt(self):
        interp, out = _machine("A INP\nB OUT\n HLT", inputs=["7"])

        first = interp.step()
        assert first.pc == 0
        assert first.instruction.opcode is Opcode.INP
        assert first.accumulator == 7

        second = interp.step()
        assert second.pc == 1
        assert second.instruction.opcode is Opcode.OUT
        assert second.accumulator == 7
        assert out.lines == ["7"]

        assert interp.step() is None
        assert interp.halted

    def test_store_then_load(self):
        source = """\
        INP
        STA x
        LDA zero
        LDA x
        HLT
x       DAT 0
zero    DAT 0
"""
        interp, _ = _machine(source, inputs=["3"])
        steps = list(interp)
        assert [s.accumulator for s in steps] == [3, 3, 0, 3]
        assert interp.program[5] == ResolvedInstruction.dat(3.0)

    def test_add_immediate(self):
        interp, out = _machine(" ADD #10\n OUT\n HLT")
        assert len(interp.program) == 4
        assert interp.program[3] == ResolvedInstruction.dat(10.0)
        assert interp.run() is StopReason.HALT
        assert out.lines == ["10"]

    def test_sub_goes_negative(self):
        interp, out = _machine(" INP\n SUB #5\n OUT\n HLT", inputs=["3"])
        interp.run()
        assert out.lines == ["-2"]

    def test_float_output_formatting(self):
        interp, out = _machine(" INP\n ADD #0.25\n OUT\n HLT", inputs=["2"])
        interp.run()
        assert out.lines == ["2.25"]

    def test_integer_machine(self):
        interp, out = _machine(" INP\n ADD #1\n OUT\n HLT", inputs=["41"], data_type="int")
        interp.run()
        assert out.lines == ["42"]
        assert isinstance(interp.accumulator, int)


class TestBranches:
    def _pc_after_branch(self, op: str, value: str) -> int:
        source = f"        LDA v\n        {op} yes\n        HLT\nyes     HLT\nv       DAT {value}"
        interp, _ = _machine(source)
        interp.step()
        step = interp.step()
        assert step.pc == 1
        return interp.pc

    @pytest.mark.parametrize("value,expected", [("0", 3), ("1", 2), ("-1", 2), ("0.5", 2)])
    def test_brz(self, value, expected):
        assert self._pc_after_branch("BRZ", value) == expected

    @pytest.mark.parametrize("value,expected", [("0", 3), ("1", 3), ("-1", 2), ("-0.5", 2)])
    def test_brp(self, value, expected):
        assert self._pc_after_branch("BRP", value) == expected

    def test_bra_unconditional(self):
        interp, _ = _machine(" BRA end\n OUT\nend HLT")
        step = interp.step()
        assert step.instruction == ResolvedInstruction.addressed(Opcode.BRA, 2)
        assert interp.pc == 2
        assert interp.step() is None


class TestStepSequence:
    def test_hlt_produces_no_step(self):
        interp, _ = _machine(" HLT")
        assert interp.step() is None
        assert interp.steps_executed == 0

    def test_steps_after_halt_stay_none(self):
        interp, _ = _machine(" OUT\n HLT")
        assert len(list(interp)) == 1
        assert interp.step() is None
        assert interp.step() is None
        assert list(interp) == []

    def test_sequence_length_counts_executed_instructions(self):
        source = """\
        INP
loop    SUB #1
        BRP loop
        HLT
"""
        interp, _ = _machine(source, inputs=["2"])
        steps = list(interp)
        # INP, then (SUB, BRP) x 3
        assert len(steps) == 7
        assert interp.steps_executed == 7

    def test_accumulator_snapshot_is_after_execution(self):
        interp, _ = _machine(" LDA x\n ADD x\n HLT\nx DAT 4")
        assert [s.accumulator for s in interp] == [4, 8]

    def test_deterministic_across_fresh_links(self):
        source = " LDA a\nloop SUB #3\n BRP loop\n ADD b\n HLT\na DAT 10\nb DAT 7"
        runs = []
        for _ in range(2):
            interp, _ = _machine(source)
            runs.append([(s.pc, s.accumulator, s.instruction) for s in interp])
        assert runs[0] == runs[1]

    def test_memory_writes_persist_across_interpreters(self):
        program = assemble(" LDA x\n ADD #1\n STA x\n OUT\n HLT\nx DAT 0")
        outputs = []
        for _ in range(2):
            out = BufferedOutput()
            Interpreter(program, input_device=BufferedInput(), output_device=out).run()
            outputs.extend(out.lines)
        assert outputs == ["1", "2"]

    def test_copy_gives_fresh_memory(self):
        program = assemble(" LDA x\n ADD #1\n STA x\n OUT\n HLT\nx DAT 0")
        pristine = program.copy()
        Interpreter(program, BufferedInput(), BufferedOutput()).run()
        out = BufferedOutput()
        Interpreter(pristine, BufferedInput(), out).run()
        assert out.lines == ["1"]

    def test_step_render(self):
        interp, _ = _machine(" INP\n HLT", inputs=["7"])
        text = interp.step().render(interp.data_type)
        assert text.startswith("000: INP")
        assert text.endswith("ACC=7")


class TestRunLimit:
    def test_timeout(self):
        interp, _ = _machine("loop BRA loop")
        assert interp.run(max_steps=5) is StopReason.TIMEOUT
        assert interp.steps_executed == 5
        assert not interp.halted

    def test_hlt_at_limit_counts_as_halt(self):
        interp, _ = _machine(" OUT\n OUT\n HLT")
        assert interp.run(max_steps=2) is StopReason.HALT
        assert interp.halted

    def test_on_step_sees_every_step(self):
        interp, _ = _machine("loop BRA loop")
        seen = []
        assert interp.run(max_steps=4, on_step=seen.append) is StopReason.TIMEOUT
        assert [s.pc for s in seen] == [0, 0, 0, 0]

    def test_on_step_not_called_for_hlt(self):
        interp, _ = _machine(" OUT\n HLT")
        seen = []
        assert interp.run(on_step=seen.append) is StopReason.HALT
        assert [s.instruction.opcode.value for s in seen] == ["OUT"]


class TestRuntimeErrors:
    def test_executing_dat(self):
        interp, _ = _machine("x DAT 5")
        with pytest.raises(TypeMismatchAtAddress) as exc:
            interp.step()
        assert exc.value.address == 0
        assert interp.pc == 0

    def test_load_from_instruction_cell(self):
        interp, _ = _machine(" ADD target\ntarget HLT")
        with pytest.raises(TypeMismatchAtAddress) as exc:
            interp.step()
        assert exc.value.address == 1

    def test_store_into_instruction_cell(self):
        interp, _ = _machine("top STA top\n HLT")
        with pytest.raises(TypeMismatchAtAddress):
            interp.step()
        assert interp.program[0].opcode is Opcode.STA

    def test_malformed_input_leaves_state(self):
        interp, _ = _machine(" INP\n HLT", inputs=["abc"])
        with pytest.raises(MalformedInput) as exc:
            interp.step()
        assert exc.value.text == "abc"
        assert interp.pc == 0
        assert interp.accumulator == 0

    def test_input_whitespace_trimmed(self):
        interp, _ = _machine(" INP\n HLT", inputs=["  12 \r"])
        assert interp.step().accumulator == 12

    def test_input_exhausted(self):
        interp, _ = _machine(" INP\n INP\n HLT", inputs=["1"])
        interp.step()
        with pytest.raises(InputExhausted):
            interp.step()

    def test_running_off_the_end(self):
        interp, _ = _machine(" OUT")
        interp.step()
        with pytest.raises(ProgramCounterOutOfRange) as exc:
            interp.step()
        assert exc.value.pc == 1

    def test_errors_share_base_class(self):
        interp, _ = _machine("x DAT 1")
        with pytest.raises(InterpreterError):
            interp.run()
