"""
End-to-end tests: assemble() / run_source() and the example programs.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from lmc import (
    assemble, run_source, StopReason, ParseError, LinkError, InterpreterError,
    MissingSeparator,
)

EXAMPLES_DIR = os.path.join(os.path.dirname(__file__), "..", "examples")


def _example(name: str) -> str:
    with open(os.path.join(EXAMPLES_DIR, name), encoding="utf-8") as f:
        return f.read()


class TestExamples:
    def test_existing_examples_assemble(self):
        """All example programs should assemble for every data type."""
        found = [f for f in os.listdir(EXAMPLES_DIR) if f.endswith(".lmc")]
        assert found
        for fname in found:
            source = _example(fname)
            assemble(source, data_type="float", strict=True)
            assemble(source, data_type="int", strict=True)

    def test_add(self):
        assert run_source(_example("add.lmc"), ["2", "3"]).output == ["5"]

    def test_countdown(self):
        result = run_source(_example("countdown.lmc"), ["3"])
        assert result.output == ["3", "2", "1", "0"]
        assert result.reason is StopReason.HALT

    def test_multiply(self):
        result = run_source(_example("multiply.lmc"), ["6", "7"], data_type="int")
        assert result.output == ["42"]

    def test_multiply_by_zero(self):
        assert run_source(_example("multiply.lmc"), ["6", "0"]).output == ["0"]

    @pytest.mark.parametrize("inputs,expected", [
        (["4", "9"], "9"),
        (["9", "4"], "9"),
        (["5", "5"], "5"),
        (["-1", "-3"], "-1"),
    ])
    def test_max(self, inputs, expected):
        assert run_source(_example("max.lmc"), inputs).output == [expected]


class TestRunSource:
    def test_collects_steps(self):
        result = run_source("A INP\nB OUT\n HLT", ["7"])
        assert [s.instruction.opcode.value for s in result.steps] == ["INP", "OUT"]
        assert result.output == ["7"]

    def test_step_limit(self):
        result = run_source("loop BRA loop", max_steps=3)
        assert result.reason is StopReason.TIMEOUT
        assert len(result.steps) == 3

    def test_errors_propagate_from_each_stage(self):
        with pytest.raises(ParseError):
            run_source(" NOP")
        with pytest.raises(LinkError):
            run_source(" BRA missing")
        with pytest.raises(InterpreterError):
            run_source(" INP\n HLT", inputs=["seven"])

    def test_strict_assemble(self):
        with pytest.raises(MissingSeparator):
            assemble("HLT", strict=True)
