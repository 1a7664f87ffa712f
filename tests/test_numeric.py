"""
Data type tests: literal parsing and canonical decimal output.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import math
import pytest
from lmc.numeric import FLOAT64, INTEGER, DATA_TYPES, get_data_type


class TestFloat:
    def test_parse(self):
        assert FLOAT64.parse("7") == 7.0
        assert FLOAT64.parse(" -2.5 ") == -2.5
        assert FLOAT64.parse("1e3") == 1000.0
        assert math.isinf(FLOAT64.parse("inf"))

    @pytest.mark.parametrize("text", ["", "abc", "1_000", "1.2.3", "#5", "\u0663", "\uff17"])
    def test_parse_rejects(self, text):
        with pytest.raises(ValueError):
            FLOAT64.parse(text)

    def test_format_whole_numbers_have_no_fraction(self):
        assert FLOAT64.format(7.0) == "7"
        assert FLOAT64.format(100.0) == "100"
        assert FLOAT64.format(-3.0) == "-3"
        assert FLOAT64.format(0.0) == "0"
        assert FLOAT64.format(-0.0) == "-0"

    def test_format_fractions_positional(self):
        assert FLOAT64.format(0.1) == "0.1"
        assert FLOAT64.format(-2.5) == "-2.5"
        assert FLOAT64.format(1e-7) == "0.0000001"
        assert FLOAT64.format(1e21) == "1000000000000000000000"

    def test_format_special_values(self):
        assert FLOAT64.format(float('nan')) == "NaN"
        assert FLOAT64.format(float('inf')) == "inf"
        assert FLOAT64.format(float('-inf')) == "-inf"

    def test_zero(self):
        assert FLOAT64.zero == 0.0
        assert isinstance(FLOAT64.zero, float)


class TestInteger:
    def test_parse(self):
        assert INTEGER.parse("42") == 42
        assert INTEGER.parse("-12") == -12
        assert INTEGER.parse("+3") == 3

    @pytest.mark.parametrize("text", ["", "-", "1.5", "1_0", "ten", "0x10"])
    def test_parse_rejects(self, text):
        with pytest.raises(ValueError):
            INTEGER.parse(text)

    def test_format(self):
        assert INTEGER.format(-7) == "-7"
        assert INTEGER.format(10 ** 30) == "1" + "0" * 30

    def test_zero(self):
        assert INTEGER.zero == 0
        assert isinstance(INTEGER.zero, int)


class TestRegistry:
    def test_lookup_by_name(self):
        assert get_data_type("float") is FLOAT64
        assert get_data_type("int") is INTEGER
        assert set(DATA_TYPES) == {"float", "int"}

    def test_instance_passes_through(self):
        assert get_data_type(INTEGER) is INTEGER

    def test_unknown_name(self):
        with pytest.raises(ValueError, match="float, int"):
            get_data_type("decimal")
