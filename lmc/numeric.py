"""
Accumulator data types for the LMC interpreter.

The machine itself is agnostic about what a memory cell holds. Anything
that supports ==, >=, +, - and can be built from a small integer works.
A DataType bundles one such Python type with the text conversions the
toolchain needs:

    parse(text)   literal / input line  -> value   (ValueError if malformed)
    format(value) value -> canonical decimal text  (what OUT writes)
    zero          the value BRZ / BRP compare against

Two types ship by default:
    float  64-bit IEEE double (the classic LMC-as-calculator setup)
    int    arbitrary-precision integer
"""

from __future__ import annotations
import math
from decimal import Decimal
from typing import Any, Dict, Union

__all__ = ['DataType', 'FloatType', 'IntegerType', 'FLOAT64', 'INTEGER',
           'DATA_TYPES', 'get_data_type']


class DataType:
    """Base class: one concrete numeric type usable as accumulator/cell value."""

    name = "abstract"
    description = ""
    python_type: type = object

    def parse(self, text: str) -> Any:
        raise NotImplementedError

    def format(self, value: Any) -> str:
        raise NotImplementedError

    def from_int(self, n: int) -> Any:
        return self.python_type(n)

    @property
    def zero(self) -> Any:
        return self.from_int(0)

    def __repr__(self) -> str:
        return f"<DataType {self.name}>"


class FloatType(DataType):
    name = "float"
    description = "64-bit IEEE floating point"
    python_type = float

    def parse(self, text: str) -> float:
        text = text.strip()
        # float() would accept "1_000" and non-ASCII digits
        if not text or '_' in text or not text.isascii():
            raise ValueError(f"invalid float literal: {text!r}")
        return float(text)

    def format(self, value: float) -> str:
        value = float(value)
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "inf" if value > 0 else "-inf"
        # Shortest round-tripping digits, written positionally (no exponent)
        text = format(Decimal(repr(value)), 'f')
        if '.' in text:
            text = text.rstrip('0').rstrip('.')
        return text


class IntegerType(DataType):
    name = "int"
    description = "arbitrary-precision integer"
    python_type = int

    def parse(self, text: str) -> int:
        text = text.strip()
        digits = text[1:] if text[:1] in ('+', '-') else text
        if not digits or not digits.isdigit() or not digits.isascii():
            raise ValueError(f"invalid integer literal: {text!r}")
        return int(text)

    def format(self, value: int) -> str:
        return str(value)


FLOAT64 = FloatType()
INTEGER = IntegerType()

DATA_TYPES: Dict[str, DataType] = {
    FLOAT64.name: FLOAT64,
    INTEGER.name: INTEGER,
}


def get_data_type(data_type: Union[str, DataType]) -> DataType:
    """Look up a data type by name (or pass a DataType straight through)."""
    if isinstance(data_type, DataType):
        return data_type
    try:
        return DATA_TYPES[data_type]
    except KeyError:
        choices = ", ".join(DATA_TYPES)
        raise ValueError(f"Unknown data type {data_type!r} (choose from: {choices})") from None
