"""Human-readable listings of parsed and linked programs (debug output)."""

from __future__ import annotations
from typing import List

from .instructions import ResolvedProgram, UnresolvedProgram

__all__ = ['format_unresolved', 'format_resolved']


def _header() -> List[str]:
    return [f"{'ADDR':>4}  {'LABELS':<16}  INSTRUCTION", "-" * 44]


def format_unresolved(program: UnresolvedProgram) -> str:
    """Listing of parser output, operands still symbolic."""
    lines = _header()
    for addr, instr in enumerate(program.instructions):
        labels = ','.join(program.labels_at(addr))
        src = f"  ; line {instr.line_num}" if instr.line_num else "  ; immediate"
        lines.append(f"{addr:>4}  {labels:<16}  {str(instr):<16}{src}")
    return '\n'.join(lines)


def format_resolved(program: ResolvedProgram) -> str:
    """Listing of linker output (or of memory after a run)."""
    lines = _header()
    for addr, instr in enumerate(program.instructions):
        labels = ','.join(program.labels_at(addr))
        lines.append(f"{addr:>4}  {labels:<16}  {instr.render(program.data_type)}")
    return '\n'.join(lines)
