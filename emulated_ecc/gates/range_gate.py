# emulated_ecc/gates/range_gate.py
"""
Lookup-based range checks layered on the base gate.

A range row bounds each of its first `chunks_per_limb` columns by the common
table (2^common_range_bits). The three leading ranges additionally bound
column 0 by a narrower table, sized from the bit length of the integer whose
leading limb is being assigned (the modulus ceiling, the native floor or the
mul quotient).
"""
from __future__ import annotations

from ..config import IntegerChipConfig
from ..errors import SynthesisError
from ..utils import ceil_div, decompose_bn
from .base_gate import BaseGate, Term
from .context import AssignedValue, Context

RANGE_NAMES = ("common", "w_ceil_leading", "n_floor_leading", "d_leading")


class RangeGate:
    def __init__(self, base_gate: BaseGate, config: IntegerChipConfig):
        if base_gate.native_modulus != config.native_modulus:
            raise SynthesisError("base gate and integer config disagree on the native modulus")
        self.base_gate = base_gate
        self.config = config

    def range_tables(self) -> dict[str, int]:
        """Bit size of the table backing each named range."""
        return dict(self.config.range_bits)

    def chunks_for(self, range_name: str) -> int:
        """Number of common-width chunks a limb in `range_name` is split into."""
        if range_name not in RANGE_NAMES:
            raise SynthesisError(f"unknown range '{range_name}'")
        cfg = self.config
        if range_name == "common":
            return cfg.chunks_per_limb
        lead_bits = cfg.leading_limb_bits(cfg.range_total_bits[range_name])
        if lead_bits == 0:
            return cfg.chunks_per_limb
        return ceil_div(lead_bits, cfg.common_range_bits)

    def one_line_in_range(
        self,
        ctx: Context,
        range_name: str,
        base_terms: list[Term],
        last: Term,
        constant: int = 0,
    ) -> list[AssignedValue]:
        """Assign one gate row whose leading columns are range-checked."""
        if range_name not in RANGE_NAMES:
            raise SynthesisError(f"unknown range '{range_name}'")
        cells = self.base_gate.one_line_with_last_base(ctx, base_terms, last, constant)
        ctx.rows[cells[0].cell.row].range_name = range_name
        return cells

    def one_line_in_common_range(self, ctx, base_terms, last=(0, 0), constant=0):
        return self.one_line_in_range(ctx, "common", base_terms, last, constant)

    def one_line_in_w_ceil_leading_range(self, ctx, base_terms, last=(0, 0), constant=0):
        return self.one_line_in_range(ctx, "w_ceil_leading", base_terms, last, constant)

    def one_line_in_n_floor_leading_range(self, ctx, base_terms, last=(0, 0), constant=0):
        return self.one_line_in_range(ctx, "n_floor_leading", base_terms, last, constant)

    def one_line_in_d_leading_range(self, ctx, base_terms, last=(0, 0), constant=0):
        return self.one_line_in_range(ctx, "d_leading", base_terms, last, constant)

    def assign_value_in_range(self, ctx: Context, value: int, range_name: str) -> AssignedValue:
        """
        Witness `value` as a limb of the given range.

        The limb is split into common-width chunks, most significant chunk in
        column 0, and recomposed into the last column.
        """
        cfg = self.config
        chunks = self.chunks_for(range_name)
        if chunks >= self.base_gate.var_columns:
            raise SynthesisError(f"range '{range_name}' needs {chunks} chunks in one row")
        if range_name != "common" and cfg.leading_limb_bits(cfg.range_total_bits[range_name]) == 0:
            range_name = "common"
        terms = list(reversed(decompose_bn(value, cfg.common_range_bits, chunks)))
        cells = self.one_line_in_range(ctx, range_name, terms, (value, -1))
        return cells[-1]
