# emulated_ecc/chips/native_ecc_chip.py
from __future__ import annotations

from ..gates.context import AssignedCondition, AssignedValue, Context
from ..utils import ceil_div
from .ecc_chip import EccChip


class NativeEccChip(EccChip):
    """Ecc chip whose scalars are cells of the native field."""

    def decompose_scalar(self, ctx: Context, scalar: AssignedValue) -> list[list[AssignedCondition]]:
        """
        Split `scalar` into windows of `window_size` bits.

        Row i holds the bits of window i and the running value
        r_i = window_i + 2^window_size * r_{i+1} in its last column; r_0 is the
        scalar itself and the next-row coefficient links consecutive rows.
        Windows come back most significant first.
        """
        base = self.base_gate
        n = base.native_modulus
        size = self.window_size
        num_windows = ceil_div(n.bit_length(), size)
        mask = (1 << size) - 1

        value = scalar.value
        window_rows = []
        for i in range(num_windows):
            window = (value >> (size * i)) & mask
            bits = [((window >> j) & 1, 1 << j) for j in range(size)]
            last = scalar if i == 0 else (value >> (size * i)) % n
            next_coeff = 0 if i == num_windows - 1 else 1 << size
            cells = base.one_line_with_last_base(ctx, bits, (last, -1), next_coeff=next_coeff)
            window_rows.append([AssignedCondition.from_value(c) for c in cells[:size]])

        for window in window_rows:
            for bit in window:
                base.assert_bit(ctx, bit)

        window_rows.reverse()
        return window_rows
