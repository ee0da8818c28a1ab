# emulated_ecc/gates/mock_prover.py
"""Re-checks every row equation, copy constraint and range lookup of a context."""
from __future__ import annotations
import logging
from dataclasses import dataclass

from ..errors import UnsatisfiedError
from .context import Cell, Context
from .range_gate import RangeGate

logger = logging.getLogger(__name__)


@dataclass
class VerifyFailure:
    kind: str  # "gate", "copy", "range"
    row: int
    detail: str

    def __str__(self) -> str:
        return f"{self.kind} failure at row {self.row}: {self.detail}"


class MockProver:
    def __init__(self, ctx: Context, range_gate: RangeGate):
        self.ctx = ctx
        self.range_gate = range_gate

    def _check_gate(self, index: int) -> VerifyFailure | None:
        ctx = self.ctx
        n = ctx.native_modulus
        row = ctx.rows[index]
        acc = row.constant
        acc += sum(c * v for c, v in zip(row.coeffs, row.values))
        acc += sum(
            m * row.values[2 * j] * row.values[2 * j + 1]
            for j, m in enumerate(row.mul_coeffs)
        )
        if row.next_coeff:
            if index + 1 >= len(ctx.rows):
                return VerifyFailure("gate", index, "next-row coefficient on the last row")
            acc += row.next_coeff * ctx.rows[index + 1].values[-1]
        if acc % n:
            return VerifyFailure("gate", index, f"row equation evaluates to {acc % n}")
        return None

    def _check_range(self, index: int) -> list[VerifyFailure]:
        row = self.ctx.rows[index]
        if row.range_name is None:
            return []
        cfg = self.range_gate.config
        tables = self.range_gate.range_tables()
        failures = []
        common = 1 << tables["common"]
        for column in range(cfg.chunks_per_limb):
            if not 0 <= row.values[column] < common:
                failures.append(VerifyFailure(
                    "range", index, f"column {column} = {row.values[column]} outside common range",
                ))
        if row.range_name != "common":
            bound = 1 << tables[row.range_name]
            if not 0 <= row.values[0] < bound:
                failures.append(VerifyFailure(
                    "range", index, f"column 0 = {row.values[0]} outside {row.range_name} range",
                ))
        return failures

    def _check_copy(self, a: Cell, b: Cell) -> VerifyFailure | None:
        va, vb = self.ctx.value_at(a), self.ctx.value_at(b)
        if va != vb:
            return VerifyFailure("copy", b.row, f"{a} = {va} differs from {b} = {vb}")
        return None

    def verify(self) -> list[VerifyFailure]:
        """Return every failed constraint, in row order."""
        failures = []
        for index in range(len(self.ctx.rows)):
            failure = self._check_gate(index)
            if failure is not None:
                failures.append(failure)
            failures.extend(self._check_range(index))
        for a, b in self.ctx.copies:
            failure = self._check_copy(a, b)
            if failure is not None:
                failures.append(failure)

        if failures:
            logger.warning("%d of %d rows failed verification", len(failures), len(self.ctx.rows))
        return failures

    def assert_satisfied(self) -> None:
        failures = self.verify()
        if failures:
            raise UnsatisfiedError(failures)
