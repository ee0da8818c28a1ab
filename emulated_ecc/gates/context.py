# emulated_ecc/gates/context.py
from __future__ import annotations
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Cell:
    """Position of an advice value: (row, column)."""
    row: int
    column: int


@dataclass
class AssignedValue:
    """A native-field value together with the cell that holds it."""
    cell: Cell
    value: int

    def __repr__(self) -> str:
        return f"AssignedValue({self.cell.row}:{self.cell.column} = {self.value})"


class AssignedCondition(AssignedValue):
    """An assigned value known to be 0 or 1."""

    @classmethod
    def from_value(cls, v: AssignedValue) -> AssignedCondition:
        return cls(v.cell, v.value)

    def __repr__(self) -> str:
        return f"AssignedCondition({self.cell.row}:{self.cell.column} = {self.value})"


@dataclass
class Row:
    """One row of the custom gate, with the coefficients that define its equation."""
    values: list[int]
    coeffs: list[int]
    mul_coeffs: list[int]
    next_coeff: int = 0
    constant: int = 0
    range_name: str | None = None
    comment: str | None = None


@dataclass
class Context:
    """
    State of one circuit-building pass.

    Rows are append-only; `offset` is the index the next row will take. Every
    chip operation receives the context explicitly and appends its rows in
    call order.
    """
    native_modulus: int
    var_columns: int = 5
    mul_columns: int = 2
    rows: list[Row] = field(default_factory=list)
    copies: list[tuple[Cell, Cell]] = field(default_factory=list)

    @property
    def offset(self) -> int:
        return len(self.rows)

    def append_row(self, row: Row) -> int:
        self.rows.append(row)
        return len(self.rows) - 1

    def value_at(self, cell: Cell) -> int:
        return self.rows[cell.row].values[cell.column]

    def range_lookups(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for row in self.rows:
            if row.range_name is not None:
                counts[row.range_name] = counts.get(row.range_name, 0) + 1
        return counts

    def stats(self) -> dict:
        """Return circuit statistics."""
        return {
            "num_rows": len(self.rows),
            "num_copies": len(self.copies),
            "num_range_rows": sum(self.range_lookups().values()),
            "range_lookups": self.range_lookups(),
        }

    def print_rows(self, start: int = 0, end: int | None = None) -> None:
        """Print rows [start, end) with their coefficients."""
        print(f"=== Context: {len(self.rows)} rows, {len(self.copies)} copies ===")
        for i, row in enumerate(self.rows[start:end], start=start):
            terms = " ".join(f"{c}*{v}" for v, c in zip(row.values, row.coeffs) if c)
            muls = " ".join(
                f"{m}*{row.values[2 * j]}*{row.values[2 * j + 1]}"
                for j, m in enumerate(row.mul_coeffs) if m
            )
            extra = []
            if row.next_coeff:
                extra.append(f"next={row.next_coeff}")
            if row.constant:
                extra.append(f"const={row.constant}")
            if row.range_name:
                extra.append(f"range={row.range_name}")
            if row.comment:
                extra.append(f"# {row.comment}")
            print(f"  [{i}] {row.values}  {terms} {muls} {' '.join(extra)}".rstrip())
