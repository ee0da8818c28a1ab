# emulated_ecc/gates/base_gate.py
"""
Five-column custom gate over the native field N.

Each row enforces

    sum_i coeff_i * v_i + sum_j mul_j * v_{2j} * v_{2j+1} + next * v'_last + constant == 0

where v'_last is the last advice cell of the following row. A term may be a
fresh witness (an int) or an already assigned value; the latter is copied into
the row and tied to its origin with a copy constraint.
"""
from __future__ import annotations
from ..errors import SynthesisError
from .context import AssignedCondition, AssignedValue, Cell, Context, Row

ValueSchema = AssignedValue | int
Term = tuple[ValueSchema, int]


class BaseGate:
    """Linear, quadratic and boolean primitives on native-field cells."""

    def __init__(self, native_modulus: int, var_columns: int = 5, mul_columns: int = 2):
        if 2 * mul_columns > var_columns:
            raise SynthesisError("multiplication columns exceed variable columns")
        self.native_modulus = native_modulus
        self.var_columns = var_columns
        self.mul_columns = mul_columns

    def new_context(self) -> Context:
        return Context(self.native_modulus, self.var_columns, self.mul_columns)

    # Rows

    def one_line(
        self,
        ctx: Context,
        terms: list[Term],
        constant: int = 0,
        mul_coeffs: list[int] | None = None,
        next_coeff: int = 0,
        comment: str | None = None,
    ) -> list[AssignedValue]:
        """Assign one row; returns the cells of every column."""
        n = self.native_modulus
        mul_coeffs = list(mul_coeffs or [])
        if len(terms) > self.var_columns:
            raise SynthesisError(f"{len(terms)} terms do not fit {self.var_columns} columns")
        if len(mul_coeffs) > self.mul_columns:
            raise SynthesisError(f"{len(mul_coeffs)} products do not fit {self.mul_columns} columns")

        terms = list(terms) + [(0, 0)] * (self.var_columns - len(terms))
        mul_coeffs += [0] * (self.mul_columns - len(mul_coeffs))

        row_index = ctx.offset
        values = []
        for column, (v, _) in enumerate(terms):
            if isinstance(v, AssignedValue):
                ctx.copies.append((v.cell, Cell(row_index, column)))
                values.append(v.value)
            else:
                values.append(v % n)

        ctx.append_row(Row(
            values=values,
            coeffs=[c % n for _, c in terms],
            mul_coeffs=[m % n for m in mul_coeffs],
            next_coeff=next_coeff % n,
            constant=constant % n,
            comment=comment,
        ))
        return [AssignedValue(Cell(row_index, i), v) for i, v in enumerate(values)]

    def one_line_add(self, ctx: Context, terms: list[Term], constant: int = 0) -> list[AssignedValue]:
        return self.one_line(ctx, terms, constant)

    def one_line_with_last_base(
        self,
        ctx: Context,
        base_terms: list[Term],
        last: Term,
        constant: int = 0,
        mul_coeffs: list[int] | None = None,
        next_coeff: int = 0,
    ) -> list[AssignedValue]:
        """Like `one_line`, with `last` pinned to the final column."""
        if len(base_terms) > self.var_columns - 1:
            raise SynthesisError(f"{len(base_terms)} terms do not fit before the last column")
        padded = list(base_terms) + [(0, 0)] * (self.var_columns - 1 - len(base_terms))
        return self.one_line(ctx, padded + [last], constant, mul_coeffs, next_coeff)

    def sum_with_constant(
        self, ctx: Context, elems: list[tuple[AssignedValue, int]], constant: int = 0
    ) -> AssignedValue:
        """Return sum(v * coeff) + constant, spilling over as many rows as needed."""
        n = self.native_modulus
        acc = None
        remaining = list(elems)
        while True:
            take = self.var_columns - 1 - (0 if acc is None else 1)
            chunk, remaining = remaining[:take], remaining[take:]
            terms = ([] if acc is None else [(acc, 1)]) + chunk
            row_constant = constant if acc is None else 0
            total = (sum(v.value * c for v, c in terms) + row_constant) % n
            acc = self.one_line_with_last_base(ctx, terms, (total, -1), row_constant)[-1]
            if not remaining:
                return acc

    def mul_add_with_next_line(
        self, ctx: Context, terms: list[tuple[AssignedValue, AssignedValue, AssignedValue, int]]
    ) -> AssignedValue:
        """
        Return sum(a * b + c * c_coeff) over `terms`.

        The running sum is carried in the last column and linked row to row
        through the next-row coefficient; the result sits in the last column of
        a closing row.
        """
        n = self.native_modulus
        acc = 0
        for i, (a, b, c, c_coeff) in enumerate(terms):
            acc_coeff = 0 if i == 0 else 1
            self.one_line(
                ctx,
                [(a, 0), (b, 0), (c, c_coeff), (0, 0), (acc, acc_coeff)],
                mul_coeffs=[1],
                next_coeff=-1,
            )
            acc = (acc + a.value * b.value + c.value * c_coeff) % n
        return self.one_line_with_last_base(ctx, [], (acc, 0))[-1]

    # Arithmetic

    def assign(self, ctx: Context, value: int) -> AssignedValue:
        return self.one_line(ctx, [(value, 0)])[0]

    def assign_constant(self, ctx: Context, value: int) -> AssignedValue:
        return self.one_line(ctx, [(value, -1)], constant=value)[0]

    def add(self, ctx: Context, a: AssignedValue, b: AssignedValue) -> AssignedValue:
        return self.sum_with_constant(ctx, [(a, 1), (b, 1)])

    def add_constant(self, ctx: Context, a: AssignedValue, constant: int) -> AssignedValue:
        return self.sum_with_constant(ctx, [(a, 1)], constant)

    def sub(self, ctx: Context, a: AssignedValue, b: AssignedValue) -> AssignedValue:
        return self.sum_with_constant(ctx, [(a, 1), (b, -1)])

    def mul(self, ctx: Context, a: AssignedValue, b: AssignedValue) -> AssignedValue:
        c = a.value * b.value % self.native_modulus
        return self.one_line(ctx, [(a, 0), (b, 0), (c, -1)], mul_coeffs=[1])[2]

    def mul_add_constant(self, ctx: Context, a: AssignedValue, b: AssignedValue, constant: int) -> AssignedValue:
        d = (a.value * b.value + constant) % self.native_modulus
        return self.one_line(ctx, [(a, 0), (b, 0), (d, -1)], constant, mul_coeffs=[1])[2]

    def mul_add(
        self, ctx: Context, a: AssignedValue, b: AssignedValue, c: AssignedValue, c_coeff: int
    ) -> AssignedValue:
        d = (a.value * b.value + c.value * c_coeff) % self.native_modulus
        return self.one_line(ctx, [(a, 0), (b, 0), (c, c_coeff), (d, -1)], mul_coeffs=[1])[3]

    def invert_unsafe(self, ctx: Context, a: AssignedValue) -> AssignedValue:
        """Inverse of a value the caller knows to be nonzero."""
        n = self.native_modulus
        b = pow(a.value, -1, n) if a.value else 0
        return self.one_line(ctx, [(a, 0), (b, 0)], constant=-1, mul_coeffs=[1])[1]

    def invert(self, ctx: Context, a: AssignedValue) -> tuple[AssignedCondition, AssignedValue]:
        """Return (a == 0, 1/a), where 1/a is 0 when a is 0."""
        n = self.native_modulus
        is_zero = 1 if a.value == 0 else 0
        inv = pow(a.value, -1, n) if a.value else 0
        # a * b + c - 1 == 0
        cells = self.one_line(ctx, [(a, 0), (inv, 0), (is_zero, 1)], constant=-1, mul_coeffs=[1])
        b, c = cells[1], cells[2]
        # a * c + b * c == 0
        self.one_line(ctx, [(a, 0), (c, 0), (b, 0), (c, 0)], mul_coeffs=[1, 1])
        return AssignedCondition.from_value(c), b

    def is_zero(self, ctx: Context, a: AssignedValue) -> AssignedCondition:
        return self.invert(ctx, a)[0]

    def div_unsafe(self, ctx: Context, a: AssignedValue, b: AssignedValue) -> AssignedValue:
        """a / b for a divisor the caller knows to be nonzero."""
        n = self.native_modulus
        c = a.value * pow(b.value, -1, n) % n if b.value else 0
        return self.one_line(ctx, [(b, 0), (c, 0), (a, -1)], mul_coeffs=[1])[1]

    # Assertions

    def assert_equal(self, ctx: Context, a: AssignedValue, b: AssignedValue) -> None:
        self.one_line_add(ctx, [(a, 1), (b, -1)])

    def assert_constant(self, ctx: Context, a: AssignedValue, constant: int) -> None:
        self.one_line_add(ctx, [(a, 1)], -constant)

    def assert_bit(self, ctx: Context, a: AssignedValue) -> None:
        # a - a * a == 0
        self.one_line(ctx, [(a, 1), (a, 0)], mul_coeffs=[-1])

    def assert_true(self, ctx: Context, a: AssignedValue) -> None:
        self.assert_constant(ctx, a, 1)

    def assert_false(self, ctx: Context, a: AssignedValue) -> None:
        self.assert_constant(ctx, a, 0)

    # Boolean logic

    def and_(self, ctx: Context, a: AssignedCondition, b: AssignedCondition) -> AssignedCondition:
        return AssignedCondition.from_value(self.mul(ctx, a, b))

    def not_(self, ctx: Context, a: AssignedCondition) -> AssignedCondition:
        return AssignedCondition.from_value(self.sum_with_constant(ctx, [(a, -1)], 1))

    def or_(self, ctx: Context, a: AssignedCondition, b: AssignedCondition) -> AssignedCondition:
        # a + b - a * b
        c = a.value + b.value - a.value * b.value
        cells = self.one_line(ctx, [(a, 1), (b, 1), (c, -1)], mul_coeffs=[-1])
        return AssignedCondition.from_value(cells[2])

    def xor(self, ctx: Context, a: AssignedCondition, b: AssignedCondition) -> AssignedCondition:
        # a + b - 2 * a * b
        c = a.value + b.value - 2 * a.value * b.value
        cells = self.one_line(ctx, [(a, 1), (b, 1), (c, -1)], mul_coeffs=[-2])
        return AssignedCondition.from_value(cells[2])

    def xnor(self, ctx: Context, a: AssignedCondition, b: AssignedCondition) -> AssignedCondition:
        # 1 - a - b + 2 * a * b
        c = 1 - a.value - b.value + 2 * a.value * b.value
        cells = self.one_line(ctx, [(a, -1), (b, -1), (c, -1)], constant=1, mul_coeffs=[2])
        return AssignedCondition.from_value(cells[2])

    def bisec(
        self, ctx: Context, cond: AssignedCondition, a: AssignedValue, b: AssignedValue
    ) -> AssignedValue:
        """cond * a + (1 - cond) * b."""
        c = a.value if cond.value else b.value
        cells = self.one_line(
            ctx,
            [(cond, 0), (a, 0), (cond, 0), (b, 1), (c, -1)],
            mul_coeffs=[1, -1],
        )
        return cells[4]

    def bisec_cond(
        self, ctx: Context, cond: AssignedCondition, a: AssignedCondition, b: AssignedCondition
    ) -> AssignedCondition:
        return AssignedCondition.from_value(self.bisec(ctx, cond, a, b))
