# tests/chips/test_integer_chip.py
import pytest

from emulated_ecc import SynthesisError
from emulated_ecc.chips import AssignedInteger


@pytest.fixture
def w(config):
    return config.w_modulus


def random_w(rng, w):
    return rng.randrange(w)


class TestAssignment:
    """Assigning constants, witnesses and quotients as limbs."""

    def test_constant_roundtrip(self, ctx, integer_chip, rng, w, assert_satisfied):
        for _ in range(5):
            value = random_w(rng, w)
            a = integer_chip.assign_constant(ctx, value)
            assert integer_chip.get_w(a) == value
            assert a.overflows == 0
            assert a.native.value == value % integer_chip.config.native_modulus
        assert_satisfied(ctx)

    def test_witness_roundtrip(self, ctx, integer_chip, rng, w, assert_satisfied):
        values = [0, 1, w - 1] + [random_w(rng, w) for _ in range(3)]
        for value in values:
            a = integer_chip.assign_w(ctx, value)
            assert integer_chip.get_w(a) == value
            assert len(a.limbs_le) == 4
        assert_satisfied(ctx)

    def test_native_is_memoized(self, ctx, integer_chip, rng, w, assert_satisfied):
        """The native companion value is computed once per integer."""
        a = integer_chip.assign_w(ctx, random_w(rng, w))
        first = integer_chip.native(ctx, a)
        rows = ctx.offset
        assert integer_chip.native(ctx, a) is first
        assert ctx.offset == rows
        assert first.value == a.bn(68) % integer_chip.config.native_modulus
        assert_satisfied(ctx)

    def test_assign_d_rejects_wide_quotient(self, ctx, integer_chip):
        """A quotient wider than d_bits cannot be assigned."""
        with pytest.raises(SynthesisError):
            integer_chip.assign_d(ctx, 1 << 271)


class TestLinearOps:
    """add, sub, neg and small-constant scaling with overflow tracking."""

    def test_add_associative(self, ctx, integer_chip, rng, w, assert_satisfied):
        x, y, z = (random_w(rng, w) for _ in range(3))
        a, b, c = (integer_chip.assign_w(ctx, v) for v in (x, y, z))

        left = integer_chip.add(ctx, integer_chip.add(ctx, a, b), c)
        right = integer_chip.add(ctx, a, integer_chip.add(ctx, b, c))

        assert integer_chip.get_w(left) == integer_chip.get_w(right) == (x + y + z) % w
        integer_chip.assert_equal(ctx, left, right)
        assert_satisfied(ctx)

    def test_sub(self, ctx, integer_chip, rng, w, assert_satisfied):
        x, y = random_w(rng, w), random_w(rng, w)
        a, b = integer_chip.assign_w(ctx, x), integer_chip.assign_w(ctx, y)

        diff = integer_chip.sub(ctx, a, b)

        assert integer_chip.get_w(diff) == (x - y) % w
        assert diff.overflows == 2
        assert all(limb.value >= 0 for limb in diff.limbs_le)
        assert_satisfied(ctx)

    def test_sub_self_is_zero(self, ctx, integer_chip, rng, w, assert_satisfied):
        a = integer_chip.assign_w(ctx, random_w(rng, w))
        diff = integer_chip.sub(ctx, a, a)
        assert integer_chip.is_zero(ctx, diff).value == 1
        assert diff.overflows == 0
        assert integer_chip.get_w(diff) == 0
        assert_satisfied(ctx)

    def test_neg(self, ctx, integer_chip, rng, w, assert_satisfied):
        x = random_w(rng, w)
        a = integer_chip.assign_w(ctx, x)
        neg = integer_chip.neg(ctx, a)
        assert integer_chip.get_w(neg) == (-x) % w
        assert integer_chip.is_zero(ctx, integer_chip.add(ctx, a, neg)).value == 1
        assert_satisfied(ctx)

    def test_repeated_add_stays_below_threshold(self, ctx, integer_chip, rng, w, assert_satisfied):
        """41 * x by repeated addition, reducing on the way."""
        x = random_w(rng, w)
        a = integer_chip.assign_w(ctx, x)
        acc = a
        for _ in range(40):
            acc = integer_chip.add(ctx, acc, a)
            assert acc.overflows < integer_chip.config.overflow_threshold
        assert integer_chip.get_w(acc) == 41 * x % w
        assert_satisfied(ctx)

    def test_sub_of_overflowed_operands(self, ctx, integer_chip, rng, w, assert_satisfied):
        """Subtrahends with overflow need a larger multiple of W."""
        x, y = random_w(rng, w), random_w(rng, w)
        a, b = integer_chip.assign_w(ctx, x), integer_chip.assign_w(ctx, y)
        a = AssignedInteger(a.limbs_le, 31)
        b = AssignedInteger(b.limbs_le, 31)

        diff = integer_chip.sub(ctx, a, b)

        assert diff.overflows < integer_chip.config.overflow_limit
        assert integer_chip.get_w(diff) == (x - y) % w
        assert_satisfied(ctx)

    @pytest.mark.parametrize("k", [0, 1, 2, 3, 17])
    def test_mul_small_constant(self, ctx, integer_chip, rng, w, assert_satisfied, k):
        x = random_w(rng, w)
        a = integer_chip.assign_w(ctx, x)
        r = integer_chip.mul_small_constant(ctx, a, k)
        assert integer_chip.get_w(r) == k * x % w
        assert r.overflows < integer_chip.config.overflow_threshold
        assert_satisfied(ctx)

    def test_mul_small_constant_reduces_first(self, ctx, integer_chip, rng, w, assert_satisfied):
        """The operand is reduced when k would push overflow past the limit."""
        x = random_w(rng, w)
        a = integer_chip.add(ctx, integer_chip.assign_w(ctx, x), integer_chip.assign_w(ctx, x))
        for _ in range(3):
            a = integer_chip.add(ctx, a, a)
        assert a.overflows > 0

        r = integer_chip.mul_small_constant(ctx, a, 20)

        assert integer_chip.get_w(r) == 320 * x % w
        assert_satisfied(ctx)

    def test_mul_small_constant_out_of_range(self, ctx, integer_chip):
        a = integer_chip.assign_w(ctx, 5)
        with pytest.raises(SynthesisError):
            integer_chip.mul_small_constant(ctx, a, 64)

    @pytest.mark.parametrize("cond", [0, 1])
    def test_bisec(self, ctx, integer_chip, base_gate, rng, w, assert_satisfied, cond):
        x, y = random_w(rng, w), random_w(rng, w)
        a, b = integer_chip.assign_w(ctx, x), integer_chip.assign_w(ctx, y)
        c = base_gate.is_zero(ctx, base_gate.assign(ctx, 1 - cond))

        r = integer_chip.bisec(ctx, c, a, b)

        assert integer_chip.get_w(r) == (x if cond else y)
        assert_satisfied(ctx)


class TestMul:
    """Multiplication proven modulo 2^272 and modulo N."""

    def test_mul(self, ctx, integer_chip, rng, w, assert_satisfied):
        for _ in range(3):
            x, y = random_w(rng, w), random_w(rng, w)
            r = integer_chip.mul(ctx, integer_chip.assign_w(ctx, x), integer_chip.assign_w(ctx, y))
            assert integer_chip.get_w(r) == x * y % w
            assert r.overflows == 0
        assert_satisfied(ctx)

    def test_mul_edge_values(self, ctx, integer_chip, w, assert_satisfied):
        """0, 1 and W - 1 as operands."""
        for x, y in [(0, w - 1), (w - 1, w - 1), (1, 1)]:
            r = integer_chip.mul(ctx, integer_chip.assign_w(ctx, x), integer_chip.assign_w(ctx, y))
            assert integer_chip.get_w(r) == x * y % w
        assert_satisfied(ctx)

    def test_square(self, ctx, integer_chip, rng, w, assert_satisfied):
        x = random_w(rng, w)
        r = integer_chip.square(ctx, integer_chip.assign_w(ctx, x))
        assert integer_chip.get_w(r) == x * x % w
        assert_satisfied(ctx)

    def test_distributive(self, ctx, integer_chip, rng, w, assert_satisfied):
        x, y, z = (random_w(rng, w) for _ in range(3))
        a, b, c = (integer_chip.assign_w(ctx, v) for v in (x, y, z))

        left = integer_chip.mul(ctx, a, integer_chip.add(ctx, b, c))
        right = integer_chip.add(ctx, integer_chip.mul(ctx, a, b), integer_chip.mul(ctx, a, c))

        assert integer_chip.get_w(left) == integer_chip.get_w(right) == x * (y + z) % w
        integer_chip.assert_equal(ctx, left, right)
        assert_satisfied(ctx)

    def test_mul_of_overflowed_operands(self, ctx, integer_chip, rng, w, assert_satisfied):
        x, y = random_w(rng, w), random_w(rng, w)
        a = integer_chip.assign_w(ctx, x)
        b = integer_chip.assign_w(ctx, y)
        a2 = integer_chip.sub(ctx, integer_chip.add(ctx, a, a), b)
        b2 = integer_chip.neg(ctx, b)
        assert a2.overflows > 0 and b2.overflows > 0

        r = integer_chip.mul(ctx, a2, b2)

        assert integer_chip.get_w(r) == (2 * x - y) * (-y) % w
        assert_satisfied(ctx)

    def test_tampered_product_detected(self, ctx, integer_chip, rng, w, prover):
        """Editing a limb of the product breaks its rows."""
        x, y = random_w(rng, w), random_w(rng, w)
        r = integer_chip.mul(ctx, integer_chip.assign_w(ctx, x), integer_chip.assign_w(ctx, y))
        assert prover(ctx) == []

        limb = r.limbs_le[1]
        ctx.rows[limb.cell.row].values[limb.cell.column] += 1
        assert prover(ctx)


class TestDiv:
    """Division with a zero flag for the divisor."""

    def test_div(self, ctx, integer_chip, rng, w, assert_satisfied):
        x, y = random_w(rng, w), random_w(rng, w - 1) + 1
        a, b = integer_chip.assign_w(ctx, x), integer_chip.assign_w(ctx, y)

        is_zero, c = integer_chip.div(ctx, a, b)

        assert is_zero.value == 0
        assert integer_chip.get_w(c) == x * pow(y, -1, w) % w
        back = integer_chip.mul(ctx, b, c)
        assert integer_chip.get_w(back) == x
        integer_chip.assert_equal(ctx, back, a)
        assert_satisfied(ctx)

    def test_div_by_zero(self, ctx, integer_chip, rng, w, assert_satisfied):
        """Division by zero yields the flag and a zero quotient."""
        a = integer_chip.assign_w(ctx, random_w(rng, w))
        is_zero, c = integer_chip.div(ctx, a, integer_chip.assign_w(ctx, 0))
        assert is_zero.value == 1
        assert integer_chip.get_w(c) == 0
        assert_satisfied(ctx)

    def test_div_by_unreduced_zero(self, ctx, integer_chip, rng, w, assert_satisfied):
        """b - b is zero even though its limbs are not."""
        a = integer_chip.assign_w(ctx, random_w(rng, w))
        b = integer_chip.assign_w(ctx, random_w(rng, w))
        zero = integer_chip.sub(ctx, b, b)

        is_zero, c = integer_chip.div(ctx, a, zero)

        assert is_zero.value == 1
        assert integer_chip.get_w(c) == 0
        assert_satisfied(ctx)

    def test_div_zero_by_nonzero(self, ctx, integer_chip, assert_satisfied):
        is_zero, c = integer_chip.div(ctx, integer_chip.assign_w(ctx, 0), integer_chip.assign_w(ctx, 7))
        assert is_zero.value == 0
        assert integer_chip.get_w(c) == 0
        assert_satisfied(ctx)


class TestReduce:
    """Reduction to zero overflow keeping the value mod W."""

    def test_reduce_keeps_value(self, ctx, integer_chip, rng, w, assert_satisfied):
        x, y = random_w(rng, w), random_w(rng, w)
        a = integer_chip.add(ctx, integer_chip.assign_w(ctx, x), integer_chip.assign_w(ctx, y))
        assert a.overflows == 1

        integer_chip.reduce(ctx, a)

        assert a.overflows == 0
        assert a.bn(68) == (x + y) % w
        assert_satisfied(ctx)

    def test_reduce_idempotent(self, ctx, integer_chip, rng, w, assert_satisfied):
        a = integer_chip.neg(ctx, integer_chip.assign_w(ctx, random_w(rng, w)))
        integer_chip.reduce(ctx, a)
        limbs, rows = a.limb_values(), ctx.offset

        integer_chip.reduce(ctx, a)

        assert a.limb_values() == limbs
        assert ctx.offset == rows
        assert_satisfied(ctx)

    def test_conditionally_reduce(self, ctx, integer_chip, assert_satisfied):
        a = integer_chip.assign_w(ctx, 3)
        low = AssignedInteger(a.limbs_le, 5)
        assert integer_chip.conditionally_reduce(ctx, low).overflows == 5
        high = AssignedInteger(a.limbs_le, 32)
        assert integer_chip.conditionally_reduce(ctx, high).overflows == 0
        assert_satisfied(ctx)

    @pytest.mark.parametrize("overflows", [0, 1, 5, 31])
    def test_w_modulus_ceil(self, integer_chip, w, overflows):
        """Every limb of the multiple of W dominates the operand bound."""
        limbs = integer_chip.find_w_modulus_ceil(overflows)
        total = sum(limb << (68 * i) for i, limb in enumerate(limbs))
        assert total % w == 0
        assert all(limb >= (overflows + 1) << 68 for limb in limbs[:-1])
        assert limbs[-1] >= (overflows + 1) << 50


class TestComparison:
    """Zero tests, equality and parity."""

    def test_is_equal(self, ctx, integer_chip, rng, w, assert_satisfied):
        x, y = random_w(rng, w), random_w(rng, w)
        a = integer_chip.assign_w(ctx, x)
        a2 = integer_chip.sub(ctx, integer_chip.add(ctx, a, integer_chip.assign_w(ctx, y)), integer_chip.assign_w(ctx, y))
        b = integer_chip.assign_w(ctx, (x + 1) % w)

        assert integer_chip.is_equal(ctx, a, a2).value == 1
        assert integer_chip.is_equal(ctx, a, b).value == 0
        assert_satisfied(ctx)

    def test_is_zero_accepts_pure_w(self, ctx, integer_chip, base_gate, assert_satisfied):
        """W itself counts as zero."""
        # Overflow-free limbs holding exactly w, the other representative of zero.
        limbs = [base_gate.assign_constant(ctx, v) for v in integer_chip.config.w_modulus_limbs_le]
        a = AssignedInteger(limbs, 0)
        assert integer_chip.is_zero(ctx, a).value == 1
        assert_satisfied(ctx)

    def test_assert_equal_mismatch(self, ctx, integer_chip, prover):
        integer_chip.assert_equal(ctx, integer_chip.assign_w(ctx, 4), integer_chip.assign_w(ctx, 5))
        assert prover(ctx)

    @pytest.mark.parametrize("value", [0, 1, 2, 12345678901234567890123])
    def test_get_last_bit(self, ctx, integer_chip, assert_satisfied, value):
        bit = integer_chip.get_last_bit(ctx, integer_chip.assign_w(ctx, value))
        assert bit.value == value & 1
        assert_satisfied(ctx)

    def test_get_last_bit_of_negated(self, ctx, integer_chip, w, assert_satisfied):
        a = integer_chip.neg(ctx, integer_chip.assign_w(ctx, 1))
        assert integer_chip.get_last_bit(ctx, a).value == (w - 1) & 1
        assert_satisfied(ctx)
