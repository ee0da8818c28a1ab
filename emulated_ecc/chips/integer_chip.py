# emulated_ecc/chips/integer_chip.py
"""
Foreign-field integers as limbs of the native field.

An `AssignedInteger` holds `limbs` little-endian native cells of nominally
`limb_width` bits. `overflows` bounds how far the limbs may have grown since
the last reduction: every nonleading limb is below (overflows + 1) * 2^width
and the whole value below (overflows + 1) * 2^w_ceil_bits.

Products and reductions are proven with a double congruence: the identity
a * b = d * w + rem is checked modulo 2^(limbs * width) on the limbs and
modulo N on the native companion values, and `IntegerChipConfig.validate()`
guarantees both sides stay below the lcm of the two moduli.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass

from ..config import IntegerChipConfig
from ..errors import SynthesisError
from ..gates.base_gate import BaseGate
from ..gates.context import AssignedCondition, AssignedValue, Context
from ..gates.range_gate import RangeGate
from ..utils import bn_to_limbs_le, ceil_div, limbs_to_bn

logger = logging.getLogger(__name__)


@dataclass
class AssignedInteger:
    """A foreign-field element held as native-field limbs."""
    limbs_le: list[AssignedValue]
    overflows: int
    native: AssignedValue | None = None

    def limb_values(self) -> list[int]:
        return [limb.value for limb in self.limbs_le]

    def bn(self, limb_width: int) -> int:
        """Integer value of the limbs, overflow included."""
        return limbs_to_bn(self.limb_values(), limb_width)

    def w(self, config: IntegerChipConfig) -> int:
        return self.bn(config.limb_width) % config.w_modulus


class IntegerChip:
    """Arithmetic over W, expressed with base and range gate rows over N."""

    def __init__(self, range_gate: RangeGate, config: IntegerChipConfig | None = None):
        self.range_gate = range_gate
        self.base_gate: BaseGate = range_gate.base_gate
        self.config = config or range_gate.config
        self._w_ceil_cache: dict[int, list[int]] = {}

    # Off-circuit helpers

    def get_w(self, a: AssignedInteger) -> int:
        """Read back the represented element of W."""
        return a.w(self.config)

    def _bn(self, a: AssignedInteger) -> int:
        return a.bn(self.config.limb_width)

    def find_w_modulus_ceil(self, overflows: int) -> list[int]:
        """
        Limbs of the smallest multiple of w that dominates, limb by limb,
        any integer with the given overflow.
        """
        if overflows in self._w_ceil_cache:
            return self._w_ceil_cache[overflows]
        cfg = self.config
        width, limb_modulus = cfg.limb_width, cfg.limb_modulus
        lead_bits = cfg.w_ceil_bits - width * (cfg.limbs - 1)
        n = ceil_div((overflows + 1) << cfg.w_ceil_bits, cfg.w_modulus)
        while True:
            upper = n * cfg.w_modulus
            limbs = []
            for _ in range(cfg.limbs - 1):
                rem = upper % limb_modulus + (overflows + 1) * limb_modulus
                upper = (upper - rem) // limb_modulus
                limbs.append(rem)
            limbs.append(upper)
            if upper >= (overflows + 1) << lead_bits:
                break
            n += 1
        self._w_ceil_cache[overflows] = limbs
        return limbs

    # Assignment

    def assign_nonleading_limb(self, ctx: Context, value: int) -> AssignedValue:
        return self.range_gate.assign_value_in_range(ctx, value, "common")

    def assign_w_ceil_leading_limb(self, ctx: Context, value: int) -> AssignedValue:
        return self.range_gate.assign_value_in_range(ctx, value, "w_ceil_leading")

    def assign_n_floor_leading_limb(self, ctx: Context, value: int) -> AssignedValue:
        return self.range_gate.assign_value_in_range(ctx, value, "n_floor_leading")

    def assign_d_leading_limb(self, ctx: Context, value: int) -> AssignedValue:
        return self.range_gate.assign_value_in_range(ctx, value, "d_leading")

    def _assign_limbs(self, ctx: Context, value: int, assign_leading) -> AssignedInteger:
        cfg = self.config
        values = bn_to_limbs_le(value, cfg.limb_width, cfg.limbs)
        limbs = [self.assign_nonleading_limb(ctx, v) for v in values[:-1]]
        limbs.append(assign_leading(ctx, values[-1]))
        return AssignedInteger(limbs, 0)

    def assign_w(self, ctx: Context, w: int) -> AssignedInteger:
        """Witness an element of W with range-checked limbs."""
        return self._assign_limbs(ctx, w % self.config.w_modulus, self.assign_w_ceil_leading_limb)

    def assign_d(self, ctx: Context, d: int) -> AssignedInteger:
        """Witness a quotient of the mul equation."""
        if d < 0 or d >> self.config.d_bits:
            raise SynthesisError(f"quotient does not fit {self.config.d_bits} bits")
        return self._assign_limbs(ctx, d, self.assign_d_leading_limb)

    def assign_constant(self, ctx: Context, w: int) -> AssignedInteger:
        cfg = self.config
        w %= cfg.w_modulus
        limbs = [
            self.base_gate.assign_constant(ctx, v)
            for v in bn_to_limbs_le(w, cfg.limb_width, cfg.limbs)
        ]
        native = self.base_gate.assign_constant(ctx, w % cfg.native_modulus)
        return AssignedInteger(limbs, 0, native)

    def native(self, ctx: Context, a: AssignedInteger) -> AssignedValue:
        """The native-field value congruent to `a`, computed once per integer."""
        if a.native is None:
            exps = self.config.limb_modulus_exps
            a.native = self.base_gate.sum_with_constant(
                ctx, [(limb, exps[i]) for i, limb in enumerate(a.limbs_le)]
            )
        return a.native

    # Reduction

    def reduce(self, ctx: Context, a: AssignedInteger) -> None:
        """Bring `a` back to overflow 0 in place, keeping its value mod W."""
        if a.overflows == 0:
            return
        cfg = self.config
        base = self.base_gate
        if a.overflows >= cfg.overflow_limit:
            raise SynthesisError(f"overflow {a.overflows} reached the limit {cfg.overflow_limit}")
        logger.debug("reducing integer with overflow %d at row %d", a.overflows, ctx.offset)

        a_native = self.native(ctx, a)
        d, rem = divmod(self._bn(a), cfg.w_modulus)
        w0 = cfg.w_modulus_limbs_le[0]
        rem0 = rem % cfg.limb_modulus
        a0 = a.limbs_le[0].value
        u = d * w0 + rem0 + cfg.limb_modulus * cfg.overflow_limit - a0
        if u < 0 or u % cfg.limb_modulus:
            raise SynthesisError("limb 0 of the reduction does not divide evenly")
        v = u // cfg.limb_modulus

        assigned_rem = self.assign_w(ctx, rem)
        rem_native = self.native(ctx, assigned_rem)
        d_cell, v_cell = self.range_gate.one_line_in_common_range(ctx, [(d, 0), (v, 0)])[:2]

        # -a + d * w + rem == 0 (mod N)
        base.one_line_add(ctx, [(a_native, -1), (d_cell, cfg.w_native), (rem_native, 1)])
        # d * w0 + rem0 - a0 - v * 2^width + 2^width * limit == 0
        base.one_line_add(
            ctx,
            [
                (d_cell, w0),
                (assigned_rem.limbs_le[0], 1),
                (a.limbs_le[0], -1),
                (v_cell, -cfg.limb_modulus),
            ],
            cfg.limb_modulus * cfg.overflow_limit,
        )

        a.limbs_le = assigned_rem.limbs_le
        a.overflows = 0
        a.native = rem_native

    def conditionally_reduce(self, ctx: Context, a: AssignedInteger) -> AssignedInteger:
        if a.overflows >= self.config.overflow_threshold:
            self.reduce(ctx, a)
        return a

    def _fit_overflow(self, ctx: Context, a: AssignedInteger, b: AssignedInteger, extra: int) -> None:
        """Reduce operands until a.overflows + b.overflows + extra stays below the limit."""
        while a.overflows + b.overflows + extra >= self.config.overflow_limit:
            self.reduce(ctx, a if a.overflows >= b.overflows else b)

    # Linear operations

    def add(self, ctx: Context, a: AssignedInteger, b: AssignedInteger) -> AssignedInteger:
        self._fit_overflow(ctx, a, b, 1)
        limbs = [self.base_gate.add(ctx, x, y) for x, y in zip(a.limbs_le, b.limbs_le)]
        return self.conditionally_reduce(ctx, AssignedInteger(limbs, a.overflows + b.overflows + 1))

    def sub(self, ctx: Context, a: AssignedInteger, b: AssignedInteger) -> AssignedInteger:
        self._fit_overflow(ctx, a, b, 2)
        upper = self.find_w_modulus_ceil(b.overflows)
        limbs = [
            self.base_gate.sum_with_constant(ctx, [(x, 1), (y, -1)], u)
            for x, y, u in zip(a.limbs_le, b.limbs_le, upper)
        ]
        return self.conditionally_reduce(ctx, AssignedInteger(limbs, a.overflows + b.overflows + 2))

    def neg(self, ctx: Context, a: AssignedInteger) -> AssignedInteger:
        if a.overflows + 1 >= self.config.overflow_limit:
            self.reduce(ctx, a)
        upper = self.find_w_modulus_ceil(a.overflows)
        limbs = [
            self.base_gate.sum_with_constant(ctx, [(x, -1)], u)
            for x, u in zip(a.limbs_le, upper)
        ]
        return self.conditionally_reduce(ctx, AssignedInteger(limbs, a.overflows + 1))

    def mul_small_constant(self, ctx: Context, a: AssignedInteger, k: int) -> AssignedInteger:
        """a * k for a constant 0 <= k < overflow_limit."""
        limit = self.config.overflow_limit
        if not 0 <= k < limit:
            raise SynthesisError(f"small constant {k} outside [0, {limit})")
        if (a.overflows + 1) * k - 1 >= limit:
            self.reduce(ctx, a)
        limbs = [self.base_gate.sum_with_constant(ctx, [(x, k)]) for x in a.limbs_le]
        overflows = max((a.overflows + 1) * k - 1, 0)
        return self.conditionally_reduce(ctx, AssignedInteger(limbs, overflows))

    def bisec(
        self, ctx: Context, cond: AssignedCondition, a: AssignedInteger, b: AssignedInteger
    ) -> AssignedInteger:
        """cond ? a : b, limb by limb."""
        limbs = [self.base_gate.bisec(ctx, cond, x, y) for x, y in zip(a.limbs_le, b.limbs_le)]
        return AssignedInteger(limbs, max(a.overflows, b.overflows))

    # Products

    def _assert_mul_equation(
        self,
        ctx: Context,
        a: AssignedInteger,
        b: AssignedInteger,
        d: AssignedInteger,
        rem: AssignedInteger,
    ) -> None:
        """
        Constrain a * b = d * w + rem, given overflow-free `d` and `rem`.

        Limb side: the convolution l of a * b + d * (2^(limbs*width) - w) must
        agree with rem modulo 2^(limbs*width). Positions are processed two at a
        time, each pair leaving a carry v split into a common limb and an
        n-floor-leading limb.
        """
        cfg = self.config
        base = self.base_gate
        limb_modulus = cfg.limb_modulus
        neg_w = cfg.neg_w_limbs_le

        for x in (a, b):
            if x.overflows >= cfg.overflow_limit:
                raise SynthesisError(f"mul operand overflow {x.overflows} reached the limit")

        l_cells = []
        for pos in range(cfg.limbs):
            terms = [
                (a.limbs_le[i], b.limbs_le[pos - i], d.limbs_le[i], neg_w[pos - i])
                for i in range(pos + 1)
            ]
            l_cells.append(base.mul_add_with_next_line(ctx, terms))

        l_values = [
            sum(a.limbs_le[i].value * b.limbs_le[pos - i].value + d.limbs_le[i].value * neg_w[pos - i]
                for i in range(pos + 1))
            for pos in range(cfg.limbs)
        ]
        r_values = rem.limb_values()

        carry = None
        carry_value = 0
        for k in range(cfg.limbs // 2):
            lo, hi = 2 * k, 2 * k + 1
            t = (
                l_values[lo] + l_values[hi] * limb_modulus
                - r_values[lo] - r_values[hi] * limb_modulus
                + carry_value
            )
            if t < 0 or t % (limb_modulus ** 2):
                raise SynthesisError(f"limb equation does not carry at position {lo}")
            carry_value = t // (limb_modulus ** 2)

            elems = [
                (l_cells[lo], 1),
                (l_cells[hi], limb_modulus),
                (rem.limbs_le[lo], -1),
                (rem.limbs_le[hi], -limb_modulus),
            ]
            if carry is not None:
                elems += [(carry[0], 1), (carry[1], limb_modulus)]
            u = base.sum_with_constant(ctx, elems)

            v_l = self.assign_nonleading_limb(ctx, carry_value % limb_modulus)
            v_h = self.assign_n_floor_leading_limb(ctx, carry_value // limb_modulus)
            # u == v * 2^(2*width)
            base.one_line_add(ctx, [(u, -1), (v_l, limb_modulus ** 2), (v_h, limb_modulus ** 3)])
            carry = (v_l, v_h)

        a_native = self.native(ctx, a)
        b_native = self.native(ctx, b)
        d_native = self.native(ctx, d)
        rem_native = self.native(ctx, rem)
        # a * b - d * w - rem == 0 (mod N)
        base.one_line(
            ctx,
            [(a_native, 0), (b_native, 0), (d_native, -cfg.w_native), (rem_native, -1)],
            mul_coeffs=[1],
        )

    def mul(self, ctx: Context, a: AssignedInteger, b: AssignedInteger) -> AssignedInteger:
        cfg = self.config
        d, rem = divmod(self._bn(a) * self._bn(b), cfg.w_modulus)
        assigned_rem = self.assign_w(ctx, rem)
        assigned_d = self.assign_d(ctx, d)
        self._assert_mul_equation(ctx, a, b, assigned_d, assigned_rem)
        return assigned_rem

    def square(self, ctx: Context, a: AssignedInteger) -> AssignedInteger:
        return self.mul(ctx, a, a)

    def div(
        self, ctx: Context, a: AssignedInteger, b: AssignedInteger
    ) -> tuple[AssignedCondition, AssignedInteger]:
        """
        Return (b == 0, a / b).

        When b is zero, a is masked to zero before solving b * c = d * w + a,
        so the quotient is the zero sentinel and the flag is set.
        """
        cfg = self.config
        base = self.base_gate

        is_b_zero = self.is_zero(ctx, b)
        a_coeff = base.not_(ctx, is_b_zero)
        self.reduce(ctx, a)
        a_native = self.native(ctx, a)
        masked = AssignedInteger(
            [base.mul(ctx, limb, a_coeff) for limb in a.limbs_le],
            0,
            base.mul(ctx, a_native, a_coeff),
        )

        a_value = self._bn(masked)
        b_value = self._bn(b)
        if b_value % cfg.w_modulus == 0:
            c = 0
        else:
            c = a_value * pow(b_value, -1, cfg.w_modulus) % cfg.w_modulus
        d = (c * b_value - a_value) // cfg.w_modulus

        assigned_c = self.assign_w(ctx, c)
        assigned_d = self.assign_d(ctx, d)
        self._assert_mul_equation(ctx, b, assigned_c, assigned_d, masked)
        return is_b_zero, assigned_c

    # Comparison

    def is_zero(self, ctx: Context, a: AssignedInteger) -> AssignedCondition:
        """Reduce `a`, then accept either representative of zero: 0 or w."""
        cfg = self.config
        base = self.base_gate
        self.reduce(ctx, a)

        limb_sum = base.sum_with_constant(ctx, [(limb, 1) for limb in a.limbs_le])
        is_pure_zero = base.is_zero(ctx, limb_sum)

        native_diff = base.add_constant(ctx, self.native(ctx, a), -cfg.w_native)
        limb0_diff = base.add_constant(ctx, a.limbs_le[0], -cfg.w_modulus_limbs_le[0])
        is_pure_w = base.and_(ctx, base.is_zero(ctx, native_diff), base.is_zero(ctx, limb0_diff))

        return base.or_(ctx, is_pure_zero, is_pure_w)

    def is_equal(self, ctx: Context, a: AssignedInteger, b: AssignedInteger) -> AssignedCondition:
        return self.is_zero(ctx, self.sub(ctx, a, b))

    def assert_equal(self, ctx: Context, a: AssignedInteger, b: AssignedInteger) -> None:
        diff = self.sub(ctx, a, b)
        self.reduce(ctx, diff)
        self.base_gate.assert_constant(ctx, self.native(ctx, diff), 0)
        self.base_gate.assert_constant(ctx, diff.limbs_le[0], 0)

    def get_last_bit(self, ctx: Context, a: AssignedInteger) -> AssignedCondition:
        """Parity of the canonical representative of `a`."""
        self.reduce(ctx, a)
        limb0 = a.limbs_le[0]
        half = self.assign_nonleading_limb(ctx, limb0.value >> 1)
        cells = self.base_gate.one_line_add(ctx, [(half, 2), (limb0.value & 1, 1), (limb0, -1)])
        bit = AssignedCondition.from_value(cells[1])
        self.base_gate.assert_bit(ctx, bit)
        return bit
