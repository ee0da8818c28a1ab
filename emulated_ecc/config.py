# emulated_ecc/config.py
"""
Static parameters of the foreign-field integer emulation.

Every derived bound (limb widths, overflow limits, quotient and carry widths,
range table sizes) is computed from the native modulus N, the foreign
modulus W, the limb count and the range chunk width, and is re-checked by
`IntegerChipConfig.validate()` whenever a configuration is built.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from functools import cached_property
from math import lcm

from .errors import ConfigurationError
from .utils import bn_to_limbs_le, ceil_div

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntegerChipConfig:
    """Field pair plus the limb layout used to emulate W inside N."""
    native_modulus: int
    w_modulus: int
    limbs: int = 4
    common_range_bits: int = 17
    chunks_per_limb: int = 4
    overflow_limit_shift: int = 6
    var_columns: int = 5

    def __post_init__(self):
        self.validate()

    # Layout

    @cached_property
    def limb_width(self) -> int:
        return self.common_range_bits * self.chunks_per_limb

    @cached_property
    def limb_modulus(self) -> int:
        return 1 << self.limb_width

    @cached_property
    def integer_modulus(self) -> int:
        return 1 << (self.limb_width * self.limbs)

    @cached_property
    def overflow_limit(self) -> int:
        return 1 << self.overflow_limit_shift

    @cached_property
    def overflow_threshold(self) -> int:
        return 1 << (self.overflow_limit_shift - 1)

    # Moduli

    @cached_property
    def w_ceil_bits(self) -> int:
        return (self.w_modulus - 1).bit_length()

    @cached_property
    def n_floor_bits(self) -> int:
        return self.native_modulus.bit_length() - 1

    @cached_property
    def d_bits(self) -> int:
        """Bit width of the quotient d in a * b = d * w + rem."""
        mul_lcm = lcm(self.integer_modulus, self.native_modulus)
        return ((mul_lcm >> self.w_ceil_bits) - 1).bit_length() - 1

    @cached_property
    def w_native(self) -> int:
        return self.w_modulus % self.native_modulus

    @cached_property
    def w_modulus_limbs_le(self) -> tuple[int, ...]:
        return tuple(bn_to_limbs_le(self.w_modulus, self.limb_width, self.limbs))

    @cached_property
    def neg_w_limbs_le(self) -> tuple[int, ...]:
        """Limbs of -w mod 2^(limbs * limb_width)."""
        neg_w = self.integer_modulus - self.w_modulus
        return tuple(bn_to_limbs_le(neg_w, self.limb_width, self.limbs))

    @cached_property
    def limb_modulus_exps(self) -> tuple[int, ...]:
        """limb_modulus^i mod N for every limb position i."""
        return tuple(
            pow(self.limb_modulus, i, self.native_modulus) for i in range(self.limbs + 2)
        )

    # Range tables

    def leading_limb_bits(self, total_bits: int) -> int:
        """Bits held by the leading limb of a `total_bits` wide integer (0 = full limb)."""
        return total_bits % self.limb_width

    def leading_range_bits(self, total_bits: int) -> int:
        """Table width that bounds the most significant chunk of the leading limb."""
        return total_bits % self.common_range_bits or self.common_range_bits

    @cached_property
    def range_bits(self) -> dict[str, int]:
        return {
            "common": self.common_range_bits,
            "w_ceil_leading": self.leading_range_bits(self.w_ceil_bits),
            "n_floor_leading": self.leading_range_bits(self.n_floor_bits),
            "d_leading": self.leading_range_bits(self.d_bits),
        }

    @cached_property
    def range_total_bits(self) -> dict[str, int]:
        """Total bit width of the integer whose leading limb uses each range."""
        return {
            "common": self.limb_width,
            "w_ceil_leading": self.w_ceil_bits,
            "n_floor_leading": self.n_floor_bits,
            "d_leading": self.d_bits,
        }

    # Validation

    def validate(self) -> None:
        """Re-derive every non-overflow argument the chips rely on."""
        def check(cond: bool, msg: str) -> None:
            if not cond:
                raise ConfigurationError(msg)

        check(self.native_modulus > 2 and self.w_modulus > 2, "moduli must be odd primes")
        check(self.limbs >= 2 and self.limbs % 2 == 0, f"limbs must be even, got {self.limbs}")
        check(
            self.chunks_per_limb < self.var_columns,
            "a limb and its chunks must fit one row",
        )
        check(self.overflow_limit_shift >= 1, "overflow limit shift must be positive")

        width = self.limb_width
        check(
            (self.limbs - 1) * width < self.w_ceil_bits <= self.limbs * width,
            f"{self.w_ceil_bits}-bit modulus does not fill exactly {self.limbs} limbs of {width} bits",
        )
        check(
            (self.limbs - 1) * width < self.d_bits <= self.limbs * width,
            f"quotient width {self.d_bits} does not fill exactly {self.limbs} limbs",
        )
        for name, total in self.range_total_bits.items():
            lead = self.leading_limb_bits(total)
            check(
                ceil_div(lead, self.common_range_bits) < self.var_columns,
                f"leading limb of range '{name}' needs more chunks than one row holds",
            )

        one = 1
        unit = one << self.w_ceil_bits
        limit = self.overflow_limit

        # mul: a * b = d * w + rem holds on native and on 2^(limbs * width),
        # so it must hold on their lcm, which dominates both sides.
        mul_lcm = lcm(self.integer_modulus, self.native_modulus)
        max_l = (unit * limit) ** 2
        max_r = (one << self.d_bits) * self.w_modulus + unit
        check((one << self.d_bits) * self.w_modulus + self.w_modulus <= mul_lcm, "d range too wide")
        check(max_l <= mul_lcm, "operand product exceeds lcm(2^(limbs*width), N)")
        check(max_r <= mul_lcm, "d * w + rem exceeds lcm(2^(limbs*width), N)")
        check(max_l <= max_r, "d range cannot cover the largest product")

        # mul limb equation: carries v = v_l + v_h * 2^width, each u = v * 2^(2*width) < N.
        max_limb_sum = self.limbs * (limit * limit + 1) * self.limb_modulus ** 2
        max_v = (
            self.limb_modulus * (limit * limit + 1) * self.limbs
            + self.limbs * (limit * limit + 1)
            + 1
        )
        check(max_limb_sum < self.native_modulus, "limb convolution wraps the native field")
        n_lead = self.leading_limb_bits(self.n_floor_bits) or width
        check(
            max_v < (one << min(self.n_floor_bits - 2 * width, width + n_lead)),
            "mul carry does not fit one common limb plus one n-floor-leading limb",
        )

        # reduce: a = d * w + rem holds on native and on the limb modulus.
        reduce_lcm = lcm(self.native_modulus, self.limb_modulus)
        max_a = unit * limit
        max_dw = self.w_modulus * (one << self.common_range_bits) + unit
        check(reduce_lcm >= max_a, "reduce operand exceeds lcm(N, 2^width)")
        check(reduce_lcm >= max_dw, "reduce quotient exceeds lcm(N, 2^width)")
        check(max_dw >= max_a, "reduce quotient range cannot cover overflowed operands")
        check(
            limit * 3 + 1 + limit < (one << self.common_range_bits),
            "reduce limb-0 carry does not fit the common range",
        )

        # is_zero: "pure w modulus" is detected from native plus limb 0.
        check(reduce_lcm >= unit, "native and limb 0 cannot identify w")

        logger.debug(
            "validated config: width=%d limbs=%d w_ceil_bits=%d n_floor_bits=%d d_bits=%d",
            width, self.limbs, self.w_ceil_bits, self.n_floor_bits, self.d_bits,
        )


def bn254_config(**overrides) -> IntegerChipConfig:
    """BN254 base field emulated inside the BN254 scalar field."""
    from .curves import BN254
    return IntegerChipConfig(
        native_modulus=BN254.scalar_modulus,
        w_modulus=BN254.base_modulus,
        **overrides,
    )
