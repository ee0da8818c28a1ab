# emulated_ecc/chips/ecc_chip.py
"""
Elliptic curve arithmetic on y^2 = x^3 + b over the emulated field W.

Every group operation is complete: all candidate results (secant, tangent,
identity operands) are computed and the right one is selected with `bisec`,
so no witness value ever drives control flow.
"""
from __future__ import annotations
import hashlib
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..curves import CurveParams, Point, point_mul, point_sum
from ..errors import SynthesisError
from ..gates.context import AssignedCondition, AssignedValue, Context
from .integer_chip import AssignedInteger, IntegerChip

logger = logging.getLogger(__name__)

WINDOW_SIZE = 2


@dataclass
class AssignedCurvature:
    """Doubling slope `v` and the flag `z` set when the slope is undefined."""
    v: AssignedInteger
    z: AssignedCondition


@dataclass
class AssignedPoint:
    """Affine point; coordinates are meaningless when `z` (is identity) is set."""
    x: AssignedInteger
    y: AssignedInteger
    z: AssignedCondition
    curvature: AssignedCurvature | None = None


class EccChip(ABC):
    """Group law and scalar multiplication on points with emulated coordinates."""

    window_size = WINDOW_SIZE

    def __init__(self, integer_chip: IntegerChip, curve: CurveParams):
        if integer_chip.config.w_modulus != curve.base_modulus:
            raise SynthesisError(f"{curve.name} is not defined over the emulated field")
        self.integer_chip = integer_chip
        self.base_gate = integer_chip.base_gate
        self.curve = curve

    # Off-circuit helpers

    def get_point(self, p: AssignedPoint) -> Point | None:
        """Affine integers of `p`, or None for the identity."""
        if p.z.value:
            return None
        return (self.integer_chip.get_w(p.x), self.integer_chip.get_w(p.y))

    def _curvature_value(self, point: Point | None) -> tuple[int, int]:
        if point is None:
            return 0, 1
        w = self.curve.base_modulus
        x, y = point
        if y % w == 0:
            return 0, 1
        return 3 * x * x * pow(2 * y, -1, w) % w, 0

    # Assignment

    def assign_constant_point(self, ctx: Context, point: Point | None) -> AssignedPoint:
        chip = self.integer_chip
        x, y = point if point is not None else (0, 0)
        return AssignedPoint(
            chip.assign_constant(ctx, x),
            chip.assign_constant(ctx, y),
            AssignedCondition.from_value(
                self.base_gate.assign_constant(ctx, 1 if point is None else 0)
            ),
        )

    def assign_constant_point_with_curvature(self, ctx: Context, point: Point | None) -> AssignedPoint:
        p = self.assign_constant_point(ctx, point)
        v, z = self._curvature_value(point)
        p.curvature = AssignedCurvature(
            self.integer_chip.assign_constant(ctx, v),
            AssignedCondition.from_value(self.base_gate.assign_constant(ctx, z)),
        )
        return p

    def assign_identity(self, ctx: Context) -> AssignedPoint:
        return self.assign_constant_point_with_curvature(ctx, None)

    def assign_point(self, ctx: Context, point: Point | None) -> AssignedPoint:
        """
        Witness an untrusted point.

        The curve equation is asserted unless the identity flag is set; an
        off-curve input leaves an unsatisfied row rather than raising.
        """
        chip = self.integer_chip
        base = self.base_gate
        x, y = point if point is not None else (0, 0)
        ax = chip.assign_w(ctx, x)
        ay = chip.assign_w(ctx, y)
        z = AssignedCondition.from_value(base.assign(ctx, 1 if point is None else 0))
        base.assert_bit(ctx, z)

        lhs = chip.square(ctx, ay)
        rhs = chip.mul(ctx, chip.square(ctx, ax), ax)
        rhs = chip.add(ctx, rhs, chip.assign_constant(ctx, self.curve.b))
        on_curve = chip.is_equal(ctx, lhs, rhs)
        base.assert_true(ctx, base.or_(ctx, on_curve, z))
        return AssignedPoint(ax, ay, z)

    def assign_point_from_scalar(self, ctx: Context, scalar: int) -> AssignedPoint:
        return self.assign_point(ctx, point_mul(self.curve, self.curve.generator, scalar))

    def assign_constant_point_from_scalar(self, ctx: Context, scalar: int) -> AssignedPoint:
        return self.assign_constant_point(ctx, point_mul(self.curve, self.curve.generator, scalar))

    # Selection

    def curvature(self, ctx: Context, a: AssignedPoint) -> AssignedCurvature:
        """3x^2 / 2y, computed once per point."""
        if a.curvature is None:
            chip = self.integer_chip
            x_square = chip.square(ctx, a.x)
            numerator = chip.mul_small_constant(ctx, x_square, 3)
            denominator = chip.mul_small_constant(ctx, a.y, 2)
            z, v = chip.div(ctx, numerator, denominator)
            a.curvature = AssignedCurvature(v, z)
        return a.curvature

    def bisec_curvature(
        self, ctx: Context, cond: AssignedCondition, a: AssignedCurvature, b: AssignedCurvature
    ) -> AssignedCurvature:
        return AssignedCurvature(
            self.integer_chip.bisec(ctx, cond, a.v, b.v),
            self.base_gate.bisec_cond(ctx, cond, a.z, b.z),
        )

    def bisec_point(
        self, ctx: Context, cond: AssignedCondition, a: AssignedPoint, b: AssignedPoint
    ) -> AssignedPoint:
        """cond ? a : b."""
        chip = self.integer_chip
        return AssignedPoint(
            chip.bisec(ctx, cond, a.x, b.x),
            chip.bisec(ctx, cond, a.y, b.y),
            self.base_gate.bisec_cond(ctx, cond, a.z, b.z),
        )

    def bisec_point_with_curvature(
        self, ctx: Context, cond: AssignedCondition, a: AssignedPoint, b: AssignedPoint
    ) -> AssignedPoint:
        p = self.bisec_point(ctx, cond, a, b)
        p.curvature = self.bisec_curvature(
            ctx, cond, self.curvature(ctx, a), self.curvature(ctx, b)
        )
        return p

    # Group law

    def lambda_to_point(
        self, ctx: Context, lam: AssignedCurvature, a: AssignedPoint, b: AssignedPoint
    ) -> AssignedPoint:
        """Chord through a and b with slope lam.v; identity when lam.z is set."""
        chip = self.integer_chip
        l_square = chip.square(ctx, lam.v)
        cx = chip.sub(ctx, chip.sub(ctx, l_square, a.x), b.x)
        cy = chip.sub(ctx, chip.mul(ctx, chip.sub(ctx, a.x, cx), lam.v), a.y)
        return AssignedPoint(cx, cy, lam.z)

    def add(self, ctx: Context, a: AssignedPoint, b: AssignedPoint) -> AssignedPoint:
        chip = self.integer_chip
        base = self.base_gate
        diff_x = chip.sub(ctx, a.x, b.x)
        diff_y = chip.sub(ctx, a.y, b.y)
        x_eq, tangent = chip.div(ctx, diff_y, diff_x)
        y_eq = chip.is_zero(ctx, diff_y)
        eq = base.and_(ctx, x_eq, y_eq)

        lam = self.bisec_curvature(
            ctx, eq, self.curvature(ctx, a), AssignedCurvature(tangent, x_eq)
        )
        p = self.lambda_to_point(ctx, lam, a, b)
        p = self.bisec_point(ctx, a.z, b, p)
        p = self.bisec_point(ctx, b.z, a, p)
        return p

    def add_unsafe(self, ctx: Context, a: AssignedPoint, b: AssignedPoint) -> AssignedPoint:
        """Sum of two non-identity points with distinct x coordinates."""
        chip = self.integer_chip
        diff_x = chip.sub(ctx, a.x, b.x)
        diff_y = chip.sub(ctx, a.y, b.y)
        x_eq, tangent = chip.div(ctx, diff_y, diff_x)
        self.base_gate.assert_false(ctx, x_eq)
        return self.lambda_to_point(ctx, AssignedCurvature(tangent, x_eq), a, b)

    def double(self, ctx: Context, a: AssignedPoint) -> AssignedPoint:
        p = self.lambda_to_point(ctx, self.curvature(ctx, a), a, a)
        p.z = self.base_gate.bisec_cond(ctx, a.z, a.z, p.z)
        return p

    def neg(self, ctx: Context, a: AssignedPoint) -> AssignedPoint:
        return AssignedPoint(a.x, self.integer_chip.neg(ctx, a.y), a.z)

    def sub(self, ctx: Context, a: AssignedPoint, b: AssignedPoint) -> AssignedPoint:
        return self.add(ctx, a, self.neg(ctx, b))

    def assert_equal(self, ctx: Context, a: AssignedPoint, b: AssignedPoint) -> None:
        chip = self.integer_chip
        base = self.base_gate
        eq_x = chip.is_equal(ctx, a.x, b.x)
        eq_y = chip.is_equal(ctx, a.y, b.y)
        eq_z = base.xnor(ctx, a.z, b.z)
        eq_xyz = base.and_(ctx, base.and_(ctx, eq_x, eq_y), eq_z)
        both_identity = base.and_(ctx, a.z, b.z)
        base.assert_true(ctx, base.or_(ctx, eq_xyz, both_identity))

    def reduce(self, ctx: Context, a: AssignedPoint) -> AssignedPoint:
        """Canonical coordinates, with (0, 0) standing for the identity."""
        chip = self.integer_chip
        chip.reduce(ctx, a.x)
        chip.reduce(ctx, a.y)
        zero = chip.assign_constant(ctx, 0)
        return AssignedPoint(
            chip.bisec(ctx, a.z, zero, a.x),
            chip.bisec(ctx, a.z, zero, a.y),
            a.z,
            a.curvature,
        )

    # Scalar multiplication

    @abstractmethod
    def decompose_scalar(self, ctx: Context, scalar: AssignedValue) -> list[list[AssignedCondition]]:
        """Windows of `scalar`, most significant first, bits little-endian inside a window."""

    def pick_candidate(
        self,
        ctx: Context,
        candidates: list[AssignedPoint],
        bits: list[AssignedCondition],
        with_curvature: bool = True,
    ) -> AssignedPoint:
        """Oblivious table lookup: candidates[sum(bit_i * 2^i)]."""
        if len(candidates) != 1 << len(bits):
            raise SynthesisError(f"{len(candidates)} candidates for {len(bits)} selector bits")
        select = self.bisec_point_with_curvature if with_curvature else self.bisec_point
        level = candidates
        for bit in bits:
            level = [
                select(ctx, bit, level[2 * i + 1], level[2 * i])
                for i in range(len(level) // 2)
            ]
        return level[0]

    def _windowed_mul(
        self, ctx: Context, candidates: list[AssignedPoint], windows: list[list[AssignedCondition]]
    ) -> AssignedPoint:
        if not windows:
            raise SynthesisError("scalar decomposition is empty")
        for c in candidates:
            self.curvature(ctx, c)
        acc = self.pick_candidate(ctx, candidates, windows[0])
        for window in windows[1:]:
            for _ in range(self.window_size):
                acc = self.double(ctx, acc)
            acc = self.add(ctx, self.pick_candidate(ctx, candidates, window), acc)
        return acc

    def mul(self, ctx: Context, point: AssignedPoint, scalar: AssignedValue) -> AssignedPoint:
        """scalar * point with fixed-window double-and-add."""
        windows = self.decompose_scalar(ctx, scalar)
        candidates = [self.assign_identity(ctx)]
        for _ in range((1 << self.window_size) - 1):
            candidates.append(self.add(ctx, candidates[-1], point))
        return self._windowed_mul(ctx, candidates, windows)

    def constant_mul(self, ctx: Context, point: Point | None, scalar: AssignedValue) -> AssignedPoint:
        """scalar * point for a point known at setup time."""
        windows = self.decompose_scalar(ctx, scalar)
        candidates = [
            self.assign_constant_point_with_curvature(ctx, point_mul(self.curve, point, i))
            for i in range(1 << self.window_size)
        ]
        return self._windowed_mul(ctx, candidates, windows)

    def shamir_offset(self, index: int) -> Point:
        """Fixed auxiliary point added to every grid entry of the `index`-th `shamir` pair."""
        digest = hashlib.sha256(f"{self.curve.name}/shamir/offset/{index}".encode()).digest()
        k = int.from_bytes(digest, "big") % self.curve.scalar_modulus
        return point_mul(self.curve, self.curve.generator, k)

    def shamir(
        self, ctx: Context, points: list[AssignedPoint], scalars: list[AssignedValue]
    ) -> AssignedPoint:
        """
        sum(scalars[i] * points[i]) with shared doublings.

        Inputs are paired; pair k gets a grid of i * P_a + j * P_b + A_k for a
        fixed offset A_k of its own, so no selected entry is the identity and
        entries of different pairs stay apart even when both pick the zero
        digit. Pair results of a window are summed with `add_unsafe`. The
        accumulated offsets are removed at the end.
        """
        if not points or len(points) != len(scalars):
            raise SynthesisError(
                f"shamir needs matching non-empty inputs, got {len(points)} points and {len(scalars)} scalars"
            )
        points, scalars = list(points), list(scalars)
        if len(points) % 2:
            points.append(self.assign_identity(ctx))
            scalars.append(self.base_gate.assign_constant(ctx, 0))

        decomposed = [self.decompose_scalar(ctx, s) for s in scalars]
        num_windows = len(decomposed[0])
        if num_windows == 0 or any(len(d) != num_windows for d in decomposed):
            raise SynthesisError("scalar decompositions differ in length")

        pairs = len(points) // 2
        size = 1 << self.window_size
        offsets = [self.shamir_offset(k) for k in range(pairs)]
        with_curvature = pairs == 1

        grids = []
        for k in range(pairs):
            pa, pb = points[2 * k], points[2 * k + 1]
            grid = [[self.assign_constant_point_with_curvature(ctx, offsets[k])]]
            for j in range(1, size):
                grid[0].append(self.add(ctx, grid[0][j - 1], pb))
            for i in range(1, size):
                grid.append([self.add(ctx, grid[i - 1][j], pa) for j in range(size)])
            grids.append(grid)
        logger.debug("shamir: %d pairs, %d windows, grids ready at row %d", pairs, num_windows, ctx.offset)

        acc = None
        for w in range(num_windows):
            window_sum = None
            for k, grid in enumerate(grids):
                bits_a, bits_b = decomposed[2 * k][w], decomposed[2 * k + 1][w]
                rows = [self.pick_candidate(ctx, grid[i], bits_b, with_curvature) for i in range(size)]
                picked = self.pick_candidate(ctx, rows, bits_a, with_curvature)
                window_sum = picked if window_sum is None else self.add_unsafe(ctx, window_sum, picked)
            if acc is None:
                acc = window_sum
            else:
                for _ in range(self.window_size):
                    acc = self.double(ctx, acc)
                acc = self.add(ctx, window_sum, acc)

        shift = sum(1 << (self.window_size * w) for w in range(num_windows))
        total_offset = point_mul(self.curve, point_sum(self.curve, offsets), shift)
        return self.sub(ctx, acc, self.assign_constant_point(ctx, total_offset))
