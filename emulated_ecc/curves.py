# emulated_ecc/curves.py
"""
Off-circuit reference arithmetic for short Weierstrass curves y^2 = x^3 + b.

Points are plain `(x, y)` integer tuples, `None` being the point at infinity.
The group law itself comes from py_ecc's generic affine formulas, evaluated
over a per-curve `FQ` subclass.
"""
from __future__ import annotations
from dataclasses import dataclass
from functools import cached_property

from py_ecc import bn128
from py_ecc.fields import bn128_FQ

Point = tuple[int, int]


@dataclass(frozen=True)
class CurveParams:
    """Curve y^2 = x^3 + b over F_base with a prime-order group of size `scalar_modulus`."""
    name: str
    base_modulus: int
    scalar_modulus: int
    b: int
    generator: Point

    @cached_property
    def field(self) -> type[bn128_FQ]:
        return type(f"{self.name}FQ", (bn128_FQ,), {"field_modulus": self.base_modulus})

    def lift(self, point: Point | None):
        if point is None:
            return None
        x, y = point
        return (self.field(x), self.field(y))


BN254 = CurveParams(
    name="BN254",
    base_modulus=bn128.field_modulus,
    scalar_modulus=bn128.curve_order,
    b=int(bn128.b.n),
    generator=(int(bn128.G1[0].n), int(bn128.G1[1].n)),
)


def to_affine_ints(point) -> Point | None:
    """Convert a py_ecc point (or an int tuple) into plain integers."""
    if point is None:
        return None
    x, y = point
    return (int(getattr(x, "n", x)), int(getattr(y, "n", y)))


def is_on_curve(curve: CurveParams, point: Point | None) -> bool:
    if point is None:
        return True
    return bn128.is_on_curve(curve.lift(point), curve.field(curve.b))


def point_add(curve: CurveParams, p: Point | None, q: Point | None) -> Point | None:
    return to_affine_ints(bn128.add(curve.lift(p), curve.lift(q)))


def point_double(curve: CurveParams, p: Point | None) -> Point | None:
    if p is None:
        return None
    return to_affine_ints(bn128.double(curve.lift(p)))


def point_neg(curve: CurveParams, p: Point | None) -> Point | None:
    if p is None:
        return None
    return to_affine_ints(bn128.neg(curve.lift(p)))


def point_mul(curve: CurveParams, p: Point | None, k: int) -> Point | None:
    k %= curve.scalar_modulus
    if p is None or k == 0:
        return None
    return to_affine_ints(bn128.multiply(curve.lift(p), k))


def point_sum(curve: CurveParams, points) -> Point | None:
    acc = None
    for p in points:
        acc = point_add(curve, acc, p)
    return acc
