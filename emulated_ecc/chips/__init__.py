from .integer_chip import AssignedInteger, IntegerChip
from .ecc_chip import WINDOW_SIZE, AssignedCurvature, AssignedPoint, EccChip
from .native_ecc_chip import NativeEccChip

__all__ = [
    "AssignedInteger",
    "IntegerChip",
    "WINDOW_SIZE",
    "AssignedCurvature",
    "AssignedPoint",
    "EccChip",
    "NativeEccChip",
]
