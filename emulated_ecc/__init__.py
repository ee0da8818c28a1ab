from .errors import ConfigurationError, SynthesisError, UnsatisfiedError
from .config import IntegerChipConfig, bn254_config
from .curves import BN254, CurveParams
from .gates import (
    AssignedCondition,
    AssignedValue,
    BaseGate,
    Context,
    MockProver,
    RangeGate,
)
from .chips import (
    WINDOW_SIZE,
    AssignedCurvature,
    AssignedInteger,
    AssignedPoint,
    EccChip,
    IntegerChip,
    NativeEccChip,
)

__all__ = [
    "ConfigurationError",
    "SynthesisError",
    "UnsatisfiedError",
    "IntegerChipConfig",
    "bn254_config",
    "BN254",
    "CurveParams",
    "AssignedCondition",
    "AssignedValue",
    "BaseGate",
    "Context",
    "MockProver",
    "RangeGate",
    "WINDOW_SIZE",
    "AssignedCurvature",
    "AssignedInteger",
    "AssignedPoint",
    "EccChip",
    "IntegerChip",
    "NativeEccChip",
]
