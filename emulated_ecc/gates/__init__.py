from .context import AssignedCondition, AssignedValue, Cell, Context, Row
from .base_gate import BaseGate
from .range_gate import RangeGate
from .mock_prover import MockProver, VerifyFailure

__all__ = [
    "AssignedCondition",
    "AssignedValue",
    "Cell",
    "Context",
    "Row",
    "BaseGate",
    "RangeGate",
    "MockProver",
    "VerifyFailure",
]
