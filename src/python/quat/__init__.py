"""
===============================================================================
QUAT - Quaternion Value Type
===============================================================================
Quaternion algebra for 3D rotation representation: construction from
components, axis-angle and packed vectors, norm/conjugate/inverse/unit,
Hamilton product with two-sided division, and conversion to and from
rotation matrices and axis-angle form.

Submodules:
    constants   -- Numeric tolerances and the default pole axis
    exceptions  -- InvalidArgumentError, DegenerateQuaternionError
    quaternion  -- Quaternion class
===============================================================================
"""

from quat.constants import (
    AXIS_POLE_TOLERANCE,
    COMPARISON_TOLERANCE,
    ORTHOGONALITY_TOLERANCE,
    UNIT_TOLERANCE,
)
from quat.exceptions import DegenerateQuaternionError, InvalidArgumentError
from quat.quaternion import Quaternion

__all__ = [
    "Quaternion",
    "InvalidArgumentError",
    "DegenerateQuaternionError",
    "AXIS_POLE_TOLERANCE",
    "COMPARISON_TOLERANCE",
    "ORTHOGONALITY_TOLERANCE",
    "UNIT_TOLERANCE",
]

__version__ = "0.1.0"
