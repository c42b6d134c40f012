"""
===============================================================================
QUAT - Numeric Constants
===============================================================================
Tolerances shared by the quaternion operations, and the fallback axis
returned at the zero-rotation pole.
===============================================================================
"""


# =============================================================================
# TOLERANCES
# =============================================================================
COMPARISON_TOLERANCE = 1e-9     # Componentwise equality for ==
UNIT_TOLERANCE = 1e-8           # Allowed |norm - 1| for unit checks
AXIS_POLE_TOLERANCE = 1e-12     # sin(t/2) below this -> axis undefined
ORTHOGONALITY_TOLERANCE = 1e-6  # ||R^T R - I|| accepted by from_mat_rot

# Axis returned by axis() when the rotation angle is zero
DEFAULT_AXIS = (0.0, 0.0, 1.0)
