"""
===============================================================================
QUAT - Quaternion Value Type
===============================================================================

Quaternion algebra for 3D rotation representation. A quaternion is four real
components in scalar-first order:

    q = [w, x, y, z] = w + x*i + y*j + z*k

Nothing here enforces unit norm. Sums, scaled values and other non-unit
quaternions are valid values of the type; only the rotation helpers
(``rotate``, ``mat_rot``, ``axis``) assume |q| = 1, and they do not check it.
Call ``unit()`` first when the input may have drifted.

Every operation returns a new Quaternion. Instances are never mutated after
construction, so they can be shared freely between threads.

Zero-norm inputs to the division-like operations (``inv``, ``unit``, ``/``,
``divide_left``) are not guarded: the result carries inf/NaN components,
following IEEE-754 semantics, instead of raising.

Convention
----------
Hamilton product, right-handed:

    i*j = k,  j*k = i,  k*i = j,  i*i = j*j = k*k = -1

A unit quaternion rotates a vector v as

    v' = q * [0, v] * conj(q) = R(q) @ v

References
----------
    [1] Markley & Crassidis, "Fundamentals of Spacecraft Attitude
        Determination and Control", Springer, 2014.
    [2] Shepperd, "Quaternion from Rotation Matrix", JGCD 1(3), 1978.

===============================================================================
"""

import logging
import numbers
from typing import Any, Sequence, Tuple, Union

import numpy as np

from quat.constants import (
    AXIS_POLE_TOLERANCE,
    COMPARISON_TOLERANCE,
    DEFAULT_AXIS,
    ORTHOGONALITY_TOLERANCE,
    UNIT_TOLERANCE,
)
from quat.exceptions import DegenerateQuaternionError, InvalidArgumentError

logger = logging.getLogger(__name__)

# Multiplying [w, x, y, z] by this flips the vector part
_CONJ_SIGNS = np.array([1.0, -1.0, -1.0, -1.0])

ArrayLike = Union[np.ndarray, Sequence[float]]


def _as_vector(value: Any, size: int, form: str) -> np.ndarray:
    """Coerce ``value`` to a float64 array of shape (size,) or raise."""
    try:
        raw = np.asarray(value)
    except (TypeError, ValueError) as exc:
        raise InvalidArgumentError(
            f"{form}: expected a {size}-element numeric vector, "
            f"got {type(value).__name__}"
        ) from exc

    # Strings and objects are rejected rather than parsed
    if raw.dtype.kind not in "biuf":
        raise InvalidArgumentError(
            f"{form}: expected real numbers, got dtype {raw.dtype}"
        )

    arr = raw.astype(np.float64)

    if arr.shape != (size,):
        raise InvalidArgumentError(
            f"{form}: expected a {size}-element vector, got shape {arr.shape}"
        )
    return arr


class Quaternion:
    """
    Quaternion w + x*i + y*j + z*k.

    The constructor picks one of four forms from the shape of its
    arguments:

        Quaternion(w, x, y, z)   Component form
        Quaternion(axis, t)      Axis-angle form; axis normalized internally
        Quaternion(v)            Packed vector form, v = [w, x, y, z]
        Quaternion()             Identity [1, 0, 0, 0]

    Any other argument count or shape raises InvalidArgumentError. The
    factories ``from_components``, ``from_axis_angle``, ``from_vector``
    and ``identity`` do the same with fixed signatures.

    Attributes
    ----------
    w : float
        Scalar (real) component.
    x, y, z : float
        Vector (imaginary) components along i, j, k.

    Examples
    --------
    >>> q = Quaternion([0.0, 0.0, 1.0], np.pi / 2)   # 90 deg about Z
    >>> v = q.rotate([1.0, 0.0, 0.0])                # ~[0, 1, 0]
    >>> Quaternion(0, 1, 0, 0) * Quaternion(0, 0, 1, 0)   # i*j = k
    Quaternion(w=+0.00000000, x=+0.00000000, y=+0.00000000, z=+1.00000000)
    """

    # Make numpy scalars defer to __rmul__ instead of broadcasting
    __array_ufunc__ = None

    _COMPARISON_TOLERANCE = COMPARISON_TOLERANCE

    def __init__(self, *args: Any) -> None:
        n_args = len(args)

        if n_args == 4:
            # Component form
            bad = [type(a).__name__ for a in args
                   if not isinstance(a, numbers.Real)]
            if bad:
                raise InvalidArgumentError(
                    "Component form requires four real scalars (w, x, y, z), "
                    f"got {bad}."
                )
            self._q = np.array(args, dtype=np.float64)

        elif n_args == 2:
            # Axis-angle form
            axis = _as_vector(args[0], 3, "Axis-angle form")
            if not isinstance(args[1], numbers.Real):
                raise InvalidArgumentError(
                    "Axis-angle form requires a real scalar angle in radians, "
                    f"got {type(args[1]).__name__}."
                )
            self._q = self._axis_angle_components(axis, float(args[1]))

        elif n_args == 1:
            # Vector form, or a copy of another quaternion
            if isinstance(args[0], Quaternion):
                self._q = args[0]._q.copy()
            else:
                self._q = _as_vector(args[0], 4, "Vector form")

        elif n_args == 0:
            self._q = np.array([1.0, 0.0, 0.0, 0.0])

        else:
            raise InvalidArgumentError(
                f"Quaternion() takes 0, 1, 2 or 4 arguments ({n_args} given)."
            )

    @staticmethod
    def _axis_angle_components(axis: np.ndarray, angle: float) -> np.ndarray:
        """
        Half-angle encoding [cos(t/2), sin(t/2) * axis / |axis|].

        A zero axis is not rejected; the normalization yields NaN
        components.
        """
        with np.errstate(divide='ignore', invalid='ignore'):
            n = axis / np.linalg.norm(axis)
        half_angle = 0.5 * angle
        sin_half = np.sin(half_angle)
        return np.array([
            np.cos(half_angle),
            n[0] * sin_half,
            n[1] * sin_half,
            n[2] * sin_half,
        ], dtype=np.float64)

    @classmethod
    def _wrap(cls, q: np.ndarray) -> 'Quaternion':
        """Build an instance around an existing [w, x, y, z] array."""
        obj = cls.__new__(cls)
        obj._q = q
        return obj

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def w(self) -> float:
        """Scalar (real) part."""
        return float(self._q[0])

    @property
    def x(self) -> float:
        """i-component."""
        return float(self._q[1])

    @property
    def y(self) -> float:
        """j-component."""
        return float(self._q[2])

    @property
    def z(self) -> float:
        """k-component."""
        return float(self._q[3])

    # =========================================================================
    # FACTORIES
    # =========================================================================

    @classmethod
    def identity(cls) -> 'Quaternion':
        """
        Identity quaternion [1, 0, 0, 0].

        Multiplicative identity (q * identity = identity * q = q) and the
        zero rotation.
        """
        return cls._wrap(np.array([1.0, 0.0, 0.0, 0.0]))

    @classmethod
    def from_components(cls, w: float, x: float, y: float,
                        z: float) -> 'Quaternion':
        """Quaternion w + x*i + y*j + z*k from its four components."""
        return cls(w, x, y, z)

    @classmethod
    def from_vector(cls, v: ArrayLike) -> 'Quaternion':
        """
        Quaternion from a packed 4-vector.

        Parameters
        ----------
        v : array_like
            [w, x, y, z] in scalar-first order.

        Raises
        ------
        InvalidArgumentError
            If v does not have exactly four numeric elements.
        """
        return cls._wrap(_as_vector(v, 4, "Vector form"))

    @classmethod
    def from_axis_angle(cls, axis: ArrayLike, angle: float) -> 'Quaternion':
        """
        Quaternion rotating by ``angle`` about ``axis``.

            q = [cos(t/2), sin(t/2) * n],   n = axis / |axis|

        Parameters
        ----------
        axis : array_like
            3-element rotation axis. Need not be unit length; it is
            normalized internally.
        angle : float
            Rotation angle in radians.

        Returns
        -------
        Quaternion
            Unit quaternion for the rotation. NaN components if the axis
            is the zero vector.
        """
        return cls(axis, angle)

    @classmethod
    def from_mat_rot(cls, R: ArrayLike) -> 'Quaternion':
        """
        Unit quaternion from a 3x3 rotation matrix (inverse of ``mat_rot``).

        Uses Shepperd's method: of the four quantities proportional to
        4w^2, 4x^2, 4y^2 and 4z^2, the largest picks which component is
        recovered by a square root. The other three come from the
        off-diagonal sums and differences divided by it, so the divisor
        is never small. The trace-only formula loses precision near 180
        degrees; this one does not.

        Parameters
        ----------
        R : array_like
            3x3 proper orthogonal matrix (R^T R = I, det R = +1).

        Returns
        -------
        Quaternion
            Unit quaternion with w >= 0, such that ``q.mat_rot()``
            reproduces R.

        Raises
        ------
        InvalidArgumentError
            If R is not 3x3, is not orthogonal within tolerance, or is a
            reflection (det R <= 0).
        """
        try:
            R = np.asarray(R, dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise InvalidArgumentError(
                "Rotation matrix must be a numeric 3x3 array."
            ) from exc

        if R.shape != (3, 3):
            raise InvalidArgumentError(
                f"Rotation matrix must be 3x3, got shape {R.shape}"
            )

        orthogonality_error = np.linalg.norm(R.T @ R - np.eye(3))
        if not orthogonality_error <= ORTHOGONALITY_TOLERANCE:
            raise InvalidArgumentError(
                f"Matrix is not orthogonal (error = {orthogonality_error:.2e}). "
                "Ensure R^T R = I."
            )

        det = np.linalg.det(R)
        if not det > 0.0:
            raise InvalidArgumentError(
                f"Matrix is a reflection, not a rotation (det = {det:.2e}). "
                "Ensure det R = +1."
            )

        trace = np.trace(R)
        d = np.array([
            1.0 + trace,                    # 4*w^2
            1.0 + 2.0 * R[0, 0] - trace,    # 4*x^2
            1.0 + 2.0 * R[1, 1] - trace,    # 4*y^2
            1.0 + 2.0 * R[2, 2] - trace,    # 4*z^2
        ])
        k = int(np.argmax(d))
        logger.debug("from_mat_rot: pivot on component %d (d = %s)", k, d)

        pivot = 0.5 * np.sqrt(d[k])
        scale = 0.25 / pivot

        if k == 0:
            w = pivot
            x = (R[2, 1] - R[1, 2]) * scale
            y = (R[0, 2] - R[2, 0]) * scale
            z = (R[1, 0] - R[0, 1]) * scale
        elif k == 1:
            x = pivot
            w = (R[2, 1] - R[1, 2]) * scale
            y = (R[0, 1] + R[1, 0]) * scale
            z = (R[0, 2] + R[2, 0]) * scale
        elif k == 2:
            y = pivot
            w = (R[0, 2] - R[2, 0]) * scale
            x = (R[0, 1] + R[1, 0]) * scale
            z = (R[1, 2] + R[2, 1]) * scale
        else:
            z = pivot
            w = (R[1, 0] - R[0, 1]) * scale
            x = (R[0, 2] + R[2, 0]) * scale
            y = (R[1, 2] + R[2, 1]) * scale

        return cls._wrap(np.array([w, x, y, z], dtype=np.float64)).pos_w()

    # =========================================================================
    # NORM, CONJUGATE, INVERSE
    # =========================================================================

    def norm(self) -> float:
        """Euclidean magnitude sqrt(w^2 + x^2 + y^2 + z^2)."""
        return float(np.linalg.norm(self._q))

    def conj(self) -> 'Quaternion':
        """
        Conjugate [w, -x, -y, -z].

        For a unit quaternion this is also the inverse, i.e. the reverse
        rotation.
        """
        return self._wrap(self._q * _CONJ_SIGNS)

    def inv(self) -> 'Quaternion':
        """
        Multiplicative inverse conj(q) / |q|^2.

        Satisfies q * q.inv() = q.inv() * q = identity for |q| > 0. A zero
        quaternion yields inf/NaN components; no exception is raised.
        """
        with np.errstate(divide='ignore', invalid='ignore'):
            s = 1.0 / np.dot(self._q, self._q)
            return self._wrap(self._q * _CONJ_SIGNS * s)

    def unit(self) -> 'Quaternion':
        """
        Unit quaternion q / |q|.

        A zero quaternion yields NaN components; no exception is raised.
        """
        with np.errstate(divide='ignore', invalid='ignore'):
            s = 1.0 / np.linalg.norm(self._q)
            return self._wrap(self._q * s)

    def pos_w(self) -> 'Quaternion':
        """
        Sign representative with w >= 0.

        q and -q encode the same rotation; this returns q when w >= 0 and
        -q otherwise.
        """
        if self._q[0] < 0.0:
            return -self
        return self

    def is_unit(self, tolerance: float = UNIT_TOLERANCE) -> bool:
        """True if |q| is within ``tolerance`` of 1."""
        return abs(self.norm() - 1.0) <= tolerance

    # =========================================================================
    # ROTATION
    # =========================================================================

    def axis(self) -> Tuple[np.ndarray, float]:
        """
        Axis-angle form of a unit quaternion.

            t = 2 * arccos(w)
            a = [x, y, z] / sin(t/2)

        w is clamped to [-1, 1] before arccos so that slight floating-point
        drift past the domain does not produce NaN.

        Returns
        -------
        tuple of (np.ndarray, float)
            (a, t): the rotation axis and the angle in radians, t in
            [0, 2*pi].

        Notes
        -----
        Precondition: |q| = 1 (unchecked). For non-unit input the axis is
        scaled by |q|.

        At w = +/-1 the angle is 0 or 2*pi and the axis is undefined
        (sin(t/2) = 0). When sin(t/2) < AXIS_POLE_TOLERANCE the axis
        [0, 0, 1] is returned with the computed angle.
        """
        half_angle = np.arccos(np.clip(self._q[0], -1.0, 1.0))
        angle = float(2.0 * half_angle)
        sin_half = np.sin(half_angle)

        if sin_half < AXIS_POLE_TOLERANCE:
            logger.debug(
                "axis(): sin(t/2) = %.3e at w = %.15f; axis undefined, "
                "returning default %s", sin_half, self._q[0], DEFAULT_AXIS
            )
            return np.array(DEFAULT_AXIS, dtype=np.float64), angle

        return self._q[1:4] * (1.0 / sin_half), angle

    def rotate(self, v: ArrayLike) -> np.ndarray:
        """
        Rotate a 3-vector: v' = R(q) @ v.

        Precondition: |q| = 1 (unchecked). For non-unit q the result is
        scaled and sheared, not rotated. Use ``try_rotate`` to have the
        norm checked.

        Parameters
        ----------
        v : array_like
            3-element vector.

        Returns
        -------
        np.ndarray
            Rotated 3-element vector.
        """
        return self.mat_rot() @ np.asarray(v, dtype=np.float64)

    def try_rotate(self, v: ArrayLike,
                   tolerance: float = UNIT_TOLERANCE) -> np.ndarray:
        """
        Checked ``rotate``.

        Raises
        ------
        DegenerateQuaternionError
            If | |q| - 1 | exceeds ``tolerance`` (or the norm is NaN).
        """
        n = self.norm()
        if not abs(n - 1.0) <= tolerance:
            logger.warning(
                "Refusing to rotate by non-unit quaternion %r (norm = %.6e)",
                self, n
            )
            raise DegenerateQuaternionError(
                f"Quaternion is not unit (norm = {n:.6e}, "
                f"tolerance = {tolerance:.1e}). Call unit() first.",
                norm=n,
            )
        return self.rotate(v)

    # =========================================================================
    # MATRIX FORMS
    # =========================================================================

    def vector(self) -> np.ndarray:
        """Packed vector form [w, x, y, z] (a copy)."""
        return self._q.copy()

    def mat_int(self) -> np.ndarray:
        """
        Intrinsic product matrix M with (p * q).vector() = M @ p.vector().

        Right multiplication by q as a linear map on p.
        """
        w, x, y, z = self._q
        return np.array([
            [w, -x, -y, -z],
            [x,  w,  z, -y],
            [y, -z,  w,  x],
            [z,  y, -x,  w],
        ], dtype=np.float64)

    def mat_ext(self) -> np.ndarray:
        """
        Extrinsic product matrix M with (q * p).vector() = M @ p.vector().

        Left multiplication by q as a linear map on p.
        """
        w, x, y, z = self._q
        return np.array([
            [w, -x, -y, -z],
            [x,  w, -z,  y],
            [y,  z,  w, -x],
            [z, -y,  x,  w],
        ], dtype=np.float64)

    def mat_rot(self) -> np.ndarray:
        """
        Rotation matrix of a unit quaternion, R @ v = q * [0, v] * conj(q).

            R = | 1-2(y^2+z^2)    2(xy-wz)      2(xz+wy)   |
                | 2(xy+wz)      1-2(x^2+z^2)    2(yz-wx)   |
                | 2(xz-wy)      2(yz+wx)      1-2(x^2+y^2) |

        No trigonometric calls. Precondition: |q| = 1 (unchecked); for
        non-unit q the matrix is not orthogonal.
        """
        w, x, y, z = self._q

        xx = 2.0 * x * x
        yy = 2.0 * y * y
        zz = 2.0 * z * z
        wx = 2.0 * w * x
        wy = 2.0 * w * y
        wz = 2.0 * w * z
        xy = 2.0 * x * y
        xz = 2.0 * x * z
        yz = 2.0 * y * z

        return np.array([
            [1.0 - yy - zz, xy - wz,       xz + wy],
            [xy + wz,       1.0 - xx - zz, yz - wx],
            [xz - wy,       yz + wx,       1.0 - xx - yy],
        ], dtype=np.float64)

    # =========================================================================
    # ALGEBRA
    # =========================================================================

    def multiply(self, other: 'Quaternion') -> 'Quaternion':
        """
        Hamilton product self * other.

        Not commutative. For unit quaternions self * other rotates first by
        ``other``, then by ``self``.

            w = w1*w2 - x1*x2 - y1*y2 - z1*z2
            x = w1*x2 + x1*w2 + y1*z2 - z1*y2
            y = w1*y2 - x1*z2 + y1*w2 + z1*x2
            z = w1*z2 + x1*y2 - y1*x2 + z1*w2
        """
        w1, x1, y1, z1 = self._q
        w2, x2, y2, z2 = other._q

        return self._wrap(np.array([
            w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
            w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
            w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
            w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2,
        ], dtype=np.float64))

    def divide_right(self, other: 'Quaternion') -> 'Quaternion':
        """r such that r * other = self, computed as self * other.inv()."""
        return self.multiply(other.inv())

    def divide_left(self, other: 'Quaternion') -> 'Quaternion':
        """
        r such that self * r = other, computed as self.inv() * other.

        Python has no left-division operator, so this is method-only.
        Differs from ``divide_right`` unless the operands commute.
        """
        return self.inv().multiply(other)

    def add(self, other: 'Quaternion') -> 'Quaternion':
        """Componentwise sum."""
        return self._wrap(self._q + other._q)

    def sub(self, other: 'Quaternion') -> 'Quaternion':
        """Componentwise difference."""
        return self._wrap(self._q - other._q)

    def negate(self) -> 'Quaternion':
        """[-w, -x, -y, -z]. Same rotation as self for unit quaternions."""
        return self._wrap(-self._q)

    def _scale(self, s: float) -> 'Quaternion':
        with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
            return self._wrap(self._q * s)

    # =========================================================================
    # OPERATOR OVERLOADS
    # =========================================================================

    def __mul__(self, other: Union['Quaternion', float]) -> 'Quaternion':
        """
        - Quaternion * Quaternion -> Hamilton product
        - Quaternion * scalar -> componentwise scaling
        """
        if isinstance(other, Quaternion):
            return self.multiply(other)
        elif isinstance(other, numbers.Real):
            return self._scale(float(other))
        return NotImplemented

    def __rmul__(self, other: float) -> 'Quaternion':
        """scalar * Quaternion."""
        if isinstance(other, numbers.Real):
            return self._scale(float(other))
        return NotImplemented

    def __truediv__(self, other: Union['Quaternion', float]) -> 'Quaternion':
        """
        - Quaternion / Quaternion -> right division, self * other.inv()
        - Quaternion / scalar -> componentwise scaling by 1/scalar
        """
        if isinstance(other, Quaternion):
            return self.divide_right(other)
        elif isinstance(other, numbers.Real):
            with np.errstate(divide='ignore', invalid='ignore'):
                return self._wrap(self._q / np.float64(other))
        return NotImplemented

    def __add__(self, other: 'Quaternion') -> 'Quaternion':
        if isinstance(other, Quaternion):
            return self.add(other)
        return NotImplemented

    def __sub__(self, other: 'Quaternion') -> 'Quaternion':
        if isinstance(other, Quaternion):
            return self.sub(other)
        return NotImplemented

    def __neg__(self) -> 'Quaternion':
        return self.negate()

    def __pos__(self) -> 'Quaternion':
        return self

    # =========================================================================
    # COMPARISON AND DISPLAY
    # =========================================================================

    def isclose(self, other: 'Quaternion',
                atol: float = COMPARISON_TOLERANCE) -> bool:
        """
        Componentwise comparison within ``atol``.

        q and -q are NOT treated as equal: they are different quaternions
        even though, when unit, they encode the same rotation. Compare
        ``a.pos_w()`` with ``b.pos_w()`` for rotation equality.
        """
        return bool(np.all(np.abs(self._q - other._q) <= atol))

    def __eq__(self, other: object) -> bool:
        """Componentwise equality within _COMPARISON_TOLERANCE."""
        if not isinstance(other, Quaternion):
            return NotImplemented
        return self.isclose(other, self._COMPARISON_TOLERANCE)

    # A tolerance-based == cannot have a consistent hash
    __hash__ = None

    def __repr__(self) -> str:
        return (f"Quaternion(w={self.w:+.8f}, x={self.x:+.8f}, "
                f"y={self.y:+.8f}, z={self.z:+.8f})")

    def __str__(self) -> str:
        return (f"[{self.w:+.6f}, {self.x:+.6f}, {self.y:+.6f}, "
                f"{self.z:+.6f}]")
