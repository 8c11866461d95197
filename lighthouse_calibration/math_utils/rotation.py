################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Rotation helpers for axis-angle, matrix and quaternion forms.

Rotation vectors are axis-angle vectors whose norm is the rotation angle in
radians. Quaternions are stored either in [x, y, z, w] order, matching the
7-component pose vectors used by configuration files, or in [w, x, y, z]
order, matching the TF publication records.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from numpy.typing import NDArray


# Units: rad. Meaning: angle below which small-angle series are used
_SMALL_ANGLE_RAD: float = 1e-8

# Units: unitless. Meaning: tolerance for accepting a rotation matrix
_ROT_ORTH_TOL: float = 1e-6


def hat(v: Sequence[float] | NDArray[np.float64]) -> NDArray[np.float64]:
    """Return the skew-symmetric matrix of a 3-vector."""
    vec: NDArray[np.float64] = _as_vector3(v, "v")
    return np.array(
        [
            [0.0, -vec[2], vec[1]],
            [vec[2], 0.0, -vec[0]],
            [-vec[1], vec[0], 0.0],
        ],
        dtype=np.float64,
    )


def exp_so3(rotvec: Sequence[float] | NDArray[np.float64]) -> NDArray[np.float64]:
    """Return the rotation matrix of an axis-angle vector."""
    phi: NDArray[np.float64] = _as_vector3(rotvec, "rotvec")
    theta: float = float(np.linalg.norm(phi))
    K: NDArray[np.float64] = hat(phi)
    if theta < _SMALL_ANGLE_RAD:
        return np.eye(3, dtype=np.float64) + K + 0.5 * (K @ K)
    a: float = float(np.sin(theta) / theta)
    b: float = float((1.0 - np.cos(theta)) / (theta * theta))
    return np.eye(3, dtype=np.float64) + a * K + b * (K @ K)


def log_so3(R: NDArray[np.float64]) -> NDArray[np.float64]:
    """Return the axis-angle vector of a rotation matrix.

    The conversion goes through a unit quaternion so that rotations close to
    pi radians stay well conditioned. The returned angle lies in [0, pi].
    """
    q_wxyz: NDArray[np.float64] = quaternion_wxyz_from_matrix(R)
    return rotvec_from_quaternion_wxyz(q_wxyz)


def right_jacobian_inv(
    rotvec: Sequence[float] | NDArray[np.float64],
) -> NDArray[np.float64]:
    """Return the inverse right Jacobian of SO(3) at an axis-angle vector."""
    phi: NDArray[np.float64] = _as_vector3(rotvec, "rotvec")
    theta: float = float(np.linalg.norm(phi))
    K: NDArray[np.float64] = hat(phi)
    if theta < 1e-4:
        return np.eye(3, dtype=np.float64) + 0.5 * K + (K @ K) / 12.0
    coeff: float = float(
        1.0 / (theta * theta)
        - (1.0 + np.cos(theta)) / (2.0 * theta * np.sin(theta))
    )
    return np.eye(3, dtype=np.float64) + 0.5 * K + coeff * (K @ K)


def quaternion_wxyz_from_matrix(R: NDArray[np.float64]) -> NDArray[np.float64]:
    """Return the unit quaternion [w, x, y, z] of a rotation matrix, w >= 0."""
    mat: NDArray[np.float64] = np.asarray(R, dtype=np.float64)
    if mat.shape != (3, 3):
        raise ValueError("R must be shape (3, 3)")
    if not np.all(np.isfinite(mat)):
        raise ValueError("R must be finite")

    trace: float = float(np.trace(mat))
    w: float
    x: float
    y: float
    z: float
    if trace > 0.0:
        s: float = float(np.sqrt(trace + 1.0) * 2.0)
        w = 0.25 * s
        x = float((mat[2, 1] - mat[1, 2]) / s)
        y = float((mat[0, 2] - mat[2, 0]) / s)
        z = float((mat[1, 0] - mat[0, 1]) / s)
    else:
        idx: int = int(np.argmax(np.diag(mat)))
        if idx == 0:
            s = float(np.sqrt(1.0 + mat[0, 0] - mat[1, 1] - mat[2, 2]) * 2.0)
            w = float((mat[2, 1] - mat[1, 2]) / s)
            x = 0.25 * s
            y = float((mat[0, 1] + mat[1, 0]) / s)
            z = float((mat[0, 2] + mat[2, 0]) / s)
        elif idx == 1:
            s = float(np.sqrt(1.0 + mat[1, 1] - mat[0, 0] - mat[2, 2]) * 2.0)
            w = float((mat[0, 2] - mat[2, 0]) / s)
            x = float((mat[0, 1] + mat[1, 0]) / s)
            y = 0.25 * s
            z = float((mat[1, 2] + mat[2, 1]) / s)
        else:
            s = float(np.sqrt(1.0 + mat[2, 2] - mat[0, 0] - mat[1, 1]) * 2.0)
            w = float((mat[1, 0] - mat[0, 1]) / s)
            x = float((mat[0, 2] + mat[2, 0]) / s)
            y = float((mat[1, 2] + mat[2, 1]) / s)
            z = 0.25 * s

    q: NDArray[np.float64] = np.array([w, x, y, z], dtype=np.float64)
    q = q / float(np.linalg.norm(q))
    if q[0] < 0.0:
        q = -q
    return q


def matrix_from_quaternion_wxyz(
    q_wxyz: Sequence[float] | NDArray[np.float64],
) -> NDArray[np.float64]:
    """Return the rotation matrix of a quaternion [w, x, y, z]."""
    q: NDArray[np.float64] = normalize_quaternion(q_wxyz, "q_wxyz")
    w: float = float(q[0])
    x: float = float(q[1])
    y: float = float(q[2])
    z: float = float(q[3])
    xx: float = x * x
    yy: float = y * y
    zz: float = z * z
    return np.array(
        [
            [1.0 - 2.0 * (yy + zz), 2.0 * (x * y - w * z), 2.0 * (x * z + w * y)],
            [2.0 * (x * y + w * z), 1.0 - 2.0 * (xx + zz), 2.0 * (y * z - w * x)],
            [2.0 * (x * z - w * y), 2.0 * (y * z + w * x), 1.0 - 2.0 * (xx + yy)],
        ],
        dtype=np.float64,
    )


def rotvec_from_quaternion_wxyz(
    q_wxyz: Sequence[float] | NDArray[np.float64],
) -> NDArray[np.float64]:
    """Return the axis-angle vector of a quaternion [w, x, y, z]."""
    q: NDArray[np.float64] = normalize_quaternion(q_wxyz, "q_wxyz")
    if q[0] < 0.0:
        q = -q
    vec: NDArray[np.float64] = q[1:]
    sin_half: float = float(np.linalg.norm(vec))
    if sin_half < _SMALL_ANGLE_RAD:
        return np.asarray(2.0 * vec, dtype=np.float64)
    angle: float = float(2.0 * np.arctan2(sin_half, float(q[0])))
    return np.asarray(vec * (angle / sin_half), dtype=np.float64)


def quaternion_wxyz_from_rotvec(
    rotvec: Sequence[float] | NDArray[np.float64],
) -> NDArray[np.float64]:
    """Return the unit quaternion [w, x, y, z] of an axis-angle vector."""
    phi: NDArray[np.float64] = _as_vector3(rotvec, "rotvec")
    theta: float = float(np.linalg.norm(phi))
    if theta < _SMALL_ANGLE_RAD:
        q: NDArray[np.float64] = np.concatenate(([1.0], 0.5 * phi))
        return q / float(np.linalg.norm(q))
    half: float = 0.5 * theta
    return np.concatenate(([np.cos(half)], phi * (np.sin(half) / theta)))


def xyzw_to_wxyz(q_xyzw: Sequence[float] | NDArray[np.float64]) -> NDArray[np.float64]:
    """Reorder a quaternion from [x, y, z, w] to [w, x, y, z]."""
    q: NDArray[np.float64] = np.asarray(q_xyzw, dtype=np.float64)
    if q.shape != (4,):
        raise ValueError("q_xyzw must be shape (4,)")
    return np.array([q[3], q[0], q[1], q[2]], dtype=np.float64)


def wxyz_to_xyzw(q_wxyz: Sequence[float] | NDArray[np.float64]) -> NDArray[np.float64]:
    """Reorder a quaternion from [w, x, y, z] to [x, y, z, w]."""
    q: NDArray[np.float64] = np.asarray(q_wxyz, dtype=np.float64)
    if q.shape != (4,):
        raise ValueError("q_wxyz must be shape (4,)")
    return np.array([q[1], q[2], q[3], q[0]], dtype=np.float64)


def normalize_quaternion(
    q: Sequence[float] | NDArray[np.float64], name: str
) -> NDArray[np.float64]:
    """Return a normalized copy of a 4-component quaternion."""
    array: NDArray[np.float64] = np.asarray(q, dtype=np.float64)
    if array.shape != (4,):
        raise ValueError(f"{name} must be shape (4,)")
    if not np.all(np.isfinite(array)):
        raise ValueError(f"{name} must be finite")
    norm: float = float(np.linalg.norm(array))
    if norm <= 0.0:
        raise ValueError(f"{name} must be non-zero")
    return array / norm


def is_rotation_matrix(R: NDArray[np.float64], tol: float = _ROT_ORTH_TOL) -> bool:
    """Return True if R is orthonormal with determinant +1."""
    mat: NDArray[np.float64] = np.asarray(R, dtype=np.float64)
    if mat.shape != (3, 3) or not np.all(np.isfinite(mat)):
        return False
    if not np.allclose(mat.T @ mat, np.eye(3), atol=tol):
        return False
    return abs(float(np.linalg.det(mat)) - 1.0) <= tol


def _as_vector3(
    v: Sequence[float] | NDArray[np.float64], name: str
) -> NDArray[np.float64]:
    array: NDArray[np.float64] = np.asarray(v, dtype=np.float64)
    if array.shape != (3,):
        raise ValueError(f"{name} must be shape (3,)")
    return array
