################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Six-parameter rigid transform value type.

A Pose6 stores a translation in meters and an axis-angle rotation vector in
radians. It maps points from a child frame into a parent frame:

    p_parent = R(rotvec) @ p_child + translation
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from lighthouse_calibration.math_utils.rotation import exp_so3
from lighthouse_calibration.math_utils.rotation import log_so3
from lighthouse_calibration.math_utils.rotation import normalize_quaternion
from lighthouse_calibration.math_utils.rotation import quaternion_wxyz_from_rotvec
from lighthouse_calibration.math_utils.rotation import rotvec_from_quaternion_wxyz
from lighthouse_calibration.math_utils.rotation import wxyz_to_xyzw
from lighthouse_calibration.math_utils.rotation import xyzw_to_wxyz


@dataclass(frozen=True, eq=False)
class Pose6:
    """Rigid transform as translation plus axis-angle rotation.

    Attributes:
        translation: Translation vector in meters, shape (3,)
        rotvec: Axis-angle rotation vector in radians, shape (3,)
    """

    translation: NDArray[np.float64]
    rotvec: NDArray[np.float64]

    def __post_init__(self) -> None:
        """Copy inputs into owned float arrays and validate them."""
        translation: NDArray[np.float64] = np.array(
            self.translation, dtype=np.float64, copy=True
        )
        rotvec: NDArray[np.float64] = np.array(self.rotvec, dtype=np.float64, copy=True)
        if translation.shape != (3,):
            raise ValueError("translation must be shape (3,)")
        if rotvec.shape != (3,):
            raise ValueError("rotvec must be shape (3,)")
        if not np.all(np.isfinite(translation)):
            raise ValueError("translation must be finite")
        if not np.all(np.isfinite(rotvec)):
            raise ValueError("rotvec must be finite")
        translation.setflags(write=False)
        rotvec.setflags(write=False)
        object.__setattr__(self, "translation", translation)
        object.__setattr__(self, "rotvec", rotvec)

    @staticmethod
    def identity() -> Pose6:
        """Return the identity transform."""
        return Pose6(np.zeros(3), np.zeros(3))

    @staticmethod
    def from_array(values: Sequence[float] | NDArray[np.float64]) -> Pose6:
        """Create a pose from [tx, ty, tz, rx, ry, rz]."""
        array: NDArray[np.float64] = np.asarray(values, dtype=np.float64)
        if array.shape != (6,):
            raise ValueError("values must be shape (6,)")
        return Pose6(array[:3], array[3:])

    @staticmethod
    def from_matrix(
        R: NDArray[np.float64],
        translation: Sequence[float] | NDArray[np.float64],
    ) -> Pose6:
        """Create a pose from a rotation matrix and translation."""
        return Pose6(np.asarray(translation, dtype=np.float64), log_so3(R))

    @staticmethod
    def from_matrix4(T: NDArray[np.float64]) -> Pose6:
        """Create a pose from a 4x4 homogeneous transform."""
        mat: NDArray[np.float64] = np.asarray(T, dtype=np.float64)
        if mat.shape != (4, 4):
            raise ValueError("T must be shape (4, 4)")
        return Pose6.from_matrix(mat[:3, :3], mat[:3, 3])

    @staticmethod
    def from_quaternion_xyzw(
        translation: Sequence[float] | NDArray[np.float64],
        q_xyzw: Sequence[float] | NDArray[np.float64],
    ) -> Pose6:
        """Create a pose from a translation and an [x, y, z, w] quaternion."""
        q_wxyz: NDArray[np.float64] = xyzw_to_wxyz(
            normalize_quaternion(q_xyzw, "q_xyzw")
        )
        return Pose6(
            np.asarray(translation, dtype=np.float64),
            rotvec_from_quaternion_wxyz(q_wxyz),
        )

    @staticmethod
    def from_vector7(values: Sequence[float] | NDArray[np.float64]) -> Pose6:
        """Create a pose from [x, y, z, qx, qy, qz, qw]."""
        array: NDArray[np.float64] = np.asarray(values, dtype=np.float64)
        if array.shape != (7,):
            raise ValueError("pose vector must have 7 components")
        if not np.all(np.isfinite(array)):
            raise ValueError("pose vector must be finite")
        return Pose6.from_quaternion_xyzw(array[:3], array[3:])

    def rotation_matrix(self) -> NDArray[np.float64]:
        """Return the 3x3 rotation matrix."""
        return exp_so3(self.rotvec)

    def quaternion_wxyz(self) -> NDArray[np.float64]:
        """Return the unit quaternion in [w, x, y, z] order."""
        return quaternion_wxyz_from_rotvec(self.rotvec)

    def quaternion_xyzw(self) -> NDArray[np.float64]:
        """Return the unit quaternion in [x, y, z, w] order."""
        return wxyz_to_xyzw(self.quaternion_wxyz())

    def to_vector7(self) -> NDArray[np.float64]:
        """Return [x, y, z, qx, qy, qz, qw]."""
        return np.concatenate((self.translation, self.quaternion_xyzw()))

    def as_array(self) -> NDArray[np.float64]:
        """Return [tx, ty, tz, rx, ry, rz] as a new array."""
        return np.concatenate((self.translation, self.rotvec))

    def as_matrix4(self) -> NDArray[np.float64]:
        """Return the 4x4 homogeneous transform."""
        T: NDArray[np.float64] = np.eye(4, dtype=np.float64)
        T[:3, :3] = self.rotation_matrix()
        T[:3, 3] = self.translation
        return T

    def compose(self, other: Pose6) -> Pose6:
        """Return self * other, applying other first."""
        R_self: NDArray[np.float64] = self.rotation_matrix()
        R: NDArray[np.float64] = R_self @ other.rotation_matrix()
        t: NDArray[np.float64] = R_self @ other.translation + self.translation
        return Pose6.from_matrix(R, t)

    def inverse(self) -> Pose6:
        """Return the inverse transform."""
        R_inv: NDArray[np.float64] = self.rotation_matrix().T
        return Pose6.from_matrix(R_inv, -(R_inv @ self.translation))

    def transform_point(
        self, point: Sequence[float] | NDArray[np.float64]
    ) -> NDArray[np.float64]:
        """Map a point from the child frame into the parent frame."""
        p: NDArray[np.float64] = np.asarray(point, dtype=np.float64)
        if p.shape != (3,):
            raise ValueError("point must be shape (3,)")
        return self.rotation_matrix() @ p + self.translation

    def is_identity(self) -> bool:
        """Return True if both translation and rotation are exactly zero."""
        return bool(np.all(self.translation == 0.0) and np.all(self.rotvec == 0.0))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Pose6):
            return NotImplemented
        return bool(
            np.array_equal(self.translation, other.translation)
            and np.array_equal(self.rotvec, other.rotvec)
        )

    def __hash__(self) -> int:
        return hash((self.translation.tobytes(), self.rotvec.tobytes()))
