################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Tests for rotation helpers."""

from __future__ import annotations

import numpy as np
import pytest
from numpy.typing import NDArray

from lighthouse_calibration.math_utils.rotation import exp_so3
from lighthouse_calibration.math_utils.rotation import hat
from lighthouse_calibration.math_utils.rotation import is_rotation_matrix
from lighthouse_calibration.math_utils.rotation import log_so3
from lighthouse_calibration.math_utils.rotation import matrix_from_quaternion_wxyz
from lighthouse_calibration.math_utils.rotation import normalize_quaternion
from lighthouse_calibration.math_utils.rotation import quaternion_wxyz_from_matrix
from lighthouse_calibration.math_utils.rotation import quaternion_wxyz_from_rotvec
from lighthouse_calibration.math_utils.rotation import right_jacobian_inv
from lighthouse_calibration.math_utils.rotation import wxyz_to_xyzw
from lighthouse_calibration.math_utils.rotation import xyzw_to_wxyz


def test_hat_matches_cross_product() -> None:
    """Ensure hat(a) @ b equals the cross product."""
    a: NDArray[np.float64] = np.array([0.3, -1.2, 2.0])
    b: NDArray[np.float64] = np.array([1.5, 0.1, -0.7])
    np.testing.assert_allclose(hat(a) @ b, np.cross(a, b), atol=1e-12)


def test_exp_so3_quarter_turn_about_z() -> None:
    """Check a pi/2 rotation about z maps x onto y."""
    R: NDArray[np.float64] = exp_so3(np.array([0.0, 0.0, np.pi / 2.0]))
    np.testing.assert_allclose(
        R @ np.array([1.0, 0.0, 0.0]), [0.0, 1.0, 0.0], atol=1e-12
    )
    assert is_rotation_matrix(R)


def test_log_exp_round_trip_near_pi() -> None:
    """Ensure log_so3 inverts exp_so3 for a rotation close to pi."""
    axis: NDArray[np.float64] = np.array([1.0, 2.0, -0.5])
    axis = axis / np.linalg.norm(axis)
    rotvec: NDArray[np.float64] = axis * (np.pi - 1e-3)
    np.testing.assert_allclose(log_so3(exp_so3(rotvec)), rotvec, atol=1e-9)


def test_small_angle_exp_is_orthonormal() -> None:
    """Check the small-angle branch still returns a rotation."""
    R: NDArray[np.float64] = exp_so3(np.array([1e-10, -2e-10, 0.0]))
    assert is_rotation_matrix(R)


def test_quaternion_matrix_agree() -> None:
    """Ensure quaternion and matrix conversions describe the same rotation."""
    rotvec: NDArray[np.float64] = np.array([0.4, -0.2, 1.1])
    q: NDArray[np.float64] = quaternion_wxyz_from_rotvec(rotvec)
    R: NDArray[np.float64] = exp_so3(rotvec)
    np.testing.assert_allclose(matrix_from_quaternion_wxyz(q), R, atol=1e-12)
    np.testing.assert_allclose(quaternion_wxyz_from_matrix(R), q, atol=1e-12)


def test_quaternion_from_matrix_has_non_negative_w() -> None:
    """Check the returned quaternion lies in the w >= 0 hemisphere."""
    R: NDArray[np.float64] = np.diag([1.0, -1.0, -1.0])
    q: NDArray[np.float64] = quaternion_wxyz_from_matrix(R)
    assert q[0] >= 0.0
    np.testing.assert_allclose(np.abs(q), [0.0, 1.0, 0.0, 0.0], atol=1e-12)


def test_quaternion_reordering() -> None:
    """Ensure xyzw and wxyz reordering are inverses."""
    q_xyzw: NDArray[np.float64] = np.array([0.1, 0.2, 0.3, 0.9])
    np.testing.assert_array_equal(xyzw_to_wxyz(q_xyzw), [0.9, 0.1, 0.2, 0.3])
    np.testing.assert_array_equal(wxyz_to_xyzw(xyzw_to_wxyz(q_xyzw)), q_xyzw)


def test_normalize_quaternion_rejects_zero() -> None:
    """A zero quaternion cannot be normalized."""
    with pytest.raises(ValueError):
        normalize_quaternion(np.zeros(4), "q")


def test_right_jacobian_inv_identity_at_zero() -> None:
    """Check the inverse right Jacobian is the identity at zero rotation."""
    np.testing.assert_allclose(right_jacobian_inv(np.zeros(3)), np.eye(3), atol=1e-12)


def test_is_rotation_matrix_rejects_reflection() -> None:
    """A reflection is orthonormal but not a rotation."""
    assert not is_rotation_matrix(np.diag([1.0, 1.0, -1.0]))
