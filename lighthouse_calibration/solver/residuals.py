################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Residuals tying slave-frame epoch poses to master-frame epoch poses.

For a tracker seen by the master and by a slave lighthouse at the same
epoch, with master pose (R_m, t_m), slave pose (R_s, t_s) and candidate
slave-to-master transform (R_x, t_x), the residual is

    r_t   = t_m - (t_x + t_s)
    r_rot = Log(R_m * (R_x * R_s)^T)

stacked as [r_t, r_rot]. The rotation step of the free block is applied on
the left, R_x <- Exp(d) * R_x.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from lighthouse_calibration.math_utils.pose6 import Pose6
from lighthouse_calibration.math_utils.rotation import log_so3
from lighthouse_calibration.math_utils.rotation import right_jacobian_inv


# Units: unitless. Meaning: residual dimension of a transform block
RESIDUAL_DIM: int = 6


@dataclass(frozen=True)
class TransformResidualBlock:
    """One paired-epoch constraint on a slave-to-master transform.

    Attributes:
        parameter: Name of the free transform block
        lighthouse: Slave lighthouse serial
        tracker: Tracker serial
        bin_index: Epoch bin shared by both poses
        master_pose: Tracker pose in the master frame, held constant
        slave_pose: Tracker pose in the slave frame, held constant
    """

    parameter: str
    lighthouse: str
    tracker: str
    bin_index: int
    master_pose: Pose6
    slave_pose: Pose6


def transform_residual(
    slave_to_master: Pose6, master_pose: Pose6, slave_pose: Pose6
) -> NDArray[np.float64]:
    """Return the 6-vector residual of one paired epoch."""
    residual, _ = transform_residual_with_jacobian(
        slave_to_master, master_pose, slave_pose
    )
    return residual


def transform_residual_with_jacobian(
    slave_to_master: Pose6, master_pose: Pose6, slave_pose: Pose6
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Return the residual and its 6x6 Jacobian in the free block tangent."""
    r_t: NDArray[np.float64] = master_pose.translation - (
        slave_to_master.translation + slave_pose.translation
    )
    R_pred: NDArray[np.float64] = (
        slave_to_master.rotation_matrix() @ slave_pose.rotation_matrix()
    )
    R_err: NDArray[np.float64] = master_pose.rotation_matrix() @ R_pred.T
    r_rot: NDArray[np.float64] = log_so3(R_err)

    residual: NDArray[np.float64] = np.concatenate((r_t, r_rot))

    J: NDArray[np.float64] = np.zeros((RESIDUAL_DIM, 6), dtype=np.float64)
    J[:3, :3] = -np.eye(3, dtype=np.float64)
    J[3:, 3:] = -right_jacobian_inv(r_rot)
    return residual, J
