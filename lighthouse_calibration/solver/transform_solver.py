################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Global solve for slave-to-master lighthouse transforms.

The master lighthouse is registered as a fixed identity block. Every slave
lighthouse with at least one epoch shared with the master becomes a free
block, initialized from its current transform. Each shared (tracker, epoch)
contributes one residual block.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping

import numpy as np

from lighthouse_calibration.calibration_types.epoch_pose import EpochKey
from lighthouse_calibration.calibration_types.epoch_pose import EpochPose
from lighthouse_calibration.calibration_types.solve_report import SolverSummary
from lighthouse_calibration.config.calibration_params import SolverParams
from lighthouse_calibration.math_utils.pose6 import Pose6
from lighthouse_calibration.solver.optimizer import optimize
from lighthouse_calibration.solver.problem import TransformProblem
from lighthouse_calibration.solver.residuals import TransformResidualBlock
from lighthouse_calibration.solver.robust_loss import RobustLoss


_LOG: logging.Logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransformSolution:
    """Output of the global transform solve.

    Attributes:
        summary: Optimizer summary
        transforms: Solved transform for every lighthouse that was a block
        residual_blocks: Residual block count per slave lighthouse serial
    """

    summary: SolverSummary
    transforms: dict[str, Pose6]
    residual_blocks: dict[str, int]


def parameter_name(serial: str) -> str:
    """Return the parameter block name of a lighthouse."""
    return f"lighthouse/{serial}"


def build_problem(
    epoch_poses: Mapping[EpochKey, EpochPose],
    transforms: Mapping[str, Pose6],
    master: str,
    options: SolverParams,
) -> tuple[TransformProblem, dict[str, int]]:
    """Build the transform problem and count residual blocks per slave."""
    problem: TransformProblem = TransformProblem(
        RobustLoss(options.robust_loss, options.robust_scale),
        threads=options.threads,
    )
    problem.add_parameter_block(parameter_name(master), Pose6.identity(), fixed=True)

    counts: dict[str, int] = {}
    for serial, initial in transforms.items():
        if serial == master:
            continue
        blocks: list[TransformResidualBlock] = []
        for key in sorted(epoch_poses):
            if key.lighthouse != serial:
                continue
            master_pose: EpochPose | None = epoch_poses.get(
                EpochKey(key.tracker, master, key.bin_index)
            )
            if master_pose is None:
                continue
            blocks.append(
                TransformResidualBlock(
                    parameter=parameter_name(serial),
                    lighthouse=serial,
                    tracker=key.tracker,
                    bin_index=key.bin_index,
                    master_pose=master_pose.pose,
                    slave_pose=epoch_poses[key].pose,
                )
            )
        counts[serial] = len(blocks)
        if not blocks:
            _LOG.warning("Lighthouse %s shares no epochs with the master", serial)
            continue
        problem.add_parameter_block(parameter_name(serial), initial)
        for block in blocks:
            problem.add_residual_block(block)

    return problem, counts


def solve_transforms(
    epoch_poses: Mapping[EpochKey, EpochPose],
    transforms: Mapping[str, Pose6],
    master: str,
    options: SolverParams,
) -> TransformSolution:
    """Solve slave-to-master transforms from paired epoch poses."""
    if master not in transforms:
        raise ValueError(f"Master lighthouse {master} has no transform")

    problem: TransformProblem
    counts: dict[str, int]
    problem, counts = build_problem(epoch_poses, transforms, master, options)

    summary: SolverSummary = optimize(problem, options)

    values: dict[str, Pose6] = problem.registry.values()
    solved: dict[str, Pose6] = {master: Pose6.identity()}
    for serial, count in counts.items():
        if count > 0:
            solved[serial] = values[parameter_name(serial)]
            _LOG.info(
                "Lighthouse %s: translation %s distance %.4f m",
                serial,
                np.array2string(solved[serial].translation, precision=4),
                float(np.linalg.norm(solved[serial].translation)),
            )

    return TransformSolution(summary=summary, transforms=solved, residual_blocks=counts)
