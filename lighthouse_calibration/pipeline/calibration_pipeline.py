################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Solve orchestration: bundle, bootstrap, optimize and report.

The pipeline is stateless between solves. It reads the measurement store
and the current device state, and returns the transforms to adopt together
with a report. Adopting the result is left to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from dataclasses import field
from typing import Mapping

from lighthouse_calibration.bootstrap.pose_bootstrapper import PoseBootstrapper
from lighthouse_calibration.bundling.temporal_bundler import Bundle
from lighthouse_calibration.bundling.temporal_bundler import bundle_measurements
from lighthouse_calibration.calibration_types.epoch_pose import EpochKey
from lighthouse_calibration.calibration_types.epoch_pose import EpochPose
from lighthouse_calibration.calibration_types.lighthouse import Lighthouse
from lighthouse_calibration.calibration_types.solve_report import (
    MSG_INSUFFICIENT_DATA,
)
from lighthouse_calibration.calibration_types.solve_report import (
    MSG_SOLUTION_FOUND,
)
from lighthouse_calibration.calibration_types.solve_report import MSG_SOLVER_FAILED
from lighthouse_calibration.calibration_types.solve_report import (
    LighthouseSolveStatus,
)
from lighthouse_calibration.calibration_types.solve_report import LighthouseStatus
from lighthouse_calibration.calibration_types.solve_report import SolveReport
from lighthouse_calibration.calibration_types.solve_report import SolverSummary
from lighthouse_calibration.calibration_types.solve_report import Termination
from lighthouse_calibration.calibration_types.tracker import Tracker
from lighthouse_calibration.config.calibration_params import CalibrationParams
from lighthouse_calibration.math_utils.pose6 import Pose6
from lighthouse_calibration.pipeline.measurement_store import MeasurementStore
from lighthouse_calibration.solver.transform_solver import TransformSolution
from lighthouse_calibration.solver.transform_solver import solve_transforms
from lighthouse_calibration.visualization.trajectory import Trajectory
from lighthouse_calibration.visualization.trajectory import build_trajectories


_LOG: logging.Logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SolveOutcome:
    """Everything a solve produced.

    Attributes:
        report: Solve report for the trigger response
        transforms: Lighthouse transforms to adopt, empty on failure
        trajectories: Tracker trajectories in the vive frame, empty unless
            visualization is enabled and the solve succeeded
        epoch_poses: Per-epoch poses recovered by the bootstrap
    """

    report: SolveReport
    transforms: dict[str, Pose6] = field(default_factory=dict)
    trajectories: tuple[Trajectory, ...] = ()
    epoch_poses: dict[EpochKey, EpochPose] = field(default_factory=dict)


class CalibrationPipeline:
    """Runs one calibration solve over a filled measurement store."""

    def __init__(self, params: CalibrationParams) -> None:
        self._params: CalibrationParams = params
        self._bootstrapper: PoseBootstrapper = PoseBootstrapper(
            apply_corrections=params.correction.correct
        )

    def solve(
        self,
        store: MeasurementStore,
        *,
        trackers: Mapping[str, Tracker],
        lighthouses: Mapping[str, Lighthouse],
        master: str,
    ) -> SolveOutcome:
        """Solve lighthouse transforms from the stored observations.

        Lighthouses are reported in the iteration order of the mapping. On
        failure no transform is returned and every lighthouse keeps its
        prior transform.
        """
        if master not in lighthouses:
            raise ValueError(f"Master lighthouse {master} is not known")

        if store.is_empty():
            _LOG.warning("No measurements recorded, nothing to solve")
            return SolveOutcome(
                report=SolveReport(
                    success=False,
                    message=MSG_INSUFFICIENT_DATA,
                    lighthouses=_unchanged(lighthouses, master),
                )
            )

        measurements: int = len(store)
        _LOG.info(
            "Solving from %d observations with %d pulses over %.2f s",
            measurements,
            store.pulse_count(),
            store.duration_ns() * 1e-9,
        )

        bundle: Bundle = bundle_measurements(
            store.iter_time_order(), self._params.bundle.resolution_sec
        )
        epoch_poses: dict[EpochKey, EpochPose] = self._bootstrapper.bootstrap(
            bundle, trackers, lighthouses
        )

        current: dict[str, Pose6] = {
            serial: (Pose6.identity() if serial == master else lighthouse.transform)
            for serial, lighthouse in lighthouses.items()
        }
        solution: TransformSolution = solve_transforms(
            epoch_poses, current, master, self._params.solver
        )

        summary: SolverSummary = solution.summary
        if summary.termination is Termination.NO_RESIDUALS:
            _LOG.warning("No lighthouse shares an epoch with the master")
            return SolveOutcome(
                report=SolveReport(
                    success=False,
                    message=MSG_INSUFFICIENT_DATA,
                    lighthouses=_statuses(lighthouses, master, solution, False),
                    measurements=measurements,
                    epoch_poses=len(epoch_poses),
                    summary=summary,
                ),
                epoch_poses=epoch_poses,
            )

        if not summary.usable:
            _LOG.warning(
                "Solver did not converge: %s after %d iterations",
                summary.termination.value,
                summary.iterations,
            )
            return SolveOutcome(
                report=SolveReport(
                    success=False,
                    message=MSG_SOLVER_FAILED,
                    lighthouses=_statuses(lighthouses, master, solution, False),
                    measurements=measurements,
                    epoch_poses=len(epoch_poses),
                    summary=summary,
                ),
                epoch_poses=epoch_poses,
            )

        adopted: dict[str, Pose6] = dict(current)
        adopted.update(solution.transforms)

        trajectories: tuple[Trajectory, ...] = ()
        if self._params.visualize.enabled:
            trajectories = tuple(
                build_trajectories(
                    epoch_poses,
                    adopted,
                    self._params.frames.vive,
                    trackers=list(trackers),
                )
            )

        _LOG.info(
            "Solution found: %s after %d iterations, cost %.6g -> %.6g",
            summary.termination.value,
            summary.iterations,
            summary.initial_cost,
            summary.final_cost,
        )
        return SolveOutcome(
            report=SolveReport(
                success=True,
                message=MSG_SOLUTION_FOUND,
                lighthouses=_statuses(lighthouses, master, solution, True),
                measurements=measurements,
                epoch_poses=len(epoch_poses),
                summary=summary,
            ),
            transforms=adopted,
            trajectories=trajectories,
            epoch_poses=epoch_poses,
        )


def _unchanged(
    lighthouses: Mapping[str, Lighthouse], master: str
) -> tuple[LighthouseSolveStatus, ...]:
    return tuple(
        LighthouseSolveStatus(
            serial=serial,
            status=(
                LighthouseStatus.MASTER
                if serial == master
                else LighthouseStatus.UNCHANGED
            ),
            residual_blocks=0,
            transform=Pose6.identity() if serial == master else lighthouse.transform,
        )
        for serial, lighthouse in lighthouses.items()
    )


def _statuses(
    lighthouses: Mapping[str, Lighthouse],
    master: str,
    solution: TransformSolution,
    adopted: bool,
) -> tuple[LighthouseSolveStatus, ...]:
    statuses: list[LighthouseSolveStatus] = []
    for serial, lighthouse in lighthouses.items():
        blocks: int = solution.residual_blocks.get(serial, 0)
        if serial == master:
            status: LighthouseStatus = LighthouseStatus.MASTER
            transform: Pose6 = Pose6.identity()
        elif blocks == 0:
            status = LighthouseStatus.INSUFFICIENT_DATA
            transform = lighthouse.transform
        elif adopted:
            status = LighthouseStatus.SOLVED
            transform = solution.transforms[serial]
        else:
            status = LighthouseStatus.UNCHANGED
            transform = lighthouse.transform
        statuses.append(
            LighthouseSolveStatus(
                serial=serial,
                status=status,
                residual_blocks=blocks,
                transform=transform,
            )
        )
    return tuple(statuses)
