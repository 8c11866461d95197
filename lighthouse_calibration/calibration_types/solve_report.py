################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Reports produced by a calibration solve and by trigger requests."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from lighthouse_calibration.math_utils.pose6 import Pose6


# Trigger response when a recording starts
MSG_RECORDING_STARTED: str = "Recording started."
# Trigger response when a solve succeeds
MSG_SOLUTION_FOUND: str = "Recording stopped. Solution found."
# Trigger response when there is nothing to solve
MSG_INSUFFICIENT_DATA: str = "Recording stopped. Insufficient measurements to solve."
# Trigger response when the solver fails
MSG_SOLVER_FAILED: str = "Recording stopped. Solver did not converge."


class LighthouseStatus(Enum):
    """Per-lighthouse outcome of a solve."""

    MASTER = "master"
    SOLVED = "solved"
    INSUFFICIENT_DATA = "insufficient_data"
    UNCHANGED = "unchanged"


class Termination(Enum):
    """Reason the optimizer stopped."""

    FUNCTION_TOLERANCE = "function_tolerance"
    GRADIENT_TOLERANCE = "gradient_tolerance"
    PARAMETER_TOLERANCE = "parameter_tolerance"
    MAX_ITERATIONS = "max_iterations"
    MAX_TIME = "max_time"
    NO_RESIDUALS = "no_residuals"
    NUMERICAL_FAILURE = "numerical_failure"


@dataclass(frozen=True)
class SolverSummary:
    """Outcome of a nonlinear least-squares run.

    Attributes:
        termination: Reason the optimizer stopped
        iterations: Number of accepted and rejected iterations
        initial_cost: Cost before the first iteration
        final_cost: Cost after the last accepted iteration
        residual_blocks: Number of residual blocks in the problem
        free_parameters: Number of free scalar parameters
        elapsed_sec: Wall-clock time spent in the optimizer
    """

    termination: Termination
    iterations: int
    initial_cost: float
    final_cost: float
    residual_blocks: int
    free_parameters: int
    elapsed_sec: float

    @property
    def converged(self) -> bool:
        """Return True if a tolerance criterion stopped the optimizer."""
        return self.termination in (
            Termination.FUNCTION_TOLERANCE,
            Termination.GRADIENT_TOLERANCE,
            Termination.PARAMETER_TOLERANCE,
        )

    @property
    def usable(self) -> bool:
        """Return True if the solution may be adopted.

        Hitting the iteration or time budget still yields a usable solution
        as long as the cost is finite.
        """
        if self.residual_blocks <= 0:
            return False
        if self.termination in (
            Termination.NO_RESIDUALS,
            Termination.NUMERICAL_FAILURE,
        ):
            return False
        return math.isfinite(self.final_cost)


@dataclass(frozen=True)
class LighthouseSolveStatus:
    """Per-lighthouse line of a solve report.

    Attributes:
        serial: Lighthouse serial
        status: Outcome for this lighthouse
        residual_blocks: Number of paired epochs that constrained it
        transform: Lighthouse-to-vive transform after the solve
    """

    serial: str
    status: LighthouseStatus
    residual_blocks: int
    transform: Pose6


@dataclass(frozen=True)
class SolveReport:
    """Result of one calibration solve.

    Attributes:
        success: True if new transforms were adopted
        message: Human readable outcome
        lighthouses: Per-lighthouse outcomes in configuration order
        measurements: Number of stored observations consumed
        epoch_poses: Number of per-epoch poses bootstrapped
        summary: Optimizer summary, None when the optimizer did not run
        saved: True if the calibration was written to disk
    """

    success: bool
    message: str
    lighthouses: tuple[LighthouseSolveStatus, ...] = ()
    measurements: int = 0
    epoch_poses: int = 0
    summary: SolverSummary | None = None
    saved: bool = False

    def status_for(self, serial: str) -> LighthouseSolveStatus | None:
        """Return the status line for a lighthouse, if present."""
        for status in self.lighthouses:
            if status.serial == serial:
                return status
        return None


@dataclass(frozen=True)
class TriggerResult:
    """Response to a recording trigger or an inactivity timeout.

    Attributes:
        success: True when recording started or a solution was found
        message: Response text
        recording: Recording state after the trigger
        report: Solve report when the trigger stopped a recording
    """

    success: bool
    message: str
    recording: bool
    report: SolveReport | None = None
