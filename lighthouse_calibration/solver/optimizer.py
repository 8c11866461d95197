################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Levenberg-Marquardt optimizer for transform problems."""

from __future__ import annotations

import logging
import math
import time

import numpy as np
from numpy.typing import NDArray

from lighthouse_calibration.calibration_types.solve_report import SolverSummary
from lighthouse_calibration.calibration_types.solve_report import Termination
from lighthouse_calibration.config.calibration_params import SolverParams
from lighthouse_calibration.math_utils.pose6 import Pose6
from lighthouse_calibration.solver.problem import Linearization
from lighthouse_calibration.solver.problem import TransformProblem


_LOG: logging.Logger = logging.getLogger(__name__)

# Units: unitless. Meaning: initial Levenberg-Marquardt damping
_LM_INITIAL_DAMPING: float = 1e-4

# Units: unitless. Meaning: damping beyond which no step can reduce the cost
_LM_MAX_DAMPING: float = 1e16

# Units: unitless. Meaning: smallest damping kept after successful steps
_LM_MIN_DAMPING: float = 1e-12

# Units: unitless. Meaning: floor for diagonal scaling of the damping term
_DIAG_FLOOR: float = 1e-6


def _solve(A: NDArray[np.float64], rhs: NDArray[np.float64]) -> NDArray[np.float64]:
    try:
        return np.asarray(np.linalg.solve(A, rhs), dtype=np.float64)
    except np.linalg.LinAlgError:
        return np.asarray(np.linalg.lstsq(A, rhs, rcond=None)[0], dtype=np.float64)


def optimize(problem: TransformProblem, options: SolverParams) -> SolverSummary:
    """Minimize the problem cost in place and return a summary.

    Free parameter blocks in the problem registry hold the solution on
    return, including when the summary is not usable.
    """
    start: float = time.monotonic()
    residual_blocks: int = len(problem.residual_blocks)
    free_parameters: int = problem.registry.dim

    def _summary(
        termination: Termination,
        iterations: int,
        initial_cost: float,
        final_cost: float,
    ) -> SolverSummary:
        summary: SolverSummary = SolverSummary(
            termination=termination,
            iterations=iterations,
            initial_cost=initial_cost,
            final_cost=final_cost,
            residual_blocks=residual_blocks,
            free_parameters=free_parameters,
            elapsed_sec=time.monotonic() - start,
        )
        _LOG.info(
            "Solver finished: %s after %d iterations, cost %.6g -> %.6g",
            termination.value,
            iterations,
            initial_cost,
            final_cost,
        )
        return summary

    if residual_blocks == 0:
        return _summary(Termination.NO_RESIDUALS, 0, 0.0, 0.0)

    progress_level: int = logging.INFO if options.debug else logging.DEBUG

    lin: Linearization = problem.linearize(problem.registry.values())
    initial_cost: float = lin.cost
    cost: float = lin.cost
    if not math.isfinite(cost):
        return _summary(Termination.NUMERICAL_FAILURE, 0, cost, cost)
    if free_parameters == 0:
        return _summary(Termination.PARAMETER_TOLERANCE, 0, cost, cost)

    damping: float = _LM_INITIAL_DAMPING
    iterations: int = 0
    termination: Termination = Termination.MAX_ITERATIONS

    while iterations < options.max_iterations:
        if float(np.max(np.abs(lin.g))) <= options.gradient_tolerance:
            termination = Termination.GRADIENT_TOLERANCE
            break
        if time.monotonic() - start >= options.max_time_sec:
            termination = Termination.MAX_TIME
            break

        diag: NDArray[np.float64] = np.clip(np.diag(lin.H), _DIAG_FLOOR, None)
        A: NDArray[np.float64] = lin.H + damping * np.diag(diag)
        delta: NDArray[np.float64] = _solve(A, -lin.g)
        if not np.all(np.isfinite(delta)):
            termination = Termination.NUMERICAL_FAILURE
            break

        step_norm: float = float(np.linalg.norm(delta))
        x_norm: float = problem.registry.free_vector_norm()
        tol: float = options.parameter_tolerance
        if step_norm <= tol * (x_norm + tol):
            termination = Termination.PARAMETER_TOLERANCE
            break

        candidate: dict[str, Pose6] = problem.registry.retracted(delta)
        new_cost: float = problem.cost(candidate)
        iterations += 1

        if math.isfinite(new_cost) and new_cost < cost:
            relative_decrease: float = (cost - new_cost) / cost
            problem.registry.assign(candidate)
            cost = new_cost
            lin = problem.linearize(problem.registry.values())
            damping = max(damping / 3.0, _LM_MIN_DAMPING)
            _LOG.log(
                progress_level,
                "iter %3d: cost %.6e step %.3e damping %.1e accepted",
                iterations,
                cost,
                step_norm,
                damping,
            )
            if relative_decrease <= options.function_tolerance:
                termination = Termination.FUNCTION_TOLERANCE
                break
        else:
            damping *= 4.0
            _LOG.log(
                progress_level,
                "iter %3d: cost %.6e step %.3e damping %.1e rejected",
                iterations,
                new_cost,
                step_norm,
                damping,
            )
            if damping > _LM_MAX_DAMPING:
                termination = Termination.FUNCTION_TOLERANCE
                break

    return _summary(termination, iterations, initial_cost, cost)
