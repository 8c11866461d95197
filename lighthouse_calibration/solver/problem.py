################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Least-squares problem over slave-to-master transforms."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from lighthouse_calibration.math_utils.pose6 import Pose6
from lighthouse_calibration.solver.parameter_blocks import ParameterBlock
from lighthouse_calibration.solver.parameter_blocks import ParameterRegistry
from lighthouse_calibration.solver.residuals import TransformResidualBlock
from lighthouse_calibration.solver.residuals import transform_residual
from lighthouse_calibration.solver.residuals import (
    transform_residual_with_jacobian,
)
from lighthouse_calibration.solver.robust_loss import RobustLoss


class SolverError(Exception):
    """Raised when the problem is malformed."""


@dataclass(frozen=True)
class Linearization:
    """Normal equations at the current parameter values.

    Attributes:
        H: Gauss-Newton Hessian approximation J^T W J
        g: Gradient J^T W r
        cost: Robustified cost 0.5 * sum(rho(|r|^2))
    """

    H: NDArray[np.float64]
    g: NDArray[np.float64]
    cost: float


class TransformProblem:
    """Residual blocks over a registry of pose parameter blocks.

    Residual blocks are evaluated in chunks, one per worker thread, and the
    partial normal equations are summed.
    """

    def __init__(self, loss: RobustLoss, *, threads: int = 1) -> None:
        if threads <= 0:
            raise SolverError("threads must be positive")
        self._loss: RobustLoss = loss
        self._threads: int = int(threads)
        self._registry: ParameterRegistry = ParameterRegistry()
        self._residual_blocks: list[TransformResidualBlock] = []

    @property
    def loss(self) -> RobustLoss:
        return self._loss

    @property
    def registry(self) -> ParameterRegistry:
        return self._registry

    @property
    def residual_blocks(self) -> tuple[TransformResidualBlock, ...]:
        return tuple(self._residual_blocks)

    def add_parameter_block(
        self, name: str, pose: Pose6, *, fixed: bool = False
    ) -> ParameterBlock:
        """Register a pose parameter block."""
        return self._registry.add(name, pose, fixed=fixed)

    def add_residual_block(self, block: TransformResidualBlock) -> None:
        """Add a paired-epoch residual block."""
        if block.parameter not in self._registry:
            raise SolverError(f"Unknown parameter block {block.parameter}")
        self._residual_blocks.append(block)

    def blocks_for(self, parameter: str) -> int:
        """Return the number of residual blocks that touch a parameter."""
        return sum(1 for block in self._residual_blocks if block.parameter == parameter)

    def cost(self, values: dict[str, Pose6]) -> float:
        """Return the robustified cost at the given parameter values."""
        total: float = 0.0
        for block in self._residual_blocks:
            r: NDArray[np.float64] = transform_residual(
                values[block.parameter], block.master_pose, block.slave_pose
            )
            total += 0.5 * self._loss.rho(float(r @ r))
        return total

    def linearize(self, values: dict[str, Pose6]) -> Linearization:
        """Build the normal equations at the given parameter values."""
        chunks: list[Sequence[TransformResidualBlock]] = self._chunks()
        parts: list[Linearization]
        if len(chunks) <= 1:
            parts = [self._accumulate(chunk, values) for chunk in chunks]
        else:
            with ThreadPoolExecutor(max_workers=len(chunks)) as executor:
                parts = list(
                    executor.map(lambda chunk: self._accumulate(chunk, values), chunks)
                )

        dim: int = self._registry.dim
        H: NDArray[np.float64] = np.zeros((dim, dim), dtype=np.float64)
        g: NDArray[np.float64] = np.zeros(dim, dtype=np.float64)
        cost: float = 0.0
        for part in parts:
            H += part.H
            g += part.g
            cost += part.cost
        return Linearization(H=H, g=g, cost=cost)

    def _chunks(self) -> list[Sequence[TransformResidualBlock]]:
        blocks: list[TransformResidualBlock] = self._residual_blocks
        if not blocks:
            return []
        count: int = min(self._threads, len(blocks))
        size: int = -(-len(blocks) // count)
        return [blocks[i : i + size] for i in range(0, len(blocks), size)]

    def _accumulate(
        self,
        blocks: Sequence[TransformResidualBlock],
        values: dict[str, Pose6],
    ) -> Linearization:
        dim: int = self._registry.dim
        H: NDArray[np.float64] = np.zeros((dim, dim), dtype=np.float64)
        g: NDArray[np.float64] = np.zeros(dim, dtype=np.float64)
        cost: float = 0.0
        for block in blocks:
            param: ParameterBlock = self._registry.block(block.parameter)
            r: NDArray[np.float64]
            J: NDArray[np.float64]
            r, J = transform_residual_with_jacobian(
                values[block.parameter], block.master_pose, block.slave_pose
            )
            sq_norm: float = float(r @ r)
            cost += 0.5 * self._loss.rho(sq_norm)
            if param.fixed:
                continue
            weight: float = self._loss.weight(sq_norm)
            sl: slice = param.sl()
            H[sl, sl] += weight * (J.T @ J)
            g[sl] += weight * (J.T @ r)
        return Linearization(H=H, g=g, cost=cost)
