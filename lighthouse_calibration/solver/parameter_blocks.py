################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Named six-parameter blocks with explicit free or fixed marking."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from lighthouse_calibration.math_utils.pose6 import Pose6
from lighthouse_calibration.math_utils.rotation import exp_so3


# Units: unitless. Meaning: tangent dimension of a pose block
POSE_DIM: int = 6


class ParameterBlockError(Exception):
    """Raised when parameter blocks are misused."""


@dataclass(frozen=True)
class ParameterBlock:
    """Pose-valued optimization variable.

    Attributes:
        name: Unique block name
        pose: Current value
        fixed: True if the optimizer must not change the block
        index: Offset of the block in the free tangent vector, -1 if fixed
    """

    name: str
    pose: Pose6
    fixed: bool
    index: int

    def sl(self) -> slice:
        """Return the slice of this block in the free tangent vector."""
        if self.fixed:
            raise ParameterBlockError(f"Block {self.name} is fixed")
        return slice(self.index, self.index + POSE_DIM)


class ParameterRegistry:
    """Ordered set of parameter blocks.

    Free blocks are laid out contiguously in registration order. Fixed
    blocks hold their value but take no space in the tangent vector.
    """

    def __init__(self) -> None:
        self._blocks: dict[str, ParameterBlock] = {}
        self._dim: int = 0

    @property
    def dim(self) -> int:
        """Return the dimension of the free tangent vector."""
        return self._dim

    def __contains__(self, name: object) -> bool:
        return name in self._blocks

    def add(self, name: str, pose: Pose6, *, fixed: bool = False) -> ParameterBlock:
        """Register a new block."""
        if name in self._blocks:
            raise ParameterBlockError(f"Block {name} is already registered")
        index: int = -1 if fixed else self._dim
        block: ParameterBlock = ParameterBlock(
            name=name, pose=pose, fixed=fixed, index=index
        )
        self._blocks[name] = block
        if not fixed:
            self._dim += POSE_DIM
        return block

    def block(self, name: str) -> ParameterBlock:
        try:
            return self._blocks[name]
        except KeyError as exc:
            raise ParameterBlockError(f"Unknown block {name}") from exc

    def blocks(self) -> list[ParameterBlock]:
        return list(self._blocks.values())

    def free_blocks(self) -> list[ParameterBlock]:
        return [block for block in self._blocks.values() if not block.fixed]

    def values(self) -> dict[str, Pose6]:
        """Return the current value of every block."""
        return {name: block.pose for name, block in self._blocks.items()}

    def free_vector_norm(self) -> float:
        """Return the norm of the stacked free block parameters."""
        if self._dim == 0:
            return 0.0
        stacked: NDArray[np.float64] = np.concatenate(
            [block.pose.as_array() for block in self.free_blocks()]
        )
        return float(np.linalg.norm(stacked))

    def retracted(self, delta: NDArray[np.float64]) -> dict[str, Pose6]:
        """Return block values after applying a tangent step.

        Translations are updated additively and rotations by left
        multiplication with the exponential of the rotation step.
        """
        step: NDArray[np.float64] = np.asarray(delta, dtype=np.float64)
        if step.shape != (self._dim,):
            raise ParameterBlockError(f"delta must be shape ({self._dim},)")
        values: dict[str, Pose6] = {}
        for name, block in self._blocks.items():
            if block.fixed:
                values[name] = block.pose
                continue
            d: NDArray[np.float64] = step[block.sl()]
            R: NDArray[np.float64] = exp_so3(d[3:]) @ block.pose.rotation_matrix()
            values[name] = Pose6.from_matrix(R, block.pose.translation + d[:3])
        return values

    def assign(self, values: dict[str, Pose6]) -> None:
        """Replace the values of free blocks."""
        for name, pose in values.items():
            block: ParameterBlock = self.block(name)
            if block.fixed:
                if pose != block.pose:
                    raise ParameterBlockError(f"Block {name} is fixed")
                continue
            self._blocks[name] = ParameterBlock(
                name=name, pose=pose, fixed=False, index=block.index
            )
