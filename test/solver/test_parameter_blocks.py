################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Tests for pose parameter blocks."""

from __future__ import annotations

import numpy as np
import pytest

from lighthouse_calibration.math_utils.pose6 import Pose6
from lighthouse_calibration.math_utils.rotation import exp_so3
from lighthouse_calibration.solver.parameter_blocks import ParameterBlockError
from lighthouse_calibration.solver.parameter_blocks import ParameterRegistry


def test_free_blocks_are_contiguous() -> None:
    """Ensure fixed blocks take no space in the tangent vector."""
    registry: ParameterRegistry = ParameterRegistry()
    registry.add("master", Pose6.identity(), fixed=True)
    first = registry.add("a", Pose6.identity())
    second = registry.add("b", Pose6.identity())

    assert registry.dim == 12
    assert first.sl() == slice(0, 6)
    assert second.sl() == slice(6, 12)
    with pytest.raises(ParameterBlockError):
        registry.block("master").sl()


def test_duplicate_and_unknown_blocks() -> None:
    """Block names are unique and lookups of unknown names fail."""
    registry: ParameterRegistry = ParameterRegistry()
    registry.add("a", Pose6.identity())
    with pytest.raises(ParameterBlockError):
        registry.add("a", Pose6.identity())
    with pytest.raises(ParameterBlockError):
        registry.block("b")


def test_retraction_left_multiplies_rotation() -> None:
    """Check the tangent step updates translation and rotation."""
    start: Pose6 = Pose6(np.array([1.0, 0.0, 0.0]), np.array([0.0, 0.0, 0.3]))
    registry: ParameterRegistry = ParameterRegistry()
    registry.add("fixed", Pose6.identity(), fixed=True)
    registry.add("a", start)

    delta: np.ndarray = np.array([0.1, 0.2, 0.3, 0.2, 0.0, 0.0])
    values: dict[str, Pose6] = registry.retracted(delta)

    np.testing.assert_allclose(values["a"].translation, [1.1, 0.2, 0.3])
    np.testing.assert_allclose(
        values["a"].rotation_matrix(),
        exp_so3(delta[3:]) @ start.rotation_matrix(),
        atol=1e-12,
    )
    assert values["fixed"].is_identity()

    with pytest.raises(ParameterBlockError):
        registry.retracted(np.zeros(3))


def test_assign_refuses_to_move_fixed_blocks() -> None:
    """Fixed blocks cannot be changed by assignment."""
    registry: ParameterRegistry = ParameterRegistry()
    registry.add("fixed", Pose6.identity(), fixed=True)
    registry.add("a", Pose6.identity())
    moved: Pose6 = Pose6(np.array([0.0, 1.0, 0.0]), np.zeros(3))

    registry.assign({"a": moved, "fixed": Pose6.identity()})
    assert registry.values()["a"] == moved
    with pytest.raises(ParameterBlockError):
        registry.assign({"fixed": moved})


def test_free_vector_norm() -> None:
    """The norm only covers free blocks."""
    registry: ParameterRegistry = ParameterRegistry()
    assert registry.free_vector_norm() == 0.0
    registry.add("fixed", Pose6(np.array([10.0, 0.0, 0.0]), np.zeros(3)), fixed=True)
    registry.add("a", Pose6(np.array([3.0, 4.0, 0.0]), np.zeros(3)))
    assert registry.free_vector_norm() == pytest.approx(5.0)
