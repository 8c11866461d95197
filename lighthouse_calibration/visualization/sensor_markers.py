################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Arrow poses for drawing tracker photodiodes and their normals."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from lighthouse_calibration.calibration_types.tracker import Tracker
from lighthouse_calibration.math_utils.rotation import quaternion_wxyz_from_matrix


# Units: m. Meaning: arrow length, shaft width and head width
ARROW_SCALE: tuple[float, float, float] = (0.010, 0.001, 0.001)

# Units: unitless. Meaning: arrow color as RGBA
ARROW_COLOR_RGBA: tuple[float, float, float, float] = (1.0, 0.0, 0.0, 1.0)


@dataclass(frozen=True)
class SensorMarker:
    """Arrow located at a sensor and pointing along its normal.

    Attributes:
        sensor: Sensor index
        position: Sensor position in the tracker frame, meters
        quaternion_wxyz: Arrow orientation, x axis along the normal
    """

    sensor: int
    position: NDArray[np.float64]
    quaternion_wxyz: NDArray[np.float64]


def normal_to_quaternion_wxyz(
    normal: NDArray[np.float64],
) -> NDArray[np.float64] | None:
    """Return an orientation whose x axis points along a normal.

    The y axis is taken perpendicular to the normal and the frame z axis.
    Returns None for a zero normal.
    """
    fwd: NDArray[np.float64] = np.asarray(normal, dtype=np.float64)
    norm: float = float(np.linalg.norm(fwd))
    if norm <= 0.0:
        return None
    fwd = fwd / norm

    down: NDArray[np.float64] = np.array([0.0, 0.0, 1.0], dtype=np.float64)
    right: NDArray[np.float64] = np.cross(down, fwd)
    if float(np.linalg.norm(right)) < 1e-9:
        # Normal along z
        right = np.cross(np.array([1.0, 0.0, 0.0], dtype=np.float64), fwd)
    right = right / float(np.linalg.norm(right))
    up: NDArray[np.float64] = np.cross(fwd, right)

    dcm: NDArray[np.float64] = np.column_stack((fwd, right, up))
    return quaternion_wxyz_from_matrix(dcm)


def build_sensor_markers(tracker: Tracker) -> list[SensorMarker]:
    """Return one arrow per sensor with a non-zero normal."""
    markers: list[SensorMarker] = []
    for sensor in range(tracker.num_sensors):
        quaternion: NDArray[np.float64] | None = normal_to_quaternion_wxyz(
            tracker.sensor_normal(sensor)
        )
        if quaternion is None:
            continue
        markers.append(
            SensorMarker(
                sensor=sensor,
                position=tracker.sensor_position(sensor),
                quaternion_wxyz=quaternion,
            )
        )
    return markers
