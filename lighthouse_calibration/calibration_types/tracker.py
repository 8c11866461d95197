################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Tracker geometry state."""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from dataclasses import replace

import numpy as np
from numpy.typing import NDArray

from lighthouse_calibration.math_utils.pose6 import Pose6


# Number of photodiodes on a tracker
NUM_SENSORS: int = 32


def _empty_sensors() -> NDArray[np.float64]:
    return np.zeros((NUM_SENSORS, 6), dtype=np.float64)


@dataclass(frozen=True)
class Tracker:
    """Tracker identity and sensor geometry.

    Attributes:
        serial: Tracker serial number
        sensors: Sensor positions and normals in the body frame, shape (N, 6),
            each row [px, py, pz, nx, ny, nz] in meters and unit vectors
        body_to_head: Transform from the tracker head frame into the body frame
        ready: True once sensor geometry has been received
    """

    serial: str
    sensors: NDArray[np.float64] = field(default_factory=_empty_sensors)
    body_to_head: Pose6 = field(default_factory=Pose6.identity)
    ready: bool = False

    def __post_init__(self) -> None:
        """Validate tracker fields and copy sensor geometry."""
        if not isinstance(self.serial, str) or not self.serial:
            raise ValueError("serial must be a non-empty string")
        sensors: NDArray[np.float64] = np.array(
            self.sensors, dtype=np.float64, copy=True
        )
        if sensors.ndim != 2 or sensors.shape[1] != 6:
            raise ValueError("sensors must be shape (N, 6)")
        if not np.all(np.isfinite(sensors)):
            raise ValueError("sensors must be finite")
        if not isinstance(self.body_to_head, Pose6):
            raise ValueError("body_to_head must be a Pose6")
        sensors.setflags(write=False)
        object.__setattr__(self, "sensors", sensors)

    @property
    def num_sensors(self) -> int:
        """Return the number of sensors on the tracker."""
        return int(self.sensors.shape[0])

    def sensor_position(self, sensor: int) -> NDArray[np.float64]:
        """Return the body-frame position of a sensor."""
        return np.array(self.sensors[sensor, :3], dtype=np.float64)

    def sensor_normal(self, sensor: int) -> NDArray[np.float64]:
        """Return the body-frame normal of a sensor."""
        return np.array(self.sensors[sensor, 3:], dtype=np.float64)

    def with_sensors(self, sensors: NDArray[np.float64]) -> Tracker:
        """Return a ready copy carrying new sensor geometry."""
        return replace(self, sensors=sensors, ready=True)
