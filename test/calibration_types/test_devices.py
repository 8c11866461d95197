################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Tests for lighthouse and tracker device state."""

from __future__ import annotations

import numpy as np
import pytest
from numpy.typing import NDArray

from lighthouse_calibration.calibration_types.lighthouse import AxisCorrection
from lighthouse_calibration.calibration_types.lighthouse import Lighthouse
from lighthouse_calibration.calibration_types.tracker import NUM_SENSORS
from lighthouse_calibration.calibration_types.tracker import Tracker
from lighthouse_calibration.math_utils.pose6 import Pose6


def test_lighthouse_defaults() -> None:
    """A new lighthouse sits at identity and is not ready."""
    lighthouse: Lighthouse = Lighthouse(serial="123")
    assert lighthouse.transform.is_identity()
    assert not lighthouse.ready
    assert lighthouse.corrections == (AxisCorrection(), AxisCorrection())


def test_lighthouse_with_corrections_marks_ready() -> None:
    """Ensure receiving corrections makes a lighthouse ready."""
    corrections: tuple[AxisCorrection, AxisCorrection] = (
        AxisCorrection(phase=0.01),
        AxisCorrection(tilt=-0.02),
    )
    lighthouse: Lighthouse = Lighthouse(serial="123").with_corrections(corrections)
    assert lighthouse.ready
    assert lighthouse.corrections[0].phase == 0.01
    assert lighthouse.corrections[1].tilt == -0.02


def test_lighthouse_with_transform_keeps_readiness() -> None:
    """Check replacing the transform keeps the other fields."""
    pose: Pose6 = Pose6(np.array([1.0, 0.0, 0.0]), np.zeros(3))
    lighthouse: Lighthouse = (
        Lighthouse(serial="123")
        .with_corrections((AxisCorrection(), AxisCorrection()))
        .with_transform(pose)
    )
    assert lighthouse.ready
    assert lighthouse.transform == pose


def test_lighthouse_rejects_wrong_correction_count() -> None:
    """Exactly one correction per axis is required."""
    with pytest.raises(ValueError):
        Lighthouse(
            serial="123",
            corrections=(AxisCorrection(),),  # type: ignore[arg-type]
        )


def test_axis_correction_rejects_non_finite() -> None:
    """Correction parameters must be finite."""
    with pytest.raises(ValueError):
        AxisCorrection(curve=float("nan"))


def test_tracker_defaults() -> None:
    """A new tracker has zeroed sensors and is not ready."""
    tracker: Tracker = Tracker(serial="LHR-1")
    assert tracker.num_sensors == NUM_SENSORS
    assert not tracker.ready
    assert tracker.body_to_head.is_identity()


def test_tracker_with_sensors() -> None:
    """Ensure sensor geometry is copied and exposed per sensor."""
    sensors: NDArray[np.float64] = np.arange(24, dtype=np.float64).reshape(4, 6)
    tracker: Tracker = Tracker(serial="LHR-1").with_sensors(sensors)
    sensors[0, 0] = 100.0

    assert tracker.ready
    assert tracker.num_sensors == 4
    np.testing.assert_array_equal(tracker.sensor_position(1), [6.0, 7.0, 8.0])
    np.testing.assert_array_equal(tracker.sensor_normal(1), [9.0, 10.0, 11.0])
    assert tracker.sensors[0, 0] == 0.0


def test_tracker_rejects_bad_sensor_shape() -> None:
    """Sensor arrays must have six columns."""
    with pytest.raises(ValueError):
        Tracker(serial="LHR-1", sensors=np.zeros((4, 3)))
