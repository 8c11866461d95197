################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Helpers for converting lighthouse decoder messages into calibration types

The decoder publishes:

  * Light: header.frame_id is the tracker serial, plus the lighthouse serial,
    the sweep axis and a list of pulses (sensor, angle, duration)
  * Trackers: per tracker a serial and a flat sensor array with six values
    [px, py, pz, nx, ny, nz] per photodiode
  * Lighthouses: per lighthouse a serial and two axis parameter sets
    (phase, tilt, curve, gibphase, gibmag)
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from typing import Any
from typing import Sequence

import numpy as np

from lighthouse_calibration.calibration_types.light_observation import NUM_AXES
from lighthouse_calibration.calibration_types.light_observation import (
    LightObservation,
)
from lighthouse_calibration.calibration_types.light_observation import Pulse
from lighthouse_calibration.calibration_types.lighthouse import AxisCorrection


if TYPE_CHECKING:
    from builtin_interfaces.msg import Time as TimeMsg

    from lighthouse_msgs.msg import Light as LightMsg
    from lighthouse_msgs.msg import Lighthouse as LighthouseMsg
    from lighthouse_msgs.msg import Tracker as TrackerMsg


# Values per sensor in the flat tracker sensor array
SENSOR_STRIDE: int = 6


def time_to_ns(stamp: TimeMsg) -> int:
    sec_ns: int = int(stamp.sec) * int(1e9)

    return sec_ns + int(stamp.nanosec)


def build_light_observation(message: LightMsg) -> LightObservation:
    """Convert a Light message, raising ValueError on malformed fields."""
    pulses: list[Pulse] = [
        Pulse(
            sensor=int(pulse.sensor),
            angle_rad=float(pulse.angle),
            duration_sec=float(pulse.duration),
        )
        for pulse in message.pulses
    ]

    return LightObservation(
        tracker=str(message.header.frame_id),
        lighthouse=str(message.lighthouse),
        axis=int(message.axis),
        pulses=tuple(pulses),
    )


def build_tracker_sensors(message: TrackerMsg) -> tuple[str, np.ndarray]:
    """Return the tracker serial and its (N, 6) sensor array."""
    values: np.ndarray = np.asarray(message.sensors, dtype=np.float64).reshape(-1)
    if values.size == 0 or values.size % SENSOR_STRIDE != 0:
        raise ValueError(
            f"sensors must hold a multiple of {SENSOR_STRIDE} values, "
            f"got {values.size}"
        )
    if not np.all(np.isfinite(values)):
        raise ValueError("sensors must be finite")

    return str(message.serial), values.reshape(-1, SENSOR_STRIDE)


def build_axis_corrections(
    message: LighthouseMsg,
) -> tuple[str, tuple[AxisCorrection, AxisCorrection]]:
    """Return the lighthouse serial and its per-axis corrections."""
    axes: Sequence[Any] = list(message.axis)
    if len(axes) != NUM_AXES:
        raise ValueError(f"Expected {NUM_AXES} axis parameter sets, got {len(axes)}")

    corrections: tuple[AxisCorrection, AxisCorrection] = (
        _axis_correction(axes[0]),
        _axis_correction(axes[1]),
    )

    return str(message.serial), corrections


def _axis_correction(axis: Any) -> AxisCorrection:
    return AxisCorrection(
        phase=float(axis.phase),
        tilt=float(axis.tilt),
        curve=float(axis.curve),
        gib_mag=float(axis.gibmag),
        gib_phase=float(axis.gibphase),
    )
