################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Simulation helpers for lighthouse calibration integration tests.

The rig is one tracker carrying eight photodiodes on the corners of a cube,
moving slowly about two meters in front of the master lighthouse. Sweep
angles are generated without noise, so every epoch is exactly consistent
with the ground-truth lighthouse transforms.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from lighthouse_calibration.calibration_types.light_observation import (
    LightObservation,
)
from lighthouse_calibration.calibration_types.light_observation import Pulse
from lighthouse_calibration.calibration_types.lighthouse import AxisCorrection
from lighthouse_calibration.config.calibration_config import CalibrationConfig
from lighthouse_calibration.config.calibration_config import LighthouseEntry
from lighthouse_calibration.config.calibration_config import TrackerEntry
from lighthouse_calibration.config.calibration_params import CalibrationParams
from lighthouse_calibration.config.calibration_params import SaveParams
from lighthouse_calibration.math_utils.pose6 import Pose6
from lighthouse_calibration.pipeline.calibration_session import CalibrationSession
from lighthouse_calibration.timing.epoch_clock import NS_PER_SEC


# m, half edge length of the sensor cube
CUBE_HALF_EDGE_M: float = 0.05

# m, nominal distance of the tracker in front of the master lighthouse
TRACKER_RANGE_M: float = 2.0

# s, pulse width of every simulated hit
PULSE_DURATION_SEC: float = 10e-6

# s, delay between the horizontal and vertical sweeps of a lighthouse
AXIS_OFFSET_SEC: float = 0.008

# s, delay between the sweeps of consecutive lighthouses
LIGHTHOUSE_OFFSET_SEC: float = 0.017

TRACKER_SERIAL: str = "LHR-08DE963B"
TRACKER_NAME: str = "tracker_test"


@dataclass(frozen=True)
class SimLighthouse:
    """Simulated lighthouse.

    Attributes:
        name: Configuration name
        serial: Lighthouse serial
        truth: Ground-truth lighthouse-to-vive transform
        axis_sensors: Sensors hit by the horizontal and vertical sweeps
    """

    name: str
    serial: str
    truth: Pose6
    axis_sensors: tuple[tuple[int, ...], tuple[int, ...]] = (
        tuple(range(8)),
        tuple(range(8)),
    )


def sensor_array() -> NDArray[np.float64]:
    """Return the (8, 6) sensor geometry of the cube tracker."""
    rows: list[list[float]] = []
    for sx in (-1.0, 1.0):
        for sy in (-1.0, 1.0):
            for sz in (-1.0, 1.0):
                position: NDArray[np.float64] = CUBE_HALF_EDGE_M * np.array(
                    [sx, sy, sz], dtype=np.float64
                )
                normal: NDArray[np.float64] = position / np.linalg.norm(position)
                rows.append([*position.tolist(), *normal.tolist()])
    return np.array(rows, dtype=np.float64)


def tracker_pose(epoch: int) -> Pose6:
    """Return the ground-truth tracker-to-vive pose at an epoch."""
    phase: float = 0.3 * float(epoch)
    translation: NDArray[np.float64] = np.array(
        [
            0.1 * np.sin(phase),
            0.1 * np.cos(phase),
            TRACKER_RANGE_M + 0.01 * float(epoch),
        ],
        dtype=np.float64,
    )
    rotvec: NDArray[np.float64] = np.array(
        [0.2 * np.sin(phase), 0.2 * np.cos(phase), 0.05 * float(epoch)],
        dtype=np.float64,
    )
    return Pose6(translation, rotvec)


def sweep_angles(point: NDArray[np.float64]) -> tuple[float, float]:
    """Return the (horizontal, vertical) sweep angles of a lighthouse point."""
    return (
        float(np.arctan2(point[0], point[2])),
        float(np.arctan2(point[1], point[2])),
    )


def simulate_observations(
    lighthouses: Sequence[SimLighthouse],
    epochs: int,
    *,
    tracker_serial: str = TRACKER_SERIAL,
    period_sec: float = 1.0,
) -> list[tuple[int, LightObservation]]:
    """Return time-stamped observations of every sweep of every epoch."""
    sensors: NDArray[np.float64] = sensor_array()
    observations: list[tuple[int, LightObservation]] = []
    for epoch in range(epochs):
        body_to_vive: Pose6 = tracker_pose(epoch)
        for index, lighthouse in enumerate(lighthouses):
            vive_to_lighthouse: Pose6 = lighthouse.truth.inverse()
            for axis in (0, 1):
                pulses: list[Pulse] = []
                for sensor in lighthouse.axis_sensors[axis]:
                    point: NDArray[np.float64] = vive_to_lighthouse.transform_point(
                        body_to_vive.transform_point(sensors[sensor, :3])
                    )
                    pulses.append(
                        Pulse(
                            sensor=sensor,
                            angle_rad=sweep_angles(point)[axis],
                            duration_sec=PULSE_DURATION_SEC,
                        )
                    )
                t_sec: float = (
                    epoch * period_sec
                    + index * LIGHTHOUSE_OFFSET_SEC
                    + axis * AXIS_OFFSET_SEC
                )
                observations.append(
                    (
                        int(round(t_sec * NS_PER_SEC)),
                        LightObservation(
                            tracker=tracker_serial,
                            lighthouse=lighthouse.serial,
                            axis=axis,
                            pulses=tuple(pulses),
                        ),
                    )
                )
    return observations


def make_config(
    lighthouses: Sequence[SimLighthouse],
    calfile: Path,
    *,
    initial: Mapping[str, Pose6] | None = None,
    params: CalibrationParams | None = None,
) -> CalibrationConfig:
    """Return a configuration for the simulated rig.

    Lighthouses start at identity unless an initial transform is given.
    """
    base: CalibrationParams = (
        params if params is not None else CalibrationParams.defaults()
    )
    base = base.replace(save=SaveParams(calfile=str(calfile)))
    initial = initial or {}
    return CalibrationConfig(
        base,
        [
            LighthouseEntry(
                name=lighthouse.name,
                serial=lighthouse.serial,
                transform=initial.get(lighthouse.serial, Pose6.identity()),
            )
            for lighthouse in lighthouses
        ],
        [
            TrackerEntry(
                name=TRACKER_NAME,
                serial=TRACKER_SERIAL,
                extrinsics=Pose6.identity(),
            )
        ],
    )


def make_ready_session(config: CalibrationConfig) -> CalibrationSession:
    """Return a session whose devices have all reported in."""
    session: CalibrationSession = CalibrationSession(config)
    for tracker in config.trackers:
        session.update_tracker(tracker.serial, sensor_array())
    for lighthouse in config.lighthouses:
        session.update_lighthouse(
            lighthouse.serial, (AxisCorrection(), AxisCorrection())
        )
    return session


def record(
    session: CalibrationSession, observations: Sequence[tuple[int, LightObservation]]
) -> int:
    """Ingest observations and return how many were accepted."""
    accepted: int = 0
    for t_ns, observation in observations:
        if session.ingest(observation, t_ns).accepted:
            accepted += 1
    return accepted
