################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Tests for the solve pipeline over a filled measurement store."""

from __future__ import annotations

import itertools

import numpy as np
import pytest
from numpy.typing import NDArray

from lighthouse_calibration.calibration_types.light_observation import (
    LightObservation,
)
from lighthouse_calibration.calibration_types.light_observation import Pulse
from lighthouse_calibration.calibration_types.lighthouse import AxisCorrection
from lighthouse_calibration.calibration_types.lighthouse import Lighthouse
from lighthouse_calibration.calibration_types.solve_report import (
    MSG_INSUFFICIENT_DATA,
)
from lighthouse_calibration.calibration_types.solve_report import (
    MSG_SOLUTION_FOUND,
)
from lighthouse_calibration.calibration_types.solve_report import LighthouseStatus
from lighthouse_calibration.calibration_types.tracker import Tracker
from lighthouse_calibration.config.calibration_params import CalibrationParams
from lighthouse_calibration.config.calibration_params import VisualizeParams
from lighthouse_calibration.math_utils.pose6 import Pose6
from lighthouse_calibration.pipeline.calibration_pipeline import CalibrationPipeline
from lighthouse_calibration.pipeline.calibration_pipeline import SolveOutcome
from lighthouse_calibration.pipeline.measurement_store import MeasurementStore


MASTER: str = "M"
SLAVE: str = "S"
TRACKER: str = "T"

# Slave lighthouse frame to vive frame, a pure offset
_SLAVE_TRUTH: Pose6 = Pose6(np.array([0.3, 0.1, 0.0]), np.zeros(3))

_EPOCHS: int = 6


def _cube() -> NDArray[np.float64]:
    rows: list[list[float]] = []
    for corner in itertools.product((-0.05, 0.05), repeat=3):
        position: NDArray[np.float64] = np.array(corner)
        normal: NDArray[np.float64] = position / np.linalg.norm(position)
        rows.append([*position.tolist(), *normal.tolist()])
    return np.array(rows)


def _tracker_pose(epoch: int) -> Pose6:
    """Tracker body-to-master pose at an epoch."""
    phase: float = 0.6 * float(epoch)
    return Pose6(
        np.array([0.2 + 0.05 * np.sin(phase), -0.1, 2.0 + 0.1 * np.cos(phase)]),
        np.array([0.2 * np.cos(phase), 0.15 * np.sin(phase), 0.1]),
    )


def _sweeps(lighthouse: str, pose: Pose6) -> list[LightObservation]:
    geometry: NDArray[np.float64] = _cube()
    sweeps: list[LightObservation] = []
    for axis in (0, 1):
        pulses: list[Pulse] = []
        for sensor in range(geometry.shape[0]):
            point: NDArray[np.float64] = pose.transform_point(geometry[sensor, :3])
            pulses.append(
                Pulse(
                    sensor=sensor,
                    angle_rad=float(np.arctan2(point[axis], point[2])),
                    duration_sec=1e-5,
                )
            )
        sweeps.append(
            LightObservation(
                tracker=TRACKER,
                lighthouse=lighthouse,
                axis=axis,
                pulses=tuple(pulses),
            )
        )
    return sweeps


def _filled_store() -> MeasurementStore:
    store: MeasurementStore = MeasurementStore()
    for epoch in range(_EPOCHS):
        master_pose: Pose6 = _tracker_pose(epoch)
        slave_pose: Pose6 = Pose6(
            master_pose.translation - _SLAVE_TRUTH.translation, master_pose.rotvec
        )
        t_ns: int = epoch * 100_000_000
        for offset, sweep in zip(
            (0, 8_000_000, 20_000_000, 28_000_000),
            [*_sweeps(MASTER, master_pose), *_sweeps(SLAVE, slave_pose)],
        ):
            store.append(t_ns + offset, sweep)
    return store


def _devices() -> tuple[dict[str, Tracker], dict[str, Lighthouse]]:
    corrections: tuple[AxisCorrection, AxisCorrection] = (
        AxisCorrection(),
        AxisCorrection(),
    )
    trackers: dict[str, Tracker] = {
        TRACKER: Tracker(serial=TRACKER).with_sensors(_cube())
    }
    lighthouses: dict[str, Lighthouse] = {
        MASTER: Lighthouse(serial=MASTER).with_corrections(corrections),
        SLAVE: Lighthouse(serial=SLAVE).with_corrections(corrections),
    }
    return trackers, lighthouses


def test_empty_store_reports_insufficient_data() -> None:
    """Ensure an empty store leaves every transform unchanged."""
    trackers, lighthouses = _devices()
    outcome: SolveOutcome = CalibrationPipeline(CalibrationParams.defaults()).solve(
        MeasurementStore(), trackers=trackers, lighthouses=lighthouses, master=MASTER
    )

    assert not outcome.report.success
    assert outcome.report.message == MSG_INSUFFICIENT_DATA
    assert outcome.transforms == {}
    assert [status.status for status in outcome.report.lighthouses] == [
        LighthouseStatus.MASTER,
        LighthouseStatus.UNCHANGED,
    ]


def test_unknown_master_rejected() -> None:
    """The master must be one of the known lighthouses."""
    trackers, lighthouses = _devices()
    with pytest.raises(ValueError):
        CalibrationPipeline(CalibrationParams.defaults()).solve(
            MeasurementStore(), trackers=trackers, lighthouses=lighthouses, master="X"
        )


def test_solves_slave_offset() -> None:
    """Check a full solve recovers the slave transform and trajectories."""
    trackers, lighthouses = _devices()
    outcome: SolveOutcome = CalibrationPipeline(CalibrationParams.defaults()).solve(
        _filled_store(), trackers=trackers, lighthouses=lighthouses, master=MASTER
    )

    assert outcome.report.success
    assert outcome.report.message == MSG_SOLUTION_FOUND
    assert outcome.report.measurements == 4 * _EPOCHS
    assert outcome.report.epoch_poses == 2 * _EPOCHS
    assert outcome.transforms[MASTER].is_identity()
    np.testing.assert_allclose(
        outcome.transforms[SLAVE].translation, _SLAVE_TRUTH.translation, atol=1e-5
    )
    np.testing.assert_allclose(outcome.transforms[SLAVE].rotvec, 0.0, atol=1e-5)

    slave_status = outcome.report.status_for(SLAVE)
    assert slave_status is not None
    assert slave_status.status is LighthouseStatus.SOLVED
    assert slave_status.residual_blocks == _EPOCHS

    assert [(t.lighthouse, t.tracker) for t in outcome.trajectories] == [
        (MASTER, TRACKER),
        (SLAVE, TRACKER),
    ]
    assert all(len(t.points) == _EPOCHS for t in outcome.trajectories)


def test_trajectories_disabled() -> None:
    """No trajectories are built when visualization is off."""
    params: CalibrationParams = CalibrationParams.defaults().replace(
        visualize=VisualizeParams(enabled=False)
    )
    trackers, lighthouses = _devices()
    outcome: SolveOutcome = CalibrationPipeline(params).solve(
        _filled_store(), trackers=trackers, lighthouses=lighthouses, master=MASTER
    )
    assert outcome.report.success
    assert outcome.trajectories == ()


def test_master_only_is_insufficient() -> None:
    """Observations of the master alone give no residual blocks."""
    trackers, lighthouses = _devices()
    store: MeasurementStore = MeasurementStore()
    for index, sweep in enumerate(_sweeps(MASTER, _tracker_pose(0))):
        store.append(index * 8_000_000, sweep)

    outcome: SolveOutcome = CalibrationPipeline(CalibrationParams.defaults()).solve(
        store, trackers=trackers, lighthouses=lighthouses, master=MASTER
    )
    assert not outcome.report.success
    assert outcome.report.message == MSG_INSUFFICIENT_DATA
    assert outcome.transforms == {}
    slave_status = outcome.report.status_for(SLAVE)
    assert slave_status is not None
    assert slave_status.status is LighthouseStatus.INSUFFICIENT_DATA
    assert slave_status.transform.is_identity()
