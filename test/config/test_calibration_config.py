################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Tests for the calibration configuration wrapper."""

from __future__ import annotations

import dataclasses

import numpy as np
import pytest

from lighthouse_calibration.config.calibration_config import CalibrationConfig
from lighthouse_calibration.config.calibration_config import (
    CalibrationConfigError,
)
from lighthouse_calibration.config.calibration_config import LighthouseEntry
from lighthouse_calibration.config.calibration_config import TrackerEntry
from lighthouse_calibration.config.calibration_config import pose_from_vector7
from lighthouse_calibration.config.calibration_params import CalibrationParams
from lighthouse_calibration.math_utils.pose6 import Pose6


def _lighthouse(name: str, serial: str) -> LighthouseEntry:
    return LighthouseEntry(name=name, serial=serial, transform=Pose6.identity())


def _tracker(name: str, serial: str) -> TrackerEntry:
    return TrackerEntry(name=name, serial=serial, extrinsics=Pose6.identity())


def test_master_is_first_lighthouse() -> None:
    """The first configured lighthouse is the master."""
    config: CalibrationConfig = CalibrationConfig(
        CalibrationParams.defaults(),
        [_lighthouse("left", "111"), _lighthouse("right", "222")],
        [_tracker("tracker", "LHR-1")],
    )
    assert config.master_serial() == "111"
    assert config.lighthouse_serials() == ("111", "222")
    assert config.tracker_serials() == ("LHR-1",)
    assert config.lighthouse_name("222") == "right"
    assert config.tracker_name("LHR-1") == "tracker"


def test_unknown_name_lookup_raises() -> None:
    """Looking up an unknown serial raises KeyError."""
    config: CalibrationConfig = CalibrationConfig(
        CalibrationParams.defaults(), [_lighthouse("left", "111")], []
    )
    with pytest.raises(KeyError):
        config.lighthouse_name("999")


def test_requires_a_lighthouse() -> None:
    """A configuration without lighthouses is rejected."""
    with pytest.raises(CalibrationConfigError):
        CalibrationConfig(CalibrationParams.defaults(), [], [])


def test_duplicate_serials_rejected() -> None:
    """Serials must be unique across lighthouses and trackers."""
    with pytest.raises(CalibrationConfigError):
        CalibrationConfig(
            CalibrationParams.defaults(),
            [_lighthouse("left", "111")],
            [_tracker("tracker", "111")],
        )


def test_duplicate_names_rejected() -> None:
    """Lighthouse names must be unique."""
    with pytest.raises(CalibrationConfigError):
        CalibrationConfig(
            CalibrationParams.defaults(),
            [_lighthouse("left", "111"), _lighthouse("left", "222")],
            [],
        )


def test_invalid_robust_loss() -> None:
    """Unknown robust loss identifiers are rejected."""
    defaults: CalibrationParams = CalibrationParams.defaults()
    params: CalibrationParams = defaults.replace(
        solver=dataclasses.replace(defaults.solver, robust_loss="tukey")
    )
    with pytest.raises(CalibrationConfigError):
        CalibrationConfig(params, [_lighthouse("left", "111")], [])


def test_parameter_errors_are_wrapped() -> None:
    """Parameter validation failures surface as configuration errors."""
    defaults: CalibrationParams = CalibrationParams.defaults()
    params: CalibrationParams = defaults.replace(
        thresholds=dataclasses.replace(defaults.thresholds, count=0)
    )
    with pytest.raises(CalibrationConfigError):
        CalibrationConfig(params, [_lighthouse("left", "111")], [])


def test_pose_from_vector7() -> None:
    """Check pose vectors parse into translation and rotation."""
    pose: Pose6 = pose_from_vector7(
        [1.0, 2.0, 3.0, 0.0, 0.0, np.sin(0.25), np.cos(0.25)], "pose"
    )
    np.testing.assert_allclose(pose.translation, [1.0, 2.0, 3.0])
    np.testing.assert_allclose(pose.rotvec, [0.0, 0.0, 0.5], atol=1e-12)


@pytest.mark.parametrize(
    "values", ["1234567", [1.0, 2.0, 3.0], [1.0, 2.0, 3.0, 0.0, 0.0, 0.0, "w"]]
)
def test_pose_from_vector7_rejects_malformed(values: object) -> None:
    """Malformed pose vectors raise configuration errors."""
    with pytest.raises(CalibrationConfigError):
        pose_from_vector7(values, "pose")  # type: ignore[arg-type]
