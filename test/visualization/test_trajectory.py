################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Tests for vive-frame tracker trajectories."""

from __future__ import annotations

import numpy as np

from lighthouse_calibration.calibration_types.epoch_pose import EpochKey
from lighthouse_calibration.calibration_types.epoch_pose import EpochPose
from lighthouse_calibration.math_utils.pose6 import Pose6
from lighthouse_calibration.visualization.trajectory import Trajectory
from lighthouse_calibration.visualization.trajectory import build_trajectories


def _epoch(tracker: str, lighthouse: str, bin_index: int, pose: Pose6) -> EpochPose:
    return EpochPose(
        key=EpochKey(tracker, lighthouse, bin_index),
        pose=pose,
        correspondences=6,
        t_ns=bin_index * 100_000_000,
    )


def test_points_are_composed_and_time_ordered() -> None:
    """Ensure epoch poses are mapped through the lighthouse transform."""
    transform: Pose6 = Pose6(np.array([1.0, 0.0, 0.0]), np.array([0.0, 0.0, np.pi / 2]))
    body: Pose6 = Pose6(np.array([0.0, 1.0, 2.0]), np.zeros(3))
    epochs: list[EpochPose] = [
        _epoch("T", "L", 3, body),
        _epoch("T", "L", 1, body),
    ]

    trajectories: list[Trajectory] = build_trajectories(
        {epoch.key: epoch for epoch in epochs}, {"L": transform}, "vive"
    )

    assert len(trajectories) == 1
    trajectory: Trajectory = trajectories[0]
    assert trajectory.frame_id == "vive"
    assert [point.t_ns for point in trajectory.points] == [100_000_000, 300_000_000]
    np.testing.assert_allclose(
        trajectory.points[0].pose.translation, [0.0, 0.0, 2.0], atol=1e-12
    )


def test_ordering_and_missing_pairs() -> None:
    """Lighthouses keep mapping order and empty pairs are omitted."""
    epochs: list[EpochPose] = [
        _epoch("B", "L1", 0, Pose6.identity()),
        _epoch("A", "L1", 0, Pose6.identity()),
        _epoch("A", "L2", 0, Pose6.identity()),
    ]
    transforms: dict[str, Pose6] = {
        "L2": Pose6.identity(),
        "L1": Pose6.identity(),
        "L3": Pose6.identity(),
    }

    trajectories: list[Trajectory] = build_trajectories(
        {epoch.key: epoch for epoch in epochs}, transforms, "vive"
    )
    assert [(t.lighthouse, t.tracker) for t in trajectories] == [
        ("L2", "A"),
        ("L1", "A"),
        ("L1", "B"),
    ]


def test_trackers_follow_roster_order() -> None:
    """Check a tracker roster overrides serial order within a lighthouse."""
    epochs: list[EpochPose] = [
        _epoch("A", "L", 0, Pose6.identity()),
        _epoch("B", "L", 0, Pose6.identity()),
    ]

    trajectories: list[Trajectory] = build_trajectories(
        {epoch.key: epoch for epoch in epochs},
        {"L": Pose6.identity()},
        "vive",
        trackers=["B", "C", "A"],
    )
    assert [t.tracker for t in trajectories] == ["B", "A"]


def test_no_epochs() -> None:
    assert build_trajectories({}, {"L": Pose6.identity()}, "vive") == []
