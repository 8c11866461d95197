################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Tracker trajectories in the vive frame, one per lighthouse."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping
from typing import Sequence

from lighthouse_calibration.calibration_types.epoch_pose import EpochKey
from lighthouse_calibration.calibration_types.epoch_pose import EpochPose
from lighthouse_calibration.math_utils.pose6 import Pose6


@dataclass(frozen=True)
class TrajectoryPoint:
    """Tracker pose at one epoch.

    Attributes:
        t_ns: Epoch time in nanoseconds
        pose: Tracker body-to-vive transform
    """

    t_ns: int
    pose: Pose6


@dataclass(frozen=True)
class Trajectory:
    """Time-ordered tracker poses seen through one lighthouse.

    Attributes:
        lighthouse: Lighthouse serial
        tracker: Tracker serial
        frame_id: Frame the poses are expressed in
        points: Poses ordered by time
    """

    lighthouse: str
    tracker: str
    frame_id: str
    points: tuple[TrajectoryPoint, ...]


def build_trajectories(
    epoch_poses: Mapping[EpochKey, EpochPose],
    transforms: Mapping[str, Pose6],
    frame_id: str,
    trackers: Sequence[str] | None = None,
) -> list[Trajectory]:
    """Project every epoch pose through its lighthouse transform.

    Trajectories are returned in lighthouse order, then in the given tracker
    order. Without a tracker order, trackers are taken by sorted serial.
    Pairs without any epoch pose are omitted.
    """
    if trackers is None:
        trackers = sorted({key.tracker for key in epoch_poses})
    trajectories: list[Trajectory] = []
    for lighthouse, transform in transforms.items():
        for tracker in trackers:
            keys: list[EpochKey] = sorted(
                key
                for key in epoch_poses
                if key.lighthouse == lighthouse and key.tracker == tracker
            )
            if not keys:
                continue
            points: tuple[TrajectoryPoint, ...] = tuple(
                TrajectoryPoint(
                    t_ns=epoch_poses[key].t_ns,
                    pose=transform.compose(epoch_poses[key].pose),
                )
                for key in keys
            )
            trajectories.append(
                Trajectory(
                    lighthouse=lighthouse,
                    tracker=tracker,
                    frame_id=frame_id,
                    points=points,
                )
            )
    return trajectories
