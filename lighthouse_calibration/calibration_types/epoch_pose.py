################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Per-epoch tracker pose in a lighthouse frame."""

from __future__ import annotations

from dataclasses import dataclass

from lighthouse_calibration.math_utils.pose6 import Pose6


# Minimum sensor correspondences for a pose solve
MIN_CORRESPONDENCES: int = 4


@dataclass(frozen=True, order=True)
class EpochKey:
    """Identifies one discretized epoch of one tracker seen by one lighthouse.

    Attributes:
        tracker: Tracker serial
        lighthouse: Lighthouse serial
        bin_index: Discretized time index
    """

    tracker: str
    lighthouse: str
    bin_index: int


@dataclass(frozen=True)
class EpochPose:
    """Tracker pose in a lighthouse frame at one epoch.

    Attributes:
        key: Epoch identity
        pose: Transform from the tracker body frame into the lighthouse frame
        correspondences: Number of sensors used to solve the pose
        t_ns: Epoch time in nanoseconds
    """

    key: EpochKey
    pose: Pose6
    correspondences: int
    t_ns: int

    def __post_init__(self) -> None:
        """Validate epoch pose fields."""
        if self.correspondences < MIN_CORRESPONDENCES:
            raise ValueError(
                f"an epoch pose needs at least {MIN_CORRESPONDENCES} correspondences"
            )
