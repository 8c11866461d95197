################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Type definitions for lighthouse calibration."""

from __future__ import annotations

from lighthouse_calibration.calibration_types.epoch_pose import EpochKey
from lighthouse_calibration.calibration_types.epoch_pose import EpochPose
from lighthouse_calibration.calibration_types.light_observation import (
    LightObservation,
)
from lighthouse_calibration.calibration_types.light_observation import Pulse
from lighthouse_calibration.calibration_types.lighthouse import AxisCorrection
from lighthouse_calibration.calibration_types.lighthouse import Lighthouse
from lighthouse_calibration.calibration_types.solve_report import (
    LighthouseSolveStatus,
)
from lighthouse_calibration.calibration_types.solve_report import LighthouseStatus
from lighthouse_calibration.calibration_types.solve_report import SolveReport
from lighthouse_calibration.calibration_types.solve_report import SolverSummary
from lighthouse_calibration.calibration_types.solve_report import Termination
from lighthouse_calibration.calibration_types.solve_report import TriggerResult
from lighthouse_calibration.calibration_types.tracker import Tracker


__all__ = [
    "AxisCorrection",
    "EpochKey",
    "EpochPose",
    "LightObservation",
    "Lighthouse",
    "LighthouseSolveStatus",
    "LighthouseStatus",
    "Pulse",
    "SolveReport",
    "SolverSummary",
    "Termination",
    "Tracker",
    "TriggerResult",
]
