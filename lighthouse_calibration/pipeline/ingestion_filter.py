################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Gate and clean incoming light observations before storage."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping

from lighthouse_calibration.calibration_types.light_observation import (
    LightObservation,
)
from lighthouse_calibration.calibration_types.light_observation import Pulse
from lighthouse_calibration.calibration_types.lighthouse import Lighthouse
from lighthouse_calibration.calibration_types.tracker import Tracker
from lighthouse_calibration.config.calibration_params import ThresholdParams


class IngestionStatus(Enum):
    """Outcome of filtering one observation."""

    ACCEPTED = "accepted"
    NOT_RECORDING = "not_recording"
    UNKNOWN_TRACKER = "unknown_tracker"
    TRACKER_NOT_READY = "tracker_not_ready"
    UNKNOWN_LIGHTHOUSE = "unknown_lighthouse"
    LIGHTHOUSE_NOT_READY = "lighthouse_not_ready"
    TOO_FEW_PULSES = "too_few_pulses"


@dataclass(frozen=True)
class IngestionResult:
    """Result of filtering one observation.

    Attributes:
        status: Acceptance status
        observation: Filtered observation when accepted, otherwise None
        discarded_pulses: Number of pulses removed by the thresholds
    """

    status: IngestionStatus
    observation: LightObservation | None = None
    discarded_pulses: int = 0

    @property
    def accepted(self) -> bool:
        return self.status is IngestionStatus.ACCEPTED


class IngestionFilter:
    """Applies recording, readiness and pulse quality gates.

    A pulse is discarded when its absolute angle exceeds the angle threshold,
    when its duration is shorter than the duration threshold, or when its
    sensor index does not exist on the tracker. The whole observation is
    dropped when fewer than the count threshold of pulses remain.
    """

    def __init__(self, thresholds: ThresholdParams) -> None:
        self._count: int = int(thresholds.count)
        self._angle_rad: float = thresholds.angle_rad()
        self._duration_sec: float = thresholds.duration_sec()

    def filter(
        self,
        observation: LightObservation,
        *,
        recording: bool,
        trackers: Mapping[str, Tracker],
        lighthouses: Mapping[str, Lighthouse],
    ) -> IngestionResult:
        """Return the filtered observation or the reason it was rejected."""
        if not recording:
            return IngestionResult(IngestionStatus.NOT_RECORDING)

        tracker: Tracker | None = trackers.get(observation.tracker)
        if tracker is None:
            return IngestionResult(IngestionStatus.UNKNOWN_TRACKER)
        if not tracker.ready:
            return IngestionResult(IngestionStatus.TRACKER_NOT_READY)

        lighthouse: Lighthouse | None = lighthouses.get(observation.lighthouse)
        if lighthouse is None:
            return IngestionResult(IngestionStatus.UNKNOWN_LIGHTHOUSE)
        if not lighthouse.ready:
            return IngestionResult(IngestionStatus.LIGHTHOUSE_NOT_READY)

        kept: list[Pulse] = [
            pulse
            for pulse in observation.pulses
            if self._keep_pulse(pulse, tracker.num_sensors)
        ]
        discarded: int = len(observation.pulses) - len(kept)
        if len(kept) < self._count:
            return IngestionResult(
                IngestionStatus.TOO_FEW_PULSES, discarded_pulses=discarded
            )

        return IngestionResult(
            IngestionStatus.ACCEPTED,
            observation=observation.with_pulses(kept),
            discarded_pulses=discarded,
        )

    def _keep_pulse(self, pulse: Pulse, num_sensors: int) -> bool:
        if pulse.sensor >= num_sensors:
            return False
        # Signed: only sweeps past the positive limit are rejected
        if pulse.angle_rad > self._angle_rad:
            return False
        if pulse.duration_sec < self._duration_sec:
            return False
        return True
