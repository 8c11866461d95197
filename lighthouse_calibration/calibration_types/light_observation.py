################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Light sweep observation types."""

from __future__ import annotations

import math
from dataclasses import dataclass
from dataclasses import replace
from typing import Iterable


# Number of sweep axes per lighthouse
NUM_AXES: int = 2


@dataclass(frozen=True)
class Pulse:
    """Single photodiode hit from one lighthouse sweep.

    Attributes:
        sensor: Photodiode index on the tracker
        angle_rad: Sweep angle in radians
        duration_sec: Pulse width in seconds
    """

    sensor: int
    angle_rad: float
    duration_sec: float

    def __post_init__(self) -> None:
        """Validate pulse fields."""
        if not isinstance(self.sensor, int) or isinstance(self.sensor, bool):
            raise ValueError("sensor must be an int")
        if self.sensor < 0:
            raise ValueError("sensor must be non-negative")
        angle: float = float(self.angle_rad)
        duration: float = float(self.duration_sec)
        if not math.isfinite(angle):
            raise ValueError("angle_rad must be finite")
        if not math.isfinite(duration):
            raise ValueError("duration_sec must be finite")
        object.__setattr__(self, "angle_rad", angle)
        object.__setattr__(self, "duration_sec", duration)


@dataclass(frozen=True)
class LightObservation:
    """All pulses seen by one tracker for one sweep of one lighthouse axis.

    Attributes:
        tracker: Tracker serial
        lighthouse: Lighthouse serial
        axis: Sweep axis, 0 for horizontal and 1 for vertical
        pulses: Pulses received during the sweep
    """

    tracker: str
    lighthouse: str
    axis: int
    pulses: tuple[Pulse, ...]

    def __post_init__(self) -> None:
        """Validate observation fields."""
        if not isinstance(self.tracker, str) or not self.tracker:
            raise ValueError("tracker must be a non-empty string")
        if not isinstance(self.lighthouse, str) or not self.lighthouse:
            raise ValueError("lighthouse must be a non-empty string")
        if self.axis not in range(NUM_AXES):
            raise ValueError("axis must be 0 or 1")
        pulses: tuple[Pulse, ...] = tuple(self.pulses)
        for pulse in pulses:
            if not isinstance(pulse, Pulse):
                raise ValueError("pulses must contain Pulse entries")
        object.__setattr__(self, "pulses", pulses)

    def with_pulses(self, pulses: Iterable[Pulse]) -> LightObservation:
        """Return a copy carrying a different set of pulses."""
        return replace(self, pulses=tuple(pulses))
