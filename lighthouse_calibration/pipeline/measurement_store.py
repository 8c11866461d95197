################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Time-ordered store of accepted light observations."""

from __future__ import annotations

import bisect
from dataclasses import dataclass
from typing import Iterator

from lighthouse_calibration.calibration_types.light_observation import (
    LightObservation,
)


class MeasurementStoreError(Exception):
    """Raised when an observation cannot be stored."""


@dataclass(frozen=True)
class StoredObservation:
    """Observation tagged with its arrival time.

    Attributes:
        t_ns: Arrival timestamp in nanoseconds
        observation: Filtered light observation
    """

    t_ns: int
    observation: LightObservation


class MeasurementStore:
    """Ordered multi-map from arrival time to observations.

    Observations are kept sorted by timestamp. Observations that share a
    timestamp are all kept, in insertion order.
    """

    def __init__(self) -> None:
        self._times: list[int] = []
        self._entries: list[StoredObservation] = []

    def __len__(self) -> int:
        return len(self._entries)

    def is_empty(self) -> bool:
        return not self._entries

    def append(self, t_ns: int, observation: LightObservation) -> None:
        """Insert an observation at time t_ns."""
        if not isinstance(t_ns, int) or isinstance(t_ns, bool):
            raise MeasurementStoreError("t_ns must be an int")
        if not isinstance(observation, LightObservation):
            raise MeasurementStoreError("observation must be a LightObservation")

        # Stamps normally arrive in order
        index: int = len(self._times)
        if self._times and t_ns < self._times[-1]:
            index = bisect.bisect_right(self._times, t_ns)
        self._times.insert(index, t_ns)
        self._entries.insert(
            index, StoredObservation(t_ns=t_ns, observation=observation)
        )

    def clear(self) -> None:
        """Discard all stored observations."""
        self._times.clear()
        self._entries.clear()

    def iter_time_order(self) -> Iterator[StoredObservation]:
        """Iterate over stored observations from oldest to newest."""
        return iter(tuple(self._entries))

    def earliest(self) -> StoredObservation | None:
        return self._entries[0] if self._entries else None

    def latest(self) -> StoredObservation | None:
        return self._entries[-1] if self._entries else None

    def duration_ns(self) -> int:
        """Return the time span covered by the store."""
        if not self._entries:
            return 0
        return self._entries[-1].t_ns - self._entries[0].t_ns

    def pulse_count(self) -> int:
        """Return the total number of stored pulses."""
        return sum(len(entry.observation.pulses) for entry in self._entries)
