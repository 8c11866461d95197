################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Group stored sweep angles into discrete epochs and average them.

Every pulse of every stored observation is assigned to the epoch bin of its
observation's timestamp. Angles that share a (tracker, lighthouse, bin,
sensor, axis) key are replaced by their arithmetic mean. Keys with no angles
are absent; missing data is never filled with zeros.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from lighthouse_calibration.pipeline.measurement_store import StoredObservation
from lighthouse_calibration.timing.epoch_clock import EpochClock


_LOG: logging.Logger = logging.getLogger(__name__)


class BundlerError(Exception):
    """Raised when bundle lookups are invalid."""


@dataclass(frozen=True, order=True)
class BundleKey:
    """Identifies one averaged angle.

    Attributes:
        tracker: Tracker serial
        lighthouse: Lighthouse serial
        bin_index: Epoch bin index
        sensor: Sensor index
        axis: Sweep axis
    """

    tracker: str
    lighthouse: str
    bin_index: int
    sensor: int
    axis: int


class Bundle:
    """Flat mapping from bundle keys to mean angles, with grouping helpers."""

    def __init__(self, clock: EpochClock, means: dict[BundleKey, float]) -> None:
        self._clock: EpochClock = clock
        self._means: dict[BundleKey, float] = dict(means)
        self._bins: dict[tuple[str, str], set[int]] = {}
        for key in self._means:
            self._bins.setdefault((key.tracker, key.lighthouse), set()).add(
                key.bin_index
            )

    @property
    def clock(self) -> EpochClock:
        return self._clock

    def __len__(self) -> int:
        return len(self._means)

    def __contains__(self, key: object) -> bool:
        return key in self._means

    def mean(self, key: BundleKey) -> float:
        """Return the mean angle stored under a key."""
        try:
            return self._means[key]
        except KeyError as exc:
            raise BundlerError(f"No angles bundled for {key}") from exc

    def get(self, key: BundleKey) -> float | None:
        return self._means.get(key)

    def pairs(self) -> list[tuple[str, str]]:
        """Return (tracker, lighthouse) pairs that have any data, sorted."""
        return sorted(self._bins)

    def bins_for(self, tracker: str, lighthouse: str) -> list[int]:
        """Return the sorted epoch bins present for a pair."""
        return sorted(self._bins.get((tracker, lighthouse), ()))

    def angles_at(
        self, tracker: str, lighthouse: str, bin_index: int, sensor: int
    ) -> tuple[float, float] | None:
        """Return (axis 0, axis 1) means for a sensor, or None if incomplete."""
        horizontal: float | None = self._means.get(
            BundleKey(tracker, lighthouse, bin_index, sensor, 0)
        )
        vertical: float | None = self._means.get(
            BundleKey(tracker, lighthouse, bin_index, sensor, 1)
        )
        if horizontal is None or vertical is None:
            return None
        return horizontal, vertical


def bundle_measurements(
    entries: Iterable[StoredObservation], resolution_sec: float
) -> Bundle:
    """Bin stored observations by time and average angles per key."""
    clock: EpochClock = EpochClock.from_resolution_sec(resolution_sec)

    sums: dict[BundleKey, float] = {}
    counts: dict[BundleKey, int] = {}
    observations: int = 0
    for entry in entries:
        observations += 1
        bin_index: int = clock.bin_index(entry.t_ns)
        observation = entry.observation
        for pulse in observation.pulses:
            key: BundleKey = BundleKey(
                tracker=observation.tracker,
                lighthouse=observation.lighthouse,
                bin_index=bin_index,
                sensor=pulse.sensor,
                axis=observation.axis,
            )
            sums[key] = sums.get(key, 0.0) + pulse.angle_rad
            counts[key] = counts.get(key, 0) + 1

    means: dict[BundleKey, float] = {
        key: total / counts[key] for key, total in sums.items()
    }
    bundle: Bundle = Bundle(clock, means)
    _LOG.info(
        "Bundled %d observations into %d angles over %d tracker/lighthouse pairs",
        observations,
        len(bundle),
        len(bundle.pairs()),
    )
    return bundle
