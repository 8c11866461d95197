################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Discretization of measurement timestamps into epochs.

Timestamps are integer nanoseconds. An epoch is identified by an integer bin
index, the timestamp divided by the resolution and rounded to the nearest
integer with ties rounded away from zero. Integer arithmetic keeps the
binning exact for every representable timestamp.
"""

from __future__ import annotations

from dataclasses import dataclass


# Units: ns/s. Meaning: nanoseconds per second
NS_PER_SEC: int = 1_000_000_000


def sec_to_ns(t_sec: float) -> int:
    """Convert seconds to integer nanoseconds, rounding to nearest."""
    return int(round(t_sec * NS_PER_SEC))


def ns_to_sec(t_ns: int) -> float:
    """Convert integer nanoseconds to seconds."""
    return t_ns / NS_PER_SEC


def round_half_away(numerator: int, denominator: int) -> int:
    """Return numerator / denominator rounded half away from zero."""
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    if numerator >= 0:
        return (2 * numerator + denominator) // (2 * denominator)
    return -((-2 * numerator + denominator) // (2 * denominator))


@dataclass(frozen=True)
class EpochClock:
    """Maps timestamps to epoch bins at a fixed resolution.

    Attributes:
        resolution_ns: Bin width in nanoseconds
    """

    resolution_ns: int

    def __post_init__(self) -> None:
        """Validate the resolution."""
        if not isinstance(self.resolution_ns, int) or isinstance(
            self.resolution_ns, bool
        ):
            raise ValueError("resolution_ns must be an int")
        if self.resolution_ns <= 0:
            raise ValueError("resolution_ns must be positive")

    @staticmethod
    def from_resolution_sec(resolution_sec: float) -> EpochClock:
        """Create a clock from a resolution in seconds."""
        return EpochClock(sec_to_ns(resolution_sec))

    def bin_index(self, t_ns: int) -> int:
        """Return the epoch bin containing a timestamp."""
        return round_half_away(int(t_ns), self.resolution_ns)

    def bin_time_ns(self, bin_index: int) -> int:
        """Return the representative timestamp of an epoch bin."""
        return int(bin_index) * self.resolution_ns

    def bin_time_sec(self, bin_index: int) -> float:
        """Return the representative time of an epoch bin in seconds."""
        return ns_to_sec(self.bin_time_ns(bin_index))
