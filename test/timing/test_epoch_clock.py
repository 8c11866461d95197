################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Tests for epoch discretization."""

from __future__ import annotations

import pytest

from lighthouse_calibration.timing.epoch_clock import NS_PER_SEC
from lighthouse_calibration.timing.epoch_clock import EpochClock
from lighthouse_calibration.timing.epoch_clock import ns_to_sec
from lighthouse_calibration.timing.epoch_clock import round_half_away
from lighthouse_calibration.timing.epoch_clock import sec_to_ns


def test_sec_ns_conversions() -> None:
    """Check seconds and nanoseconds convert both ways."""
    assert sec_to_ns(1.5) == 1_500_000_000
    assert sec_to_ns(0.1) == 100_000_000
    assert ns_to_sec(250_000_000) == 0.25


@pytest.mark.parametrize(
    "numerator,expected",
    [(0, 0), (1, 0), (2, 1), (3, 1), (6, 2), (-1, 0), (-2, -1), (-6, -2)],
)
def test_round_half_away(numerator: int, expected: int) -> None:
    """Ensure halves round away from zero."""
    assert round_half_away(numerator, 4) == expected


def test_round_half_away_rejects_bad_denominator() -> None:
    """The denominator must be positive."""
    with pytest.raises(ValueError):
        round_half_away(1, 0)


def test_bin_index_at_boundaries() -> None:
    """Check timestamps exactly half a bin away round outward."""
    clock: EpochClock = EpochClock.from_resolution_sec(0.1)
    assert clock.resolution_ns == 100_000_000
    assert clock.bin_index(0) == 0
    assert clock.bin_index(49_999_999) == 0
    assert clock.bin_index(50_000_000) == 1
    assert clock.bin_index(149_999_999) == 1
    assert clock.bin_index(-50_000_000) == -1
    assert clock.bin_index(-49_999_999) == 0


def test_bin_time() -> None:
    """Ensure bin times are integer multiples of the resolution."""
    clock: EpochClock = EpochClock.from_resolution_sec(0.1)
    assert clock.bin_time_ns(12) == 12 * 100_000_000
    assert clock.bin_time_sec(12) == pytest.approx(1.2)


def test_large_timestamps_bin_exactly() -> None:
    """Check wall-clock scale timestamps do not lose precision."""
    clock: EpochClock = EpochClock.from_resolution_sec(0.1)
    t_ns: int = 1_700_000_000 * NS_PER_SEC + 50_000_000
    assert clock.bin_index(t_ns) == 17_000_000_001


def test_resolution_must_be_positive() -> None:
    """A zero resolution is rejected."""
    with pytest.raises(ValueError):
        EpochClock(0)
