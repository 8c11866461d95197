################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Single-shot inactivity deadline."""

from __future__ import annotations


class InactivityTimer:
    """Deadline that is pushed back by activity and fires once.

    The timer is armed by reset() and disarmed when it fires or is
    cancelled. It holds no thread of its own; the owner polls expired().
    """

    def __init__(self, timeout_ns: int) -> None:
        if timeout_ns <= 0:
            raise ValueError("timeout_ns must be positive")
        self._timeout_ns: int = int(timeout_ns)
        self._deadline_ns: int | None = None

    @property
    def timeout_ns(self) -> int:
        return self._timeout_ns

    @property
    def armed(self) -> bool:
        return self._deadline_ns is not None

    @property
    def deadline_ns(self) -> int | None:
        return self._deadline_ns

    def reset(self, now_ns: int) -> None:
        """Arm the timer to fire one timeout after now_ns."""
        self._deadline_ns = int(now_ns) + self._timeout_ns

    def cancel(self) -> None:
        """Disarm the timer."""
        self._deadline_ns = None

    def expired(self, now_ns: int) -> bool:
        """Return True once when the deadline has passed, then disarm."""
        if self._deadline_ns is None:
            return False
        if int(now_ns) < self._deadline_ns:
            return False
        self._deadline_ns = None
        return True
