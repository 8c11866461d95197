################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Robust loss functions applied to squared residual norms.

A loss maps the squared norm s of a residual block to rho(s). The block cost
is 0.5 * rho(s). Iteratively reweighted least squares uses the derivative
rho'(s) as the weight of the block.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class RobustLoss:
    """Named robust loss with a scale.

    Attributes:
        name: One of "huber", "cauchy" or "none"
        scale: Residual norm beyond which the loss is robustified
    """

    name: str = "huber"
    scale: float = 1.0

    def __post_init__(self) -> None:
        """Normalize and validate the loss identifier."""
        name: str = self.name.lower()
        if name in ("identity", "off", "trivial"):
            name = "none"
        if name not in ("huber", "cauchy", "none"):
            raise ValueError(f"Unknown robust loss: {self.name}")
        if not math.isfinite(self.scale) or self.scale <= 0.0:
            raise ValueError("scale must be positive")
        object.__setattr__(self, "name", name)

    def rho(self, sq_norm: float) -> float:
        """Return the robustified squared norm."""
        if self.name == "huber":
            return huber_rho(sq_norm, self.scale)
        if self.name == "cauchy":
            return cauchy_rho(sq_norm, self.scale)
        return sq_norm

    def weight(self, sq_norm: float) -> float:
        """Return the IRLS weight for a squared norm."""
        if self.name == "huber":
            return huber_weight(sq_norm, self.scale)
        if self.name == "cauchy":
            return cauchy_weight(sq_norm, self.scale)
        return 1.0


def huber_rho(sq_norm: float, scale: float) -> float:
    """Return the Huber loss of a squared norm."""
    b: float = scale * scale
    if sq_norm <= b:
        return sq_norm
    return 2.0 * scale * math.sqrt(sq_norm) - b


def huber_weight(sq_norm: float, scale: float) -> float:
    """Return the Huber weight for a squared residual norm."""
    if sq_norm <= scale * scale:
        return 1.0
    return scale / math.sqrt(sq_norm)


def cauchy_rho(sq_norm: float, scale: float) -> float:
    """Return the Cauchy loss of a squared norm."""
    b: float = scale * scale
    return b * math.log1p(sq_norm / b)


def cauchy_weight(sq_norm: float, scale: float) -> float:
    """Return the Cauchy weight for a squared residual norm."""
    return 1.0 / (1.0 + sq_norm / (scale * scale))
