################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Path utilities for lighthouse calibration persistence."""

from __future__ import annotations

import os
from pathlib import Path


ROS_PROFILE_DIR_NAME: str = ".ros"
LIGHTHOUSE_INFO_DIR_NAME: str = "lighthouse_info"
DEFAULT_CALIBRATION_BASE: str = "lighthouse_calibration"


def lighthouse_info_directory(home: str | os.PathLike[str] | None = None) -> Path:
    """Return the lighthouse-info directory under the ROS profile directory."""
    home_value: str | None
    if home is None:
        home_value = os.getenv("HOME")
    else:
        home_value = os.fspath(home)
    home_path: Path = Path(home_value) if home_value else Path(".")
    return home_path / ROS_PROFILE_DIR_NAME / LIGHTHOUSE_INFO_DIR_NAME


def calibration_path(
    *,
    calfile: str | None = None,
    home: str | os.PathLike[str] | None = None,
) -> Path:
    """Return the calibration YAML path.

    An explicit calfile is used as given, with "~" expanded. Otherwise the
    default file under the lighthouse-info directory is returned.
    """
    if calfile:
        return Path(os.path.expanduser(calfile))
    return lighthouse_info_directory(home) / f"{DEFAULT_CALIBRATION_BASE}.yaml"
