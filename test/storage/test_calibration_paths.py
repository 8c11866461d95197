################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Tests for calibration path utilities."""

from __future__ import annotations

from pathlib import Path

import pytest

from lighthouse_calibration.storage.path_utils import calibration_path
from lighthouse_calibration.storage.path_utils import lighthouse_info_directory


def test_default_calibration_path() -> None:
    """Ensure the default path uses the lighthouse info directory."""
    home_dir: Path = Path("/home/oasis")
    path: Path = calibration_path(home=home_dir)

    assert path == (
        home_dir / ".ros" / "lighthouse_info" / "lighthouse_calibration.yaml"
    )


def test_explicit_calfile_expands_home(monkeypatch: pytest.MonkeyPatch) -> None:
    """Check an explicit calfile is used with the user directory expanded."""
    monkeypatch.setenv("HOME", "/home/oasis")

    assert calibration_path(calfile="/tmp/cal.yaml") == Path("/tmp/cal.yaml")
    assert calibration_path(calfile="~/cal.yaml") == Path("/home/oasis/cal.yaml")


def test_directory_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOME", "/home/vive")
    assert lighthouse_info_directory() == Path("/home/vive/.ros/lighthouse_info")
