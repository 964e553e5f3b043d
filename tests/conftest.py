"""Shared fixtures: fake system and device builds plus stand-in tools."""

import sys
from pathlib import Path

import pytest
from helpers import (
    PATCH_SCRIPT,
    make_device_build,
    make_system_build,
    write_script,
)


@pytest.fixture
def system_build(tmp_path: Path) -> Path:
    """A system build directory."""
    return make_system_build(tmp_path / "system")


@pytest.fixture
def device_build(tmp_path: Path) -> Path:
    """A device build directory with vbmeta."""
    return make_device_build(tmp_path / "device")


@pytest.fixture
def recording_checker(tmp_path: Path) -> Path:
    """Checker that records its arguments and always passes."""
    log = tmp_path / "checker.log"
    return write_script(
        tmp_path / "tools" / "check_vintf",
        f'#!/bin/sh\necho "$@" >> "{log}"\nexit 0\n',
    )


@pytest.fixture
def failing_checker(tmp_path: Path) -> Path:
    """Checker that rejects every pair."""
    return write_script(
        tmp_path / "tools" / "check_vintf_fail",
        "#!/bin/sh\necho 'incompatible HAL versions'\nexit 1\n",
    )

@pytest.fixture
def patch_script(tmp_path: Path) -> Path:
    """Patch procedure that records its arguments and rewrites system.img.

    Arguments are recorded in ``patch.log`` next to the tools directory.
    """
    return write_script(
        tmp_path / "tools" / "modify_system",
        PATCH_SCRIPT.format(python=sys.executable, log=str(tmp_path / "patch.log")),
    )
