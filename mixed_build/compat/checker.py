"""Interface compatibility verification.

The checker is an external executable invoked as
``<checker> <manifest> <matrix>``. A non-zero exit means the manifest does not
satisfy the matrix. Both directions are checked: the device's vendor manifest
against the system matrix, and the system manifest against the device's
vendor matrix.
"""

from __future__ import annotations

import logging
from pathlib import Path

from mixed_build.errors import CompatibilityError
from mixed_build.tools import ToolEnvironment, make_executable, run_tool
from mixed_build.types import (
    SYSTEM_MANIFEST_MEMBER,
    SYSTEM_MATRIX_MEMBER,
    VENDOR_MANIFEST_MEMBER,
    VENDOR_MATRIX_MEMBER,
)

logger = logging.getLogger(__name__)


def check_compatibility(
    checker: Path,
    manifest: Path,
    matrix: Path,
    tool_env: ToolEnvironment | None = None,
) -> None:
    """Check one manifest against one compatibility matrix.

    Args:
        checker: Path to the checker executable.
        manifest: Manifest describing what one side provides.
        matrix: Matrix describing what the other side requires.
        tool_env: Search paths for the checker.

    Raises:
        CompatibilityError: If the checker reports incompatibility.
    """
    make_executable(checker)
    run_tool(
        [checker, manifest, matrix],
        tool_env=tool_env,
        error_cls=CompatibilityError,
    )
    logger.info("Compatible: %s against %s", manifest.name, matrix.name)


def verify_both_directions(
    checker: Path | None,
    system_dir: Path,
    device_dir: Path,
    tool_env: ToolEnvironment | None = None,
) -> bool:
    """Check system and device interfaces against each other.

    Args:
        checker: Path to the checker executable. If None or missing on
            disk, verification is skipped.
        system_dir: Extracted system target files.
        device_dir: Extracted device target files.
        tool_env: Search paths for the checker.

    Returns:
        True if both checks ran and passed, False if verification was skipped.

    Raises:
        CompatibilityError: If either direction fails.
    """
    if checker is None:
        logger.warning("No compatibility checker given, skipping verification")
        return False
    if not checker.is_file():
        logger.warning(
            "Compatibility checker %s not found, skipping verification", checker
        )
        return False

    check_compatibility(
        checker,
        device_dir / VENDOR_MANIFEST_MEMBER,
        system_dir / SYSTEM_MATRIX_MEMBER,
        tool_env,
    )
    check_compatibility(
        checker,
        system_dir / SYSTEM_MANIFEST_MEMBER,
        device_dir / VENDOR_MATRIX_MEMBER,
        tool_env,
    )
    return True


__all__ = ["check_compatibility", "verify_both_directions"]
