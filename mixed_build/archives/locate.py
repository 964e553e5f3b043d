"""Locate build archives inside build directories.

A build directory must contain exactly one file matching each expected
pattern. Zero matches and multiple matches are both fatal input errors.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from mixed_build.errors import AmbiguousArtifactError, ArtifactNotFoundError
from mixed_build.types import BuildInputs

if TYPE_CHECKING:
    from mixed_build.config import Settings

logger = logging.getLogger(__name__)


def find_artifact(directory: Path, pattern: str) -> Path:
    """Find the single file matching a glob pattern under a directory.

    The search is recursive.

    Args:
        directory: Directory to search.
        pattern: Shell-style glob, e.g. ``*-img-*.zip``.

    Returns:
        Path to the matching file.

    Raises:
        ArtifactNotFoundError: If the directory is missing or nothing matches.
        AmbiguousArtifactError: If more than one file matches.
    """
    if not directory.is_dir():
        raise ArtifactNotFoundError(
            f"Build directory not found: {directory}",
            path=directory,
            pattern=pattern,
        )

    matches = sorted(p for p in directory.rglob(pattern) if p.is_file())

    if not matches:
        raise ArtifactNotFoundError(
            f"Cannot find {pattern} in {directory}",
            path=directory,
            pattern=pattern,
        )
    if len(matches) > 1:
        raise AmbiguousArtifactError(directory, pattern, matches)

    logger.debug("Found %s for pattern %s", matches[0], pattern)
    return matches[0]


def locate_build_inputs(
    system_build_dir: Path,
    device_build_dir: Path,
    settings: Settings,
) -> BuildInputs:
    """Locate the three archives a mixed build consumes.

    Args:
        system_build_dir: Directory of the system build.
        device_build_dir: Directory of the device build.
        settings: Settings providing the naming patterns.

    Returns:
        BuildInputs with resolved archive paths.
    """
    inputs = BuildInputs(
        system_target_files=find_artifact(
            system_build_dir, settings.target_files_pattern
        ),
        device_target_files=find_artifact(
            device_build_dir, settings.target_files_pattern
        ),
        device_image_archive=find_artifact(
            device_build_dir, settings.image_archive_pattern
        ),
    )
    logger.info("System target files: %s", inputs.system_target_files)
    logger.info("Device target files: %s", inputs.device_target_files)
    logger.info("Device image archive: %s", inputs.device_image_archive)
    return inputs


__all__ = ["find_artifact", "locate_build_inputs"]
