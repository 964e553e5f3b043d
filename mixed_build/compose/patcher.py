"""System image patching for legacy vendor ABIs.

The patch procedure is an external script that rewrites IMAGES/system.img
inside a target-files archive in place. It always runs on a private copy
because the original archive may be a link into shared storage.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from mixed_build.archives.extract import extract_members
from mixed_build.errors import PatchError
from mixed_build.tools import ToolEnvironment, run_tool
from mixed_build.types import SYSTEM_IMAGE_MEMBER

logger = logging.getLogger(__name__)


def compose_patch_command(
    script: Path,
    vendor_version: str,
    target_files: Path,
    spl_argument: str | None = None,
) -> list[str]:
    """Compose the patch procedure command line.

    Args:
        script: Patch procedure executable.
        vendor_version: Vendor version passed with ``-v``.
        target_files: Writable target-files copy to patch.
        spl_argument: Vendor patch level appended on mismatch.

    Returns:
        Command as list of strings suitable for subprocess.
    """
    cmd = [str(script), "-v", vendor_version, str(target_files)]
    if spl_argument is not None:
        cmd.append(spl_argument)
    return cmd


def patch_system_image(
    script: Path,
    vendor_version: str,
    target_files: Path,
    work_dir: Path,
    extract_dir: Path,
    tool_env: ToolEnvironment | None = None,
    spl_argument: str | None = None,
) -> Path:
    """Patch the system image and re-extract it.

    Args:
        script: Patch procedure executable.
        vendor_version: Vendor version the system must support.
        target_files: Original system target-files archive (left untouched).
        work_dir: Directory receiving the writable copy.
        extract_dir: Directory holding the earlier system extraction; its
            system image is overwritten.
        tool_env: Search paths for the patch procedure.
        spl_argument: Vendor patch level appended on mismatch.

    Returns:
        Path to the patched system image.

    Raises:
        PatchError: If copying or the patch procedure fails.
        ExtractionError: If the patched copy no longer holds a system image.
    """
    work_dir.mkdir(parents=True, exist_ok=True)
    copy_path = work_dir / target_files.name
    try:
        # copyfile follows symlinks, so the copy is a regular private file
        shutil.copyfile(target_files, copy_path)
    except OSError as e:
        raise PatchError(f"Failed to copy {target_files} for patching: {e}") from e

    cmd = compose_patch_command(script, vendor_version, copy_path, spl_argument)
    run_tool(cmd, tool_env=tool_env, error_cls=PatchError)

    extract_members(copy_path, extract_dir, [SYSTEM_IMAGE_MEMBER])

    logger.info("Patched system image for vendor version %s", vendor_version)
    return extract_dir / SYSTEM_IMAGE_MEMBER


__all__ = ["compose_patch_command", "patch_system_image"]
