"""Mixed build pipeline.

This module provides the high-level API:
- run_mixed_build(): validate, locate, extract, verify, patch, compose, publish

Steps run strictly in order inside one scratch workspace. Any failure
aborts the run before the output directory is touched, and the workspace is
removed on every exit path.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from mixed_build.archives.extract import extract_members
from mixed_build.archives.locate import locate_build_inputs
from mixed_build.compat.checker import verify_both_directions
from mixed_build.compat.spl import SplComparison, compare_security_patch_levels
from mixed_build.compose.composer import compose_images
from mixed_build.compose.patcher import patch_system_image
from mixed_build.compose.publisher import compute_file_hash, publish_artifacts
from mixed_build.config import Settings, get_settings
from mixed_build.errors import ArtifactNotFoundError
from mixed_build.schema import MixedBuildRequest
from mixed_build.tools import ToolEnvironment, prepare_otatools
from mixed_build.types import (
    BUILD_PROP_MEMBER,
    SYSTEM_IMAGE_MEMBER,
    SYSTEM_MANIFEST_MEMBER,
    SYSTEM_MATRIX_MEMBER,
    VBMETA_IMAGE_MEMBER,
    VENDOR_MANIFEST_MEMBER,
    VENDOR_MATRIX_MEMBER,
    BuildInputs,
    VbmetaSource,
)
from mixed_build.workspace import scratch_workspace

logger = logging.getLogger(__name__)

SYSTEM_MEMBERS = [
    SYSTEM_IMAGE_MEMBER,
    SYSTEM_MATRIX_MEMBER,
    SYSTEM_MANIFEST_MEMBER,
    BUILD_PROP_MEMBER,
]
SYSTEM_OPTIONAL_MEMBERS = [VBMETA_IMAGE_MEMBER]
DEVICE_MEMBERS = [
    VENDOR_MATRIX_MEMBER,
    VENDOR_MANIFEST_MEMBER,
    BUILD_PROP_MEMBER,
]


@dataclass
class MixedBuildResult:
    """Result of a mixed build run.

    Attributes:
        inputs: Archives the run consumed.
        published_archive: Path of the composed archive in the output directory.
        sha256: SHA-256 of the published archive.
        verified: Whether the compatibility checker ran.
        patched: Whether the system image was patched.
        spl: Security patch levels of both sides.
        vbmeta_source: Where the composed vbmeta.img came from.
        entries: Entries of the composed archive.
    """

    inputs: BuildInputs
    published_archive: Path
    sha256: str
    verified: bool
    patched: bool
    spl: SplComparison
    vbmeta_source: VbmetaSource
    entries: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "system_target_files": str(self.inputs.system_target_files),
            "device_target_files": str(self.inputs.device_target_files),
            "device_image_archive": str(self.inputs.device_image_archive),
            "published_archive": str(self.published_archive),
            "sha256": self.sha256,
            "verified": self.verified,
            "patched": self.patched,
            "system_security_patch": self.spl.system_spl,
            "vendor_security_patch": self.spl.vendor_spl,
            "vbmeta_source": self.vbmeta_source.value,
            "entries": self.entries,
        }


def check_explicit_inputs(request: MixedBuildRequest) -> None:
    """Check that files named explicitly in the request exist.

    Args:
        request: Validated request.

    Raises:
        ArtifactNotFoundError: If a named file is missing.
    """
    named = {
        "override vbmeta image": request.override_vbmeta_image,
        "otatools archive": request.otatools_zip,
        "modify system script": request.modify_system_script,
    }
    for label, path in named.items():
        if path is not None and not path.is_file():
            raise ArtifactNotFoundError(f"Cannot find {label}: {path}", path=path)


def run_mixed_build(
    request: MixedBuildRequest,
    settings: Settings | None = None,
) -> MixedBuildResult:
    """Assemble a mixed build.

    Args:
        request: Validated request.
        settings: Settings; loaded from the environment if not provided.

    Returns:
        MixedBuildResult describing the published archive.

    Raises:
        MixedBuildError: On any failure; nothing is published in that case.
    """
    if settings is None:
        settings = get_settings()

    check_explicit_inputs(request)
    inputs = locate_build_inputs(
        request.system_build_dir, request.device_build_dir, settings
    )

    with scratch_workspace(settings.tmp_dir) as ws:
        logger.info("Workspace: %s", ws.root)

        tool_env = ToolEnvironment(timeout=settings.tool_timeout)
        if request.otatools_zip is not None:
            tool_env = prepare_otatools(
                request.otatools_zip, ws.otatools_dir, timeout=settings.tool_timeout
            )

        extract_members(
            inputs.system_target_files,
            ws.system_dir,
            SYSTEM_MEMBERS,
            optional=SYSTEM_OPTIONAL_MEMBERS,
        )
        extract_members(inputs.device_target_files, ws.device_dir, DEVICE_MEMBERS)
        extract_members(inputs.device_image_archive, ws.images_dir)

        verified = verify_both_directions(
            request.check_tool, ws.system_dir, ws.device_dir, tool_env
        )

        spl = compare_security_patch_levels(
            ws.system_dir / BUILD_PROP_MEMBER,
            ws.device_dir / BUILD_PROP_MEMBER,
            key=settings.security_patch_property,
        )

        system_image = ws.system_dir / SYSTEM_IMAGE_MEMBER
        if request.vendor_version is not None and request.modify_system_script:
            system_image = patch_system_image(
                request.modify_system_script,
                request.vendor_version,
                inputs.system_target_files,
                ws.patch_dir,
                ws.system_dir,
                tool_env=tool_env,
                spl_argument=spl.patch_argument(patch_configured=True),
            )

        system_vbmeta = ws.system_dir / VBMETA_IMAGE_MEMBER
        composed = compose_images(
            ws.images_dir,
            system_image,
            ws.root / inputs.device_image_archive.name,
            system_vbmeta=system_vbmeta if system_vbmeta.is_file() else None,
            override_vbmeta=request.override_vbmeta_image,
        )

        published = publish_artifacts(
            request.device_build_dir,
            request.out_dir,
            composed.archive_path,
            inputs.device_image_archive.relative_to(request.device_build_dir),
        )

    result = MixedBuildResult(
        inputs=inputs,
        published_archive=published,
        sha256=compute_file_hash(published),
        verified=verified,
        patched=request.patch_requested,
        spl=spl,
        vbmeta_source=composed.vbmeta_source,
        entries=composed.entries,
    )
    logger.info("Mixed build written to %s", published)
    return result


__all__ = [
    "DEVICE_MEMBERS",
    "SYSTEM_MEMBERS",
    "SYSTEM_OPTIONAL_MEMBERS",
    "MixedBuildResult",
    "check_explicit_inputs",
    "run_mixed_build",
]
