"""Shared type definitions for mixed_build.

This module contains dataclasses, enums, and archive layout constants shared
across subpackages to avoid circular imports.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

# Members of a target-files archive
SYSTEM_IMAGE_MEMBER = "IMAGES/system.img"
VBMETA_IMAGE_MEMBER = "IMAGES/vbmeta.img"
SYSTEM_MATRIX_MEMBER = "META/system_matrix.xml"
SYSTEM_MANIFEST_MEMBER = "META/system_manifest.xml"
VENDOR_MATRIX_MEMBER = "META/vendor_matrix.xml"
VENDOR_MANIFEST_MEMBER = "META/vendor_manifest.xml"
BUILD_PROP_MEMBER = "SYSTEM/build.prop"

# File names inside the device image archive
SYSTEM_IMAGE_NAME = "system.img"
VBMETA_IMAGE_NAME = "vbmeta.img"


class VbmetaSource(str, Enum):
    """Where the composed vbmeta.img came from."""

    UNTOUCHED = "untouched"
    OVERRIDE = "override"
    SYSTEM = "system"


@dataclass
class BuildInputs:
    """Archives located in the system and device build directories.

    Attributes:
        system_target_files: Target-files archive of the system build.
        device_target_files: Target-files archive of the device build.
        device_image_archive: Flashable image archive of the device build.
    """

    system_target_files: Path
    device_target_files: Path
    device_image_archive: Path


__all__ = [
    "BUILD_PROP_MEMBER",
    "SYSTEM_IMAGE_MEMBER",
    "SYSTEM_IMAGE_NAME",
    "SYSTEM_MANIFEST_MEMBER",
    "SYSTEM_MATRIX_MEMBER",
    "VBMETA_IMAGE_MEMBER",
    "VBMETA_IMAGE_NAME",
    "VENDOR_MANIFEST_MEMBER",
    "VENDOR_MATRIX_MEMBER",
    "BuildInputs",
    "VbmetaSource",
]
