"""Image composition module.

This module handles:
- Patching the system image for a legacy vendor ABI
- Overlaying system and vbmeta images onto the device image set
- Publishing the composed archive with the device build artifacts
"""

from mixed_build.compose.composer import ComposeResult, compose_images
from mixed_build.compose.patcher import patch_system_image
from mixed_build.compose.publisher import publish_artifacts

__all__ = [
    "ComposeResult",
    "compose_images",
    "patch_system_image",
    "publish_artifacts",
]
