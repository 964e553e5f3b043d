"""Compatibility checks between system and device builds.

This module handles:
- Running the interface compatibility checker in both directions
- Comparing security patch levels to decide on the patch argument
"""

from mixed_build.compat.checker import check_compatibility, verify_both_directions
from mixed_build.compat.spl import (
    SplComparison,
    compare_security_patch_levels,
    read_build_property,
)

__all__ = [
    "SplComparison",
    "check_compatibility",
    "compare_security_patch_levels",
    "read_build_property",
    "verify_both_directions",
]
