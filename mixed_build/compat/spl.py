"""Security patch level comparison.

Reads one property from each side's build.prop and decides whether the
system image patch procedure needs the vendor's patch level as an extra
argument. Comparison is plain string equality; a missing value is the empty
string and counts as a distinct value.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_SPL_PROPERTY = "ro.build.version.security_patch"


def read_build_property(prop_file: Path, key: str) -> str:
    """Read the value of a property from a ``key=value`` file.

    Args:
        prop_file: Build property file.
        key: Property name.

    Returns:
        Value of the first matching line, stripped; empty string if the file
        or the key is absent.
    """
    if not prop_file.is_file():
        logger.warning("Build property file not found: %s", prop_file)
        return ""

    pattern = re.compile(rf"^\s*{re.escape(key)}\s*=(.*)$")
    with prop_file.open(encoding="utf-8", errors="replace") as f:
        for line in f:
            match = pattern.match(line)
            if match:
                return match.group(1).strip()

    logger.debug("%s not set in %s", key, prop_file)
    return ""


@dataclass
class SplComparison:
    """Security patch levels of both sides.

    Attributes:
        system_spl: Patch level of the system build.
        vendor_spl: Patch level of the device build.
    """

    system_spl: str
    vendor_spl: str

    @property
    def mismatch(self) -> bool:
        """True if the two patch levels differ."""
        return self.system_spl != self.vendor_spl

    def patch_argument(self, patch_configured: bool) -> str | None:
        """Extra argument for the patch procedure.

        Args:
            patch_configured: Whether a patch procedure was supplied.

        Returns:
            The vendor patch level when patching is configured and the levels
            differ, otherwise None.
        """
        if patch_configured and self.mismatch:
            return self.vendor_spl
        return None


def compare_security_patch_levels(
    system_prop: Path,
    vendor_prop: Path,
    key: str = DEFAULT_SPL_PROPERTY,
) -> SplComparison:
    """Read and compare the security patch level of both builds.

    Args:
        system_prop: build.prop extracted from the system target files.
        vendor_prop: build.prop extracted from the device target files.
        key: Property holding the patch level.

    Returns:
        SplComparison of both values.
    """
    comparison = SplComparison(
        system_spl=read_build_property(system_prop, key),
        vendor_spl=read_build_property(vendor_prop, key),
    )
    if comparison.mismatch:
        logger.info(
            "Security patch level mismatch: system=%r vendor=%r",
            comparison.system_spl,
            comparison.vendor_spl,
        )
    else:
        logger.info("Security patch levels match: %r", comparison.system_spl)
    return comparison


__all__ = [
    "DEFAULT_SPL_PROPERTY",
    "SplComparison",
    "compare_security_patch_levels",
    "read_build_property",
]
