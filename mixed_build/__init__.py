"""Mixed build assembler - combine a system build with a device build.

This package verifies interface compatibility between independently built
system and vendor artifacts, optionally patches the system image, and
repackages the result as a flashable device image archive.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
