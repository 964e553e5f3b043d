"""Archive handling module.

This module handles:
- Locating build archives by naming pattern
- Extracting selected members into the scratch workspace
"""

from mixed_build.archives.extract import extract_members
from mixed_build.archives.locate import find_artifact, locate_build_inputs

__all__ = ["extract_members", "find_artifact", "locate_build_inputs"]
