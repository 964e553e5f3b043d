"""Scratch workspace lifecycle.

A run owns exactly one temporary directory. It is created when the
``scratch_workspace`` context is entered and removed when it exits, whether
the run succeeded, raised, or received SIGTERM.
"""

from __future__ import annotations

import logging
import shutil
import signal
import tempfile
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from types import FrameType

from mixed_build.errors import MixedBuildError, WorkspaceError

logger = logging.getLogger(__name__)

WORKSPACE_PREFIX = "mixed_build."


class InterruptedRunError(MixedBuildError):
    """Raised inside the workspace scope when the process is terminated."""

    def __init__(self, signum: int) -> None:
        name = signal.Signals(signum).name
        super().__init__(f"Interrupted by {name}", code="interrupted")
        self.signum = signum


@dataclass
class Workspace:
    """Layout of the scratch workspace.

    Attributes:
        root: Temporary directory owned by this run.
    """

    root: Path

    @property
    def system_dir(self) -> Path:
        """Extracted system target files."""
        return self.root / "system_target_files"

    @property
    def device_dir(self) -> Path:
        """Extracted device target files."""
        return self.root / "device_target_files"

    @property
    def images_dir(self) -> Path:
        """Extracted device image archive."""
        return self.root / "device_images"

    @property
    def otatools_dir(self) -> Path:
        """Extracted host tools."""
        return self.root / "otatools"

    @property
    def patch_dir(self) -> Path:
        """Writable copy of the system target files."""
        return self.root / "patch"


def _raise_interrupted(signum: int, frame: FrameType | None) -> None:
    raise InterruptedRunError(signum)


@contextmanager
def scratch_workspace(parent: Path | None = None) -> Iterator[Workspace]:
    """Create a scratch workspace and remove it on exit.

    While the context is active in the main thread, SIGTERM raises
    InterruptedRunError so that cleanup runs.

    Args:
        parent: Directory to create the workspace in (system default if None).

    Yields:
        Workspace rooted at a new temporary directory.

    Raises:
        WorkspaceError: If the directory cannot be created.
    """
    try:
        if parent is not None:
            parent.mkdir(parents=True, exist_ok=True)
        root = Path(tempfile.mkdtemp(prefix=WORKSPACE_PREFIX, dir=parent))
    except OSError as e:
        raise WorkspaceError(f"Cannot create workspace under {parent}: {e}") from e
    logger.debug("Created workspace %s", root)

    previous = None
    in_main_thread = threading.current_thread() is threading.main_thread()
    if in_main_thread:
        previous = signal.signal(signal.SIGTERM, _raise_interrupted)

    try:
        yield Workspace(root=root)
    finally:
        if in_main_thread:
            signal.signal(
                signal.SIGTERM, previous if previous is not None else signal.SIG_DFL
            )
        shutil.rmtree(root, ignore_errors=True)
        logger.debug("Removed workspace %s", root)


__all__ = [
    "WORKSPACE_PREFIX",
    "InterruptedRunError",
    "Workspace",
    "scratch_workspace",
]
