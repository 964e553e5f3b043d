"""Publishing of the mixed build output.

The output directory receives a copy of the whole device build directory,
with symlinks resolved into real files. Any ``logs`` entries and the device
image archive itself are left out. The composed archive is written in its
place through a temporary file and a rename, so an earlier result at that
path is only replaced by a complete new one.
"""

from __future__ import annotations

import hashlib
import logging
import os
import shutil
from collections.abc import Callable, Iterable
from pathlib import Path

from mixed_build.errors import PublishError

logger = logging.getLogger(__name__)

EXCLUDED_NAMES = ("logs",)

# Default chunk size for hashing
HASH_CHUNK_SIZE = 64 * 1024  # 64KB


def compute_file_hash(file_path: Path, chunk_size: int = HASH_CHUNK_SIZE) -> str:
    """Compute SHA-256 hash of a file.

    Args:
        file_path: Path to the file.
        chunk_size: Size of chunks for streaming hash.

    Returns:
        SHA-256 hex digest.

    Raises:
        PublishError: If the file cannot be read.
    """
    sha256 = hashlib.sha256()
    try:
        with file_path.open("rb") as f:
            while chunk := f.read(chunk_size):
                sha256.update(chunk)
    except OSError as e:
        raise PublishError(f"Cannot hash {file_path}: {e}") from e
    return sha256.hexdigest()


def _skip_entries(
    source_dir: Path, skip: Iterable[Path]
) -> Callable[[str, list[str]], set[str]]:
    """Build a copytree ignore callable for EXCLUDED_NAMES and the given paths."""
    skipped = {Path(p) for p in skip}

    def ignore(directory: str, names: list[str]) -> set[str]:
        rel = Path(directory).relative_to(source_dir)
        return {n for n in names if n in EXCLUDED_NAMES or rel / n in skipped}

    return ignore


def copy_build_tree(
    source_dir: Path, dest_dir: Path, skip: Iterable[Path] = ()
) -> None:
    """Copy a build directory, dereferencing symlinks.

    Args:
        source_dir: Build directory to copy.
        dest_dir: Destination directory; existing files are overwritten.
        skip: Paths relative to ``source_dir`` left out of the copy.

    Raises:
        PublishError: If copying fails.
    """
    logger.info("Copying %s to %s", source_dir, dest_dir)
    try:
        shutil.copytree(
            source_dir,
            dest_dir,
            symlinks=False,
            ignore=_skip_entries(source_dir, skip),
            dirs_exist_ok=True,
        )
    except (shutil.Error, OSError) as e:
        raise PublishError(f"Failed to copy {source_dir} to {dest_dir}: {e}") from e


def publish_artifacts(
    device_build_dir: Path,
    out_dir: Path,
    composed_archive: Path,
    archive_relpath: Path,
) -> Path:
    """Populate the output directory with the mixed build.

    Args:
        device_build_dir: Device build directory to mirror.
        out_dir: Output directory, created if missing.
        composed_archive: The composed image archive.
        archive_relpath: Location of the original device image archive,
            relative to ``device_build_dir``.

    Returns:
        Path of the published archive.

    Raises:
        PublishError: If the output directory cannot be created or written.
    """
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PublishError(f"Cannot create output directory {out_dir}: {e}") from e

    # The original image archive never reaches out_dir; only the composed one does
    copy_build_tree(device_build_dir, out_dir, skip=[archive_relpath])

    target = out_dir / archive_relpath
    partial = target.with_name(f".{target.name}.partial")
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(composed_archive, partial)
        os.replace(partial, target)
    except OSError as e:
        partial.unlink(missing_ok=True)
        raise PublishError(f"Failed to publish {composed_archive}: {e}") from e

    logger.info("Published %s", target)
    return target


__all__ = [
    "EXCLUDED_NAMES",
    "HASH_CHUNK_SIZE",
    "compute_file_hash",
    "copy_build_tree",
    "publish_artifacts",
]
