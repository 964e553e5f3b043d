"""Image composition.

This module handles:
- Overlaying the system image (and vbmeta, when the device has one) onto the
  extracted device image set
- Writing the image set back out as a reproducible zip archive

Entries are written in sorted order with a fixed timestamp and mode, so
identical inputs give byte-identical archives.
"""

from __future__ import annotations

import logging
import shutil
import zipfile
from dataclasses import dataclass
from pathlib import Path

from mixed_build.errors import ArtifactNotFoundError, CompositionError
from mixed_build.types import SYSTEM_IMAGE_NAME, VBMETA_IMAGE_NAME, VbmetaSource

logger = logging.getLogger(__name__)

# Earliest timestamp a zip entry can carry
ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)
ZIP_FILE_MODE = 0o644


@dataclass
class ComposeResult:
    """Result of composing the mixed image archive.

    Attributes:
        archive_path: Path to the composed archive.
        vbmeta_source: Where vbmeta.img came from.
        entries: Archive entry names in write order.
    """

    archive_path: Path
    vbmeta_source: VbmetaSource
    entries: list[str]


def _replace_file(source: Path, dest: Path) -> None:
    try:
        shutil.copyfile(source, dest)
    except OSError as e:
        raise CompositionError(f"Failed to copy {source} -> {dest}: {e}") from e


def overlay_images(
    images_dir: Path,
    system_image: Path,
    system_vbmeta: Path | None = None,
    override_vbmeta: Path | None = None,
) -> VbmetaSource:
    """Overwrite images in the extracted device image set.

    system.img is always replaced. vbmeta.img is replaced only if the device
    image set already has one; the override image wins over the system one.

    Args:
        images_dir: Extracted device image archive.
        system_image: System image to install.
        system_vbmeta: vbmeta from the system build, if extracted.
        override_vbmeta: Explicit vbmeta image, if configured.

    Returns:
        Where vbmeta.img came from.

    Raises:
        ArtifactNotFoundError: If an input image is missing.
        CompositionError: If copying fails.
    """
    if not system_image.is_file():
        raise ArtifactNotFoundError(
            f"System image not found: {system_image}", path=system_image
        )

    logger.info("Installing %s into %s", system_image, images_dir)
    _replace_file(system_image, images_dir / SYSTEM_IMAGE_NAME)

    device_vbmeta = images_dir / VBMETA_IMAGE_NAME
    if not device_vbmeta.exists():
        logger.info("Device image set has no %s, leaving it out", VBMETA_IMAGE_NAME)
        return VbmetaSource.UNTOUCHED

    if override_vbmeta is not None:
        source, kind = override_vbmeta, VbmetaSource.OVERRIDE
    else:
        source, kind = system_vbmeta, VbmetaSource.SYSTEM

    if source is None or not source.is_file():
        raise ArtifactNotFoundError(
            f"Device image set has {VBMETA_IMAGE_NAME} but no replacement found"
            f" ({kind.value}: {source})",
            path=source,
        )

    logger.info("Installing %s vbmeta from %s", kind.value, source)
    _replace_file(source, device_vbmeta)
    return kind


def write_archive(source_dir: Path, archive_path: Path) -> list[str]:
    """Zip the contents of a directory reproducibly.

    Args:
        source_dir: Directory whose contents become the archive root.
        archive_path: Output archive path; replaced if it exists.

    Returns:
        Entry names in write order.

    Raises:
        CompositionError: If writing fails.
    """
    files = sorted(
        (p for p in source_dir.rglob("*") if p.is_file()),
        key=lambda p: p.relative_to(source_dir).as_posix(),
    )
    entries: list[str] = []

    try:
        archive_path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(archive_path, "w", zipfile.ZIP_DEFLATED) as archive:
            for path in files:
                name = path.relative_to(source_dir).as_posix()
                info = zipfile.ZipInfo(name, date_time=ZIP_EPOCH)
                info.compress_type = zipfile.ZIP_DEFLATED
                info.external_attr = (0o100000 | ZIP_FILE_MODE) << 16
                # Known size up front lets zipfile switch to zip64 for large images
                info.file_size = path.stat().st_size
                with path.open("rb") as src, archive.open(info, "w") as dst:
                    shutil.copyfileobj(src, dst, 1024 * 1024)
                entries.append(name)
    except OSError as e:
        raise CompositionError(f"Failed to write {archive_path}: {e}") from e

    logger.info("Wrote %s with %d entries", archive_path, len(entries))
    return entries


def compose_images(
    images_dir: Path,
    system_image: Path,
    output_archive: Path,
    system_vbmeta: Path | None = None,
    override_vbmeta: Path | None = None,
) -> ComposeResult:
    """Produce the mixed image archive.

    Args:
        images_dir: Extracted device image archive (modified in place).
        system_image: System image to install (patched or not).
        output_archive: Path of the archive to write.
        system_vbmeta: vbmeta from the system build, if extracted.
        override_vbmeta: Explicit vbmeta image, if configured.

    Returns:
        ComposeResult describing the archive.
    """
    vbmeta_source = overlay_images(
        images_dir,
        system_image,
        system_vbmeta=system_vbmeta,
        override_vbmeta=override_vbmeta,
    )
    entries = write_archive(images_dir, output_archive)
    return ComposeResult(
        archive_path=output_archive,
        vbmeta_source=vbmeta_source,
        entries=entries,
    )


__all__ = [
    "ZIP_EPOCH",
    "ZIP_FILE_MODE",
    "ComposeResult",
    "compose_images",
    "overlay_images",
    "write_archive",
]
