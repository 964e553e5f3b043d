"""Archive extraction into the scratch workspace.

This module handles:
- Extracting all or selected members of a zip archive
- Refusing members that would escape the destination
- Restoring executable bits recorded in the archive

Extracting the same member twice overwrites the earlier copy, which is how a
patched system image replaces the original one.
"""

from __future__ import annotations

import logging
import stat
import zipfile
from collections.abc import Iterable
from pathlib import Path, PurePosixPath

from mixed_build.errors import ExtractionError

logger = logging.getLogger(__name__)


def _check_member_name(name: str) -> None:
    """Reject member names that would land outside the destination."""
    member_path = PurePosixPath(name)
    if member_path.is_absolute() or ".." in member_path.parts:
        raise ExtractionError(
            f"Refusing to extract {name}: path traversal detected",
            code="path_traversal",
        )


def _extract_one(archive: zipfile.ZipFile, info: zipfile.ZipInfo, dest: Path) -> Path:
    _check_member_name(info.filename)
    extracted = Path(archive.extract(info, dest))

    # Keep executable bits so extracted host tools can run
    mode = (info.external_attr >> 16) & 0o777
    if not info.is_dir() and mode & 0o111:
        extracted.chmod(stat.S_IMODE(extracted.stat().st_mode) | (mode & 0o111))

    return extracted


def extract_members(
    archive_path: Path,
    dest_dir: Path,
    members: Iterable[str] | None = None,
    optional: Iterable[str] | None = None,
) -> list[Path]:
    """Extract members of a zip archive into a directory.

    Args:
        archive_path: Zip archive to read.
        dest_dir: Destination directory, created if absent.
        members: Member names that must be present. None extracts everything.
        optional: Member names extracted only if present.

    Returns:
        Paths of the extracted files.

    Raises:
        ExtractionError: If the archive is missing or unreadable, or a
            required member is absent.
    """
    if not archive_path.is_file():
        raise ExtractionError(
            f"Archive not found: {archive_path}",
            code="archive_not_found",
        )

    extracted: list[Path] = []

    try:
        dest_dir.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(archive_path) as archive:
            if members is None and optional is None:
                logger.info("Extracting %s to %s", archive_path.name, dest_dir)
                for info in archive.infolist():
                    extracted.append(_extract_one(archive, info, dest_dir))
                return extracted

            names = set(archive.namelist())
            required = list(members or [])
            missing = [m for m in required if m not in names]
            if missing:
                raise ExtractionError(
                    f"{archive_path} is missing {', '.join(missing)}",
                    code="member_not_found",
                )

            wanted = required + [m for m in optional or [] if m in names]
            skipped = [m for m in optional or [] if m not in names]
            if skipped:
                logger.debug(
                    "Optional members not in %s: %s",
                    archive_path.name,
                    ", ".join(skipped),
                )

            logger.info(
                "Extracting %d member(s) of %s to %s",
                len(wanted),
                archive_path.name,
                dest_dir,
            )
            for name in wanted:
                extracted.append(
                    _extract_one(archive, archive.getinfo(name), dest_dir)
                )

    except zipfile.BadZipFile as e:
        raise ExtractionError(
            f"Failed to read archive {archive_path}: {e}",
            code="bad_archive",
        ) from e
    except OSError as e:
        raise ExtractionError(
            f"Failed to extract {archive_path}: {e}",
        ) from e

    return extracted


__all__ = ["extract_members"]
