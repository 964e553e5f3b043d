"""Builders for fake system and device builds and stand-in tools."""

import stat
import zipfile
from pathlib import Path

SYSTEM_IMAGE = b"generic system image"
SYSTEM_VBMETA = b"generic vbmeta"
DEVICE_SYSTEM_IMAGE = b"device system image"
DEVICE_VBMETA = b"device vbmeta"
BOOT_IMAGE = b"device boot image"


def make_zip(path: Path, members: dict[str, bytes]) -> Path:
    """Write a zip archive with the given members."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as archive:
        for name, data in members.items():
            archive.writestr(name, data)
    return path


def write_script(path: Path, body: str) -> Path:
    """Write an executable script."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(body)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def build_prop(spl: str | None) -> bytes:
    lines = ["ro.build.id=TEST.1", "ro.product.name=test"]
    if spl is not None:
        lines.append(f"ro.build.version.security_patch={spl}")
    return ("\n".join(lines) + "\n").encode()


def make_system_build(
    root: Path,
    spl: str | None = "2023-01-01",
    with_vbmeta: bool = True,
) -> Path:
    """Create a system build directory with one target-files archive."""
    members = {
        "IMAGES/system.img": SYSTEM_IMAGE,
        "META/system_matrix.xml": b"<compatibility-matrix type='framework'/>",
        "META/system_manifest.xml": b"<manifest type='framework'/>",
        "SYSTEM/build.prop": build_prop(spl),
    }
    if with_vbmeta:
        members["IMAGES/vbmeta.img"] = SYSTEM_VBMETA
    make_zip(root / "aosp_arm64-target_files-100.zip", members)
    return root


def make_device_build(
    root: Path,
    spl: str | None = "2023-01-01",
    with_vbmeta: bool = True,
) -> Path:
    """Create a device build directory with target files, images and extras."""
    make_zip(
        root / "device-target_files-200.zip",
        {
            "META/vendor_matrix.xml": b"<compatibility-matrix type='device'/>",
            "META/vendor_manifest.xml": b"<manifest type='device'/>",
            "SYSTEM/build.prop": build_prop(spl),
        },
    )
    images = {
        "android-info.txt": b"require board=test\n",
        "boot.img": BOOT_IMAGE,
        "system.img": DEVICE_SYSTEM_IMAGE,
    }
    if with_vbmeta:
        images["vbmeta.img"] = DEVICE_VBMETA
    make_zip(root / "device-img-200.zip", images)

    (root / "bootloader.img").write_bytes(b"bootloader")
    (root / "logs").mkdir()
    (root / "logs" / "build.log").write_text("build log\n")
    return root


PATCH_SCRIPT = """#!{python}
import sys
import zipfile
from pathlib import Path

args = sys.argv[1:]
Path({log!r}).write_text(" ".join(args))
target = Path(args[2])
with zipfile.ZipFile(target) as src:
    members = {{i.filename: src.read(i) for i in src.infolist()}}
members["IMAGES/system.img"] = b"patched system image"
tmp = target.with_suffix(".tmp")
with zipfile.ZipFile(tmp, "w") as dst:
    for name, data in members.items():
        dst.writestr(name, data)
tmp.replace(target)
"""
