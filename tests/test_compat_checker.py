"""Tests for compat/checker.py module."""

import logging
import stat

import pytest
from helpers import write_script

from mixed_build.compat.checker import check_compatibility, verify_both_directions
from mixed_build.errors import INCOMPATIBLE, CompatibilityError


@pytest.fixture
def extracted(tmp_path):
    """Extracted system and device META directories."""
    system_dir = tmp_path / "system_target_files"
    device_dir = tmp_path / "device_target_files"
    for root, names in (
        (system_dir, ("system_matrix.xml", "system_manifest.xml")),
        (device_dir, ("vendor_matrix.xml", "vendor_manifest.xml")),
    ):
        (root / "META").mkdir(parents=True)
        for name in names:
            (root / "META" / name).write_text("<xml/>")
    return system_dir, device_dir


class TestCheckCompatibility:
    """Tests for check_compatibility function."""

    def test_passing_check(self, recording_checker, tmp_path):
        """Should invoke checker with manifest then matrix."""
        manifest = tmp_path / "manifest.xml"
        matrix = tmp_path / "matrix.xml"

        check_compatibility(recording_checker, manifest, matrix)

        log = (tmp_path / "checker.log").read_text().split()
        assert log == [str(manifest), str(matrix)]

    def test_failing_check_raises(self, failing_checker, tmp_path):
        """Should raise CompatibilityError on non-zero exit."""
        with pytest.raises(CompatibilityError) as exc_info:
            check_compatibility(
                failing_checker, tmp_path / "m.xml", tmp_path / "x.xml"
            )

        assert exc_info.value.code == INCOMPATIBLE
        assert exc_info.value.exit_code == 1
        assert "incompatible HAL versions" in str(exc_info.value)

    def test_makes_checker_executable(self, tmp_path):
        """Should chmod a checker that lacks the execute bit."""
        checker = write_script(tmp_path / "check", "#!/bin/sh\nexit 0\n")
        checker.chmod(0o644)

        check_compatibility(checker, tmp_path / "m.xml", tmp_path / "x.xml")

        assert stat.S_IMODE(checker.stat().st_mode) & stat.S_IXUSR


class TestVerifyBothDirections:
    """Tests for verify_both_directions function."""

    def test_checks_both_directions(self, recording_checker, extracted, tmp_path):
        """Should check vendor->system and system->vendor in that order."""
        system_dir, device_dir = extracted

        assert verify_both_directions(recording_checker, system_dir, device_dir)

        lines = (tmp_path / "checker.log").read_text().splitlines()
        assert lines == [
            f"{device_dir / 'META/vendor_manifest.xml'} "
            f"{system_dir / 'META/system_matrix.xml'}",
            f"{system_dir / 'META/system_manifest.xml'} "
            f"{device_dir / 'META/vendor_matrix.xml'}",
        ]

    def test_second_direction_failure(self, extracted, tmp_path):
        """Should fail when only the system->vendor direction is rejected."""
        system_dir, device_dir = extracted
        checker = write_script(
            tmp_path / "check",
            '#!/bin/sh\ncase "$1" in *system_manifest.xml) exit 2;; esac\nexit 0\n',
        )

        with pytest.raises(CompatibilityError) as exc_info:
            verify_both_directions(checker, system_dir, device_dir)

        assert exc_info.value.exit_code == 2

    def test_no_checker_skips(self, extracted):
        """Should skip verification when no checker is configured."""
        system_dir, device_dir = extracted

        assert verify_both_directions(None, system_dir, device_dir) is False

    def test_missing_checker_skips(self, extracted, tmp_path, caplog):
        """Should skip verification and name the missing checker."""
        system_dir, device_dir = extracted
        checker = tmp_path / "nope"

        with caplog.at_level(logging.WARNING, logger="mixed_build.compat.checker"):
            assert verify_both_directions(checker, system_dir, device_dir) is False

        assert str(checker) in caplog.text
        assert "not found" in caplog.text
