"""Tests for the CLI.

These tests drive the command through Typer's CliRunner and through
safe_main, which maps every failure to exit code 1.
"""

import json
import subprocess
import sys
import zipfile

import pytest
from helpers import SYSTEM_IMAGE
from typer.testing import CliRunner

from mixed_build import __version__
from mixed_build.cli import app, safe_main

runner = CliRunner()


def run_safe_main(monkeypatch, args: list[str]) -> int:
    """Run safe_main with the given argv and return its exit code."""
    monkeypatch.setattr(sys, "argv", ["mixed-build", *args])
    with pytest.raises(SystemExit) as exc_info:
        safe_main()
    return exc_info.value.code


class TestCLIHelp:
    """Test CLI help and version."""

    def test_help_returns_zero(self) -> None:
        """CLI --help should return exit code 0."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "SYSTEM_BUILD_DIR" in result.stdout
        assert "--vendor-version" in result.stdout

    def test_version_flag(self) -> None:
        """CLI --version should print version and exit 0."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_short_version_flag(self) -> None:
        """CLI -V should print version and exit 0."""
        result = runner.invoke(app, ["-V"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_show_config(self, monkeypatch) -> None:
        """CLI --show-config should print effective settings as JSON."""
        monkeypatch.setenv("MIXED_BUILD_IMAGE_ARCHIVE_PATTERN", "*-images-*.zip")
        result = runner.invoke(app, ["--show-config"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["image_archive_pattern"] == "*-images-*.zip"
        assert data["target_files_pattern"] == "*-target_files-*.zip"


class TestCLIRun:
    """Test successful runs."""

    def test_run_publishes_archive(self, system_build, device_build, tmp_path) -> None:
        """CLI should compose and report the published archive."""
        out = tmp_path / "out"
        result = runner.invoke(app, [str(system_build), str(device_build), str(out)])

        assert result.exit_code == 0, result.output
        assert "Mixed build succeeded" in result.stdout
        with zipfile.ZipFile(out / "device-img-200.zip") as archive:
            assert archive.read("system.img") == SYSTEM_IMAGE

    def test_run_with_checker(
        self, system_build, device_build, recording_checker, tmp_path
    ) -> None:
        """CLI should pass the optional fourth argument as checker."""
        result = runner.invoke(
            app,
            [
                str(system_build),
                str(device_build),
                str(tmp_path / "out"),
                str(recording_checker),
            ],
        )

        assert result.exit_code == 0, result.output
        assert (tmp_path / "checker.log").exists()

    def test_json_output(self, system_build, device_build, tmp_path) -> None:
        """CLI --json should print the result as JSON."""
        result = runner.invoke(
            app,
            [
                "--json",
                "--log-level",
                "error",
                str(system_build),
                str(device_build),
                str(tmp_path / "out"),
            ],
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["published_archive"] == str(tmp_path / "out" / "device-img-200.zip")
        assert data["verified"] is False
        assert data["vbmeta_source"] == "system"
        assert len(data["sha256"]) == 64

    def test_patch_options(
        self, system_build, device_build, patch_script, tmp_path
    ) -> None:
        """CLI should forward -v and -m to the patch procedure."""
        result = runner.invoke(
            app,
            [
                "-v",
                "28.0",
                "-m",
                str(patch_script),
                str(system_build),
                str(device_build),
                str(tmp_path / "out"),
            ],
        )

        assert result.exit_code == 0, result.output
        assert (tmp_path / "patch.log").read_text().split()[:2] == ["-v", "28.0"]


class TestCLIErrors:
    """Test failure handling."""

    def test_vendor_version_without_script(
        self, system_build, device_build, tmp_path
    ) -> None:
        """CLI should reject -v without -m before doing any work."""
        out = tmp_path / "out"
        result = runner.invoke(
            app, ["-v", "28.0", str(system_build), str(device_build), str(out)]
        )

        assert result.exit_code == 1
        assert "must be given together" in result.output
        assert "Usage:" in result.output
        assert not out.exists()

    def test_script_without_vendor_version(
        self, system_build, device_build, patch_script, tmp_path
    ) -> None:
        """CLI should reject -m without -v."""
        result = runner.invoke(
            app,
            [
                "-m",
                str(patch_script),
                str(system_build),
                str(device_build),
                str(tmp_path / "out"),
            ],
        )

        assert result.exit_code == 1
        assert not (tmp_path / "patch.log").exists()

    def test_incompatible_builds(
        self, system_build, device_build, failing_checker, tmp_path
    ) -> None:
        """CLI should exit 1 when the checker fails."""
        out = tmp_path / "out"
        result = runner.invoke(
            app,
            [str(system_build), str(device_build), str(out), str(failing_checker)],
        )

        assert result.exit_code == 1
        assert "incompatible HAL versions" in result.output
        assert not out.exists()

    def test_missing_archive(self, device_build, tmp_path) -> None:
        """CLI should name the missing pattern."""
        empty = tmp_path / "empty"
        empty.mkdir()
        result = runner.invoke(app, [str(empty), str(device_build), str(tmp_path / "o")])

        assert result.exit_code == 1
        assert "target_files" in result.output

    def test_out_dir_inside_device_build(self, system_build, device_build) -> None:
        """CLI should refuse to publish into the device build itself."""
        out = device_build / "dist"
        result = runner.invoke(app, [str(system_build), str(device_build), str(out)])

        assert result.exit_code == 1
        assert "must not be inside" in result.output
        assert not out.exists()


class TestSafeMain:
    """Test the console script entry point."""

    def test_success_exits_zero(
        self, monkeypatch, system_build, device_build, tmp_path
    ) -> None:
        """safe_main should exit 0 on success."""
        code = run_safe_main(
            monkeypatch, [str(system_build), str(device_build), str(tmp_path / "out")]
        )
        assert code == 0

    def test_missing_arguments_exit_one(self, monkeypatch, capsys) -> None:
        """safe_main should map usage errors to exit code 1."""
        code = run_safe_main(monkeypatch, ["only-one"])

        assert code == 1
        assert "Usage:" in capsys.readouterr().err

    def test_options_after_arguments_rejected(
        self, monkeypatch, system_build, device_build, tmp_path
    ) -> None:
        """safe_main should reject options placed after positional arguments."""
        code = run_safe_main(
            monkeypatch,
            [
                str(system_build),
                str(device_build),
                str(tmp_path / "out"),
                "-v",
                "28.0",
            ],
        )

        assert code == 1
        assert not (tmp_path / "out").exists()

    def test_pipeline_error_exit_one(self, monkeypatch, device_build, tmp_path) -> None:
        """safe_main should exit 1 on pipeline errors."""
        empty = tmp_path / "empty"
        empty.mkdir()

        code = run_safe_main(
            monkeypatch, [str(empty), str(device_build), str(tmp_path / "out")]
        )

        assert code == 1

    def test_help_exits_zero(self, monkeypatch) -> None:
        """safe_main --help should exit 0."""
        assert run_safe_main(monkeypatch, ["--help"]) == 0

    def test_bad_workspace_parent_exit_one(
        self, monkeypatch, capsys, system_build, device_build, tmp_path
    ) -> None:
        """safe_main should report an unusable scratch parent with usage."""
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("file")
        monkeypatch.setenv("MIXED_BUILD_TMP_DIR", str(blocker))

        code = run_safe_main(
            monkeypatch, [str(system_build), str(device_build), str(tmp_path / "out")]
        )

        err = capsys.readouterr().err
        assert code == 1
        assert "Cannot create workspace" in err
        assert "Usage:" in err
        assert not (tmp_path / "out").exists()


class TestModuleEntryPoint:
    """Test python -m mixed_build entry point."""

    def test_module_help(self) -> None:
        """python -m mixed_build --help should work."""
        result = subprocess.run(
            [sys.executable, "-m", "mixed_build", "--help"],
            capture_output=True,
            text=True,
        )
        assert result.returncode == 0
        assert "SYSTEM_BUILD_DIR" in result.stdout

    def test_module_version(self) -> None:
        """python -m mixed_build --version should work."""
        result = subprocess.run(
            [sys.executable, "-m", "mixed_build", "--version"],
            capture_output=True,
            text=True,
        )
        assert result.returncode == 0
        assert __version__ in result.stdout
