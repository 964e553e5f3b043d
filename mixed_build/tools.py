"""External tool execution.

This module handles:
- Building the child-process environment from extracted host tools
- Running external tools and capturing their output
- Turning non-zero exits into ToolExecutionError

The search path for host tools is carried by a ToolEnvironment value passed
to every call. The process environment of mixed_build itself is never
modified.
"""

from __future__ import annotations

import logging
import os
import shlex
import stat
import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from mixed_build.archives.extract import extract_members
from mixed_build.errors import ToolExecutionError

logger = logging.getLogger(__name__)

# Lines of tool output kept in error messages
OUTPUT_TAIL_LINES = 20


@dataclass
class ToolEnvironment:
    """Extra search paths for external tools.

    Attributes:
        bin_dirs: Directories prepended to PATH.
        lib_dirs: Directories prepended to LD_LIBRARY_PATH.
        timeout: Per-invocation timeout in seconds (None = no timeout).
    """

    bin_dirs: list[Path] = field(default_factory=list)
    lib_dirs: list[Path] = field(default_factory=list)
    timeout: int | None = None

    def render(self, base: Mapping[str, str] | None = None) -> dict[str, str]:
        """Build the environment mapping for a child process.

        Args:
            base: Environment to extend; defaults to the current process env.

        Returns:
            New environment dictionary. ``base`` is not modified.
        """
        env = dict(os.environ if base is None else base)
        for var, dirs in (("PATH", self.bin_dirs), ("LD_LIBRARY_PATH", self.lib_dirs)):
            if not dirs:
                continue
            parts = [str(d) for d in dirs]
            if env.get(var):
                parts.append(env[var])
            env[var] = os.pathsep.join(parts)
        return env


def _tail(output: str, lines: int = OUTPUT_TAIL_LINES) -> str:
    return "\n".join(output.splitlines()[-lines:])


def make_executable(path: Path) -> None:
    """Add execute permission to a file if it lacks it.

    Args:
        path: File to update.

    Raises:
        ToolExecutionError: If the permissions cannot be read or changed.
    """
    try:
        mode = stat.S_IMODE(path.stat().st_mode)
        if mode & stat.S_IXUSR:
            return
        logger.debug("Marking %s executable", path)
        path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    except OSError as e:
        raise ToolExecutionError(f"Cannot make {path} executable: {e}") from e


def run_tool(
    cmd: Sequence[str | os.PathLike[str]],
    tool_env: ToolEnvironment | None = None,
    cwd: Path | None = None,
    error_cls: type[ToolExecutionError] = ToolExecutionError,
) -> str:
    """Run an external tool and wait for it to finish.

    Args:
        cmd: Command and arguments.
        tool_env: Search paths and timeout for the tool.
        cwd: Working directory.
        error_cls: ToolExecutionError subclass raised on failure.

    Returns:
        Combined stdout/stderr of the tool.

    Raises:
        ToolExecutionError: (or ``error_cls``) if the tool cannot be started,
            times out, or exits non-zero.
    """
    if tool_env is None:
        tool_env = ToolEnvironment()

    args = [os.fspath(c) for c in cmd]
    cmd_str = shlex.join(args)
    logger.info("Running: %s", cmd_str)

    try:
        result = subprocess.run(
            args,
            cwd=cwd,
            env=tool_env.render(),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            timeout=tool_env.timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        raise error_cls(
            f"{args[0]} timed out after {tool_env.timeout} seconds",
            exit_code=-1,
        ) from e
    except OSError as e:
        raise error_cls(f"Failed to execute {args[0]}: {e}") from e

    output = result.stdout or ""
    for line in output.splitlines():
        logger.debug("[%s] %s", Path(args[0]).name, line)

    if result.returncode != 0:
        message = f"{cmd_str} failed with exit code {result.returncode}"
        tail = _tail(output)
        if tail:
            message = f"{message}:\n{tail}"
        raise error_cls(message, exit_code=result.returncode, output=output)

    return output


def prepare_otatools(
    otatools_zip: Path,
    dest_dir: Path,
    timeout: int | None = None,
) -> ToolEnvironment:
    """Extract a host tools archive and describe its search paths.

    Args:
        otatools_zip: Archive of host binaries and libraries.
        dest_dir: Directory to extract into.
        timeout: Per-invocation timeout carried into the environment.

    Returns:
        ToolEnvironment with the archive's bin and lib directories.
    """
    extract_members(otatools_zip, dest_dir)

    bin_dirs = [d for d in (dest_dir / "bin",) if d.is_dir()]
    lib_dirs = [d for d in (dest_dir / "lib64", dest_dir / "lib") if d.is_dir()]
    logger.info(
        "Host tools from %s: bin=%s lib=%s",
        otatools_zip.name,
        [str(d) for d in bin_dirs],
        [str(d) for d in lib_dirs],
    )
    return ToolEnvironment(bin_dirs=bin_dirs, lib_dirs=lib_dirs, timeout=timeout)


__all__ = [
    "OUTPUT_TAIL_LINES",
    "ToolEnvironment",
    "make_executable",
    "prepare_otatools",
    "run_tool",
]
