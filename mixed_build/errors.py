"""Error types for mixed build operations.

Every failure the pipeline can hit is a subclass of MixedBuildError and
carries a stable code for programmatic handling. None of them are retried:
the pipeline aborts, the scratch workspace is removed and the CLI exits 1.
"""

from __future__ import annotations

from pathlib import Path

# Stable error codes
CONFIGURATION_ERROR = "configuration_error"
ARTIFACT_NOT_FOUND = "artifact_not_found"
AMBIGUOUS_ARTIFACT = "ambiguous_artifact"
INCOMPATIBLE = "incompatible"
PATCH_FAILED = "patch_failed"
TOOL_FAILED = "tool_failed"
EXTRACTION_ERROR = "extraction_error"
COMPOSITION_ERROR = "composition_error"
PUBLISH_ERROR = "publish_error"
WORKSPACE_ERROR = "workspace_error"


class MixedBuildError(Exception):
    """Base error for all mixed build failures."""

    def __init__(self, message: str, code: str = "mixed_build_error") -> None:
        super().__init__(message)
        self.code = code


class ConfigurationError(MixedBuildError):
    """Raised for bad or inconsistent options and arguments."""

    def __init__(self, message: str, code: str = CONFIGURATION_ERROR) -> None:
        super().__init__(message, code=code)


class ArtifactNotFoundError(MixedBuildError):
    """Raised when a required archive or file cannot be found."""

    def __init__(
        self,
        message: str,
        path: Path | None = None,
        pattern: str | None = None,
        code: str = ARTIFACT_NOT_FOUND,
    ) -> None:
        super().__init__(message, code=code)
        self.path = path
        self.pattern = pattern


class AmbiguousArtifactError(ArtifactNotFoundError):
    """Raised when a glob lookup matches more than one file."""

    def __init__(
        self,
        directory: Path,
        pattern: str,
        candidates: list[Path],
    ) -> None:
        listing = ", ".join(str(c) for c in candidates)
        super().__init__(
            f"Multiple files matching {pattern!r} under {directory}: {listing}",
            path=directory,
            pattern=pattern,
            code=AMBIGUOUS_ARTIFACT,
        )
        self.candidates = candidates


class ToolExecutionError(MixedBuildError):
    """Raised when an external tool exits non-zero or cannot be started."""

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        output: str = "",
        code: str = TOOL_FAILED,
    ) -> None:
        super().__init__(message, code=code)
        self.exit_code = exit_code
        self.output = output


class CompatibilityError(ToolExecutionError):
    """Raised when the compatibility checker rejects a manifest/matrix pair."""

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        output: str = "",
    ) -> None:
        super().__init__(message, exit_code=exit_code, output=output, code=INCOMPATIBLE)


class PatchError(ToolExecutionError):
    """Raised when the system image patch procedure fails."""

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        output: str = "",
    ) -> None:
        super().__init__(message, exit_code=exit_code, output=output, code=PATCH_FAILED)


class ExtractionError(MixedBuildError):
    """Raised when archive extraction fails."""

    def __init__(self, message: str, code: str = EXTRACTION_ERROR) -> None:
        super().__init__(message, code=code)


class CompositionError(MixedBuildError):
    """Raised when the combined image archive cannot be produced."""

    def __init__(self, message: str, code: str = COMPOSITION_ERROR) -> None:
        super().__init__(message, code=code)


class PublishError(MixedBuildError):
    """Raised when the output directory cannot be populated."""

    def __init__(self, message: str, code: str = PUBLISH_ERROR) -> None:
        super().__init__(message, code=code)


class WorkspaceError(MixedBuildError):
    """Raised when the scratch workspace cannot be created."""

    def __init__(self, message: str, code: str = WORKSPACE_ERROR) -> None:
        super().__init__(message, code=code)


__all__ = [
    "AMBIGUOUS_ARTIFACT",
    "ARTIFACT_NOT_FOUND",
    "COMPOSITION_ERROR",
    "CONFIGURATION_ERROR",
    "EXTRACTION_ERROR",
    "INCOMPATIBLE",
    "PATCH_FAILED",
    "PUBLISH_ERROR",
    "TOOL_FAILED",
    "WORKSPACE_ERROR",
    "AmbiguousArtifactError",
    "ArtifactNotFoundError",
    "CompatibilityError",
    "CompositionError",
    "ConfigurationError",
    "ExtractionError",
    "MixedBuildError",
    "PatchError",
    "PublishError",
    "ToolExecutionError",
    "WorkspaceError",
]
