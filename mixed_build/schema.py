"""Pydantic model for a mixed build request.

A request collects everything one run needs. Validation happens here,
before any workspace or extraction exists.
"""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from mixed_build.errors import ConfigurationError


class MixedBuildRequest(BaseModel):
    """Inputs of one mixed build run.

    Attributes:
        system_build_dir: Directory holding the system build.
        device_build_dir: Directory holding the device build.
        out_dir: Output directory.
        check_tool: Compatibility checker executable (optional).
        vendor_version: Vendor version for legacy ABI patching.
        modify_system_script: Patch procedure for the system image.
        override_vbmeta_image: vbmeta image used instead of the system one.
        otatools_zip: Archive of host tools.
    """

    model_config = ConfigDict(extra="forbid")

    system_build_dir: Path = Field(description="System build directory")
    device_build_dir: Path = Field(description="Device build directory")
    out_dir: Path = Field(description="Output directory")
    check_tool: Path | None = Field(
        default=None, description="Compatibility checker executable"
    )
    vendor_version: str | None = Field(
        default=None, description="Vendor version for legacy ABI patching"
    )
    modify_system_script: Path | None = Field(
        default=None, description="Patch procedure for the system image"
    )
    override_vbmeta_image: Path | None = Field(
        default=None, description="vbmeta image replacing the system one"
    )
    otatools_zip: Path | None = Field(
        default=None, description="Archive of host tools"
    )

    @model_validator(mode="after")
    def validate_patch_options(self) -> "MixedBuildRequest":
        """Require vendor version and patch script together."""
        if self.vendor_version == "":
            raise ValueError("vendor version must not be empty")
        if (self.vendor_version is None) != (self.modify_system_script is None):
            raise ValueError(
                "vendor version (-v) and modify system script (-m) "
                "must be given together"
            )
        return self

    @model_validator(mode="after")
    def validate_out_dir(self) -> "MixedBuildRequest":
        """Keep the output directory out of the device build it mirrors."""
        if self.out_dir.resolve().is_relative_to(self.device_build_dir.resolve()):
            raise ValueError(
                f"output directory {self.out_dir} must not be inside "
                f"the device build directory {self.device_build_dir}"
            )
        return self

    @property
    def patch_requested(self) -> bool:
        """True if the system image should be patched."""
        return self.vendor_version is not None


def parse_request(data: dict[str, Any]) -> MixedBuildRequest:
    """Validate raw request data.

    Args:
        data: Request fields, e.g. collected from the command line.

    Returns:
        Validated MixedBuildRequest.

    Raises:
        ConfigurationError: If the data is inconsistent.
    """
    try:
        return MixedBuildRequest.model_validate(data)
    except ValidationError as e:
        messages = []
        for error in e.errors():
            msg = error["msg"].removeprefix("Value error, ")
            loc = ".".join(str(part) for part in error["loc"])
            messages.append(f"{loc}: {msg}" if loc else msg)
        raise ConfigurationError("; ".join(messages)) from e


__all__ = ["MixedBuildRequest", "parse_request"]
