"""Verified, pattern-based patching of files in vendored source trees."""

from vendorpatch.patching import (
    ApplyResult,
    ConfigError,
    ErrorKind,
    PatchIOError,
    PatchSpec,
    PatternNotMatchedError,
    apply_patch,
    check_patch,
    transform,
)

__all__ = [
    "ApplyResult",
    "ConfigError",
    "ErrorKind",
    "PatchIOError",
    "PatchSpec",
    "PatternNotMatchedError",
    "apply_patch",
    "check_patch",
    "transform",
]
