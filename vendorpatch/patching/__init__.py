"""Locate, rewrite and verify a single textual patch."""

from .descriptors import PatchSelectionError, load_descriptor, parse_descriptor, select_patch
from .exceptions import (
    ConfigError,
    ErrorKind,
    PatchError,
    PatchIOError,
    PatternNotMatchedError,
)
from .models import ApplyResult, MatcherFlag, PatchSpec
from .transform import count_matches, transform
from .writer import apply_patch, check_patch

__all__ = [
    "ApplyResult",
    "ConfigError",
    "ErrorKind",
    "MatcherFlag",
    "PatchError",
    "PatchIOError",
    "PatchSelectionError",
    "PatchSpec",
    "PatternNotMatchedError",
    "apply_patch",
    "check_patch",
    "count_matches",
    "load_descriptor",
    "parse_descriptor",
    "select_patch",
    "transform",
]
