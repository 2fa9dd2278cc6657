from enum import StrEnum
from pathlib import Path


class ErrorKind(StrEnum):
    CONFIG_ERROR = "config_error"
    IO_ERROR = "io_error"
    PATTERN_NOT_MATCHED = "pattern_not_matched"


class PatchError(Exception):
    def __init__(self, error_kind: ErrorKind, message: str):
        super().__init__(message)
        self.error_kind = error_kind


class ConfigError(PatchError):
    """A patch definition or descriptor is invalid and must not be applied."""

    def __init__(self, source: Path | str, original_error: Exception | str):
        super().__init__(
            ErrorKind.CONFIG_ERROR,
            f"Invalid patch definition ({source}): {original_error}",
        )
        self.source = source
        self.original_error = original_error


class PatchIOError(PatchError):
    def __init__(self, target_path: Path | str, description: str, original_error: Exception | str):
        super().__init__(
            ErrorKind.IO_ERROR,
            f"{description}: cannot patch {target_path}: {original_error}",
        )
        self.target_path = target_path
        self.description = description
        self.original_error = original_error


class PatternNotMatchedError(PatchError):
    def __init__(self, description: str, error_detail: str):
        super().__init__(
            ErrorKind.PATTERN_NOT_MATCHED,
            f"{description}: {error_detail}",
        )
        self.description = description
        self.error_detail = error_detail
