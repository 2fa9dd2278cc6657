import re
from enum import StrEnum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError, model_validator

from vendorpatch.patching.exceptions import ConfigError, PatternNotMatchedError


class MatcherFlag(StrEnum):
    IGNORECASE = "IGNORECASE"
    MULTILINE = "MULTILINE"
    DOTALL = "DOTALL"
    VERBOSE = "VERBOSE"


# Backslash escapes in a replacement template, in the order re's template parser
# tries them: named/numbered \g<...>, three-digit octal, \N group, anything else.
_TEMPLATE_ESCAPE_RE = re.compile(
    r"\\(?:g<(?P<group>[^>]*)>|(?P<octal>[0-7]{3}|0[0-7]?)|(?P<number>[1-9]\d?)|(?P<other>.))",
    re.DOTALL,
)
_TEMPLATE_LETTER_ESCAPES = set("abfnrtv")


def _compile_flags(flags: tuple[MatcherFlag, ...]) -> re.RegexFlag:
    combined = re.RegexFlag(0)
    for flag in flags:
        combined |= re.RegexFlag[flag.value]
    return combined


def template_group_refs(replacement: str) -> list[str]:
    """
    Return the group references used by a replacement template.

    Numeric references are returned as digit strings, named ones as names.
    Escaped backslashes and octal escapes are not references.

    Raises:
        ValueError: on an unterminated backslash or an escape re rejects
    """

    refs: list[str] = []
    pos = 0
    while True:
        idx = replacement.find("\\", pos)
        if idx == -1:
            break
        match = _TEMPLATE_ESCAPE_RE.match(replacement, idx)
        if match is None:
            raise ValueError("replacement ends with a lone backslash")
        if match.group("octal") is not None:
            if int(match.group("octal"), 8) > 0o377:
                raise ValueError(
                    f"replacement has an octal escape \\{match.group('octal')} above \\377"
                )
        elif match.group("group") is not None:
            refs.append(match.group("group"))
        elif match.group("number") is not None:
            refs.append(match.group("number"))
        elif match.group("other") is not None:
            other = match.group("other")
            if other == "g":
                raise ValueError("replacement has an unterminated \\g<...> reference")
            if other.isascii() and other.isalpha() and other not in _TEMPLATE_LETTER_ESCAPES:
                raise ValueError(f"replacement has a bad escape \\{other}")
        pos = match.end()
    return refs


def check_template_groups(pattern: re.Pattern[str], replacement: str) -> None:
    for ref in template_group_refs(replacement):
        if ref.isdigit():
            if int(ref) > pattern.groups:
                raise ValueError(
                    f"replacement references group {ref} but the matcher declares "
                    f"{pattern.groups} group(s)"
                )
        elif not ref.isidentifier():
            raise ValueError(f"replacement has a malformed group name {ref!r}")
        elif ref not in pattern.groupindex:
            raise ValueError(f"replacement references unknown group {ref!r}")

    # re's own template parser, run against an empty match with the same groups.
    names = {index: name for name, index in pattern.groupindex.items()}
    layout = "".join(
        f"(?P<{names[index]}>)" if index in names else "()"
        for index in range(1, pattern.groups + 1)
    )
    try:
        re.compile(layout).match("").expand(replacement)
    except (re.error, IndexError) as exc:
        raise ValueError(f"replacement is not a valid template: {exc}") from exc


class PatchSpec(BaseModel):
    """One named, deterministic rewrite of a file inside a source tree."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )

    description: str = Field(min_length=1)
    target_path: str = Field(min_length=1)
    matcher: str = Field(min_length=1)
    replacement: str
    flags: tuple[MatcherFlag, ...] = ()

    _pattern: re.Pattern[str] | None = PrivateAttr(default=None)

    @model_validator(mode="after")
    def validate_matcher(self) -> "PatchSpec":
        try:
            pattern = re.compile(self.matcher, _compile_flags(self.flags))
        except re.error as exc:
            raise ValueError(f"matcher is not a valid regular expression: {exc}") from exc

        if pattern.groups < 1:
            raise ValueError("matcher must declare at least one capture group")

        check_template_groups(pattern, self.replacement)
        self._pattern = pattern
        return self

    @property
    def pattern(self) -> re.Pattern[str]:
        if self._pattern is None:
            # model_construct() skips validation
            self._pattern = re.compile(self.matcher, _compile_flags(self.flags))
        return self._pattern

    @classmethod
    def from_mapping(cls, data: Any, source: Path | str = "<inline>") -> "PatchSpec":
        """Build a PatchSpec, reporting any invalid definition as ConfigError."""
        if not isinstance(data, dict):
            raise ConfigError(source, f"patch must be a mapping, got {type(data).__name__}")
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigError(source, exc) from exc


class ApplyResult(BaseModel):
    description: str
    target_path: str
    matched: bool
    bytes_written: int = 0
    match_count: int = 0
    error_detail: str | None = None

    def raise_for_status(self) -> None:
        if not self.matched:
            raise PatternNotMatchedError(
                self.description,
                self.error_detail or f"pattern not found in {self.target_path}",
            )
