import logging
import os
import shutil
import tempfile
from pathlib import Path

from vendorpatch.filesystem import PathEscapeError, SymLinkError, resolve_safe_path
from vendorpatch.patching.exceptions import PatchIOError
from vendorpatch.patching.models import ApplyResult, PatchSpec
from vendorpatch.patching.transform import count_matches, transform

logger = logging.getLogger(__name__)

STRICT_ENV_VAR = "VENDORPATCH_STRICT"


def _strict_mode_enabled() -> bool:
    return os.getenv(STRICT_ENV_VAR, "").lower() in {"1", "true", "yes"}


def resolve_target(spec: PatchSpec, root: Path) -> Path:
    try:
        return resolve_safe_path(root, spec.target_path)
    except (PathEscapeError, SymLinkError) as exc:
        raise PatchIOError(spec.target_path, spec.description, exc) from exc


def _read_target(target: Path, spec: PatchSpec) -> str:
    try:
        data = target.read_bytes()
    except OSError as exc:
        logger.error("%s: cannot read %s: %s", spec.description, target, exc)
        raise PatchIOError(spec.target_path, spec.description, exc) from exc

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        logger.error("%s: %s is not valid UTF-8", spec.description, target)
        raise PatchIOError(spec.target_path, spec.description, exc) from exc


def _fsync_directory(directory: Path) -> None:
    fd = os.open(directory, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def _atomic_write(target: Path, data: bytes, spec: PatchSpec) -> None:
    """
    Replace ``target`` with ``data`` without exposing a partial file.

    The new content goes to a temporary file in the same directory, is fsynced,
    takes over the target's permission bits, and is then renamed over the
    target. The directory is fsynced last so the rename itself is on disk.
    A failure before the rename removes the temporary file and leaves the
    target as it was.
    """

    tmp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="wb",
            dir=target.parent,
            prefix=f".{target.name}.",
            suffix=".tmp",
            delete=False,
        ) as f:
            tmp_path = Path(f.name)
            f.write(data)
            f.flush()
            os.fsync(f.fileno())

        shutil.copymode(target, tmp_path)
        os.replace(tmp_path, target)
        _fsync_directory(target.parent)
    except BaseException as exc:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
        if isinstance(exc, OSError):
            logger.error("%s: failed to write %s: %s", spec.description, target, exc)
            raise PatchIOError(spec.target_path, spec.description, exc) from exc
        raise


def _not_applied(spec: PatchSpec, match_count: int, error_detail: str) -> ApplyResult:
    return ApplyResult(
        description=spec.description,
        target_path=spec.target_path,
        matched=False,
        match_count=match_count,
        error_detail=error_detail,
    )


def _prepare(
    spec: PatchSpec,
    root: Path,
    strict: bool,
) -> tuple[Path, str | None, ApplyResult]:
    target = resolve_target(spec, root)
    original_text = _read_target(target, spec)

    match_count = count_matches(original_text, spec)
    if match_count > 1:
        if strict:
            return target, None, _not_applied(
                spec,
                match_count,
                f"pattern matched {match_count} times in {spec.target_path}",
            )
        logger.warning(
            "%s: pattern matched %d times in %s, rewriting the first only",
            spec.description,
            match_count,
            spec.target_path,
        )

    new_text, matched = transform(original_text, spec)
    if matched and new_text == original_text:
        logger.warning(
            "%s: replacement reproduces the matched text in %s",
            spec.description,
            spec.target_path,
        )
        matched = False

    if not matched:
        return target, None, _not_applied(
            spec,
            match_count,
            f"pattern not found in {spec.target_path}",
        )

    return target, new_text, ApplyResult(
        description=spec.description,
        target_path=spec.target_path,
        matched=True,
        match_count=match_count,
    )


def apply_patch(
    spec: PatchSpec,
    root: Path,
    *,
    strict: bool | None = None,
) -> ApplyResult:
    """
    Apply ``spec`` to the live contents of its target under ``root``.

    Args:
        spec: The patch to apply
        root: Source tree the target path is relative to (or absolute within)
        strict: Fail when the matcher occurs more than once. Defaults to the
            VENDORPATCH_STRICT environment variable.

    Returns:
        ApplyResult with ``matched=True`` and the number of bytes written, or
        ``matched=False`` with ``error_detail`` when the file was left alone

    Raises:
        PatchIOError: target missing, unreadable, unwritable or outside root
    """

    if strict is None:
        strict = _strict_mode_enabled()

    logger.debug("Applying %s to %s under %s", spec.description, spec.target_path, root)
    target, new_text, result = _prepare(spec, Path(root), strict)

    if new_text is None:
        logger.error("%s: %s", spec.description, result.error_detail)
        return result

    data = new_text.encode("utf-8")
    _atomic_write(target, data, spec)
    logger.info("%s: patched %s (%d bytes)", spec.description, spec.target_path, len(data))

    return result.model_copy(update={"bytes_written": len(data)})


def check_patch(
    spec: PatchSpec,
    root: Path,
    *,
    strict: bool | None = None,
) -> ApplyResult:
    """Report whether ``spec`` would apply, without writing anything."""

    if strict is None:
        strict = _strict_mode_enabled()

    _target, new_text, result = _prepare(spec, Path(root), strict)
    if new_text is None:
        logger.info("%s: would not apply: %s", spec.description, result.error_detail)
    else:
        logger.info("%s: would patch %s", spec.description, spec.target_path)
    return result
