import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class PathEscapeError(Exception):
    def __init__(self, candidate: Path, root: Path):
        super().__init__(f"Target {str(candidate)} is not inside source tree: {str(root)}")


class SymLinkError(Exception):
    def __init__(self, path: Path):
        super().__init__(f"Path contains symlink: {str(path)}")


def resolve_safe_path(
    root: Path,
    target_path: str,
    allow_symlinks: bool = False
) -> Path:
    """
    Resolve a patch target within a source tree root.

    Args:
        root: Directory of the vendored/checked-out source tree
        target_path: Target file, relative to root or absolute within it
        allow_symlinks: If False, reject targets reached through a symlink

    Returns:
        Absolute Path guaranteed to be inside root

    Raises:
        PathEscapeError: If the target would land outside root
        SymLinkError: If symlinks are not allowed and the path contains one
    """

    root = Path(root).resolve()
    candidate = Path(os.path.normpath(root / target_path))

    if not candidate.is_relative_to(root):
        logger.warning("Path escape attempt: %s is not relative to %s", candidate, root)
        raise PathEscapeError(candidate, root)

    if not allow_symlinks:
        path_so_far = root

        for part in candidate.relative_to(root).parts:
            path_so_far = path_so_far / part

            if path_so_far.is_symlink():
                logger.warning("Symlink blocked: %s", path_so_far)
                raise SymLinkError(path_so_far)
    elif not candidate.resolve().is_relative_to(root):
        logger.warning("Symlink escape attempt: %s resolves outside %s", candidate, root)
        raise PathEscapeError(candidate.resolve(), root)

    logger.debug("Resolved target path: %s -> %s", target_path, candidate)
    return candidate
