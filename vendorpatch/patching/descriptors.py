import logging
from pathlib import Path
from typing import Any

import yaml

from vendorpatch.patching.exceptions import ConfigError
from vendorpatch.patching.models import PatchSpec

logger = logging.getLogger(__name__)


class PatchSelectionError(LookupError):
    def __init__(self, descriptor: Path, message: str):
        super().__init__(f"{descriptor}: {message}")
        self.descriptor = descriptor


def parse_descriptor(raw: Any, source: Path) -> list[PatchSpec]:
    """
    Turn the loaded YAML of a descriptor into PatchSpecs.

    A descriptor is either a mapping with a ``patches`` list, or a single
    patch mapping.
    """

    if raw is None:
        raise ConfigError(source, "descriptor is empty")
    if not isinstance(raw, dict):
        raise ConfigError(source, f"descriptor must be a mapping, got {type(raw).__name__}")

    if "patches" in raw:
        unexpected = sorted(set(raw) - {"patches"})
        if unexpected:
            raise ConfigError(source, f"Unexpected key(s): {', '.join(unexpected)}")
        entries = raw["patches"]
        if not isinstance(entries, list) or not entries:
            raise ConfigError(source, "'patches' must be a non-empty list")
    else:
        entries = [raw]

    specs: list[PatchSpec] = []
    seen: set[str] = set()
    for idx, entry in enumerate(entries):
        spec = PatchSpec.from_mapping(entry, f"{source} patches[{idx}]")
        if spec.description in seen:
            raise ConfigError(source, f"duplicate patch description: {spec.description}")
        seen.add(spec.description)
        specs.append(spec)

    return specs


def load_descriptor(path: Path) -> list[PatchSpec]:
    path = Path(path)
    try:
        with path.open(encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.error("Cannot load patch descriptor %s: %s", path, e)
        raise ConfigError(path, e) from e

    specs = parse_descriptor(raw, path)
    logger.debug("Loaded %d patch(es) from %s", len(specs), path)
    return specs


def select_patch(specs: list[PatchSpec], name: str | None, descriptor: Path) -> PatchSpec:
    if name is None:
        if len(specs) == 1:
            return specs[0]
        names = ", ".join(spec.description for spec in specs)
        raise PatchSelectionError(
            descriptor,
            f"holds {len(specs)} patches, choose one with --patch ({names})",
        )

    for spec in specs:
        if spec.description == name:
            return spec
    raise PatchSelectionError(descriptor, f"no patch named {name!r}")
