import logging

from vendorpatch.patching.models import PatchSpec

logger = logging.getLogger(__name__)


def transform(original_text: str, spec: PatchSpec) -> tuple[str, bool]:
    """
    Rewrite the first occurrence of ``spec.matcher`` in ``original_text``.

    The replacement template is expanded with the groups captured by that
    occurrence; every other character is left as it was. When nothing matches
    the original text comes back unchanged with ``matched`` set to False.

    Returns:
        (new_text, matched)
    """

    new_text, count = spec.pattern.subn(spec.replacement, original_text, count=1)
    if count == 0:
        logger.debug("%s: no occurrence of matcher", spec.description)
        return original_text, False

    return new_text, True


def count_matches(text: str, spec: PatchSpec) -> int:
    return sum(1 for _ in spec.pattern.finditer(text))
