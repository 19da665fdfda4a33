"""
Text edits

Every rewrite is expressed as a replacement of a character range of the
source it was computed against. A batch of edits is applied in one sweep, so
offsets computed against the original text stay valid for the whole batch.
"""

from dataclasses import dataclass
from typing import Iterable, List

from ..shared.errors import ModulizerImplementationError


class EditConflictError(ModulizerImplementationError):
    """Two edits of one batch touch overlapping ranges."""
    def __init__(self, message: str):
        super().__init__(message, error_code="E9001")


@dataclass(frozen=True)
class Edit:
    """Replace source[start:end] with replacement (start == end inserts)."""
    start: int
    end: int
    replacement: str

    @classmethod
    def insert(cls, offset: int, text: str) -> "Edit":
        return cls(offset, offset, text)

    @classmethod
    def delete(cls, start: int, end: int) -> "Edit":
        return cls(start, end, "")


def _overlaps(previous: Edit, current: Edit) -> bool:
    return current.start < previous.end


def apply_edits(source: str, edits: Iterable[Edit], drop_nested: bool = False) -> str:
    """
    Apply a batch of non-overlapping edits to source.

    Insertions at the same offset keep the order they were given in.

    Args:
        source: Text every edit's offsets refer to
        edits: The batch
        drop_nested: Silently drop edits that fall inside an earlier,
                     enclosing edit instead of raising

    Raises:
        EditConflictError: if two edits overlap and drop_nested is False
    """
    ordered = sorted(enumerate(edits), key=lambda pair: (pair[1].start, pair[1].end, pair[0]))
    kept: List[Edit] = []
    for _, edit in ordered:
        if edit.start < 0 or edit.end > len(source) or edit.start > edit.end:
            raise EditConflictError(f"edit {edit.start}:{edit.end} outside of source (length {len(source)})")
        if kept and _overlaps(kept[-1], edit):
            if drop_nested and edit.end <= kept[-1].end:
                continue
            raise EditConflictError(
                f"overlapping edits {kept[-1].start}:{kept[-1].end} and {edit.start}:{edit.end}"
            )
        kept.append(edit)

    pieces = []
    position = 0
    for edit in kept:
        pieces.append(source[position:edit.start])
        pieces.append(edit.replacement)
        position = edit.end
    pieces.append(source[position:])
    return "".join(pieces)
