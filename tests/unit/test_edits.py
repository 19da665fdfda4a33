"""
Tests for batched text edits.
"""

import pytest
from modulizer.passes.edits import Edit, EditConflictError, apply_edits


class TestApplyEdits:
    """Offsets refer to the original text for the whole batch."""

    def test_replacements_keep_offsets(self):
        source = "aaa bbb ccc"
        edits = [Edit(8, 11, "CCCCC"), Edit(0, 3, "A")]
        assert apply_edits(source, edits) == "A bbb CCCCC"

    def test_insertions_at_same_offset_keep_order(self):
        edits = [Edit.insert(1, "x"), Edit.insert(1, "y")]
        assert apply_edits("ab", edits) == "axyb"

    def test_delete(self):
        assert apply_edits("hello world", [Edit.delete(5, 11)]) == "hello"

    def test_no_edits(self):
        assert apply_edits("unchanged", []) == "unchanged"

    def test_overlap_raises(self):
        with pytest.raises(EditConflictError):
            apply_edits("abcdef", [Edit(0, 4, "x"), Edit(2, 6, "y")])

    def test_nested_edit_dropped_on_request(self):
        edits = [Edit(0, 6, "outer"), Edit(2, 4, "inner")]
        assert apply_edits("abcdef", edits, drop_nested=True) == "outer"

    def test_identical_ranges_keep_first(self):
        edits = [Edit(0, 3, "first"), Edit(0, 3, "second")]
        assert apply_edits("abc", edits, drop_nested=True) == "first"

    def test_partial_overlap_still_raises_when_dropping_nested(self):
        with pytest.raises(EditConflictError):
            apply_edits("abcdef", [Edit(0, 4, "x"), Edit(2, 6, "y")], drop_nested=True)

    def test_out_of_range(self):
        with pytest.raises(EditConflictError):
            apply_edits("abc", [Edit(2, 10, "x")])
