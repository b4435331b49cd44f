"""Unit tests for the Fixer edit staging and materialization."""

from phpsniff.domain.fixer import EditOperation, Fixer, FixEdit, materialize
from tests.sniff_test_utils import build_store

# "<?php " is token 0, "$a" token 1, ";" token 2.
SOURCE = "<?php $a;"


class TestMaterialize:
    """Applying staged edits in one sweep."""

    def test_insert_and_replace_around_one_token(self) -> None:
        fixer = Fixer(build_store(SOURCE))
        fixer.add_content_before(1, "X")
        fixer.replace_token(1, "$b")
        fixer.add_content(1, "Y")
        fixer.add_content(1, "Z")
        assert fixer.materialize() == "<?php X$bYZ;"

    def test_no_edits_reproduces_source(self) -> None:
        store = build_store(SOURCE)
        assert materialize(store, []) == SOURCE

    def test_materialize_ignores_second_replacement(self) -> None:
        store = build_store(SOURCE)
        edits = [
            FixEdit(1, EditOperation.REPLACE, "$first"),
            FixEdit(1, EditOperation.REPLACE, "$second"),
        ]
        assert materialize(store, edits) == "<?php $first;"

    def test_add_newline_uses_file_eol(self) -> None:
        fixer = Fixer(build_store("<?php\r\n$a;"))
        fixer.add_newline(2)
        assert fixer.materialize() == "<?php\r\n$a;\r\n"


class TestConflicts:
    """Competing replacements within one pass."""

    def test_second_replacement_is_rejected(self) -> None:
        fixer = Fixer(build_store(SOURCE))
        fixer.current_source = "First"
        assert fixer.replace_token(1, "$b")
        fixer.current_source = "Second"
        assert not fixer.replace_token(1, "$c")
        assert fixer.conflict_count == 1
        assert fixer.edit_count == 1
        assert fixer.edits[0].source == "First"
        assert fixer.materialize() == "<?php $b;"

    def test_identical_replacement_is_not_a_conflict(self) -> None:
        fixer = Fixer(build_store(SOURCE))
        fixer.replace_token(1, "$b")
        assert fixer.replace_token(1, "$b")
        assert fixer.conflict_count == 0
        assert fixer.edit_count == 1

    def test_out_of_range_edit_is_rejected(self) -> None:
        fixer = Fixer(build_store(SOURCE))
        assert not fixer.add_content(50, "x")
        assert fixer.edit_count == 0


class TestChangesets:
    """All-or-nothing edit groups."""

    def test_changeset_commits_together(self) -> None:
        fixer = Fixer(build_store(SOURCE))
        fixer.begin_changeset()
        assert fixer.in_changeset
        fixer.add_content_before(1, "(")
        fixer.add_content(1, ")")
        assert fixer.edit_count == 0
        assert fixer.end_changeset()
        assert not fixer.in_changeset
        assert fixer.materialize() == "<?php ($a);"

    def test_conflict_discards_whole_changeset(self) -> None:
        fixer = Fixer(build_store(SOURCE))
        fixer.replace_token(1, "$b")
        fixer.begin_changeset()
        fixer.add_content(2, "!")
        fixer.replace_token(1, "$c")
        assert not fixer.end_changeset()
        assert fixer.materialize() == "<?php $b;"

    def test_latest_replacement_inside_changeset_wins(self) -> None:
        fixer = Fixer(build_store(SOURCE))
        fixer.begin_changeset()
        fixer.replace_token(1, "$b")
        fixer.replace_token(1, "$c")
        fixer.end_changeset()
        assert fixer.materialize() == "<?php $c;"

    def test_rollback_and_nested_begin(self) -> None:
        fixer = Fixer(build_store(SOURCE))
        fixer.begin_changeset()
        fixer.add_content(1, "x")
        fixer.begin_changeset()
        fixer.add_content(1, "y")
        fixer.rollback_changeset()
        assert fixer.edit_count == 0
        assert not fixer.end_changeset()
