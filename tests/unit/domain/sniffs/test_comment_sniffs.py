"""Tests for Comments.InlineCommentPeriod and Comments.BlockComment."""

import pytest

from phpsniff.domain.entities import ConvergenceStatus
from phpsniff.domain.errors import ConfigurationError
from phpsniff.domain.sniffs.comments import (
    BlockCommentOptions,
    BlockCommentSniff,
    InlineCommentPeriodOptions,
    InlineCommentPeriodSniff,
    hex_range_class,
    strip_comment_prefix,
)
from tests.sniff_test_utils import codes, fix_with, run_sniff


class TestInlineCommentPeriodSniff:
    """Prose comments end in punctuation."""

    def test_letter_ending_gets_a_period(self) -> None:
        source = "<?php\n// Does a thing\n$a = 1;\n"
        ctx = run_sniff(source, InlineCommentPeriodSniff())
        assert codes(ctx) == ["AppendPeriod"]

        outcome, fixed = fix_with(source, InlineCommentPeriodSniff())
        assert fixed == "<?php\n// Does a thing.\n$a = 1;\n"
        assert outcome.status is ConvergenceStatus.CONVERGED

    def test_other_endings_are_reported_only(self) -> None:
        ctx = run_sniff("<?php\n// Done;\n", InlineCommentPeriodSniff())
        (diagnostic,) = ctx.sink.diagnostics
        assert diagnostic.code == "InvalidEndChar"
        assert diagnostic.message == (
            "Inline comments must end in full-stops, exclamation marks, or question marks"
        )
        assert not diagnostic.fixable

    @pytest.mark.parametrize(
        "comment",
        [
            "// Finished.",
            "// Really?",
            "// $a = compute();",
            "// 42 is the answer",
            "// - list item",
        ],
    )
    def test_accepted_or_ignored(self, comment: str) -> None:
        assert codes(run_sniff(f"<?php\n{comment}\n$a;\n", InlineCommentPeriodSniff())) == []

    def test_consecutive_lines_check_only_the_last(self) -> None:
        source = "<?php\n// First line\n// second line\n$a;\n"
        ctx = run_sniff(source, InlineCommentPeriodSniff())
        (diagnostic,) = ctx.sink.diagnostics
        assert diagnostic.line == 3

    def test_trailing_comment_after_closing_brace(self) -> None:
        assert codes(run_sniff("<?php\nif ($a) {\n} // end if\n", InlineCommentPeriodSniff())) == []

    def test_extra_closers(self) -> None:
        sniff = InlineCommentPeriodSniff(InlineCommentPeriodOptions(
            extra_accepted_closers=":",
            extra_accepted_hex_ranges=("0x2713",),
        ))
        source = "<?php\n// Note:\n$a;\n// Done ✓\n$b;\n"
        assert codes(run_sniff(source, sniff)) == []

    def test_invalid_hex_range(self) -> None:
        with pytest.raises(ConfigurationError):
            InlineCommentPeriodSniff(InlineCommentPeriodOptions(extra_accepted_hex_ranges=("0xZZ",)))

    def test_hex_range_class(self) -> None:
        assert hex_range_class(("0x41-0x43", "", "0x2713")) == "A-C✓"


class TestBlockCommentSniff:
    """Hash comments and runs of // lines."""

    def test_hash_comment_becomes_slash_comment(self) -> None:
        outcome, fixed = fix_with("<?php\n# note\n#tight\n$a;\n", BlockCommentSniff(BlockCommentOptions(min_lines=5)))
        assert fixed == "<?php\n// note\n// tight\n$a;\n"
        assert outcome.remaining == ()

    def test_run_of_slash_comments_becomes_block(self) -> None:
        source = "<?php\n// First.\n// Second.\n$a = 1;\n"
        ctx = run_sniff(source, BlockCommentSniff())
        assert codes(ctx) == ["WrongStyle"]

        outcome, fixed = fix_with(source, BlockCommentSniff())
        assert fixed == "<?php\n/*\n * First.\n * Second.\n */\n$a = 1;\n"
        assert outcome.status is ConvergenceStatus.CONVERGED
        assert outcome.remaining == ()

    def test_run_before_declaration_becomes_docblock(self) -> None:
        source = "<?php\nclass C {\n    // Does things.\n    //\n    // More.\n    public function f() {}\n}\n"
        _, fixed = fix_with(source, BlockCommentSniff())
        assert fixed == (
            "<?php\n"
            "class C {\n"
            "    /**\n"
            "     * Does things.\n"
            "     *\n"
            "     * More.\n"
            "     */\n"
            "    public function f() {}\n"
            "}\n"
        )

    def test_short_runs_trailing_and_directives_are_left_alone(self) -> None:
        source = (
            "<?php\n"
            "// Single line.\n"
            "$a = 1; // trailing\n"
            "// phpcs:ignore\n"
            "$b = 2;\n"
            "// Contains */ terminator.\n"
            "// Second.\n"
        )
        assert codes(run_sniff(source, BlockCommentSniff())) == []

    def test_strip_comment_prefix(self) -> None:
        assert strip_comment_prefix("// text  \n") == "text"
        assert strip_comment_prefix("//\n") == ""
        assert strip_comment_prefix("//tight") == "tight"
