"""Tests for Comments.PhpcsDirective."""

import pytest

from phpsniff.domain.diagnostics import Severity
from phpsniff.domain.entities import ConvergenceStatus
from phpsniff.domain.sniffs.comments import PhpcsDirectiveSniff, directive_codes
from tests.sniff_test_utils import codes, fix_with, run_sniff


def _by_line(source: str) -> list[tuple[int, str]]:
    return [(d.line, d.code) for d in run_sniff(source, PhpcsDirectiveSniff()).sink.diagnostics]


class TestDirectiveCodes:
    """Splitting a directive comment into sniff codes."""

    @pytest.mark.parametrize(("text", "expected"), [
        ("// phpcs:ignore Foo.Bar, Baz.Qux -- because\n", ["Foo.Bar", "Baz.Qux"]),
        ("/* phpcs:disable Foo.Bar */", ["Foo.Bar"]),
        ("# phpcs:enable\n", []),
        ("// phpcs:ignore -- only a note\n", []),
        ("// phpcs:ignore Foo.Bar--note\n", ["Foo.Bar--note"]),
        ("// phpcs:ignore Foo.Bar some note\n", ["Foo.Bar some note"]),
    ])
    def test_codes(self, text: str, expected: list[str]) -> None:
        assert directive_codes(text) == expected


class TestTargetedDirectives:
    """Correct usage produces nothing."""

    def test_targeted_and_balanced(self) -> None:
        source = (
            "<?php\n"
            "// phpcs:ignore Foo.Bar -- reason\n"
            "$a = 1;\n"
            "// phpcs:disable Foo.Bar, Baz.Qux\n"
            "$b = 2;\n"
            "// phpcs:enable Foo.Bar, Baz.Qux\n"
            "$c = 3; // phpcs:ignore Foo.Bar\n"
            "/* phpcs:ignore Foo.Bar */\n"
        )
        assert _by_line(source) == []

    def test_repeated_pairs_and_bare_enable(self) -> None:
        source = (
            "<?php\n"
            "// phpcs:disable Foo.Bar\n"
            "// phpcs:enable Foo.Bar\n"
            "// phpcs:disable Foo.Bar\n"
            "// phpcs:disable Baz.Qux\n"
            "// phpcs:enable\n"
        )
        assert _by_line(source) == []

    def test_set_and_directive_text_in_strings_are_ignored(self) -> None:
        source = (
            "<?php\n"
            "// phpcs:set Foo.Bar limit 10\n"
            "$a = '// phpcs:ignore';\n"
            "$b = \"@codingStandardsIgnoreLine\";\n"
            "$c = <<<EOT\n// phpcs:disable\nEOT;\n"
        )
        assert _by_line(source) == []


class TestBareDirectives:
    """phpcs:ignore and phpcs:disable must name sniffs."""

    def test_bare_ignore_and_disable(self) -> None:
        source = (
            "<?php\n"
            "// phpcs:ignore\n"
            "$a = 1;\n"
            "// phpcs:disable\n"
            "$b = 2;\n"
            "// phpcs:enable\n"
        )
        ctx = run_sniff(source, PhpcsDirectiveSniff())
        assert [(d.line, d.code) for d in ctx.sink.diagnostics] == [(2, "BareIgnore"), (4, "BareDisable")]
        assert ctx.sink.diagnostics[0].message == (
            "phpcs:ignore directive must specify sniff code(s). Use phpcs:ignore Sniff.Code.Here instead."
        )
        assert ctx.sink.error_count == 2

    def test_inline_block_and_note_only_forms(self) -> None:
        source = (
            "<?php\n"
            "$a = 1; // phpcs:ignore\n"
            "/* phpcs:ignore */\n"
            "$b = 2;\n"
            "# phpcs:ignore -- only a note\n"
            "$c = 3;\n"
        )
        assert _by_line(source) == [(2, "BareIgnore"), (3, "BareIgnore"), (5, "BareIgnore")]

    def test_bare_disable_with_targeted_enable(self) -> None:
        source = "<?php\n$a = 1;\n// phpcs:disable\n$b = 2;\n// phpcs:enable Foo.Bar\n"
        assert _by_line(source) == [(3, "BareDisable"), (5, "UnmatchedEnable")]

    def test_only_the_first_open_tag_scans(self) -> None:
        source = "<?php\n// phpcs:ignore\n?>\n<p>x</p>\n<?php\n$a = 1;\n"
        assert _by_line(source) == [(2, "BareIgnore")]


class TestPairing:
    """Disables left open and enables with nothing to close."""

    def test_unmatched_disable_is_a_warning_on_the_disable(self) -> None:
        ctx = run_sniff("<?php\n// phpcs:disable Foo.Bar\n$a = 1;\n", PhpcsDirectiveSniff())
        (diagnostic,) = ctx.sink.diagnostics
        assert (diagnostic.line, diagnostic.code) == (2, "UnmatchedDisable")
        assert diagnostic.severity is Severity.WARNING
        assert "phpcs:disable for 'Foo.Bar' has no matching phpcs:enable" in diagnostic.message
        assert '<exclude name="Foo.Bar"/>' in diagnostic.message

    def test_mixed_matched_and_unmatched(self) -> None:
        source = (
            "<?php\n"
            "// phpcs:disable PHP.StrictTypes\n"
            "$a = 1;\n"
            "// phpcs:enable PHP.StrictTypes\n"
            "$b = 2;\n"
            "// phpcs:disable Functions.TypeHinting\n"
        )
        assert _by_line(source) == [(6, "UnmatchedDisable")]

    def test_multi_code_disable_partial_enable(self) -> None:
        source = "<?php\n// phpcs:disable A.B, C.D, E.F\n$a;\n// phpcs:enable A.B, E.F\n"
        ctx = run_sniff(source, PhpcsDirectiveSniff())
        (diagnostic,) = ctx.sink.diagnostics
        assert diagnostic.line == 2
        assert "'C.D'" in diagnostic.message

    def test_several_open_disables_on_one_line_each_report(self) -> None:
        ctx = run_sniff("<?php\n// phpcs:disable A.B, C.D\n", PhpcsDirectiveSniff())
        assert codes(ctx) == ["UnmatchedDisable", "UnmatchedDisable"]

    def test_enable_without_disable_warns(self) -> None:
        source = "<?php\n// phpcs:enable Foo.Bar\n$a = 1;\n"
        ctx = run_sniff(source, PhpcsDirectiveSniff())
        (diagnostic,) = ctx.sink.diagnostics
        assert (diagnostic.line, diagnostic.code) == (2, "UnmatchedEnable")
        assert diagnostic.severity is Severity.WARNING
        assert diagnostic.message == (
            "phpcs:enable for 'Foo.Bar' has no matching phpcs:disable. This enable may be stale or misplaced."
        )

    def test_sub_sniff_enable_does_not_close_a_category_disable(self) -> None:
        source = "<?php\n// phpcs:disable WordPress\n$a;\n// phpcs:enable WordPress.NoHookClosure\n"
        assert _by_line(source) == [(2, "UnmatchedDisable"), (4, "UnmatchedEnable")]

    def test_partially_unmatched_multi_code_enable(self) -> None:
        source = "<?php\n// phpcs:disable A.B\n$a;\n// phpcs:enable A.B, C.D\n"
        ctx = run_sniff(source, PhpcsDirectiveSniff())
        (diagnostic,) = ctx.sink.diagnostics
        assert (diagnostic.line, diagnostic.code) == (4, "UnmatchedEnable")
        assert "'C.D'" in diagnostic.message


class TestUnsuppressible:
    """Directive reports cannot be silenced by directives."""

    def test_ignore_aimed_at_the_sniff_itself(self) -> None:
        source = "<?php\n// phpcs:ignore Comments.PhpcsDirective.BareIgnore\n// phpcs:ignore\n$a = 1;\n"
        assert _by_line(source) == [(3, "BareIgnore")]

    def test_inside_a_disable_region(self) -> None:
        source = "<?php\n// phpcs:disable Comments.PhpcsDirective\n// phpcs:disable\n"
        assert _by_line(source) == [(2, "UnmatchedDisable"), (3, "BareDisable")]

    def test_ignore_file_is_reported(self) -> None:
        ctx = run_sniff("<?php\n// phpcs:ignore-file\n$a = 1;\n", PhpcsDirectiveSniff())
        (diagnostic,) = ctx.sink.diagnostics
        assert (diagnostic.line, diagnostic.code) == (2, "IgnoreFile")
        assert diagnostic.severity is Severity.ERROR


class TestLegacyDirectives:
    """@codingStandardsIgnore* annotations become phpcs: directives."""

    def test_line_comments(self) -> None:
        source = (
            "<?php\n"
            "// @codingStandardsIgnoreLine\n"
            "$a = 1;\n"
            "// @codingStandardsIgnoreStart\n"
            "$b = 2;\n"
            "// @codingStandardsIgnoreEnd\n"
            "# @codingStandardsIgnoreLine\n"
            "$c = 3;\n"
        )
        ctx = run_sniff(source, PhpcsDirectiveSniff())
        assert [(d.line, d.code) for d in ctx.sink.diagnostics] == [
            (2, "DeprecatedIgnoreLine"),
            (4, "DeprecatedIgnoreStart"),
            (6, "DeprecatedIgnoreEnd"),
            (7, "DeprecatedIgnoreLine"),
        ]
        assert ctx.sink.fixable_count == 4
        assert ctx.sink.diagnostics[0].message == (
            "Deprecated '@codingStandardsIgnoreLine' directive. Use 'phpcs:ignore' instead."
        )

        _, fixed = fix_with(source, PhpcsDirectiveSniff())
        assert fixed == (
            "<?php\n"
            "// phpcs:ignore\n"
            "$a = 1;\n"
            "// phpcs:disable\n"
            "$b = 2;\n"
            "// phpcs:enable\n"
            "# phpcs:ignore\n"
            "$c = 3;\n"
        )

    def test_block_comment_keeps_its_markers(self) -> None:
        _, fixed = fix_with("<?php\n$a = 1;\n/* @codingStandardsIgnoreLine */\n$b = 2;\n", PhpcsDirectiveSniff())
        assert fixed == "<?php\n$a = 1;\n/* phpcs:ignore */\n$b = 2;\n"

    def test_docblock_becomes_a_block_comment(self) -> None:
        source = "<?php\n/**\n * Legacy.\n *\n * @codingStandardsIgnoreStart\n */\n$a = 1;\n"
        ctx = run_sniff(source, PhpcsDirectiveSniff())
        assert [(d.line, d.code) for d in ctx.sink.diagnostics] == [(5, "DeprecatedIgnoreStart")]

        outcome, fixed = fix_with(source, PhpcsDirectiveSniff())
        assert fixed == "<?php\n/* phpcs:disable */\n$a = 1;\n"
        assert [d.code for d in outcome.remaining] == ["BareDisable"]


class TestNoteSeparator:
    """A note glued to a sniff code silently breaks the suppression."""

    @pytest.mark.parametrize(("line", "expected"), [
        ("// phpcs:ignore Foo.Bar this note lacks the separator\n",
         "// phpcs:ignore Foo.Bar -- this note lacks the separator\n"),
        ("// phpcs:ignore Foo.Bar, Baz.Qux reason goes here\n",
         "// phpcs:ignore Foo.Bar, Baz.Qux -- reason goes here\n"),
        ("/* phpcs:ignore Gamma.Three some note here */\n",
         "/* phpcs:ignore Gamma.Three -- some note here */\n"),
        ("# phpcs:ignore Delta.Four hash note\n",
         "# phpcs:ignore Delta.Four -- hash note\n"),
        ("// phpcs:ignore Epsilon.Five\ttab note here\n",
         "// phpcs:ignore Epsilon.Five -- tab note here\n"),
        ("// phpcs:ignore Zeta.Six Zeta.Seven\n",
         "// phpcs:ignore Zeta.Six -- Zeta.Seven\n"),
    ])
    def test_missing_separator_is_fixed(self, line: str, expected: str) -> None:
        source = "<?php\n" + line + "$a = 1;\n"
        assert codes(run_sniff(source, PhpcsDirectiveSniff())) == ["MissingNoteSeparator"]

        outcome, fixed = fix_with(source, PhpcsDirectiveSniff())
        assert fixed == "<?php\n" + expected + "$a = 1;\n"
        assert outcome.status is ConvergenceStatus.CONVERGED
        assert outcome.remaining == ()

    @pytest.mark.parametrize(("line", "expected"), [
        ("// phpcs:ignore Iota.Ten--note no spaces around dashes\n",
         "// phpcs:ignore Iota.Ten -- note no spaces around dashes\n"),
        ("// phpcs:ignore Kappa.Eleven-- note after only\n",
         "// phpcs:ignore Kappa.Eleven -- note after only\n"),
    ])
    def test_malformed_separator_is_fixed(self, line: str, expected: str) -> None:
        source = "<?php\n" + line + "$a = 1;\n"
        ctx = run_sniff(source, PhpcsDirectiveSniff())
        (diagnostic,) = ctx.sink.diagnostics
        assert diagnostic.code == "MalformedNoteSeparator"
        assert diagnostic.fixable

        _, fixed = fix_with(source, PhpcsDirectiveSniff())
        assert fixed == "<?php\n" + expected + "$a = 1;\n"

    def test_inline_directive(self) -> None:
        source = "<?php\n$a = 1; // phpcs:ignore Lambda.Twelve inline note here\n"
        _, fixed = fix_with(source, PhpcsDirectiveSniff())
        assert fixed == "<?php\n$a = 1; // phpcs:ignore Lambda.Twelve -- inline note here\n"

    def test_several_corrupted_codes_are_not_fixed(self) -> None:
        source = "<?php\n// phpcs:ignore Eta.Eight note, Theta.Nine note2\n$a = 1;\n"
        ctx = run_sniff(source, PhpcsDirectiveSniff())
        (diagnostic,) = ctx.sink.diagnostics
        assert diagnostic.code == "MissingNoteSeparator"
        assert not diagnostic.fixable
        assert "'Eta.Eight'" in diagnostic.message

        _, fixed = fix_with(source, PhpcsDirectiveSniff())
        assert fixed == source

    def test_disable_and_enable_with_the_same_glued_note_still_pair(self) -> None:
        source = (
            "<?php\n"
            "// phpcs:disable Alpha.One temporarily disabling\n"
            "$a = 1;\n"
            "// phpcs:enable Alpha.One temporarily disabling\n"
        )
        assert _by_line(source) == [(2, "MissingNoteSeparator"), (4, "MissingNoteSeparator")]

    def test_clean_disable_with_glued_enable_cascades(self) -> None:
        source = "<?php\n// phpcs:disable Foo.Bar\n$a = 1;\n// phpcs:enable Foo.Bar note\n"
        assert sorted(_by_line(source)) == [
            (2, "UnmatchedDisable"),
            (4, "MissingNoteSeparator"),
            (4, "UnmatchedEnable"),
        ]
