"""Tests for Namespaces.Namespace and Namespaces.GlobalNamespace."""

import pytest

from phpsniff.domain.entities import ConvergenceStatus
from phpsniff.domain.errors import ConfigurationError
from phpsniff.domain.sniffs.namespaces import (
    GlobalNamespaceOptions,
    GlobalNamespaceSniff,
    NamespaceSniff,
    compile_class_pattern,
)
from tests.sniff_test_utils import codes, fix_with, run_sniff


class TestNamespaceSniff:
    """Every file declares a namespace."""

    def test_missing_namespace(self) -> None:
        ctx = run_sniff("<?php\necho 1;\n", NamespaceSniff())
        (diagnostic,) = ctx.sink.diagnostics
        assert diagnostic.code == "MissingNamespace"
        assert diagnostic.line == 1

    def test_namespace_present(self) -> None:
        assert codes(run_sniff("<?php\nnamespace App;\necho 1;\n", NamespaceSniff())) == []

    def test_reported_once_for_many_open_tags(self) -> None:
        assert codes(run_sniff("<?php echo 1; ?>\n<?php echo 2;\n", NamespaceSniff())) == ["MissingNamespace"]


class TestGlobalNamespaceSniff:
    """Global classes in namespaced files need a backslash or an import."""

    def test_bare_core_class_is_fixed(self) -> None:
        source = "<?php\nnamespace App;\n$e = new Exception('x');\n"
        ctx = run_sniff(source, GlobalNamespaceSniff())
        assert codes(ctx) == ["GlobalNamespace"]
        assert ctx.sink.diagnostics[0].fixable

        outcome, fixed = fix_with(source, GlobalNamespaceSniff())
        assert fixed == "<?php\nnamespace App;\n$e = new \\Exception('x');\n"
        assert outcome.status is ConvergenceStatus.CONVERGED
        assert outcome.remaining == ()

    def test_unnamespaced_file_is_skipped(self) -> None:
        assert codes(run_sniff("<?php\n$e = new Exception('x');\n", GlobalNamespaceSniff())) == []

    def test_imported_and_qualified_names_pass(self) -> None:
        source = (
            "<?php\n"
            "namespace App;\n"
            "use Exception;\n"
            "$a = new Exception();\n"
            "$b = new \\DateTime();\n"
            "$c = Exception::class;\n"
            "$d = $obj->Exception;\n"
        )
        assert codes(run_sniff(source, GlobalNamespaceSniff())) == []

    def test_signature_types_use_their_own_codes(self) -> None:
        source = "<?php\nnamespace App;\nfunction f(DateTime $d, ?\\Closure $c): Exception {}\n"
        ctx = run_sniff(source, GlobalNamespaceSniff())
        assert sorted(codes(ctx)) == ["GlobalNamespaceReturnType", "GlobalNamespaceTypeHint"]
        positions = {d.code: ctx.store[d.position].text for d in ctx.sink.diagnostics}
        assert positions == {
            "GlobalNamespaceTypeHint": "DateTime",
            "GlobalNamespaceReturnType": "Exception",
        }

    def test_signature_fix(self) -> None:
        source = "<?php\nnamespace App;\nfunction f(DateTime $d): Exception {}\n"
        _, fixed = fix_with(source, GlobalNamespaceSniff())
        assert fixed.endswith("function f(\\DateTime $d): \\Exception {}\n")

    def test_configured_classes_and_patterns(self) -> None:
        options = GlobalNamespaceOptions(
            known_global_classes=("WP_Post",),
            class_patterns=("/^wp_query$/i",),
            auto_detect_php_classes=False,
        )
        source = (
            "<?php\n"
            "namespace App;\n"
            "$a = new WP_Post();\n"
            "$b = new WP_Query();\n"
            "$c = new Exception();\n"
        )
        ctx = run_sniff(source, GlobalNamespaceSniff(options))
        assert [ctx.store[d.position].text for d in ctx.sink.diagnostics] == ["WP_Post", "WP_Query"]

    def test_declarations_are_not_references(self) -> None:
        source = "<?php\nnamespace App;\nclass Exception {}\nfunction DateTime() {}\nconst Closure = 1;\n"
        assert codes(run_sniff(source, GlobalNamespaceSniff())) == []


class TestCompileClassPattern:
    """Bare and delimited class patterns."""

    def test_delimited_flags(self) -> None:
        assert compile_class_pattern("/^wp_/i").search("WP_Post")

    def test_bare_pattern(self) -> None:
        assert compile_class_pattern("^Acme").search("AcmeThing")
        assert not compile_class_pattern("^Acme").search("NotAcme")

    def test_invalid_pattern(self) -> None:
        with pytest.raises(ConfigurationError):
            compile_class_pattern("[unclosed")
