"""Unit tests for docblock lookup and type normalization."""

import pytest

from phpsniff.domain.docblock import (
    function_docblock,
    normalize_docblock_type,
    param_type,
    resolve_simple_type,
    return_type,
    tag_strings,
)
from phpsniff.domain.tokens import TokenKind as K
from tests.sniff_test_utils import build_store

DOCUMENTED = (
    "<?php\n"
    "/**\n"
    " * Adds things.\n"
    " * @param int $a The first.\n"
    " * @param string[] $b\n"
    " * @return string\n"
    " */\n"
    "public static function f($a, $b) {}\n"
)


def _function(store) -> int:
    return next(token.index for token in store if token.kind is K.FUNCTION)


class TestNormalizeDocblockType:
    """Docblock types to native declarations."""

    @pytest.mark.parametrize(
        ("docblock_type", "expected"),
        [
            ("integer", "int"),
            ("Boolean", "bool"),
            ("int[]", "array"),
            ("array<string, int>", "array"),
            ("?Foo", "?Foo"),
            ("null|string", "?string"),
            ("\\Foo\\Bar|null", "?\\Foo\\Bar"),
            ("int|string", None),
            ("int|string|null", None),
            ("", None),
            (None, None),
        ],
    )
    def test_conversions(self, docblock_type, expected) -> None:
        assert normalize_docblock_type(docblock_type) == expected

    def test_resolve_simple_type_rejects_garbage(self) -> None:
        assert resolve_simple_type("int-ish") is None
        assert resolve_simple_type(" Mixed ") == "mixed"


class TestDocblockLookup:
    """Finding a function's docblock and its tags."""

    def test_param_and_return_types(self) -> None:
        store = build_store(DOCUMENTED)
        function = _function(store)
        assert param_type(store, function, "$a") == "int"
        assert param_type(store, function, "$b") == "string[]"
        assert param_type(store, function, "$missing") is None
        assert return_type(store, function) == "string"

    def test_tag_strings(self) -> None:
        store = build_store(DOCUMENTED)
        opener = function_docblock(store, _function(store))
        assert opener is not None
        assert tag_strings(store, opener, "@param") == ["int $a The first.", "string[] $b"]

    def test_docblock_separated_by_code_is_not_attached(self) -> None:
        store = build_store("<?php\n/** @return int */\n$a = 1;\nfunction f() {}\n")
        function = _function(store)
        assert function_docblock(store, function) is None
        assert return_type(store, function) is None

    def test_no_docblock_at_start_of_file(self) -> None:
        store = build_store("<?php function f() {}")
        assert function_docblock(store, _function(store)) is None
