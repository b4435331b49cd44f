"""Unit tests for TokenStore structural linking."""

import pytest

from phpsniff.domain.token_store import TokenStore
from phpsniff.domain.tokens import TokenKind as K
from tests.sniff_test_utils import build_store


def _find(store: TokenStore, kind: K, nth: int = 0) -> int:
    matches = [token.index for token in store if token.kind is kind]
    return matches[nth]


class TestBracketPairs:
    """matching_opener / matching_closer links."""

    def test_pairs_are_symmetric(self) -> None:
        """Every closer link points back at its opener."""
        store = build_store(
            "<?php\n/** Doc */\nfunction f(array $a = [1, [2]]) { return $a[0] ?? (1); }\n")
        linked = [token for token in store if token.matching_closer is not None]
        assert linked
        for token in linked:
            closer = store[token.matching_closer]
            assert closer.matching_opener == token.index

    def test_docblock_open_and_close_are_paired(self) -> None:
        store = build_store("<?php\n/**\n * Text\n */\n")
        opener = _find(store, K.DOC_COMMENT_OPEN_TAG)
        assert store[opener].matching_closer == _find(store, K.DOC_COMMENT_CLOSE_TAG)

    def test_unmatched_outer_bracket_keeps_inner_pair(self) -> None:
        """A missing closer leaves the outer opener unlinked and the inner pair intact."""
        store = build_store("<?php $a = [1, [2, 3];")
        outer = _find(store, K.OPEN_SHORT_ARRAY, 0)
        inner = _find(store, K.OPEN_SHORT_ARRAY, 1)
        assert store[outer].matching_closer is None
        assert store[inner].matching_closer == _find(store, K.CLOSE_SHORT_ARRAY)

    def test_stray_closer_is_ignored(self) -> None:
        store = build_store("<?php } ) $a;")
        assert all(token.matching_opener is None for token in store)


class TestScopes:
    """Scope ownership and the condition stack."""

    def test_function_and_if_scopes(self) -> None:
        store = build_store("<?php function f($a) { if ($a) { return 1; } }")
        function = _find(store, K.FUNCTION)
        if_token = _find(store, K.IF)
        ret = _find(store, K.RETURN)

        assert store[function].scope_opener == _find(store, K.OPEN_CURLY_BRACKET, 0)
        assert store[function].scope_closer == _find(store, K.CLOSE_CURLY_BRACKET, 1)
        assert store[if_token].scope_closer == _find(store, K.CLOSE_CURLY_BRACKET, 0)
        assert store[ret].conditions == (function, if_token)
        assert store[ret].level == 2

    def test_closer_conditions_exclude_its_own_owner(self) -> None:
        store = build_store("<?php class C { }")
        closer = store[_find(store, K.CLOSE_CURLY_BRACKET)]
        assert closer.conditions == ()
        assert closer.scope_condition == _find(store, K.CLASS)

    def test_bodyless_method_does_not_steal_class_brace(self) -> None:
        """An abstract or interface method ends at its semicolon."""
        store = build_store("<?php interface I { public function f(); }")
        interface = _find(store, K.INTERFACE)
        function = _find(store, K.FUNCTION)
        assert store[interface].scope_closer == _find(store, K.CLOSE_CURLY_BRACKET)
        assert store[function].scope_opener is None

    def test_alternative_syntax_has_no_scope(self) -> None:
        store = build_store("<?php if ($a): echo 1; endif; function f() {}")
        assert store[_find(store, K.IF)].scope_opener is None
        assert store[_find(store, K.FUNCTION)].scope_opener == _find(store, K.OPEN_CURLY_BRACKET)

    def test_closure_scope_inside_call(self) -> None:
        store = build_store("<?php add(function () { return 1; });")
        closure = _find(store, K.CLOSURE)
        assert store[closure].scope_opener == _find(store, K.OPEN_CURLY_BRACKET)
        assert store[_find(store, K.RETURN)].conditions == (closure,)


class TestParentheses:
    """Parenthesis owners and nesting."""

    def test_function_owns_its_parameter_list(self) -> None:
        store = build_store("<?php function f($a) {}")
        function = _find(store, K.FUNCTION)
        opener = _find(store, K.OPEN_PARENTHESIS)
        closer = _find(store, K.CLOSE_PARENTHESIS)
        assert store[function].parenthesis_opener == opener
        assert store[function].parenthesis_closer == closer
        assert store[opener].parenthesis_owner == function
        assert store[_find(store, K.VARIABLE)].nested_parenthesis == (opener,)

    def test_plain_call_has_no_owner(self) -> None:
        store = build_store("<?php foo($a);")
        assert store[_find(store, K.OPEN_PARENTHESIS)].parenthesis_owner is None


class TestAccess:
    """Lookup helpers on the store."""

    def test_get_and_kind_out_of_range(self) -> None:
        store = build_store("<?php ")
        assert store.get(None) is None
        assert store.get(-1) is None
        assert store.get(len(store)) is None
        assert store.kind(5) is None
        assert store.kind(0) is K.OPEN_TAG

    def test_negative_item_raises(self) -> None:
        with pytest.raises(IndexError):
            build_store("<?php ")[-1]

    def test_source_and_eol(self) -> None:
        source = "<?php\r\necho 1;\r\n"
        store = build_store(source)
        assert store.source == source
        assert store.eol == "\r\n"
        assert build_store("<?php\necho 1;").eol == "\n"

    def test_empty_input(self) -> None:
        store = TokenStore.build([])
        assert len(store) == 0
        assert store.source == ""
