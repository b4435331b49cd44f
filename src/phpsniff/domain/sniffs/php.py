"""General PHP sniffs: strict types, read-only superglobals and discouraged `mixed`."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from phpsniff.domain.sniffs import Sniff
from phpsniff.domain.tokens import ASSIGNMENT_TOKENS, EMPTY_TOKENS
from phpsniff.domain.tokens import TokenKind as K

if TYPE_CHECKING:
    from phpsniff.domain.context import SniffContext

_STRICT_TYPES_MESSAGE = "PHP file must contain declare(strict_types=1); after the opening PHP tag"
_STRICT_TYPES = "declare(strict_types=1);"


class StrictTypesSniff(Sniff):
    """The first statement after the opening tag must be declare(strict_types=1).

    Fixable by inserting the declaration after the open tag (or after a
    file docblock that directly follows it). Files that start with inline
    HTML, and files whose leading declare() sets something else, are
    reported but left alone.
    """

    code = "PHP.StrictTypes"
    description = "Require declare(strict_types=1) at the top of every PHP file."

    def register(self) -> frozenset[K]:
        return frozenset({K.OPEN_TAG})

    def process(self, ctx: "SniffContext", ptr: int) -> Optional[int]:
        done = len(ctx.store)
        first = ctx.query.next_significant(ptr)
        if first is not None and ctx.store[first].kind == K.DECLARE:
            if not self._declares_strict_types(ctx, first):
                ctx.add_error(_STRICT_TYPES_MESSAGE, ptr, "MissingStrictTypes")
            return done

        if ctx.store[0].kind == K.INLINE_HTML:
            ctx.add_error(_STRICT_TYPES_MESSAGE, ptr, "MissingStrictTypes")
            return done

        if ctx.add_fixable_error(_STRICT_TYPES_MESSAGE, ptr, "MissingStrictTypes"):
            self._insert_declaration(ctx, ptr)
        return done

    @staticmethod
    def _declares_strict_types(ctx: "SniffContext", declare: int) -> bool:
        opener = ctx.store[declare].parenthesis_opener
        closer = ctx.store[declare].parenthesis_closer
        if opener is None or closer is None:
            return False
        content = ctx.query.significant_text(opener + 1, closer)
        return "strict_types=1" in content

    @staticmethod
    def _insert_declaration(ctx: "SniffContext", ptr: int) -> None:
        eol = ctx.store.eol
        following = ctx.query.find_next(K.WHITESPACE, ptr + 1, exclude=True)
        if following is not None and ctx.store[following].kind == K.DOC_COMMENT_OPEN_TAG:
            doc_closer = ctx.store[following].matching_closer
            if doc_closer is not None:
                ctx.fixer.add_content(doc_closer, eol + eol + _STRICT_TYPES)
                return
        if ctx.store[ptr].text.endswith(("\n", "\r")):
            ctx.fixer.add_content(ptr, eol + _STRICT_TYPES + eol)
        else:
            ctx.fixer.add_content(ptr, eol + eol + _STRICT_TYPES + eol)


@dataclass(frozen=True)
class DisallowSuperglobalWriteOptions:
    superglobals: tuple[str, ...] = (
        "$_GET", "$_POST", "$_REQUEST", "$_SERVER",
        "$_COOKIE", "$_SESSION", "$_FILES", "$_ENV",
    )


class DisallowSuperglobalWriteSniff(Sniff):
    """Superglobals are read-only: no assignment to them (or their elements) and no unset()."""

    code = "PHP.DisallowSuperglobalWrite"
    description = "Disallow assigning to or unsetting superglobals."
    options_type = DisallowSuperglobalWriteOptions

    def __init__(self, options: Optional[DisallowSuperglobalWriteOptions] = None) -> None:
        super().__init__(options)
        self._superglobals = frozenset(name.strip() for name in self.options.superglobals)

    def register(self) -> frozenset[K]:
        return frozenset({K.VARIABLE, K.UNSET})

    def process(self, ctx: "SniffContext", ptr: int) -> Optional[int]:
        token = ctx.store[ptr]
        if token.kind == K.UNSET:
            self._check_unset(ctx, ptr)
            return None
        if token.text not in self._superglobals:
            return None

        # Walk past $_GET['a']['b'] to whatever follows the access.
        position: Optional[int] = ptr + 1
        while position is not None and position < len(ctx.store):
            current = ctx.store[position]
            if current.kind in EMPTY_TOKENS:
                position += 1
            elif current.kind == K.OPEN_SQUARE_BRACKET:
                if current.matching_closer is None:
                    return None
                position = current.matching_closer + 1
            else:
                break
        if position is None or position >= len(ctx.store):
            return None
        if ctx.store[position].kind not in ASSIGNMENT_TOKENS:
            return None
        ctx.add_error(
            "Direct write to superglobal '%s' is not allowed. Superglobals should be treated as read-only.",
            ptr,
            "SuperglobalWrite",
            (token.text,),
            dedup_key=ptr,
        )
        return None

    def _check_unset(self, ctx: "SniffContext", ptr: int) -> None:
        opener = ctx.store[ptr].parenthesis_opener
        closer = ctx.store[ptr].parenthesis_closer
        if opener is None or closer is None:
            return
        for position in range(opener + 1, closer):
            token = ctx.store[position]
            if token.kind != K.VARIABLE or token.text not in self._superglobals:
                continue
            ctx.add_error(
                "Unsetting superglobal '%s' is not allowed. Superglobals should be treated as read-only.",
                position,
                "SuperglobalUnset",
                (token.text,),
                dedup_key=position,
            )


_RETURN_TYPE_END = frozenset({
    K.OPEN_CURLY_BRACKET,
    K.SEMICOLON,
    K.CLOSE_PARENTHESIS,
    K.FN_ARROW,
})

_MIXED_PARAMETER = "Parameter '%s' uses the 'mixed' type. Consider using a more specific type."


class DiscouragedMixedTypeSniff(Sniff):
    """Warn on `mixed` parameter, return and property types.

    Property-hook `set(mixed $value)` parameters are recognised even though
    `set` is not a function keyword.
    """

    code = "PHP.DiscouragedMixedType"
    description = "Discourage the 'mixed' type in declarations."

    def register(self) -> frozenset[K]:
        return frozenset({K.FUNCTION, K.CLOSURE, K.FN, K.VARIABLE})

    def process(self, ctx: "SniffContext", ptr: int) -> Optional[int]:
        if ctx.store[ptr].kind == K.VARIABLE:
            self._check_hook_set_parameter(ctx, ptr)
            self._check_property(ctx, ptr)
            return None
        self._check_parameters(ctx, ptr)
        self._check_return_type(ctx, ptr)
        return None

    def _check_parameters(self, ctx: "SniffContext", ptr: int) -> None:
        for parameter in ctx.query.method_parameters(ptr):
            if parameter.type_hint.lower() == "mixed":
                ctx.add_warning(_MIXED_PARAMETER, ptr, "MixedParameterType",
                                (parameter.name,), dedup_key=parameter.variable)

    def _check_return_type(self, ctx: "SniffContext", ptr: int) -> None:
        token = ctx.store[ptr]
        if token.parenthesis_closer is None:
            return
        closer = token.parenthesis_closer
        search_end = token.scope_opener
        if search_end is None:
            search_end = ctx.query.find_next({K.SEMICOLON, K.FN_ARROW}, closer + 1)
            if search_end is None:
                return
        colon = ctx.query.find_next(K.COLON, closer + 1, search_end)
        if colon is None:
            return
        end = ctx.query.find_next(_RETURN_TYPE_END, colon + 1)
        if end is None:
            return
        if ctx.query.significant_text(colon + 1, end).lower() == "mixed":
            ctx.add_warning(
                "Return type uses 'mixed'. Consider using a more specific type.",
                ptr,
                "MixedReturnType",
            )

    def _check_property(self, ctx: "SniffContext", ptr: int) -> None:
        member = ctx.query.member_property(ptr)
        if member is None or member.type_hint.lower() != "mixed":
            return
        ctx.add_warning(
            "Property '%s' uses the 'mixed' type. Consider using a more specific type.",
            ptr,
            "MixedPropertyType",
            (ctx.store[ptr].text,),
        )

    def _check_hook_set_parameter(self, ctx: "SniffContext", ptr: int) -> None:
        token = ctx.store[ptr]
        if not token.nested_parenthesis:
            return
        opener = token.nested_parenthesis[-1]
        if ctx.store[opener].parenthesis_owner is not None:
            return
        before = ctx.query.previous_significant(opener)
        if before is None or ctx.store[before].kind != K.STRING or ctx.store[before].text != "set":
            return
        type_ptr = ctx.query.previous_significant(ptr, opener)
        if type_ptr is None or ctx.store[type_ptr].kind != K.STRING:
            return
        if ctx.store[type_ptr].text.lower() == "mixed":
            ctx.add_warning(_MIXED_PARAMETER, ptr, "MixedParameterType",
                            (token.text,), dedup_key=ptr)
