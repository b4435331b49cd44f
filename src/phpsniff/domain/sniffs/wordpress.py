"""WordPress API usage sniffs: unhookable callbacks and unprotected REST routes."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from phpsniff.domain.query import Argument
from phpsniff.domain.sniffs import Sniff
from phpsniff.domain.tokens import EMPTY_TOKENS
from phpsniff.domain.tokens import TokenKind as K

if TYPE_CHECKING:
    from phpsniff.domain.context import SniffContext

_NOT_A_FUNCTION_CALL = frozenset({
    K.OBJECT_OPERATOR,
    K.NULLSAFE_OBJECT_OPERATOR,
    K.DOUBLE_COLON,
    K.FUNCTION,
    K.NEW,
})

_CALLABLE_NAME_PARTS = frozenset({
    K.STRING,
    K.NS_SEPARATOR,
    K.DOUBLE_COLON,
    K.OBJECT_OPERATOR,
    K.NULLSAFE_OBJECT_OPERATOR,
    K.VARIABLE,
})

_INDIRECT_CALLERS = frozenset({"call_user_func", "call_user_func_array"})
_CLOSURE_WRAPPERS = frozenset({"fromCallable", "bind"})


def function_call_opener(ctx: "SniffContext", ptr: int) -> Optional[int]:
    """Opening parenthesis when the STRING at ptr is a plain function call, else None."""
    previous = ctx.query.previous_significant(ptr)
    if previous is not None and ctx.store[previous].kind in _NOT_A_FUNCTION_CALL:
        return None
    opener = ctx.query.next_significant(ptr)
    if opener is None or ctx.store[opener].kind != K.OPEN_PARENTHESIS:
        return None
    if ctx.store[opener].matching_closer is None:
        return None
    return opener


def split_list(value: tuple[str, ...]) -> frozenset[str]:
    return frozenset(item.strip() for item in value if item.strip())


@dataclass(frozen=True)
class NoHookClosureOptions:
    hook_functions: tuple[str, ...] = ("add_action", "add_filter")


class NoHookClosureSniff(Sniff):
    """Hook callbacks must be removable with remove_action()/remove_filter().

    Closures, arrow functions, Closure::fromCallable()/bind() wrappers,
    anonymous class instances and first-class callables cannot be unhooked
    and are errors. A bare variable callback and call_user_func() indirection
    are warnings because they need a human to look.
    """

    code = "WordPress.NoHookClosure"
    description = "Disallow closures and other unhookable callbacks in hook registrations."
    options_type = NoHookClosureOptions

    def __init__(self, options: Optional[NoHookClosureOptions] = None) -> None:
        super().__init__(options)
        self._hooks = split_list(self.options.hook_functions)

    def register(self) -> frozenset[K]:
        return frozenset({K.STRING})

    def process(self, ctx: "SniffContext", ptr: int) -> Optional[int]:
        function_name = ctx.store[ptr].text
        if function_name in _INDIRECT_CALLERS:
            self._check_indirect_registration(ctx, ptr)
            return None
        if function_name not in self._hooks:
            return None
        opener = function_call_opener(ctx, ptr)
        if opener is None:
            return None

        arguments = ctx.query.call_arguments(opener)
        if len(arguments) < 2:
            return None
        closer = ctx.store[opener].matching_closer
        for position, argument in enumerate(arguments):
            # Positionally the callback is the second argument; a named one could be anywhere.
            if argument.name is None and position != 1:
                continue
            self._check_callback(ctx, argument, closer, function_name)
        return None

    def _check_callback(self, ctx: "SniffContext", argument: Argument, closer: int,
                        function_name: str) -> None:
        value = argument.value
        if ctx.store[value].kind == K.STATIC:
            after_static = ctx.query.next_significant(value, closer)
            if after_static is not None:
                value = after_static

        kind = ctx.store[value].kind
        if kind in (K.CLOSURE, K.FN):
            ctx.add_error(
                "Closure used as callback for '%s'. Use a named function or method "
                "reference instead; closures cannot be unhooked.",
                value,
                "ClosureHookCallback",
                (function_name,),
            )
            return

        wrapper = self._closure_wrapper(ctx, value, closer)
        if wrapper is not None:
            ctx.add_error(
                "'Closure::%s()' used as callback for '%s'. The resulting closure cannot be unhooked.",
                value,
                "ClosureWrapperCallback",
                (wrapper, function_name),
            )
            return

        if kind == K.NEW:
            after_new = ctx.query.next_significant(value, closer)
            if after_new is not None and ctx.store[after_new].kind == K.ANON_CLASS:
                ctx.add_error(
                    "Anonymous class used as callback for '%s'. Use a named class or function "
                    "reference instead; anonymous instances cannot be unhooked.",
                    value,
                    "AnonymousClassCallback",
                    (function_name,),
                )
                return

        if self._is_first_class_callable(ctx, value, closer):
            ctx.add_error(
                "First-class callable used as callback for '%s'. Use a named function string "
                "or array reference instead; first-class callables create closures that "
                "cannot be unhooked.",
                value,
                "FirstClassCallableCallback",
                (function_name,),
            )
            return

        if kind == K.VARIABLE:
            after = ctx.query.next_significant(value, closer + 1)
            if after is not None and ctx.store[after].kind in (K.COMMA, K.CLOSE_PARENTHESIS):
                ctx.add_warning(
                    "Variable '%s' used as callback for '%s'. Cannot determine at static "
                    "analysis time whether this is hookable; manual inspection needed.",
                    value,
                    "VariableCallback",
                    (ctx.store[value].text, function_name),
                )

    @staticmethod
    def _closure_wrapper(ctx: "SniffContext", value: int, closer: int) -> Optional[str]:
        """Method name when the value is a Closure::fromCallable() or Closure::bind() call."""
        class_ptr: Optional[int] = value
        if ctx.store[value].kind == K.NS_SEPARATOR:
            class_ptr = ctx.query.next_significant(value, closer)
        if class_ptr is None:
            return None
        token = ctx.store[class_ptr]
        if token.kind != K.STRING or token.text != "Closure":
            return None
        colons = ctx.query.next_significant(class_ptr, closer)
        if colons is None or ctx.store[colons].kind != K.DOUBLE_COLON:
            return None
        method = ctx.query.next_significant(colons, closer)
        if method is None or ctx.store[method].kind != K.STRING:
            return None
        if ctx.store[method].text not in _CLOSURE_WRAPPERS:
            return None
        return ctx.store[method].text

    @staticmethod
    def _is_first_class_callable(ctx: "SniffContext", value: int, closer: int) -> bool:
        """True for name(...), Class::method(...) and $obj->method(...)."""
        position = value
        while position < closer:
            kind = ctx.store[position].kind
            if kind in EMPTY_TOKENS or kind in _CALLABLE_NAME_PARTS:
                position += 1
                continue
            break
        token = ctx.store[position]
        if token.kind != K.OPEN_PARENTHESIS or token.matching_closer is None:
            return False
        inner = ctx.query.next_significant(position, token.matching_closer)
        if inner is None or ctx.store[inner].kind != K.ELLIPSIS:
            return False
        return ctx.query.next_significant(inner, token.matching_closer) is None

    def _check_indirect_registration(self, ctx: "SniffContext", ptr: int) -> None:
        opener = function_call_opener(ctx, ptr)
        if opener is None:
            return
        first = ctx.query.next_significant(opener, ctx.store[opener].matching_closer)
        if first is None or ctx.store[first].kind != K.CONSTANT_ENCAPSED_STRING:
            return
        hook_name = ctx.store[first].text.strip("\"'")
        if hook_name not in self._hooks:
            return
        ctx.add_warning(
            "Indirect hook registration via '%s()' for '%s'. Closure detection cannot be "
            "performed; manual inspection needed.",
            ptr,
            "IndirectHookRegistration",
            (ctx.store[ptr].text, hook_name),
        )


@dataclass(frozen=True)
class RequirePermissionCallbackOptions:
    route_functions: tuple[str, ...] = ("register_rest_route",)


_MISSING_PERMISSION_CALLBACK = (
    "Missing 'permission_callback' in register_rest_route() args. REST endpoints "
    "without explicit permission callbacks are a security risk."
)


class RequirePermissionCallbackSniff(Sniff):
    """REST route registrations must set `permission_callback` explicitly.

    The args array is the third positional argument or the named `args:`
    argument. Arrays built elsewhere ($args, get_args()) cannot be checked
    and are skipped. In the multi-route form every inner array is checked on
    its own and reported at its own position.
    """

    code = "WordPress.RequirePermissionCallback"
    description = "Require an explicit permission_callback in REST route registrations."
    options_type = RequirePermissionCallbackOptions

    def __init__(self, options: Optional[RequirePermissionCallbackOptions] = None) -> None:
        super().__init__(options)
        self._routes = split_list(self.options.route_functions)

    def register(self) -> frozenset[K]:
        return frozenset({K.STRING})

    def process(self, ctx: "SniffContext", ptr: int) -> Optional[int]:
        if ctx.store[ptr].text not in self._routes:
            return None
        opener = function_call_opener(ctx, ptr)
        if opener is None:
            return None

        args_value = None
        for position, argument in enumerate(ctx.query.call_arguments(opener)):
            if argument.name == "args":
                args_value = argument.value
                break
            if position == 2 and argument.name is None:
                args_value = argument.value
                break
        if args_value is None:
            return None

        span = self._array_span(ctx, args_value)
        if span is None:
            return None
        self._check_args_array(ctx, ptr, *span)
        return None

    @staticmethod
    def _array_span(ctx: "SniffContext", ptr: int) -> Optional[tuple[int, int]]:
        """(first inner position, closer) of an array() or [] literal at ptr."""
        token = ctx.store[ptr]
        if token.kind == K.OPEN_SHORT_ARRAY and token.matching_closer is not None:
            return ptr + 1, token.matching_closer
        if token.kind == K.ARRAY:
            opener = ctx.query.next_significant(ptr)
            if opener is None or ctx.store[opener].kind != K.OPEN_PARENTHESIS:
                return None
            closer = ctx.store[opener].matching_closer
            if closer is None:
                return None
            return opener + 1, closer
        return None

    def _check_args_array(self, ctx: "SniffContext", call_ptr: int, start: int, end: int) -> None:
        first = ctx.query.skip_insignificant(start, end=end)
        if first is None:
            ctx.add_error(_MISSING_PERMISSION_CALLBACK, call_ptr, "MissingPermissionCallback")
            return
        if self._array_span(ctx, first) is not None:
            self._check_multi_route(ctx, start, end)
            return
        if not self._has_permission_callback(ctx, start, end):
            ctx.add_error(_MISSING_PERMISSION_CALLBACK, call_ptr, "MissingPermissionCallback")

    def _check_multi_route(self, ctx: "SniffContext", start: int, end: int) -> None:
        position = start
        while position < end:
            item = ctx.query.skip_insignificant(position, end=end)
            if item is None:
                break
            span = self._array_span(ctx, item)
            if span is None:
                position = item + 1
                continue
            inner_start, inner_end = span
            if not self._has_permission_callback(ctx, inner_start, inner_end):
                ctx.add_error(
                    _MISSING_PERMISSION_CALLBACK, item, "MissingPermissionCallback",
                    dedup_key=item,
                )
            position = inner_end + 1

    @staticmethod
    def _has_permission_callback(ctx: "SniffContext", start: int, end: int) -> bool:
        """True when 'permission_callback' is a top-level key between start and end."""
        position = start
        while position < end:
            token = ctx.store[position]
            if token.matching_closer is not None and token.matching_closer > position:
                position = token.matching_closer + 1
                continue
            if token.kind == K.CONSTANT_ENCAPSED_STRING and token.text.strip("\"'") == "permission_callback":
                following = ctx.query.next_significant(position, end)
                if following is not None and ctx.store[following].kind == K.DOUBLE_ARROW:
                    return True
            position += 1
        return False
