"""Function signature sniffs: parameter and return type declarations."""

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from phpsniff.domain.docblock import (
    BUILTIN_TYPES,
    normalize_docblock_type,
    param_type,
    return_type,
)
from phpsniff.domain.sniffs import Sniff
from phpsniff.domain.tokens import TokenKind as K

if TYPE_CHECKING:
    from phpsniff.domain.context import SniffContext

_RETURN_TYPE_END = frozenset({K.OPEN_CURLY_BRACKET, K.SEMICOLON})


class TypeHintingSniff(Sniff):
    """Every function parameter must declare a type.

    When the function's docblock has `@param Type $name` and Type maps to a
    single native type, the fix inserts it in front of the parameter
    (before `&` or `...` when present). Other cases are reported only.
    """

    code = "Functions.TypeHinting"
    description = "Require type declarations on function parameters."

    def register(self) -> frozenset[K]:
        return frozenset({K.FUNCTION})

    def process(self, ctx: "SniffContext", ptr: int) -> Optional[int]:
        function_name = ctx.query.declaration_name(ptr) or ""
        for parameter in ctx.query.method_parameters(ptr):
            if parameter.type_hint != "":
                continue
            message = "Missing type declaration for parameter '%s' in function '%s'"
            args = (parameter.name, function_name)
            native = normalize_docblock_type(param_type(ctx.store, ptr, parameter.name))
            if native is None:
                ctx.add_error(message, ptr, "MissingParameterType", args,
                              dedup_key=parameter.variable)
                continue
            if ctx.add_fixable_error(message, ptr, "MissingParameterType", args,
                                     dedup_key=parameter.variable):
                insert_before = parameter.variable
                if parameter.reference_token is not None:
                    insert_before = parameter.reference_token
                elif parameter.variadic_token is not None:
                    insert_before = parameter.variadic_token
                ctx.fixer.add_content_before(insert_before, native + " ")
        return None


@dataclass(frozen=True)
class TypeDeclarationOptions:
    validate_types: bool = False
    known_classes: tuple[str, ...] = ()


class TypeDeclarationSniff(Sniff):
    """Every function except constructors, destructors and __clone must declare a return type.

    A missing type is fixable from an unambiguous `@return` tag. With
    validate_types on, declared types must be PHP builtins or listed in
    known_classes.
    """

    code = "Functions.TypeDeclaration"
    description = "Require return type declarations on functions."
    options_type = TypeDeclarationOptions

    excluded_methods = frozenset({"__construct", "__destruct", "__clone"})

    def register(self) -> frozenset[K]:
        return frozenset({K.FUNCTION})

    def process(self, ctx: "SniffContext", ptr: int) -> Optional[int]:
        function_name = ctx.query.declaration_name(ptr) or ""
        if function_name.lower() in self.excluded_methods:
            return None
        closer = ctx.store[ptr].parenthesis_closer
        if closer is None:
            return None

        colon = ctx.query.next_significant(closer)
        if colon is None or ctx.store[colon].kind != K.COLON:
            message = "Missing return type declaration for function '%s'"
            native = normalize_docblock_type(return_type(ctx.store, ptr))
            if native is None:
                ctx.add_error(message, ptr, "MissingReturnType", (function_name,))
            elif ctx.add_fixable_error(message, ptr, "MissingReturnType", (function_name,)):
                ctx.fixer.add_content(closer, ": " + native)
            return None

        if self.options.validate_types:
            end = ctx.query.find_next(_RETURN_TYPE_END, colon + 1)
            if end is None:
                return None
            declared = ctx.query.significant_text(colon + 1, end)
            if not self.is_valid_return_type(declared):
                ctx.add_error(
                    "Invalid return type declaration '%s' for function '%s'",
                    ptr,
                    "InvalidReturnType",
                    (declared, function_name),
                )
        return None

    def is_valid_return_type(self, declared: str) -> bool:
        for part in re.split(r"[|&]", declared.replace("?", "")):
            name = part.strip().strip("()").lstrip("\\")
            if name in BUILTIN_TYPES or name in self.options.known_classes:
                continue
            return False
        return True
