"""Class-level declaration sniffs."""

from typing import TYPE_CHECKING, Optional

from phpsniff.domain.sniffs import Sniff
from phpsniff.domain.tokens import TokenKind as K

if TYPE_CHECKING:
    from phpsniff.domain.context import SniffContext


class TypedPropertySniff(Sniff):
    """Class properties must declare a type.

    Not fixable: a missing property type cannot be inferred safely.
    Variables inside property-hook bodies sit in braces no keyword owns, so
    they are recognised as orphan-block contents and skipped.
    """

    code = "Classes.TypedProperty"
    description = "Require a type declaration on every class property."

    def register(self) -> frozenset[K]:
        return frozenset({K.VARIABLE})

    def process(self, ctx: "SniffContext", ptr: int) -> Optional[int]:
        member = ctx.query.member_property(ptr)
        if member is None:
            return None
        if member.type_hint == "":
            ctx.add_error(
                "Missing type declaration for property '%s'.",
                ptr,
                "MissingPropertyType",
                (ctx.store[ptr].text,),
            )
        return None
