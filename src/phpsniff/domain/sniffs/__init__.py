"""Sniff contract: the extension point every rule implements."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, Optional

from phpsniff.domain.tokens import TokenKind

if TYPE_CHECKING:
    from phpsniff.domain.context import FileIdentity, SniffContext


@dataclass(frozen=True)
class NoOptions:
    """Options type for sniffs that take none."""


class Sniff(ABC):
    """Base class for sniffs.

    A sniff declares the token kinds it wants through register() and is
    called with process() for every matching position. Options are frozen
    and may be shared between workers; anything a sniff remembers between
    calls must be cleared in reset(), which the dispatcher invokes whenever
    the file (or its revision) changes.
    """

    code: ClassVar[str] = ""
    description: ClassVar[str] = ""
    options_type: ClassVar[type] = NoOptions

    def __init__(self, options: Optional[object] = None) -> None:
        self.options = options if options is not None else self.options_type()

    @abstractmethod
    def register(self) -> frozenset[TokenKind]:
        """Token kinds this sniff is dispatched on."""

    @abstractmethod
    def process(self, ctx: "SniffContext", ptr: int) -> Optional[int]:
        """Inspect one position. May return a later position to resume at."""

    def reset(self, identity: "FileIdentity") -> None:
        """Forget per-file bookkeeping. Stateless sniffs need not override."""
