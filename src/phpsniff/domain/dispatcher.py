"""Sniff registry and dispatcher."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

from phpsniff.domain.context import FileIdentity, SniffContext
from phpsniff.domain.diagnostics import Severity
from phpsniff.domain.sniffs import Sniff
from phpsniff.domain.tokens import TokenKind

logger = logging.getLogger(__name__)

INTERNAL_SOURCE = "Internal.SniffException"


@dataclass(frozen=True)
class Registration:
    interest: frozenset[TokenKind]
    sniff: Sniff


class SniffRegistry:
    """Ordered (interest set, sniff) registrations and the token walk that drives them."""

    def __init__(self, sniffs: Sequence[Sniff] = ()) -> None:
        self._registrations: list[Registration] = []
        self._identity: Optional[FileIdentity] = None
        for sniff in sniffs:
            self.register(sniff)

    def register(self, sniff: Sniff) -> Registration:
        registration = Registration(frozenset(sniff.register()), sniff)
        self._registrations.append(registration)
        return registration

    @property
    def registrations(self) -> tuple[Registration, ...]:
        return tuple(self._registrations)

    @property
    def sniffs(self) -> list[Sniff]:
        return [registration.sniff for registration in self._registrations]

    def dispatch(self, ctx: SniffContext) -> None:
        """Call every interested sniff for every token, in registration order.

        A sniff that raises is logged, reported as an internal error, has its
        open changeset discarded, and is skipped for the rest of this pass.
        Other sniffs keep running.
        """
        if ctx.identity != self._identity:
            for registration in self._registrations:
                registration.sniff.reset(ctx.identity)
            self._identity = ctx.identity

        by_kind: dict[TokenKind, list[int]] = {}
        for position, registration in enumerate(self._registrations):
            for kind in registration.interest:
                by_kind.setdefault(kind, []).append(position)
        for handlers in by_kind.values():
            handlers.sort()

        resume_at = [0] * len(self._registrations)
        for token in ctx.store:
            for position in by_kind.get(token.kind, ()):
                if token.index < resume_at[position]:
                    continue
                sniff = self._registrations[position].sniff
                resume = self._invoke(ctx, sniff, token.index)
                if resume is not None and resume > token.index:
                    resume_at[position] = resume

    def _invoke(self, ctx: SniffContext, sniff: Sniff, ptr: int) -> Optional[int]:
        ctx.current_sniff = sniff.code
        if ctx.fixer is not None:
            ctx.fixer.current_source = sniff.code
        try:
            return sniff.process(ctx, ptr)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Sniff %s failed on %s at token %s", sniff.code, ctx.path, ptr)
            if ctx.fixer is not None and ctx.fixer.in_changeset:
                ctx.fixer.rollback_changeset()
            ctx.current_sniff = ""
            ctx.report(
                ptr,
                INTERNAL_SOURCE,
                Severity.ERROR,
                "Sniff %s raised %s: %s; it was skipped for the rest of this file.",
                (sniff.code, type(exc).__name__, exc),
                dedup_key=sniff.code,
            )
            return len(ctx.store)
        finally:
            ctx.current_sniff = ""


@dataclass(frozen=True)
class SniffSpec:
    """A sniff class plus its frozen, shareable options."""

    sniff_type: type[Sniff]
    options: object


class SniffFactory:
    """Builds fresh sniff instances so each worker owns its per-file state."""

    def __init__(self, specs: Sequence[SniffSpec]) -> None:
        self._specs = tuple(specs)

    @property
    def specs(self) -> tuple[SniffSpec, ...]:
        return self._specs

    @property
    def codes(self) -> list[str]:
        return [spec.sniff_type.code for spec in self._specs]

    def build_registry(self) -> SniffRegistry:
        return SniffRegistry([spec.sniff_type(spec.options) for spec in self._specs])
