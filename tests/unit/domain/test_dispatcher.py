"""Unit tests for SniffRegistry dispatch and SniffFactory."""

from typing import Optional

from phpsniff.domain.context import FileIdentity, SniffContext
from phpsniff.domain.diagnostics import Severity
from phpsniff.domain.dispatcher import INTERNAL_SOURCE, SniffFactory, SniffRegistry, SniffSpec
from phpsniff.domain.fixer import Fixer
from phpsniff.domain.sniffs import NoOptions, Sniff
from phpsniff.domain.tokens import TokenKind as K
from tests.sniff_test_utils import build_store

SOURCE = "<?php $a; $b; $c;"


class _Recorder(Sniff):
    code = "Test.Recorder"

    def __init__(self, options: Optional[object] = None, name: str = "rec",
                 log: Optional[list] = None) -> None:
        super().__init__(options)
        self.name = name
        self.log = log if log is not None else []
        self.resets = 0
        self.seen_this_file = 0

    def register(self) -> frozenset[K]:
        return frozenset({K.VARIABLE})

    def process(self, ctx: SniffContext, ptr: int) -> Optional[int]:
        self.seen_this_file += 1
        self.log.append((self.name, ctx.store[ptr].text))
        return None

    def reset(self, identity: FileIdentity) -> None:
        self.resets += 1
        self.seen_this_file = 0


class _StopAfterFirst(_Recorder):
    code = "Test.StopAfterFirst"

    def process(self, ctx: SniffContext, ptr: int) -> Optional[int]:
        super().process(ctx, ptr)
        return len(ctx.store)


class _Reporter(_Recorder):
    code = "Test.Reporter"

    def process(self, ctx: SniffContext, ptr: int) -> Optional[int]:
        ctx.add_warning("Saw %s", ptr, "Seen", (ctx.store[ptr].text,))
        return None


class _Exploding(_Recorder):
    code = "Test.Exploding"

    def process(self, ctx: SniffContext, ptr: int) -> Optional[int]:
        super().process(ctx, ptr)
        if ctx.fixer is not None:
            ctx.fixer.begin_changeset()
            ctx.fixer.add_content(ptr, "/* half */")
        raise RuntimeError("boom")


def _context(source: str = SOURCE, revision: int = 0, fixing: bool = False) -> SniffContext:
    store = build_store(source)
    return SniffContext(FileIdentity("a.php", revision), store,
                        fixer=Fixer(store) if fixing else None)


class TestDispatch:
    """Token walk and registration order."""

    def test_sniffs_run_in_registration_order_per_token(self) -> None:
        log: list = []
        registry = SniffRegistry([_Recorder(name="first", log=log), _Recorder(name="second", log=log)])
        registry.dispatch(_context())
        assert log == [
            ("first", "$a"), ("second", "$a"),
            ("first", "$b"), ("second", "$b"),
            ("first", "$c"), ("second", "$c"),
        ]

    def test_resume_position_skips_tokens(self) -> None:
        sniff = _StopAfterFirst()
        SniffRegistry([sniff]).dispatch(_context())
        assert sniff.log == [("rec", "$a")]

    def test_reports_are_qualified_with_sniff_code(self) -> None:
        ctx = _context("<?php $a;")
        SniffRegistry([_Reporter()]).dispatch(ctx)
        (diagnostic,) = ctx.sink.diagnostics
        assert diagnostic.source == "Test.Reporter.Seen"
        assert diagnostic.message == "Saw $a"
        assert diagnostic.severity is Severity.WARNING

    def test_registrations_and_sniffs(self) -> None:
        sniff = _Recorder()
        registry = SniffRegistry()
        registration = registry.register(sniff)
        assert registration.interest == frozenset({K.VARIABLE})
        assert registry.sniffs == [sniff]
        assert registry.registrations == (registration,)


class TestReset:
    """Per-file state is cleared when the file identity changes."""

    def test_reset_on_new_identity_only(self) -> None:
        sniff = _Recorder()
        registry = SniffRegistry([sniff])
        registry.dispatch(_context(revision=0))
        registry.dispatch(_context(revision=0))
        assert sniff.resets == 1
        assert sniff.seen_this_file == 6

        registry.dispatch(_context(revision=1))
        assert sniff.resets == 2
        assert sniff.seen_this_file == 3


class TestExceptionIsolation:
    """A failing sniff does not take the others down."""

    def test_failure_becomes_internal_error(self) -> None:
        exploding = _Exploding()
        healthy = _Recorder(name="healthy")
        ctx = _context()
        SniffRegistry([exploding, healthy]).dispatch(ctx)

        assert exploding.log == [("rec", "$a")]
        assert [text for _, text in healthy.log] == ["$a", "$b", "$c"]
        (diagnostic,) = ctx.sink.diagnostics
        assert diagnostic.source == INTERNAL_SOURCE
        assert diagnostic.severity is Severity.ERROR
        assert "Test.Exploding" in diagnostic.message
        assert "RuntimeError" in diagnostic.message

    def test_open_changeset_is_discarded(self) -> None:
        ctx = _context(fixing=True)
        SniffRegistry([_Exploding()]).dispatch(ctx)
        assert ctx.fixer is not None
        assert ctx.fixer.edit_count == 0
        assert not ctx.fixer.in_changeset


class TestSniffFactory:
    """Fresh registries from frozen specs."""

    def test_each_registry_gets_new_instances(self) -> None:
        factory = SniffFactory([SniffSpec(_Recorder, NoOptions())])
        first = factory.build_registry()
        second = factory.build_registry()
        assert factory.codes == ["Test.Recorder"]
        assert first.sniffs[0] is not second.sniffs[0]
        assert first.sniffs[0].options is second.sniffs[0].options
