"""All shipped sniffs in registration order."""

from phpsniff.domain.sniffs import Sniff
from phpsniff.domain.sniffs.classes import TypedPropertySniff
from phpsniff.domain.sniffs.comments import (
    BlockCommentSniff,
    DocblockTypeSyncSniff,
    InlineCommentPeriodSniff,
    PhpcsDirectiveSniff,
)
from phpsniff.domain.sniffs.functions import TypeDeclarationSniff, TypeHintingSniff
from phpsniff.domain.sniffs.namespaces import GlobalNamespaceSniff, NamespaceSniff
from phpsniff.domain.sniffs.php import (
    DisallowSuperglobalWriteSniff,
    DiscouragedMixedTypeSniff,
    StrictTypesSniff,
)
from phpsniff.domain.sniffs.wordpress import (
    NoHookClosureSniff,
    RequirePermissionCallbackSniff,
)

ALL_SNIFFS: tuple[type[Sniff], ...] = (
    TypedPropertySniff,
    BlockCommentSniff,
    DocblockTypeSyncSniff,
    InlineCommentPeriodSniff,
    PhpcsDirectiveSniff,
    TypeDeclarationSniff,
    TypeHintingSniff,
    GlobalNamespaceSniff,
    NamespaceSniff,
    DisallowSuperglobalWriteSniff,
    DiscouragedMixedTypeSniff,
    StrictTypesSniff,
    NoHookClosureSniff,
    RequirePermissionCallbackSniff,
)

SNIFFS_BY_CODE: dict[str, type[Sniff]] = {sniff.code: sniff for sniff in ALL_SNIFFS}
