"""Comment sniffs: inline comment punctuation, block comment shape, phpcs directives and docblock types."""

import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Hashable, Optional

from phpsniff.domain.diagnostics import Severity
from phpsniff.domain.docblock import function_docblock
from phpsniff.domain.errors import ConfigurationError
from phpsniff.domain.sniffs import Sniff
from phpsniff.domain.tokens import EMPTY_TOKENS
from phpsniff.domain.tokens import TokenKind as K

if TYPE_CHECKING:
    from phpsniff.domain.context import SniffContext
    from phpsniff.domain.query import Parameter

_DIRECTIVE = re.compile(r"^phpcs:", re.IGNORECASE)
_SLASH_DIRECTIVE = re.compile(r"^//\s*phpcs:", re.IGNORECASE)
_ACCEPTED_CLOSERS = {
    "full-stops": ".",
    "exclamation marks": "!",
    "or question marks": "?",
}

_DECLARATION_TOKENS = frozenset({
    K.PUBLIC,
    K.PROTECTED,
    K.PRIVATE,
    K.CLASS,
    K.INTERFACE,
    K.TRAIT,
    K.ENUM,
    K.FUNCTION,
    K.FINAL,
    K.STATIC,
    K.ABSTRACT,
    K.CONST,
    K.VAR,
    K.READONLY,
})


def _is_slash_comment(text: str) -> bool:
    return text.startswith("//")


def _consecutive_slash_comments(ctx: "SniffContext", ptr: int) -> list[int]:
    """ptr plus the // comments on the following lines with only whitespace between."""
    group = [ptr]
    last = ptr
    while True:
        following = ctx.query.find_next(K.WHITESPACE, last + 1, exclude=True)
        if following is None:
            break
        token = ctx.store[following]
        if token.line != ctx.store[last].line + 1:
            break
        if token.kind != K.COMMENT or not _is_slash_comment(token.text):
            break
        group.append(following)
        last = following
    return group


def hex_range_class(ranges: tuple[str, ...]) -> str:
    """Character-class body for entries like "0x1F600-0x1F64F" or "0x2713"."""
    parts = []
    for entry in ranges:
        entry = entry.strip()
        if not entry:
            continue
        bounds = [bound.strip() for bound in entry.split("-", 1)]
        try:
            chars = [chr(int(bound[2:] if bound.lower().startswith("0x") else bound, 16))
                     for bound in bounds]
        except ValueError as exc:
            raise ConfigurationError(f"Invalid hex range {entry!r}") from exc
        parts.append("-".join(re.escape(char) for char in chars))
    return "".join(parts)


@dataclass(frozen=True)
class InlineCommentPeriodOptions:
    # Literal characters, each one accepted as a closer.
    extra_accepted_closers: str = ""
    # Body of a regular-expression character class, e.g. "✓✔".
    extra_accepted_pattern: str = ""
    extra_accepted_hex_ranges: tuple[str, ...] = ()


class InlineCommentPeriodSniff(Sniff):
    """Prose `//` comments end in a full stop, exclamation mark or question mark.

    Consecutive `//` lines are treated as one comment and only the last
    line's ending is checked. A comment that ends in a letter gets a period
    appended; other endings are reported only. Comments that do not start
    with a letter (code, URLs, lists) are left alone.
    """

    code = "Comments.InlineCommentPeriod"
    description = "Require inline comments to end with punctuation."
    options_type = InlineCommentPeriodOptions

    def __init__(self, options: Optional[InlineCommentPeriodOptions] = None) -> None:
        super().__init__(options)
        extra = (
            re.escape(self.options.extra_accepted_closers)
            + self.options.extra_accepted_pattern
            + hex_range_class(self.options.extra_accepted_hex_ranges)
        )
        self._extra_closer: Optional[re.Pattern] = None
        if extra:
            try:
                self._extra_closer = re.compile("[" + extra + "]$")
            except re.error as exc:
                raise ConfigurationError(f"Invalid extra accepted closers: {exc}") from exc

    def register(self) -> frozenset[K]:
        return frozenset({K.COMMENT})

    def process(self, ctx: "SniffContext", ptr: int) -> Optional[int]:
        if self._follows_closing_brace(ctx, ptr):
            return None
        if not _is_slash_comment(ctx.store[ptr].text):
            return None

        group = _consecutive_slash_comments(ctx, ptr)
        last = group[-1]
        comment_text = "".join(
            ctx.store[position].text[2:].strip()
            for position in group
            if ctx.store[position].text[2:].strip()
        )
        if comment_text == "" or _DIRECTIVE.match(comment_text):
            return last + 1
        if not comment_text[0].isalpha():
            return last + 1
        if comment_text[-1] in _ACCEPTED_CLOSERS.values():
            return last + 1
        if self._extra_closer is not None and self._extra_closer.search(comment_text):
            return last + 1

        if comment_text[-1].isalpha():
            if ctx.add_fixable_error(
                "Inline comments must end in full-stops, exclamation marks, or question marks",
                last,
                "AppendPeriod",
            ):
                original = ctx.store[last].text
                stripped = original.rstrip()
                ctx.fixer.replace_token(last, stripped + "." + original[len(stripped):])
        else:
            ctx.add_error(
                "Inline comments must end in %s",
                last,
                "InvalidEndChar",
                (", ".join(_ACCEPTED_CLOSERS),),
            )
        return last + 1

    @staticmethod
    def _follows_closing_brace(ctx: "SniffContext", ptr: int) -> bool:
        """True for a trailing `} // end if` style comment."""
        previous = ctx.query.find_previous(K.WHITESPACE, ptr - 1, exclude=True)
        if previous is None or ctx.store[previous].line != ctx.store[ptr].line:
            return False
        kind = ctx.store[previous].kind
        if kind == K.CLOSE_CURLY_BRACKET:
            return True
        if kind in (K.COMMA, K.SEMICOLON):
            before = ctx.query.find_previous(K.WHITESPACE, previous - 1, exclude=True)
            return before is not None and ctx.store[before].kind == K.CLOSE_CURLY_BRACKET
        return False


@dataclass(frozen=True)
class BlockCommentOptions:
    min_lines: int = 2


def strip_comment_prefix(content: str) -> str:
    text = content.rstrip("\r\n")
    if text.startswith("// "):
        text = text[3:]
    elif text.startswith("//"):
        text = text[2:]
    return text.rstrip()


class BlockCommentSniff(Sniff):
    """Perl-style `#` comments become `//`, and runs of `//` lines become one block comment.

    A run of at least min_lines standalone `//` lines is rewritten as a
    `/* */` block, or as a `/** */` docblock when a declaration follows.
    Runs containing `*/`, phpcs directives or only empty lines are skipped.
    """

    code = "Comments.BlockComment"
    description = "Disallow '#' comments and require block comments for multi-line comments."
    options_type = BlockCommentOptions

    def register(self) -> frozenset[K]:
        return frozenset({K.COMMENT})

    def process(self, ctx: "SniffContext", ptr: int) -> Optional[int]:
        text = ctx.store[ptr].text
        if text.startswith("#"):
            self._process_hash_comment(ctx, ptr)
            return ptr + 1
        if _is_slash_comment(text):
            return self._process_inline_block(ctx, ptr)
        return None

    def _process_hash_comment(self, ctx: "SniffContext", ptr: int) -> None:
        if not ctx.add_fixable_error(
            'Perl-style comments are not allowed; use "// Comment" instead', ptr, "HashComment"
        ):
            return
        body = ctx.store[ptr].text[1:]
        separator = " " if body and body[0] not in " \r\n" else ""
        ctx.fixer.replace_token(ptr, "//" + separator + body)

    def _process_inline_block(self, ctx: "SniffContext", ptr: int) -> int:
        previous = ctx.query.find_previous(K.WHITESPACE, ptr - 1, exclude=True)
        if previous is not None and ctx.store[previous].line == ctx.store[ptr].line:
            return ptr + 1

        group = _consecutive_slash_comments(ctx, ptr)
        last = group[-1]
        if len(group) < self.options.min_lines:
            return ptr + 1
        texts = [ctx.store[position].text for position in group]
        if any(_SLASH_DIRECTIVE.match(text) or "*/" in text for text in texts):
            return last + 1
        if not any(strip_comment_prefix(text) for text in texts):
            return last + 1

        if ctx.add_fixable_error(
            "Consecutive single-line comments should be a block comment", ptr, "WrongStyle"
        ):
            self._fix_to_block_comment(ctx, group, self._is_before_declaration(ctx, last))
        return last + 1

    @staticmethod
    def _is_before_declaration(ctx: "SniffContext", last: int) -> bool:
        following = ctx.query.find_next(EMPTY_TOKENS, last + 1, exclude=True)
        while following is not None and ctx.store[following].kind == K.ATTRIBUTE:
            closer = ctx.store[following].matching_closer
            if closer is None:
                break
            following = ctx.query.find_next(EMPTY_TOKENS, closer + 1, exclude=True)
        return following is not None and ctx.store[following].kind in _DECLARATION_TOKENS

    @staticmethod
    def _fix_to_block_comment(ctx: "SniffContext", group: list[int], is_docblock: bool) -> None:
        eol = ctx.store.eol
        first = group[0]
        indent = ""
        before = ctx.store.get(first - 1)
        if before is not None and before.kind == K.WHITESPACE:
            indent = before.text.rpartition("\n")[2]

        opener = "/**" if is_docblock else "/*"
        closing = indent + " */" + eol
        fixer = ctx.fixer
        fixer.begin_changeset()
        for i, position in enumerate(group):
            text = strip_comment_prefix(ctx.store[position].text)
            line = indent + " *" + eol if text == "" else indent + " * " + text + eol
            replacement = line
            if i == 0:
                replacement = opener + eol + replacement
            if i == len(group) - 1:
                replacement += closing
            else:
                for between in range(position + 1, group[i + 1]):
                    if ctx.store[between].kind == K.WHITESPACE:
                        fixer.replace_token(between, "")
            fixer.replace_token(position, replacement)
        fixer.end_changeset()


_LEGACY_DIRECTIVES = (
    ("@codingStandardsIgnoreLine", "phpcs:ignore", "DeprecatedIgnoreLine"),
    ("@codingStandardsIgnoreStart", "phpcs:disable", "DeprecatedIgnoreStart"),
    ("@codingStandardsIgnoreEnd", "phpcs:enable", "DeprecatedIgnoreEnd"),
)
_COMMENT_OPENER = re.compile(r"^(?://|#|/\*)\s*")
_COMMENT_CLOSER = re.compile(r"\s*\*/$")
_DIRECTIVE_KEYWORD = re.compile(r"^phpcs:[\w-]+", re.IGNORECASE)
_NOTE_SEPARATOR = " --"


def directive_codes(text: str) -> list[str]:
    """Sniff codes listed by a directive comment, split the way phpcs splits them.

    phpcs only recognises a note separator with whitespace before the `--`,
    so `Foo.Bar--note` stays one (corrupted) code.
    """
    body = _COMMENT_CLOSER.sub("", _COMMENT_OPENER.sub("", text.strip()))
    keyword = _DIRECTIVE_KEYWORD.match(body)
    if keyword is not None:
        body = body[keyword.end():]
    listed = body.split(_NOTE_SEPARATOR, 1)[0]
    return [code.strip() for code in listed.split(",") if code.strip()]


class PhpcsDirectiveSniff(Sniff):
    """phpcs directives must name the sniffs they silence and be balanced.

    Bare `phpcs:ignore` / `phpcs:disable`, `phpcs:ignore-file`, disables
    left open at end of file, enables with no matching disable and notes
    glued to a sniff code are reported. Legacy `@codingStandardsIgnore*`
    annotations are rewritten to their `phpcs:` equivalents. None of these
    reports can themselves be suppressed by a directive.
    """

    code = "Comments.PhpcsDirective"
    description = "Require targeted, balanced phpcs directives."

    def register(self) -> frozenset[K]:
        return frozenset({K.OPEN_TAG})

    def process(self, ctx: "SniffContext", ptr: int) -> Optional[int]:
        if ctx.query.find_next(K.OPEN_TAG, 0) != ptr:
            return len(ctx.store)

        open_disables: dict[str, int] = {}
        position = 0
        while position < len(ctx.store):
            token = ctx.store[position]
            if token.kind == K.COMMENT:
                self._check_legacy_comment(ctx, position)
            elif token.kind == K.DOC_COMMENT_TAG:
                position = self._check_legacy_doc_tag(ctx, position)
            elif token.kind == K.PHPCS_IGNORE:
                if not directive_codes(token.text):
                    self._report(
                        ctx, Severity.ERROR, position, "BareIgnore",
                        "phpcs:ignore directive must specify sniff code(s). "
                        "Use phpcs:ignore Sniff.Code.Here instead.",
                    )
                else:
                    self._check_note_separator(ctx, position)
            elif token.kind == K.PHPCS_DISABLE:
                codes = directive_codes(token.text)
                if not codes:
                    self._report(
                        ctx, Severity.ERROR, position, "BareDisable",
                        "phpcs:disable directive must specify sniff code(s). "
                        "Use phpcs:disable Sniff.Code.Here instead.",
                    )
                else:
                    self._check_note_separator(ctx, position)
                    for code in codes:
                        open_disables[code] = position
            elif token.kind == K.PHPCS_ENABLE:
                codes = directive_codes(token.text)
                if not codes:
                    open_disables.clear()
                else:
                    self._check_note_separator(ctx, position)
                    for code in codes:
                        if open_disables.pop(code, None) is None:
                            self._report(
                                ctx, Severity.WARNING, position, "UnmatchedEnable",
                                "phpcs:enable for '%s' has no matching phpcs:disable. "
                                "This enable may be stale or misplaced.",
                                (code,), dedup_key=code,
                            )
            elif token.kind == K.PHPCS_IGNORE_FILE:
                self._report(
                    ctx, Severity.ERROR, position, "IgnoreFile",
                    "phpcs:ignore-file is not allowed. Suppress specific sniffs on specific lines instead.",
                )
            position += 1

        for code, disable in open_disables.items():
            self._report(
                ctx, Severity.WARNING, disable, "UnmatchedDisable",
                "phpcs:disable for '%s' has no matching phpcs:enable before end of file. "
                "Consider adding a phpcs:enable before EOF, or moving the exclusion to "
                ".phpcs.xml.dist with an <exclude name=\"%s\"/> rule scoped to this file.",
                (code, code), dedup_key=code,
            )
        return len(ctx.store)

    @staticmethod
    def _report(
        ctx: "SniffContext",
        severity: Severity,
        position: int,
        code: str,
        message: str,
        args: Sequence[object] = (),
        fixable: bool = False,
        dedup_key: Hashable = None,
    ) -> bool:
        """Report past any suppression. True means the caller should now propose its fix."""
        recorded = ctx.report(position, code, severity, message, args, fixable, dedup_key, suppressible=False)
        return recorded and fixable and ctx.fixer is not None

    def _check_legacy_comment(self, ctx: "SniffContext", ptr: int) -> None:
        text = ctx.store[ptr].text
        for legacy, replacement, code in _LEGACY_DIRECTIVES:
            if legacy not in text:
                continue
            if self._report(
                ctx, Severity.ERROR, ptr, code, "Deprecated '%s' directive. Use '%s' instead.",
                (legacy, replacement), fixable=True,
            ):
                ctx.fixer.replace_token(ptr, text.replace(legacy, replacement))
            return

    def _check_legacy_doc_tag(self, ctx: "SniffContext", ptr: int) -> int:
        """Report a legacy annotation inside a docblock; returns where scanning resumes."""
        text = ctx.store[ptr].text
        for legacy, replacement, code in _LEGACY_DIRECTIVES:
            if legacy not in text:
                continue
            opener = ctx.query.find_previous(K.DOC_COMMENT_OPEN_TAG, ptr - 1)
            closer = None if opener is None else ctx.store[opener].matching_closer
            if opener is None or closer is None:
                return ptr
            if self._report(
                ctx, Severity.ERROR, ptr, code, "Deprecated '%s' directive. Use '%s' instead.",
                (legacy, replacement), fixable=True,
            ):
                # The docblock becomes a plain block comment so phpcs reads it as a directive.
                fixer = ctx.fixer
                fixer.begin_changeset()
                fixer.replace_token(opener, "/* " + replacement + " */")
                for position in range(opener + 1, closer + 1):
                    fixer.replace_token(position, "")
                fixer.end_changeset()
            return closer
        return ptr

    def _check_note_separator(self, ctx: "SniffContext", ptr: int) -> None:
        text = ctx.store[ptr].text
        corrupted: list[tuple[str, bool]] = []
        for code in directive_codes(text):
            if "--" in code:
                corrupted.append((code, True))
            elif re.search(r"\s", code):
                corrupted.append((code, False))
        if not corrupted:
            return

        if len(corrupted) > 1:
            # Commas inside the note split it ambiguously; report only.
            key, malformed = corrupted[0]
            shown = re.split(r"\s*--" if malformed else r"\s", key, maxsplit=1)[0]
            self._report(
                ctx, Severity.ERROR, ptr, "MissingNoteSeparator",
                "PHPCS directive note for '%s' is missing the '--' separator. "
                "Add '--' between sniff codes and note text.",
                (shown,),
            )
            return

        key, malformed = corrupted[0]
        if malformed:
            shown = re.split(r"\s*--", key, maxsplit=1)[0]
            fixed_key = re.sub(r"\s*--\s*", " -- ", key, count=1)
            if self._report(
                ctx, Severity.ERROR, ptr, "MalformedNoteSeparator",
                "PHPCS directive note separator for '%s' is malformed. "
                "The '--' requires a space before it to be recognized.",
                (shown,), fixable=True,
            ):
                ctx.fixer.replace_token(ptr, text.replace(key, fixed_key))
            return

        shown, note = re.split(r"\s", key, maxsplit=1)
        if self._report(
            ctx, Severity.ERROR, ptr, "MissingNoteSeparator",
            "PHPCS directive note for '%s' is missing the '--' separator. "
            "Use '-- %s' to separate the note from sniff codes.",
            (shown, note), fixable=True,
        ):
            ctx.fixer.replace_token(ptr, text.replace(key, shown + " -- " + note))


_NO_RETURN_METHODS = frozenset({"__construct", "__destruct", "__clone"})
_FUNCTION_MODIFIERS = frozenset({K.PUBLIC, K.PROTECTED, K.PRIVATE, K.STATIC, K.ABSTRACT, K.FINAL})
_RETURN_TYPE_END = frozenset({K.OPEN_CURLY_BRACKET, K.SEMICOLON})
_INHERITDOC = re.compile(r"\{@inheritdoc\}", re.IGNORECASE)
_DOC_VARIABLE = re.compile(r"\$\w+")
_CLASS_NAME = re.compile(r"^\\?[a-zA-Z_][a-zA-Z0-9_\\]*$")
_PRIMITIVE_TYPES = frozenset({
    "string", "int", "float", "bool",
    "array", "callable", "iterable", "object",
    "void", "mixed", "never", "null",
    "self", "parent", "static", "false", "true",
})


def code_type_to_docblock(code_type: str) -> str:
    """`?T` is written `T|null` in a docblock."""
    if code_type.startswith("?"):
        return code_type[1:] + "|null"
    return code_type


def leading_type(content: str) -> str:
    """The type at the start of a tag string; spaces inside <>, () or {} belong to it."""
    depth = 0
    for index, char in enumerate(content):
        if char in "<({":
            depth += 1
        elif char in ">)}":
            depth -= 1
        elif char in " \t" and depth == 0:
            return content[:index]
    return content


def _comparable(type_name: str) -> str:
    parts = code_type_to_docblock(type_name.strip()).split("|")
    return "|".join(sorted(part.strip().lstrip("\\").lower() for part in parts))


def _looks_like_class_name(type_name: str) -> bool:
    if type_name.lower() in _PRIMITIVE_TYPES:
        return False
    if type_name.endswith("[]") or "<" in type_name:
        return False
    return bool(_CLASS_NAME.match(type_name))


def _is_specialization(code_type: str, docblock_type: str) -> bool:
    """True when the docblock narrows the code type, e.g. `array` documented as `int[]`."""
    base_code = code_type[1:] if code_type.startswith("?") else code_type
    base_doc = "|".join(
        part.strip() for part in docblock_type.split("|") if part.strip().lower() != "null"
    )
    if base_doc == "":
        return False
    lower_code = base_code.lower()
    lower_doc = base_doc.lower()
    if lower_code == "array":
        return base_doc.endswith("[]") or re.match(r"array\s*<", lower_doc) is not None
    if lower_code == "iterable":
        return re.match(r"iterable\s*<", lower_doc) is not None
    if lower_code == "object":
        return _looks_like_class_name(base_doc)
    if lower_code == "callable":
        return lower_doc.lstrip("\\") == "closure" or re.match(r"callable\s*\(", lower_doc) is not None
    return False


def types_compatible(code_type: str, docblock_type: str) -> bool:
    if _comparable(code_type) == _comparable(docblock_type):
        return True
    return _is_specialization(code_type, docblock_type)


@dataclass(frozen=True)
class _DocTag:
    type: str
    tag: int
    string: Optional[int]


@dataclass(frozen=True)
class DocblockTypeSyncOptions:
    generate_missing_docblocks: bool = True
    report_type_drift: bool = True


class DocblockTypeSyncSniff(Sniff):
    """Keep `@param` and `@return` tags in step with the declared types.

    A function with a typed parameter or a return type needs a docblock
    documenting them. Missing docblocks, tags and tag types are inserted
    from the code; a documented type that contradicts the code (and is not
    a narrower form of it, like `int[]` for `array`) is a TypeDrift warning.
    Docblocks containing `{@inheritdoc}` are left alone.
    """

    code = "Comments.DocblockTypeSync"
    description = "Keep docblock @param and @return types in sync with declared types."
    options_type = DocblockTypeSyncOptions

    def register(self) -> frozenset[K]:
        return frozenset({K.FUNCTION})

    def process(self, ctx: "SniffContext", ptr: int) -> Optional[int]:
        typed = [parameter for parameter in ctx.query.method_parameters(ptr) if parameter.type_hint != ""]
        declared_return = self._declared_return_type(ctx, ptr)
        if not typed and declared_return == "":
            return None
        if (ctx.query.declaration_name(ptr) or "").lower() in _NO_RETURN_METHODS:
            declared_return = ""

        opener = function_docblock(ctx.store, ptr)
        if opener is None:
            if self.options.generate_missing_docblocks and (typed or declared_return):
                self._report_missing_docblock(ctx, ptr, typed, declared_return)
            return None
        closer = ctx.store[opener].matching_closer
        if closer is None:
            return None
        if _INHERITDOC.search(ctx.query.tokens_as_string(opener, closer - opener + 1)):
            return None

        params = self._param_tags(ctx, opener, closer)
        documented_return = self._return_tag(ctx, opener, closer)
        added_params = False
        for parameter in typed:
            tag = params.get(parameter.name)
            if tag is None:
                if ctx.add_fixable_error(
                    "Missing @param tag for typed parameter %s (%s)", ptr, "MissingParamTag",
                    (parameter.name, parameter.type_hint), dedup_key=parameter.name,
                ):
                    line = f"@param {code_type_to_docblock(parameter.type_hint)} {parameter.name} [Description.]"
                    self._insert_param_line(ctx, opener, closer, line, params, documented_return)
                    added_params = True
            elif tag.type == "":
                if ctx.add_fixable_error(
                    "Missing type for @param %s; code declares '%s'", tag.string, "MissingParamType",
                    (parameter.name, parameter.type_hint),
                ):
                    text = ctx.store[tag.string].text
                    ctx.fixer.replace_token(tag.string, code_type_to_docblock(parameter.type_hint) + " " + text)
            elif self.options.report_type_drift and not types_compatible(parameter.type_hint, tag.type):
                ctx.add_warning(
                    "Docblock type '%s' for %s contradicts code type '%s'", tag.tag, "TypeDrift",
                    (tag.type, parameter.name, parameter.type_hint), dedup_key=parameter.name,
                )

        if declared_return:
            self._check_return(ctx, ptr, opener, closer, declared_return, documented_return,
                               bool(params) or added_params)
        return None

    def _check_return(
        self,
        ctx: "SniffContext",
        ptr: int,
        opener: int,
        closer: int,
        declared: str,
        documented: Optional[_DocTag],
        has_params: bool,
    ) -> None:
        docblock_type = code_type_to_docblock(declared)
        if documented is None:
            if ctx.add_fixable_error(
                "Missing @return tag; code declares return type '%s'", ptr, "MissingReturnTag", (declared,)
            ):
                indent = self._docblock_indent(ctx, opener)
                eol = ctx.store.eol
                separator = indent + " *" + eol if has_params else ""
                self._insert_after_params_or_before_close(
                    ctx, opener, closer, separator + indent + " * @return " + docblock_type + eol,
                )
        elif documented.type == "":
            position = documented.string if documented.string is not None else documented.tag
            if ctx.add_fixable_error(
                "Missing type for @return; code declares '%s'", position, "MissingReturnType", (declared,)
            ):
                if documented.string is not None:
                    text = ctx.store[documented.string].text
                    ctx.fixer.replace_token(documented.string, docblock_type + " " + text)
                else:
                    ctx.fixer.add_content(documented.tag, " " + docblock_type)
        elif self.options.report_type_drift and not types_compatible(declared, documented.type):
            ctx.add_warning(
                "Docblock return type '%s' contradicts code return type '%s'", documented.tag, "TypeDrift",
                (documented.type, declared), dedup_key="@return",
            )

    @staticmethod
    def _declared_return_type(ctx: "SniffContext", ptr: int) -> str:
        parenthesis_closer = ctx.store[ptr].parenthesis_closer
        if parenthesis_closer is None:
            return ""
        colon = ctx.query.next_significant(parenthesis_closer)
        if colon is None or ctx.store[colon].kind != K.COLON:
            return ""
        end = ctx.query.find_next(_RETURN_TYPE_END, colon + 1)
        return ctx.query.significant_text(colon + 1, len(ctx.store) if end is None else end)

    @staticmethod
    def _tag_string(ctx: "SniffContext", tag: int, closer: int) -> Optional[int]:
        """The string following a tag, unless the next tag comes first."""
        string = ctx.query.find_next(K.DOC_COMMENT_STRING, tag + 1, closer)
        following_tag = ctx.query.find_next(K.DOC_COMMENT_TAG, tag + 1, closer)
        if string is None or (following_tag is not None and string > following_tag):
            return None
        return string

    def _param_tags(self, ctx: "SniffContext", opener: int, closer: int) -> dict[str, _DocTag]:
        params: dict[str, _DocTag] = {}
        for tag in range(opener, closer):
            token = ctx.store[tag]
            if token.kind != K.DOC_COMMENT_TAG or token.text != "@param":
                continue
            string = self._tag_string(ctx, tag, closer)
            if string is None:
                continue
            content = ctx.store[string].text.strip()
            variable = _DOC_VARIABLE.search(content)
            if variable is None:
                continue
            type_name = content[:variable.start()].strip().rstrip(".&").strip()
            params[variable.group(0)] = _DocTag(type_name, tag, string)
        return params

    def _return_tag(self, ctx: "SniffContext", opener: int, closer: int) -> Optional[_DocTag]:
        tag = ctx.query.find_next(K.DOC_COMMENT_TAG, opener, closer, value="@return")
        if tag is None:
            return None
        string = self._tag_string(ctx, tag, closer)
        if string is None:
            return _DocTag("", tag, None)
        return _DocTag(leading_type(ctx.store[string].text.strip()), tag, string)

    @staticmethod
    def _docblock_indent(ctx: "SniffContext", opener: int) -> str:
        before = ctx.store.get(opener - 1)
        if before is None or before.kind != K.WHITESPACE:
            return ""
        return before.text.rpartition("\n")[2]

    @staticmethod
    def _line_end(ctx: "SniffContext", tag: int, closer: int) -> int:
        """Last token on the tag's line inside the docblock."""
        line = ctx.store[tag].line
        for position in range(tag, closer + 1):
            if ctx.store[position].line > line:
                return position - 1
        return closer - 1

    def _insert_param_line(
        self,
        ctx: "SniffContext",
        opener: int,
        closer: int,
        tag_line: str,
        params: dict[str, _DocTag],
        documented_return: Optional[_DocTag],
    ) -> None:
        indent = self._docblock_indent(ctx, opener)
        content = indent + " * " + tag_line + ctx.store.eol
        if params:
            last = max(self._line_end(ctx, tag.tag, closer) for tag in params.values())
            ctx.fixer.add_content(last, content)
            return
        if documented_return is not None:
            line = ctx.store[documented_return.tag].line
            for position in range(documented_return.tag - 1, opener - 1, -1):
                if ctx.store[position].line < line:
                    ctx.fixer.add_content(position, content)
                    return
        self._insert_before_close(ctx, opener, closer, content)

    def _insert_after_params_or_before_close(
        self, ctx: "SniffContext", opener: int, closer: int, content: str,
    ) -> None:
        params = self._param_tags(ctx, opener, closer)
        if params:
            last = max(self._line_end(ctx, tag.tag, closer) for tag in params.values())
            ctx.fixer.add_content(last, content)
            return
        self._insert_before_close(ctx, opener, closer, content)

    def _insert_before_close(self, ctx: "SniffContext", opener: int, closer: int, content: str) -> None:
        line = ctx.store[closer].line
        for position in range(closer - 1, opener - 1, -1):
            if ctx.store[position].line < line:
                ctx.fixer.add_content(position, content)
                return
        # Single-line docblock: open a new line before the closing tag.
        indent = self._docblock_indent(ctx, opener)
        ctx.fixer.add_content_before(closer, ctx.store.eol + content + indent + " ")

    def _report_missing_docblock(
        self, ctx: "SniffContext", ptr: int, typed: list["Parameter"], declared_return: str,
    ) -> None:
        if not ctx.add_fixable_error(
            "Missing docblock for function with typed parameters or return type", ptr, "MissingDocblock"
        ):
            return
        insert_before = ptr
        position = ptr - 1
        while position >= 0:
            kind = ctx.store[position].kind
            if kind in _FUNCTION_MODIFIERS:
                insert_before = position
            elif kind != K.WHITESPACE:
                break
            position -= 1

        indent = ""
        before = ctx.store.get(insert_before - 1)
        if before is not None and before.kind == K.WHITESPACE:
            indent = before.text.rpartition("\n")[2]
        eol = ctx.store.eol
        lines = ["/**", indent + " * [Description placeholder.]", indent + " *"]
        width = max((len(code_type_to_docblock(p.type_hint)) for p in typed), default=0)
        for parameter in typed:
            type_name = code_type_to_docblock(parameter.type_hint).ljust(width)
            lines.append(f"{indent} * @param {type_name} {parameter.name} [Description.]")
        if declared_return:
            if typed:
                lines.append(indent + " *")
            lines.append(indent + " * @return " + code_type_to_docblock(declared_return))
        lines.append(indent + " */")
        ctx.fixer.add_content_before(insert_before, eol.join(lines) + eol + indent)
