"""
PHP Tokenizer

Converts PHP source text into a flat stream of phpcs-style raw tokens.
tree-sitter-php parses the file; its leaf nodes (and a few literal nodes
kept whole, such as strings, variables and comments) become tokens, and the
bytes between them are recovered as whitespace or inline HTML so the token
texts always concatenate back to the source.

Malformed input never raises: tree-sitter recovers from syntax errors, and
text it skips becomes T_UNKNOWN tokens.
"""

import re
from collections.abc import Iterator
from typing import Optional

import tree_sitter_php as tsphp
from tree_sitter import Language, Node, Parser

from phpsniff.domain.errors import TokenizerError
from phpsniff.domain.tokens import EMPTY_TOKENS, RawToken
from phpsniff.domain.tokens import TokenKind as K

PHP_LANGUAGE = Language(tsphp.language_php())

KEYWORDS: dict[str, K] = {
    "abstract": K.ABSTRACT,
    "array": K.ARRAY,
    "as": K.AS,
    "break": K.BREAK,
    "callable": K.CALLABLE,
    "case": K.CASE,
    "catch": K.CATCH,
    "class": K.CLASS,
    "clone": K.CLONE,
    "const": K.CONST,
    "continue": K.CONTINUE,
    "declare": K.DECLARE,
    "default": K.DEFAULT,
    "do": K.DO,
    "echo": K.ECHO,
    "else": K.ELSE,
    "elseif": K.ELSEIF,
    "empty": K.EMPTY,
    "enddeclare": K.ENDDECLARE,
    "endfor": K.ENDFOR,
    "endforeach": K.ENDFOREACH,
    "endif": K.ENDIF,
    "endswitch": K.ENDSWITCH,
    "endwhile": K.ENDWHILE,
    "enum": K.ENUM,
    "extends": K.EXTENDS,
    "false": K.FALSE,
    "final": K.FINAL,
    "finally": K.FINALLY,
    "fn": K.FN,
    "for": K.FOR,
    "foreach": K.FOREACH,
    "function": K.FUNCTION,
    "global": K.GLOBAL,
    "goto": K.GOTO,
    "if": K.IF,
    "implements": K.IMPLEMENTS,
    "include": K.INCLUDE,
    "include_once": K.INCLUDE_ONCE,
    "instanceof": K.INSTANCEOF,
    "insteadof": K.INSTEADOF,
    "interface": K.INTERFACE,
    "isset": K.ISSET,
    "list": K.LIST,
    "match": K.MATCH,
    "namespace": K.NAMESPACE,
    "new": K.NEW,
    "null": K.NULL,
    "parent": K.PARENT,
    "print": K.PRINT,
    "private": K.PRIVATE,
    "protected": K.PROTECTED,
    "public": K.PUBLIC,
    "readonly": K.READONLY,
    "require": K.REQUIRE,
    "require_once": K.REQUIRE_ONCE,
    "return": K.RETURN,
    "self": K.SELF,
    "static": K.STATIC,
    "switch": K.SWITCH,
    "throw": K.THROW,
    "trait": K.TRAIT,
    "true": K.TRUE,
    "try": K.TRY,
    "unset": K.UNSET,
    "use": K.USE,
    "var": K.VAR,
    "while": K.WHILE,
    "yield": K.YIELD,
}

KEYWORD_KINDS = frozenset(KEYWORDS.values())

# Keywords that are only keywords when followed by an opening parenthesis.
_CALL_ONLY_KEYWORDS = frozenset({K.MATCH, K.LIST, K.FN})

OPERATORS: dict[str, K] = {
    "<=>": K.SPACESHIP,
    "===": K.IS_IDENTICAL,
    "!==": K.IS_NOT_IDENTICAL,
    "**=": K.POW_EQUAL,
    "...": K.ELLIPSIS,
    "<<=": K.SL_EQUAL,
    ">>=": K.SR_EQUAL,
    "??=": K.COALESCE_EQUAL,
    "?->": K.NULLSAFE_OBJECT_OPERATOR,
    "==": K.IS_EQUAL,
    "!=": K.IS_NOT_EQUAL,
    "<>": K.IS_NOT_EQUAL,
    "<=": K.IS_SMALLER_OR_EQUAL,
    ">=": K.IS_GREATER_OR_EQUAL,
    "&&": K.BOOLEAN_AND,
    "||": K.BOOLEAN_OR,
    "??": K.COALESCE,
    "++": K.INC,
    "--": K.DEC,
    "**": K.POW,
    "<<": K.SL,
    ">>": K.SR,
    "->": K.OBJECT_OPERATOR,
    "=>": K.DOUBLE_ARROW,
    "::": K.DOUBLE_COLON,
    "+=": K.PLUS_EQUAL,
    "-=": K.MINUS_EQUAL,
    "*=": K.MUL_EQUAL,
    "/=": K.DIV_EQUAL,
    ".=": K.CONCAT_EQUAL,
    "%=": K.MOD_EQUAL,
    "&=": K.AND_EQUAL,
    "|=": K.OR_EQUAL,
    "^=": K.XOR_EQUAL,
    ";": K.SEMICOLON,
    ",": K.COMMA,
    "(": K.OPEN_PARENTHESIS,
    ")": K.CLOSE_PARENTHESIS,
    "[": K.OPEN_SQUARE_BRACKET,
    "]": K.CLOSE_SQUARE_BRACKET,
    "{": K.OPEN_CURLY_BRACKET,
    "}": K.CLOSE_CURLY_BRACKET,
    "=": K.EQUAL,
    "+": K.PLUS,
    "-": K.MINUS,
    "*": K.MULTIPLY,
    "/": K.DIVIDE,
    "%": K.MODULUS,
    ".": K.STRING_CONCAT,
    "&": K.BITWISE_AND,
    "|": K.BITWISE_OR,
    "^": K.BITWISE_XOR,
    "~": K.BITWISE_NOT,
    "!": K.BOOLEAN_NOT,
    "?": K.INLINE_THEN,
    ":": K.COLON,
    "<": K.LESS_THAN,
    ">": K.GREATER_THAN,
    "@": K.ASPERAND,
    "\\": K.NS_SEPARATOR,
    "$": K.DOLLAR,
}


PUNCTUATION: dict[str, K] = {**OPERATORS, "#[": K.ATTRIBUTE}

# Named nodes emitted as one token; their children are never visited.
_LITERAL_NODES: dict[str, K] = {
    "string": K.CONSTANT_ENCAPSED_STRING,
    "encapsed_string": K.CONSTANT_ENCAPSED_STRING,
    "heredoc": K.HEREDOC,
    "nowdoc": K.NOWDOC,
    "shell_command_expression": K.BACKTICK,
    "variable_name": K.VARIABLE,
    "integer": K.LNUMBER,
    "float": K.DNUMBER,
    "comment": K.COMMENT,
}

_WORD = re.compile(r"[^\W\d]\w*")

_GAP_PART = re.compile(r"\s+|\S+")

_LINE_BREAK = re.compile(r"\r\n|\n")

_OPEN_TAG_TRAILER = re.compile(r"\r\n|[ \t\n]")

_QUOTES = frozenset({"'", "\""})

_QUOTED = {
    "'": re.compile(rb"'(?:[^'\\]|\\.)*(?:'|\Z)", re.DOTALL),
    "\"": re.compile(rb"\"(?:[^\"\\]|\\.)*(?:\"|\Z)", re.DOTALL),
}

_DOC_PART_PATTERN = re.compile(
    r"(?P<newline>\r?\n)"
    r"|(?P<space>[ \t]+)"
    r"|(?P<tag>@[\w\-\\]+)"
    r"|(?P<text>[^\r\n]+)"
)

_DOC_TAG = re.compile(r"@[\w\-\\]+")

_INTERPOLATION = re.compile(r"(?<!\\)\$[^\W\d{]|(?<!\\)\$\{|\{\$")

_DIRECTIVES: tuple[tuple[str, K], ...] = (
    ("phpcs:ignore-file", K.PHPCS_IGNORE_FILE),
    ("phpcs:ignore", K.PHPCS_IGNORE),
    ("phpcs:disable", K.PHPCS_DISABLE),
    ("phpcs:enable", K.PHPCS_ENABLE),
    ("phpcs:set", K.PHPCS_SET),
)

_COMMENT_KINDS = frozenset({K.COMMENT}) | frozenset(kind for _, kind in _DIRECTIVES)

# Tokens after which "[" dereferences instead of opening a short array.
_DEREFERENCEABLE = frozenset({
    K.VARIABLE,
    K.CLOSE_SQUARE_BRACKET,
    K.CLOSE_SHORT_ARRAY,
    K.CLOSE_PARENTHESIS,
    K.STRING,
    K.CONSTANT_ENCAPSED_STRING,
    K.DOUBLE_QUOTED_STRING,
    K.SELF,
    K.PARENT,
    K.STATIC,
})

_MEMBER_ACCESS = frozenset({K.OBJECT_OPERATOR, K.NULLSAFE_OBJECT_OPERATOR, K.DOUBLE_COLON})



class PhpTokenizer:
    """
    Tokenizer for PHP source files.

    Usage:
        tokens = PhpTokenizer().tokenize(source_text)
    """

    def tokenize(self, source: str) -> list[RawToken]:
        """Parse source, flatten the tree into raw tokens, then resolve context-dependent kinds."""
        if not isinstance(source, str):
            raise TokenizerError(
                f"Expected source text (str), got {type(source).__name__}")
        data = source.encode("utf-8", "surrogatepass")
        # Parsers are not shareable across threads; files are tokenized in a pool.
        tree = Parser(PHP_LANGUAGE).parse(data)
        parts = _TokenStream(data).run(tree.root_node)
        _Retokenizer(parts).run()
        return [RawToken(kind, text, line, column) for kind, text, line, column in parts]


def _token_nodes(root: Node) -> Iterator[Node]:
    """Leaves and whole literal nodes of the tree, in source order."""
    stack = [root]
    while stack:
        node = stack.pop()
        if node.start_byte == node.end_byte:
            continue
        if (node.is_named and node.type in _LITERAL_NODES) or node.child_count == 0:
            yield node
        else:
            stack.extend(reversed(node.children))


class _TokenStream:
    """Walks token nodes left to right producing [kind, text, line, column] entries."""

    def __init__(self, data: bytes) -> None:
        self.data = data
        self.offset = 0
        self.line = 1
        self.column = 1
        self.in_html = True
        self.parts: list[list] = []

    def run(self, root: Node) -> list[list]:
        for node in _token_nodes(root):
            if node.end_byte <= self.offset:
                continue
            self._gap(node.start_byte)
            start = max(node.start_byte, self.offset)
            end = node.end_byte
            if not self.in_html and node.child_count == 0 and node.type in _QUOTES:
                # A lone quote only survives error recovery; the string runs to its partner or EOF.
                end = _QUOTED[node.type].match(self.data, start).end()
            self._node(node, self._slice(start, end))
            self.offset = end
        self._gap(len(self.data))
        return self.parts

    def _slice(self, start: int, end: int) -> str:
        return self.data[start:end].decode("utf-8", "surrogatepass")

    def _advance(self, text: str) -> None:
        newlines = text.count("\n")
        if newlines:
            self.line += newlines
            self.column = len(text) - text.rfind("\n")
        else:
            self.column += len(text)

    def _emit(self, kind: K, text: str) -> None:
        if not text:
            return
        if kind == K.INLINE_HTML and self.parts and self.parts[-1][0] == K.INLINE_HTML:
            self.parts[-1][1] += text
        else:
            self.parts.append([kind, text, self.line, self.column])
        self._advance(text)

    def _gap(self, end: int) -> None:
        """Emit the untokenized bytes before a node: whitespace in PHP, markup outside it."""
        if end <= self.offset:
            return
        text = self._absorb(self._slice(self.offset, end))
        self.offset = end
        if self.in_html:
            self._emit(K.INLINE_HTML, text)
            return
        for match in _GAP_PART.finditer(text):
            part = match.group(0)
            self._emit(K.WHITESPACE if part.isspace() else K.UNKNOWN, part)

    def _absorb(self, text: str) -> str:
        """Move the line break phpcs attaches to tags and line comments onto the previous token."""
        if not self.parts:
            return text
        previous = self.parts[-1]
        kind, previous_text = previous[0], previous[1]
        if kind == K.OPEN_TAG and not previous_text[-1].isspace():
            match = _OPEN_TAG_TRAILER.match(text)
        elif kind == K.CLOSE_TAG and previous_text.endswith(">"):
            match = _LINE_BREAK.match(text)
        elif kind in _COMMENT_KINDS and previous_text.startswith(("//", "#")) \
                and not previous_text.endswith("\n"):
            match = _LINE_BREAK.match(text)
        else:
            match = None
        if match is None:
            return text
        previous[1] += match.group(0)
        self._advance(match.group(0))
        return text[match.end():]

    def _node(self, node: Node, text: str) -> None:
        if node.type == "php_tag":
            self.in_html = False
            self._emit(K.OPEN_TAG_WITH_ECHO if text == "<?=" else K.OPEN_TAG, text)
            return
        if self.in_html or (node.is_named and node.type == "text"):
            self._emit(K.INLINE_HTML, self._absorb(text))
            return
        if text.rstrip("\r\n") == "?>":
            self.in_html = True
            self._emit(K.CLOSE_TAG, text)
            return
        if node.is_named and node.type in _LITERAL_NODES:
            self._emit_literal(node.type, text)
            return
        kind = _leaf_kind(text)
        previous = self.parts[-1] if self.parts else None
        if kind in KEYWORD_KINDS or kind == K.STRING:
            if previous is not None and previous[0] == K.DOLLAR and previous[1] == "$":
                # "$" and a name split apart by error recovery.
                previous[0] = K.VARIABLE
                previous[1] += text
                self._advance(text)
                return
        self._emit(kind, text)

    def _emit_literal(self, node_type: str, text: str) -> None:
        if node_type == "comment":
            if text.startswith("/**") and len(text) > 3 and text[3].isspace():
                self._emit_doc_comment(text)
            else:
                self._emit(_comment_kind(text), text)
        elif node_type == "encapsed_string" and _INTERPOLATION.search(text):
            self._emit(K.DOUBLE_QUOTED_STRING, text)
        else:
            self._emit(_LITERAL_NODES[node_type], text)

    def _emit_doc_comment(self, text: str) -> None:
        closed = text.endswith("*/") and len(text) >= 5
        body = text[3:-2] if closed else text[3:]
        self._emit(K.DOC_COMMENT_OPEN_TAG, "/**")
        at_line_start = False
        for match in _DOC_PART_PATTERN.finditer(body):
            group = match.lastgroup
            part = match.group(0)
            if group in ("newline", "space"):
                self._emit(K.DOC_COMMENT_WHITESPACE, part)
                if group == "newline":
                    at_line_start = True
                continue
            if at_line_start and part.startswith("*"):
                self._emit(K.DOC_COMMENT_STAR, "*")
                at_line_start = False
                self._emit_doc_text(part[1:])
                continue
            at_line_start = False
            if group == "tag":
                self._emit(K.DOC_COMMENT_TAG, part)
            else:
                self._emit_doc_text(part)
        if closed:
            self._emit(K.DOC_COMMENT_CLOSE_TAG, "*/")

    def _emit_doc_text(self, part: str) -> None:
        """Emit leading space, an optional @tag, text and trailing space of one line fragment."""
        stripped = part.lstrip(" \t")
        self._emit(K.DOC_COMMENT_WHITESPACE, part[:len(part) - len(stripped)])
        if stripped.startswith("@"):
            tag_match = _DOC_TAG.match(stripped)
            if tag_match:
                self._emit(K.DOC_COMMENT_TAG, tag_match.group(0))
                stripped = stripped[tag_match.end():]
                rest = stripped.lstrip(" \t")
                self._emit(K.DOC_COMMENT_WHITESPACE, stripped[:len(stripped) - len(rest)])
                stripped = rest
        content = stripped.rstrip(" \t")
        self._emit(K.DOC_COMMENT_STRING, content)
        self._emit(K.DOC_COMMENT_WHITESPACE, stripped[len(content):])


def _leaf_kind(text: str) -> K:
    """Kind of a keyword, name or punctuation leaf, decided by its text."""
    if text.startswith("'"):
        return K.CONSTANT_ENCAPSED_STRING
    if text.startswith('"'):
        return K.DOUBLE_QUOTED_STRING if _INTERPOLATION.search(text[1:]) else K.CONSTANT_ENCAPSED_STRING
    if text in PUNCTUATION:
        return PUNCTUATION[text]
    if _WORD.fullmatch(text):
        return KEYWORDS.get(text.lower(), K.STRING)
    return K.UNKNOWN


def _comment_kind(text: str) -> K:
    body = text
    for prefix in ("//", "#", "/*"):
        if body.startswith(prefix):
            body = body[len(prefix):]
            break
    body = body.strip().lower()
    for directive, kind in _DIRECTIVES:
        if body.startswith(directive):
            return kind
    return K.COMMENT


class _Retokenizer:
    """Resolve kinds that depend on neighbouring tokens, the way phpcs does after lexing."""

    def __init__(self, parts: list[list]) -> None:
        self.parts = parts

    def _next_significant(self, index: int) -> Optional[int]:
        for i in range(index + 1, len(self.parts)):
            if self.parts[i][0] not in EMPTY_TOKENS:
                return i
        return None

    def _previous_significant(self, index: int) -> Optional[int]:
        for i in range(index - 1, -1, -1):
            if self.parts[i][0] not in EMPTY_TOKENS:
                return i
        return None

    def _kind(self, index: Optional[int]) -> Optional[K]:
        return None if index is None else self.parts[index][0]

    def run(self) -> None:
        bracket_stack: list[K] = []
        for index, part in enumerate(self.parts):
            kind = part[0]
            if kind == K.STRING or kind in KEYWORD_KINDS:
                part[0] = self._resolve_word(index, kind)
            elif kind == K.OPEN_SQUARE_BRACKET:
                previous = self._kind(self._previous_significant(index))
                if previous not in _DEREFERENCEABLE:
                    part[0] = K.OPEN_SHORT_ARRAY
                bracket_stack.append(part[0])
            elif kind == K.ATTRIBUTE:
                bracket_stack.append(K.ATTRIBUTE)
            elif kind == K.CLOSE_SQUARE_BRACKET:
                opener = bracket_stack.pop() if bracket_stack else None
                if opener == K.OPEN_SHORT_ARRAY:
                    part[0] = K.CLOSE_SHORT_ARRAY
                elif opener == K.ATTRIBUTE:
                    part[0] = K.ATTRIBUTE_END
            if part[0] == K.FN:
                self._mark_fn_arrow(index)

    def _resolve_word(self, index: int, kind: K) -> K:
        previous = self._previous_significant(index)
        previous_kind = self._kind(previous)
        next_index = self._next_significant(index)
        next_kind = self._kind(next_index)

        if previous_kind in _MEMBER_ACCESS or previous_kind in (K.FUNCTION, K.CONST):
            return K.STRING
        if previous_kind == K.USE and kind in (K.FUNCTION, K.CONST):
            return K.STRING
        if index > 0 and self.parts[index - 1][0] == K.NS_SEPARATOR:
            return K.STRING
        if next_kind == K.COLON and previous_kind in (K.OPEN_PARENTHESIS, K.COMMA):
            return K.PARAM_NAME
        if kind in _CALL_ONLY_KEYWORDS and next_kind != K.OPEN_PARENTHESIS:
            if not (kind == K.FN and next_kind == K.BITWISE_AND):
                return K.STRING
        if kind == K.ENUM and next_kind != K.STRING:
            return K.STRING
        if kind == K.FUNCTION:
            if next_kind == K.OPEN_PARENTHESIS:
                return K.CLOSURE
            if next_kind == K.BITWISE_AND and self._kind(
                    self._next_significant(next_index)) == K.OPEN_PARENTHESIS:
                return K.CLOSURE
        if kind == K.CLASS and previous_kind == K.NEW:
            return K.ANON_CLASS
        return kind

    def _mark_fn_arrow(self, index: int) -> None:
        """Retype the "=>" that ends an arrow function's signature."""
        depth = 0
        seen_parenthesis = False
        for i in range(index + 1, len(self.parts)):
            kind = self.parts[i][0]
            if kind == K.OPEN_PARENTHESIS:
                depth += 1
                seen_parenthesis = True
            elif kind == K.CLOSE_PARENTHESIS:
                depth -= 1
            elif kind == K.DOUBLE_ARROW and depth == 0 and seen_parenthesis:
                self.parts[i][0] = K.FN_ARROW
                return
            elif kind in (K.SEMICOLON, K.OPEN_CURLY_BRACKET) and depth == 0:
                return
