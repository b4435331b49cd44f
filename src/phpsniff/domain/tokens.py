"""Token kinds, token records and the kind sets sniffs match against."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class TokenKind(str, Enum):
    """Lexical token kinds. Values follow the phpcs token names."""

    INLINE_HTML = "T_INLINE_HTML"
    OPEN_TAG = "T_OPEN_TAG"
    OPEN_TAG_WITH_ECHO = "T_OPEN_TAG_WITH_ECHO"
    CLOSE_TAG = "T_CLOSE_TAG"
    WHITESPACE = "T_WHITESPACE"
    COMMENT = "T_COMMENT"
    DOC_COMMENT_OPEN_TAG = "T_DOC_COMMENT_OPEN_TAG"
    DOC_COMMENT_CLOSE_TAG = "T_DOC_COMMENT_CLOSE_TAG"
    DOC_COMMENT_STAR = "T_DOC_COMMENT_STAR"
    DOC_COMMENT_WHITESPACE = "T_DOC_COMMENT_WHITESPACE"
    DOC_COMMENT_TAG = "T_DOC_COMMENT_TAG"
    DOC_COMMENT_STRING = "T_DOC_COMMENT_STRING"
    PHPCS_IGNORE = "T_PHPCS_IGNORE"
    PHPCS_DISABLE = "T_PHPCS_DISABLE"
    PHPCS_ENABLE = "T_PHPCS_ENABLE"
    PHPCS_IGNORE_FILE = "T_PHPCS_IGNORE_FILE"
    PHPCS_SET = "T_PHPCS_SET"

    VARIABLE = "T_VARIABLE"
    STRING = "T_STRING"
    PARAM_NAME = "T_PARAM_NAME"
    CONSTANT_ENCAPSED_STRING = "T_CONSTANT_ENCAPSED_STRING"
    DOUBLE_QUOTED_STRING = "T_DOUBLE_QUOTED_STRING"
    HEREDOC = "T_HEREDOC"
    NOWDOC = "T_NOWDOC"
    BACKTICK = "T_BACKTICK"
    LNUMBER = "T_LNUMBER"
    DNUMBER = "T_DNUMBER"
    NULL = "T_NULL"
    TRUE = "T_TRUE"
    FALSE = "T_FALSE"
    SELF = "T_SELF"
    PARENT = "T_PARENT"

    ABSTRACT = "T_ABSTRACT"
    ANON_CLASS = "T_ANON_CLASS"
    ARRAY = "T_ARRAY"
    AS = "T_AS"
    BREAK = "T_BREAK"
    CALLABLE = "T_CALLABLE"
    CASE = "T_CASE"
    CATCH = "T_CATCH"
    CLASS = "T_CLASS"
    CLONE = "T_CLONE"
    CLOSURE = "T_CLOSURE"
    CONST = "T_CONST"
    CONTINUE = "T_CONTINUE"
    DECLARE = "T_DECLARE"
    DEFAULT = "T_DEFAULT"
    DO = "T_DO"
    ECHO = "T_ECHO"
    ELSE = "T_ELSE"
    ELSEIF = "T_ELSEIF"
    EMPTY = "T_EMPTY"
    ENDDECLARE = "T_ENDDECLARE"
    ENDFOR = "T_ENDFOR"
    ENDFOREACH = "T_ENDFOREACH"
    ENDIF = "T_ENDIF"
    ENDSWITCH = "T_ENDSWITCH"
    ENDWHILE = "T_ENDWHILE"
    ENUM = "T_ENUM"
    EXTENDS = "T_EXTENDS"
    FINAL = "T_FINAL"
    FINALLY = "T_FINALLY"
    FN = "T_FN"
    FOR = "T_FOR"
    FOREACH = "T_FOREACH"
    FUNCTION = "T_FUNCTION"
    GLOBAL = "T_GLOBAL"
    GOTO = "T_GOTO"
    IF = "T_IF"
    IMPLEMENTS = "T_IMPLEMENTS"
    INCLUDE = "T_INCLUDE"
    INCLUDE_ONCE = "T_INCLUDE_ONCE"
    INSTANCEOF = "T_INSTANCEOF"
    INSTEADOF = "T_INSTEADOF"
    INTERFACE = "T_INTERFACE"
    ISSET = "T_ISSET"
    LIST = "T_LIST"
    MATCH = "T_MATCH"
    NAMESPACE = "T_NAMESPACE"
    NEW = "T_NEW"
    PRINT = "T_PRINT"
    PRIVATE = "T_PRIVATE"
    PROTECTED = "T_PROTECTED"
    PUBLIC = "T_PUBLIC"
    READONLY = "T_READONLY"
    REQUIRE = "T_REQUIRE"
    REQUIRE_ONCE = "T_REQUIRE_ONCE"
    RETURN = "T_RETURN"
    STATIC = "T_STATIC"
    SWITCH = "T_SWITCH"
    THROW = "T_THROW"
    TRAIT = "T_TRAIT"
    TRY = "T_TRY"
    UNSET = "T_UNSET"
    USE = "T_USE"
    VAR = "T_VAR"
    WHILE = "T_WHILE"
    YIELD = "T_YIELD"

    OPEN_PARENTHESIS = "T_OPEN_PARENTHESIS"
    CLOSE_PARENTHESIS = "T_CLOSE_PARENTHESIS"
    OPEN_SQUARE_BRACKET = "T_OPEN_SQUARE_BRACKET"
    CLOSE_SQUARE_BRACKET = "T_CLOSE_SQUARE_BRACKET"
    OPEN_SHORT_ARRAY = "T_OPEN_SHORT_ARRAY"
    CLOSE_SHORT_ARRAY = "T_CLOSE_SHORT_ARRAY"
    OPEN_CURLY_BRACKET = "T_OPEN_CURLY_BRACKET"
    CLOSE_CURLY_BRACKET = "T_CLOSE_CURLY_BRACKET"
    ATTRIBUTE = "T_ATTRIBUTE"
    ATTRIBUTE_END = "T_ATTRIBUTE_END"

    SEMICOLON = "T_SEMICOLON"
    COMMA = "T_COMMA"
    COLON = "T_COLON"
    DOUBLE_COLON = "T_DOUBLE_COLON"
    DOUBLE_ARROW = "T_DOUBLE_ARROW"
    FN_ARROW = "T_FN_ARROW"
    OBJECT_OPERATOR = "T_OBJECT_OPERATOR"
    NULLSAFE_OBJECT_OPERATOR = "T_NULLSAFE_OBJECT_OPERATOR"
    NS_SEPARATOR = "T_NS_SEPARATOR"
    ELLIPSIS = "T_ELLIPSIS"
    INLINE_THEN = "T_INLINE_THEN"
    DOLLAR = "T_DOLLAR"
    ASPERAND = "T_ASPERAND"

    EQUAL = "T_EQUAL"
    PLUS_EQUAL = "T_PLUS_EQUAL"
    MINUS_EQUAL = "T_MINUS_EQUAL"
    MUL_EQUAL = "T_MUL_EQUAL"
    DIV_EQUAL = "T_DIV_EQUAL"
    CONCAT_EQUAL = "T_CONCAT_EQUAL"
    MOD_EQUAL = "T_MOD_EQUAL"
    POW_EQUAL = "T_POW_EQUAL"
    AND_EQUAL = "T_AND_EQUAL"
    OR_EQUAL = "T_OR_EQUAL"
    XOR_EQUAL = "T_XOR_EQUAL"
    SL_EQUAL = "T_SL_EQUAL"
    SR_EQUAL = "T_SR_EQUAL"
    COALESCE_EQUAL = "T_COALESCE_EQUAL"

    IS_IDENTICAL = "T_IS_IDENTICAL"
    IS_NOT_IDENTICAL = "T_IS_NOT_IDENTICAL"
    IS_EQUAL = "T_IS_EQUAL"
    IS_NOT_EQUAL = "T_IS_NOT_EQUAL"
    IS_SMALLER_OR_EQUAL = "T_IS_SMALLER_OR_EQUAL"
    IS_GREATER_OR_EQUAL = "T_IS_GREATER_OR_EQUAL"
    SPACESHIP = "T_SPACESHIP"
    LESS_THAN = "T_LESS_THAN"
    GREATER_THAN = "T_GREATER_THAN"
    BOOLEAN_AND = "T_BOOLEAN_AND"
    BOOLEAN_OR = "T_BOOLEAN_OR"
    BOOLEAN_NOT = "T_BOOLEAN_NOT"
    COALESCE = "T_COALESCE"
    INC = "T_INC"
    DEC = "T_DEC"
    POW = "T_POW"
    SL = "T_SL"
    SR = "T_SR"
    PLUS = "T_PLUS"
    MINUS = "T_MINUS"
    MULTIPLY = "T_MULTIPLY"
    DIVIDE = "T_DIVIDE"
    MODULUS = "T_MODULUS"
    STRING_CONCAT = "T_STRING_CONCAT"
    BITWISE_AND = "T_BITWISE_AND"
    BITWISE_OR = "T_BITWISE_OR"
    BITWISE_XOR = "T_BITWISE_XOR"
    BITWISE_NOT = "T_BITWISE_NOT"

    UNKNOWN = "T_UNKNOWN"


K = TokenKind


@dataclass(frozen=True)
class RawToken:
    """Tokenizer output before structural linking."""

    kind: TokenKind
    text: str
    line: int
    column: int


@dataclass(frozen=True)
class Token:
    """One token plus the structural links computed when the store was built.

    Every link is a token index or None when it could not be determined
    (unbalanced input, unmodelled construct).
    """

    index: int
    kind: TokenKind
    text: str
    line: int
    column: int
    matching_opener: Optional[int] = None
    matching_closer: Optional[int] = None
    scope_condition: Optional[int] = None
    scope_opener: Optional[int] = None
    scope_closer: Optional[int] = None
    parenthesis_owner: Optional[int] = None
    parenthesis_opener: Optional[int] = None
    parenthesis_closer: Optional[int] = None
    conditions: tuple[int, ...] = ()
    nested_parenthesis: tuple[int, ...] = ()

    @property
    def level(self) -> int:
        return len(self.conditions)


PHPCS_DIRECTIVE_TOKENS = frozenset({
    K.PHPCS_IGNORE,
    K.PHPCS_DISABLE,
    K.PHPCS_ENABLE,
    K.PHPCS_IGNORE_FILE,
    K.PHPCS_SET,
})

DOC_COMMENT_TOKENS = frozenset({
    K.DOC_COMMENT_OPEN_TAG,
    K.DOC_COMMENT_CLOSE_TAG,
    K.DOC_COMMENT_STAR,
    K.DOC_COMMENT_WHITESPACE,
    K.DOC_COMMENT_TAG,
    K.DOC_COMMENT_STRING,
})

COMMENT_TOKENS = frozenset({K.COMMENT}) | DOC_COMMENT_TOKENS | PHPCS_DIRECTIVE_TOKENS

EMPTY_TOKENS = frozenset({K.WHITESPACE}) | COMMENT_TOKENS

ASSIGNMENT_TOKENS = frozenset({
    K.EQUAL,
    K.PLUS_EQUAL,
    K.MINUS_EQUAL,
    K.MUL_EQUAL,
    K.DIV_EQUAL,
    K.CONCAT_EQUAL,
    K.MOD_EQUAL,
    K.POW_EQUAL,
    K.AND_EQUAL,
    K.OR_EQUAL,
    K.XOR_EQUAL,
    K.SL_EQUAL,
    K.SR_EQUAL,
    K.COALESCE_EQUAL,
})

OO_SCOPE_TOKENS = frozenset({K.CLASS, K.ANON_CLASS, K.INTERFACE, K.TRAIT, K.ENUM})

FUNCTION_TOKENS = frozenset({K.FUNCTION, K.CLOSURE, K.FN})

CONTROL_STRUCTURE_TOKENS = frozenset({
    K.IF,
    K.ELSEIF,
    K.ELSE,
    K.FOR,
    K.FOREACH,
    K.WHILE,
    K.SWITCH,
    K.DECLARE,
})

# Keywords whose block body is linked through scope_opener / scope_closer.
SCOPE_OWNERS = OO_SCOPE_TOKENS | CONTROL_STRUCTURE_TOKENS | frozenset({
    K.FUNCTION,
    K.CLOSURE,
    K.NAMESPACE,
    K.DO,
    K.TRY,
    K.CATCH,
    K.FINALLY,
    K.MATCH,
})

PARENTHESIS_OWNERS = frozenset({
    K.ANON_CLASS,
    K.ARRAY,
    K.CATCH,
    K.CLOSURE,
    K.DECLARE,
    K.ELSEIF,
    K.EMPTY,
    K.FN,
    K.FOR,
    K.FOREACH,
    K.FUNCTION,
    K.IF,
    K.ISSET,
    K.LIST,
    K.MATCH,
    K.SWITCH,
    K.UNSET,
    K.USE,
    K.WHILE,
})

OPENER_TO_CLOSER = {
    K.OPEN_PARENTHESIS: K.CLOSE_PARENTHESIS,
    K.OPEN_SQUARE_BRACKET: K.CLOSE_SQUARE_BRACKET,
    K.OPEN_SHORT_ARRAY: K.CLOSE_SHORT_ARRAY,
    K.OPEN_CURLY_BRACKET: K.CLOSE_CURLY_BRACKET,
    K.ATTRIBUTE: K.ATTRIBUTE_END,
    K.DOC_COMMENT_OPEN_TAG: K.DOC_COMMENT_CLOSE_TAG,
}

CLOSER_TO_OPENER = {closer: opener for opener, closer in OPENER_TO_CLOSER.items()}

# Tokens that may appear inside a parameter, property or return type.
TYPE_TOKENS = frozenset({
    K.STRING,
    K.ARRAY,
    K.CALLABLE,
    K.SELF,
    K.PARENT,
    K.STATIC,
    K.NULL,
    K.FALSE,
    K.TRUE,
    K.NS_SEPARATOR,
    K.INLINE_THEN,
    K.BITWISE_OR,
    K.BITWISE_AND,
})

MODIFIER_TOKENS = frozenset({
    K.PUBLIC,
    K.PROTECTED,
    K.PRIVATE,
    K.STATIC,
    K.READONLY,
    K.VAR,
    K.ABSTRACT,
    K.FINAL,
})

VISIBILITY_TOKENS = frozenset({K.PUBLIC, K.PROTECTED, K.PRIVATE})
