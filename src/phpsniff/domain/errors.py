"""Exception hierarchy. Malformed PHP input is never an exception."""


class PhpSniffError(Exception):
    """Base class for errors raised by phpsniff."""


class ConfigurationError(PhpSniffError):
    """Raised for unknown sniff codes, unknown options or badly typed option values."""


class TokenizerError(PhpSniffError):
    """Raised when the tokenizer is handed something that is not source text."""
