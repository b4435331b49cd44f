"""phpsniff: token-stream coding-standard checks and fixes for PHP sources."""

__version__ = "0.3.0"
