"""Use cases orchestrating checks and fixes over files."""
