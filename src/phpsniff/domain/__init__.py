"""Domain layer: tokens, queries, diagnostics, fixer and sniffs. No I/O."""
