"""Infrastructure layer: tokenizer, filesystem, config loading and DI wiring."""
