"""Command-line interface for ``crates-index``."""
