"""Command-line interface for Conduit."""
