"""HTTP API for Conduit."""
