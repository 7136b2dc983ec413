"""Static per-platform catalogs."""
