"""Command-line interface for operating the catalog API."""
