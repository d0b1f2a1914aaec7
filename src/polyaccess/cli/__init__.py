"""Command-line interface for polyaccess."""
