"""polyaccess - legacy desktop database migration into PostgreSQL."""

__version__ = "0.1.0"
