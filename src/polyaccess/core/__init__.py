"""Core import engine for polyaccess."""
