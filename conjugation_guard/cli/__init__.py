"""Command-line interface for Conjugation Guard."""
