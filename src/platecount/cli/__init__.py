"""Command-line interface for platecount."""
