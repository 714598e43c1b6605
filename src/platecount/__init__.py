"""Platecount - church offering counts with two-person attestation."""

__version__ = "0.1.0"
