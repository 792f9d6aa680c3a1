"""Koradi Board: language-scoped message board backend."""

__version__ = "0.1.0"
