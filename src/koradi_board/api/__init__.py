"""HTTP API for the Koradi Board application."""
