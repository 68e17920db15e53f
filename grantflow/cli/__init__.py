"""Command line interface for grantflow."""
