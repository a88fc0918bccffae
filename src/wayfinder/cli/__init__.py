"""Command line interface and scan driver."""
