"""Utility modules: report writers and system information."""
