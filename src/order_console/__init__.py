"""Operator console for the two-phase order analysis/export pipeline."""

__version__ = "0.1.0"
