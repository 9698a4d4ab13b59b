"""Conformance image management, run status tracking and cluster snapshot helpers."""

__version__ = "0.1.0"