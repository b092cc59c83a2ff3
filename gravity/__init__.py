"""Gravity — pairwise N-body simulator with overlap merging."""

__version__ = "0.1.0"
