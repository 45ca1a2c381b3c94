"""Command line interface (``catalog-sync``)."""

from .__main__ import main

__all__ = ["main"]
