"""Parsing adapters for Go source."""

from .go_parser import GoParser

__all__ = ["GoParser"]
