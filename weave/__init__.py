"""Weave — a small scripting language with structs, string unions and type-directed methods."""

__version__ = "0.1.0"
