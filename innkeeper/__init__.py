"""Innkeeper - availability and pricing backend for independent lodging."""

__version__ = "1.0.0"
