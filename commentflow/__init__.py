"""Commentflow - comment moderation and threading service."""

__version__ = "0.1.0"
