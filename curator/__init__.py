"""Curator: admin backend for generation scoring and account moderation."""

__version__ = "0.1.0"
