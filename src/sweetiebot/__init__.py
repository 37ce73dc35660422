"""Sweetie Bot - per-guild configuration core for a chat moderation bot."""

__version__ = "0.21.0"
