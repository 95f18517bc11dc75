"""Shared registry of repository evaluations backed by a GitHub-hosted JSON file."""

__version__ = "1.0.0"
