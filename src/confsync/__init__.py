"""confsync - Keep editor configuration in sync through a Git repository."""

__version__ = "0.1.0"
