"""Client module - Editor, git and user-facing layers of confsync."""
