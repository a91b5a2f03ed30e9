"""Today's Todos: daily task lifecycle and cross-device sync."""

__version__ = "1.0.0"
