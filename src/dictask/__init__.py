"""Dictate a task by voice in a chat and file it in the task backend."""

__version__ = "0.1.0"
