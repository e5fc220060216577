"""Manage Easy: ideas, features and work items on Kanban boards."""

__version__ = "1.0.0"
