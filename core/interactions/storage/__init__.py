"""Persistent storage for projects."""

from interactions.storage.project_store import ProjectNotFoundError, ProjectStore

__all__ = ["ProjectStore", "ProjectNotFoundError"]
